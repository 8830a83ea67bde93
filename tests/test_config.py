"""Tests for TierConfig."""

from __future__ import annotations

from pathlib import Path

import pytest

from tierfs.config import TierConfig
from tierfs.fs.bulk import DEFAULT_MAX_UPLOAD_BYTES


class TestDefaults:
    def test_defaults(self):
        config = TierConfig()
        assert config.root is None
        assert config.index_name == "index"
        assert config.markdown_extensions == frozenset({".markdown"})
        assert config.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES
        assert config.file_prefix == "/v1/file/"
        assert config.properties_prefix == "/v1/properties/file/"

    def test_default_database_under_data_dir(self, tmp_path):
        config = TierConfig(data_dir=tmp_path)
        assert config.resolved_database_url == (
            f"sqlite+aiosqlite:///{tmp_path / 'permissions.db'}"
        )

    def test_explicit_database_url(self):
        config = TierConfig(database_url="sqlite+aiosqlite://")
        assert config.resolved_database_url == "sqlite+aiosqlite://"


class TestNormalisation:
    def test_root_becomes_path(self, tmp_path):
        config = TierConfig(root=str(tmp_path))
        assert config.root == tmp_path
        assert isinstance(config.root, Path)

    def test_markdown_extensions(self):
        config = TierConfig(markdown_extensions=frozenset({"MD", ".Markdown"}))
        assert config.markdown_extensions == frozenset({".md", ".markdown"})

    def test_prefixes(self):
        config = TierConfig(file_prefix="v2/file", properties_prefix="/v2/props")
        assert config.file_prefix == "/v2/file/"
        assert config.properties_prefix == "/v2/props/"

    @pytest.mark.parametrize("name", ["", "a/b"])
    def test_invalid_index_name(self, name):
        with pytest.raises(ValueError, match="index_name"):
            TierConfig(index_name=name)

    def test_invalid_upload_limit(self):
        with pytest.raises(ValueError):
            TierConfig(max_upload_bytes=0)

    def test_upload_limit_disabled(self):
        assert TierConfig(max_upload_bytes=None).max_upload_bytes is None


class TestFromMapping:
    def test_from_mapping(self, tmp_path):
        config = TierConfig.from_mapping({"root": str(tmp_path), "index_name": "default"})
        assert config.root == tmp_path
        assert config.index_name == "default"

    def test_unknown_keys(self):
        with pytest.raises(ValueError, match="Unknown config keys: colour"):
            TierConfig.from_mapping({"colour": "blue"})
