"""TierConfig — settings for a tierfs instance."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from tierfs.fs.bulk import DEFAULT_MAX_UPLOAD_BYTES
from tierfs.fs.envelope import DEFAULT_FILE_PREFIX, DEFAULT_PROPERTIES_PREFIX
from tierfs.fs.resolver import DEFAULT_INDEX_NAME

DEFAULT_DATA_DIR = Path.home() / ".tierfs"


@dataclass
class TierConfig:
    """Configuration for a single resource tree."""

    root: Path | str | None = None
    """Host directory holding the resources.  ``None`` uses an in-memory tree."""

    database_url: str | None = None
    """Async SQLAlchemy URL of the permission store.

    Defaults to ``sqlite+aiosqlite:///<data_dir>/permissions.db``.
    """

    data_dir: Path | str = DEFAULT_DATA_DIR
    """Where the default permission database lives."""

    index_name: str = DEFAULT_INDEX_NAME
    """Base name that marks a directory's index file."""

    markdown_extensions: frozenset[str] = field(
        default_factory=lambda: frozenset({".markdown"})
    )
    """Extensions rendered to HTML on GET."""

    markdown_css: str | None = None
    """Stylesheet URL linked from rendered markdown pages."""

    max_upload_bytes: int | None = DEFAULT_MAX_UPLOAD_BYTES
    """Largest accepted upload item; ``None`` disables the limit."""

    file_prefix: str = DEFAULT_FILE_PREFIX
    """URL prefix resources are served under."""

    properties_prefix: str = DEFAULT_PROPERTIES_PREFIX
    """URL prefix of the listing view a visible directory redirects to."""

    def __post_init__(self) -> None:
        if self.root is not None:
            self.root = Path(self.root).expanduser()
        self.data_dir = Path(self.data_dir).expanduser()
        if not self.index_name or "/" in self.index_name:
            raise ValueError(f"Invalid index_name: {self.index_name!r}")
        self.markdown_extensions = frozenset(
            ext.lower() if ext.startswith(".") else "." + ext.lower()
            for ext in self.markdown_extensions
        )
        if self.max_upload_bytes is not None and self.max_upload_bytes <= 0:
            raise ValueError("max_upload_bytes must be positive")
        for name in ("file_prefix", "properties_prefix"):
            value = getattr(self, name)
            if not value.startswith("/"):
                value = "/" + value
            if not value.endswith("/"):
                value += "/"
            setattr(self, name, value)

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{Path(self.data_dir) / 'permissions.db'}"

    @classmethod
    def from_mapping(cls, values: dict[str, Any]) -> TierConfig:
        """Build a config from a plain mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**values)
