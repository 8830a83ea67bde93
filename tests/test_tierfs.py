"""Tests for the synchronous TierFS facade."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tierfs._tierfs import TierFS
from tierfs.config import TierConfig
from tierfs.fs.envelope import NOT_FOUND_RESPONSE, STATUS_SUCCESS
from tierfs.fs.exceptions import DeniedError
from tierfs.fs.identity import Requester
from tierfs.fs.types import BulkStatus, ResolutionKind, UploadItem

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def config(tmp_path: Path) -> TierConfig:
    root = tmp_path / "root"
    root.mkdir()
    return TierConfig(
        root=root,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'permissions.db'}",
    )


@pytest.fixture
def tfs(config: TierConfig) -> Iterator[TierFS]:
    fs = TierFS(config)
    yield fs
    fs.close()


class TestLifecycle:
    def test_context_manager(self, config: TierConfig):
        with TierFS(config) as fs:
            assert fs.config is config
        assert not fs._thread.is_alive()

    def test_close_is_idempotent(self, config: TierConfig):
        fs = TierFS(config)
        fs.close()
        fs.close()


class TestOperations:
    def test_upload_get_delete(self, tfs: TierFS, config: TierConfig):
        alice = tfs.requester("alice")
        result = tfs.upload(alice, "/docs", [UploadItem("a.txt", b"hello")])
        assert result.status is BulkStatus.ALL_SUCCESS
        assert config.root is not None
        assert (config.root / "docs" / "a.txt").read_bytes() == b"hello"

        delivery = tfs.get(alice, "/docs/a.txt")
        assert delivery.content == b"hello"

        tfs.delete(alice, "/docs/a.txt")
        assert not (config.root / "docs").exists()

    def test_permissions_and_friends(self, tfs: TierFS):
        alice = tfs.requester("alice")
        tfs.upload(alice, "/", [UploadItem("a.txt", b"x")])
        tfs.set_permissions(alice, "/a.txt", friend="r")
        assert tfs.add_friend("alice", "bob") is True
        assert tfs.list_friends("alice") == ["bob"]

        bob = tfs.requester("bob")
        assert tfs.get(bob, "/a.txt").found
        assert tfs.permissions(bob, "/a.txt").owner == "alice"
        with pytest.raises(DeniedError):
            tfs.set_permissions(bob, "/a.txt", public="r")

        assert tfs.remove_friend("alice", "bob") is True

    def test_listing(self, tfs: TierFS):
        alice = tfs.requester("alice")
        tfs.upload(alice, "/d", [UploadItem("b.txt", b"x"), UploadItem("a.txt", b"y")])
        listing = tfs.list_dir(alice, "/d")
        assert listing.kind is ResolutionKind.LISTING
        assert [v.name for v in listing.visible] == ["a.txt", "b.txt"]


class TestEnvelopes:
    def test_respond_get_not_found(self, tfs: TierFS):
        assert tfs.respond_get(Requester.anonymous(), "/nope.txt") == NOT_FOUND_RESPONSE

    def test_respond_upload_and_delete(self, tfs: TierFS):
        alice = tfs.requester("alice")
        env = tfs.respond_upload(alice, "/up", [UploadItem("a.txt", b"x")])
        assert env.status == STATUS_SUCCESS
        assert env.to_dict()["data"] == [{"name": "a.txt", "url": "/v1/file/up/a.txt"}]

        env = tfs.respond_delete(alice, "/up")
        assert env.status == STATUS_SUCCESS

    def test_respond_listing(self, tfs: TierFS):
        alice = tfs.requester("alice")
        tfs.upload(alice, "/d", [UploadItem("a.txt", b"x")])
        env = tfs.respond_listing(alice, "/d")
        assert [d.name for d in env.data] == ["a.txt"]
