"""Tests for PermissionRecordStore — record CRUD, exclusivity, custom tables."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.exc import SQLAlchemyError

from tierfs.fs.exceptions import (
    AlreadyExistsError,
    PathNotFoundError,
    StorageError,
    ValidationError,
)
from tierfs.fs.permissions import READ, READ_WRITE, Permission
from tierfs.fs.records import PermissionRecordStore
from tierfs.models.permissions import PermissionRecordBase

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


# ---------------------------------------------------------------------------
# create / get
# ---------------------------------------------------------------------------


class TestCreateGet:
    async def test_create_and_get(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        created = await records.create(
            async_session, "/docs/a.txt", Permission.private_to("alice")
        )
        assert created == Permission.private_to("alice")
        assert await records.get(async_session, "/docs/a.txt") == created

    async def test_get_normalizes_path(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        await records.create(async_session, "/docs/a.txt", Permission.private_to("alice"))
        perm = await records.get(async_session, "docs//a.txt/")
        assert perm.owner == "alice"

    async def test_get_missing(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        with pytest.raises(PathNotFoundError):
            await records.get(async_session, "/nope.txt")

    async def test_create_never_overwrites(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        await records.create(async_session, "/a.txt", Permission.private_to("alice"))
        with pytest.raises(AlreadyExistsError):
            await records.create(async_session, "/a.txt", Permission.private_to("mallory"))
        assert (await records.get(async_session, "/a.txt")).owner == "alice"

    async def test_exists(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        assert await records.exists(async_session, "/a.txt") is False
        await records.create(async_session, "/a.txt", Permission.private_to("alice"))
        assert await records.exists(async_session, "/a.txt") is True


# ---------------------------------------------------------------------------
# update / transfer / delete
# ---------------------------------------------------------------------------


class TestUpdate:
    async def test_update_public(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        await records.create(async_session, "/a.txt", Permission.private_to("alice"))
        perm = await records.update(async_session, "/a.txt", public="r")
        assert perm.public == READ
        assert perm.friend == frozenset()
        assert perm.private == READ_WRITE

    async def test_update_leaves_unspecified_tiers(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        await records.create(
            async_session, "/a.txt", Permission.from_flags("alice", public="r")
        )
        perm = await records.update(async_session, "/a.txt", friend="rw")
        assert perm.public == READ
        assert perm.friend == READ_WRITE

    async def test_update_invalid_flags(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        await records.create(async_session, "/a.txt", Permission.private_to("alice"))
        with pytest.raises(ValidationError):
            await records.update(async_session, "/a.txt", public="x")
        assert (await records.get(async_session, "/a.txt")).public == frozenset()

    async def test_update_missing(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        with pytest.raises(PathNotFoundError):
            await records.update(async_session, "/nope.txt", public="r")

    async def test_transfer(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        await records.create(async_session, "/a.txt", Permission.private_to("alice"))
        perm = await records.transfer(async_session, "/a.txt", "bob")
        assert perm.owner == "bob"


class TestDelete:
    async def test_delete(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        await records.create(async_session, "/a.txt", Permission.private_to("alice"))
        assert await records.delete(async_session, "/a.txt") is True
        assert await records.exists(async_session, "/a.txt") is False

    async def test_delete_already_gone(
        self, records: PermissionRecordStore, async_session: AsyncSession
    ):
        assert await records.delete(async_session, "/a.txt") is False


# ---------------------------------------------------------------------------
# Store failures and custom models
# ---------------------------------------------------------------------------


class TestStoreFailure:
    async def test_sqlalchemy_error_becomes_storage_error(
        self, records: PermissionRecordStore, async_session: AsyncSession, monkeypatch
    ):
        async def boom(*args, **kwargs):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(async_session, "execute", boom)
        with pytest.raises(StorageError, match="Permission store unavailable"):
            await records.get(async_session, "/a.txt")


class CustomRecord(PermissionRecordBase, table=True):
    __tablename__ = "custom_permissions"


class TestCustomModel:
    async def test_custom_table(self, async_session: AsyncSession):
        store = PermissionRecordStore(CustomRecord)
        await store.create(async_session, "/a.txt", Permission.private_to("alice"))
        assert (await store.get(async_session, "/a.txt")).owner == "alice"
