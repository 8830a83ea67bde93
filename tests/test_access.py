"""Tests for AccessEvaluator — decisions backed by the record store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tierfs.fs.exceptions import PathNotFoundError, StorageError
from tierfs.fs.identity import Requester
from tierfs.fs.permissions import Capability, Permission

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tierfs.fs.access import AccessEvaluator
    from tierfs.fs.records import PermissionRecordStore

ALICE = Requester.authenticated("alice")
BOB = Requester.authenticated("bob", friends=["alice"])
CAROL = Requester.authenticated("carol")


class TestEvaluate:
    async def test_owner_reads_and_writes_private(
        self,
        evaluator: AccessEvaluator,
        records: PermissionRecordStore,
        async_session: AsyncSession,
    ):
        await records.create(async_session, "/a.txt", Permission.private_to("alice"))
        assert await evaluator.can_read(async_session, ALICE, "/a.txt")
        assert await evaluator.can_write(async_session, ALICE, "/a.txt")
        assert await evaluator.is_owner(async_session, ALICE, "/a.txt")

    async def test_friend_tier(
        self,
        evaluator: AccessEvaluator,
        records: PermissionRecordStore,
        async_session: AsyncSession,
    ):
        await records.create(
            async_session, "/a.txt", Permission.from_flags("alice", friend="r")
        )
        assert await evaluator.can_read(async_session, BOB, "/a.txt")
        assert not await evaluator.can_write(async_session, BOB, "/a.txt")
        assert not await evaluator.can_read(async_session, CAROL, "/a.txt")
        assert not await evaluator.is_owner(async_session, BOB, "/a.txt")

    async def test_public_tier_anonymous(
        self,
        evaluator: AccessEvaluator,
        records: PermissionRecordStore,
        async_session: AsyncSession,
    ):
        await records.create(
            async_session, "/a.txt", Permission.from_flags("alice", public="r")
        )
        assert await evaluator.evaluate(
            async_session, Requester.anonymous(), "/a.txt", Capability.READ
        )

    async def test_missing_record_is_not_a_denial(
        self, evaluator: AccessEvaluator, async_session: AsyncSession
    ):
        with pytest.raises(PathNotFoundError):
            await evaluator.can_read(async_session, ALICE, "/nope.txt")

    async def test_store_failure_propagates(
        self,
        evaluator: AccessEvaluator,
        records: PermissionRecordStore,
        async_session: AsyncSession,
        monkeypatch,
    ):
        async def boom(session, path):
            raise StorageError("store down")

        monkeypatch.setattr(records, "get", boom)
        with pytest.raises(StorageError):
            await evaluator.can_read(async_session, ALICE, "/a.txt")
