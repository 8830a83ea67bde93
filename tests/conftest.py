"""Shared fixtures for tierfs tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

import tierfs.models  # noqa: F401  (registers the tables on SQLModel.metadata)
from tierfs.fs.access import AccessEvaluator
from tierfs.fs.memory import MemoryBackend
from tierfs.fs.permissions import Permission
from tierfs.fs.records import PermissionRecordStore
from tierfs.models.permissions import PermissionRecord

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

    Seed = Callable[..., Awaitable[None]]


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine with all tables created."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Async SQLModel session on the in-memory engine."""
    factory = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with factory() as session:
        yield session


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def records() -> PermissionRecordStore:
    return PermissionRecordStore(PermissionRecord)


@pytest.fixture
def evaluator(records: PermissionRecordStore) -> AccessEvaluator:
    return AccessEvaluator(records)


@pytest.fixture
def seed(
    backend: MemoryBackend,
    records: PermissionRecordStore,
    async_session: AsyncSession,
) -> Seed:
    """Create a file in the memory backend together with its committed record.

    ``await seed("/docs/a.txt", owner="alice", public="r")``
    """

    async def _seed(
        path: str,
        *,
        owner: str,
        public: str = "",
        friend: str = "",
        data: bytes = b"content",
    ) -> None:
        await backend.create_exclusive(path, data)
        await records.create(
            async_session,
            path,
            Permission.from_flags(owner, public=public, friend=friend),
        )
        await async_session.commit()

    return _seed
