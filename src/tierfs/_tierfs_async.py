"""TierFSAsync — async facade wiring backend, permission store, and policy."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tierfs.config import TierConfig
from tierfs.fs.access import AccessEvaluator
from tierfs.fs.bulk import NOT_OWNER, BulkCoordinator
from tierfs.fs.envelope import ResponseMapper
from tierfs.fs.exceptions import DeniedError, PathNotFoundError, TierFSError
from tierfs.fs.friends import FriendService
from tierfs.fs.identity import Requester
from tierfs.fs.local_disk import LocalDiskBackend
from tierfs.fs.memory import MemoryBackend
from tierfs.fs.permissions import Capability
from tierfs.fs.records import PermissionRecordStore
from tierfs.fs.resolver import TreeResolver
from tierfs.fs.types import Delivery, ResolutionKind
from tierfs.fs.utils import base_name, extension, normalize_path
from tierfs.models.friends import Friendship
from tierfs.models.permissions import PermissionRecord
from tierfs.render import render_markdown

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Iterable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from tierfs.fs.envelope import Envelope
    from tierfs.fs.permissions import Permission
    from tierfs.fs.protocol import StorageBackend
    from tierfs.fs.types import BulkResult, Resolution, UploadItem
    from tierfs.models.friends import FriendshipBase
    from tierfs.models.permissions import PermissionRecordBase

logger = logging.getLogger(__name__)


class TierFSAsync:
    """Async facade over one permission-gated resource tree.

    Every operation runs in its own session: committed on success, rolled
    back on error.  Bulk operations additionally commit per item.

    Usage::

        async with TierFSAsync(TierConfig(root="/srv/files")) as fs:
            alice = await fs.requester("alice")
            await fs.upload(alice, "/notes", [UploadItem("a.md", b"# hi")])
            envelope = await fs.respond(fs.get(Requester.anonymous(), "/notes/a.md"))
    """

    def __init__(
        self,
        config: TierConfig | None = None,
        *,
        backend: StorageBackend | None = None,
        engine: AsyncEngine | None = None,
        record_model: type[PermissionRecordBase] | None = None,
        friendship_model: type[FriendshipBase] | None = None,
    ) -> None:
        self.config = config or TierConfig()

        if backend is None:
            if self.config.root is not None:
                backend = LocalDiskBackend(self.config.root)
            else:
                backend = MemoryBackend()
        self.backend = backend

        self._engine = engine
        self._owns_engine = engine is None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._record_model: type[PermissionRecordBase] = record_model or PermissionRecord
        self._friendship_model: type[FriendshipBase] = friendship_model or Friendship

        self.records = PermissionRecordStore(self._record_model)
        self.friends = FriendService(self._friendship_model)
        self.evaluator = AccessEvaluator(self.records)
        self.resolver = TreeResolver(
            self.backend, self.evaluator, index_name=self.config.index_name
        )
        self.bulk = BulkCoordinator(
            self.backend,
            self.records,
            self.evaluator,
            max_upload_bytes=self.config.max_upload_bytes,
        )
        self.mapper = ResponseMapper(
            file_prefix=self.config.file_prefix,
            properties_prefix=self.config.properties_prefix,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Create the engine and tables if needed, then open the backend."""
        if self._session_factory is not None:
            return

        if self._engine is None:
            url = self.config.resolved_database_url
            if self.config.database_url is None:
                Path(self.config.data_dir).mkdir(parents=True, exist_ok=True)
            self._engine = create_async_engine(url, echo=False)

        rm = self._record_model
        fm = self._friendship_model
        async with self._engine.begin() as conn:
            await conn.run_sync(
                lambda c: rm.__table__.create(c, checkfirst=True)  # type: ignore[attr-defined]
            )
            await conn.run_sync(
                lambda c: fm.__table__.create(c, checkfirst=True)  # type: ignore[attr-defined]
            )

        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        await self.backend.open()

    async def close(self) -> None:
        """Close the backend and dispose of an engine this instance created."""
        try:
            await self.backend.close()
        except Exception:
            logger.warning("Backend close failed", exc_info=True)
        if self._engine is not None and self._owns_engine:
            await self._engine.dispose()
            self._engine = None
        self._session_factory = None

    async def __aenter__(self) -> TierFSAsync:
        await self.open()
        return self

    async def __aexit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Session Management (per-operation only)
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession]:
        if self._session_factory is None:
            await self.open()
        assert self._session_factory is not None

        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    async def requester(self, identity: str | None) -> Requester:
        """Requester for an authenticated identity with its friend set loaded."""
        async with self._session() as session:
            return await self.friends.requester_for(session, identity)

    async def add_friend(self, user_id: str, friend_id: str) -> bool:
        async with self._session() as session:
            return await self.friends.add_friend(session, user_id, friend_id)

    async def remove_friend(self, user_id: str, friend_id: str) -> bool:
        async with self._session() as session:
            return await self.friends.remove_friend(session, user_id, friend_id)

    async def list_friends(self, user_id: str) -> list[str]:
        async with self._session() as session:
            return await self.friends.list_friends(session, user_id)

    # ------------------------------------------------------------------
    # Resource operations
    # ------------------------------------------------------------------

    async def get(self, requester: Requester, path: str) -> Delivery:
        """Resolve *path* and load the served content when it is readable."""
        async with self._session() as session:
            resolution = await self.resolver.resolve(session, requester, path)

        if resolution.kind not in (ResolutionKind.LEAF, ResolutionKind.INDEX):
            return Delivery(resolution=resolution)

        resource = resolution.resource
        assert resource is not None
        data = await self.backend.read_bytes(resource.path)

        if extension(resource.name) in self.config.markdown_extensions:
            page = render_markdown(data, base_name(resource.name), self.config.markdown_css)
            return Delivery(
                resolution=resolution,
                content=page,
                mime_type="text/html; charset=utf-8",
                rendered=True,
            )
        return Delivery(resolution=resolution, content=data, mime_type=resource.mime_type)

    async def list_dir(self, requester: Requester, path: str) -> Resolution:
        """The listing view of *path*: visible children only are meant for display."""
        async with self._session() as session:
            return await self.resolver.list_dir(session, requester, path)

    async def upload(
        self,
        requester: Requester,
        target_dir: str,
        items: Iterable[UploadItem],
    ) -> BulkResult:
        async with self._session() as session:
            return await self.bulk.create_all(session, requester, target_dir, items)

    async def delete(self, requester: Requester, path: str) -> BulkResult:
        async with self._session() as session:
            return await self.bulk.delete_all(session, requester, path)

    async def permissions(self, requester: Requester, path: str) -> Permission:
        """The record of *path*, for any requester who can read it."""
        path = normalize_path(path)
        async with self._session() as session:
            permission = await self.evaluator.permission(session, path)
        if not permission.allows(requester, Capability.READ):
            raise PathNotFoundError(f"Not found: {path}")
        return permission

    async def set_permissions(
        self,
        requester: Requester,
        path: str,
        *,
        public: str | None = None,
        friend: str | None = None,
    ) -> Permission:
        """Relax or tighten the public/friend tiers of a resource.  Owner only."""
        path = normalize_path(path)
        async with self._session() as session:
            permission = await self.evaluator.permission(session, path)
            if not permission.is_owner(requester):
                if permission.allows(requester, Capability.READ):
                    raise DeniedError(NOT_OWNER)
                raise PathNotFoundError(f"Not found: {path}")
            return await self.records.update(session, path, public=public, friend=friend)

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------

    async def respond(self, operation: Awaitable[Delivery | Resolution | BulkResult]) -> Envelope:
        """Await *operation* and map its outcome (or its tierfs error) to an envelope.

        Supports ``get``, ``list_dir``, ``upload`` and ``delete``; any other
        outcome raises ``TypeError``.
        """
        try:
            outcome = await operation
        except TierFSError as e:
            return self.mapper.to_response(e)
        if isinstance(outcome, Delivery):
            outcome = outcome.resolution
        return self.mapper.to_response(outcome)

    async def respond_listing(self, requester: Requester, path: str) -> Envelope:
        try:
            resolution = await self.list_dir(requester, path)
        except TierFSError as e:
            return self.mapper.to_response(e)
        return self.mapper.listing(resolution)
