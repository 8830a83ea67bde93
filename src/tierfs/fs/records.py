"""PermissionRecordStore — load/save the four-tier record of a resource.

Stateless service that receives the record model at construction and a
session at call time.  No policy lives here; see ``AccessEvaluator``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from .exceptions import AlreadyExistsError, PathNotFoundError, StorageError
from .permissions import Permission, format_flags, parse_flags
from .utils import normalize_path

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tierfs.models.permissions import PermissionRecordBase

logger = logging.getLogger(__name__)


class PermissionRecordStore:
    """Manages permission records keyed by resource path.

    Constructor receives the concrete record model so callers can use
    custom SQLModel subclasses with different table names.  Every method
    flushes but never commits; the caller owns the transaction.
    """

    def __init__(self, record_model: type[PermissionRecordBase]) -> None:
        self._record_model = record_model

    @staticmethod
    def to_permission(record: PermissionRecordBase) -> Permission:
        return Permission.from_flags(
            owner=record.owner,
            public=record.public,
            friend=record.friend,
            private=record.private,
        )

    async def _find(
        self, session: AsyncSession, path: str
    ) -> PermissionRecordBase | None:
        model = self._record_model
        try:
            result = await session.execute(select(model).where(model.path == path))
        except SQLAlchemyError as e:
            logger.error("Permission lookup failed for %s: %s", path, e, exc_info=True)
            raise StorageError(f"Permission store unavailable: {e}") from e
        return result.scalar_one_or_none()

    async def get(self, session: AsyncSession, path: str) -> Permission:
        """Return the record at *path*; ``PathNotFoundError`` if there is none."""
        path = normalize_path(path)
        record = await self._find(session, path)
        if record is None:
            raise PathNotFoundError(f"No permission record for {path}")
        return self.to_permission(record)

    async def exists(self, session: AsyncSession, path: str) -> bool:
        return await self._find(session, normalize_path(path)) is not None

    async def create(
        self,
        session: AsyncSession,
        path: str,
        permission: Permission,
    ) -> Permission:
        """Create the record for a new resource.  Never overwrites.

        Raises ``AlreadyExistsError`` if a record already exists at *path*.
        """
        path = normalize_path(path)
        if await self._find(session, path) is not None:
            raise AlreadyExistsError(f"Permission record already exists: {path}")

        record = self._record_model(
            path=path,
            owner=permission.owner,
            public=format_flags(permission.public),
            friend=format_flags(permission.friend),
            private=format_flags(permission.private),
        )
        session.add(record)
        try:
            await session.flush()
        except IntegrityError:
            # a concurrent create won the unique(path) race
            raise AlreadyExistsError(f"Permission record already exists: {path}") from None
        except SQLAlchemyError as e:
            logger.error("Permission create failed for %s: %s", path, e, exc_info=True)
            raise StorageError(f"Permission store unavailable: {e}") from e
        return self.to_permission(record)

    async def update(
        self,
        session: AsyncSession,
        path: str,
        *,
        public: str | None = None,
        friend: str | None = None,
        private: str | None = None,
    ) -> Permission:
        """Change tier flags.  ``None`` leaves a tier unchanged; the owner never changes here."""
        path = normalize_path(path)
        record = await self._find(session, path)
        if record is None:
            raise PathNotFoundError(f"No permission record for {path}")

        # parse first so an invalid flag string never reaches the row
        if public is not None:
            record.public = format_flags(parse_flags(public))
        if friend is not None:
            record.friend = format_flags(parse_flags(friend))
        if private is not None:
            record.private = format_flags(parse_flags(private))
        record.updated_at = datetime.now(UTC)
        await self._flush(session, path)
        return self.to_permission(record)

    async def transfer(self, session: AsyncSession, path: str, new_owner: str) -> Permission:
        """Explicit owner transfer."""
        path = normalize_path(path)
        record = await self._find(session, path)
        if record is None:
            raise PathNotFoundError(f"No permission record for {path}")
        record.owner = new_owner
        record.updated_at = datetime.now(UTC)
        await self._flush(session, path)
        return self.to_permission(record)

    async def delete(self, session: AsyncSession, path: str) -> bool:
        """Remove the record at *path*.  Returns False if it was already gone."""
        path = normalize_path(path)
        record = await self._find(session, path)
        if record is None:
            return False
        await session.delete(record)
        await self._flush(session, path)
        return True

    async def _flush(self, session: AsyncSession, path: str) -> None:
        try:
            await session.flush()
        except SQLAlchemyError as e:
            logger.error("Permission write failed for %s: %s", path, e, exc_info=True)
            raise StorageError(f"Permission store unavailable: {e}") from e
