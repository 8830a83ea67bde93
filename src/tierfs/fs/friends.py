"""FriendService — trust relationships between identities.

Stateless service that receives the friendship model at construction
and a session at call time, following the PermissionRecordStore pattern.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import select

from .exceptions import StorageError, ValidationError
from .identity import Requester

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import Executable

    from tierfs.models.friends import FriendshipBase

logger = logging.getLogger(__name__)


class FriendService:
    """Manages directional trust: ``user_id`` trusts ``friend_id``."""

    def __init__(self, friendship_model: type[FriendshipBase]) -> None:
        self._model = friendship_model

    async def _execute(self, session: AsyncSession, statement: Executable) -> Any:
        try:
            return await session.execute(statement)
        except SQLAlchemyError as e:
            logger.error("Friendship query failed: %s", e, exc_info=True)
            raise StorageError(f"Friendship store unavailable: {e}") from e

    async def _flush(self, session: AsyncSession) -> None:
        try:
            await session.flush()
        except SQLAlchemyError as e:
            logger.error("Friendship write failed: %s", e, exc_info=True)
            raise StorageError(f"Friendship store unavailable: {e}") from e

    async def add_friend(self, session: AsyncSession, user_id: str, friend_id: str) -> bool:
        """Record that *user_id* trusts *friend_id*.  Returns False if already present.

        Losing a concurrent insert of the same pair rolls *session* back.
        """
        if not user_id or not friend_id:
            raise ValidationError("user_id and friend_id are required")
        if user_id == friend_id:
            raise ValidationError("An identity cannot befriend itself")
        if await self.is_friend(session, user_id, friend_id):
            return False
        session.add(self._model(user_id=user_id, friend_id=friend_id))
        try:
            await session.flush()
        except IntegrityError:
            # a concurrent add of the same pair won the unique(user_id, friend_id) race
            await session.rollback()
            return False
        except SQLAlchemyError as e:
            logger.error("Friendship write failed: %s", e, exc_info=True)
            raise StorageError(f"Friendship store unavailable: {e}") from e
        return True

    async def remove_friend(self, session: AsyncSession, user_id: str, friend_id: str) -> bool:
        """Remove an exact friendship.  Returns True if found."""
        model = self._model
        result = await self._execute(
            session,
            select(model).where(model.user_id == user_id, model.friend_id == friend_id),
        )
        row = result.scalar_one_or_none()
        if row is None:
            return False
        await session.delete(row)
        await self._flush(session)
        return True

    async def is_friend(self, session: AsyncSession, user_id: str, friend_id: str) -> bool:
        model = self._model
        result = await self._execute(
            session,
            select(model).where(model.user_id == user_id, model.friend_id == friend_id),
        )
        return result.scalar_one_or_none() is not None

    async def list_friends(self, session: AsyncSession, user_id: str) -> list[str]:
        """Identities *user_id* trusts, sorted."""
        model = self._model
        result = await self._execute(session, select(model).where(model.user_id == user_id))
        return sorted(row.friend_id for row in result.scalars().all())

    async def trusted_by(self, session: AsyncSession, friend_id: str) -> list[str]:
        """Owners that trust *friend_id*, sorted."""
        model = self._model
        result = await self._execute(session, select(model).where(model.friend_id == friend_id))
        return sorted(row.user_id for row in result.scalars().all())

    async def requester_for(self, session: AsyncSession, identity: str | None) -> Requester:
        """Build the Requester for an authenticated identity (``None`` → anonymous)."""
        if identity is None:
            return Requester.anonymous()
        owners = await self.trusted_by(session, identity)
        return Requester.authenticated(identity, owners)
