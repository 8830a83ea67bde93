"""AccessEvaluator — read/write/owner decisions for one resource.

Combines the requester's relationship to the recorded owner with the tier
flags.  Absence (``PathNotFoundError``) and store failure (``StorageError``)
propagate unchanged so callers can tell them apart from a denial; hiding the
difference from the requester is the boundary's job (see ``envelope.py``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .permissions import Capability

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from .identity import Requester
    from .permissions import Permission
    from .records import PermissionRecordStore

logger = logging.getLogger(__name__)


class AccessEvaluator:
    """Answers capability questions against the Permission Record Store."""

    def __init__(self, records: PermissionRecordStore) -> None:
        self._records = records

    async def permission(self, session: AsyncSession, path: str) -> Permission:
        return await self._records.get(session, path)

    async def evaluate(
        self,
        session: AsyncSession,
        requester: Requester,
        path: str,
        capability: Capability,
    ) -> bool:
        """True if *requester* holds *capability* on *path*.

        Raises ``PathNotFoundError`` if *path* has no record.
        """
        permission = await self._records.get(session, path)
        allowed = permission.allows(requester, capability)
        logger.debug(
            "%r %s %s on %s",
            requester,
            "granted" if allowed else "denied",
            capability.value,
            path,
        )
        return allowed

    async def can_read(self, session: AsyncSession, requester: Requester, path: str) -> bool:
        return await self.evaluate(session, requester, path, Capability.READ)

    async def can_write(self, session: AsyncSession, requester: Requester, path: str) -> bool:
        return await self.evaluate(session, requester, path, Capability.WRITE)

    async def is_owner(self, session: AsyncSession, requester: Requester, path: str) -> bool:
        permission = await self._records.get(session, path)
        return permission.is_owner(requester)
