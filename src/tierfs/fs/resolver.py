"""TreeResolver — map a path to a leaf, an index, a listing, or nothing.

Directory visibility is always derived from a live scan of the children's
permission records; nothing about a directory is stored.  A requester who
can read at least one file in a directory may learn that the directory
exists.  Otherwise the directory resolves to ``NOT_FOUND``, exactly like an
empty or nonexistent one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import PathNotFoundError
from .types import Resolution, ResolutionKind
from .utils import base_name, normalize_path

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from .access import AccessEvaluator
    from .identity import Requester
    from .protocol import StorageBackend
    from .types import ResourceInfo

logger = logging.getLogger(__name__)

DEFAULT_INDEX_NAME = "index"


class TreeResolver:
    """Resolves paths for a requester against a backend and an evaluator.

    Children are scanned in lexicographic name order regardless of the
    backend's own enumeration order, so when several ``index.*`` files are
    readable the lexicographically first one is served.
    """

    def __init__(
        self,
        backend: StorageBackend,
        evaluator: AccessEvaluator,
        *,
        index_name: str = DEFAULT_INDEX_NAME,
    ) -> None:
        self._backend = backend
        self._evaluator = evaluator
        self.index_name = index_name

    async def resolve(
        self,
        session: AsyncSession,
        requester: Requester,
        path: str,
    ) -> Resolution:
        """Resolve *path* for serving: leaf, index file, listing redirect, or not found."""
        return await self._resolve(session, requester, path, select_index=True)

    async def list_dir(
        self,
        session: AsyncSession,
        requester: Requester,
        path: str,
    ) -> Resolution:
        """Resolve *path* for the listing view: no index selection, full partition."""
        return await self._resolve(session, requester, path, select_index=False)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _resolve(
        self,
        session: AsyncSession,
        requester: Requester,
        path: str,
        *,
        select_index: bool,
    ) -> Resolution:
        path = normalize_path(path)
        info = await self._backend.stat(path)
        if info is None:
            logger.debug("Resolved %s as not found: absent", path)
            return Resolution(ResolutionKind.NOT_FOUND, path)

        if not info.is_directory:
            resolution = await self._resolve_leaf(session, requester, info)
        else:
            resolution = await self._resolve_directory(
                session, requester, path, select_index=select_index
            )
        logger.debug("Resolved %s as %s for %r", path, resolution.kind.value, requester)
        return resolution

    async def _readable(
        self,
        session: AsyncSession,
        requester: Requester,
        path: str,
    ) -> bool | None:
        """Read capability, or ``None`` when the resource has no record."""
        try:
            return await self._evaluator.can_read(session, requester, path)
        except PathNotFoundError:
            logger.debug("No permission record for %s; treating as absent", path)
            return None

    async def _resolve_leaf(
        self,
        session: AsyncSession,
        requester: Requester,
        info: ResourceInfo,
    ) -> Resolution:
        readable = await self._readable(session, requester, info.path)
        if readable is None:
            return Resolution(ResolutionKind.NOT_FOUND, info.path)
        if not readable:
            return Resolution(ResolutionKind.DENIED, info.path, resource=info)
        return Resolution(ResolutionKind.LEAF, info.path, resource=info)

    async def _resolve_directory(
        self,
        session: AsyncSession,
        requester: Requester,
        path: str,
        *,
        select_index: bool,
    ) -> Resolution:
        try:
            children = await self._backend.list_children(path)
        except PathNotFoundError:
            # removed between stat and enumeration
            return Resolution(ResolutionKind.NOT_FOUND, path)

        visible: list[ResourceInfo] = []
        hidden: list[ResourceInfo] = []

        for child in sorted(children, key=lambda c: c.name):
            # nested directories are opaque at this level
            if child.is_directory:
                continue
            if not await self._readable(session, requester, child.path):
                hidden.append(child)
                continue
            visible.append(child)
            if select_index and base_name(child.name) == self.index_name:
                return Resolution(
                    ResolutionKind.INDEX,
                    path,
                    resource=child,
                    visible=visible,
                    hidden=hidden,
                )

        if visible:
            return Resolution(ResolutionKind.LISTING, path, visible=visible, hidden=hidden)
        return Resolution(ResolutionKind.NOT_FOUND, path, hidden=hidden)
