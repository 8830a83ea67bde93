"""StorageBackend protocol — runtime-checkable interface for the resource tree.

The backend is the only seam that touches content.  It knows nothing about
requesters or permission records; all policy lives in ``AccessEvaluator``,
``TreeResolver`` and ``BulkCoordinator``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .types import ResourceInfo


@runtime_checkable
class StorageBackend(Protocol):
    """Hierarchical byte store addressed by normalized resource paths.

    Directories are implicit: they exist while they hold at least one
    resource, and ``create_exclusive`` creates missing parents.
    """

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Called before first use.  No-op if not needed."""
        ...

    async def close(self) -> None:
        """Called on shutdown."""
        ...

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def stat(self, path: str) -> ResourceInfo | None:
        """Metadata for *path*, or ``None`` if nothing exists there."""
        ...

    async def read_bytes(self, path: str) -> bytes:
        """Full content of the file at *path*.

        Raises ``PathNotFoundError`` if absent, ``StorageError`` on I/O failure.
        """
        ...

    async def list_children(self, path: str) -> list[ResourceInfo]:
        """Immediate children of the directory at *path*, sorted by name.

        Raises ``PathNotFoundError`` if absent, ``StorageError`` if the
        directory cannot be enumerated.
        """
        ...

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create_exclusive(self, path: str, data: bytes) -> ResourceInfo:
        """Create a file, failing if anything already exists at *path*.

        Raises ``AlreadyExistsError`` if present.  On a short or failed
        write the partial file is removed and ``StorageError`` is raised.
        """
        ...

    async def remove(self, path: str) -> bool:
        """Remove the file at *path*.  Returns ``False`` if already gone."""
        ...

    async def remove_dir(self, path: str) -> bool:
        """Remove the directory at *path* only if it is empty.

        Returns ``False`` if already gone.  Raises ``StorageError`` if the
        directory is not empty or cannot be removed.
        """
        ...
