"""LocalDiskBackend — resources stored as plain files under a host directory."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from datetime import UTC, datetime
from pathlib import Path

from .exceptions import (
    AlreadyExistsError,
    PathNotFoundError,
    PathTraversalError,
    ShortWriteError,
    StorageError,
    ValidationError,
)
from .types import ResourceInfo
from .utils import guess_mime_type, normalize_path, validate_path

logger = logging.getLogger(__name__)

FILE_MODE = 0o600


class LocalDiskBackend:
    """Direct host filesystem access rooted at ``root``.

    Implements the StorageBackend protocol.  Blocking calls are pushed to a
    worker thread with ``asyncio.to_thread``; there is no shared state
    beyond the directory itself, so concurrent operations are safe and
    exclusive creation relies on ``O_EXCL``.

    Security: _resolve_path() ensures all paths stay within root and
    rejects symlinks, preventing path traversal.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

        if not self.root.exists():
            raise FileNotFoundError(f"Root directory does not exist: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Root path is not a directory: {self.root}")

    # =========================================================================
    # Path Resolution & Security
    # =========================================================================

    def _resolve_path(self, virtual_path: str) -> Path:
        """Resolve a resource path to a physical path on disk.

        Validates that the resolved path stays within root and that no
        component is a symlink.
        """
        valid, error = validate_path(virtual_path)
        if not valid:
            raise ValidationError(error)

        virtual_path = normalize_path(virtual_path)
        rel = virtual_path.lstrip("/")
        if not rel:
            return self.root

        current = self.root
        for part in Path(rel).parts:
            current = current / part
            if current.is_symlink():
                raise PathTraversalError(
                    f"Symlinks not allowed: {virtual_path} contains symlink at "
                    f"{current.relative_to(self.root)}"
                )

        resolved = (self.root / rel).resolve()

        try:
            resolved.relative_to(self.root)
        except ValueError:
            raise PathTraversalError(
                f"Path traversal detected: {virtual_path} resolves outside root"
            ) from None

        return resolved

    def _to_virtual_path(self, physical_path: Path) -> str:
        """Convert a physical path back to a resource path."""
        rel = physical_path.relative_to(self.root)
        vpath = "/" + str(rel).replace("\\", "/")
        return vpath if vpath != "/." else "/"

    def _info(self, physical: Path, st: os.stat_result) -> ResourceInfo:
        is_dir = physical.is_dir()
        return ResourceInfo(
            path=self._to_virtual_path(physical),
            name=physical.name,
            is_directory=is_dir,
            size_bytes=st.st_size if not is_dir else None,
            mime_type=guess_mime_type(physical.name) if not is_dir else None,
            modified_at=datetime.fromtimestamp(st.st_mtime, tz=UTC),
        )

    # =========================================================================
    # Lifecycle (no-op for local disk)
    # =========================================================================

    async def open(self) -> None:
        """No-op; the root directory is validated at construction."""

    async def close(self) -> None:
        """No-op."""

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def stat(self, path: str) -> ResourceInfo | None:
        resolved = self._resolve_path(path)

        def _stat() -> ResourceInfo | None:
            try:
                st = resolved.stat()
            except (FileNotFoundError, NotADirectoryError):
                return None
            return self._info(resolved, st)

        try:
            return await asyncio.to_thread(_stat)
        except OSError as e:
            raise StorageError(f"Cannot stat {path}: {e}") from e

    async def read_bytes(self, path: str) -> bytes:
        resolved = self._resolve_path(path)
        try:
            return await asyncio.to_thread(resolved.read_bytes)
        except (FileNotFoundError, NotADirectoryError):
            raise PathNotFoundError(f"File not found: {path}") from None
        except IsADirectoryError:
            raise PathNotFoundError(f"Path is a directory, not a file: {path}") from None
        except OSError as e:
            raise StorageError(f"Cannot read file {path}: {e}") from e

    async def list_children(self, path: str) -> list[ResourceInfo]:
        resolved = self._resolve_path(path)

        def _scan() -> list[ResourceInfo]:
            entries: list[ResourceInfo] = []
            with os.scandir(resolved) as it:
                for entry in it:
                    try:
                        entries.append(self._info(Path(entry.path), entry.stat()))
                    except FileNotFoundError:
                        # removed between scandir and stat
                        continue
            entries.sort(key=lambda e: e.name)
            return entries

        try:
            return await asyncio.to_thread(_scan)
        except FileNotFoundError:
            raise PathNotFoundError(f"Directory not found: {path}") from None
        except NotADirectoryError:
            raise PathNotFoundError(f"Not a directory: {path}") from None
        except OSError as e:
            raise StorageError(f"Cannot list directory {path}: {e}") from e

    # =========================================================================
    # Write Operations
    # =========================================================================

    async def create_exclusive(self, path: str, data: bytes) -> ResourceInfo:
        """Create a file with ``O_CREAT | O_EXCL``; never overwrites."""
        resolved = self._resolve_path(path)
        if resolved == self.root:
            raise ValidationError("Cannot create a file at the root path")

        def _create() -> ResourceInfo:
            try:
                resolved.parent.mkdir(parents=True, exist_ok=True)
            except (FileExistsError, NotADirectoryError) as e:
                raise StorageError(f"Parent is a file, not a directory: {path}") from e
            fd = os.open(resolved, os.O_WRONLY | os.O_CREAT | os.O_EXCL, FILE_MODE)
            try:
                n = os.write(fd, data) if data else 0
                if n < len(data):
                    raise ShortWriteError(
                        f"Short write to {path}: {n} of {len(data)} bytes"
                    )
            except BaseException:
                os.close(fd)
                with contextlib.suppress(OSError):
                    resolved.unlink()
                raise
            os.close(fd)
            return self._info(resolved, resolved.stat())

        try:
            return await asyncio.to_thread(_create)
        except FileExistsError:
            raise AlreadyExistsError(f"Resource already exists: {path}") from None
        except OSError as e:
            raise StorageError(f"Failed to write file {path}: {e}") from e

    async def remove(self, path: str) -> bool:
        resolved = self._resolve_path(path)
        try:
            await asyncio.to_thread(resolved.unlink)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to delete {path}: {e}") from e
        return True

    async def remove_dir(self, path: str) -> bool:
        resolved = self._resolve_path(path)
        if resolved == self.root:
            raise ValidationError("Cannot remove the root directory")
        try:
            await asyncio.to_thread(resolved.rmdir)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(f"Failed to remove directory {path}: {e}") from e
        logger.debug("Removed directory %s", path)
        return True
