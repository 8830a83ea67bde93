"""MemoryBackend — an in-process resource tree.

Useful for tests and for embedding tierfs where no disk root is wanted.
Every mutation happens in a single synchronous step between awaits, so
``create_exclusive`` is atomic with respect to other coroutines on the
same event loop.
"""

from __future__ import annotations

from datetime import UTC, datetime

from .exceptions import AlreadyExistsError, PathNotFoundError, StorageError, ValidationError
from .types import ResourceInfo
from .utils import guess_mime_type, normalize_path, split_path, validate_path


class MemoryBackend:
    """Dict-backed tree implementing the StorageBackend protocol.

    Files live in ``_files``; directories are the root, every ancestor of a
    file, and any directory left behind explicitly in ``_dirs`` after its
    last child was removed.
    """

    def __init__(self) -> None:
        self._files: dict[str, tuple[bytes, datetime]] = {}
        self._dirs: set[str] = {"/"}

    @staticmethod
    def _normalize(path: str) -> str:
        valid, error = validate_path(path)
        if not valid:
            raise ValidationError(error)
        return normalize_path(path)

    def _is_dir(self, path: str) -> bool:
        return path in self._dirs

    def _file_info(self, path: str) -> ResourceInfo:
        data, modified = self._files[path]
        _, name = split_path(path)
        return ResourceInfo(
            path=path,
            name=name,
            is_directory=False,
            size_bytes=len(data),
            mime_type=guess_mime_type(name),
            modified_at=modified,
        )

    @staticmethod
    def _dir_info(path: str) -> ResourceInfo:
        _, name = split_path(path)
        return ResourceInfo(path=path, name=name, is_directory=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """No-op."""

    async def close(self) -> None:
        """No-op."""

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def stat(self, path: str) -> ResourceInfo | None:
        path = self._normalize(path)
        if path in self._files:
            return self._file_info(path)
        if self._is_dir(path):
            return self._dir_info(path)
        return None

    async def read_bytes(self, path: str) -> bytes:
        path = self._normalize(path)
        if path not in self._files:
            raise PathNotFoundError(f"File not found: {path}")
        return self._files[path][0]

    async def list_children(self, path: str) -> list[ResourceInfo]:
        path = self._normalize(path)
        if not self._is_dir(path):
            raise PathNotFoundError(f"Directory not found: {path}")

        prefix = "/" if path == "/" else path + "/"
        entries: list[ResourceInfo] = []
        for file_path in self._files:
            if file_path.startswith(prefix) and "/" not in file_path[len(prefix):]:
                entries.append(self._file_info(file_path))
        for dir_path in self._dirs:
            if dir_path == path or not dir_path.startswith(prefix):
                continue
            if "/" not in dir_path[len(prefix):]:
                entries.append(self._dir_info(dir_path))
        entries.sort(key=lambda e: e.name)
        return entries

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create_exclusive(self, path: str, data: bytes) -> ResourceInfo:
        path = self._normalize(path)
        if path == "/":
            raise ValidationError("Cannot create a file at the root path")
        if path in self._files or self._is_dir(path):
            raise AlreadyExistsError(f"Resource already exists: {path}")

        parents: list[str] = []
        current = split_path(path)[0]
        while current not in self._dirs:
            if current in self._files:
                raise StorageError(f"Parent is a file, not a directory: {current}")
            parents.append(current)
            current = split_path(current)[0]

        self._dirs.update(parents)
        self._files[path] = (bytes(data), datetime.now(UTC))
        return self._file_info(path)

    async def remove(self, path: str) -> bool:
        path = self._normalize(path)
        return self._files.pop(path, None) is not None

    async def remove_dir(self, path: str) -> bool:
        path = self._normalize(path)
        if path == "/":
            raise ValidationError("Cannot remove the root directory")
        if not self._is_dir(path):
            return False
        if await self.list_children(path):
            raise StorageError(f"Directory not empty: {path}")
        self._dirs.discard(path)
        return True
