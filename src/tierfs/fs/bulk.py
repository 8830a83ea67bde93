"""BulkCoordinator — recursive delete and multi-file upload.

Bulk operations are not atomic as a whole.  Each child is committed on its
own, so a failure on one child is recorded in its ``ItemOutcome`` and never
undoes or aborts its siblings.  Structural failures (the directory cannot be
enumerated, the permission store is unreachable) abort and propagate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from .exceptions import (
    AlreadyExistsError,
    DeniedError,
    PathNotFoundError,
    StorageError,
    TierFSError,
    ValidationError,
)
from .permissions import Capability, Permission
from .types import BulkOperation, BulkResult, ErrorKind
from .utils import join_resource, normalize_path, split_path, validate_path

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from .access import AccessEvaluator
    from .identity import Requester
    from .protocol import StorageBackend
    from .records import PermissionRecordStore
    from .types import ResourceInfo, UploadItem

logger = logging.getLogger(__name__)

LOGIN_TO_DELETE = "You must log in before deleting a file."
LOGIN_TO_POST = "You must log in before posting a file."
NOT_OWNER = "You do not have owner permissions on this resource."
ALREADY_EXISTS = "A resource already exists at this path."

DEFAULT_MAX_UPLOAD_BYTES = 32 * 1024 * 1024


async def _commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        logger.error("Commit failed: %s", e, exc_info=True)
        raise StorageError(f"Permission store unavailable: {e}") from e


class BulkCoordinator:
    """Drives multi-child delete and create through the AccessEvaluator."""

    def __init__(
        self,
        backend: StorageBackend,
        records: PermissionRecordStore,
        evaluator: AccessEvaluator,
        *,
        max_upload_bytes: int | None = DEFAULT_MAX_UPLOAD_BYTES,
    ) -> None:
        self._backend = backend
        self._records = records
        self._evaluator = evaluator
        self.max_upload_bytes = max_upload_bytes

    # =========================================================================
    # Delete
    # =========================================================================

    async def delete_all(
        self,
        session: AsyncSession,
        requester: Requester,
        path: str,
    ) -> BulkResult:
        """Delete a file, or every owned file directly inside a directory.

        For a file: the owner deletes it; a requester who can read but does
        not own it gets ``DeniedError``; anyone else gets
        ``PathNotFoundError``.

        For a directory: owned files are deleted, readable non-owned files
        are reported as failures, unreadable files are left out of the
        result entirely.  Subdirectories are not recursed into.  The
        directory itself is removed afterwards if it ended up empty.
        """
        requester.require_identity(LOGIN_TO_DELETE)
        path = normalize_path(path)

        info = await self._backend.stat(path)
        if info is None:
            raise PathNotFoundError(f"Not found: {path}")

        if not info.is_directory:
            return await self._delete_leaf(session, requester, info)

        result = BulkResult(path=path, operation=BulkOperation.DELETE)
        children = await self._backend.list_children(path)
        for child in sorted(children, key=lambda c: c.name):
            if child.is_directory:
                continue
            await self._delete_child(session, requester, child, result)

        logger.info(
            "Bulk delete of %s by %r: %d deleted, %d failed",
            path,
            requester,
            len(result.succeeded),
            len(result.failed),
        )
        await self._remove_if_empty(path)
        return result

    async def _delete_leaf(
        self,
        session: AsyncSession,
        requester: Requester,
        info: ResourceInfo,
    ) -> BulkResult:
        permission = await self._evaluator.permission(session, info.path)
        if not permission.is_owner(requester):
            if not permission.allows(requester, Capability.READ):
                logger.debug(
                    "Delete of %s by %r: unreadable, reporting not found", info.path, requester
                )
                raise PathNotFoundError(f"Not found: {info.path}")
            raise DeniedError(NOT_OWNER)

        await self._records.delete(session, info.path)
        try:
            await self._backend.remove(info.path)
        except TierFSError:
            await session.rollback()
            raise
        await _commit(session)

        result = BulkResult(path=info.path, operation=BulkOperation.DELETE)
        result.add_success(info.path, info.name)
        await self._remove_if_empty(split_path(info.path)[0])
        return result

    async def _delete_child(
        self,
        session: AsyncSession,
        requester: Requester,
        child: ResourceInfo,
        result: BulkResult,
    ) -> None:
        try:
            permission = await self._evaluator.permission(session, child.path)
        except PathNotFoundError:
            logger.debug("Skipping %s: no permission record", child.path)
            return

        if not permission.is_owner(requester):
            if permission.allows(requester, Capability.READ):
                result.add_failure(child.path, child.name, NOT_OWNER, ErrorKind.DENIED)
            # unreadable children are left out of the result entirely
            return

        # drop the record first so a failed removal can be rolled back
        await self._records.delete(session, child.path)
        try:
            await self._backend.remove(child.path)
        except (StorageError, ValidationError) as e:
            await session.rollback()
            logger.warning("Failed to delete %s: %s", child.path, e)
            result.add_failure(child.path, child.name, str(e), ErrorKind.IO)
            return
        await _commit(session)
        result.add_success(child.path, child.name)

    async def _remove_if_empty(self, path: str) -> None:
        """Best-effort removal of *path* if it has no children left.  Never raises."""
        if path == "/":
            return
        try:
            if await self._backend.list_children(path):
                return
            await self._backend.remove_dir(path)
        except TierFSError:
            logger.warning("Failed to clean up empty directory %s", path, exc_info=True)
        else:
            logger.debug("Removed empty directory %s", path)

    # =========================================================================
    # Create
    # =========================================================================

    async def create_all(
        self,
        session: AsyncSession,
        requester: Requester,
        target_dir: str,
        items: Iterable[UploadItem],
    ) -> BulkResult:
        """Create each item as a new private file under *target_dir*.

        Creation is exclusive: an existing resource at the target path is
        never overwritten and that item fails with ``ALREADY_EXISTS``.
        Every created file gets the record
        ``owner=requester, public="", friend="", private="rw"``.
        """
        owner = requester.require_identity(LOGIN_TO_POST)
        target_dir = normalize_path(target_dir)

        result = BulkResult(path=target_dir, operation=BulkOperation.CREATE)
        for item in items:
            await self._create_one(session, owner, target_dir, item, result)

        logger.info(
            "Upload to %s by %r: %d created, %d failed",
            target_dir,
            requester,
            len(result.succeeded),
            len(result.failed),
        )
        return result

    async def _create_one(
        self,
        session: AsyncSession,
        owner: str,
        target_dir: str,
        item: UploadItem,
        result: BulkResult,
    ) -> None:
        try:
            path = join_resource(target_dir, item.name)
        except ValueError as e:
            result.add_failure(target_dir, item.name, str(e), ErrorKind.VALIDATION)
            return

        valid, error = validate_path(path)
        if not valid:
            result.add_failure(path, item.name, error, ErrorKind.VALIDATION)
            return

        try:
            data = item.read()
        except Exception as e:
            logger.warning("Failed to read upload %s: %s", item.name, e, exc_info=True)
            result.add_failure(path, item.name, f"Cannot read upload: {e}", ErrorKind.IO)
            return

        if self.max_upload_bytes is not None and len(data) > self.max_upload_bytes:
            result.add_failure(
                path,
                item.name,
                f"Upload too large ({len(data):,} bytes, limit {self.max_upload_bytes:,})",
                ErrorKind.VALIDATION,
            )
            return

        try:
            await self._backend.create_exclusive(path, data)
        except AlreadyExistsError:
            result.add_failure(path, item.name, ALREADY_EXISTS, ErrorKind.ALREADY_EXISTS)
            return
        except ValidationError as e:
            result.add_failure(path, item.name, str(e), ErrorKind.VALIDATION)
            return
        except StorageError as e:
            logger.warning("Failed to write %s: %s", path, e)
            result.add_failure(path, item.name, str(e), ErrorKind.IO)
            return

        try:
            await self._records.create(session, path, Permission.private_to(owner))
            await _commit(session)
        except (AlreadyExistsError, StorageError) as e:
            await session.rollback()
            await self._discard(path)
            if isinstance(e, AlreadyExistsError):
                result.add_failure(path, item.name, ALREADY_EXISTS, ErrorKind.ALREADY_EXISTS)
            else:
                result.add_failure(path, item.name, str(e), ErrorKind.STORAGE)
            return

        result.add_success(path, item.name)

    async def _discard(self, path: str) -> None:
        """Remove content written for an item whose record could not be created."""
        try:
            await self._backend.remove(path)
        except TierFSError:
            logger.warning("Failed to roll back content at %s", path, exc_info=True)
        await self._remove_if_empty(split_path(path)[0])
