"""Resource layer — storage backends, permission records, access policy."""

from tierfs.fs.access import AccessEvaluator
from tierfs.fs.bulk import BulkCoordinator
from tierfs.fs.envelope import (
    NOT_FOUND_RESPONSE,
    Envelope,
    ErrorItem,
    ResourceDescriptor,
    ResponseMapper,
    to_response,
)
from tierfs.fs.exceptions import (
    AlreadyExistsError,
    AuthenticationRequiredError,
    DeniedError,
    PathNotFoundError,
    PathTraversalError,
    RenderError,
    ShortWriteError,
    StorageError,
    TierFSError,
    ValidationError,
)
from tierfs.fs.friends import FriendService
from tierfs.fs.identity import Requester
from tierfs.fs.local_disk import LocalDiskBackend
from tierfs.fs.memory import MemoryBackend
from tierfs.fs.permissions import Capability, Permission
from tierfs.fs.protocol import StorageBackend
from tierfs.fs.records import PermissionRecordStore
from tierfs.fs.resolver import TreeResolver
from tierfs.fs.types import (
    BulkOperation,
    BulkResult,
    BulkStatus,
    Delivery,
    ErrorKind,
    ItemOutcome,
    Resolution,
    ResolutionKind,
    ResourceInfo,
    UploadItem,
)

__all__ = [
    "NOT_FOUND_RESPONSE",
    "AccessEvaluator",
    "AlreadyExistsError",
    "AuthenticationRequiredError",
    "BulkCoordinator",
    "BulkOperation",
    "BulkResult",
    "BulkStatus",
    "Capability",
    "Delivery",
    "DeniedError",
    "Envelope",
    "ErrorItem",
    "ErrorKind",
    "FriendService",
    "ItemOutcome",
    "LocalDiskBackend",
    "MemoryBackend",
    "PathNotFoundError",
    "PathTraversalError",
    "Permission",
    "PermissionRecordStore",
    "RenderError",
    "Requester",
    "Resolution",
    "ResolutionKind",
    "ResourceDescriptor",
    "ResourceInfo",
    "ResponseMapper",
    "ShortWriteError",
    "StorageBackend",
    "StorageError",
    "TierFSError",
    "TreeResolver",
    "UploadItem",
    "ValidationError",
    "to_response",
]
