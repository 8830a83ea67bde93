"""tierfs: a permission-gated resource tree.

Owner, public, friend, and private access tiers on every resource, with
index auto-selection, partial-failure bulk operations, and responses that
never reveal what a requester cannot see.
"""

__version__ = "0.1.0"

from tierfs._tierfs import TierFS
from tierfs._tierfs_async import TierFSAsync
from tierfs.config import TierConfig
from tierfs.fs.envelope import Envelope, ResponseMapper, to_response
from tierfs.fs.exceptions import (
    AlreadyExistsError,
    AuthenticationRequiredError,
    DeniedError,
    PathNotFoundError,
    StorageError,
    TierFSError,
    ValidationError,
)
from tierfs.fs.identity import Requester
from tierfs.fs.permissions import Capability, Permission
from tierfs.fs.types import (
    BulkResult,
    BulkStatus,
    Delivery,
    ItemOutcome,
    Resolution,
    ResolutionKind,
    UploadItem,
)

__all__ = [
    "AlreadyExistsError",
    "AuthenticationRequiredError",
    "BulkResult",
    "BulkStatus",
    "Capability",
    "Delivery",
    "DeniedError",
    "Envelope",
    "ItemOutcome",
    "PathNotFoundError",
    "Permission",
    "Requester",
    "Resolution",
    "ResolutionKind",
    "ResponseMapper",
    "StorageError",
    "TierConfig",
    "TierFS",
    "TierFSAsync",
    "TierFSError",
    "UploadItem",
    "ValidationError",
    "__version__",
    "to_response",
]
