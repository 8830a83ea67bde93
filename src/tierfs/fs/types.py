"""Result types: ResourceInfo, Resolution, BulkResult, Delivery."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from datetime import datetime


@dataclass
class ResourceInfo:
    """File/directory metadata as reported by a storage backend."""

    path: str
    name: str
    is_directory: bool
    size_bytes: int | None = None
    mime_type: str | None = None
    modified_at: datetime | None = None


# =============================================================================
# Resolution
# =============================================================================


class ResolutionKind(Enum):
    """Outcome of resolving a path for a requester."""

    LEAF = "leaf"
    """A readable file."""

    DENIED = "denied"
    """A file that exists but the requester cannot read."""

    INDEX = "index"
    """A visible directory served through its readable index file."""

    LISTING = "listing"
    """A visible directory without an index; callers redirect to its listing."""

    NOT_FOUND = "not_found"
    """Absent, empty, or entirely unreadable."""


@dataclass
class Resolution:
    """Result of :meth:`TreeResolver.resolve` / :meth:`TreeResolver.list_dir`.

    ``resource`` is the served file for ``LEAF``/``INDEX`` (and the denied
    file for ``DENIED``).  ``visible``/``hidden`` partition the file children
    scanned for a directory; ``hidden`` is internal detail and must never be
    shown to the requester.
    """

    kind: ResolutionKind
    path: str
    resource: ResourceInfo | None = None
    visible: list[ResourceInfo] = field(default_factory=list)
    hidden: list[ResourceInfo] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.kind in (ResolutionKind.LEAF, ResolutionKind.INDEX, ResolutionKind.LISTING)

    @property
    def is_directory(self) -> bool:
        return self.kind in (ResolutionKind.INDEX, ResolutionKind.LISTING)


# =============================================================================
# Bulk operations
# =============================================================================


class ErrorKind(Enum):
    """Why a single item of a bulk operation failed."""

    DENIED = "denied"
    VALIDATION = "validation"
    ALREADY_EXISTS = "already_exists"
    IO = "io"
    STORAGE = "storage"


class BulkOperation(Enum):
    """Which bulk operation produced a result."""

    DELETE = "delete"
    CREATE = "create"


class BulkStatus(Enum):
    """Aggregate status of a bulk operation."""

    ALL_SUCCESS = "all_success"
    PARTIAL_FAILURE = "partial_failure"
    TOTAL_FAILURE = "total_failure"


@dataclass
class ItemOutcome:
    """Outcome of one child of a bulk operation."""

    path: str
    name: str
    error: str | None = None
    kind: ErrorKind | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class BulkResult:
    """Ordered per-item outcomes of a bulk delete or upload."""

    path: str
    operation: BulkOperation
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def add_success(self, path: str, name: str) -> None:
        self.outcomes.append(ItemOutcome(path=path, name=name))

    def add_failure(self, path: str, name: str, error: str, kind: ErrorKind) -> None:
        self.outcomes.append(ItemOutcome(path=path, name=name, error=error, kind=kind))

    @property
    def succeeded(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[ItemOutcome]:
        return [o for o in self.outcomes if not o.succeeded]

    @property
    def is_empty(self) -> bool:
        return not self.outcomes

    @property
    def status(self) -> BulkStatus:
        failed = self.failed
        if not failed:
            return BulkStatus.ALL_SUCCESS
        if len(failed) == len(self.outcomes):
            return BulkStatus.TOTAL_FAILURE
        return BulkStatus.PARTIAL_FAILURE


@dataclass
class UploadItem:
    """One named payload of a multi-resource upload.

    ``source`` is either the raw bytes or a binary file-like object that is
    read in full when the item is processed.
    """

    name: str
    source: bytes | BinaryIO

    def read(self) -> bytes:
        if isinstance(self.source, (bytes, bytearray, memoryview)):
            return bytes(self.source)
        data = self.source.read()
        if not isinstance(data, (bytes, bytearray)):
            raise TypeError(f"Upload source for {self.name!r} did not return bytes")
        return bytes(data)


# =============================================================================
# Delivery
# =============================================================================


@dataclass
class Delivery:
    """What a GET hands to the content-delivery collaborator.

    ``content`` is set only for ``LEAF`` and ``INDEX`` resolutions; for
    markdown resources it holds the rendered HTML and ``mime_type`` is
    ``text/html``.
    """

    resolution: Resolution
    content: bytes | None = None
    mime_type: str | None = None
    rendered: bool = False

    @property
    def found(self) -> bool:
        return self.content is not None
