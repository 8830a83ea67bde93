"""Outward response envelope and the leak-avoidance mapping.

``to_response`` is the single place where internal outcomes become what a
requester sees.  Everything that would reveal the existence of a resource
the requester has no evidence of (absence, an unreadable leaf, a directory
with nothing visible, a delete that touched nothing visible) collapses to
the same ``NOT_FOUND_RESPONSE``.  The distinguishing detail is logged at
DEBUG and never returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .exceptions import (
    AlreadyExistsError,
    DeniedError,
    PathNotFoundError,
    TierFSError,
    ValidationError,
)
from .types import BulkOperation, BulkResult, BulkStatus, ErrorKind, Resolution, ResolutionKind

if TYPE_CHECKING:
    from .types import ItemOutcome, ResourceInfo

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAIL = "fail"
STATUS_ERROR = "error"

NOT_FOUND_MESSAGE = "Resource not found."
GENERIC_ERROR_MESSAGE = "An internal error occurred."

DEFAULT_FILE_PREFIX = "/v1/file/"
DEFAULT_PROPERTIES_PREFIX = "/v1/properties/file/"

_SERVER_SIDE_KINDS = {ErrorKind.IO, ErrorKind.STORAGE}


@dataclass(frozen=True)
class ResourceDescriptor:
    """Name and URL of a resource as shown to the requester."""

    name: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "url": self.url}


@dataclass(frozen=True)
class ErrorItem:
    """A per-item failure attached to an envelope."""

    message: str
    data: ResourceDescriptor

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "data": self.data.to_dict()}


@dataclass(frozen=True)
class Envelope:
    """Uniform result envelope (``success`` / ``fail`` / ``error``)."""

    status: str
    http_status: int = 200
    data: tuple[ResourceDescriptor, ...] = ()
    errors: tuple[ErrorItem, ...] = ()
    message: str | None = None
    location: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"status": self.status}
        if self.data:
            out["data"] = [d.to_dict() for d in self.data]
        if self.errors:
            out["errors"] = [e.to_dict() for e in self.errors]
        if self.message is not None:
            out["message"] = self.message
        return out


NOT_FOUND_RESPONSE = Envelope(status=STATUS_FAIL, http_status=404, message=NOT_FOUND_MESSAGE)


@dataclass
class ResponseMapper:
    """Maps internal outcomes to envelopes.

    ``file_prefix``/``properties_prefix`` are used to rewrite the request
    path into the listing view's URL on a ``LISTING`` redirect.
    """

    file_prefix: str = DEFAULT_FILE_PREFIX
    properties_prefix: str = DEFAULT_PROPERTIES_PREFIX
    _prefix_strip: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._prefix_strip = self.file_prefix.rstrip("/")

    def url_for(self, path: str) -> str:
        return self._prefix_strip + path

    def listing_url(self, path: str) -> str:
        return self.properties_prefix.rstrip("/") + path

    def descriptor(self, info: ResourceInfo | ItemOutcome) -> ResourceDescriptor:
        return ResourceDescriptor(name=info.name, url=self.url_for(info.path))

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def to_response(self, outcome: Resolution | BulkResult | BaseException) -> Envelope:
        """Map a resolution, a bulk result or an error.

        Raises ``TypeError`` for any other outcome.
        """
        if isinstance(outcome, BaseException):
            return self._from_error(outcome)
        if isinstance(outcome, Resolution):
            return self._from_resolution(outcome)
        if isinstance(outcome, BulkResult):
            return self._from_bulk(outcome)
        raise TypeError(f"Cannot map {type(outcome).__name__} to an envelope")

    def _from_error(self, error: BaseException) -> Envelope:
        if isinstance(error, PathNotFoundError):
            logger.debug("Not found: %s", error)
            return NOT_FOUND_RESPONSE
        if isinstance(error, DeniedError):
            return Envelope(status=STATUS_FAIL, http_status=403, message=str(error))
        if isinstance(error, ValidationError):
            return Envelope(status=STATUS_FAIL, http_status=400, message=str(error))
        if isinstance(error, AlreadyExistsError):
            return Envelope(status=STATUS_FAIL, http_status=409, message=str(error))
        if isinstance(error, TierFSError):
            logger.error("Request failed: %s", error, exc_info=error)
        else:
            logger.error("Unexpected error: %s", error, exc_info=error)
        return Envelope(status=STATUS_ERROR, http_status=500, message=GENERIC_ERROR_MESSAGE)

    def _from_resolution(self, resolution: Resolution) -> Envelope:
        kind = resolution.kind
        if kind in (ResolutionKind.NOT_FOUND, ResolutionKind.DENIED):
            logger.debug("Not found (%s): %s", kind.value, resolution.path)
            return NOT_FOUND_RESPONSE
        if kind is ResolutionKind.LISTING:
            return Envelope(
                status=STATUS_SUCCESS,
                http_status=302,
                location=self.listing_url(resolution.path),
            )
        if kind is ResolutionKind.INDEX or kind is ResolutionKind.LEAF:
            assert resolution.resource is not None
            return Envelope(
                status=STATUS_SUCCESS,
                data=(self.descriptor(resolution.resource),),
            )
        raise ValueError(f"Unknown resolution kind: {kind!r}")

    def listing(self, resolution: Resolution) -> Envelope:
        """Envelope for the listing view: visible children only."""
        if not resolution.found:
            return self._from_resolution(resolution)
        if resolution.resource is not None and not resolution.is_directory:
            return Envelope(status=STATUS_SUCCESS, data=(self.descriptor(resolution.resource),))
        return Envelope(
            status=STATUS_SUCCESS,
            data=tuple(self.descriptor(v) for v in resolution.visible),
        )

    def _from_bulk(self, result: BulkResult) -> Envelope:
        if result.operation is BulkOperation.DELETE and result.is_empty:
            logger.debug("Delete of %s touched nothing visible", result.path)
            return NOT_FOUND_RESPONSE

        if result.status is BulkStatus.ALL_SUCCESS:
            status = STATUS_SUCCESS
        elif any(o.kind in _SERVER_SIDE_KINDS for o in result.failed):
            status = STATUS_ERROR
        else:
            status = STATUS_FAIL

        return Envelope(
            status=status,
            data=tuple(self.descriptor(o) for o in result.succeeded),
            errors=tuple(
                ErrorItem(message=o.error or "", data=self.descriptor(o)) for o in result.failed
            ),
        )


_default_mapper = ResponseMapper()


def to_response(outcome: Resolution | BulkResult | BaseException) -> Envelope:
    """Map with the default ``/v1/file/`` URL layout."""
    return _default_mapper.to_response(outcome)
