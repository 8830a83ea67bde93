"""Custom exception hierarchy for the tierfs resource store."""


class TierFSError(Exception):
    """Base exception for all tierfs errors."""


class PathNotFoundError(TierFSError):
    """Raised when a resource is absent, or present but invisible to the requester."""


class DeniedError(TierFSError):
    """Raised when a requester can read a resource but lacks a stronger capability."""


class ValidationError(TierFSError):
    """Raised on malformed request input."""


class PathTraversalError(ValidationError):
    """Raised when a path resolves outside the configured root."""


class AuthenticationRequiredError(ValidationError):
    """Raised when an anonymous requester attempts an authenticated operation."""


class AlreadyExistsError(TierFSError):
    """Raised when an exclusive create finds a resource already at the path."""


class StorageError(TierFSError):
    """Raised on storage backend failures (DB connection, disk I/O, etc.)."""


class ShortWriteError(StorageError):
    """Raised when fewer bytes were written than supplied."""


class RenderError(TierFSError):
    """Raised when a markdown resource cannot be rendered."""
