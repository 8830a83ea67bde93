"""Path utilities, name validation, and MIME guessing."""

from __future__ import annotations

import mimetypes
import posixpath

# Reserved filenames (Windows compatibility)
RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
}

MAX_PATH_LENGTH = 4096
MAX_NAME_LENGTH = 255


# =============================================================================
# Path Utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a resource path.

    - Ensures leading /
    - Resolves .. and . references
    - Removes double slashes
    - Removes trailing slash (except for root)

    Examples:
        normalize_path("foo.txt") -> "/foo.txt"
        normalize_path("/foo//bar.txt") -> "/foo/bar.txt"
        normalize_path("/foo/../bar.txt") -> "/bar.txt"
        normalize_path("/foo/") -> "/foo"
        normalize_path("") -> "/"
    """
    if not path:
        return "/"

    path = path.strip()

    if not path.startswith("/"):
        path = "/" + path

    path = posixpath.normpath(path)

    # posixpath keeps a leading "//" intact
    if path.startswith("//"):
        path = "/" + path.lstrip("/")

    if path != "/" and path.endswith("/"):
        path = path[:-1]

    return path


def split_path(path: str) -> tuple[str, str]:
    """Split path into (parent_dir, name).

    Examples:
        split_path("/foo/bar.txt") -> ("/foo", "bar.txt")
        split_path("/foo.txt") -> ("/", "foo.txt")
        split_path("/") -> ("/", "")
    """
    path = normalize_path(path)
    if path == "/":
        return "/", ""
    return posixpath.split(path)


def parent_path(path: str) -> str:
    """Return the parent directory of *path* (root is its own parent)."""
    return split_path(path)[0]


def join_resource(directory: str, name: str) -> str:
    """Join *name* onto *directory*, refusing to escape it.

    Raises ``ValueError`` if *name* is empty, contains a separator, or is a
    relative reference (``.`` / ``..``).
    """
    if not name or name in (".", ".."):
        raise ValueError(f"Invalid resource name: {name!r}")
    if "/" in name or "\\" in name:
        raise ValueError(f"Resource name must not contain a path separator: {name!r}")
    return normalize_path(posixpath.join(normalize_path(directory), name))


def is_within(path: str, directory: str) -> bool:
    """True if *path* is *directory* or lies beneath it."""
    path = normalize_path(path)
    directory = normalize_path(directory)
    if directory == "/":
        return True
    return path == directory or path.startswith(directory + "/")


def base_name(name: str) -> str:
    """Return *name* without its last extension.

    Examples:
        base_name("index.md") -> "index"
        base_name("index") -> "index"
        base_name("archive.tar.gz") -> "archive.tar"
    """
    stem, _ = posixpath.splitext(name)
    return stem


def extension(name: str) -> str:
    """Return the lower-cased last extension of *name*, including the dot."""
    return posixpath.splitext(name)[1].lower()


def validate_path(path: str) -> tuple[bool, str]:
    """Validate a path for security and compatibility issues.

    Returns:
        (is_valid, error_message) - error_message is empty if valid
    """
    if "\x00" in path:
        return False, "Path contains null bytes"

    # Reject ASCII control characters (0x01-0x1f) except \t, \n, \r
    for ch in path:
        code = ord(ch)
        if 0x01 <= code <= 0x1F and ch not in ("\t", "\n", "\r"):
            return False, f"Path contains control character: 0x{code:02x}"

    if len(path) > MAX_PATH_LENGTH:
        return False, f"Path too long (max {MAX_PATH_LENGTH} characters)"

    path = normalize_path(path)
    _, name = split_path(path)

    if name and len(name) > MAX_NAME_LENGTH:
        return False, f"Filename too long (max {MAX_NAME_LENGTH} characters)"

    if name:
        name_upper = name.upper()
        stem = name_upper.split(".")[0] if "." in name_upper else name_upper
        if stem in RESERVED_NAMES:
            return False, f"Reserved filename: {name}"

    return True, ""


def guess_mime_type(filename: str) -> str:
    """Guess the MIME type of a file based on its name."""
    mime_type, _ = mimetypes.guess_type(filename)
    return mime_type or "application/octet-stream"
