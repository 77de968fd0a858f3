"""Remote path validation for file shares.

A remote path such as ``"reports/2024/q1.pdf"`` is split into an ordered tuple
of segments before any share, directory or file reference is built from it.
Naming rules follow the file-share service:

- ``/`` and ``\\`` both separate segments; one leading separator is allowed
- no empty segments (``"a//b"``, trailing ``/``)
- no ``.`` or ``..`` segments
- no ``" : | < > * ?`` or control characters
- at most 255 characters per segment and 2048 for the whole path
"""

from __future__ import annotations

import re

from fileshare_cli.errors import InvalidPathError

PathSegments = tuple[str, ...]

MAX_SEGMENT_LENGTH = 255
MAX_PATH_LENGTH = 2048

_SEPARATORS = re.compile(r"[/\\]")
_INVALID_CHARS = re.compile(r'[":|<>*?\x00-\x1f]')


def validate_segment(segment: str) -> str:
    """Validate a single file or directory name.

    Raises:
        InvalidPathError: If the name is empty or not allowed by the service.
    """
    if not segment:
        raise InvalidPathError(segment, "empty path segment")
    if segment in (".", ".."):
        raise InvalidPathError(segment, f"relative segment '{segment}' is not allowed")
    if len(segment) > MAX_SEGMENT_LENGTH:
        raise InvalidPathError(
            segment, f"segment longer than {MAX_SEGMENT_LENGTH} characters"
        )
    bad = _INVALID_CHARS.search(segment)
    if bad:
        raise InvalidPathError(segment, f"invalid character {bad.group()!r}")
    return segment


def validate_path(path: str | None) -> PathSegments:
    """Split a slash-delimited remote file path into validated segments.

    Args:
        path: Remote path relative to a share or directory.

    Returns:
        Tuple of path segments, last one being the file name.

    Raises:
        InvalidPathError: If the path is missing or any segment is invalid.
    """
    if path is None or not path.strip():
        raise InvalidPathError(path, "a remote file path is required")
    if len(path) > MAX_PATH_LENGTH:
        raise InvalidPathError(path, f"path longer than {MAX_PATH_LENGTH} characters")

    trimmed = path[1:] if path[0] in "/\\" else path
    segments = tuple(_SEPARATORS.split(trimmed))
    try:
        for segment in segments:
            validate_segment(segment)
    except InvalidPathError as err:
        raise InvalidPathError(path, err.context["reason"]) from err
    return segments


def join_segments(segments: PathSegments) -> str:
    """Join segments into an object key (always forward slashes)."""
    return "/".join(segments)
