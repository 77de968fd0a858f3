"""Local destination planning.

The destination given on the command line is resolved once, to an absolute
path, when the invocation starts. Planning then picks the concrete target:

- an existing directory receives the file under the remote file's own name
- anything else is taken as the literal target file path
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from fileshare_cli.errors import InvalidPathError
from fileshare_cli.naming import validate_segment


@dataclass(frozen=True)
class DestinationSpec:
    """Destination as supplied by the caller, resolved against a working directory.

    Attributes:
        raw_input: The destination string as given (None when omitted).
        path: Absolute local path.
        is_existing_directory: Whether path was an existing directory at resolution time.
    """

    raw_input: str | None
    path: Path
    is_existing_directory: bool

    @classmethod
    def resolve(
        cls, raw_input: str | os.PathLike[str] | None, cwd: Path | None = None
    ) -> DestinationSpec:
        """Resolve a destination string; blank or missing means the working directory."""
        text = os.fspath(raw_input) if raw_input is not None else None
        base = cwd if cwd is not None else Path.cwd()
        candidate = Path(text).expanduser() if text and text.strip() else Path(".")
        if not candidate.is_absolute():
            candidate = base / candidate
        path = Path(os.path.abspath(candidate))
        return cls(raw_input=text, path=path, is_existing_directory=path.is_dir())


@dataclass(frozen=True)
class DownloadTarget:
    """Concrete local file a download writes to.

    Attributes:
        path: Absolute target file path.
        overwrite: True to create or truncate, False to require that path does not exist.
    """

    path: Path
    overwrite: bool


def plan_target(spec: DestinationSpec, remote_base_name: str, *, force: bool) -> DownloadTarget:
    """Compute the local target file for a remote file.

    Args:
        spec: Resolved destination.
        remote_base_name: Base name of the remote file.
        force: Allow overwriting an existing file at the target path.

    Returns:
        DownloadTarget with the absolute path and overwrite policy.

    Raises:
        InvalidPathError: If the remote base name is not a plain file name.
    """
    if spec.is_existing_directory:
        # The remote name must not escape the destination directory
        validate_segment(remote_base_name)
        if os.sep in remote_base_name or (os.altsep and os.altsep in remote_base_name):
            raise InvalidPathError(remote_base_name, "file name contains a path separator")
        target = spec.path / remote_base_name
    else:
        target = spec.path
    return DownloadTarget(path=target, overwrite=force)
