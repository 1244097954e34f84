"""Path and environment helpers for the Spectrum Scale CSI bootstrap.

Path functions are pure: they never touch the local filesystem and work on
POSIX-style strings as reported by the management API.
"""

import os
import posixpath
from typing import Optional

SEP = "/"


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Return an environment variable, treating an empty value as unset."""
    value = os.environ.get(name, "")
    return value if value else default


def with_trailing_sep(path: str) -> str:
    """Return ``path`` ending in exactly one separator.

    Args:
        path: Any path string

    Returns:
        Path with a single trailing separator ("/" for the root or empty string)
    """
    return path.rstrip(SEP) + SEP


def without_trailing_sep(path: str) -> str:
    """Return ``path`` without trailing separators, keeping "/" for the root."""
    stripped = path.rstrip(SEP)
    return stripped if stripped else (SEP if path.startswith(SEP) else "")


def is_path_prefix(prefix: str, path: str) -> bool:
    """Check whether ``prefix`` contains ``path`` on component boundaries.

    Both arguments are normalized with a trailing separator first, so
    "/mnt/fs" is a prefix of "/mnt/fs/fset" but not of "/mnt/fs2".
    """
    return with_trailing_sep(path).startswith(with_trailing_sep(prefix))


def relative_to_mount(path: str, mount_point: str) -> str:
    """Strip ``mount_point`` from ``path``.

    Args:
        path: Absolute path under mount_point
        mount_point: Absolute mount point

    Returns:
        Path relative to the mount point with no leading or trailing
        separator; empty when path is the mount point itself

    Raises:
        ValueError: If path is not under mount_point
    """
    if not is_path_prefix(mount_point, path):
        raise ValueError(f"{path} is not under {mount_point}")
    return with_trailing_sep(path)[len(with_trailing_sep(mount_point)):].strip(SEP)


def rebase_path(path: str, old_root: str, new_root: str) -> str:
    """Move ``path`` from under ``old_root`` to the same place under ``new_root``.

    Raises:
        ValueError: If path is not under old_root
    """
    relative = relative_to_mount(path, old_root)
    if not relative:
        return without_trailing_sep(new_root)
    return posixpath.join(without_trailing_sep(new_root), relative)


def join_relative(*parts: str) -> str:
    """Join path components into a relative path, skipping empty ones."""
    return SEP.join(p.strip(SEP) for p in parts if p.strip(SEP))
