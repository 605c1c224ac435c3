"""
Path utilities - Centralized path handling for the guard.

Provides consistent path normalization, home expansion and symlink
resolution for every path the policy engine checks.
"""
import os
from dataclasses import dataclass
from pathlib import Path

from file_guard.hook_utils.logging import LogOnce

_log_once = LogOnce(period_sec=300)


class PathResolutionError(Exception):
    """An existing path could not be resolved through its symlinks."""

    def __init__(self, path: str, cause: BaseException):
        super().__init__(f"cannot resolve {path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass(frozen=True)
class NormalizedPath:
    """Absolute form of a path plus its symlink-resolved form, if any."""
    absolute: str
    resolved: str | None = None


def expand_home(path: str) -> str:
    """Replace a leading ``~`` or ``~/`` with the user's home directory.

    ``~user`` forms are left untouched.
    """
    if path == "~" or path.startswith("~/"):
        return str(Path.home()) + path[1:]
    return path


def resolve_symlinks(path: str) -> str | None:
    """Resolve path through symlinks.

    Returns:
        Canonical path, or None if the path doesn't exist

    Raises:
        PathResolutionError: Path exists but resolution failed
            (permission denied, symlink loop, I/O error)
    """
    try:
        return str(Path(path).resolve(strict=True))
    except (FileNotFoundError, NotADirectoryError):
        return None
    except (OSError, RuntimeError) as e:
        raise PathResolutionError(path, e) from e


def normalize_path(path: str, cwd: str) -> NormalizedPath:
    """Normalize path to absolute form and resolve symlinks when possible.

    Args:
        path: Path string (relative, absolute or ~-prefixed)
        cwd: Directory relative paths are resolved against

    Returns:
        NormalizedPath; resolved is None when the path doesn't exist or
        can't be resolved
    """
    expanded = expand_home(path)
    if os.path.isabs(expanded):
        absolute = os.path.normpath(expanded)
    else:
        absolute = os.path.normpath(os.path.join(cwd, expanded))

    try:
        resolved = resolve_symlinks(absolute)
    except PathResolutionError as e:
        _log_once.warning(
            "paths", "path_resolution_error", type(e.cause).__name__,
            path=e.path, error=str(e.cause),
        )
        resolved = None
    return NormalizedPath(absolute, resolved)


def relative_to(path: str, base: str) -> str:
    """Make path relative to base if possible.

    If no relative form exists (different drives), returns the original path.
    """
    try:
        return os.path.relpath(path, base)
    except ValueError:
        return path
