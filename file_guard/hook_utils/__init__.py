"""
Hook utilities package - shared utilities for the file guard.

Usage:
    from file_guard.hook_utils import log_event, normalize_path
    # or
    from file_guard.hook_utils.logging import log_event
    from file_guard.hook_utils.paths import normalize_path
"""

from .logging import (
    DATA_DIR,
    LOG_FILE,
    LogOnce,
    configure_logging,
    log_event,
)

from .io import (
    fast_json_loads,
    decode_json_as,
    read_bytes_if_exists,
)

from .paths import (
    NormalizedPath,
    PathResolutionError,
    expand_home,
    normalize_path,
    relative_to,
    resolve_symlinks,
)

__all__ = [
    # Logging
    "DATA_DIR",
    "LOG_FILE",
    "LogOnce",
    "configure_logging",
    "log_event",
    # I/O
    "fast_json_loads",
    "decode_json_as",
    "read_bytes_if_exists",
    # Paths
    "NormalizedPath",
    "PathResolutionError",
    "expand_home",
    "normalize_path",
    "relative_to",
    "resolve_symlinks",
]
