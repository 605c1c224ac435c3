"""
Logging utilities.

Uses loguru for structured JSON logging with automatic rotation.
Importing this module touches no sinks: the host owns loguru's handlers,
and configure_logging() only adds (once) the guard's own event file.
Includes log-once pattern for suppressing duplicate errors.
"""
import os
import sys
import threading
import time
from pathlib import Path

from loguru import logger

DATA_DIR = Path(os.environ.get("FILE_GUARD_DATA_DIR", Path.home() / ".file-guard"))
LOG_FILE = DATA_DIR / "file-guard-events.jsonl"

_sink_id: int | None = None
_sink_lock = threading.Lock()


def configure_logging(log_file: Path | None = None) -> int:
    """
    Add the guard's JSONL event sink (idempotent).

    JSON format, 10MB rotation, keep 3 files. Handlers added by anyone
    else are left alone. Falls back to stderr if the log directory is
    unusable.

    Args:
        log_file: Sink path (defaults to LOG_FILE)

    Returns:
        The loguru handler id of the guard's sink
    """
    global _sink_id
    with _sink_lock:
        if _sink_id is not None:
            return _sink_id
        log_file = Path(log_file or LOG_FILE)
        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            _sink_id = logger.add(
                log_file,
                format="{message}",
                serialize=True,  # JSON output
                rotation="10 MB",
                retention=3,
                compression="gz",
                enqueue=True,  # Thread-safe
                catch=True,  # Never raise
            )
        except OSError:
            _sink_id = logger.add(sys.stderr, format="{message}", serialize=True, catch=True)
        return _sink_id


def log_event(hook_name: str, event_type: str, data: dict = None, level: str = "info"):
    """
    Log structured event using loguru.

    Args:
        hook_name: Name of the component (e.g., "file_guard")
        event_type: Event type (e.g., "blocked", "config_malformed")
        data: Additional context data
        level: Log level (debug, info, warning, error)
    """
    try:
        log_func = getattr(logger, level, logger.info)
        log_func(event_type, hook=hook_name, **(data or {}))
    except Exception:
        pass  # Never raise


# =============================================================================
# Log-Once Pattern - Suppress duplicate errors within a time window
# =============================================================================

class LogOnce:
    """Rate-limited logging that suppresses duplicates within a time window.

    Keys are (hook, event, message); callers pass a low-cardinality message
    (an error class, not a path) and put details in extra. Entries whose
    window has passed are pruned, so the table only holds keys seen in the
    last period_sec.

    Usage:
        _log_once = LogOnce(period_sec=300)

        try:
            ...
        except OSError as e:
            _log_once.warning("paths", "path_resolution_error", type(e).__name__, path=p)
    """

    def __init__(self, period_sec: int = 300):
        self.period_sec = period_sec
        self._seen: dict[tuple, tuple[float, int]] = {}  # key -> (window start, hits)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._seen)

    def _prune(self, now: float):
        expired = [k for k, (start, _) in self._seen.items() if now - start >= self.period_sec]
        for key in expired:
            del self._seen[key]

    def _should_log(self, key: tuple) -> tuple[bool, int]:
        """
        Returns:
            (should_log, suppressed) - suppressed counts hits dropped in the
            previous window for this key
        """
        now = time.time()
        with self._lock:
            previous = self._seen.get(key)
            if previous is not None and now - previous[0] < self.period_sec:
                self._seen[key] = (previous[0], previous[1] + 1)
                return False, 0
            self._prune(now)
            self._seen[key] = (now, 1)
            return True, (previous[1] - 1) if previous else 0

    def error(self, hook_name: str, event_type: str, message: str, **extra):
        """Log an error, suppressing duplicates within the time window."""
        self._log(hook_name, event_type, message, "error", extra)

    def warning(self, hook_name: str, event_type: str, message: str, **extra):
        """Log a warning, suppressing duplicates within the time window."""
        self._log(hook_name, event_type, message, "warning", extra)

    def _log(self, hook_name: str, event_type: str, message: str, level: str, extra: dict):
        should_log, suppressed = self._should_log((hook_name, event_type, message))
        if should_log:
            data = {"msg": message, **extra}
            if suppressed > 0:
                data["suppressed"] = suppressed
            log_event(hook_name, event_type, data, level)
