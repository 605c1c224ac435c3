"""
Pytest configuration for file guard tests.

Adds the repository root to sys.path so tests can import file_guard
without installing it, and provides shared fixtures.
"""
import json
import sys
from pathlib import Path

import pytest
from loguru import logger

repo_root = Path(__file__).parent.parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from file_guard.config import GuardSettings  # noqa: E402
from file_guard.handlers.file_protection import create_hook  # noqa: E402
from file_guard.hook_utils import configure_logging  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def event_log(tmp_path_factory):
    """Point the guard's event sink at a scratch file for the whole run."""
    log_file = tmp_path_factory.mktemp("logs") / "file-guard-events.jsonl"
    configure_logging(log_file)
    return log_file


@pytest.fixture
def write_config(tmp_path):
    """Factory writing a protection config; levels map name -> patterns (or pass raw text)."""
    counter = {"n": 0}

    def _write(levels=None, raw: str = None, name: str = None) -> str:
        counter["n"] += 1
        path = tmp_path / (name or f"file-guard-{counter['n']}.json")
        if raw is None:
            raw = json.dumps({
                "protection_levels": {
                    level: {"patterns": patterns} for level, patterns in (levels or {}).items()
                }
            })
        path.write_text(raw)
        return str(path)

    return _write


@pytest.fixture
def make_hook():
    """Factory building a hook from a host plugin config mapping."""
    def _make(**plugin_config):
        plugin_config.setdefault("caseInsensitive", False)
        return create_hook(GuardSettings.from_plugin_config(plugin_config))
    return _make


@pytest.fixture
def log_records():
    """Capture loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
