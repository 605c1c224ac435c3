"""Block tool calls that touch protected files.

before_tool_call hook for read, write, edit, apply_patch, exec and bash.
Translates host events into FileOperationRequests for the PolicyEngine
and verdicts back into the host's { block, blockReason } contract.

Uses BlockingHook base class, so no exception ever reaches the host.
"""
from collections.abc import Mapping
from typing import Any

from file_guard.config import GuardSettings
from file_guard.handlers.policy_engine import (
    GUARDED_TOOLS,
    FileOperationRequest,
    PolicyEngine,
    ToolClass,
)
from file_guard.hook_sdk import BeforeToolCallContext, BlockingHook, log_event
from file_guard.hook_utils import configure_logging

PLUGIN_ID = "file-guard"
HOOK_EVENT = "before_tool_call"


class FileProtectionHook(BlockingHook):
    """Block access to protected files."""

    tools = GUARDED_TOOLS

    def __init__(self, engine: PolicyEngine, fail_open: bool = False):
        super().__init__("file_guard", fail_open=fail_open)
        self.engine = engine

    def check(self, ctx: BeforeToolCallContext) -> dict | None:
        request = FileOperationRequest(
            tool=ToolClass(ctx.tool_name),
            agent_id=ctx.agent_id,
            cwd=ctx.cwd,
            params=ctx.tool_input.raw,
        )
        verdict = self.engine.evaluate(request)
        if verdict.blocked:
            return self.deny(verdict.reason)
        return None


def create_hook(settings: GuardSettings) -> FileProtectionHook:
    """Build the engine from settings (startup I/O happens here) and wrap it."""
    configure_logging()
    engine = PolicyEngine.from_settings(settings)
    log_event("file_guard", "registered", {
        "guarding": sorted(GUARDED_TOOLS),
        "fail_open": settings.fail_open,
        "levels": engine.levels,
        "config_error": engine.config_error,
    })
    return FileProtectionHook(engine, fail_open=settings.fail_open)


def _plugin_config(api: Any) -> Mapping:
    """Read plugins.entries["file-guard"].config from the host config."""
    node = getattr(api, "config", None) or {}
    for key in ("plugins", "entries", PLUGIN_ID, "config"):
        node = node.get(key) if isinstance(node, Mapping) else None
        if node is None:
            return {}
    return node if isinstance(node, Mapping) else {}


def register(api: Any) -> FileProtectionHook:
    """
    Register the guard with a host plugin API.

    Args:
        api: Host object exposing a config mapping and on(event, handler)

    Returns:
        The registered hook
    """
    hook = create_hook(GuardSettings.from_plugin_config(_plugin_config(api)))
    api.on(HOOK_EVENT, hook)
    return hook
