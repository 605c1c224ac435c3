"""
File Guard - file-access policy engine for agent tool calls.

Intercepts read, write, edit, apply_patch, exec and bash tool calls and
blocks those that touch protected files, including through shell commands
(cat, grep, sed -i, redirects, rm, cp/mv, ...).

Subpackages:
- hook_utils: Shared utilities (logging, JSON I/O, paths)
- handlers: Matching, shell analysis, policy engine, hook adapter
- tests: Unit tests

Usage:
    from file_guard import GuardSettings, create_hook

    hook = create_hook(GuardSettings(fail_open=False))
    hook({"toolName": "bash", "params": {"command": "cat .env"}})
    # {"block": True, "blockReason": "File guard blocked access: ..."}
"""
from file_guard.config import GuardSettings
from file_guard.handlers.file_protection import FileProtectionHook, create_hook, register
from file_guard.handlers.policy_engine import (
    FileOperationRequest,
    GuardVerdict,
    PolicyEngine,
    ToolClass,
)
from file_guard.handlers.shell_analyzer import extract_file_operations

__all__ = [
    "GuardSettings",
    "FileProtectionHook",
    "create_hook",
    "register",
    "FileOperationRequest",
    "GuardVerdict",
    "PolicyEngine",
    "ToolClass",
    "extract_file_operations",
]
