"""File-access policy engine.

Decides whether a single tool call may proceed. Owns the compiled base
protection levels, per-agent merged overrides and the hardcoded
self-protection set, all built once at construction and read-only after.

Tool semantics:
    read          no_access blocks (self-protection never blocks reads)
    write / edit  self-protection, no_access, read_only block
    apply_patch   same as write, for every path in the patch
    exec / bash   reads:   no_access blocks
                  writes:  self-protection, no_access, read_only block
                  deletes: self-protection and every level block

no_delete can therefore only be triggered by a shell delete.
"""
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Literal

from file_guard.config import (
    DEFAULT_CASE_INSENSITIVE,
    LEVEL_PRIORITY,
    ConfigError,
    GuardSettings,
    ProtectionConfig,
    default_config,
    load_protection_config,
    merge_configs,
    resolve_config_path,
)
from file_guard.handlers.patch_paths import extract_patch_paths
from file_guard.handlers.path_matcher import (
    SELF_PROTECTION,
    CompiledMatchers,
    GlobMatcher,
    PathMatch,
    check_path,
    compile_matchers,
)
from file_guard.handlers.shell_analyzer import extract_file_operations
from file_guard.hook_sdk import ToolInput
from file_guard.hook_utils import log_event

CONFIG_ERROR_REASON = "File guard config error: blocking as precaution."

_READ_BLOCKS = frozenset({"no_access"})
_WRITE_BLOCKS = frozenset({SELF_PROTECTION, "no_access", "read_only"})
_DELETE_BLOCKS = frozenset({SELF_PROTECTION, *LEVEL_PRIORITY})


class ToolClass(Enum):
    """Guarded tools; values are the host's tool names."""
    READ = "read"
    WRITE = "write"
    EDIT = "edit"
    APPLY_PATCH = "apply_patch"
    EXEC = "exec"
    BASH = "bash"


GUARDED_TOOLS = frozenset(tool.value for tool in ToolClass)


@dataclass(frozen=True)
class FileOperationRequest:
    tool: ToolClass
    agent_id: str | None = None
    cwd: str | None = None
    params: Mapping = field(default_factory=dict)


@dataclass(frozen=True)
class GuardVerdict:
    action: Literal["allow", "block"]
    level: str | None = None
    matched_pattern: str | None = None
    path: str | None = None
    reason: str | None = None

    @property
    def blocked(self) -> bool:
        return self.action == "block"

    @classmethod
    def allow(cls) -> "GuardVerdict":
        return cls("allow")


class PolicyEngine:
    """Evaluates FileOperationRequests against compiled protection levels.

    Construct once at startup (usually via from_settings) and share freely:
    evaluate() never mutates engine state.
    """

    def __init__(
        self,
        base_config: ProtectionConfig,
        *,
        agent_configs: Mapping[str, ProtectionConfig] | None = None,
        self_protection_patterns: Iterable[str] = (),
        config_error: bool = False,
        errored_agents: Iterable[str] = (),
        log_blocks: bool = True,
        case_insensitive: bool = DEFAULT_CASE_INSENSITIVE,
    ):
        self._base = compile_matchers(base_config, case_insensitive)
        self._agents = MappingProxyType({
            agent_id: compile_matchers(merge_configs(base_config, override), case_insensitive)
            for agent_id, override in (agent_configs or {}).items()
        })
        patterns = tuple(self_protection_patterns)
        self._self_protection = GlobMatcher(patterns, case_insensitive) if patterns else None
        self._config_error = config_error
        self._errored_agents = frozenset(errored_agents)
        self.log_blocks = log_blocks

        self._handlers: Mapping[ToolClass, Callable] = MappingProxyType({
            ToolClass.READ: self._check_read,
            ToolClass.WRITE: self._check_write,
            ToolClass.EDIT: self._check_write,
            ToolClass.APPLY_PATCH: self._check_patch,
            ToolClass.EXEC: self._check_command,
            ToolClass.BASH: self._check_command,
        })

    @classmethod
    def from_settings(cls, settings: GuardSettings) -> "PolicyEngine":
        """Load base and agent override configs from disk and build the engine.

        A missing base config falls back to built-in defaults. A malformed one
        falls back to defaults with fail_open, otherwise every evaluation
        blocks. Malformed agent overrides do the same for that agent only.
        """
        config_path = settings.resolved_config_path
        config_error = False
        try:
            base = load_protection_config(config_path)
        except ConfigError as e:
            log_event("policy_engine", "config_malformed", {"path": config_path, "error": str(e)}, "error")
            base = None
            if settings.fail_open:
                log_event("policy_engine", "config_fallback", {"path": config_path}, "warning")
            else:
                config_error = True
        if base is None:
            base = default_config()

        agent_configs: dict[str, ProtectionConfig] = {}
        errored_agents: set[str] = set()
        for agent_id, override_path in settings.agent_overrides.items():
            agent_path = resolve_config_path(override_path)
            try:
                override = load_protection_config(agent_path)
            except ConfigError as e:
                log_event("policy_engine", "override_malformed", {
                    "agent": agent_id, "path": agent_path, "error": str(e),
                }, "error")
                if not settings.fail_open:
                    errored_agents.add(agent_id)
                continue
            if override is None:
                log_event("policy_engine", "override_missing", {"agent": agent_id, "path": agent_path}, "warning")
                continue
            agent_configs[agent_id] = override

        return cls(
            base,
            agent_configs=agent_configs,
            self_protection_patterns=settings.self_protection_patterns,
            config_error=config_error,
            errored_agents=errored_agents,
            log_blocks=settings.log_blocks,
            case_insensitive=settings.case_insensitive,
        )

    @property
    def config_error(self) -> bool:
        return self._config_error

    @property
    def levels(self) -> list[str]:
        """Base protection levels with at least one pattern."""
        return list(self._base.levels)

    def matchers_for(self, agent_id: str | None) -> CompiledMatchers:
        if agent_id is not None and agent_id in self._agents:
            return self._agents[agent_id]
        return self._base

    def evaluate(self, request: FileOperationRequest) -> GuardVerdict:
        """
        Decide whether a tool call may proceed.

        Raises:
            GuardInternalError: params hold a non-string path or command
        """
        if self._config_error or request.agent_id in self._errored_agents:
            return GuardVerdict("block", reason=CONFIG_ERROR_REASON)

        handler = self._handlers[request.tool]
        return handler(
            request,
            ToolInput(request.params),
            self.matchers_for(request.agent_id),
            request.cwd or os.getcwd(),
        )

    # =========================================================================
    # Tool handlers
    # =========================================================================

    def _check_read(self, request, params: ToolInput, matchers, cwd) -> GuardVerdict:
        path = params.file_path
        if not path:
            return GuardVerdict.allow()
        return self._first_block(request, [path], matchers, cwd, _READ_BLOCKS, "reading") or GuardVerdict.allow()

    def _check_write(self, request, params: ToolInput, matchers, cwd) -> GuardVerdict:
        path = params.file_path
        if not path:
            return GuardVerdict.allow()
        return self._first_block(request, [path], matchers, cwd, _WRITE_BLOCKS, "writing") or GuardVerdict.allow()

    def _check_patch(self, request, params: ToolInput, matchers, cwd) -> GuardVerdict:
        patch = params.patch
        if not patch:
            return GuardVerdict.allow()
        paths = extract_patch_paths(patch)
        return self._first_block(request, paths, matchers, cwd, _WRITE_BLOCKS, "patching") or GuardVerdict.allow()

    def _check_command(self, request, params: ToolInput, matchers, cwd) -> GuardVerdict:
        command = params.command
        if not command:
            return GuardVerdict.allow()
        ops = extract_file_operations(command)
        return (
            self._first_block(request, ops.reads, matchers, cwd, _READ_BLOCKS, "reading")
            or self._first_block(request, ops.writes, matchers, cwd, _WRITE_BLOCKS, "writing")
            or self._first_block(request, ops.deletes, matchers, cwd, _DELETE_BLOCKS, "deleting")
            or GuardVerdict.allow()
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _first_block(
        self,
        request: FileOperationRequest,
        paths: list[str],
        matchers: CompiledMatchers,
        cwd: str,
        blocking: frozenset[str],
        operation: str,
    ) -> GuardVerdict | None:
        """Block verdict for the first path whose match label is in blocking."""
        self_protection = self._self_protection if SELF_PROTECTION in blocking else None
        for path in paths:
            match = check_path(path, cwd, matchers, self_protection)
            if match is not None and match.label in blocking:
                return self._block(request, path, match, matchers, operation)
        return None

    def _block(
        self,
        request: FileOperationRequest,
        path: str,
        match: PathMatch,
        matchers: CompiledMatchers,
        operation: str,
    ) -> GuardVerdict:
        tool = request.tool.value
        if match.self_protection:
            detail = match.label
        else:
            detail = f"{match.label}, pattern: {match.pattern}"
        reason = f"File guard blocked access: {path} is protected ({detail}). {tool} access denied."
        description = None if match.self_protection else matchers.description(match.level)
        if description:
            reason = f"{reason} {description}"

        if self.log_blocks:
            log_event("file_guard", "blocked", {
                "tool": tool,
                "operation": operation,
                "path": path,
                "level": match.label,
                "pattern": match.pattern,
                "agent": request.agent_id or "unknown",
            }, "warning")

        return GuardVerdict("block", match.label, match.pattern, path, reason)
