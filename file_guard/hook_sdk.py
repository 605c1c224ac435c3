"""
File Guard Hook SDK - Typed abstractions for before_tool_call hooks.

Provides:
- Typed context dataclasses (BeforeToolCallContext, ToolInput)
- Response builders (block)
- BlockingHook base class with fail-open/fail-closed error boundary
- Glob pattern compilation (Patterns)

Usage:
    from file_guard.hook_sdk import BeforeToolCallContext, BlockingHook

    class SecretBlocker(BlockingHook):
        tools = frozenset({"read"})

        def check(self, ctx: BeforeToolCallContext) -> dict | None:
            if ctx.tool_input.file_path.endswith(".secret"):
                return self.deny("Cannot access secret files")
            return None
"""
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from file_guard.hook_utils import fast_json_loads, log_event

ERROR_REASON = "File guard error: blocking as precaution."


class GuardInternalError(Exception):
    """Unexpected input or state while evaluating a tool call."""


# =============================================================================
# Context Dataclasses
# =============================================================================

@dataclass
class ToolInput:
    """Tool call params with typed accessors.

    Accessors return "" for a missing key and raise GuardInternalError
    for a value that isn't a string.
    """
    raw: Mapping = field(default_factory=dict)

    def _string(self, key: str) -> str:
        value = self.raw.get(key)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise GuardInternalError(f"params.{key} must be a string, got {type(value).__name__}")
        return value

    @property
    def file_path(self) -> str:
        return self._string("file_path")

    @property
    def command(self) -> str:
        return self._string("command")

    @property
    def patch(self) -> str:
        """Unified diff text (patch, then diff, then file_path)."""
        for key in ("patch", "diff", "file_path"):
            value = self._string(key)
            if value:
                return value
        return ""


@dataclass
class BeforeToolCallContext:
    """Host tool-call event: { toolName, agentId?, cwd?, params }."""
    raw: Mapping = field(default_factory=dict)

    @classmethod
    def from_event(cls, event: Any) -> "BeforeToolCallContext":
        """Wrap a host event; raw JSON (str or bytes) is decoded first."""
        if isinstance(event, (str, bytes)):
            event = fast_json_loads(event)
        if not isinstance(event, Mapping):
            raise GuardInternalError(f"event must be a mapping, got {type(event).__name__}")
        return cls(event)

    @property
    def tool_name(self) -> str:
        return self.raw.get("toolName") or ""

    @property
    def agent_id(self) -> str | None:
        return self.raw.get("agentId") or None

    @property
    def cwd(self) -> str:
        return self.raw.get("cwd") or os.getcwd()

    @property
    def tool_input(self) -> ToolInput:
        params = self.raw.get("params")
        if params is None:
            return ToolInput({})
        if not isinstance(params, Mapping):
            raise GuardInternalError(f"params must be a mapping, got {type(params).__name__}")
        return ToolInput(params)


# =============================================================================
# Response Builders
# =============================================================================

class Response:
    """Response builders for hook output.

    Allowing is the host's default, so an allow is simply no response (None).
    """

    @staticmethod
    def block(reason: str) -> dict:
        """Block the tool from proceeding."""
        return {"block": True, "blockReason": reason}


# =============================================================================
# BlockingHook - Base Class for before_tool_call Denials
# =============================================================================

class BlockingHook:
    """Base for hooks that can deny tool calls.

    Subclasses implement check() which returns a block response or None to
    allow. Calling the hook is a hard error boundary: any exception is logged
    and turned into a block, or into an allow when fail_open is set.

    Example:
        blocker = SecretBlocker("secret_blocker")
        result = blocker(event)  # Returns block response or None
    """

    # Filter by tool name (None = all tools)
    tools: frozenset[str] | None = None

    def __init__(self, name: str, fail_open: bool = False):
        """Initialize blocking hook.

        Args:
            name: Hook identifier for logging
            fail_open: Allow (instead of block) when check() raises
        """
        self.name = name
        self.fail_open = fail_open

    def applies(self, ctx: BeforeToolCallContext) -> bool:
        """Whether this hook should run for the given tool call."""
        return self.tools is None or ctx.tool_name in self.tools

    def check(self, ctx: BeforeToolCallContext) -> dict | None:
        """Check if the tool call should be blocked.

        Override this method in subclasses.

        Returns:
            Block response dict if blocked, None to allow
        """
        raise NotImplementedError("Subclasses must implement check()")

    def deny(self, reason: str) -> dict:
        """Build block response."""
        return Response.block(reason)

    def __call__(self, event: Any) -> dict | None:
        """Entry point - wraps the event, checks applies, calls check."""
        try:
            ctx = BeforeToolCallContext.from_event(event)
            if not self.applies(ctx):
                return None
            return self.check(ctx)
        except Exception as e:
            tool_name = agent_id = None
            if isinstance(event, Mapping):
                tool_name, agent_id = event.get("toolName"), event.get("agentId")
            log_event(self.name, "guard_error", {
                "type": type(e).__name__,
                "error": str(e),
                "tool": tool_name,
                "agent": agent_id,
                "fail_open": self.fail_open,
            }, "error")
            if self.fail_open:
                return None
            return self.deny(ERROR_REASON)


# =============================================================================
# Pattern Matching Utilities
# =============================================================================

class Patterns:
    """Glob pattern compilation.

    Dialect:
    - ** : as a whole path segment, zero or more directories
           ("**/x" matches "x", "dir/**" matches "dir" itself)
    - * and ? : within a single segment (never cross "/")
    - [abc], [!abc] : character classes
    - {a,b} : alternation
    Dotfiles need no special casing; everything else is literal.
    """

    @staticmethod
    def translate(pattern: str) -> str:
        """Translate a glob pattern to an unanchored regex string."""
        out: list[str] = []
        i, n = 0, len(pattern)
        while i < n:
            c = pattern[i]
            if c == "*":
                j = i
                while j < n and pattern[j] == "*":
                    j += 1
                at_start = i == 0 or pattern[i - 1] == "/"
                at_end = j == n or pattern[j] == "/"
                if j - i >= 2 and at_start and at_end:
                    if j < n:
                        # "**/" - zero or more leading directories
                        out.append("(?:.*/)?")
                        j += 1
                    elif out and out[-1] == "/":
                        # "dir/**" - the directory itself or anything below
                        out[-1] = "(?:/.*)?"
                    else:
                        out.append(".*")
                else:
                    out.append("[^/]*")
                i = j
            elif c == "?":
                out.append("[^/]")
                i += 1
            elif c == "[":
                j = i + 1
                if j < n and pattern[j] in "!^":
                    j += 1
                if j < n and pattern[j] == "]":
                    j += 1
                j = pattern.find("]", j)
                if j == -1:
                    out.append(re.escape(c))
                    i += 1
                    continue
                stuff = pattern[i + 1:j].replace("\\", "\\\\")
                negate = stuff[0] in "!^"
                if negate:
                    stuff = stuff[1:]
                stuff = stuff.replace("[", "\\[")
                out.append(f"[{'^' if negate else ''}{stuff}]")
                i = j + 1
            elif c == "{":
                j = pattern.find("}", i)
                body = pattern[i + 1:j] if j != -1 else ""
                if "," not in body:
                    out.append(re.escape(c))
                    i += 1
                    continue
                options = "|".join(Patterns.translate(opt) for opt in body.split(","))
                out.append(f"(?:{options})")
                i = j + 1
            else:
                out.append("/" if c == "/" else re.escape(c))
                i += 1
        return "".join(out)

    @staticmethod
    @lru_cache(maxsize=1024)
    def compile_pattern(pattern: str, ignore_case: bool = False) -> re.Pattern:
        """
        Compile glob pattern to an anchored regex with caching.

        Example:
            pat = Patterns.compile_pattern("**/.env")
            if pat.fullmatch("/project/config/.env"):
                block()
        """
        flags = re.DOTALL | (re.IGNORECASE if ignore_case else 0)
        return re.compile(Patterns.translate(pattern), flags)

    @staticmethod
    def matches(path: str, pattern: str, ignore_case: bool = False) -> bool:
        """Check if path matches a single glob pattern."""
        return Patterns.compile_pattern(pattern, ignore_case).fullmatch(path) is not None

    @staticmethod
    def find_matching_pattern(path: str, patterns, ignore_case: bool = False) -> str | None:
        """Return the first glob pattern matching path, or None."""
        for pattern in patterns:
            if Patterns.matches(path, pattern, ignore_case):
                return pattern
        return None


__all__ = [
    "ERROR_REASON",
    "GuardInternalError",
    "ToolInput",
    "BeforeToolCallContext",
    "Response",
    "BlockingHook",
    "Patterns",
    "log_event",
]
