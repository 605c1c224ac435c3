"""Match file paths against protection levels.

Compiles each level's glob patterns once into a single regex and answers
"which level (if any) protects this path". Paths are checked in every form
the caller might have reached them by: absolute, relative to cwd, and the
symlink-resolved target.
"""
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from file_guard.config import LEVEL_PRIORITY, ProtectionConfig
from file_guard.hook_sdk import Patterns
from file_guard.hook_utils import log_event, normalize_path, relative_to

SELF_PROTECTION = "self-protection"


class GlobMatcher:
    """Ordered glob patterns compiled into one regex."""

    def __init__(self, patterns: Iterable[str], ignore_case: bool = False):
        self.patterns = tuple(patterns)
        self.ignore_case = ignore_case
        flags = re.DOTALL | (re.IGNORECASE if ignore_case else 0)
        union = "|".join(f"(?:{Patterns.translate(p)})" for p in self.patterns)
        self._regex = re.compile(union, flags)

    def __call__(self, path: str) -> bool:
        return self._regex.fullmatch(path) is not None

    def matching_pattern(self, path: str) -> str | None:
        """Literal pattern responsible for a match (for diagnostics)."""
        return Patterns.find_matching_pattern(path, self.patterns, self.ignore_case)


@dataclass(frozen=True)
class LevelMatcher:
    level: str
    matcher: GlobMatcher
    description: str | None = None


@dataclass(frozen=True)
class CompiledMatchers:
    """Read-only level -> LevelMatcher mapping; levels without patterns are absent."""
    levels: Mapping[str, LevelMatcher]

    def get(self, level: str) -> LevelMatcher | None:
        return self.levels.get(level)

    def description(self, level: str) -> str | None:
        entry = self.levels.get(level)
        return entry.description if entry else None


@dataclass(frozen=True)
class PathMatch:
    level: str
    pattern: str
    self_protection: bool = False

    @property
    def label(self) -> str:
        return SELF_PROTECTION if self.self_protection else self.level


def compile_matchers(config: ProtectionConfig, ignore_case: bool = False) -> CompiledMatchers:
    """Compile every known level with at least one pattern."""
    for name in config.unknown_levels():
        log_event("path_matcher", "unknown_level", {"level": name}, "warning")

    levels = {}
    for name, level in config.protection_levels.items():
        if name in LEVEL_PRIORITY and level.patterns:
            levels[name] = LevelMatcher(name, GlobMatcher(level.patterns, ignore_case), level.description)
    return CompiledMatchers(MappingProxyType(levels))


def check_path(
    path: str,
    cwd: str,
    matchers: CompiledMatchers,
    self_protection: GlobMatcher | None = None,
) -> PathMatch | None:
    """Find the most severe protection level matching path.

    Args:
        path: Path as given by the tool call (relative, absolute or ~-prefixed)
        cwd: Working directory of the tool call
        matchers: Compiled protection levels
        self_protection: Hardcoded guard-protection globs; checked first and
            reported as no_access with self_protection=True

    Returns:
        PathMatch for the first level (in severity order) with a hit, or None
    """
    normalized = normalize_path(path, cwd)
    absolute, resolved = normalized.absolute, normalized.resolved

    if self_protection is not None:
        if self_protection(absolute) or (resolved and self_protection(resolved)):
            return PathMatch("no_access", f"({SELF_PROTECTION})", self_protection=True)

    candidates = [absolute, relative_to(absolute, cwd)]
    if resolved and resolved != absolute:
        candidates.append(resolved)

    for level in LEVEL_PRIORITY:
        entry = matchers.get(level)
        if entry is None:
            continue
        for candidate in candidates:
            if entry.matcher(candidate):
                pattern = entry.matcher.matching_pattern(candidate) or "(pattern)"
                return PathMatch(level, pattern)
    return None
