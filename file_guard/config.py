"""
Centralized configuration for the file guard.

All configurable constants in one place.
Individual modules import from here for consistency.

Categories:
- Paths: Package directory and default config location
- Levels: Protection level names, severity order, built-in defaults
- Schema: msgspec types for the protection config document
- Settings: Plugin-level settings supplied by the host
"""
import glob
import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

import msgspec

from file_guard.hook_utils.io import decode_json_as, read_bytes_if_exists
from file_guard.hook_utils.logging import log_event

# =============================================================================
# Paths
# =============================================================================

PLUGIN_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = "./file-guard.json"

# =============================================================================
# Protection Levels
# =============================================================================

ProtectionLevel = Literal["no_access", "read_only", "no_delete"]

# Severity order, highest first
LEVEL_PRIORITY: tuple[ProtectionLevel, ...] = ("no_access", "read_only", "no_delete")

DEFAULT_PROTECTION_LEVELS: dict[str, tuple[str, ...]] = {
    "no_access": (
        "**/.env", "**/.env.*",
        "**/.ssh/*",
        "**/.aws/credentials", "**/.aws/config",
        "**/credentials.json", "**/credentials.yaml",
        "**/*.pem", "**/*.key",
        "**/.kube/config",
        "**/secrets.yml", "**/secrets.yaml",
    ),
    "read_only": (
        "**/package-lock.json", "**/yarn.lock",
        "**/pnpm-lock.yaml", "**/Cargo.lock",
        "**/poetry.lock", "**/go.sum",
    ),
    "no_delete": (
        "**/.git/*", "**/LICENSE", "**/README.md",
    ),
}

# Case-insensitive host filesystems by default
DEFAULT_CASE_INSENSITIVE = sys.platform in ("darwin", "win32")


# =============================================================================
# Config Document Schema
# =============================================================================

class ConfigError(Exception):
    """A protection config file exists but can't be used."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class LevelConfig(msgspec.Struct, frozen=True):
    """Patterns (and optional description) for one protection level."""
    patterns: tuple[str, ...]
    description: str | None = None


class ProtectionConfig(msgspec.Struct, frozen=True):
    """Top-level protection config document."""
    protection_levels: dict[str, LevelConfig]

    def level(self, name: str) -> LevelConfig | None:
        return self.protection_levels.get(name)

    def unknown_levels(self) -> list[str]:
        """Level names outside LEVEL_PRIORITY (accepted but never matched)."""
        return [name for name in self.protection_levels if name not in LEVEL_PRIORITY]


def _dedupe(patterns) -> tuple[str, ...]:
    return tuple(dict.fromkeys(patterns))


def _normalized(config: ProtectionConfig) -> ProtectionConfig:
    """Copy of config with duplicate patterns removed (first occurrence kept)."""
    return ProtectionConfig({
        name: LevelConfig(_dedupe(level.patterns), level.description)
        for name, level in config.protection_levels.items()
    })


def default_config() -> ProtectionConfig:
    """Built-in fallback used when no config file is available."""
    return ProtectionConfig({
        name: LevelConfig(patterns)
        for name, patterns in DEFAULT_PROTECTION_LEVELS.items()
    })


def load_protection_config(path: str | Path) -> ProtectionConfig | None:
    """Load and validate a protection config document.

    Args:
        path: Absolute path to the JSON document

    Returns:
        ProtectionConfig, or None if the file doesn't exist

    Raises:
        ConfigError: File exists but is unreadable, not valid JSON, or
            doesn't match the schema (e.g. missing protection_levels)
    """
    try:
        data = read_bytes_if_exists(path)
    except OSError as e:
        raise ConfigError(str(path), f"unreadable ({e})") from e
    if data is None:
        return None

    try:
        config = decode_json_as(data, ProtectionConfig)
    except msgspec.DecodeError as e:
        raise ConfigError(str(path), str(e)) from e
    return _normalized(config)


def merge_configs(base: ProtectionConfig, override: ProtectionConfig) -> ProtectionConfig:
    """Merge an agent override into the base config.

    Patterns are unioned per level (base first, duplicates dropped).
    The override's description wins when both are present.
    """
    merged: dict[str, LevelConfig] = {}
    names = dict.fromkeys([*base.protection_levels, *override.protection_levels])
    for name in names:
        base_level = base.level(name)
        override_level = override.level(name)
        patterns = [
            *(base_level.patterns if base_level else ()),
            *(override_level.patterns if override_level else ()),
        ]
        description = (override_level and override_level.description) or (
            base_level and base_level.description
        )
        merged[name] = LevelConfig(_dedupe(patterns), description or None)
    return ProtectionConfig(merged)


# =============================================================================
# Plugin Settings
# =============================================================================

def resolve_config_path(config_path: str) -> str:
    """Resolve a config path; relative paths are relative to PLUGIN_DIR."""
    expanded = os.path.expanduser(config_path)
    if os.path.isabs(expanded):
        return os.path.normpath(expanded)
    return os.path.normpath(os.path.join(PLUGIN_DIR, expanded))


@dataclass(frozen=True)
class GuardSettings:
    """Plugin-level settings consumed at startup."""
    config_path: str = DEFAULT_CONFIG_PATH
    fail_open: bool = False
    log_blocks: bool = True
    # agent id -> override config path
    agent_overrides: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    case_insensitive: bool = DEFAULT_CASE_INSENSITIVE

    @property
    def resolved_config_path(self) -> str:
        return resolve_config_path(self.config_path)

    @property
    def self_protection_patterns(self) -> tuple[str, ...]:
        """Hardcoded self-protection globs: package dir and active config file."""
        return (
            glob.escape(str(PLUGIN_DIR)) + "/**",
            glob.escape(self.resolved_config_path),
        )

    @classmethod
    def from_plugin_config(cls, cfg: Mapping[str, Any] | None) -> "GuardSettings":
        """Build settings from the host's plugin config mapping.

        Keys: configPath, failOpen, logBlocks, agentOverrides, caseInsensitive.
        Values of the wrong type are logged and replaced by their default
        ("false" is not a bool). Agent overrides without a string configPath
        are dropped.
        """
        if not isinstance(cfg, Mapping):
            if cfg is not None:
                _invalid_setting("<root>", cfg)
            cfg = {}

        overrides = {}
        raw_overrides = cfg.get("agentOverrides")
        if raw_overrides is not None and not isinstance(raw_overrides, Mapping):
            _invalid_setting("agentOverrides", raw_overrides)
            raw_overrides = None
        for agent_id, override in (raw_overrides or {}).items():
            override_path = override.get("configPath") if isinstance(override, Mapping) else None
            if isinstance(override_path, str) and override_path:
                overrides[str(agent_id)] = override_path
            else:
                _invalid_setting(f"agentOverrides.{agent_id}", override)

        config_path = cfg.get("configPath")
        if config_path is not None and not isinstance(config_path, str):
            _invalid_setting("configPath", config_path)
            config_path = None

        return cls(
            config_path=config_path or DEFAULT_CONFIG_PATH,
            fail_open=_setting_bool(cfg, "failOpen", False),
            log_blocks=_setting_bool(cfg, "logBlocks", True),
            agent_overrides=MappingProxyType(overrides),
            case_insensitive=_setting_bool(cfg, "caseInsensitive", DEFAULT_CASE_INSENSITIVE),
        )


def _invalid_setting(key: str, value: Any):
    log_event("config", "invalid_setting", {"key": key, "value": repr(value)}, "warning")


def _setting_bool(cfg: Mapping[str, Any], key: str, default: bool) -> bool:
    """Real bools only; anything else falls back to default."""
    value = cfg.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    _invalid_setting(key, value)
    return default
