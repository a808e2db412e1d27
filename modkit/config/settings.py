# modkit/config/settings.py
from __future__ import annotations
import json5, os
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, JsonValue

import logging
logger = logging.getLogger(__name__)

__all__ = [
    "SETTINGS_ENV_VAR", "USER_SETTINGS_PATH", "DEFAULT_SETTINGS",
    "ModsSettings", "HotReloadSettings", "LoggingSettings", "ModSystemSettings",
    "loadUserSettings", "loadSettings", "deepMerge",
]



SETTINGS_ENV_VAR = "MODKIT_SETTINGS"
USER_SETTINGS_PATH = Path("~/.modkit/modkit.json5")

DEFAULT_SETTINGS: dict[str, JsonValue] = {
    "__source": "MODKIT_DEFAULTS",
    "mods": {"root": "Mods", "autoLoad": True, "createExampleMod": True, "hostVersion": None},
    "hotReload": {"enabled": True, "checkIntervalMs": 500},
    "logging": {"devMode": True, "file": None},
}



class ModsSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    root: Path = Path("Mods")
    autoLoad: bool = True
    createExampleMod: bool = True
    # Version of the host application, compared against manifest "GameVersion" ranges.
    hostVersion: str | None = None



class HotReloadSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    # 0 disables the periodic check; changes are then only picked up on focus/explicit checks.
    checkIntervalMs: int = Field(default=500, ge=0)



class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    devMode: bool = True
    file: Path | None = None



class ModSystemSettings(BaseModel):
    """Validated settings tree for the mod system."""
    model_config = ConfigDict(extra="ignore")

    mods: ModsSettings = Field(default_factory=ModsSettings)
    hotReload: HotReloadSettings = Field(default_factory=HotReloadSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)



def _userSettingsPath() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return USER_SETTINGS_PATH.expanduser()



def loadUserSettings(path: Path | str | None = None) -> JsonValue:
    filePath = Path(path).expanduser() if path is not None else _userSettingsPath()
    if filePath.exists():
        try:
            data = json5.loads(filePath.read_text(encoding="utf-8"))
        except Exception as err:
            logger.error("Failed to parse '%s': %s", filePath, err)
            return {}
        if not isinstance(data, dict):
            logger.error("Settings file '%s' must contain an object, got %s", filePath, type(data).__name__)
            return {}
        return data
    return {}



@lru_cache(maxsize=1)
def _cachedSettings() -> ModSystemSettings:
    return ModSystemSettings.model_validate(deepMerge(DEFAULT_SETTINGS, loadUserSettings()))



def loadSettings(path: Path | str | None = None, *, overrides: dict[str, Any] | None = None) -> ModSystemSettings:
    """
    Returns settings merged from built-in defaults, the user json5 file and
    optional in-memory overrides (highest precedence).

    Without arguments the result is cached for the process; pass an explicit
    path or overrides to get a fresh, uncached instance.
    """
    if path is None and overrides is None:
        return _cachedSettings()
    merged = deepMerge(DEFAULT_SETTINGS, loadUserSettings(path))
    if overrides:
        merged = deepMerge(merged, cast(JsonValue, overrides))
    return ModSystemSettings.model_validate(merged)



def deepMerge(first: JsonValue, second: JsonValue) -> JsonValue:
    """
    Returns a new JsonValue where keys from `second` override/extend `first`.
    Only merges recursively when BOTH sides are JSON objects (dicts).
    For all other JSON types the right-hand value `second` replaces `first`.
    """
    if isinstance(first, dict) and isinstance(second, dict):
        out: dict[str, JsonValue] = dict(first)
        for key, value in second.items():
            out[key] = deepMerge(out[key], value) if key in out else value
        return cast(JsonValue, out)
    return second
