# modkit/mods/validator.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path
from collections.abc import Callable
from typing import Any, cast

import fastjsonschema
import json5
import semantic_version
from semantic_version import NpmSpec

from modkit.mods.constants import ASSET_KEY_SEPARATOR, CONTENT_FILE_PATTERN, MANIFEST_FILE_NAME, TYPE_TAG
from modkit.mods.discover import listPackageDirs

logger = logging.getLogger(__name__)

__all__ = ["MANIFEST_SCHEMA", "ModValidationResult", "validateModDirectory", "validateModsFolder"]



_STRING_OR_NULL = {"type": ["string", "null"]}
_STRING_LIST_OR_NULL = {"type": ["array", "null"], "items": {"type": "string"}}

MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "Id": _STRING_OR_NULL,
        "Name": _STRING_OR_NULL,
        "Version": _STRING_OR_NULL,
        "Author": _STRING_OR_NULL,
        "Description": _STRING_OR_NULL,
        "GameVersion": _STRING_OR_NULL,
        "Dependencies": _STRING_LIST_OR_NULL,
        "Conflicts": _STRING_LIST_OR_NULL,
        "ContentPaths": _STRING_LIST_OR_NULL,
        "Enabled": {"type": "boolean"},
    },
}

REQUIRED_FIELDS = ("Id", "Name", "Version")

_validateManifestSchema = cast(Callable[[Any], None], fastjsonschema.compile(MANIFEST_SCHEMA))



@dataclass
class ModValidationResult:
    """Authoring diagnostics for one package directory."""
    modPath: Path
    modId: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def isValid(self) -> bool:
        return not self.errors



def validateModDirectory(path: Path | str) -> ModValidationResult:
    """
    Checks a package directory without loading it.

    Errors make the package unloadable (missing or malformed manifest,
    missing required fields, invalid JSON content). Warnings point at likely
    authoring mistakes that still load.
    """
    modPath = Path(path)
    result = ModValidationResult(modPath=modPath)
    manifestPath = modPath / MANIFEST_FILE_NAME
    if not manifestPath.is_file():
        result.errors.append(f"Missing {MANIFEST_FILE_NAME}")
        return result

    try:
        raw = json5.loads(manifestPath.read_text(encoding="utf-8"))
    except (ValueError, UnicodeDecodeError) as err:
        result.errors.append(f"Failed to parse {MANIFEST_FILE_NAME}: {err}")
        return result

    try:
        _validateManifestSchema(raw)
    except fastjsonschema.JsonSchemaValueException as err:
        result.errors.append(f"Invalid manifest: {err.message}")
        return result

    for key in REQUIRED_FIELDS:
        value = raw.get(key)
        if not isinstance(value, str) or not value.strip():
            result.errors.append(f"Manifest missing required field: {key}")
    if isinstance(raw.get("Id"), str) and raw["Id"].strip():
        result.modId = raw["Id"].strip()
        if ASSET_KEY_SEPARATOR in result.modId:
            result.errors.append(f"Id '{result.modId}' must not contain '{ASSET_KEY_SEPARATOR}'")

    version = raw.get("Version")
    if isinstance(version, str) and version.strip() and not semantic_version.validate(version.strip()):
        result.warnings.append(f"Version '{version}' does not follow semantic versioning (x.y.z)")

    hostRange = raw.get("GameVersion")
    if isinstance(hostRange, str) and hostRange.strip():
        try:
            NpmSpec(hostRange.strip())
        except ValueError:
            result.warnings.append(f"GameVersion '{hostRange}' is not a valid version range")

    for contentPath in raw.get("ContentPaths") or []:
        if not (modPath / contentPath).is_dir():
            result.warnings.append(f"Content path does not exist: {contentPath}")

    _validateContentFiles(modPath, manifestPath, result)
    return result



def _validateContentFiles(modPath: Path, manifestPath: Path, result: ModValidationResult) -> None:
    for filePath in sorted(modPath.rglob(CONTENT_FILE_PATTERN)):
        if filePath == manifestPath or not filePath.is_file():
            continue
        relativePath = filePath.relative_to(modPath).as_posix()
        try:
            record = json5.loads(filePath.read_text(encoding="utf-8"))
        except (ValueError, UnicodeDecodeError) as err:
            result.errors.append(f"Invalid JSON in {relativePath}: {err}")
            continue
        if not isinstance(record, dict) or TYPE_TAG not in record:
            result.warnings.append(f"Content file missing {TYPE_TAG} field: {relativePath}")



def validateModsFolder(rootDirectory: Path | str) -> list[ModValidationResult]:
    """Validates every package directory under the mods root, in discovery order."""
    root = Path(rootDirectory)
    if not root.is_dir():
        logger.warning("Mods folder '%s' does not exist; nothing to validate", root)
        return []
    results = [validateModDirectory(packageDir) for packageDir in listPackageDirs(root)]
    logger.info(
        "Validated %d mod(s): %d with errors",
        len(results),
        sum(1 for result in results if not result.isValid),
    )
    return results
