# modkit/mods/manifest.py
from __future__ import annotations
from pathlib import Path
from typing import Any

import json5
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modkit.mods.constants import ASSET_KEY_SEPARATOR, MANIFEST_FILE_NAME
from modkit.core.errors import ManifestNotFoundError, ManifestParseError

__all__ = ["ModManifest", "loadManifest", "manifestPathFor"]



class ModManifest(BaseModel):
    """
    Represents a validated mod manifest.

    Wire keys are the PascalCase names used in manifest.json ("Id", "Name",
    "GameVersion", ...). rootPath and loadOrder are never read from the file;
    they are stamped by loadManifest() and resolveLoadOrder().
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(alias="Id", min_length=1)
    displayName: str = Field(default="", alias="Name")
    version: str = Field(default="0.0.0", alias="Version")
    author: str = Field(default="", alias="Author")
    description: str = Field(default="", alias="Description")
    dependencies: list[str] = Field(default_factory=list, alias="Dependencies")
    conflicts: list[str] = Field(default_factory=list, alias="Conflicts")
    compatibleHostVersion: str = Field(default="", alias="GameVersion")
    # None means "scan the whole package root"
    contentPaths: list[str] | None = Field(default=None, alias="ContentPaths")
    enabled: bool = Field(default=True, alias="Enabled")

    rootPath: Path | None = Field(default=None, exclude=True)
    loadOrder: int = Field(default=-1, exclude=True)

    @field_validator("id")
    @classmethod
    def _stripId(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Id must not be blank")
        # Asset keys are "<id>:<name>", so an id must be a whole namespace on its own
        if ASSET_KEY_SEPARATOR in value:
            raise ValueError(f"Id must not contain '{ASSET_KEY_SEPARATOR}'")
        return value

    @field_validator("displayName", "version", "author", "description", "compatibleHostVersion", mode="before")
    @classmethod
    def _nullAsEmpty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("dependencies", "conflicts", mode="before")
    @classmethod
    def _nullAsEmptyList(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def effectiveContentPaths(self) -> list[str]:
        return list(self.contentPaths) if self.contentPaths is not None else [""]

    def __str__(self) -> str:
        return f"{self.displayName or self.id} ({self.id}@{self.version})"



def manifestPathFor(path: Path | str) -> Path:
    """Accepts a package directory or the manifest file itself."""
    path = Path(path)
    if path.name == MANIFEST_FILE_NAME and not path.is_dir():
        return path
    return path / MANIFEST_FILE_NAME



def loadManifest(path: Path | str) -> ModManifest:
    """
    Parses one package manifest and stamps its absolute rootPath.

    Raises:
        ManifestNotFoundError: no manifest.json in the package directory
        ManifestParseError: body is not valid json5, not an object, or fails validation
    """
    manifestPath = manifestPathFor(path)
    if not manifestPath.is_file():
        raise ManifestNotFoundError(f"No {MANIFEST_FILE_NAME} found in '{manifestPath.parent}'", path=manifestPath)

    try:
        raw = json5.loads(manifestPath.read_text(encoding="utf-8"))
    except (ValueError, UnicodeDecodeError) as err:
        raise ManifestParseError(f"Failed to parse manifest '{manifestPath}': {err}", path=manifestPath) from err

    if not isinstance(raw, dict):
        raise ManifestParseError(
            f"Manifest '{manifestPath}' must be an object, got {type(raw).__name__}",
            path=manifestPath,
        )

    try:
        manifest = ModManifest.model_validate(raw)
    except ValidationError as err:
        modId = raw.get("Id") if isinstance(raw.get("Id"), str) else None
        raise ManifestParseError(f"Invalid manifest '{manifestPath}': {err}", path=manifestPath, modId=modId) from err

    manifest.rootPath = manifestPath.parent.resolve(strict=False)
    return manifest
