# modkit/core/errors.py
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

__all__ = [
    "ModSystemError",
    "ManifestError",
    "ManifestParseError",
    "ManifestNotFoundError",
    "ContentParseError",
    "DuplicateManifestError",
    "CircularDependencyError",
    "ModLoadError",
    "MissingDependencyError",
    "ConflictError",
    "ModAlreadyLoadedError",
    "ModNotLoadedError",
    "DependentStillLoadedError",
    "ModSystemWarning",
    "MissingDependencyWarning",
    "UnknownContentTypeWarning",
    "FieldBindingWarning",
    "AssetCollisionWarning",
    "DuplicateAssetKeyWarning",
]



# ------------------------------------------------------------------ #
# Errors
# ------------------------------------------------------------------ #

class ModSystemError(RuntimeError):
    """Base class for mod system errors."""

    def __init__(self, message: str, *, modId: str | None = None) -> None:
        super().__init__(message)
        self.modId: str | None = modId



class ManifestError(ModSystemError):
    """Base class for manifest read failures. Caller skips the package."""

    def __init__(self, message: str, *, path: Path | None = None, modId: str | None = None) -> None:
        super().__init__(message, modId=modId)
        self.path: Path | None = path



class ManifestParseError(ManifestError):
    """Raised when manifest.json exists but is malformed or fails validation."""



class ManifestNotFoundError(ManifestError):
    """Raised when a package directory has no manifest.json."""



class ContentParseError(ModSystemError):
    """Raised for a content file that cannot be read as a JSON object. Only that file is skipped."""

    def __init__(self, message: str, *, path: Path | None = None, modId: str | None = None) -> None:
        super().__init__(message, modId=modId)
        self.path: Path | None = path



class DuplicateManifestError(ModSystemError):
    """Raised when two manifests presented together share the same id."""



class CircularDependencyError(ModSystemError):
    """
    Raised when the dependency graph contains a cycle.
    Fatal for the whole resolution batch; no partial order is returned.
    """

    def __init__(self, modId: str, cycle: Sequence[str] = ()) -> None:
        self.cycle: tuple[str, ...] = tuple(cycle)
        detail = " -> ".join(self.cycle) if self.cycle else modId
        super().__init__(f"Circular dependency detected involving '{modId}': {detail}", modId=modId)



class ModLoadError(ModSystemError):
    """Base class for errors that are fatal to a single package load."""



class MissingDependencyError(ModLoadError):
    def __init__(self, modId: str, dependencyId: str) -> None:
        super().__init__(f"Mod '{modId}' is missing dependency '{dependencyId}'", modId=modId)
        self.dependencyId = dependencyId



class ConflictError(ModLoadError):
    def __init__(self, modId: str, conflictId: str) -> None:
        super().__init__(f"Mod '{modId}' conflicts with loaded mod '{conflictId}'", modId=modId)
        self.conflictId = conflictId



class ModAlreadyLoadedError(ModLoadError):
    def __init__(self, modId: str) -> None:
        super().__init__(f"Mod '{modId}' is already loaded. Use reload() to reload it.", modId=modId)



class ModNotLoadedError(ModSystemError):
    def __init__(self, modId: str) -> None:
        super().__init__(f"Mod '{modId}' is not loaded", modId=modId)



class DependentStillLoadedError(ModSystemError):
    def __init__(self, modId: str, dependents: Sequence[str]) -> None:
        self.dependents: tuple[str, ...] = tuple(dependents)
        super().__init__(
            f"Cannot unload '{modId}': still required by {', '.join(self.dependents)}",
            modId=modId,
        )



# ------------------------------------------------------------------ #
# Non-fatal diagnostics
# ------------------------------------------------------------------ #

class ModSystemWarning(UserWarning):
    """
    Non-fatal condition. These are logged and collected into reports,
    never raised out of a batch operation.
    """

    def __init__(self, message: str, *, modId: str | None = None, path: Path | None = None) -> None:
        super().__init__(message)
        self.modId = modId
        self.path = path

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""



class MissingDependencyWarning(ModSystemWarning):
    def __init__(self, modId: str, dependencyId: str) -> None:
        super().__init__(f"Mod '{modId}' depends on missing mod '{dependencyId}'", modId=modId)
        self.dependencyId = dependencyId



class UnknownContentTypeWarning(ModSystemWarning):
    def __init__(self, typeName: str | None, *, modId: str | None = None, path: Path | None = None) -> None:
        if typeName is None:
            text = f"No $type field in '{path}'"
        else:
            text = f"Unknown content type '{typeName}'" + (f" in '{path}'" if path else "")
        super().__init__(text, modId=modId, path=path)
        self.typeName = typeName



class FieldBindingWarning(ModSystemWarning):
    def __init__(
        self,
        fieldName: str,
        reason: str,
        *,
        typeName: str | None = None,
        modId: str | None = None,
        path: Path | None = None,
    ) -> None:
        owner = f"{typeName}.{fieldName}" if typeName else fieldName
        super().__init__(f"Cannot bind field '{owner}': {reason}", modId=modId, path=path)
        self.fieldName = fieldName
        self.typeName = typeName
        self.reason = reason



class AssetCollisionWarning(ModSystemWarning):
    def __init__(self, key: str, previousOwner: str | None, newOwner: str | None) -> None:
        super().__init__(
            f"Asset key '{key}' registered by '{newOwner}' overwrites asset owned by '{previousOwner}'",
            modId=newOwner,
        )
        self.key = key
        self.previousOwner = previousOwner
        self.newOwner = newOwner



class DuplicateAssetKeyWarning(ModSystemWarning):
    """Two content files of one package share a file stem and thus an asset key."""

    def __init__(self, key: str, *, modId: str | None = None, path: Path | None = None) -> None:
        super().__init__(
            f"Content file '{path}' reuses asset key '{key}' of mod '{modId}'; the earlier asset is replaced",
            modId=modId,
            path=path,
        )
        self.key = key
