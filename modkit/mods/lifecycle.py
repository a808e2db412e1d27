# modkit/mods/lifecycle.py
from __future__ import annotations
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from semantic_version import NpmSpec, Version

from modkit.content.asset_registry import AssetRegistry
from modkit.content.parser import ContentParseReport, ModContentParser
from modkit.content.type_registry import TypeRegistry
from modkit.core.errors import (
    ConflictError,
    DependentStillLoadedError,
    ManifestParseError,
    MissingDependencyError,
    MissingDependencyWarning,
    ModAlreadyLoadedError,
    ModLoadError,
    ModNotLoadedError,
    ModSystemError,
)
from modkit.core.logging import logContext
from modkit.mods.constants import MANIFEST_FILE_NAME, assetPrefix
from modkit.mods.discover import scanManifests
from modkit.mods.events import (
    EVENT_LOAD_ERROR,
    EVENT_LOADED,
    EVENT_RELOADED,
    EVENT_UNLOADED,
    ModEventBus,
)
from modkit.mods.manifest import ModManifest, loadManifest
from modkit.mods.package import LoadedPackage
from modkit.mods.resolver import resolveLoadOrder

logger = logging.getLogger(__name__)

__all__ = ["LoadAllResult", "ModLifecycleManager"]



@dataclass
class LoadAllResult:
    """
    Summary of one loadAll() pass.

      - loaded: ids loaded by this pass, in load order
      - failed: list of {id, reason, errorType[, path]}
      - skipped: disabled or already loaded ids
      - order: resolved load order of all discovered ids
    """
    loaded: list[str] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    order: list[str] = field(default_factory=list)
    warnings: list[MissingDependencyWarning] = field(default_factory=list, repr=False)

    @property
    def hasFailures(self) -> bool:
        return bool(self.failed)



def _failure(modId: str, err: BaseException, **extra: Any) -> dict[str, Any]:
    return {"id": modId, "reason": str(err), "errorType": type(err).__name__, **extra}



class ModLifecycleManager:
    """
    Owns the set of loaded mod packages.

    Loads packages in dependency order, unloads them when nothing depends on
    them anymore and reloads them in place. Every per-package failure is
    published as a "loadError" event; loadAll() never lets one package's
    failure stop the batch.
    """
    def __init__(
        self,
        modsRoot: Path | str,
        typeRegistry: TypeRegistry,
        assetRegistry: AssetRegistry,
        *,
        parser: ModContentParser | None = None,
        events: ModEventBus | None = None,
        hostVersion: str | None = None,
    ) -> None:
        self.modsRoot = Path(modsRoot)
        self.typeRegistry = typeRegistry
        self.assetRegistry = assetRegistry
        self.parser = parser if parser is not None else ModContentParser(typeRegistry, assetRegistry)
        self.events = events if events is not None else ModEventBus()
        self.hostVersion = hostVersion
        self._packages: dict[str, LoadedPackage] = {}

    # ----- Views -----

    @property
    def loadedPackages(self) -> Mapping[str, LoadedPackage]:
        return MappingProxyType(self._packages)

    def isLoaded(self, modId: str) -> bool:
        return modId in self._packages

    def getLoadedPackage(self, modId: str) -> LoadedPackage | None:
        return self._packages.get(modId)

    # ----- Loading -----

    def loadAll(self) -> LoadAllResult:
        """
        Discovers every package under modsRoot, orders them by dependencies
        and loads the enabled ones.

        Raises:
            CircularDependencyError: the dependency graph has a cycle; nothing is loaded
        """
        result = LoadAllResult()
        discovery = scanManifests(self.modsRoot)
        for packageDir, err in discovery.errors.items():
            result.failed.append(_failure(getattr(err, "modId", None) or packageDir.name, err, path=str(packageDir)))

        ordered = resolveLoadOrder(discovery.manifests, warnings=result.warnings)
        result.order = [manifest.id for manifest in ordered]

        for manifest in ordered:
            if not manifest.enabled:
                logger.info("Mod '%s' is disabled; skipping", manifest.id)
                result.skipped.append(manifest.id)
                continue
            if manifest.id in self._packages:
                logger.debug("Mod '%s' is already loaded; skipping", manifest.id)
                result.skipped.append(manifest.id)
                continue
            try:
                self.loadOne(manifest)
            except Exception as err:
                # Already logged and published by loadOne()
                result.failed.append(_failure(manifest.id, err))
                continue
            result.loaded.append(manifest.id)

        logger.info(
            "Mods loaded: %d (failed=%d, skipped=%d)",
            len(result.loaded),
            len(result.failed),
            len(result.skipped),
        )
        return result

    def loadFromPath(self, path: Path | str) -> LoadedPackage:
        """Reads the manifest of a single package directory and loads it."""
        return self.loadOne(loadManifest(path))

    def loadOne(self, manifest: ModManifest) -> LoadedPackage:
        """
        Loads one package whose dependencies are already loaded.

        Raises:
            ModAlreadyLoadedError, MissingDependencyError, ConflictError,
            ModLoadError, or whatever the content pipeline raised
        """
        modId = manifest.id
        with logContext(modId=modId, operation="load"):
            if modId in self._packages:
                err = ModAlreadyLoadedError(modId)
                self._publishLoadError(modId, err)
                raise err

            try:
                self._checkRelations(manifest)
                self._checkHostVersion(manifest)
                package = self._buildPackage(manifest)
            except ModLoadError as err:
                self._publishLoadError(modId, err)
                raise
            except Exception as err:
                # Drop whatever the failed attempt registered
                self.assetRegistry.unregisterByPrefix(assetPrefix(modId))
                logger.exception("Failed to load mod '%s'", modId)
                self.events.emit(EVENT_LOAD_ERROR, modId, err)
                raise

            self._packages[modId] = package
            logger.info("Loaded mod: '%s@%s' (%d asset(s))", modId, manifest.version, len(package.assetKeys))
            self.events.emit(EVENT_LOADED, modId)
            return package

    # ----- Unloading -----

    def unload(self, modId: str) -> None:
        """
        Evicts a package's assets and forgets it.

        Raises:
            ModNotLoadedError: modId is not loaded
            DependentStillLoadedError: another loaded package depends on it
        """
        if modId not in self._packages:
            raise ModNotLoadedError(modId)

        dependents = self.dependentsOf(modId)
        if dependents:
            err = DependentStillLoadedError(modId, dependents)
            logger.warning("%s", err)
            raise err

        with logContext(modId=modId, operation="unload"):
            removed = self.assetRegistry.unregisterByPrefix(assetPrefix(modId))
            del self._packages[modId]
            logger.info("Unloaded mod '%s' (%d asset(s) removed)", modId, removed)
            self.events.emit(EVENT_UNLOADED, modId)

    def dependentsOf(self, modId: str) -> list[str]:
        """Loaded packages that declare modId as a dependency, in load order."""
        return [
            otherId
            for otherId, other in self._packages.items()
            if otherId != modId and modId in other.manifest.dependencies
        ]

    # ----- Reloading -----

    def reload(self, modId: str) -> LoadedPackage:
        """
        Re-reads a loaded package from disk and replaces its assets.

        If the refreshed manifest cannot be read, or its dependencies and
        conflicts no longer hold, the old package stays loaded. Once the old
        assets are evicted, a content failure leaves the package unloaded,
        unless loaded dependents need it: then it stays loaded without assets.
        """
        old = self._packages.get(modId)
        if old is None:
            raise ModNotLoadedError(modId)

        with logContext(modId=modId, operation="reload"):
            try:
                if old.manifest.rootPath is None:
                    raise ModLoadError(f"Mod '{modId}' has no root path to reload from", modId=modId)
                manifest = loadManifest(old.manifest.rootPath)
                if manifest.id != modId:
                    raise ManifestParseError(
                        f"Manifest id changed from '{modId}' to '{manifest.id}'; unload and load it instead",
                        path=old.manifest.rootPath / MANIFEST_FILE_NAME,
                        modId=modId,
                    )
                self._checkRelations(manifest)
            except ModSystemError as err:
                self._publishLoadError(modId, err)
                raise

            manifest.loadOrder = old.manifest.loadOrder
            self._checkHostVersion(manifest)
            package = self._newPackage(manifest)
            # Old assets go first so keys dropped from disk do not linger
            self.assetRegistry.unregisterByPrefix(assetPrefix(modId))
            try:
                self._parseContent(package)
            except Exception as err:
                self.assetRegistry.unregisterByPrefix(assetPrefix(modId))
                dependents = self.dependentsOf(modId)
                if dependents:
                    # Dependents keep their dependency loaded; the empty record is retried on the next change
                    package.assetKeys.clear()
                    package.warnings.clear()
                    self._packages[modId] = package
                    logger.exception(
                        "Reload of mod '%s' failed; kept loaded without content for dependents %s",
                        modId,
                        dependents,
                    )
                else:
                    del self._packages[modId]
                    logger.exception("Reload of mod '%s' failed; mod is now unloaded", modId)
                self.events.emit(EVENT_LOAD_ERROR, modId, err)
                raise

            self._packages[modId] = package
            logger.info("Reloaded mod: '%s@%s' (%d asset(s))", modId, manifest.version, len(package.assetKeys))
            self.events.emit(EVENT_RELOADED, modId)
            return package

    # ----- Change detection -----

    def detectChangedPackages(self) -> set[str]:
        """
        Ids of loaded packages with at least one tracked file modified since
        load. Files that disappeared are not counted. Read-only.
        """
        changed: set[str] = set()
        for modId, package in self._packages.items():
            for filePath, recorded in package.fileTimestamps.items():
                try:
                    current = filePath.stat().st_mtime_ns
                except OSError:
                    continue
                if current > recorded:
                    logger.debug("Change detected in '%s' of mod '%s'", filePath, modId)
                    changed.add(modId)
                    break
        return changed

    # ----- Helpers -----

    def _checkRelations(self, manifest: ModManifest) -> None:
        modId = manifest.id
        for depId in manifest.dependencies:
            if depId == modId or depId not in self._packages:
                raise MissingDependencyError(modId, depId)
        for conflictId in manifest.conflicts:
            if conflictId != modId and conflictId in self._packages:
                raise ConflictError(modId, conflictId)
        # Conflicts are symmetric: a loaded package may also refuse this one
        for otherId, other in self._packages.items():
            if otherId == modId:
                continue
            if modId in other.manifest.conflicts:
                raise ConflictError(modId, otherId)

    def _checkHostVersion(self, manifest: ModManifest) -> None:
        if not self.hostVersion or not manifest.compatibleHostVersion:
            return
        try:
            spec = NpmSpec(manifest.compatibleHostVersion)
            host = Version.coerce(self.hostVersion)
        except ValueError as err:
            logger.warning(
                "Cannot check host compatibility of mod '%s' (GameVersion '%s'): %s",
                manifest.id,
                manifest.compatibleHostVersion,
                err,
            )
            return
        if not spec.match(host):
            logger.warning(
                "Mod '%s' targets host version '%s' but the host is '%s'",
                manifest.id,
                manifest.compatibleHostVersion,
                self.hostVersion,
            )

    def _buildPackage(self, manifest: ModManifest) -> LoadedPackage:
        package = self._newPackage(manifest)
        self._parseContent(package)
        return package

    def _newPackage(self, manifest: ModManifest) -> LoadedPackage:
        if manifest.rootPath is None:
            raise ModLoadError(f"Mod '{manifest.id}' has no root path", modId=manifest.id)
        # Taken before parsing so a save racing the parse still shows up as a change
        return LoadedPackage(manifest=manifest, fileTimestamps=self._snapshotFiles(manifest))

    def _parseContent(self, package: LoadedPackage) -> None:
        rootPath = package.rootPath
        assert rootPath is not None
        report = ContentParseReport()
        for contentPath in package.manifest.effectiveContentPaths:
            report.merge(self.parser.parseDirectory(rootPath / contentPath, package))
        package.warnings.extend(report.warnings)
        if report.failedFiles:
            logger.warning("Mod '%s' skipped %d unreadable content file(s)", package.id, len(report.failedFiles))

    @staticmethod
    def _snapshotFiles(manifest: ModManifest) -> dict[Path, int]:
        rootPath = manifest.rootPath
        assert rootPath is not None
        timestamps: dict[Path, int] = {}
        manifestPath = rootPath / MANIFEST_FILE_NAME
        if manifestPath.is_file():
            timestamps[manifestPath] = manifestPath.stat().st_mtime_ns
        for contentPath in manifest.effectiveContentPaths:
            directory = rootPath / contentPath
            if not directory.is_dir():
                continue
            for filePath in sorted(directory.rglob("*")):
                if filePath.is_file():
                    timestamps[filePath] = filePath.stat().st_mtime_ns
        return timestamps

    def _publishLoadError(self, modId: str, err: BaseException) -> None:
        logger.error("Failed to load mod '%s': %s", modId, err)
        self.events.emit(EVENT_LOAD_ERROR, modId, err)
