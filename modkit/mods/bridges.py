# modkit/mods/bridges.py
from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Protocol, runtime_checkable

from modkit.mods.events import ModLifecycleListener
from modkit.mods.lifecycle import ModLifecycleManager
from modkit.mods.manifest import loadManifest
from modkit.mods.package import LoadedPackage

logger = logging.getLogger(__name__)

__all__ = ["DistributionBridge", "installFromDistribution", "ScriptingBridge"]



@runtime_checkable
class DistributionBridge(Protocol):
    """
    External package source (workshop, store, launcher...). Only has to
    tell where a downloaded package lives on disk.
    """

    def localPathFor(self, packageId: str) -> Path | None:
        """Local package directory, or None if it is not installed (yet)."""
        ...



def installFromDistribution(
    manager: ModLifecycleManager,
    bridge: DistributionBridge,
    packageId: str,
) -> LoadedPackage | None:
    """
    Loads a package delivered by a distribution bridge, or reloads it when
    a package with the same manifest id is already loaded.
    Returns None when the bridge has no local copy.
    """
    localPath = bridge.localPathFor(packageId)
    if localPath is None:
        logger.warning("Distribution package '%s' has no local copy; skipping", packageId)
        return None

    manifest = loadManifest(localPath)
    if manager.isLoaded(manifest.id):
        logger.info("Distribution package '%s' is loaded as '%s'; reloading", packageId, manifest.id)
        return manager.reload(manifest.id)
    return manager.loadOne(manifest)



class ScriptingBridge(ModLifecycleListener, ABC):
    """
    Base for script runtimes that keep one environment per mod package.

    Attach with `bus.addListener(bridge)`. Loaded packages are started,
    unloaded ones stopped and reloaded ones restarted. Only packages that
    were started are ever stopped.
    """
    def __init__(self, manager: ModLifecycleManager) -> None:
        self.manager = manager
        self._running: set[str] = set()

    @property
    def runningPackages(self) -> list[str]:
        return sorted(self._running)

    @abstractmethod
    def startPackage(self, package: LoadedPackage) -> None:
        ...

    @abstractmethod
    def stopPackage(self, modId: str) -> None:
        ...

    def onModLoaded(self, modId: str) -> None:
        package = self.manager.getLoadedPackage(modId)
        if package is None:
            return
        self.startPackage(package)
        self._running.add(modId)

    def onModUnloaded(self, modId: str) -> None:
        if modId not in self._running:
            return
        self._running.discard(modId)
        self.stopPackage(modId)

    def onModReloaded(self, modId: str) -> None:
        self.onModUnloaded(modId)
        self.onModLoaded(modId)

    def onModLoadError(self, modId: str, error: BaseException) -> None:
        # A failed reload leaves the package unloaded
        if not self.manager.isLoaded(modId):
            self.onModUnloaded(modId)
