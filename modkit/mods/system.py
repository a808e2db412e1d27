# modkit/mods/system.py
from __future__ import annotations
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from modkit.config.settings import ModSystemSettings, loadSettings
from modkit.content.asset_registry import AssetRegistry, DefaultAssetRegistry
from modkit.content.media import MediaLoader
from modkit.content.parser import ModContentParser
from modkit.content.type_registry import DefaultTypeRegistry, TypeRegistry
from modkit.core.logging import configureLogging
from modkit.mods.constants import assetKey
from modkit.mods.events import EVENT_MODS_LOADED, ModEventBus
from modkit.mods.hot_reload import HotReloadTracker
from modkit.mods.lifecycle import LoadAllResult, ModLifecycleManager
from modkit.mods.scaffold import ensureModsFolder
from modkit.mods.validator import ModValidationResult, validateModsFolder

logger = logging.getLogger(__name__)

__all__ = ["ModSystem"]



class ModSystem:
    """
    Wires the mod system together from settings.

    The host owns the instance (there is no global one), calls start() once
    and then forwards its frame ticks and window focus changes.
    """
    def __init__(
        self,
        settings: ModSystemSettings | None = None,
        *,
        typeRegistry: TypeRegistry | None = None,
        assetRegistry: AssetRegistry | None = None,
        mediaLoader: MediaLoader | None = None,
    ) -> None:
        self.settings = settings if settings is not None else loadSettings()
        self.typeRegistry: TypeRegistry = typeRegistry if typeRegistry is not None else DefaultTypeRegistry()
        self.assetRegistry: AssetRegistry = assetRegistry if assetRegistry is not None else DefaultAssetRegistry()
        self.events = ModEventBus()
        self.parser = ModContentParser(self.typeRegistry, self.assetRegistry, mediaLoader)
        self.manager = ModLifecycleManager(
            self.settings.mods.root,
            self.typeRegistry,
            self.assetRegistry,
            parser=self.parser,
            events=self.events,
            hostVersion=self.settings.mods.hostVersion,
        )
        self.hotReload = HotReloadTracker(
            self.manager,
            enabled=self.settings.hotReload.enabled,
            checkIntervalMs=self.settings.hotReload.checkIntervalMs,
            events=self.events,
        )
        self.lastLoadResult: LoadAllResult | None = None

    @property
    def modsRoot(self) -> Path:
        return self.manager.modsRoot

    def start(self, *, setupLogging: bool = False) -> LoadAllResult | None:
        """
        Prepares the mods folder and, when mods.autoLoad is set, loads every
        package. Returns the load summary, or None if nothing was loaded.
        """
        if setupLogging:
            configureLogging(self.settings.logging)
        ensureModsFolder(self.modsRoot, createExample=self.settings.mods.createExampleMod)
        logger.info("Mod system initialized (root='%s')", self.modsRoot)
        if not self.settings.mods.autoLoad:
            return None
        return self.loadMods()

    def loadMods(self) -> LoadAllResult:
        result = self.manager.loadAll()
        self.lastLoadResult = result
        if result.hasFailures:
            logger.warning("%d mod(s) failed to load: %s", len(result.failed), ", ".join(entry["id"] for entry in result.failed))
        self.events.emit(EVENT_MODS_LOADED, result)
        return result

    # ----- Host loop -----

    def tick(self) -> list[str]:
        return self.hotReload.tick()

    def notifyFocusChanged(self, hasFocus: bool) -> None:
        self.hotReload.notifyFocusChanged(hasFocus)

    # ----- Content access -----

    def getModAsset(self, modId: str, name: str) -> Any | None:
        return self.assetRegistry.get(assetKey(modId, name))

    def registerCustomTypes(self, callback: Callable[[TypeRegistry], Any]) -> None:
        """Lets the host register its own content types on the shared registry."""
        callback(self.typeRegistry)

    def subscribe(self, eventName: str, handler: Callable[..., Any]) -> Callable[[], None]:
        return self.events.subscribe(eventName, handler)

    def validateMods(self) -> list[ModValidationResult]:
        return validateModsFolder(self.modsRoot)
