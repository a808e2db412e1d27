# modkit/mods/hot_reload.py
from __future__ import annotations
import logging
from collections.abc import Callable

from modkit.core.time import nowMonotonicMs
from modkit.mods.events import EVENT_PACKAGE_RELOADED, EVENT_PACKAGES_RELOADED, ModEventBus
from modkit.mods.lifecycle import ModLifecycleManager

logger = logging.getLogger(__name__)

__all__ = ["HotReloadTracker"]



class HotReloadTracker:
    """
    Detects changed mod packages and reloads them at tick boundaries.

    Changes found by a check are queued and reloaded on the *next* tick()
    so that editors have finished writing the files. Nothing here runs on
    its own thread; the host drives it through tick() and
    notifyFocusChanged().
    """
    def __init__(
        self,
        manager: ModLifecycleManager,
        *,
        enabled: bool = True,
        checkIntervalMs: int = 500,
        events: ModEventBus | None = None,
        clock: Callable[[], int] = nowMonotonicMs,
    ) -> None:
        self.manager = manager
        self.enabled = enabled
        # 0 disables the periodic check
        self.checkIntervalMs = checkIntervalMs
        self.events = events if events is not None else manager.events
        self._clock = clock
        self._pending: list[str] = []
        self._hasFocus = True
        self._lastCheckMs = clock()

    @property
    def pending(self) -> list[str]:
        return list(self._pending)

    @property
    def hasFocus(self) -> bool:
        return self._hasFocus

    # ----- Triggers -----

    def notifyFocusChanged(self, hasFocus: bool) -> None:
        """Host window focus changed. Regaining focus triggers a check."""
        if not self.enabled:
            return
        if hasFocus and not self._hasFocus:
            self.checkForChanges()
        self._hasFocus = hasFocus

    def checkForChanges(self) -> list[str]:
        """
        Queues every loaded package with modified files. Returns the ids
        found by this check (already queued ones included).
        """
        if not self.enabled:
            return []
        self._lastCheckMs = self._clock()
        changed = sorted(self.manager.detectChangedPackages())
        if changed:
            logger.info("Detected changes in %d mod(s): %s", len(changed), ", ".join(changed))
        for modId in changed:
            if modId not in self._pending:
                self._pending.append(modId)
        return changed

    def tick(self) -> list[str]:
        """
        Reloads the packages queued before this call, then runs the periodic
        check if it is due. Returns the ids reloaded by this tick.
        """
        if not self.enabled or not self._hasFocus:
            return []

        reloaded: list[str] = []
        if self._pending:
            batch, self._pending = self._pending, []
            for modId in batch:
                if self._reloadOne(modId):
                    reloaded.append(modId)
            logger.info("Reloaded %d of %d changed mod(s)", len(reloaded), len(batch))
            self.events.emit(EVENT_PACKAGES_RELOADED, list(reloaded))

        if self.checkIntervalMs > 0 and self._clock() - self._lastCheckMs >= self.checkIntervalMs:
            self.checkForChanges()
        return reloaded

    # ----- Forced reloads -----

    def forceReload(self, modId: str) -> bool:
        """Reloads one package right away. Returns False if the reload failed."""
        if not self._reloadOne(modId):
            return False
        self.events.emit(EVENT_PACKAGES_RELOADED, [modId])
        return True

    def forceReloadAll(self) -> list[str]:
        """Reloads every loaded package right away, in load order."""
        reloaded = [modId for modId in list(self.manager.loadedPackages) if self._reloadOne(modId)]
        self.events.emit(EVENT_PACKAGES_RELOADED, list(reloaded))
        return reloaded

    def _reloadOne(self, modId: str) -> bool:
        try:
            self.manager.reload(modId)
        except Exception as err:
            # The manager already logged and published the details
            logger.error("Failed to reload mod '%s': %s", modId, err)
            return False
        self.events.emit(EVENT_PACKAGE_RELOADED, modId)
        return True
