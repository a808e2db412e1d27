# modkit/mods/events.py
from __future__ import annotations
import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

__all__ = [
    "EVENT_LOADED", "EVENT_UNLOADED", "EVENT_RELOADED", "EVENT_LOAD_ERROR",
    "EVENT_PACKAGE_RELOADED", "EVENT_PACKAGES_RELOADED", "EVENT_MODS_LOADED",
    "ModEventBus", "ModLifecycleListener",
]



EVENT_LOADED = "loaded"                         # (modId)
EVENT_UNLOADED = "unloaded"                     # (modId)
EVENT_RELOADED = "reloaded"                     # (modId)
EVENT_LOAD_ERROR = "loadError"                  # (modId, error)
EVENT_PACKAGE_RELOADED = "packageReloaded"      # (modId), hot-reload tracker
EVENT_PACKAGES_RELOADED = "packagesReloaded"    # (list of modIds), hot-reload tracker
EVENT_MODS_LOADED = "modsLoaded"                # (LoadAllResult), facade after a full load

Handler = Callable[..., Any]



class ModEventBus:
    """
    Fire-and-observe event channel.

    Subscribers are kept in registration order per event name. A subscriber
    that raises is logged and skipped; later subscribers still run.
    """
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def subscribe(self, eventName: str, handler: Handler) -> Callable[[], None]:
        """Registers handler and returns a callable that removes it again."""
        if not callable(handler):
            raise TypeError(f"Handler for '{eventName}' must be callable")
        self._handlers.setdefault(eventName, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(eventName, handler)

        return unsubscribe

    def unsubscribe(self, eventName: str, handler: Handler) -> bool:
        handlers = self._handlers.get(eventName)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    def subscriberCount(self, eventName: str) -> int:
        return len(self._handlers.get(eventName, ()))

    def emit(self, eventName: str, *args: Any) -> None:
        # Copy so handlers may (un)subscribe while the event is dispatched
        handlers = list(self._handlers.get(eventName, ()))
        logger.debug("Emitting '%s' to %d subscriber(s)", eventName, len(handlers))
        for handler in handlers:
            try:
                handler(*args)
            except Exception:
                logger.exception("Subscriber %r of event '%s' raised an exception.", handler, eventName)
                continue # keep notifying the rest

    def addListener(self, listener: ModLifecycleListener) -> Callable[[], None]:
        """Subscribes every lifecycle method of listener. Returns a detach callable."""
        detachers = [
            self.subscribe(EVENT_LOADED, listener.onModLoaded),
            self.subscribe(EVENT_UNLOADED, listener.onModUnloaded),
            self.subscribe(EVENT_RELOADED, listener.onModReloaded),
            self.subscribe(EVENT_LOAD_ERROR, listener.onModLoadError),
        ]

        def detach() -> None:
            for unsubscribe in detachers:
                unsubscribe()

        return detach



class ModLifecycleListener:
    """
    Optional hook interface for systems that want to observe mod lifecycle
    (e.g. a scripting bridge starting and stopping per-mod environments).

    Implementations may override any subset of methods. All methods have
    safe no-op defaults.
    """

    def onModLoaded(self, modId: str) -> None:
        """Called after all content of the mod is registered."""
        return

    def onModUnloaded(self, modId: str) -> None:
        """Called after the mod's assets were evicted."""
        return

    def onModReloaded(self, modId: str) -> None:
        """Called after the mod's old assets were replaced by the new ones."""
        return

    def onModLoadError(self, modId: str, error: BaseException) -> None:
        return
