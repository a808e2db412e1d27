# modkit/content/asset_registry.py
from __future__ import annotations
import logging
from typing import Any, Protocol, runtime_checkable

from modkit.core.errors import AssetCollisionWarning

logger = logging.getLogger(__name__)

__all__ = ["AssetRegistry", "DefaultAssetRegistry"]



@runtime_checkable
class AssetRegistry(Protocol):
    """
    Namespaced key -> object store supplied by the host.
    Keys follow "<packageId>:<localName>".
    """

    def register(self, key: str, value: Any, *, owner: str | None = None) -> None:
        ...

    def get(self, key: str) -> Any | None:
        ...

    def has(self, key: str) -> bool:
        ...

    def unregister(self, key: str) -> None:
        ...

    def unregisterByPrefix(self, prefix: str) -> int:
        """Removes every key starting with prefix. Returns the number removed."""
        ...

    def allKeys(self) -> list[str]:
        ...



class DefaultAssetRegistry:
    """
    In-memory asset store.

    Last write wins. Overwriting a key owned by a different package is
    reported as a naming collision (warning), never an error.
    """
    def __init__(self) -> None:
        self._assets: dict[str, Any] = {}
        self._owners: dict[str, str | None] = {}
        self.collisions: list[AssetCollisionWarning] = []

    def register(self, key: str, value: Any, *, owner: str | None = None) -> None:
        if not key or not isinstance(key, str):
            raise ValueError("Asset key must be a non-empty string")
        if value is None:
            logger.warning("Attempted to register None asset with key '%s'", key)
            return

        if key in self._assets:
            previousOwner = self._owners.get(key)
            if previousOwner is not None and owner is not None and previousOwner != owner:
                collision = AssetCollisionWarning(key, previousOwner, owner)
                self.collisions.append(collision)
                logger.warning("Naming collision: %s", collision.message)
            else:
                logger.debug("Overwriting existing asset '%s'", key)

        self._assets[key] = value
        self._owners[key] = owner

    def get(self, key: str) -> Any | None:
        return self._assets.get(key)

    def has(self, key: str) -> bool:
        return key in self._assets

    def ownerOf(self, key: str) -> str | None:
        return self._owners.get(key)

    def unregister(self, key: str) -> None:
        self._assets.pop(key, None)
        self._owners.pop(key, None)

    def unregisterByPrefix(self, prefix: str) -> int:
        keysToRemove = [key for key in self._assets if key.startswith(prefix)]
        for key in keysToRemove:
            self.unregister(key)
        if keysToRemove:
            logger.debug("Unregistered %d asset(s) with prefix '%s'", len(keysToRemove), prefix)
        return len(keysToRemove)

    def allKeys(self) -> list[str]:
        return list(self._assets)

    def __len__(self) -> int:
        return len(self._assets)

    def __contains__(self, key: object) -> bool:
        return key in self._assets
