# modkit/mods/package.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path

from modkit.core.errors import ModSystemWarning
from modkit.core.time import nowMs
from modkit.mods.constants import assetPrefix
from modkit.mods.manifest import ModManifest

__all__ = ["LoadedPackage"]



@dataclass
class LoadedPackage:
    """
    Runtime record of a loaded mod package.

    Created by a successful load, replaced wholesale on reload and dropped on
    unload. fileTimestamps maps every tracked file (content files plus the
    manifest) to its st_mtime_ns at load time.
    """
    manifest: ModManifest
    loadTimestamp: int = field(default_factory=nowMs)
    assetKeys: list[str] = field(default_factory=list)
    fileTimestamps: dict[Path, int] = field(default_factory=dict)
    # Non-fatal diagnostics collected while the content was parsed
    warnings: list[ModSystemWarning] = field(default_factory=list, repr=False)

    @property
    def id(self) -> str:
        return self.manifest.id

    @property
    def rootPath(self) -> Path | None:
        return self.manifest.rootPath

    @property
    def assetPrefix(self) -> str:
        return assetPrefix(self.manifest.id)
