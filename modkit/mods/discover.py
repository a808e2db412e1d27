# modkit/mods/discover.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path

from modkit.core.errors import DuplicateManifestError, ManifestError, ManifestNotFoundError
from modkit.mods.manifest import ModManifest, loadManifest

logger = logging.getLogger(__name__)

__all__ = ["DiscoveryResult", "scanManifests", "discoverManifests", "listPackageDirs"]



@dataclass
class DiscoveryResult:
    manifests: list[ModManifest] = field(default_factory=list)
    # Package directory -> reason it was skipped
    errors: dict[Path, Exception] = field(default_factory=dict)



def listPackageDirs(rootDirectory: Path | str) -> list[Path]:
    """
    Immediate sub-directories of the mods root, ordered by folder name
    (case-insensitive, then exact name) so discovery order is deterministic.
    """
    root = Path(rootDirectory)
    if not root.is_dir():
        return []
    dirs = [entry for entry in root.iterdir() if entry.is_dir()]
    dirs.sort(key=lambda entry: (entry.name.lower(), entry.name))
    return dirs



def scanManifests(rootDirectory: Path | str) -> DiscoveryResult:
    """
    Reads manifest.json from every package directory under rootDirectory.

    A failing entry (missing or malformed manifest, duplicate id) is logged
    and skipped; the scan itself never aborts.
    """
    result = DiscoveryResult()
    root = Path(rootDirectory)
    if not root.is_dir():
        logger.warning("Mods folder '%s' does not exist; nothing to discover", root)
        return result

    seen: dict[str, Path] = {}
    for packageDir in listPackageDirs(root):
        try:
            manifest = loadManifest(packageDir)
        except ManifestNotFoundError as err:
            logger.warning("Skipping '%s': %s", packageDir, err)
            result.errors[packageDir] = err
            continue
        except ManifestError as err:
            logger.error("Skipping '%s': %s", packageDir, err)
            result.errors[packageDir] = err
            continue

        if manifest.id in seen:
            err = DuplicateManifestError(
                f"Duplicate mod id '{manifest.id}' in '{packageDir}' (already provided by '{seen[manifest.id]}')",
                modId=manifest.id,
            )
            logger.error("Skipping '%s': %s", packageDir, err)
            result.errors[packageDir] = err
            continue

        seen[manifest.id] = packageDir
        result.manifests.append(manifest)

    logger.info(
        "Mods discovered: %d (skipped=%d, root='%s')",
        len(result.manifests),
        len(result.errors),
        root,
    )
    return result



def discoverManifests(rootDirectory: Path | str) -> list[ModManifest]:
    return scanManifests(rootDirectory).manifests
