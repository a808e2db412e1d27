# modkit/mods/scaffold.py
from __future__ import annotations
import json
import logging
from pathlib import Path

from modkit.mods.constants import MANIFEST_FILE_NAME
from modkit.mods.manifest import ModManifest

logger = logging.getLogger(__name__)

__all__ = ["EXAMPLE_MOD_DIR", "EXAMPLE_MOD_ID", "ensureModsFolder", "createExampleMod"]



EXAMPLE_MOD_DIR = "ExampleMod"
EXAMPLE_MOD_ID = "example.mod"



def ensureModsFolder(rootDirectory: Path | str, *, createExample: bool = True) -> bool:
    """
    Creates the mods root if it is missing. Returns True when it was created.
    A freshly created root gets an example package when createExample is set.
    """
    root = Path(rootDirectory)
    if root.is_dir():
        return False
    root.mkdir(parents=True, exist_ok=True)
    logger.info("Created mods folder at '%s'", root)
    if createExample:
        createExampleMod(root)
    return True



def createExampleMod(rootDirectory: Path | str) -> Path | None:
    """
    Writes ExampleMod/manifest.json and an empty content/ folder.
    Returns the package directory, or None if it already existed.
    """
    examplePath = Path(rootDirectory) / EXAMPLE_MOD_DIR
    if examplePath.exists():
        return None

    manifest = ModManifest(
        id=EXAMPLE_MOD_ID,
        displayName="Example Mod",
        version="1.0.0",
        author="modkit",
        description="An example mod to demonstrate the mod system.",
        contentPaths=["content"],
    )
    (examplePath / "content").mkdir(parents=True)
    (examplePath / MANIFEST_FILE_NAME).write_text(
        json.dumps(manifest.model_dump(by_alias=True), indent=4) + "\n",
        encoding="utf-8",
    )
    logger.info("Created example mod at '%s'", examplePath)
    return examplePath
