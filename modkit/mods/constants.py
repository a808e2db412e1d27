# modkit/mods/constants.py
from __future__ import annotations

__all__ = [
    "MANIFEST_FILE_NAME", "CONTENT_FILE_PATTERN", "TYPE_TAG",
    "ASSET_KEY_SEPARATOR", "assetKey", "assetPrefix",
]



MANIFEST_FILE_NAME = "manifest.json"
CONTENT_FILE_PATTERN = "*.json"
# Discriminator field of a content record
TYPE_TAG = "$type"
ASSET_KEY_SEPARATOR = ":"



def assetPrefix(modId: str) -> str:
    return f"{modId}{ASSET_KEY_SEPARATOR}"



def assetKey(modId: str, localName: str) -> str:
    return f"{modId}{ASSET_KEY_SEPARATOR}{localName}"
