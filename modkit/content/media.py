# modkit/content/media.py
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

__all__ = ["Texture", "AudioClip", "MediaLoader"]



@dataclass(frozen=True)
class Texture:
    """Decoded RGBA image referenced by a content record."""
    width: int
    height: int
    pixels: bytes = field(repr=False)
    sourcePath: Path | None = None
    mode: str = "RGBA"

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)



@dataclass(frozen=True)
class AudioClip:
    """
    Placeholder for audio references. Decoding audio is the job of an
    asynchronous collaborator; the content pipeline never produces one.
    """
    sourcePath: Path



class MediaLoader:
    """
    Synchronous media collaborator used by the content binder.

    Only images are decoded here. Audio requires asynchronous loading and is
    left to the host.
    """

    def loadImage(self, path: Path | str) -> Texture | None:
        path = Path(path)
        if not path.is_file():
            logger.warning("Image not found: '%s'", path)
            return None
        try:
            with Image.open(path) as img:
                rgba = img.convert("RGBA")
                return Texture(
                    width=rgba.width,
                    height=rgba.height,
                    pixels=rgba.tobytes(),
                    sourcePath=path,
                )
        except (UnidentifiedImageError, OSError) as err:
            logger.error("Failed to load image '%s': %s", path, err)
            return None

    def loadAudio(self, path: Path | str) -> AudioClip | None:
        logger.warning("AudioClip loading requires async loading; field left unset. Path: '%s'", path)
        return None
