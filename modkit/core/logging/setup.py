# modkit/core/logging/setup.py
from __future__ import annotations
import logging
import logging.handlers

from modkit.config.settings import LoggingSettings
from .formatters import DevFormatter, JsonFormatter

__all__ = [
    "configureLogging",
    "getLogger",
    "getModLogger",
]



def configureLogging(settings: LoggingSettings | None = None) -> None:
    """
    Initiate the global logging configuration.

    Dev:
      - Console pretty logs (DEBUG)
    Prod:
      - Console INFO
    Both:
      - JSON file log with rotation when `settings.file` is set
    """
    settings = settings or LoggingSettings()
    rootLevel = logging.DEBUG if settings.devMode else logging.INFO

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(rootLevel)

    consoleHandler = logging.StreamHandler()
    consoleHandler.setLevel(rootLevel)
    consoleHandler.setFormatter(DevFormatter())
    root.addHandler(consoleHandler)

    if settings.file is not None:
        fileHandler = logging.handlers.RotatingFileHandler(
            settings.file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        fileHandler.setLevel(rootLevel)
        fileHandler.setFormatter(JsonFormatter())
        root.addHandler(fileHandler)

    # Pillow's plugin discovery is noisy at DEBUG
    logging.getLogger("PIL").setLevel(logging.INFO)



def getLogger(name: str, side: str = "") -> logging.Logger:
    return logging.getLogger(f"{side}.{name}" if side else name)



def getModLogger(modId: str) -> logging.Logger:
    return logging.getLogger(f"mods.{str(modId).strip()}")
