# modkit/core/logging/__init__.py
from __future__ import annotations

from .context import setLogContext, clearLogContext, getLogContext, logContext
from .formatters import DevFormatter, JsonFormatter
from .setup import configureLogging, getLogger, getModLogger

__all__ = [
    "configureLogging",
    "getLogger",
    "getModLogger",
    "setLogContext",
    "clearLogContext",
    "getLogContext",
    "logContext",
    "DevFormatter",
    "JsonFormatter",
]
