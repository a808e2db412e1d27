# modkit/core/logging/context.py
from __future__ import annotations
import contextvars
from collections.abc import Iterator
from contextlib import contextmanager

__all__ = ["setLogContext", "clearLogContext", "getLogContext", "logContext"]

# Per-operation log context (modId, operation, ...). Read by the formatters.
_logContextVar: contextvars.ContextVar[dict[str, object] | None] = contextvars.ContextVar("modkit.logctx", default=None)

def setLogContext(**kvs):
    """Set or update per-log context values (modId, operation, etc.)."""
    current = dict(_logContextVar.get() or {}) # use copy
    for key, value in kvs.items():
        if value is not None:
            current[key] = value
    _logContextVar.set(current)

def clearLogContext():
    _logContextVar.set(None)

def getLogContext():
    """Return current context dict or None."""
    return _logContextVar.get()

@contextmanager
def logContext(**kvs) -> Iterator[None]:
    """Scoped variant of setLogContext(); restores the previous context on exit."""
    current = dict(_logContextVar.get() or {})
    current.update({key: value for key, value in kvs.items() if value is not None})
    token = _logContextVar.set(current)
    try:
        yield
    finally:
        _logContextVar.reset(token)
