"""Dispatch of optional observer callbacks."""
from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional, Set

_LOGGER = logging.getLogger(__name__)
_PENDING: Set["asyncio.Future[Any]"] = set()


def _observer_done(future: "asyncio.Future[Any]") -> None:
    _PENDING.discard(future)
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        _LOGGER.error("observer failed", exc_info=exc)


def dispatch(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """Invoke *callback* without letting it block or break the upload.

    Coroutine observers are scheduled on the running loop and not awaited.
    """

    if callback is None:
        return
    try:
        result = callback(*args)
    except Exception:
        _LOGGER.exception("observer %r failed", callback)
        return
    if inspect.isawaitable(result):
        future = asyncio.ensure_future(result)
        _PENDING.add(future)
        future.add_done_callback(_observer_done)


__all__ = ["dispatch"]
