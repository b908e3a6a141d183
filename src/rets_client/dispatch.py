# RETS Client
# File: dispatch.py
# Version: v3

"""Delivery of operation outcomes to callbacks and event listeners.

An operation produces exactly one :class:`~rets_client.models.Outcome`.
:func:`dispatch` then hands that same object to whichever sinks the caller
registered: an optional completion callback and the listeners of an
:class:`EventEmitter`. Either sink may be absent.
"""

from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from .models import Outcome

logger = logging.getLogger(__name__)

Handler = Callable[..., Union[None, Awaitable[None]]]
Callback = Callable[[Outcome], Union[None, Awaitable[None]]]


async def _call(fn: Callable[..., Any], *args: Any) -> None:
    result = fn(*args)
    if inspect.isawaitable(result):
        await result


class EventEmitter:
    """Minimal observer registry keyed by event name."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Handler]] = defaultdict(list)

    def on(self, event: str, handler: Handler) -> Handler:
        self._listeners[event].append(handler)
        return handler

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._listeners.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listeners(self, event: str) -> List[Handler]:
        return list(self._listeners.get(event, ()))

    async def emit(self, event: str, *args: Any) -> int:
        """Call every listener of ``event``; returns how many were called."""
        handlers = self.listeners(event)
        for handler in handlers:
            await _call(handler, *args)
        return len(handlers)


async def _deliver(fn: Callable[..., Any], *args: Any) -> None:
    """Call one sink; its failure is logged and never reaches the other sinks."""
    try:
        await _call(fn, *args)
    except Exception:
        logger.exception("Outcome handler %r failed", fn)


async def dispatch(
    outcome: Outcome,
    callback: Optional[Callback] = None,
    emitter: Optional[EventEmitter] = None,
) -> Outcome:
    """Deliver ``outcome`` to the callback and to ``<event>.success|failure``.

    Each sink is called on its own: a handler that raises is logged and the
    remaining sinks still receive the outcome.
    """
    if outcome.error is not None:
        logger.debug("%s failed: %s", outcome.event, outcome.error)

    if callback is not None:
        await _deliver(callback, outcome)

    if emitter is not None:
        if outcome.ok:
            event, payload = f"{outcome.event}.success", outcome.data
        else:
            event, payload = f"{outcome.event}.failure", outcome.error
        for handler in emitter.listeners(event):
            await _deliver(handler, payload)

    return outcome
