"""
Genetic Rebalancer — Search event bus.

Delivers search lifecycle events to async listeners (the CLI printer,
a UI bridge) one listener at a time, in subscription order, so anything
written by listeners stays in generation order.

  - Default: a failing listener is logged and counted, the rest still run.
  - fail_fast=True: the first listener error propagates out of emit(),
    which fails the search that emitted the event.
  - After close(), emit is a no-op.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List

from genetic_rebalancer.interfaces.enums import EventType
from genetic_rebalancer.interfaces.events import Event

Listener = Callable[[Event], Awaitable[None]]
logger = logging.getLogger("rebalancer.event_bus")


class EventBus:
    """Ordered async dispatcher for one search's events."""

    def __init__(self, fail_fast: bool = False) -> None:
        self._fail_fast = fail_fast
        self._listeners: Dict[EventType, List[Listener]] = defaultdict(list)
        self._delivered: Dict[EventType, int] = defaultdict(int)
        self._error_count = 0
        self._closed = False

    def subscribe(self, event_type: EventType, listener: Listener) -> None:
        self._listeners[event_type].append(listener)

    async def emit(self, event: Event) -> None:
        if self._closed:
            return
        self._delivered[event.event_type] += 1
        # snapshot: a listener may subscribe others while running
        for listener in list(self._listeners.get(event.event_type, ())):
            try:
                await listener(event)
            except Exception as exc:
                self._error_count += 1
                if self._fail_fast:
                    raise
                logger.error(
                    "listener %s failed on %s: %s",
                    listener.__qualname__, event.event_type.name, exc,
                    exc_info=True,
                )

    def close(self) -> None:
        """Drop all listeners and ignore further events."""
        self._closed = True
        self._listeners.clear()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "generations": self._delivered[EventType.GENERATION_COMPLETE],
            "finished": self._delivered[EventType.SEARCH_FINISHED],
            "listener_errors": self._error_count,
            "listeners": sum(len(v) for v in self._listeners.values()),
        }
