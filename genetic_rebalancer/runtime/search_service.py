from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from genetic_rebalancer.determinism import make_rng
from genetic_rebalancer.evolution.engine import (
    EvolutionParams, PopulationManager, ProgressMessage,
)
from genetic_rebalancer.infra.codec import encode_decimal, encode_message
from genetic_rebalancer.infra.event_bus import EventBus
from genetic_rebalancer.interfaces.events import (
    Event, generation_complete_event, search_cancelled_event,
    search_failed_event, search_finished_event, search_started_event,
)
from genetic_rebalancer.interfaces.types import FinalGeneration, SearchRequest

_DONE = object()

# seconds; a stopped worker exits after at most one more generation
WORKER_JOIN_TIMEOUT = 5.0


@dataclass(slots=True)
class _WorkerFailure:
    error: BaseException


@dataclass(slots=True)
class SearchStatus:
    running: bool
    last_generation: int
    cancelled: bool
    worker_alive: bool


class SearchService:
    """
    Runs one search at a time on a dedicated worker thread so a long run
    never blocks the caller's event loop. Progress crosses back to the
    loop through an asyncio.Queue, in generation order, final last.
    """

    def __init__(
        self,
        event_bus: EventBus | None = None,
        params: EvolutionParams | None = None,
    ) -> None:
        self._logger = logging.getLogger("rebalancer.runtime")
        self._bus = event_bus
        self._params = params
        self._cancel = threading.Event()
        self._running = False
        self._cancelled = False
        self._last_generation = 0
        self._thread: threading.Thread | None = None

    def status(self) -> SearchStatus:
        return SearchStatus(
            running=self._running,
            last_generation=self._last_generation,
            cancelled=self._cancelled,
            worker_alive=self._thread is not None and self._thread.is_alive(),
        )

    def stop(self) -> None:
        """Ask the worker to stop before it computes the next generation."""
        self._cancel.set()

    async def stream(
        self, request: SearchRequest, seed: Optional[int] = None,
    ) -> AsyncIterator[ProgressMessage]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        cancel = threading.Event()
        self._cancel = cancel
        self._cancelled = False
        self._last_generation = 0
        manager = PopulationManager.from_request(request, rng=make_rng(seed), params=self._params)

        def post(item) -> bool:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, item)
            except RuntimeError:
                # consumer loop already closed
                return False
            return True

        def worker() -> None:
            generations = manager.iter_generations()
            try:
                for message in generations:
                    if not post(message) or cancel.is_set():
                        break
            except Exception as exc:
                post(_WorkerFailure(exc))
            finally:
                generations.close()
                post(_DONE)

        thread = threading.Thread(target=worker, name="rebalancer-search", daemon=True)
        self._thread = thread
        self._running = True
        thread.start()
        try:
            while True:
                item = await queue.get()
                if item is _DONE:
                    break
                if isinstance(item, _WorkerFailure):
                    raise item.error
                if cancel.is_set():
                    break
                self._last_generation = item.generation
                yield item
        finally:
            cancel.set()
            thread.join(WORKER_JOIN_TIMEOUT)
            if thread.is_alive():
                self._logger.warning(
                    "search worker still running %.1fs after stop", WORKER_JOIN_TIMEOUT)
            self._running = False

    async def run(
        self, request: SearchRequest, seed: Optional[int] = None,
    ) -> Optional[FinalGeneration]:
        """
        Stream the search through the event bus. Returns the final
        generation, or None when stop() cancelled the run.
        """
        catalog = request.catalog
        await self._emit(search_started_event(
            request.population_size,
            request.stop_after_n_generations_without_better_result,
            encode_decimal(request.investment_limit),
            len(catalog),
        ))
        self._logger.info(
            "search requested",
            extra={"event": "search_requested", "seed": seed, "assets": list(catalog.names)},
        )

        final = None
        try:
            async with aclosing(self.stream(request, seed)) as messages:
                async for message in messages:
                    encoded = encode_message(message, catalog)
                    if message.is_final:
                        final = message
                        await self._emit(search_finished_event(encoded))
                    else:
                        await self._emit(generation_complete_event(encoded))
        except Exception as exc:
            self._logger.error(
                "search failed",
                extra={"event": "search_failed", "error": str(exc)},
                exc_info=True,
            )
            await self._emit(search_failed_event(exc))
            raise

        if final is None:
            self._cancelled = True
            self._logger.info("search cancelled after gen %d", self._last_generation)
            await self._emit(search_cancelled_event(self._last_generation))
        return final

    async def _emit(self, event: Event) -> None:
        if self._bus is not None:
            await self._bus.emit(event)
