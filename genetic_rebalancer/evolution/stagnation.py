"""
Genetic Rebalancer — Stagnation window and convergence rule.

The window holds the best fitness of the most recent generations,
oldest first, capped at `capacity` entries. The search stops when the
newest best is ideal, or when the window is full and its oldest and
newest entries are equal.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, List, Optional

from genetic_rebalancer.interfaces.enums import StopReason
from genetic_rebalancer.interfaces.types import Fitness


class StagnationWindow:
    """Bounded FIFO of per-generation best fitness values."""

    __slots__ = ("_values", "_capacity")

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"stagnation window capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._values: Deque[Fitness] = deque(maxlen=capacity)

    def push(self, fitness: Fitness) -> None:
        self._values.append(fitness)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._values) >= self._capacity

    @property
    def oldest(self) -> Optional[Fitness]:
        return self._values[0] if self._values else None

    @property
    def newest(self) -> Optional[Fitness]:
        return self._values[-1] if self._values else None

    def values(self) -> List[Fitness]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def stop_reason(self) -> Optional[StopReason]:
        """Why the search should stop now, or None to keep going."""
        if not self._values:
            return None
        if self._values[-1].is_ideal:
            return StopReason.IDEAL_FITNESS
        if self.is_full and self._values[0] == self._values[-1]:
            return StopReason.STAGNATION
        return None

    def should_stop(self) -> bool:
        return self.stop_reason() is not None
