"""
Genetic Rebalancer — SolutionArchive.

Remembers the last few distinct final solutions across runs so a caller
can switch between them. Two solutions are the same when they buy the
same shares of every asset for the same total projected investment.

USAGE:

    from genetic_rebalancer.evolution.archive import SolutionArchive

    archive = SolutionArchive(max_size=5)
    archive.load("solutions.json")
    archive.record(final)          # False if already held
    archive.save("solutions.json")

DESIGN:
    - Oldest entry evicted once max_size is exceeded
    - Decimals persisted as strings via the wire codec
"""
from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from genetic_rebalancer.determinism import strategy_hash
from genetic_rebalancer.infra import codec
from genetic_rebalancer.interfaces.types import FinalGeneration

logger = logging.getLogger("rebalancer.archive")

DEFAULT_ARCHIVE_SIZE = 5


# ═════════════════════════════════════════════════════════════
# Archive entry
# ═════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class ArchivedSolution:
    """One stored final solution with its identity key."""
    key: str
    solution: FinalGeneration

    def to_dict(self) -> Dict[str, Any]:
        catalog = codec.catalog_from_stats(list(self.solution.strategy_stats.stats))
        return {"key": self.key, "message": codec.encode_message(self.solution, catalog)}

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "ArchivedSolution":
        message = d["message"]
        stats = codec.decode_stats(message["strategyStats"])
        catalog = codec.catalog_from_stats(list(stats.stats))
        solution = codec.decode_final_message(message, catalog)
        return ArchivedSolution(key=d.get("key") or solution_key(solution), solution=solution)


def solution_key(solution: FinalGeneration) -> str:
    stats = solution.strategy_stats
    return strategy_hash(stats.shares_by_asset(), stats.total_projected_investment)


# ═════════════════════════════════════════════════════════════
# SolutionArchive
# ═════════════════════════════════════════════════════════════

class SolutionArchive:
    """Last-N unique final solutions, oldest first."""

    def __init__(self, max_size: int = DEFAULT_ARCHIVE_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._max_size = max_size
        self._entries: Deque[ArchivedSolution] = deque(maxlen=max_size)

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def entries(self) -> List[FinalGeneration]:
        return [e.solution for e in self._entries]

    @property
    def latest(self) -> Optional[FinalGeneration]:
        return self._entries[-1].solution if self._entries else None

    def contains(self, solution: FinalGeneration) -> bool:
        key = solution_key(solution)
        return any(e.key == key for e in self._entries)

    def record(self, solution: FinalGeneration) -> bool:
        """Store a final solution unless an identical one is held."""
        key = solution_key(solution)
        if any(e.key == key for e in self._entries):
            logger.debug("solution %s already archived", key[:12])
            return False
        self._entries.append(ArchivedSolution(key=key, solution=solution))
        logger.info(
            "solution archived: %s (gen %d, fitness %s, %d/%d held)",
            key[:12], solution.generation, solution.best.fitness,
            len(self._entries), self._max_size,
        )
        return True

    def clear(self) -> None:
        self._entries.clear()

    # ════════════════════════════════════════════════════════
    # Persistence: JSON save/load
    # ════════════════════════════════════════════════════════

    def save(self, path: str) -> str:
        """Save archive to JSON file."""
        data = {
            "version": 1,
            "max_size": self._max_size,
            "entries": [e.to_dict() for e in self._entries],
        }
        p = Path(path)
        with open(p, "w") as f:
            json.dump(data, f, indent=2)
        logger.info("Archive saved: %s (%d entries)", p, len(self._entries))
        return str(p)

    def load(self, path: str) -> int:
        """
        Load archive from JSON file.
        Returns number of entries loaded.
        Returns 0 if the file doesn't exist.
        """
        p = Path(path)
        if not p.exists():
            logger.info("Archive file not found: %s (starting empty)", p)
            return 0

        with open(p) as f:
            data = codec.loads(f.read())

        self._entries.clear()
        for raw in data.get("entries", []):
            self._entries.append(ArchivedSolution.from_dict(raw))

        logger.info("Archive loaded: %s (%d entries)", p, len(self._entries))
        return len(self._entries)

    def summary(self) -> Dict[str, Any]:
        """Return archive summary for display."""
        return {
            "size": len(self._entries),
            "max_size": self._max_size,
            "solutions": [
                {
                    "shares": e.solution.strategy_stats.shares_by_asset(),
                    "remaining": str(e.solution.unspent),
                    "fitness": str(e.solution.best.fitness),
                }
                for e in self._entries
            ],
        }
