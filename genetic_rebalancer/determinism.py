"""
Genetic Rebalancer — Determinism helpers.

Every random draw in a search goes through one random.Random instance
handed to the PopulationManager. Same seed plus same request gives the
same sequence of generations.

Usage:
    from genetic_rebalancer.determinism import lock_determinism, make_rng

    lock_determinism(seed=42)
    rng = make_rng(42)
"""

from __future__ import annotations

import hashlib
import os
import random
from decimal import Decimal
from typing import Mapping, Optional


def lock_determinism(seed: int = 42) -> None:
    """
    Seed process-level sources of non-determinism.
    Call once at process start, before any search is created.
    """
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Dedicated generator for one run. seed=None draws from OS entropy."""
    return random.Random(seed)


def strategy_hash(
    shares_by_asset: Mapping[str, int],
    total_projected_investment: Decimal | None = None,
) -> str:
    """
    SHA256 identity of a solution: share counts per asset name, plus
    the total projected investment when given. Asset order does not
    matter.
    """
    parts = [f"{name}={count}" for name, count in sorted(shares_by_asset.items())]
    if total_projected_investment is not None:
        parts.append(f"total={total_projected_investment.normalize()}")
    return hashlib.sha256("|".join(parts).encode()).hexdigest()
