"""
Genetic Rebalancer — Strategy generation and mating operators.

StrategyFactory draws random share counts; MatingOperator combines two
parents gene by gene with a fixed mutation rate. Both draw only from
the injected random.Random, so a seeded run is reproducible.
"""
from __future__ import annotations

import random
from decimal import Decimal
from typing import List

from genetic_rebalancer.interfaces.types import AssetCatalog, Strategy


def max_affordable_shares(budget: Decimal, share_price: Decimal) -> int:
    """floor(budget / share_price) for positive operands."""
    if share_price <= 0:
        raise ValueError(f"share price must be > 0, got {share_price}")
    return int(budget // share_price)


class StrategyFactory:
    """
    Random strategies bounded per asset by the budget.

    Each gene is drawn independently, so the total spend may exceed the
    budget. Such strategies are penalised by the evaluator, not rejected.
    """

    __slots__ = ("_catalog", "_budget", "_rng", "_max_shares")

    def __init__(
        self,
        catalog: AssetCatalog,
        budget: Decimal,
        rng: random.Random | None = None,
    ) -> None:
        self._catalog = catalog
        self._budget = budget
        self._rng = rng or random.Random()
        self._max_shares: List[int] = [
            max_affordable_shares(budget, asset.current_share_price)
            for asset in catalog
        ]

    @property
    def catalog(self) -> AssetCatalog:
        return self._catalog

    def max_shares(self, index: int) -> int:
        return self._max_shares[index]

    def random_gene(self, index: int) -> int:
        """Round-half-up of a uniform draw scaled to [0, max affordable]."""
        return int(self._rng.random() * self._max_shares[index] + 0.5)

    def create_random_strategy(self) -> Strategy:
        return Strategy(shares=tuple(
            self.random_gene(i) for i in range(len(self._catalog))
        ))


def create_random_strategy(
    catalog: AssetCatalog, budget: Decimal, rng: random.Random,
) -> Strategy:
    return StrategyFactory(catalog, budget, rng).create_random_strategy()


class MatingOperator:
    """
    Uniform per-gene recombination with mutation.

    For every asset a fresh p ~ U(0, 1) decides the child's gene:
      p < first_parent_probability                     → parent 1
      p < first_parent_probability + mutation_probability → random gene
      otherwise                                        → parent 2
    """

    __slots__ = ("_factory", "_rng", "_first_cut", "_mutation_cut")

    def __init__(
        self,
        factory: StrategyFactory,
        rng: random.Random | None = None,
        first_parent_probability: float = 0.4,
        mutation_probability: float = 0.2,
    ) -> None:
        if not 0.0 <= first_parent_probability <= 1.0:
            raise ValueError("first_parent_probability must be in [0, 1]")
        if not 0.0 <= mutation_probability <= 1.0 - first_parent_probability:
            raise ValueError("mutation_probability must fit in [0, 1 - first_parent_probability]")
        self._factory = factory
        self._rng = rng or random.Random()
        self._first_cut = first_parent_probability
        self._mutation_cut = first_parent_probability + mutation_probability

    def mate(self, parent1: Strategy, parent2: Strategy) -> Strategy:
        child = []
        for i in range(len(self._factory.catalog)):
            p = self._rng.random()
            if p < self._first_cut:
                child.append(parent1[i])
            elif p < self._mutation_cut:
                child.append(self._factory.random_gene(i))
            else:
                child.append(parent2[i])
        return Strategy(shares=tuple(child))


def describe_strategy(strategy: Strategy, catalog: AssetCatalog) -> str:
    """Human-readable one-liner used in log lines."""
    return ", ".join(f"'{a.name}': {c}" for a, c in zip(catalog, strategy))
