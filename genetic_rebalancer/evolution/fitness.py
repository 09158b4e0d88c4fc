"""
Genetic Rebalancer — Rebalancing fitness model.

Scores a Strategy against the catalog's target weights. Lower is better.

  ┌──────────────────────┬──────────────────────────────────────────────┐
  │ Component            │ Definition                                   │
  ├──────────────────────┼──────────────────────────────────────────────┤
  │ percentage_deviation │ Σ |target% − post-purchase %| over assets    │
  │ unspent_penalty      │ 100 − 100 · total_projected / budget         │
  │ fitness              │ percentage_deviation + unspent_penalty       │
  └──────────────────────┴──────────────────────────────────────────────┘

A strategy whose projected spend exceeds the budget is not scored at all:
it gets OVER_BUDGET, which sorts after every feasible fitness. A fitness
of exactly zero hits every target while spending the whole budget.

The evaluator is a pure function of (strategy, catalog, budget).
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Dict, Tuple

from genetic_rebalancer.interfaces.numeric import (
    DECIMAL_CONTEXT, HUNDRED, ZERO, decimal_sum, percentage_of,
)
from genetic_rebalancer.interfaces.types import (
    OVER_BUDGET, AssetCatalog, Fitness, Strategy,
)


# ── Fitness breakdown ────────────────────────────────────────

@dataclass(slots=True)
class FitnessBreakdown:
    """Per-component scores for one strategy."""
    total_projected_investment: Decimal = ZERO
    percentage_deviation: Decimal = ZERO
    unspent_penalty: Decimal = ZERO
    fitness: Fitness = OVER_BUDGET

    def to_dict(self) -> Dict[str, str]:
        return {
            "total_projected_investment": str(self.total_projected_investment),
            "percentage_deviation": str(self.percentage_deviation),
            "unspent_penalty": str(self.unspent_penalty),
            "fitness": str(self.fitness),
        }


def projected_investments(strategy: Strategy, catalog: AssetCatalog) -> Tuple[Decimal, ...]:
    """Money spent per asset if the strategy is followed: price × shares."""
    if len(strategy) != len(catalog):
        raise ValueError(
            f"strategy has {len(strategy)} genes, catalog has {len(catalog)} assets"
        )
    with localcontext(DECIMAL_CONTEXT):
        return tuple(
            asset.current_share_price * count
            for asset, count in zip(catalog, strategy)
        )


# ═════════════════════════════════════════════════════════════
# FitnessEvaluator
# ═════════════════════════════════════════════════════════════

class FitnessEvaluator:
    """Scores strategies for one catalog and budget."""

    __slots__ = ("_catalog", "_budget", "_current_total")

    def __init__(self, catalog: AssetCatalog, budget: Decimal) -> None:
        if budget <= 0:
            raise ValueError(f"budget must be > 0, got {budget}")
        self._catalog = catalog
        self._budget = budget
        self._current_total = catalog.total_current_value()

    @property
    def catalog(self) -> AssetCatalog:
        return self._catalog

    @property
    def budget(self) -> Decimal:
        return self._budget

    def evaluate(self, strategy: Strategy) -> Fitness:
        return self.compute_breakdown(strategy).fitness

    def compute_breakdown(self, strategy: Strategy) -> FitnessBreakdown:
        investments = projected_investments(strategy, self._catalog)
        total_projected = decimal_sum(investments)

        if total_projected > self._budget:
            return FitnessBreakdown(
                total_projected_investment=total_projected,
                fitness=OVER_BUDGET,
            )

        with localcontext(DECIMAL_CONTEXT):
            projected_total_value = self._current_total + total_projected
            deviation = ZERO
            for asset, invested in zip(self._catalog, investments):
                new_pct = percentage_of(
                    asset.current_total_value + invested, projected_total_value,
                )
                deviation += abs(asset.target_percentage - new_pct)

            unspent = HUNDRED - (HUNDRED * total_projected) / self._budget
            score = deviation + unspent

        return FitnessBreakdown(
            total_projected_investment=total_projected,
            percentage_deviation=deviation,
            unspent_penalty=unspent,
            fitness=Fitness.feasible(score),
        )


def evaluate_strategy(strategy: Strategy, catalog: AssetCatalog, budget: Decimal) -> Fitness:
    """One-shot scoring without keeping an evaluator around."""
    return FitnessEvaluator(catalog, budget).evaluate(strategy)
