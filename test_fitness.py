"""
Unit tests for the rebalancing fitness model.

Catalog used throughout (budget 100):
    A: target 50%, holds 100, price 10
    B: target 50%, holds 0,   price 20

Covers:
    1. Ideal strategy scores exactly zero
    2. Deviation and unspent components
    3. Over-budget strategies get OVER_BUDGET
    4. Empty portfolio (zero projected total)
    5. Preconditions
"""

from decimal import Decimal

import pytest

from genetic_rebalancer.evolution.fitness import (
    FitnessEvaluator, evaluate_strategy, projected_investments,
)
from genetic_rebalancer.interfaces.types import (
    OVER_BUDGET, Asset, AssetCatalog, Strategy,
)

CATALOG = AssetCatalog.from_assets([
    Asset("A", Decimal(50), Decimal(100), Decimal(10)),
    Asset("B", Decimal(50), Decimal(0), Decimal(20)),
])
BUDGET = Decimal(100)


def _eval():
    return FitnessEvaluator(CATALOG, BUDGET)


class TestScores:

    def test_ideal_strategy(self):
        # B gets 100 → 100/200 each, whole budget spent
        fitness = _eval().evaluate(Strategy((0, 5)))
        assert fitness.value == 0
        assert fitness.is_ideal

    def test_deviation_plus_unspent(self):
        # spend 20 + 40 = 60 → A 120/160 = 75%, B 40/160 = 25%
        bd = _eval().compute_breakdown(Strategy((2, 2)))
        assert bd.total_projected_investment == Decimal(60)
        assert bd.percentage_deviation == Decimal(50)
        assert bd.unspent_penalty == Decimal(40)
        assert bd.fitness.value == Decimal(90)

    def test_full_budget_wrong_asset(self):
        # A 200/200 = 100%, B 0% → deviation 100, unspent 0
        assert _eval().evaluate(Strategy((10, 0))).value == Decimal(100)

    def test_nothing_bought(self):
        # A stays at 100%, B at 0%, whole budget unspent
        assert _eval().evaluate(Strategy((0, 0))).value == Decimal(200)

    def test_breakdown_to_dict(self):
        d = _eval().compute_breakdown(Strategy((2, 2))).to_dict()
        assert set(d) == {
            "total_projected_investment", "percentage_deviation",
            "unspent_penalty", "fitness",
        }


class TestBudget:

    def test_exactly_on_budget_is_feasible(self):
        assert not _eval().evaluate(Strategy((10, 0))).over_budget

    def test_over_budget(self):
        bd = _eval().compute_breakdown(Strategy((1, 5)))
        assert bd.fitness == OVER_BUDGET
        assert bd.total_projected_investment == Decimal(110)

    def test_over_budget_sorts_last(self):
        ev = _eval()
        worst_feasible = ev.evaluate(Strategy((0, 0)))
        assert worst_feasible < ev.evaluate(Strategy((11, 0)))


class TestEdgeCases:

    def test_empty_portfolio_zero_total(self):
        catalog = AssetCatalog.from_assets([Asset("X", Decimal(100), Decimal(0), Decimal(10))])
        # nothing held and nothing bought: X sits at 0% of a 0 total
        assert evaluate_strategy(Strategy((0,)), catalog, Decimal(100)).value == Decimal(200)
        assert evaluate_strategy(Strategy((10,)), catalog, Decimal(100)).is_ideal

    def test_projected_investments(self):
        assert projected_investments(Strategy((3, 2)), CATALOG) == (Decimal(30), Decimal(40))

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            _eval().evaluate(Strategy((1,)))

    def test_non_positive_budget(self):
        with pytest.raises(ValueError):
            FitnessEvaluator(CATALOG, Decimal(0))

    def test_pure(self):
        ev = _eval()
        s = Strategy((3, 1))
        assert ev.evaluate(s) == ev.evaluate(s) == evaluate_strategy(s, CATALOG, BUDGET)
