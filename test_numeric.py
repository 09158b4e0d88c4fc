"""
Unit tests for the decimal substrate and shared value types.

Covers:
    1. to_decimal accepts exact inputs, rejects floats and non-finite values
    2. percentage_of with a zero total
    3. Fitness ordering (over-budget sorts last)
    4. Catalog and strategy invariants
"""

from decimal import Decimal

import pytest

from genetic_rebalancer.interfaces.numeric import (
    ZERO, decimal_sum, percentage_of, to_decimal,
)
from genetic_rebalancer.interfaces.types import (
    OVER_BUDGET, Asset, AssetCatalog, Fitness, Strategy,
)


class TestToDecimal:

    def test_string_keeps_digits(self):
        assert to_decimal("102.32") == Decimal("102.32")
        assert str(to_decimal(" 5408.84 ")) == "5408.84"

    def test_int_and_decimal(self):
        assert to_decimal(45) == Decimal(45)
        d = Decimal("0.1")
        assert to_decimal(d) is d

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            to_decimal(0.1)

    def test_bool_rejected(self):
        with pytest.raises(TypeError):
            to_decimal(True)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError):
            to_decimal("twelve")

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_rejected(self, raw):
        with pytest.raises(ValueError):
            to_decimal(raw)


class TestArithmetic:

    def test_percentage_multiplies_first(self):
        assert percentage_of(Decimal(1), Decimal(8)) == Decimal("12.5")
        assert percentage_of(Decimal(1), Decimal(3)) == Decimal("33." + "3" * 32)

    def test_percentage_of_zero_total(self):
        assert percentage_of(Decimal(5), ZERO) == ZERO

    def test_decimal_sum_exact(self):
        assert decimal_sum([Decimal("0.1")] * 10) == Decimal("1.0")
        assert decimal_sum([]) == ZERO


class TestFitnessOrdering:

    def test_lower_value_is_better(self):
        assert Fitness.feasible(Decimal("1.5")) < Fitness.feasible(Decimal("2"))

    def test_over_budget_after_any_feasible(self):
        huge = Fitness.feasible(Decimal("1E+30"))
        assert huge < OVER_BUDGET
        assert sorted([OVER_BUDGET, huge, Fitness.feasible(ZERO)])[-1] == OVER_BUDGET

    def test_over_budget_values_equal(self):
        assert Fitness(over_budget=True) == OVER_BUDGET

    def test_ideal(self):
        assert Fitness.feasible(Decimal("0.00")).is_ideal
        assert not OVER_BUDGET.is_ideal
        assert not Fitness.feasible(Decimal("0.01")).is_ideal

    def test_to_decimal(self):
        assert OVER_BUDGET.to_decimal() == Decimal("Infinity")
        assert Fitness.feasible(Decimal("3")).to_decimal() == Decimal("3")
        assert str(OVER_BUDGET) == "OVER_BUDGET"


class TestCatalogAndStrategy:

    def _catalog(self):
        return AssetCatalog.from_assets([
            Asset("A", Decimal(60), Decimal(100), Decimal(10)),
            Asset("B", Decimal(40), Decimal(50), Decimal(20)),
        ])

    def test_duplicate_names_rejected(self):
        a = Asset("A", Decimal(50), ZERO, Decimal(1))
        with pytest.raises(ValueError, match="duplicate"):
            AssetCatalog.from_assets([a, a])

    def test_lookup(self):
        catalog = self._catalog()
        assert catalog.names == ("A", "B")
        assert catalog.index_of("B") == 1
        assert catalog.get("A").current_share_price == Decimal(10)
        assert catalog.total_current_value() == Decimal(150)
        with pytest.raises(KeyError):
            catalog.get("C")

    @pytest.mark.parametrize("gene", [2.7, 2.0, "3", None, True])
    def test_non_integer_shares_rejected(self, gene):
        with pytest.raises(ValueError, match="integers"):
            Strategy(shares=(1, gene))

    def test_negative_shares_rejected(self):
        with pytest.raises(ValueError):
            Strategy(shares=(1, -1))

    def test_mapping_follows_catalog_order(self):
        catalog = self._catalog()
        strategy = Strategy.from_mapping({"B": 3, "A": 7}, catalog)
        assert strategy.shares == (7, 3)
        assert list(strategy.as_mapping(catalog).items()) == [("A", 7), ("B", 3)]

    def test_mapping_length_mismatch(self):
        with pytest.raises(ValueError):
            Strategy(shares=(1,)).as_mapping(self._catalog())
        with pytest.raises(ValueError, match="missing"):
            Strategy.from_mapping({"A": 1}, self._catalog())
