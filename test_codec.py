"""
Tests for the wire codec.

Covers:
    1. Request decoding keeps exact decimal digits
    2. Malformed requests raise PreconditionError
    3. Over-budget fitness crosses the wire as "Infinity"
    4. Message shapes for intermediate and final generations
"""

import json
from decimal import Decimal

import pytest

from genetic_rebalancer.evolution.fitness import evaluate_strategy
from genetic_rebalancer.evolution.report import build_strategy_stats
from genetic_rebalancer.infra import codec
from genetic_rebalancer.interfaces.enums import StopReason
from genetic_rebalancer.interfaces.types import (
    OVER_BUDGET, Asset, AssetCatalog, FinalGeneration, Fitness,
    GenerationProgress, Individual, Strategy,
)
from genetic_rebalancer.validation import PreconditionError

REQUEST_JSON = """
{
  "populationSize": 500,
  "stopAfterNGenerationsWithoutBetterResult": 30,
  "investmentLimit": 1800,
  "assetData": [
    {"name": "Weyland-Yutani", "targetPercentage": 15,
     "currentTotalValue": 1589.23, "currentSharePrice": 102.32},
    {"name": "Krusty Krab", "targetPercentage": "45",
     "currentTotalValue": "5408.84", "currentSharePrice": "63.89"}
  ]
}
"""

CATALOG = AssetCatalog.from_assets([
    Asset("A", Decimal(50), Decimal(100), Decimal(10)),
    Asset("B", Decimal(50), Decimal(0), Decimal(20)),
])


def _final(strategy=Strategy((2, 2)), reason=StopReason.STAGNATION):
    return FinalGeneration(
        generation=7,
        best=Individual(strategy, evaluate_strategy(strategy, CATALOG, Decimal(100))),
        strategy_stats=build_strategy_stats(strategy, CATALOG),
        investment_limit=Decimal(100),
        stop_reason=reason,
    )


class TestRequestDecoding:

    def test_numbers_and_strings_both_exact(self):
        request = codec.loads_request(REQUEST_JSON)
        weyland, krusty = request.catalog
        assert request.population_size == 500
        assert request.stop_after_n_generations_without_better_result == 30
        assert request.investment_limit == Decimal(1800)
        assert str(weyland.current_share_price) == "102.32"
        assert str(weyland.current_total_value) == "1589.23"
        assert krusty.target_percentage == Decimal(45)
        assert request.catalog.names == ("Weyland-Yutani", "Krusty Krab")

    def test_encode_request_strings(self):
        encoded = codec.encode_request(codec.loads_request(REQUEST_JSON))
        assert encoded["investmentLimit"] == "1800"
        assert encoded["assetData"][0]["currentSharePrice"] == "102.32"
        assert codec.decode_request(encoded) == codec.loads_request(REQUEST_JSON)

    def test_invalid_json(self):
        with pytest.raises(PreconditionError, match="invalid JSON"):
            codec.loads_request("{not json")

    def test_not_an_object(self):
        with pytest.raises(PreconditionError):
            codec.loads_request("[1, 2]")

    def test_missing_field(self):
        payload = codec.loads(REQUEST_JSON)
        del payload["populationSize"]
        with pytest.raises(PreconditionError, match="populationSize"):
            codec.decode_request(payload)

    def test_fractional_population(self):
        payload = codec.loads(REQUEST_JSON)
        payload["populationSize"] = "2.5"
        with pytest.raises(PreconditionError):
            codec.decode_request(payload)

    def test_bad_decimal(self):
        payload = codec.loads(REQUEST_JSON)
        payload["investmentLimit"] = "lots"
        with pytest.raises(PreconditionError):
            codec.decode_request(payload)

    def test_duplicate_names(self):
        payload = codec.loads(REQUEST_JSON)
        payload["assetData"][1]["name"] = "Weyland-Yutani"
        with pytest.raises(PreconditionError, match="duplicate"):
            codec.decode_request(payload)

    @pytest.mark.parametrize("entry", [5, "Krusty Krab", None, [1, 2]])
    def test_asset_entry_not_an_object(self, entry):
        payload = codec.loads(REQUEST_JSON)
        payload["assetData"][1] = entry
        with pytest.raises(PreconditionError, match=r"assetData\[1\] must be an object"):
            codec.decode_request(payload)

    def test_precondition_error_is_value_error(self):
        with pytest.raises(ValueError):
            codec.loads_request("")


class TestFitnessWire:

    def test_over_budget_is_infinity(self):
        assert codec.encode_fitness(OVER_BUDGET) == "Infinity"
        assert codec.decode_fitness("Infinity") == OVER_BUDGET

    def test_feasible_is_decimal_string(self):
        assert codec.encode_fitness(Fitness.feasible(Decimal("12.50"))) == "12.50"
        assert codec.decode_fitness("12.50") == Fitness.feasible(Decimal("12.5"))


class TestMessages:

    def test_intermediate_shape(self):
        strategy = Strategy((1, 5))
        message = GenerationProgress(
            generation=3, best=Individual(strategy, OVER_BUDGET))
        encoded = codec.encode_message(message, CATALOG)
        assert encoded == {
            "generation": 3,
            "result": {"strategy": {"A": 1, "B": 5}, "fitness": "Infinity"},
        }

    def test_final_shape(self):
        encoded = codec.encode_message(_final(), CATALOG)
        assert set(encoded) == {
            "generation", "result", "strategyStats", "investmentLimit", "stopReason",
        }
        assert encoded["stopReason"] == "stagnation"
        assert encoded["result"]["fitness"] == "90"
        stats = encoded["strategyStats"]
        assert stats["totalProjectedInvestment"] == "60"
        assert stats["stats"][0]["assetName"] == "A"
        assert stats["stats"][0]["sharesCount"] == 2
        assert Decimal(stats["stats"][0]["rebalancedPercentage"]) == 75

    def test_final_decodes_back(self):
        final = _final()
        encoded = json.loads(codec.dumps_message(codec.encode_message(final, CATALOG)))
        assert codec.decode_final_message(encoded, CATALOG) == final

    def test_dumps_is_compact_json(self):
        text = codec.dumps_message(codec.encode_message(_final(), CATALOG))
        assert " " not in text
        assert "\n" not in text

    def test_catalog_from_stats(self):
        final = _final()
        assert codec.catalog_from_stats(list(final.strategy_stats.stats)) == CATALOG
