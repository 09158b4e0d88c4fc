"""
Tests for the SolutionArchive.

Covers:
    1. Dedup by shares per asset + total projected investment
    2. Oldest entry evicted past max_size
    3. JSON save/load preserves every decimal digit
"""

import json
from decimal import Decimal

import pytest

from genetic_rebalancer.evolution.archive import SolutionArchive, solution_key
from genetic_rebalancer.evolution.fitness import evaluate_strategy
from genetic_rebalancer.evolution.report import build_strategy_stats
from genetic_rebalancer.interfaces.enums import StopReason
from genetic_rebalancer.interfaces.types import (
    Asset, AssetCatalog, FinalGeneration, Individual, Strategy,
)

CATALOG = AssetCatalog.from_assets([
    Asset("Weyland-Yutani", Decimal(15), Decimal("1589.23"), Decimal("102.32")),
    Asset("Krusty Krab", Decimal(85), Decimal("5408.84"), Decimal("63.89")),
])
LIMIT = Decimal(1800)


def _final(*shares, generation=4):
    strategy = Strategy(shares)
    return FinalGeneration(
        generation=generation,
        best=Individual(strategy, evaluate_strategy(strategy, CATALOG, LIMIT)),
        strategy_stats=build_strategy_stats(strategy, CATALOG),
        investment_limit=LIMIT,
        stop_reason=StopReason.STAGNATION,
    )


class TestRecord:

    def test_new_solution_recorded(self):
        archive = SolutionArchive()
        assert archive.record(_final(3, 20))
        assert archive.size == 1
        assert archive.latest == _final(3, 20)

    def test_same_shares_not_recorded_twice(self):
        archive = SolutionArchive()
        archive.record(_final(3, 20, generation=4))
        # found again by a later run at another generation
        assert not archive.record(_final(3, 20, generation=11))
        assert archive.size == 1
        assert archive.contains(_final(3, 20))

    def test_key_ignores_generation(self):
        assert solution_key(_final(1, 2, generation=1)) == solution_key(_final(1, 2, generation=9))
        assert solution_key(_final(1, 2)) != solution_key(_final(2, 1))

    def test_oldest_evicted(self):
        archive = SolutionArchive(max_size=2)
        for shares in [(1, 1), (2, 2), (3, 3)]:
            archive.record(_final(*shares))
        assert [e.best.strategy.shares for e in archive.entries] == [(2, 2), (3, 3)]

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            SolutionArchive(max_size=0)

    def test_clear(self):
        archive = SolutionArchive()
        archive.record(_final(1, 1))
        archive.clear()
        assert archive.latest is None


class TestPersistence:

    def test_save_and_load(self, tmp_path):
        path = str(tmp_path / "solutions.json")
        archive = SolutionArchive()
        archive.record(_final(3, 20))
        archive.record(_final(5, 18))
        archive.save(path)

        restored = SolutionArchive()
        assert restored.load(path) == 2
        assert restored.entries == archive.entries
        assert restored.contains(_final(5, 18))

    def test_decimals_stored_as_strings(self, tmp_path):
        path = tmp_path / "solutions.json"
        archive = SolutionArchive()
        archive.record(_final(3, 20))
        archive.save(str(path))
        data = json.loads(path.read_text())
        assert data["version"] == 1
        message = data["entries"][0]["message"]
        assert message["investmentLimit"] == "1800"
        assert message["strategyStats"]["stats"][0]["currentSharePrice"] == "102.32"

    def test_missing_file(self, tmp_path):
        assert SolutionArchive().load(str(tmp_path / "missing.json")) == 0

    def test_summary(self):
        archive = SolutionArchive()
        archive.record(_final(3, 20))
        summary = archive.summary()
        assert summary["size"] == 1
        assert summary["solutions"][0]["shares"] == {"Weyland-Yutani": 3, "Krusty Krab": 20}
