"""
Genetic Rebalancer — Strategy report.

Turns a winning strategy into a per-asset breakdown: where each asset
stands today, how many shares to buy, and where it lands afterwards.
Pure derived computation.
"""
from __future__ import annotations

from decimal import localcontext

from genetic_rebalancer.evolution.fitness import projected_investments
from genetic_rebalancer.interfaces.numeric import DECIMAL_CONTEXT, decimal_sum, percentage_of
from genetic_rebalancer.interfaces.types import (
    AssetCatalog, Strategy, StrategyReport, StrategyStats,
)


def build_strategy_stats(strategy: Strategy, catalog: AssetCatalog) -> StrategyStats:
    current_total = catalog.total_current_value()
    investments = projected_investments(strategy, catalog)
    total_projected = decimal_sum(investments)
    with localcontext(DECIMAL_CONTEXT):
        rebalanced_total = current_total + total_projected

    stats = []
    for asset, count, invested in zip(catalog, strategy, investments):
        with localcontext(DECIMAL_CONTEXT):
            projected_value = asset.current_total_value + invested
        stats.append(StrategyReport(
            asset_name=asset.name,
            target_percentage=asset.target_percentage,
            current_total_value=asset.current_total_value,
            current_share_price=asset.current_share_price,
            current_percentage=percentage_of(asset.current_total_value, current_total),
            shares_count=count,
            rebalanced_percentage=percentage_of(projected_value, rebalanced_total),
            projected_investment=invested,
        ))
    return StrategyStats(stats=tuple(stats), total_projected_investment=total_projected)
