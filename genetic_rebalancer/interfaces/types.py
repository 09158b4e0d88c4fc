"""
Genetic Rebalancer — Shared value types.
Layer 0. Depends only on interfaces.enums and interfaces.numeric.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from genetic_rebalancer.interfaces.enums import StopReason
from genetic_rebalancer.interfaces.numeric import ZERO, decimal_sum


# ── Assets ───────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Asset:
    name: str
    target_percentage: Decimal
    current_total_value: Decimal
    current_share_price: Decimal


@dataclass(frozen=True, slots=True)
class AssetCatalog:
    """
    Ordered, read-only view of the assets in one run.

    The order is fixed for the whole run: a Strategy stores share counts
    by position in this catalog.
    """
    assets: Tuple[Asset, ...] = ()

    def __post_init__(self):
        assets = tuple(self.assets)
        object.__setattr__(self, "assets", assets)
        seen = set()
        for asset in assets:
            if asset.name in seen:
                raise ValueError(f"duplicate asset name in catalog: {asset.name!r}")
            seen.add(asset.name)

    @classmethod
    def from_assets(cls, assets: Iterable[Asset]) -> "AssetCatalog":
        return cls(assets=tuple(assets))

    def __len__(self) -> int:
        return len(self.assets)

    def __iter__(self) -> Iterator[Asset]:
        return iter(self.assets)

    def __getitem__(self, index: int) -> Asset:
        return self.assets[index]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(a.name for a in self.assets)

    def get(self, name: str) -> Asset:
        for asset in self.assets:
            if asset.name == name:
                return asset
        raise KeyError(name)

    def index_of(self, name: str) -> int:
        for i, asset in enumerate(self.assets):
            if asset.name == name:
                return i
        raise KeyError(name)

    def total_current_value(self) -> Decimal:
        return decimal_sum(a.current_total_value for a in self.assets)


# ── Chromosome ───────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Strategy:
    """Share counts to buy, one gene per catalog position."""
    shares: Tuple[int, ...] = ()

    def __post_init__(self):
        shares = tuple(self.shares)
        if any(isinstance(s, bool) or not isinstance(s, int) for s in shares):
            raise ValueError(f"share counts must be integers, got {shares}")
        if any(s < 0 for s in shares):
            raise ValueError(f"share counts must be non-negative, got {shares}")
        object.__setattr__(self, "shares", shares)

    def __len__(self) -> int:
        return len(self.shares)

    def __iter__(self) -> Iterator[int]:
        return iter(self.shares)

    def __getitem__(self, index: int) -> int:
        return self.shares[index]

    def as_mapping(self, catalog: AssetCatalog) -> Dict[str, int]:
        if len(catalog) != len(self.shares):
            raise ValueError(
                f"strategy has {len(self.shares)} genes, catalog has {len(catalog)} assets"
            )
        return {asset.name: count for asset, count in zip(catalog, self.shares)}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, int], catalog: AssetCatalog) -> "Strategy":
        missing = [name for name in catalog.names if name not in mapping]
        if missing:
            raise ValueError(f"strategy is missing assets: {missing}")
        return cls(shares=tuple(mapping[name] for name in catalog.names))


# ── Fitness ──────────────────────────────────────────────────

@dataclass(frozen=True, order=True, slots=True)
class Fitness:
    """
    Lower is better. Over-budget strategies carry no value and sort
    after every feasible one; two over-budget results compare equal.
    """
    over_budget: bool = False
    value: Decimal = ZERO

    @classmethod
    def feasible(cls, value: Decimal) -> "Fitness":
        return cls(over_budget=False, value=value)

    @property
    def is_ideal(self) -> bool:
        return not self.over_budget and self.value.is_zero()

    def to_decimal(self) -> Decimal:
        return Decimal("Infinity") if self.over_budget else self.value

    def __str__(self) -> str:
        return "OVER_BUDGET" if self.over_budget else str(self.value)


OVER_BUDGET = Fitness(over_budget=True)


@dataclass(frozen=True, slots=True)
class Individual:
    strategy: Strategy
    fitness: Fitness


# ── Reports ──────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class StrategyReport:
    asset_name: str
    target_percentage: Decimal
    current_total_value: Decimal
    current_share_price: Decimal
    current_percentage: Decimal
    shares_count: int
    rebalanced_percentage: Decimal
    projected_investment: Decimal


@dataclass(frozen=True, slots=True)
class StrategyStats:
    stats: Tuple[StrategyReport, ...] = ()
    total_projected_investment: Decimal = ZERO

    def shares_by_asset(self) -> Dict[str, int]:
        return {s.asset_name: s.shares_count for s in self.stats}


# ── Search input / output ────────────────────────────────────

@dataclass(frozen=True, slots=True)
class SearchRequest:
    population_size: int
    stop_after_n_generations_without_better_result: int
    investment_limit: Decimal
    catalog: AssetCatalog = field(default_factory=AssetCatalog)


@dataclass(frozen=True, slots=True)
class GenerationProgress:
    generation: int
    best: Individual

    @property
    def is_final(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class FinalGeneration:
    generation: int
    best: Individual
    strategy_stats: StrategyStats
    investment_limit: Decimal
    stop_reason: Optional[StopReason] = None

    @property
    def is_final(self) -> bool:
        return True

    @property
    def unspent(self) -> Decimal:
        return self.investment_limit - self.strategy_stats.total_projected_investment
