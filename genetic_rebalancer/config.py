"""
Genetic Rebalancer — Configuration loader.

Loads from YAML file with environment variable overrides.

Usage:
    config = load_config("rebalance.yaml")
    config = load_config()  # defaults only (sample portfolio)

Example YAML:

    search:
      population_size: 500
      stop_after_n_generations_without_better_result: 30
      seed: 7
    portfolio:
      investment_limit: "1800"
      assets:
        - {name: Krusty Krab, target_percentage: 45,
           current_total_value: "5408.84", current_share_price: "63.89"}
    infra:
      log_level: DEBUG
      archive_path: solutions.json
      form_bounds: true          # population 100-1000, stop-after 5-100, limit 0.01-100000
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from genetic_rebalancer.interfaces.numeric import to_decimal
from genetic_rebalancer.interfaces.types import Asset, AssetCatalog, SearchRequest
from genetic_rebalancer.validation import (
    DEFAULT_BOUNDS, FORM_BOUNDS, MAX_ASSETS, PreconditionError, RequestBounds,
    validate_request,
)

logger = logging.getLogger("rebalancer.config")


# ═════════════════════════════════════════════════════════════
# Config dataclasses
# ═════════════════════════════════════════════════════════════

@dataclass
class AssetConfig:
    name: str
    target_percentage: Decimal
    current_total_value: Decimal
    current_share_price: Decimal

    def to_asset(self) -> Asset:
        return Asset(
            name=self.name,
            target_percentage=self.target_percentage,
            current_total_value=self.current_total_value,
            current_share_price=self.current_share_price,
        )


def _sample_assets() -> List[AssetConfig]:
    return [
        AssetConfig("Weyland-Yutani", Decimal("15"), Decimal("1589.23"), Decimal("102.32")),
        AssetConfig("Krusty Krab", Decimal("45"), Decimal("5408.84"), Decimal("63.89")),
        AssetConfig("Majima Construction", Decimal("10"), Decimal("825.52"), Decimal("93.11")),
        AssetConfig("Speedwagon Foundation", Decimal("30"), Decimal("3013.15"), Decimal("85.66")),
    ]


@dataclass
class SearchConfig:
    population_size: int = 500
    stop_after_n_generations_without_better_result: int = 30
    seed: Optional[int] = None


@dataclass
class PortfolioConfig:
    investment_limit: Decimal = Decimal("1800")
    assets: List[AssetConfig] = field(default_factory=_sample_assets)


@dataclass
class InfraConfig:
    log_level: str = "INFO"
    log_file: Optional[str] = None
    archive_path: Optional[str] = None
    archive_size: int = 5
    max_assets: int = MAX_ASSETS
    # enforce the ranges of the interactive rebalancing form
    form_bounds: bool = False


@dataclass
class RebalanceConfig:
    """Top-level configuration."""
    search: SearchConfig = field(default_factory=SearchConfig)
    portfolio: PortfolioConfig = field(default_factory=PortfolioConfig)
    infra: InfraConfig = field(default_factory=InfraConfig)

    def to_request(self) -> SearchRequest:
        return SearchRequest(
            population_size=self.search.population_size,
            stop_after_n_generations_without_better_result=(
                self.search.stop_after_n_generations_without_better_result
            ),
            investment_limit=self.portfolio.investment_limit,
            catalog=AssetCatalog.from_assets(a.to_asset() for a in self.portfolio.assets),
        )

    def request_bounds(self) -> RequestBounds:
        return FORM_BOUNDS if self.infra.form_bounds else DEFAULT_BOUNDS

    def validate(self) -> List[str]:
        """Return list of validation errors (empty = valid)."""
        names = [a.name for a in self.portfolio.assets]
        if len(set(names)) != len(names):
            # the catalog refuses duplicates, so report before building it
            dupes = sorted({n for n in names if names.count(n) > 1})
            return ["asset names must be unique, found duplicates: [{}]".format(
                ", ".join(f"'{d}'" for d in dupes))]
        errors = validate_request(
            self.to_request(),
            max_assets=self.infra.max_assets,
            bounds=self.request_bounds(),
        )
        if self.infra.archive_size < 1:
            errors.append("infra.archive_size must be >= 1")
        return errors


# ═════════════════════════════════════════════════════════════
# Loader
# ═════════════════════════════════════════════════════════════

def _yaml_decimal(value: Any) -> Decimal:
    # YAML turns 102.32 into a float; its repr is the literal the user typed
    if isinstance(value, float):
        value = repr(value)
    return to_decimal(value)


def _yaml_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"section '{name}' must be a mapping")
    return section


def _parse_asset(raw: Dict[str, Any]) -> AssetConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"asset entry must be a mapping, got {raw!r}")
    return AssetConfig(
        name=str(raw["name"]),
        target_percentage=_yaml_decimal(raw["target_percentage"]),
        current_total_value=_yaml_decimal(raw.get("current_total_value", 0)),
        current_share_price=_yaml_decimal(raw["current_share_price"]),
    )


def _apply_yaml(config: RebalanceConfig, raw: Dict[str, Any]) -> None:
    search = _section(raw, "search")
    for field_name in ("population_size", "stop_after_n_generations_without_better_result"):
        if field_name in search:
            setattr(config.search, field_name, _yaml_int(search[field_name]))
    if search.get("seed") is not None:
        config.search.seed = _yaml_int(search["seed"])

    portfolio = _section(raw, "portfolio")
    if "investment_limit" in portfolio:
        config.portfolio.investment_limit = _yaml_decimal(portfolio["investment_limit"])
    if portfolio.get("assets"):
        if not isinstance(portfolio["assets"], list):
            raise ValueError("portfolio.assets must be a list")
        config.portfolio.assets = [_parse_asset(a) for a in portfolio["assets"]]

    infra = _section(raw, "infra")
    config.infra.log_level = str(infra.get("log_level", config.infra.log_level))
    config.infra.log_file = infra.get("log_file", config.infra.log_file)
    config.infra.archive_path = infra.get("archive_path", config.infra.archive_path)
    config.infra.archive_size = _yaml_int(infra.get("archive_size", config.infra.archive_size))
    config.infra.max_assets = _yaml_int(infra.get("max_assets", config.infra.max_assets))
    config.infra.form_bounds = bool(infra.get("form_bounds", config.infra.form_bounds))


def load_config(path: str | None = None) -> RebalanceConfig:
    """
    Load config from YAML file with env var overrides.

    Priority: env vars > YAML file > defaults

    Raises PreconditionError when the file is not valid YAML or holds a
    value of the wrong shape (missing asset key, non-numeric size, ...).
    """
    raw: Dict[str, Any] = {}

    if path and Path(path).exists():
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise PreconditionError([f"{path}: invalid YAML: {exc}"]) from exc
        if not isinstance(raw, dict):
            raise PreconditionError([f"{path}: top level must be a mapping"])
        logger.info("loaded config from %s", path)
    elif path:
        logger.warning("config file %s not found, using defaults", path)

    config = RebalanceConfig()
    try:
        _apply_yaml(config, raw)
    except KeyError as exc:
        raise PreconditionError([f"{path}: missing key {exc}"]) from exc
    except (TypeError, ValueError) as exc:
        raise PreconditionError([f"{path}: {exc}"]) from exc

    def _env_int(name: str, default: Optional[int]) -> Optional[int]:
        raw_val = os.getenv(name)
        if raw_val is None or raw_val.strip() == "":
            return default
        try:
            return int(raw_val)
        except ValueError:
            logger.warning("invalid int in %s=%r; using default=%s", name, raw_val, default)
            return default

    def _env_decimal(name: str, default: Decimal) -> Decimal:
        raw_val = os.getenv(name)
        if raw_val is None or raw_val.strip() == "":
            return default
        try:
            return to_decimal(raw_val)
        except ValueError:
            logger.warning("invalid decimal in %s=%r; using default=%s", name, raw_val, default)
            return default

    config.search.population_size = _env_int(
        "REBALANCER_POPULATION_SIZE", config.search.population_size)
    config.search.stop_after_n_generations_without_better_result = _env_int(
        "REBALANCER_STOP_AFTER",
        config.search.stop_after_n_generations_without_better_result)
    config.search.seed = _env_int("REBALANCER_SEED", config.search.seed)
    config.portfolio.investment_limit = _env_decimal(
        "REBALANCER_INVESTMENT_LIMIT", config.portfolio.investment_limit)
    config.infra.log_level = os.getenv("LOG_LEVEL", config.infra.log_level)
    config.infra.archive_path = os.getenv("REBALANCER_ARCHIVE", config.infra.archive_path)

    return config
