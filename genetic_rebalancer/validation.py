"""
Genetic Rebalancer — Request validation.

The search assumes well-formed input. This module checks a SearchRequest
before a run starts and reports every problem at once.

Structural rules always apply. Numeric ranges come from a RequestBounds:
DEFAULT_BOUNDS only asks for what the search needs to run, FORM_BOUNDS
adds the ranges of the interactive rebalancing form.

Usage:
    errors = validate_request(request)
    errors = validate_request(request, bounds=FORM_BOUNDS)
    ensure_valid(request)  # raises PreconditionError
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from genetic_rebalancer.interfaces.numeric import HUNDRED, ZERO, decimal_sum
from genetic_rebalancer.interfaces.types import SearchRequest

MAX_ASSETS = 10
MIN_POPULATION_SIZE = 1


class PreconditionError(ValueError):
    """Input the search cannot run on. Carries every validation message."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


@dataclass(frozen=True, slots=True)
class RequestBounds:
    """Inclusive ranges; None leaves that side open."""
    min_population_size: int = MIN_POPULATION_SIZE
    max_population_size: Optional[int] = None
    min_stop_after: int = 1
    max_stop_after: Optional[int] = None
    min_investment_limit: Optional[Decimal] = None
    max_investment_limit: Optional[Decimal] = None


DEFAULT_BOUNDS = RequestBounds()

FORM_BOUNDS = RequestBounds(
    min_population_size=100,
    max_population_size=1000,
    min_stop_after=5,
    max_stop_after=100,
    min_investment_limit=Decimal("0.01"),
    max_investment_limit=Decimal("100000"),
)


def _check_range(errors: List[str], label: str, value, low, high) -> None:
    if low is not None and value < low:
        errors.append(f"{label} must be >= {low}")
    if high is not None and value > high:
        errors.append(f"{label} must be <= {high}")


def validate_request(
    request: SearchRequest,
    max_assets: int = MAX_ASSETS,
    bounds: RequestBounds | None = None,
) -> List[str]:
    """Return list of validation errors (empty = valid)."""
    bounds = bounds or DEFAULT_BOUNDS
    errors: List[str] = []

    _check_range(errors, "population size", request.population_size,
                 bounds.min_population_size, bounds.max_population_size)
    _check_range(errors, "stop after N generations without better result",
                 request.stop_after_n_generations_without_better_result,
                 bounds.min_stop_after, bounds.max_stop_after)
    if request.investment_limit <= ZERO:
        errors.append("investment limit must be > 0")
    else:
        _check_range(errors, "investment limit", request.investment_limit,
                     bounds.min_investment_limit, bounds.max_investment_limit)

    assets = list(request.catalog)
    if not assets:
        errors.append("at least one asset is required")
        return errors
    if len(assets) > max_assets:
        errors.append(f"no more than {max_assets} assets allowed, got {len(assets)}")

    if any(not a.name.strip() for a in assets):
        errors.append("asset names must not be empty")
    dupes = sorted(name for name, n in Counter(a.name for a in assets).items() if n > 1)
    if dupes:
        errors.append(
            "asset names must be unique, found duplicates: [{}]".format(
                ", ".join(f"'{d}'" for d in dupes))
        )

    for a in assets:
        if not (ZERO < a.target_percentage <= HUNDRED):
            errors.append(f"{a.name}: target percentage must be within (0, 100]")
        if a.current_total_value < ZERO:
            errors.append(f"{a.name}: current total value must be >= 0")
        if a.current_share_price <= ZERO:
            errors.append(f"{a.name}: current share price must be > 0")

    target_sum = decimal_sum(a.target_percentage for a in assets)
    if target_sum != HUNDRED:
        errors.append(f"sum of target percentages must be 100, found {target_sum}")

    prices = [a.current_share_price for a in assets if a.current_share_price > ZERO]
    if prices and request.investment_limit > ZERO and min(prices) > request.investment_limit:
        errors.append(
            "investment limit must be greater than or equal to at least one current share price"
        )

    return errors


def ensure_valid(
    request: SearchRequest,
    max_assets: int = MAX_ASSETS,
    bounds: RequestBounds | None = None,
) -> SearchRequest:
    errors = validate_request(request, max_assets=max_assets, bounds=bounds)
    if errors:
        raise PreconditionError(errors)
    return request
