"""
Genetic Rebalancer — Wire codec.

One boundary for numbers leaving or entering the process: every decimal
crosses as a base-10 string, never as a float. JSON text is parsed with
parse_float=Decimal so numeric literals never touch binary floating point.

Input message:
    {populationSize, stopAfterNGenerationsWithoutBetterResult,
     investmentLimit, assetData: [{name, targetPercentage,
     currentTotalValue, currentSharePrice}, ...]}

Output messages:
    intermediate: {generation, result: {strategy, fitness}}
    final:        {generation, result, strategyStats: {stats,
                   totalProjectedInvestment}, investmentLimit, stopReason}
"""
from __future__ import annotations

import json
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Union

from genetic_rebalancer.interfaces.enums import StopReason
from genetic_rebalancer.interfaces.numeric import to_decimal
from genetic_rebalancer.interfaces.types import (
    Asset, AssetCatalog, FinalGeneration, Fitness, GenerationProgress,
    Individual, SearchRequest, Strategy, StrategyReport, StrategyStats,
)
from genetic_rebalancer.validation import PreconditionError

OVER_BUDGET_WIRE = "Infinity"


# ── Decimals ─────────────────────────────────────────────────

def encode_decimal(value: Decimal) -> str:
    return str(value)


def decode_decimal(value: Any) -> Decimal:
    """Accepts the wire string, an int, or a Decimal produced by loads()."""
    try:
        return to_decimal(value)
    except (TypeError, ValueError) as exc:
        raise PreconditionError([str(exc)]) from exc


def encode_fitness(fitness: Fitness) -> str:
    return OVER_BUDGET_WIRE if fitness.over_budget else encode_decimal(fitness.value)


def decode_fitness(value: Any) -> Fitness:
    if value == OVER_BUDGET_WIRE:
        return Fitness(over_budget=True)
    return Fitness.feasible(decode_decimal(value))


# ── Requests ─────────────────────────────────────────────────

def _require(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise PreconditionError([f"missing field: {key}"])
    return payload[key]


def _decode_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise PreconditionError([f"{name} must be an integer"])
    if isinstance(value, int):
        return value
    try:
        d = Decimal(str(value).strip())
    except InvalidOperation:
        raise PreconditionError([f"{name} must be an integer, got {value!r}"]) from None
    if not d.is_finite() or d != d.to_integral_value():
        raise PreconditionError([f"{name} must be an integer, got {value!r}"])
    return int(d)


def decode_asset(payload: Mapping[str, Any]) -> Asset:
    return Asset(
        name=str(_require(payload, "name")),
        target_percentage=decode_decimal(_require(payload, "targetPercentage")),
        current_total_value=decode_decimal(_require(payload, "currentTotalValue")),
        current_share_price=decode_decimal(_require(payload, "currentSharePrice")),
    )


def decode_request(payload: Mapping[str, Any]) -> SearchRequest:
    assets_raw = _require(payload, "assetData")
    if not isinstance(assets_raw, list):
        raise PreconditionError(["assetData must be a list"])
    for i, raw in enumerate(assets_raw):
        if not isinstance(raw, Mapping):
            raise PreconditionError([f"assetData[{i}] must be an object"])
    try:
        catalog = AssetCatalog.from_assets(decode_asset(a) for a in assets_raw)
    except PreconditionError:
        raise
    except ValueError as exc:
        raise PreconditionError([str(exc)]) from exc
    return SearchRequest(
        population_size=_decode_int(
            _require(payload, "populationSize"), "populationSize"),
        stop_after_n_generations_without_better_result=_decode_int(
            _require(payload, "stopAfterNGenerationsWithoutBetterResult"),
            "stopAfterNGenerationsWithoutBetterResult"),
        investment_limit=decode_decimal(_require(payload, "investmentLimit")),
        catalog=catalog,
    )


def encode_request(request: SearchRequest) -> Dict[str, Any]:
    return {
        "populationSize": request.population_size,
        "stopAfterNGenerationsWithoutBetterResult":
            request.stop_after_n_generations_without_better_result,
        "investmentLimit": encode_decimal(request.investment_limit),
        "assetData": [
            {
                "name": a.name,
                "targetPercentage": encode_decimal(a.target_percentage),
                "currentTotalValue": encode_decimal(a.current_total_value),
                "currentSharePrice": encode_decimal(a.current_share_price),
            }
            for a in request.catalog
        ],
    }


# ── Progress messages ────────────────────────────────────────

def encode_individual(best: Individual, catalog: AssetCatalog) -> Dict[str, Any]:
    return {
        "strategy": best.strategy.as_mapping(catalog),
        "fitness": encode_fitness(best.fitness),
    }


def encode_report(report: StrategyReport) -> Dict[str, Any]:
    return {
        "assetName": report.asset_name,
        "targetPercentage": encode_decimal(report.target_percentage),
        "currentTotalValue": encode_decimal(report.current_total_value),
        "currentSharePrice": encode_decimal(report.current_share_price),
        "currentPercentage": encode_decimal(report.current_percentage),
        "sharesCount": report.shares_count,
        "rebalancedPercentage": encode_decimal(report.rebalanced_percentage),
        "projectedInvestment": encode_decimal(report.projected_investment),
    }


def decode_report(payload: Mapping[str, Any]) -> StrategyReport:
    return StrategyReport(
        asset_name=str(payload["assetName"]),
        target_percentage=decode_decimal(payload["targetPercentage"]),
        current_total_value=decode_decimal(payload["currentTotalValue"]),
        current_share_price=decode_decimal(payload["currentSharePrice"]),
        current_percentage=decode_decimal(payload["currentPercentage"]),
        shares_count=_decode_int(payload["sharesCount"], "sharesCount"),
        rebalanced_percentage=decode_decimal(payload["rebalancedPercentage"]),
        projected_investment=decode_decimal(payload["projectedInvestment"]),
    )


def encode_stats(stats: StrategyStats) -> Dict[str, Any]:
    return {
        "stats": [encode_report(r) for r in stats.stats],
        "totalProjectedInvestment": encode_decimal(stats.total_projected_investment),
    }


def decode_stats(payload: Mapping[str, Any]) -> StrategyStats:
    return StrategyStats(
        stats=tuple(decode_report(r) for r in payload.get("stats", [])),
        total_projected_investment=decode_decimal(payload["totalProjectedInvestment"]),
    )


def encode_message(
    message: Union[GenerationProgress, FinalGeneration],
    catalog: AssetCatalog,
) -> Dict[str, Any]:
    encoded: Dict[str, Any] = {
        "generation": message.generation,
        "result": encode_individual(message.best, catalog),
    }
    if message.is_final:
        encoded["strategyStats"] = encode_stats(message.strategy_stats)
        encoded["investmentLimit"] = encode_decimal(message.investment_limit)
        if message.stop_reason is not None:
            encoded["stopReason"] = message.stop_reason.value
    return encoded


def decode_final_message(payload: Mapping[str, Any], catalog: AssetCatalog) -> FinalGeneration:
    result = payload["result"]
    reason = payload.get("stopReason")
    return FinalGeneration(
        generation=_decode_int(payload["generation"], "generation"),
        best=Individual(
            strategy=Strategy.from_mapping(result["strategy"], catalog),
            fitness=decode_fitness(result["fitness"]),
        ),
        strategy_stats=decode_stats(payload["strategyStats"]),
        investment_limit=decode_decimal(payload["investmentLimit"]),
        stop_reason=StopReason(reason) if reason else None,
    )


# ── JSON text ────────────────────────────────────────────────

def loads(text: str) -> Any:
    return json.loads(text, parse_float=Decimal)


def loads_request(text: str) -> SearchRequest:
    try:
        payload = loads(text)
    except json.JSONDecodeError as exc:
        raise PreconditionError([f"invalid JSON: {exc}"]) from exc
    if not isinstance(payload, dict):
        raise PreconditionError(["request must be a JSON object"])
    return decode_request(payload)


def dumps_message(encoded: Dict[str, Any]) -> str:
    return json.dumps(encoded, separators=(",", ":"))


def catalog_from_stats(stats: List[StrategyReport]) -> AssetCatalog:
    """Rebuild the catalog a final message was produced for."""
    return AssetCatalog.from_assets(
        Asset(
            name=r.asset_name,
            target_percentage=r.target_percentage,
            current_total_value=r.current_total_value,
            current_share_price=r.current_share_price,
        )
        for r in stats
    )
