"""
Genetic Rebalancer — Command-line entry point.

Boot sequence:
  1. Load config (YAML + env vars), apply CLI overrides
  2. Build the search request (from config or a wire-format JSON file)
  3. Validate it; invalid input exits with code 2
  4. Run the search on a worker thread, printing each progress
     message as one JSON line on stdout
  5. Record the final solution in the archive (optional)

Usage:
    python -m genetic_rebalancer.main                          # sample portfolio
    python -m genetic_rebalancer.main --config rebalance.yaml
    python -m genetic_rebalancer.main --request request.json --seed 7
    echo '{...}' | python -m genetic_rebalancer.main --request - --quiet
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from genetic_rebalancer.config import RebalanceConfig, load_config
from genetic_rebalancer.determinism import lock_determinism
from genetic_rebalancer.evolution.archive import SolutionArchive
from genetic_rebalancer.infra import codec
from genetic_rebalancer.infra.event_bus import EventBus
from genetic_rebalancer.interfaces.enums import EventType
from genetic_rebalancer.interfaces.events import Event
from genetic_rebalancer.interfaces.types import SearchRequest
from genetic_rebalancer.runtime.search_service import SearchService
from genetic_rebalancer.validation import PreconditionError, ensure_valid

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def setup_logging(level: str, log_file: str | None = None):
    fmt = "%(asctime)s │ %(levelname)-5s │ %(name)-20s │ %(message)s"
    # stdout carries the wire messages
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        handlers=handlers,
        force=True,
    )


def build_request(config: RebalanceConfig, request_path: str | None) -> SearchRequest:
    if not request_path:
        return config.to_request()
    if request_path == "-":
        return codec.loads_request(sys.stdin.read())
    with open(request_path) as f:
        return codec.loads_request(f.read())


async def run(
    config: RebalanceConfig,
    request: SearchRequest,
    quiet: bool = False,
) -> int:
    logger = logging.getLogger("rebalancer.main")
    # a listener that cannot write (closed stdout) ends the search
    bus = EventBus(fail_fast=True)
    service = SearchService(event_bus=bus)

    async def print_progress(event: Event) -> None:
        print(codec.dumps_message(event.payload), flush=True)

    if not quiet:
        bus.subscribe(EventType.GENERATION_COMPLETE, print_progress)
    bus.subscribe(EventType.SEARCH_FINISHED, print_progress)

    def handle_signal(signum, frame):
        logger.info("received signal %d, stopping search", signum)
        service.stop()

    previous = {sig: signal.signal(sig, handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        final = await service.run(request, seed=config.search.seed)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        logger.debug("event bus: %s", bus.stats)
        bus.close()

    if final is None:
        logger.warning("search cancelled before convergence")
        return EXIT_FAILED

    logger.info(
        "spent %s of %s at generation %d (%s remained)",
        final.strategy_stats.total_projected_investment,
        final.investment_limit, final.generation, final.unspent,
    )

    if config.infra.archive_path:
        archive = SolutionArchive(max_size=config.infra.archive_size)
        archive.load(config.infra.archive_path)
        if archive.record(final):
            archive.save(config.infra.archive_path)
    return EXIT_OK


# ═════════════════════════════════════════════════════════════
# CLI
# ═════════════════════════════════════════════════════════════

def _report_invalid(exc: PreconditionError) -> int:
    for error in exc.errors:
        print(f"error: {error}", file=sys.stderr)
    return EXIT_INVALID


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Find whole-share purchases that move a portfolio toward target weights")
    parser.add_argument("--config", "-c", default=None,
                        help="Path to config YAML file")
    parser.add_argument("--request", "-r", default=None,
                        help="Wire-format JSON request file ('-' for stdin)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed (overrides config)")
    parser.add_argument("--population-size", type=int, default=None,
                        help="Population size (overrides config)")
    parser.add_argument("--stop-after", type=int, default=None,
                        help="Stop after N generations without a better result")
    parser.add_argument("--investment-limit", default=None,
                        help="Budget as a decimal string (overrides config)")
    parser.add_argument("--archive", default=None,
                        help="JSON file keeping the last unique solutions")
    parser.add_argument("--form-bounds", action="store_true",
                        help="Enforce population 100-1000, stop-after 5-100, limit 0.01-100000")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Print only the final message")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (overrides config)")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except PreconditionError as exc:
        return _report_invalid(exc)

    if args.seed is not None:
        config.search.seed = args.seed
    if args.population_size is not None:
        config.search.population_size = args.population_size
    if args.stop_after is not None:
        config.search.stop_after_n_generations_without_better_result = args.stop_after
    if args.archive:
        config.infra.archive_path = args.archive
    if args.form_bounds:
        config.infra.form_bounds = True
    if args.log_level:
        config.infra.log_level = args.log_level

    setup_logging(config.infra.log_level, config.infra.log_file)
    logger = logging.getLogger("rebalancer.main")

    try:
        if args.investment_limit is not None:
            config.portfolio.investment_limit = codec.decode_decimal(args.investment_limit)
        if not args.request:
            errors = config.validate()
            if errors:
                raise PreconditionError(errors)
        request = build_request(config, args.request)
        if args.investment_limit is not None and args.request:
            request = SearchRequest(
                population_size=request.population_size,
                stop_after_n_generations_without_better_result=(
                    request.stop_after_n_generations_without_better_result),
                investment_limit=config.portfolio.investment_limit,
                catalog=request.catalog,
            )
        ensure_valid(request, max_assets=config.infra.max_assets, bounds=config.request_bounds())
    except PreconditionError as exc:
        return _report_invalid(exc)

    if config.search.seed is not None:
        lock_determinism(config.search.seed)

    try:
        return asyncio.run(run(config, request, quiet=args.quiet))
    except Exception as exc:
        logger.error("search failed: %s", exc, exc_info=True)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
