"""
Genetic Rebalancer — PopulationManager (generational loop).

Layer 5 (evolution). Depends only on interfaces/ and evolution/.

Lifecycle of one run:
  1. INITIALIZING: generation 1 is population_size random strategies,
     each scored once at creation.
  2. EVALUATING: sort ascending by fitness, push the best fitness into
     the stagnation window, check convergence.
  3. Not converged → emit GenerationProgress, then REPRODUCING:
       - elites: best floor(10% N) carried over unchanged
       - offspring: floor(90% N) children, both parents drawn with
         replacement from the best floor(50% N)
     and back to 2.
  4. Converged → emit exactly one FinalGeneration with the report.

N is the configured population size. Flooring can make a generation
smaller than N (e.g. N=15 → 1 + 13); that size is kept as is. A size
too small to reproduce at all (N=1 gives 0 + 0) is still fine while the
search stops in generation 1; otherwise the reproduction step raises
ValueError.

All randomness comes from the injected rng. All state (population,
stagnation window) belongs to this instance and dies with it.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterator, List, Optional, Union

from genetic_rebalancer.evolution.fitness import FitnessEvaluator
from genetic_rebalancer.evolution.operators import (
    MatingOperator, StrategyFactory, describe_strategy,
)
from genetic_rebalancer.evolution.report import build_strategy_stats
from genetic_rebalancer.evolution.stagnation import StagnationWindow
from genetic_rebalancer.interfaces.enums import SearchState
from genetic_rebalancer.interfaces.types import (
    AssetCatalog, FinalGeneration, GenerationProgress, Individual, SearchRequest,
)

logger = logging.getLogger("rebalancer.evolution")

ProgressMessage = Union[GenerationProgress, FinalGeneration]


# ── GA parameters ────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class EvolutionParams:
    """Generation shape and mating probabilities."""
    elite_percent: int = 10
    offspring_percent: int = 90
    parent_pool_percent: int = 50
    first_parent_probability: float = 0.4
    mutation_probability: float = 0.2

    def elite_count(self, population_size: int) -> int:
        return (self.elite_percent * population_size) // 100

    def offspring_count(self, population_size: int) -> int:
        return (self.offspring_percent * population_size) // 100

    def parent_pool_count(self, population_size: int) -> int:
        return (self.parent_pool_percent * population_size) // 100


DEFAULT_PARAMS = EvolutionParams()


# ═════════════════════════════════════════════════════════════
# PopulationManager
# ═════════════════════════════════════════════════════════════

class PopulationManager:
    """
    Owns one genetic search from the first generation to convergence.

    Use iter_generations() to pull progress messages one at a time
    (closing the generator cancels the run), or run() to drive it to
    the end with an optional callback.
    """

    __slots__ = (
        "_catalog", "_investment_limit", "_population_size", "_params",
        "_rng", "_evaluator", "_factory", "_mating", "_window",
        "_population", "_generation", "_state",
    )

    def __init__(
        self,
        catalog: AssetCatalog,
        investment_limit: Decimal,
        population_size: int,
        stop_after_n_generations_without_better_result: int,
        rng: random.Random | None = None,
        params: EvolutionParams | None = None,
    ) -> None:
        if len(catalog) == 0:
            raise ValueError("asset catalog is empty")
        if population_size < 1:
            raise ValueError(f"population_size must be >= 1, got {population_size}")
        self._params = params or DEFAULT_PARAMS
        self._catalog = catalog
        self._investment_limit = investment_limit
        self._population_size = population_size
        self._rng = rng or random.Random()
        self._evaluator = FitnessEvaluator(catalog, investment_limit)
        self._factory = StrategyFactory(catalog, investment_limit, self._rng)
        self._mating = MatingOperator(
            self._factory, self._rng,
            first_parent_probability=self._params.first_parent_probability,
            mutation_probability=self._params.mutation_probability,
        )
        self._window = StagnationWindow(stop_after_n_generations_without_better_result)
        self._population: List[Individual] = []
        self._generation = 0
        self._state = SearchState.INITIALIZING

    @classmethod
    def from_request(
        cls,
        request: SearchRequest,
        rng: random.Random | None = None,
        params: EvolutionParams | None = None,
    ) -> "PopulationManager":
        return cls(
            catalog=request.catalog,
            investment_limit=request.investment_limit,
            population_size=request.population_size,
            stop_after_n_generations_without_better_result=(
                request.stop_after_n_generations_without_better_result
            ),
            rng=rng,
            params=params,
        )

    # ════════════════════════════════════════════════════════
    # Inspection
    # ════════════════════════════════════════════════════════

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def population(self) -> List[Individual]:
        return list(self._population)

    @property
    def stagnation_window(self) -> StagnationWindow:
        return self._window

    @property
    def evaluator(self) -> FitnessEvaluator:
        return self._evaluator

    # ════════════════════════════════════════════════════════
    # Generational loop
    # ════════════════════════════════════════════════════════

    def iter_generations(self) -> Iterator[ProgressMessage]:
        """
        Yield one GenerationProgress per non-terminal generation, in
        increasing generation order, then exactly one FinalGeneration.
        """
        if self._generation:
            raise RuntimeError("a PopulationManager runs only once")

        self._generation = 1
        self._state = SearchState.INITIALIZING
        self._population = self._initial_population()
        logger.info(
            "search started: assets=%d population=%d stop_after=%d limit=%s",
            len(self._catalog), self._population_size,
            self._window.capacity, self._investment_limit,
        )

        while True:
            self._state = SearchState.EVALUATING
            self._population.sort(key=lambda ind: ind.fitness)
            best = self._population[0]
            self._window.push(best.fitness)

            reason = self._window.stop_reason()
            if reason is not None:
                break

            logger.debug(
                "gen %d: pop=%d best=%s [%s]",
                self._generation, len(self._population), best.fitness,
                describe_strategy(best.strategy, self._catalog),
            )
            yield GenerationProgress(generation=self._generation, best=best)

            self._generation += 1
            self._state = SearchState.REPRODUCING
            self._population = self._next_generation(self._population)

        self._state = SearchState.CONVERGED
        logger.info(
            "search converged at gen %d: best=%s reason=%s [%s]",
            self._generation, best.fitness, reason.value,
            describe_strategy(best.strategy, self._catalog),
        )
        yield FinalGeneration(
            generation=self._generation,
            best=best,
            strategy_stats=build_strategy_stats(best.strategy, self._catalog),
            investment_limit=self._investment_limit,
            stop_reason=reason,
        )

    def run(
        self, callback: Optional[Callable[[ProgressMessage], None]] = None,
    ) -> FinalGeneration:
        """Drive the search to convergence and return the final message."""
        final = None
        for message in self.iter_generations():
            if callback is not None:
                callback(message)
            if message.is_final:
                final = message
        return final

    # ════════════════════════════════════════════════════════
    # Internal: population construction
    # ════════════════════════════════════════════════════════

    def _score(self, strategy) -> Individual:
        return Individual(strategy=strategy, fitness=self._evaluator.evaluate(strategy))

    def _initial_population(self) -> List[Individual]:
        return [
            self._score(self._factory.create_random_strategy())
            for _ in range(self._population_size)
        ]

    def _next_generation(self, ranked: List[Individual]) -> List[Individual]:
        n = self._population_size
        elites = self._params.elite_count(n)
        offspring = self._params.offspring_count(n)
        pool = self._params.parent_pool_count(n)
        if elites + offspring == 0 or (offspring and not pool):
            raise ValueError(
                f"population_size {n} cannot produce generation {self._generation}: "
                f"{elites} elites, {offspring} offspring, {pool} parents"
            )
        next_gen = list(ranked[:elites])
        parents = ranked[:pool]
        for _ in range(offspring):
            pa = self._rng.choice(parents)
            pb = self._rng.choice(parents)
            next_gen.append(self._score(self._mating.mate(pa.strategy, pb.strategy)))
        return next_gen


def run_search(
    request: SearchRequest,
    rng: random.Random | None = None,
    callback: Optional[Callable[[ProgressMessage], None]] = None,
    params: EvolutionParams | None = None,
) -> FinalGeneration:
    return PopulationManager.from_request(request, rng=rng, params=params).run(callback)
