"""
Genetic Rebalancer — Evolution layer.

Components:
    FitnessEvaluator     Scores a strategy against target weights and budget.
    StrategyFactory      Draws random share counts bounded by the budget.
    MatingOperator       Per-gene recombination with mutation.
    StagnationWindow     Best-fitness history and convergence rule.
    PopulationManager    The generational loop.
    SolutionArchive      Last few distinct final solutions, persisted as JSON.
"""

from genetic_rebalancer.evolution.archive import SolutionArchive
from genetic_rebalancer.evolution.engine import (
    EvolutionParams,
    PopulationManager,
    run_search,
)
from genetic_rebalancer.evolution.fitness import FitnessEvaluator, evaluate_strategy
from genetic_rebalancer.evolution.operators import MatingOperator, StrategyFactory
from genetic_rebalancer.evolution.report import build_strategy_stats
from genetic_rebalancer.evolution.stagnation import StagnationWindow

__all__ = [
    "SolutionArchive",
    "EvolutionParams",
    "PopulationManager",
    "run_search",
    "FitnessEvaluator",
    "evaluate_strategy",
    "MatingOperator",
    "StrategyFactory",
    "build_strategy_stats",
    "StagnationWindow",
]
