"""
Genetic Rebalancer — Enumerations.
Layer 0 (interfaces). Zero dependencies.
"""
from enum import Enum, auto


class SearchState(Enum):
    INITIALIZING = "initializing"
    REPRODUCING  = "reproducing"
    EVALUATING   = "evaluating"
    CONVERGED    = "converged"


class StopReason(Enum):
    IDEAL_FITNESS = "ideal_fitness"   # best fitness reached exactly zero
    STAGNATION    = "stagnation"      # oldest == newest in a full window


class EventType(Enum):
    SEARCH_STARTED      = auto()
    GENERATION_COMPLETE = auto()
    SEARCH_FINISHED     = auto()
    SEARCH_CANCELLED    = auto()
    SEARCH_FAILED       = auto()
