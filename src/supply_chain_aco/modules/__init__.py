from .evaluator import DEPOSIT_RULES, HEURISTICS, OBJECTIVES, PathEvaluator
from .pheromone import PheromoneMatrix

__all__ = [
    "PathEvaluator",
    "PheromoneMatrix",
    "OBJECTIVES",
    "HEURISTICS",
    "DEPOSIT_RULES",
]
