from .aco_solver import (
    ACOSolver,
    ConvergenceRecord,
    OptimizationResult,
    RunState,
    optimize,
)
from .ant_constructor import AntConstructor
from .colony_iteration import AntConstruction, ColonyIteration, IterationResult

__all__ = [
    "ACOSolver",
    "ConvergenceRecord",
    "OptimizationResult",
    "RunState",
    "optimize",
    "AntConstructor",
    "AntConstruction",
    "ColonyIteration",
    "IterationResult",
]
