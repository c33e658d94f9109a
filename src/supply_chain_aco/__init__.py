"""
Supply Chain ACO Routing Package

多階層サプライチェーン（供給者→製造者→卸売→小売）上の経路をACOで最適化するパッケージ
"""

__version__ = "1.0.0"

from .algorithms.aco_solver import (
    ACOSolver,
    ConvergenceRecord,
    OptimizationResult,
    RunState,
    optimize,
)
from .algorithms.ant_constructor import AntConstructor
from .algorithms.colony_iteration import ColonyIteration, IterationResult
from .core.ant import Ant, AntStatus
from .core.graph import SupplyChainEdge, SupplyChainGraph, generate_supply_chain_graph
from .core.node import NodeCategory, SupplyChainNode
from .exceptions import ConfigurationError, GraphValidationError
from .modules.evaluator import PathEvaluator
from .modules.pheromone import PheromoneMatrix
from .utils.config import ACOParameters, load_config
from .utils.metrics import ConvergenceMetrics

__all__ = [
    "ACOSolver",
    "ACOParameters",
    "Ant",
    "AntConstructor",
    "AntStatus",
    "ColonyIteration",
    "ConfigurationError",
    "ConvergenceMetrics",
    "ConvergenceRecord",
    "GraphValidationError",
    "IterationResult",
    "NodeCategory",
    "OptimizationResult",
    "PathEvaluator",
    "PheromoneMatrix",
    "RunState",
    "SupplyChainEdge",
    "SupplyChainGraph",
    "SupplyChainNode",
    "generate_supply_chain_graph",
    "load_config",
    "optimize",
]
