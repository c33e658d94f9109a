from .ant import Ant, AntStatus
from .graph import SupplyChainEdge, SupplyChainGraph, generate_supply_chain_graph
from .node import CATEGORIES, NodeCategory, SupplyChainNode

__all__ = [
    "Ant",
    "AntStatus",
    "SupplyChainGraph",
    "SupplyChainEdge",
    "SupplyChainNode",
    "NodeCategory",
    "CATEGORIES",
    "generate_supply_chain_graph",
]
