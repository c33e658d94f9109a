"""
テスト共通のフィクスチャ
"""

import pytest

from supply_chain_aco.core.graph import SupplyChainEdge, SupplyChainGraph
from supply_chain_aco.core.node import SupplyChainNode


def chain_nodes():
    return [
        SupplyChainNode(0, "supplier"),
        SupplyChainNode(1, "manufacturer"),
        SupplyChainNode(2, "distributor"),
        SupplyChainNode(3, "retailer"),
    ]


@pytest.fixture
def chain_graph():
    """供給者→製造者→卸売→小売の一直線（各エッジのコスト10）"""
    edges = [
        SupplyChainEdge(0, 1, distance=10.0, cost=10.0, time=1.0, capacity=50.0),
        SupplyChainEdge(1, 2, distance=10.0, cost=10.0, time=1.0, capacity=50.0),
        SupplyChainEdge(2, 3, distance=10.0, cost=10.0, time=1.0, capacity=50.0),
    ]
    return SupplyChainGraph(chain_nodes(), edges)


@pytest.fixture
def edgeless_graph():
    """ノードはあるがエッジが1本もないグラフ"""
    return SupplyChainGraph(chain_nodes(), [])


@pytest.fixture
def diamond_graph():
    """
    安い経路と高い経路を持つグラフ

    0 → 1 → 3 : コスト 2（最良）
    0 → 2 → 3 : コスト 20
    """
    nodes = [
        SupplyChainNode(0, "supplier"),
        SupplyChainNode(1, "manufacturer"),
        SupplyChainNode(2, "manufacturer"),
        SupplyChainNode(3, "retailer"),
    ]
    edges = [
        SupplyChainEdge(0, 1, distance=1.0, cost=1.0),
        SupplyChainEdge(0, 2, distance=10.0, cost=10.0),
        SupplyChainEdge(1, 3, distance=1.0, cost=1.0),
        SupplyChainEdge(2, 3, distance=10.0, cost=10.0),
    ]
    return SupplyChainGraph(nodes, edges)


@pytest.fixture
def chain_description():
    """chain_graph と同じネットワークの記述（JSON形式）"""
    return {
        "nodes": [
            {"id": 0, "type": "supplier", "name": "Supplier A", "x": 0.1, "y": 0.2},
            {"id": 1, "type": "manufacturer"},
            {"id": 2, "type": "distributor"},
            {"id": 3, "type": "retailer"},
        ],
        "edges": [
            {"from": 0, "to": 1, "distance": 10, "cost": 10, "time": 1, "capacity": 50},
            {"from": 1, "to": 2, "distance": 10, "cost": 10, "time": 1, "capacity": 50},
            {"from": 2, "to": 3, "distance": 10, "cost": 10, "time": 1, "capacity": 50},
        ],
    }
