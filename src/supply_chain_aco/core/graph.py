"""
グラフモジュール

NetworkXをベースとしたサプライチェーンネットワークの生成と管理を行います。

【主要機能】
1. グラフ構築：ネットワーク記述（ノード・有向エッジ）から不変のグラフを構築
2. 整合性検証：存在しないノードへのエッジ、自己ループ、重複エッジ、負の属性を拒否
3. 隣接探索：ノードから出ていくエッジを列挙（アリの次ホップ候補）
4. ランダム生成：階層の隣接度と密度に基づくデモ用ネットワークの生成

グラフは構築後に凍結され（nx.freeze）、最適化中に変更されることはありません。
フェロモンはグラフとは別に PheromoneMatrix が保持します。
"""

import math
import random
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

import networkx as nx

from ..exceptions import GraphValidationError
from .node import CATEGORIES, NodeCategory, SupplyChainNode

EDGE_ATTRIBUTES = ("distance", "cost", "time", "capacity")

# 隣接階層間（supplier→manufacturer など）とそれ以外の接続しやすさ
ADJACENT_TIER_COMPATIBILITY = 0.7
OTHER_TIER_COMPATIBILITY = 0.1

# 単位正方形上の座標距離をkmに換算する係数
DISTANCE_SCALE = 1000.0


@dataclass(frozen=True)
class SupplyChainEdge:
    """
    有向エッジ（source → target）

    Attributes:
        source (int): 始点ノードID
        target (int): 終点ノードID
        distance (float): 距離（km）
        cost (float): 輸送コスト
        time (float): 輸送時間
        capacity (float): 輸送能力
    """

    source: int
    target: int
    distance: float = 0.0
    cost: float = 0.0
    time: float = 0.0
    capacity: float = 0.0

    def attribute(self, name: str) -> float:
        """数値属性（distance / cost / time / capacity）を名前で取得"""
        if name not in EDGE_ATTRIBUTES:
            raise KeyError(f"Unknown edge attribute: {name}")
        return getattr(self, name)


class SupplyChainGraph:
    """
    ACOルーティング用のサプライチェーングラフ（NetworkX DiGraphのラッパー）

    Attributes:
        graph (nx.DiGraph): 凍結済みのNetworkX有向グラフ。
            ノード属性 "node" に SupplyChainNode、エッジ属性 "edge" に SupplyChainEdge を保持し、
            数値属性（distance, cost, time, capacity）もNetworkXのアルゴリズム用に展開しています。

    Example:
        >>> nodes = [SupplyChainNode(0, "supplier"), SupplyChainNode(1, "manufacturer")]
        >>> graph = SupplyChainGraph(nodes, [SupplyChainEdge(0, 1, cost=10.0)])
        >>> [e.target for e in graph.outgoing_edges(0)]
        [1]
    """

    def __init__(
        self,
        nodes: Iterable[SupplyChainNode],
        edges: Iterable[SupplyChainEdge] = (),
    ):
        """
        Args:
            nodes: ノードの列
            edges: 有向エッジの列

        Raises:
            GraphValidationError: ノードIDの重複、存在しないノードへのエッジ、自己ループ、
                同じ順序対の重複エッジ、負の属性値のいずれかがある場合
        """
        graph = nx.DiGraph()
        for node in nodes:
            if node.id in graph:
                raise GraphValidationError(f"Duplicate node id: {node.id}")
            graph.add_node(node.id, node=node)

        for edge in edges:
            self._validate_edge(graph, edge)
            graph.add_edge(
                edge.source,
                edge.target,
                edge=edge,
                **{name: edge.attribute(name) for name in EDGE_ATTRIBUTES},
            )

        self.graph = nx.freeze(graph)

    @staticmethod
    def _validate_edge(graph: nx.DiGraph, edge: SupplyChainEdge) -> None:
        if edge.source not in graph or edge.target not in graph:
            raise GraphValidationError(
                f"Edge ({edge.source}, {edge.target}) references an unknown node"
            )
        if edge.source == edge.target:
            raise GraphValidationError(f"Self-loop on node {edge.source}")
        if graph.has_edge(edge.source, edge.target):
            raise GraphValidationError(
                f"Duplicate edge ({edge.source}, {edge.target})"
            )
        for name in EDGE_ATTRIBUTES:
            value = edge.attribute(name)
            if not value >= 0:
                raise GraphValidationError(
                    f"Edge ({edge.source}, {edge.target}): {name} must be non-negative, got {value}"
                )

    # ---- 参照 ---------------------------------------------------------------

    @property
    def num_nodes(self) -> int:
        return self.graph.number_of_nodes()

    @property
    def num_edges(self) -> int:
        return self.graph.number_of_edges()

    def node(self, node_id: int) -> SupplyChainNode:
        """
        ノードを取得します。

        Raises:
            KeyError: ノードが存在しない場合
        """
        return self.graph.nodes[node_id]["node"]

    def nodes(self) -> List[SupplyChainNode]:
        return [data["node"] for _, data in self.graph.nodes(data=True)]

    def node_ids(self) -> List[int]:
        return list(self.graph.nodes())

    def has_edge(self, u: int, v: int) -> bool:
        return self.graph.has_edge(u, v)

    def edge(self, u: int, v: int) -> SupplyChainEdge:
        """
        エッジ(u, v)を取得します。

        Raises:
            KeyError: エッジ(u, v)が存在しない場合
        """
        return self.graph.edges[u, v]["edge"]

    def edges(self) -> List[SupplyChainEdge]:
        return [data["edge"] for _, _, data in self.graph.edges(data=True)]

    def outgoing_edges(self, node_id: int) -> List[SupplyChainEdge]:
        """
        ノードから出ていくエッジを取得します。

        Args:
            node_id: ノードID

        Returns:
            出力エッジのリスト（挿入順。同じ入力からは常に同じ順序になる）

        Note:
            アリの経路構築時に、次の移動先候補として使用されます。
        """
        return [data["edge"] for _, _, data in self.graph.out_edges(node_id, data=True)]

    def nodes_by_category(self, category) -> List[int]:
        """指定した種別のノードIDを昇順で取得"""
        category = NodeCategory.parse(category)
        return sorted(
            node_id
            for node_id, data in self.graph.nodes(data=True)
            if data["node"].category is category
        )

    def __contains__(self, node_id) -> bool:
        return node_id in self.graph

    def __iter__(self) -> Iterator[int]:
        return iter(self.graph)

    def __len__(self) -> int:
        return self.num_nodes

    # ---- ネットワーク記述との相互変換 -----------------------------------------

    @classmethod
    def from_description(cls, description: Mapping) -> "SupplyChainGraph":
        """
        ネットワーク記述（フロントエンドのJSON形式）からグラフを構築します。

        Args:
            description: {"nodes": {id: {...}} または [{...}],
                          "edges": [{"from", "to", "distance", "cost", "time", "capacity"}]}
                ノードのフィールドは id, type, name, x, y, capacity, cost

        Returns:
            構築されたグラフ

        Raises:
            GraphValidationError: 記述の形式が不正、または不変条件を満たさない場合
        """
        raw_nodes = description.get("nodes", [])
        if isinstance(raw_nodes, Mapping):
            node_items = [
                dict(value, id=value.get("id", key)) for key, value in raw_nodes.items()
            ]
        else:
            node_items = [dict(value) for value in raw_nodes]

        try:
            nodes = [
                SupplyChainNode(
                    id=int(item["id"]),
                    category=item.get("type", item.get("category")),
                    x=float(item.get("x", 0.0)),
                    y=float(item.get("y", 0.0)),
                    capacity=float(item.get("capacity", 0.0)),
                    cost=float(item.get("cost", 0.0)),
                    name=item.get("name"),
                )
                for item in node_items
            ]
            edges = [
                SupplyChainEdge(
                    source=int(item["from"]),
                    target=int(item["to"]),
                    **{name: float(item.get(name, 0.0)) for name in EDGE_ATTRIBUTES},
                )
                for item in description.get("edges", [])
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise GraphValidationError(f"Malformed network description: {e}") from e

        return cls(nodes, edges)

    def to_description(self) -> Dict:
        """グラフをネットワーク記述（from_descriptionと同じ形式）に変換"""
        return {
            "nodes": {
                node.id: {
                    "id": node.id,
                    "type": node.category.value,
                    "name": node.label,
                    "x": node.x,
                    "y": node.y,
                    "capacity": node.capacity,
                    "cost": node.cost,
                }
                for node in self.nodes()
            },
            "edges": [
                {
                    "from": edge.source,
                    "to": edge.target,
                    **{name: edge.attribute(name) for name in EDGE_ATTRIBUTES},
                }
                for edge in self.edges()
            ],
        }

    def __repr__(self) -> str:
        return f"SupplyChainGraph(nodes={self.num_nodes}, edges={self.num_edges})"


def tier_compatibility(source: NodeCategory, target: NodeCategory) -> float:
    """エッジ生成確率に掛ける階層間の接続しやすさ"""
    if source.is_adjacent_to(target):
        return ADJACENT_TIER_COMPATIBILITY
    return OTHER_TIER_COMPATIBILITY


def generate_supply_chain_graph(
    node_count: int, density: float, rng: Optional[random.Random] = None
) -> SupplyChainGraph:
    """
    デモ用のサプライチェーンネットワークをランダム生成します。

    【生成ルール】
    - ノードiの種別: CATEGORIES[floor(i / (n / 4)) % 4]（前から順に4階層へ割り当て）
    - 各順序対(i, j)に、確率 density × 階層適合度 でエッジを張る
      （隣接階層 0.7、それ以外 0.1）
    - 距離: 座標のユークリッド距離 × 1000（km、小数1桁）
    - コスト・時間: 距離に有界な乱数倍率を掛けて算出

    Args:
        node_count: ノード数（負の値は0として扱う）
        density: ネットワーク密度（[0, 1] に丸める）
        rng: 乱数生成器。Noneの場合はシードなしのrandom.Random

    Returns:
        生成されたグラフ。node_count < 2 の場合はエッジなしのグラフ
    """
    rng = rng or random.Random()
    node_count = max(0, int(node_count))
    density = min(1.0, max(0.0, float(density)))

    nodes = []
    for i in range(node_count):
        category = CATEGORIES[math.floor(i / (node_count / 4)) % len(CATEGORIES)]
        nodes.append(
            SupplyChainNode(
                id=i,
                category=category,
                x=rng.random(),
                y=rng.random(),
                capacity=float(50 + rng.randint(0, 149)),
                cost=float(10 + rng.randint(0, 39)),
            )
        )

    edges = []
    for source in nodes:
        for target in nodes:
            if source.id == target.id:
                continue
            probability = density * tier_compatibility(source.category, target.category)
            if rng.random() >= probability:
                continue
            distance = (
                math.hypot(source.x - target.x, source.y - target.y) * DISTANCE_SCALE
            )
            edges.append(
                SupplyChainEdge(
                    source=source.id,
                    target=target.id,
                    distance=round(distance, 1),
                    cost=float(round(distance * (5 + rng.random() * 5))),
                    time=round(distance * (0.05 + rng.random() * 0.1), 1),
                    capacity=float(20 + rng.randint(0, 79)),
                )
            )

    return SupplyChainGraph(nodes, edges)
