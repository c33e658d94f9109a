"""
アリ（Ant）クラス

ACOにおける経路構築エージェントを表現するモジュール。

【アリの役割】
スタートノードから出発し、未訪問ノードへの移動を繰り返してゴール（小売など）を目指す。
1世代の間だけ存在し、世代をまたいで状態を持ち越さない。

【主要機能】
1. 経路記憶（タブーリスト）：訪問済みノードを記録し、単純経路を保証
2. 累積メトリクス：コスト、距離、時間、ホップ数を追跡
3. 終了状態：ゴール到達・行き止まり・ホップ上限のいずれで終わったかを記録
"""

import math
from enum import Enum
from typing import List, Set, Tuple

from .graph import SupplyChainEdge


class AntStatus(str, Enum):
    """経路構築の状態"""

    ACTIVE = "active"  # 構築中
    COMPLETED = "completed"  # ゴールに到達（有効な経路）
    DEAD_END = "dead_end"  # 未訪問の移動先がない
    HOP_LIMIT = "hop_limit"  # ゴール到達前にホップ上限に達した


class Ant:
    """
    ACOにおけるアリを表現するクラス

    Attributes:
        ant_id (int): アリの識別子（世代内で一意）
        start_node (int): 開始ノードID
        current_node (int): 現在のノードID
        max_hops (int): 最大ホップ数
        route (List[int]): 訪問済みノードのリスト（タブーリスト）
        total_cost (float): 累積コスト
        total_distance (float): 累積距離
        total_time (float): 累積時間
        status (AntStatus): 構築状態

    Example:
        >>> ant = Ant(ant_id=0, start_node=0, max_hops=3)
        >>> ant.move_to(SupplyChainEdge(0, 1, distance=5.0, cost=10.0))
        >>> ant.route
        [0, 1]
    """

    def __init__(self, ant_id: int, start_node: int, max_hops: int):
        self.ant_id = ant_id
        self.start_node = start_node
        self.current_node = start_node
        self.max_hops = max_hops

        self.route: List[int] = [start_node]
        self._visited: Set[int] = {start_node}

        self.total_cost: float = 0.0
        self.total_distance: float = 0.0
        self.total_time: float = 0.0

        self.status = AntStatus.ACTIVE

    @property
    def hop_count(self) -> int:
        return len(self.route) - 1

    def move_to(self, edge: SupplyChainEdge) -> None:
        """
        エッジに沿って次のノードへ移動し、メトリクスを更新します。

        Args:
            edge: 現在のノードから出ていくエッジ

        Raises:
            ValueError: エッジの始点が現在のノードでない、または移動先が訪問済みの場合
        """
        if edge.source != self.current_node:
            raise ValueError(
                f"Ant {self.ant_id} is at {self.current_node}, cannot traverse "
                f"({edge.source}, {edge.target})"
            )
        if edge.target in self._visited:
            raise ValueError(f"Ant {self.ant_id} already visited {edge.target}")

        self.route.append(edge.target)
        self._visited.add(edge.target)
        self.current_node = edge.target

        self.total_cost += edge.cost
        self.total_distance += edge.distance
        self.total_time += edge.time

    def has_visited(self, node: int) -> bool:
        return node in self._visited

    def has_hops_left(self) -> bool:
        return self.hop_count < self.max_hops

    def finish(self, status: AntStatus) -> None:
        """構築を終了状態にします"""
        self.status = status

    @property
    def is_valid(self) -> bool:
        """ゴールに到達した有効な経路か"""
        return self.status is AntStatus.COMPLETED

    def get_solution(self) -> Tuple[float, float, float]:
        """
        アリが見つけた解（コスト, 距離, 時間）を取得します。

        Returns:
            有効な経路なら累積値、無効ならすべて無限大
        """
        if not self.is_valid:
            return (math.inf, math.inf, math.inf)
        return (self.total_cost, self.total_distance, self.total_time)

    def __repr__(self) -> str:
        return (
            f"Ant(id={self.ant_id}, current={self.current_node}, "
            f"route_len={len(self.route)}, status={self.status.value}, "
            f"C={self.total_cost:.1f}, D={self.total_distance:.1f}, T={self.total_time:.1f})"
        )
