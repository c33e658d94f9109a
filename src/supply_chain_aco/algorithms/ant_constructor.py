"""
経路構築モジュール

1匹のアリがスタートノードからゴールノードまでの単純経路を確率的に構築します。

【遷移ルール（Random Proportional Rule）】
選択確率 p_ij = (τ_ij^α * η_ij^β) / Σ(τ_il^α * η_il^β)
- τ_ij: エッジ(i,j)のフェロモン量（過去の成功経験）
- η_ij: エッジ(i,j)のヒューリスティック値（1/距離 など）
- α: フェロモンの重要度
- β: ヒューリスティックの重要度

【終了条件】
- ゴール（既定では小売ノード）に到達：有効な経路
- 未訪問の移動先がない：行き止まり（無効）
- ホップ上限に達した：無効

乱数は引数で渡された random.Random のみを使用するため、同じ乱数列からは同じ経路が得られます。
"""

import math
import random
from typing import Collection, FrozenSet, List, Optional

from ..core.ant import Ant, AntStatus
from ..core.graph import SupplyChainEdge, SupplyChainGraph
from ..modules.evaluator import PathEvaluator
from ..modules.pheromone import PheromoneMatrix


class AntConstructor:
    """
    フェロモンとヒューリスティックに基づいて1本の経路を構築するクラス

    Attributes:
        graph (SupplyChainGraph): サプライチェーングラフ
        evaluator (PathEvaluator): ヒューリスティック値の計算
        goal_nodes (FrozenSet[int]): 到達すれば経路が完成するノード
        alpha (float): フェロモンの重み
        beta (float): ヒューリスティックの重み
        max_hops (int): 最大ホップ数
        epsilon (float): ε-Greedyのランダム選択確率
    """

    def __init__(
        self,
        graph: SupplyChainGraph,
        evaluator: PathEvaluator,
        goal_nodes: Collection[int],
        alpha: float = 1.0,
        beta: float = 2.0,
        max_hops: Optional[int] = None,
        epsilon: float = 0.0,
    ):
        self.graph = graph
        self.evaluator = evaluator
        self.goal_nodes: FrozenSet[int] = frozenset(goal_nodes)
        self.alpha = alpha
        self.beta = beta
        self.max_hops = max_hops if max_hops is not None else max(graph.num_nodes - 1, 1)
        self.epsilon = epsilon

    def construct(
        self,
        pheromone: PheromoneMatrix,
        start_node: int,
        rng: random.Random,
        ant_id: int = 0,
    ) -> Ant:
        """
        1匹のアリに経路を構築させます。

        Args:
            pheromone: フェロモン行列（構築中は読み取りのみ）
            start_node: スタートノード
            rng: このアリ専用の乱数生成器
            ant_id: アリの識別子

        Returns:
            構築を終えたアリ。statusがCOMPLETEDなら有効な経路
        """
        ant = Ant(ant_id, start_node, self.max_hops)

        while True:
            if ant.hop_count > 0 and ant.current_node in self.goal_nodes:
                ant.finish(AntStatus.COMPLETED)
                break
            if not ant.has_hops_left():
                ant.finish(AntStatus.HOP_LIMIT)
                break

            candidates = [
                edge
                for edge in self.graph.outgoing_edges(ant.current_node)
                if not ant.has_visited(edge.target)
            ]
            if not candidates:
                ant.finish(AntStatus.DEAD_END)
                break

            ant.move_to(self._select_next_edge(candidates, pheromone, rng))

        return ant

    def _select_next_edge(
        self,
        candidates: List[SupplyChainEdge],
        pheromone: PheromoneMatrix,
        rng: random.Random,
    ) -> SupplyChainEdge:
        """
        ε-Greedy法で次のエッジを選択

        - 確率εでランダム選択（探索）
        - 確率(1-ε)でフェロモンとヒューリスティックに基づく確率的選択（活用）
        """
        if len(candidates) == 1:
            return candidates[0]
        if self.epsilon > 0 and rng.random() < self.epsilon:
            return rng.choice(candidates)
        return self._probabilistic_selection(candidates, pheromone, rng)

    def _probabilistic_selection(
        self,
        candidates: List[SupplyChainEdge],
        pheromone: PheromoneMatrix,
        rng: random.Random,
    ) -> SupplyChainEdge:
        weights = self.transition_weights(candidates, pheromone)

        total = sum(weights)
        # 重みが全て0、または桁あふれした場合は一様にランダム選択
        if total <= 0 or not math.isfinite(total):
            return rng.choice(candidates)

        # 重みを正規化し、一様乱数で累積確率をたどる
        threshold = rng.random() * total
        cumulative = 0.0
        for edge, weight in zip(candidates, weights):
            cumulative += weight
            if threshold < cumulative:
                return edge
        return candidates[-1]

    def transition_weights(
        self, candidates: List[SupplyChainEdge], pheromone: PheromoneMatrix
    ) -> List[float]:
        """
        候補エッジごとの重み τ^α * η^β を計算します。

        Args:
            candidates: 候補エッジ
            pheromone: フェロモン行列

        Returns:
            candidatesと同じ順序の重みのリスト
        """
        weights = []
        for edge in candidates:
            try:
                tau = pheromone.get(edge.source, edge.target) ** self.alpha
                eta = self.evaluator.edge_heuristic(edge) ** self.beta
                weights.append(tau * eta)
            except OverflowError:
                weights.append(math.inf)
        return weights
