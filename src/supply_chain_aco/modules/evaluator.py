"""
評価関数モジュール

経路コスト、エッジのヒューリスティック値、フェロモン付加量を計算します。

ヒューリスティックの分母（距離かコストか）と付加量の式（1/C, 1/C², 定数）は
固定せず、設定で切り替えられるようにしています。
"""

import math
from typing import Sequence

from ..core.graph import SupplyChainEdge, SupplyChainGraph

# Ant.get_solution() と同じ順序
OBJECTIVES = ("cost", "distance", "time")
HEURISTICS = ("distance", "cost", "time")
DEPOSIT_RULES = ("inverse_cost", "inverse_square", "constant")

# 値が0のエッジに対するヒューリスティックの分母の下限
MIN_HEURISTIC_DENOMINATOR = 1e-6


class PathEvaluator:
    """
    経路の評価を行うクラス

    Attributes:
        objective (str): 経路コストとして合計するエッジ属性（"cost", "distance", "time"）
        heuristic (str): ヒューリスティック η = 1/value に使うエッジ属性
        deposit_rule (str): フェロモン付加量の式
            - "inverse_cost": Q / C
            - "inverse_square": Q / C²
            - "constant": Q
        q (float): 付加量の係数Q
    """

    def __init__(
        self,
        objective: str = "cost",
        heuristic: str = "distance",
        deposit_rule: str = "inverse_cost",
        q: float = 1.0,
    ):
        """
        Raises:
            ValueError: 未知の目的関数・ヒューリスティック・付加ルールが指定された場合
        """
        if objective not in OBJECTIVES:
            raise ValueError(f"Unknown objective: {objective}")
        if heuristic not in HEURISTICS:
            raise ValueError(f"Unknown heuristic: {heuristic}")
        if deposit_rule not in DEPOSIT_RULES:
            raise ValueError(f"Unknown deposit rule: {deposit_rule}")
        if not q > 0:
            raise ValueError(f"Deposit factor q must be positive, got {q}")

        self.objective = objective
        self.heuristic = heuristic
        self.deposit_rule = deposit_rule
        self.q = q

    def path_cost(self, graph: SupplyChainGraph, path: Sequence[int]) -> float:
        """
        経路コスト（経路上のエッジのobjective属性の合計）を計算します。

        Args:
            graph: サプライチェーングラフ
            path: ノードIDの列

        Returns:
            経路コスト。エッジを1本も含まない経路は0.0

        Raises:
            ValueError: 連続するノードの組がグラフのエッジでない場合
        """
        total = 0.0
        for u, v in zip(path, path[1:]):
            if not graph.has_edge(u, v):
                raise ValueError(f"Path uses a missing edge ({u}, {v})")
            total += graph.edge(u, v).attribute(self.objective)
        return total

    def edge_heuristic(self, edge: SupplyChainEdge) -> float:
        """
        ヒューリスティック値 η = 1 / value を計算します（短い・安いエッジほど大きい）。

        Note:
            値が0のエッジは分母を MIN_HEURISTIC_DENOMINATOR に置き換えます。
        """
        value = edge.attribute(self.heuristic)
        return 1.0 / max(value, MIN_HEURISTIC_DENOMINATOR)

    def deposit_amount(self, cost: float) -> float:
        """
        経路コストに対するフェロモン付加量を計算します。

        Returns:
            付加量。コストが0以下または有限でない場合は0.0（ゼロ除算の防止）
        """
        if not math.isfinite(cost) or cost <= 0:
            return 0.0
        if self.deposit_rule == "inverse_cost":
            return self.q / cost
        if self.deposit_rule == "inverse_square":
            return self.q / (cost * cost)
        return self.q

    def __repr__(self) -> str:
        return (
            f"PathEvaluator(objective={self.objective}, heuristic={self.heuristic}, "
            f"deposit_rule={self.deposit_rule}, q={self.q})"
        )
