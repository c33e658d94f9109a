"""
フェロモン更新・揮発ロジック

【フェロモン行列】
グラフのエッジ（有向・順序対）ごとに非負のフェロモン量を保持します。
グラフ自体は不変で、最適化中に変化する状態はこの行列だけです。

【1世代あたりの更新】
1. 揮発：全エッジのフェロモンを (1 - ρ) 倍する（世代ごとにちょうど1回）
2. 付加：有効な経路ごとに付加量を独立に計算し、エッジ単位で合計してから加算する
   （アリの並列構築と組み合わせても更新の取りこぼしが起きない）
3. 上下限：min_pheromone / max_pheromone の範囲に制限（既定は [0, ∞)）
"""

import math
from collections import defaultdict
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from ..core.graph import SupplyChainGraph
from .evaluator import PathEvaluator

Edge = Tuple[int, int]


class PheromoneMatrix:
    """
    エッジごとのフェロモン量を管理するクラス

    Attributes:
        min_pheromone (float): フェロモンの下限（非負）
        max_pheromone (float): フェロモンの上限

    Example:
        >>> matrix = PheromoneMatrix()
        >>> matrix.initialize(graph, initial_value=1.0)
        >>> matrix.evaporate(0.5)
        >>> matrix.get(0, 1)
        0.5
    """

    def __init__(self, min_pheromone: float = 0.0, max_pheromone: float = math.inf):
        if min_pheromone < 0:
            raise ValueError(f"min_pheromone must be non-negative, got {min_pheromone}")
        if max_pheromone < min_pheromone:
            raise ValueError("max_pheromone must not be smaller than min_pheromone")
        self.min_pheromone = min_pheromone
        self.max_pheromone = max_pheromone
        self._values: Dict[Edge, float] = {}

    def initialize(
        self, graph: SupplyChainGraph, initial_value: Optional[float] = None
    ) -> None:
        """
        全エッジのフェロモンを一様な正の値で初期化します。

        Args:
            graph: サプライチェーングラフ
            initial_value: 初期値。Noneの場合は 1 / エッジ数（エッジがなければ1.0）
        """
        if initial_value is None:
            initial_value = 1.0 / graph.num_edges if graph.num_edges else 1.0
        if not initial_value > 0:
            raise ValueError(f"Initial pheromone must be positive, got {initial_value}")
        value = self._clamp(initial_value)
        self._values = {(e.source, e.target): value for e in graph.edges()}

    def evaporate(self, evaporation_rate: float) -> None:
        """
        全エッジのフェロモンを揮発させます。

        Args:
            evaporation_rate: 揮発率ρ（0 < ρ < 1）

        Raises:
            ValueError: ρが開区間(0, 1)の外にある場合

        Note:
            各エッジのフェロモン値が (1 - ρ) 倍されます。付加より前に、世代ごとに1回だけ呼び出します。
        """
        if not 0.0 < evaporation_rate < 1.0:
            raise ValueError(
                f"Evaporation rate must be in (0, 1), got {evaporation_rate}"
            )
        factor = 1.0 - evaporation_rate
        for edge, value in self._values.items():
            self._values[edge] = self._clamp(value * factor)

    def deposit(
        self,
        paths: Sequence[Sequence[int]],
        costs: Sequence[float],
        amount: Optional[Callable[[float], float]] = None,
        weights: Optional[Sequence[float]] = None,
    ) -> None:
        """
        経路上の各エッジにフェロモンを付加します。

        Args:
            paths: 経路（ノードIDの列）のリスト
            costs: 各経路のコスト（pathsと同じ順序）
            amount: コストから付加量を計算する関数。Noneなら Q / C（Q = 1）
            weights: 経路ごとの付加量の重み（エリート戦略用）。Noneなら全て1.0

        Note:
            コストが0・負・有限でない経路は何も付加しません。
        """
        if amount is None:
            amount = PathEvaluator().deposit_amount
        if weights is None:
            weights = [1.0] * len(paths)
        if not len(paths) == len(costs) == len(weights):
            raise ValueError("paths, costs and weights must have the same length")
        contributions = [
            self.contribution(path, amount(cost) * weight if _is_positive(cost) else 0.0)
            for path, cost, weight in zip(paths, costs, weights)
        ]
        self.apply(contributions)

    def contribution(self, path: Sequence[int], delta: float) -> Dict[Edge, float]:
        """
        1本の経路による付加量をエッジ単位で計算します（行列は変更しない）。

        Args:
            path: ノードIDの列
            delta: エッジあたりの付加量
        """
        if delta <= 0:
            return {}
        result: Dict[Edge, float] = defaultdict(float)
        for edge in zip(path, path[1:]):
            if edge in self._values:
                result[edge] += delta
        return dict(result)

    def apply(self, contributions: Iterable[Mapping[Edge, float]]) -> None:
        """
        付加量を合計してから行列に加算します（合計順序は入力順で決定的）。
        """
        total: Dict[Edge, float] = defaultdict(float)
        for contribution in contributions:
            for edge, delta in contribution.items():
                total[edge] += delta
        for edge, delta in total.items():
            self._values[edge] = self._clamp(self._values[edge] + delta)

    def get(self, u: int, v: int) -> float:
        """エッジ(u, v)のフェロモン量（エッジでない組は0.0）"""
        return self._values.get((u, v), 0.0)

    def snapshot(self) -> Dict[Edge, float]:
        """現在のフェロモン分布のコピー"""
        return dict(self._values)

    def total(self) -> float:
        return sum(self._values.values())

    def _clamp(self, value: float) -> float:
        return max(self.min_pheromone, min(value, self.max_pheromone))

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, edge) -> bool:
        return edge in self._values

    def __repr__(self) -> str:
        return f"PheromoneMatrix(edges={len(self)}, total={self.total():.4f})"


def _is_positive(cost: float) -> bool:
    return math.isfinite(cost) and cost > 0
