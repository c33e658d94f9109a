"""
世代（ColonyIteration）モジュール

1世代分の処理（全アリの経路構築 → 評価 → 揮発 → 付加）を行います。

【並列化（fan-out / fan-in）】
- 構築開始前に、世代の乱数生成器から各アリ専用の乱数シードを順番に払い出す
- 各アリはグラフとフェロモン行列を読むだけで、結果は自分の経路とコストだけに書き込む
- 全アリの構築が終わってから、揮発→付加を1スレッドで行う
このため、workersの値に関係なく同じシードからは同じ結果が得られます。
"""

import logging
import math
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from ..core.ant import Ant, AntStatus
from ..modules.evaluator import OBJECTIVES, PathEvaluator
from ..modules.pheromone import PheromoneMatrix
from .ant_constructor import AntConstructor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AntConstruction:
    """
    1匹のアリの構築結果

    Attributes:
        ant_id (int): アリの識別子
        route (Tuple[int, ...]): 構築した経路（無効な場合も途中までの経路）
        cost (float): 経路コスト。無効な経路は無限大
        status (AntStatus): 終了状態
    """

    ant_id: int
    route: Tuple[int, ...]
    cost: float
    status: AntStatus

    @property
    def is_valid(self) -> bool:
        return self.status is AntStatus.COMPLETED


@dataclass(frozen=True)
class IterationResult:
    """
    1世代の結果

    Attributes:
        constructions (Tuple[AntConstruction, ...]): 全アリの構築結果（アリID順）
        best_path (Tuple[int, ...]): 世代内の最良経路（有効な経路がなければ空）
        best_cost (float): 最良経路のコスト（有効な経路がなければ無限大）
    """

    constructions: Tuple[AntConstruction, ...]
    best_path: Tuple[int, ...]
    best_cost: float

    @property
    def valid_count(self) -> int:
        return sum(1 for c in self.constructions if c.is_valid)

    @property
    def failed(self) -> bool:
        """全アリが経路構築に失敗したか"""
        return self.valid_count == 0


class ColonyIteration:
    """
    1世代分のアリの探索とフェロモン更新を行うクラス

    Attributes:
        constructor (AntConstructor): 経路構築
        evaluator (PathEvaluator): 経路コスト・付加量の計算
        ant_count (int): アリ数
        evaporation_rate (float): 揮発率
        elitist_weight (float): 暫定最良経路の追加付加の重み（0で無効）
        workers (int): 並列構築のスレッド数
    """

    def __init__(
        self,
        constructor: AntConstructor,
        evaluator: PathEvaluator,
        ant_count: int,
        evaporation_rate: float,
        elitist_weight: float = 0.0,
        workers: int = 1,
    ):
        self.constructor = constructor
        self.evaluator = evaluator
        self.ant_count = ant_count
        self.evaporation_rate = evaporation_rate
        self.elitist_weight = elitist_weight
        self.workers = workers

    def run(
        self,
        pheromone: PheromoneMatrix,
        start_node: int,
        rng: random.Random,
        incumbent: Optional[Tuple[Sequence[int], float]] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> IterationResult:
        """
        1世代を実行します。

        Args:
            pheromone: フェロモン行列（揮発・付加で更新される）
            start_node: スタートノード
            rng: 世代の乱数生成器（各アリのシードを払い出す）
            incumbent: これまでの最良経路とコスト（エリート戦略用）
            executor: 並列構築に使うスレッドプール（Noneなら逐次）

        Returns:
            世代の結果
        """
        # 【fan-out】各アリ専用の乱数シードを構築前に確定させる
        seeds = [rng.getrandbits(64) for _ in range(self.ant_count)]

        def build(ant_id: int) -> AntConstruction:
            ant = self.constructor.construct(
                pheromone, start_node, random.Random(seeds[ant_id]), ant_id=ant_id
            )
            return self._record(ant)

        if executor is not None and self.workers > 1:
            constructions = list(executor.map(build, range(self.ant_count)))
        else:
            constructions = [build(i) for i in range(self.ant_count)]

        # 【fan-in】揮発 → 付加（有効な経路のみ）
        valid = [c for c in constructions if c.is_valid]
        paths = [c.route for c in valid]
        costs = [c.cost for c in valid]
        weights = [1.0] * len(valid)
        if self.elitist_weight > 0 and incumbent is not None and incumbent[0]:
            paths.append(tuple(incumbent[0]))
            costs.append(incumbent[1])
            weights.append(self.elitist_weight)

        pheromone.evaporate(self.evaporation_rate)
        pheromone.deposit(paths, costs, self.evaluator.deposit_amount, weights=weights)

        best_path: Tuple[int, ...] = ()
        best_cost = math.inf
        for construction in valid:
            if construction.cost < best_cost:
                best_path, best_cost = construction.route, construction.cost

        if not valid:
            logger.debug("No ant completed a path in this iteration")

        return IterationResult(
            constructions=tuple(constructions),
            best_path=best_path,
            best_cost=best_cost,
        )

    def _record(self, ant: Ant) -> AntConstruction:
        # 無効な経路の解は全て無限大
        solution = dict(zip(OBJECTIVES, ant.get_solution()))
        cost = solution[self.evaluator.objective]
        return AntConstruction(
            ant_id=ant.ant_id,
            route=tuple(ant.route),
            cost=cost,
            status=ant.status,
        )


def constructions_by_status(
    constructions: Sequence[AntConstruction],
) -> Dict[AntStatus, int]:
    """終了状態ごとの構築数（ログ・分析用）"""
    counts = {status: 0 for status in AntStatus if status is not AntStatus.ACTIVE}
    for construction in constructions:
        counts[construction.status] = counts.get(construction.status, 0) + 1
    return counts
