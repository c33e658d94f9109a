"""
ACO Solverモジュール

サプライチェーングラフ上の最小コスト経路をACOで探索し、収束履歴を記録します。

【アルゴリズム概要】
1. 設定を検証（不正ならフェロモンを確保する前にConfigurationErrorを送出）
2. フェロモン行列を全エッジ一様に初期化
3. 各世代で指定数のアリがスタートノードからゴールまで確率的に経路を構築
4. 世代終了時に全エッジのフェロモンを揮発させ、有効な経路にフェロモンを付加
5. 世代内の最良経路が暫定最良解より厳密に良ければ置き換え
6. 改善の有無にかかわらず、各世代の暫定最良コストを収束履歴に追加

【状態遷移】
INITIALIZED → RUNNING → COMPLETED
1つのソルバーは1回だけ実行でき、実行ごとに新しいインスタンスを生成します。
"""

import logging
import math
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from ..core.graph import SupplyChainGraph
from ..core.node import NodeCategory
from ..exceptions import ConfigurationError
from ..modules.evaluator import PathEvaluator
from ..modules.pheromone import PheromoneMatrix
from ..utils.config import ACOParameters
from .ant_constructor import AntConstructor
from .colony_iteration import ColonyIteration, IterationResult, constructions_by_status

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """最適化の実行状態"""

    INITIALIZED = "initialized"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ConvergenceRecord:
    """
    収束履歴の1要素

    Attributes:
        iteration (int): 世代番号（1始まり）
        best_cost (float): その世代までの暫定最良コスト（未発見なら無限大）
    """

    iteration: int
    best_cost: float

    def to_dict(self) -> Dict:
        return {
            "iteration": self.iteration,
            "bestCost": self.best_cost if math.isfinite(self.best_cost) else None,
        }


@dataclass(frozen=True)
class OptimizationResult:
    """
    最適化の結果（不変のスナップショット）

    Attributes:
        best_path (Tuple[int, ...]): 全世代を通じた最良経路（未発見なら空）
        path_cost (float): 最良経路のコスト（未発見なら無限大）
        convergence (Tuple[ConvergenceRecord, ...]): 世代ごとの暫定最良コスト
        cancelled (bool): 外部からの中断で打ち切られたか
    """

    best_path: Tuple[int, ...]
    path_cost: float
    convergence: Tuple[ConvergenceRecord, ...]
    cancelled: bool = False

    @property
    def found(self) -> bool:
        """有効な経路が見つかったか（呼び出し側は必ず確認すること）"""
        return bool(self.best_path) and math.isfinite(self.path_cost)

    @property
    def iterations_completed(self) -> int:
        return len(self.convergence)

    def to_dict(self) -> Dict:
        """
        外部インターフェース形式に変換します。

        Returns:
            {"bestPath": [...], "pathCost": float | None,
             "convergenceData": [{"iteration": int, "bestCost": float | None}, ...]}
            無限大のコストはNoneとして出力します。
        """
        return {
            "bestPath": list(self.best_path),
            "pathCost": self.path_cost if self.found else None,
            "convergenceData": [record.to_dict() for record in self.convergence],
        }


IterationCallback = Callable[[ConvergenceRecord, IterationResult], None]


class ACOSolver:
    """
    ACOによる最適化の1回分の実行（OptimizationRun）

    Attributes:
        graph (SupplyChainGraph): サプライチェーングラフ（読み取り専用）
        params (ACOParameters): ACOパラメータ
        evaluator (PathEvaluator): 経路コスト・ヒューリスティック・付加量の計算
        start_node (int): スタートノード
        goal_nodes (Tuple[int, ...]): ゴールノード
        state (RunState): 実行状態
        pheromone (Optional[PheromoneMatrix]): フェロモン行列（RUNNINGになるまでNone）
        result (Optional[OptimizationResult]): 実行結果（COMPLETEDになるまでNone）

    Example:
        >>> solver = ACOSolver(graph, ACOParameters(iterations=50, ant_count=10), seed=42)
        >>> result = solver.run()
        >>> result.best_path, result.path_cost
    """

    def __init__(
        self,
        graph: SupplyChainGraph,
        params: Optional[ACOParameters] = None,
        *,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            graph: サプライチェーングラフ
            params: ACOパラメータ（Noneなら既定値）
            seed: 乱数シード（rngを渡さない場合に使用）
            rng: 乱数生成器（指定時はseedより優先）

        Raises:
            ConfigurationError: パラメータまたはグラフが不正な場合（フェロモン確保前に送出）
        """
        self.graph = graph
        self.params = params or ACOParameters()
        self.params.validate()

        if graph.num_nodes == 0:
            raise ConfigurationError("Graph has no nodes")

        self.start_node = self._resolve_start_node()
        self.goal_nodes = self._resolve_goal_nodes()

        self.rng = rng if rng is not None else random.Random(seed)
        self.evaluator = PathEvaluator(
            objective=self.params.objective,
            heuristic=self.params.heuristic,
            deposit_rule=self.params.deposit_rule,
            q=self.params.q,
        )
        self.constructor = AntConstructor(
            graph,
            self.evaluator,
            self.goal_nodes,
            alpha=self.params.alpha,
            beta=self.params.beta,
            max_hops=self.params.max_hops,
            epsilon=self.params.epsilon,
        )
        self.iteration = ColonyIteration(
            self.constructor,
            self.evaluator,
            ant_count=self.params.ant_count,
            evaporation_rate=self.params.evaporation_rate,
            elitist_weight=self.params.elitist_weight,
            workers=self.params.workers,
        )

        self.state = RunState.INITIALIZED
        self.pheromone: Optional[PheromoneMatrix] = None
        self.result: Optional[OptimizationResult] = None

    def _resolve_start_node(self) -> int:
        """
        スタートノードを決定します。

        指定がなければ最小IDの供給者、供給者がいなければ最小IDのノードを使用します。
        """
        start = self.params.start_node
        if start is not None:
            if start not in self.graph:
                raise ConfigurationError(f"Start node {start} is not in the graph")
            return start
        suppliers = self.graph.nodes_by_category(NodeCategory.SUPPLIER)
        if suppliers:
            return suppliers[0]
        return min(self.graph.node_ids())

    def _resolve_goal_nodes(self) -> Tuple[int, ...]:
        """
        ゴールノードを決定します。

        指定がなければterminal_categoriesに属するノード全て（Anycast方式：いずれかに到達すれば成功）。
        """
        if self.params.goal_nodes is not None:
            unknown = [n for n in self.params.goal_nodes if n not in self.graph]
            if unknown:
                raise ConfigurationError(f"Goal nodes not in the graph: {unknown}")
            return tuple(self.params.goal_nodes)
        goals: List[int] = []
        for category in self.params.resolved_terminal_categories():
            goals.extend(self.graph.nodes_by_category(category))
        return tuple(sorted(goals))

    def run(
        self,
        cancel_event: Optional[threading.Event] = None,
        on_iteration: Optional[IterationCallback] = None,
    ) -> OptimizationResult:
        """
        ACOを実行

        Args:
            cancel_event: 中断シグナル。世代の境界ごとに1回確認し、セットされていれば打ち切る
            on_iteration: 世代ごとに (収束履歴の要素, 世代の結果) を受け取るコールバック

        Returns:
            最良経路・コスト・収束履歴を含む不変の結果

        Raises:
            RuntimeError: 既に実行済みのソルバーで再度呼び出した場合
        """
        if self.state is not RunState.INITIALIZED:
            raise RuntimeError(
                "ACOSolver instances run once; create a new solver for another optimization"
            )

        # 【INITIALIZED → RUNNING】フェロモン行列を初期化
        self.pheromone = PheromoneMatrix(
            min_pheromone=self.params.min_pheromone,
            max_pheromone=self.params.max_pheromone,
        )
        self.pheromone.initialize(self.graph, self.params.initial_pheromone)
        self.state = RunState.RUNNING

        logger.info(
            "ACO start: %s, start=%d, goals=%d, iterations=%d, ants=%d",
            self.graph,
            self.start_node,
            len(self.goal_nodes),
            self.params.iterations,
            self.params.ant_count,
        )

        best_path: Tuple[int, ...] = ()
        best_cost = math.inf
        history: List[ConvergenceRecord] = []
        cancelled = False

        executor = (
            ThreadPoolExecutor(max_workers=self.params.workers)
            if self.params.workers > 1
            else None
        )
        try:
            for iteration in range(1, self.params.iterations + 1):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    logger.info("ACO cancelled before iteration %d", iteration)
                    break

                incumbent = (best_path, best_cost) if best_path else None
                result = self.iteration.run(
                    self.pheromone,
                    self.start_node,
                    self.rng,
                    incumbent=incumbent,
                    executor=executor,
                )

                # 【暫定最良解の更新】厳密に改善した場合のみ置き換え
                if result.best_cost < best_cost:
                    best_path, best_cost = result.best_path, result.best_cost

                record = ConvergenceRecord(iteration, best_cost)
                history.append(record)

                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(
                        "Iteration %d: valid=%d/%d %s, iteration best=%s, best=%s",
                        iteration,
                        result.valid_count,
                        len(result.constructions),
                        {
                            status.value: count
                            for status, count in constructions_by_status(
                                result.constructions
                            ).items()
                        },
                        result.best_cost,
                        best_cost,
                    )

                if on_iteration is not None:
                    on_iteration(record, result)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

        # 【RUNNING → COMPLETED】
        self.state = RunState.COMPLETED
        self.result = OptimizationResult(
            best_path=best_path,
            path_cost=best_cost,
            convergence=tuple(history),
            cancelled=cancelled,
        )

        if self.result.found:
            logger.info(
                "ACO completed: best path %s, cost %.2f (%d iterations)",
                list(best_path),
                best_cost,
                len(history),
            )
        else:
            logger.warning(
                "ACO completed without a valid path from node %d (%d iterations)",
                self.start_node,
                len(history),
            )
        return self.result


def optimize(
    network: Union[SupplyChainGraph, Mapping],
    params: Union[ACOParameters, Mapping, None] = None,
    *,
    seed: Optional[int] = None,
    rng: Optional[random.Random] = None,
    cancel_event: Optional[threading.Event] = None,
    on_iteration: Optional[IterationCallback] = None,
) -> OptimizationResult:
    """
    ネットワークとパラメータから1回の最適化を実行します（呼び出しごとに新しいソルバーを生成）。

    Args:
        network: SupplyChainGraph またはネットワーク記述（nodes / edges）
        params: ACOParameters または外部インターフェース形式の辞書
            （iterations, antCount, evaporationRate, alpha, beta）
        seed: 乱数シード
        rng: 乱数生成器（指定時はseedより優先）
        cancel_event: 中断シグナル
        on_iteration: 世代ごとのコールバック

    Returns:
        最適化の結果

    Raises:
        ConfigurationError: パラメータまたはネットワークが不正な場合
    """
    graph = (
        network
        if isinstance(network, SupplyChainGraph)
        else SupplyChainGraph.from_description(network)
    )
    if params is not None and not isinstance(params, ACOParameters):
        params = ACOParameters.from_dict(params)
    solver = ACOSolver(graph, params, seed=seed, rng=rng)
    return solver.run(cancel_event=cancel_event, on_iteration=on_iteration)
