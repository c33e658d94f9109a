"""
ACO Solver（最適化の実行）のテスト
"""

import math
import random
import threading

import pytest

from supply_chain_aco.algorithms.aco_solver import (
    ACOSolver,
    ConvergenceRecord,
    RunState,
    optimize,
)
from supply_chain_aco.core.graph import (
    SupplyChainEdge,
    SupplyChainGraph,
    generate_supply_chain_graph,
)
from supply_chain_aco.core.node import NodeCategory, SupplyChainNode
from supply_chain_aco.exceptions import ConfigurationError
from supply_chain_aco.modules.pheromone import PheromoneMatrix
from supply_chain_aco.utils.config import ACOParameters
from supply_chain_aco.utils.metrics import ConvergenceMetrics


@pytest.fixture
def random_graph():
    """シード固定のランダムネットワーク"""
    return generate_supply_chain_graph(16, 0.6, random.Random(2024))


class TestScenarios:
    """代表的なシナリオ"""

    def test_single_chain(self, chain_graph):
        """一本道では1世代目から最良経路が見つかる"""
        result = optimize(chain_graph, ACOParameters(iterations=10, ant_count=5), seed=1)

        assert result.found
        assert result.best_path == (0, 1, 2, 3)
        assert result.path_cost == 30.0
        assert len(result.convergence) == 10
        assert result.convergence[0] == ConvergenceRecord(1, 30.0)
        assert all(r.best_cost == 30.0 for r in result.convergence)

    @pytest.mark.parametrize(
        "params",
        [
            ACOParameters(ant_count=0),
            ACOParameters(iterations=0),
            ACOParameters(evaporation_rate=0.0),
            ACOParameters(evaporation_rate=1.0),
            ACOParameters(alpha=-1.0),
        ],
    )
    def test_invalid_parameters(self, chain_graph, params, monkeypatch):
        """不正なパラメータはフェロモン確保前にConfigurationError"""
        allocations = []

        def record_allocation(matrix, *args, **kwargs):
            allocations.append(matrix)
            raise AssertionError("pheromone matrix allocated")

        monkeypatch.setattr(PheromoneMatrix, "__init__", record_allocation)
        with pytest.raises(ConfigurationError):
            solver = ACOSolver(chain_graph, params)
            solver.run()
        assert allocations == []

    def test_invalid_parameters_from_dict(self, chain_description):
        with pytest.raises(ConfigurationError):
            optimize(chain_description, {"iterations": 10, "antCount": 0})

    def test_no_edges(self, edgeless_graph):
        """エッジがなければ全世代で失敗するが、収束履歴は世代数分記録される"""
        result = optimize(edgeless_graph, ACOParameters(iterations=7, ant_count=3), seed=0)

        assert not result.found
        assert result.best_path == ()
        assert math.isinf(result.path_cost)
        assert [r.iteration for r in result.convergence] == list(range(1, 8))
        assert all(math.isinf(r.best_cost) for r in result.convergence)

        data = result.to_dict()
        assert data["bestPath"] == []
        assert data["pathCost"] is None
        assert all(entry["bestCost"] is None for entry in data["convergenceData"])

    def test_cheapest_branch(self, diamond_graph):
        result = optimize(diamond_graph, ACOParameters(iterations=20, ant_count=10), seed=3)
        assert result.best_path == (0, 1, 3)
        assert result.path_cost == 2.0


class TestRunProperties:
    """実行結果の性質"""

    def test_convergence_is_non_increasing(self, random_graph):
        params = ACOParameters(iterations=30, ant_count=10)
        result = optimize(random_graph, params, seed=5)

        assert len(result.convergence) == 30
        assert ConvergenceMetrics.is_non_increasing(result.convergence)
        if result.found:
            assert result.convergence[-1].best_cost == result.path_cost

    def test_best_path_is_simple(self, random_graph):
        """最良経路は単純経路で、全てのエッジがグラフに存在する"""
        solver = ACOSolver(random_graph, ACOParameters(iterations=30, ant_count=10), seed=8)
        result = solver.run()
        if not result.found:
            pytest.skip("no supplier-to-retailer path in the generated network")

        path = result.best_path
        assert path[0] == solver.start_node
        assert path[-1] in solver.goal_nodes
        assert len(set(path)) == len(path)
        assert all(random_graph.has_edge(u, v) for u, v in zip(path, path[1:]))
        assert sum(random_graph.edge(u, v).cost for u, v in zip(path, path[1:])) == (
            pytest.approx(result.path_cost)
        )

    def test_same_seed_same_result(self, random_graph):
        params = ACOParameters(iterations=15, ant_count=8)
        r1 = optimize(random_graph, params, seed=42)
        r2 = optimize(random_graph, params, seed=42)
        assert r1.to_dict() == r2.to_dict()

    def test_workers_do_not_change_result(self, random_graph):
        """並列構築のスレッド数は結果に影響しない"""
        r1 = optimize(random_graph, ACOParameters(iterations=10, ant_count=12), seed=7)
        r2 = optimize(
            random_graph, ACOParameters(iterations=10, ant_count=12, workers=4), seed=7
        )
        assert r1 == r2

    def test_explicit_rng(self, chain_graph):
        result = optimize(chain_graph, ACOParameters(iterations=2, ant_count=2), rng=random.Random(0))
        assert result.found


class TestRunState:
    """実行状態の遷移"""

    def test_state_transitions(self, chain_graph):
        solver = ACOSolver(chain_graph, ACOParameters(iterations=3, ant_count=2), seed=0)
        assert solver.state is RunState.INITIALIZED
        assert solver.pheromone is None
        assert solver.result is None

        states = []
        solver.run(on_iteration=lambda record, result: states.append(solver.state))
        assert states == [RunState.RUNNING] * 3
        assert solver.state is RunState.COMPLETED
        assert solver.result is not None
        assert len(solver.pheromone) == 3

    def test_run_once(self, chain_graph):
        """1つのソルバーは1回だけ実行できる"""
        solver = ACOSolver(chain_graph, ACOParameters(iterations=2, ant_count=2), seed=0)
        solver.run()
        with pytest.raises(RuntimeError):
            solver.run()

    def test_cancel_before_start(self, chain_graph):
        cancel = threading.Event()
        cancel.set()
        result = optimize(
            chain_graph, ACOParameters(iterations=10, ant_count=2), seed=0, cancel_event=cancel
        )
        assert result.cancelled
        assert result.convergence == ()
        assert not result.found

    def test_cancel_during_run(self, chain_graph):
        """中断は世代の境界で反映される"""
        cancel = threading.Event()

        def on_iteration(record, result):
            if record.iteration == 3:
                cancel.set()

        result = optimize(
            chain_graph,
            ACOParameters(iterations=10, ant_count=2),
            seed=0,
            cancel_event=cancel,
            on_iteration=on_iteration,
        )
        assert result.cancelled
        assert result.iterations_completed == 3
        assert result.best_path == (0, 1, 2, 3)


class TestStartAndGoal:
    """スタート・ゴールの決定"""

    def test_default_start_is_lowest_supplier(self):
        nodes = [
            SupplyChainNode(0, "retailer"),
            SupplyChainNode(1, "supplier"),
            SupplyChainNode(2, "supplier"),
        ]
        graph = SupplyChainGraph(nodes, [SupplyChainEdge(1, 0), SupplyChainEdge(2, 0)])
        solver = ACOSolver(graph, ACOParameters(iterations=1, ant_count=1), seed=0)
        assert solver.start_node == 1
        assert solver.goal_nodes == (0,)

    def test_default_start_without_suppliers(self):
        nodes = [SupplyChainNode(4, "manufacturer"), SupplyChainNode(2, "retailer")]
        graph = SupplyChainGraph(nodes, [SupplyChainEdge(4, 2)])
        solver = ACOSolver(graph, ACOParameters(iterations=1, ant_count=1), seed=0)
        assert solver.start_node == 2

    def test_explicit_goal(self, diamond_graph):
        params = ACOParameters(iterations=5, ant_count=4, beta=0.0, goal_nodes=[2])
        result = optimize(diamond_graph, params, seed=0)
        assert result.best_path == (0, 2)
        assert result.path_cost == 10.0

    def test_terminal_categories(self, chain_graph):
        """terminal_categoriesで到達すれば完了するノード種別を変えられる"""
        params = ACOParameters(
            iterations=3, ant_count=2, terminal_categories=["distributor"]
        )
        result = optimize(chain_graph, params, seed=0)
        assert result.best_path == (0, 1, 2)
        assert chain_graph.node(result.best_path[-1]).category is NodeCategory.DISTRIBUTOR

    @pytest.mark.parametrize(
        "params",
        [
            ACOParameters(start_node=99),
            ACOParameters(goal_nodes=[3, 99]),
        ],
    )
    def test_unknown_nodes(self, chain_graph, params):
        with pytest.raises(ConfigurationError):
            ACOSolver(chain_graph, params)

    def test_empty_graph(self):
        with pytest.raises(ConfigurationError):
            ACOSolver(SupplyChainGraph([], []))


class TestExternalInterface:
    """外部インターフェース形式との変換"""

    def test_optimize_with_description(self, chain_description):
        """ネットワーク記述とcamelCaseのパラメータから実行できる"""
        result = optimize(
            chain_description,
            {"iterations": 4, "antCount": 3, "evaporationRate": 0.3, "alpha": 1, "beta": 2},
            seed=0,
        )
        data = result.to_dict()
        assert data["bestPath"] == [0, 1, 2, 3]
        assert data["pathCost"] == 30.0
        assert data["convergenceData"] == [
            {"iteration": i, "bestCost": 30.0} for i in range(1, 5)
        ]

    def test_callback_receives_every_iteration(self, chain_graph):
        records = []
        optimize(
            chain_graph,
            ACOParameters(iterations=6, ant_count=2),
            seed=0,
            on_iteration=lambda record, result: records.append(record.iteration),
        )
        assert records == [1, 2, 3, 4, 5, 6]


class TestParameterTypes:
    """外部インターフェースから渡される不正な型の値"""

    @pytest.mark.parametrize(
        "params",
        [
            {"iterations": 5, "antCount": 2, "evaporationRate": "0.5"},
            {"iterations": 5, "antCount": 2, "alpha": None},
            {"iterations": 5, "antCount": 2, "beta": float("nan")},
        ],
    )
    def test_malformed_parameters(self, chain_description, params):
        with pytest.raises(ConfigurationError):
            optimize(chain_description, params)

    def test_nan_alpha(self, chain_graph):
        with pytest.raises(ConfigurationError):
            ACOSolver(chain_graph, ACOParameters(alpha=math.nan))
