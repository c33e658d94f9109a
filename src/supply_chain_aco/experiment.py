"""
実験実行スクリプト

config.yamlの設定に基づき、サプライチェーンネットワークを読み込み（またはランダム生成）し、
ACOで最小コスト経路を探索して収束指標を出力します。

使用例:
    supply-chain-aco --config config/config.yaml --seed 42 --output result.json
"""

import argparse
import json
import logging
import random
from pathlib import Path
from typing import Dict, List, Optional

from .algorithms.aco_solver import ACOSolver, OptimizationResult
from .core.graph import SupplyChainGraph, generate_supply_chain_graph
from .exceptions import ConfigurationError
from .utils.config import ACOParameters, load_config
from .utils.metrics import ConvergenceMetrics

logger = logging.getLogger(__name__)

# 設定ファイルに graph セクションがない場合の既定値
DEFAULT_NODE_COUNT = 10
DEFAULT_DENSITY = 0.4


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="supply-chain-aco",
        description="Find a low-cost supplier-to-retailer route with ant colony optimization.",
    )
    parser.add_argument(
        "--config", type=Path, default=None, help="YAML configuration file"
    )
    parser.add_argument(
        "--network",
        type=Path,
        default=None,
        help="network description JSON (nodes / edges); generated when omitted",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="random seed (overrides experiment.seed)"
    )
    parser.add_argument(
        "--output", type=Path, default=None, help="write the result as JSON"
    )
    return parser.parse_args(argv)


def configure_logging(level_name: str) -> None:
    """output.log_level からルートロガーを設定"""
    level = getattr(logging, str(level_name).upper(), None)
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {level_name}")
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def build_graph(
    config: Dict, network_path: Optional[Path], rng: random.Random
) -> SupplyChainGraph:
    """
    ネットワークを読み込む、または graph セクションに従ってランダム生成する

    Args:
        config: 設定辞書
        network_path: ネットワーク記述JSONのパス（コマンドライン引数が優先）
        rng: 生成に使う乱数生成器

    Returns:
        サプライチェーングラフ
    """
    graph_config = config.get("graph") or {}
    path = network_path or graph_config.get("network_file")
    if path:
        with open(path, "r", encoding="utf-8") as f:
            description = json.load(f)
        logger.info("Loaded network from %s", path)
        return SupplyChainGraph.from_description(description)

    node_count = graph_config.get("node_count", DEFAULT_NODE_COUNT)
    density = graph_config.get("density", DEFAULT_DENSITY)
    logger.info("Generating network: %d nodes, density %.2f", node_count, density)
    return generate_supply_chain_graph(node_count, density, rng)


def log_summary(result: OptimizationResult, metrics: ConvergenceMetrics) -> None:
    summary = metrics.summarize(result.convergence)
    if not result.found:
        logger.warning("No valid path found in %d iterations", summary["iterations"])
        return
    logger.info("Best path: %s", " -> ".join(str(n) for n in result.best_path))
    logger.info("Path cost: %.2f", result.path_cost)
    logger.info(
        "Initial cost %.2f, improvement %.2f (%.1f%%), converged at iteration %d, "
        "best first reached at iteration %d",
        summary["initial_cost"],
        summary["total_improvement"],
        summary["percent_improvement"],
        summary["convergence_iteration"],
        summary["best_found_iteration"],
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    メイン処理

    Returns:
        終了コード（成功0、設定エラー2）
    """
    args = parse_args(argv)

    try:
        # ===== 設定読み込み =====
        config = load_config(args.config) if args.config else {}
        output_config = config.get("output") or {}
        experiment = config.get("experiment") or {}
        configure_logging(output_config.get("log_level", "INFO"))

        seed = args.seed if args.seed is not None else experiment.get("seed")
        rng = random.Random(seed)
        logger.info(
            "Experiment: %s (seed=%s)", experiment.get("name", "default"), seed
        )

        # ===== ネットワーク構築・最適化 =====
        graph = build_graph(config, args.network, rng)
        params = ACOParameters.from_config(config)
        solver = ACOSolver(graph, params, rng=rng)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    result = solver.run()
    log_summary(result, ConvergenceMetrics())

    # ===== 結果の保存 =====
    output_path = args.output or output_config.get("result_file")
    if output_path:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
        logger.info("Result saved to %s", output_path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
