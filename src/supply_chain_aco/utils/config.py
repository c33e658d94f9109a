"""
設定モジュール

config.yaml の読み込みと、ACOパラメータの検証を行います。

【設定ファイルの構成】
- experiment: 実験名、乱数シード、スタートノード、ゴールノード
- graph: ランダム生成するネットワークのノード数・密度、またはネットワーク記述ファイル
- aco: 反復回数、アリ数、揮発率、α、β などのアルゴリズムパラメータ
- output: ログレベル、結果ファイル
"""

import math
import numbers
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import yaml

from ..core.node import NodeCategory
from ..exceptions import ConfigurationError
from ..modules.evaluator import DEPOSIT_RULES, HEURISTICS, OBJECTIVES

# config.yaml の aco セクションで使われる別名
_ALIASES = {
    "num_ants": "ant_count",
    "rho": "evaporation_rate",
}

# 実数であることを検証するパラメータ
_REAL_PARAMETERS = (
    "evaporation_rate",
    "alpha",
    "beta",
    "epsilon",
    "initial_pheromone",
    "min_pheromone",
    "max_pheromone",
    "elitist_weight",
    "q",
)


def load_config(config_path: Union[str, Path]) -> Dict:
    """
    設定ファイルを読み込む

    Args:
        config_path: 設定ファイルのパス

    Returns:
        設定辞書（空のファイルなら空の辞書）

    Raises:
        ConfigurationError: YAMLの最上位がマッピングでない場合
    """
    with open(config_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"{config_path}: top level must be a mapping")
    return config


def _snake_case(key: str) -> str:
    """antCount → ant_count"""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


@dataclass
class ACOParameters:
    """
    ACOのパラメータ集合

    Attributes:
        iterations (int): 反復回数（世代数）
        ant_count (int): 1世代あたりのアリ数
        evaporation_rate (float): 揮発率ρ（0 < ρ < 1）
        alpha (float): フェロモンの重要度α
        beta (float): ヒューリスティックの重要度β
        epsilon (float): ε-Greedyのランダム選択確率（0で純粋な確率選択）
        max_hops (Optional[int]): アリ1匹の最大ホップ数（Noneならノード数-1）
        workers (int): アリの並列構築に使うスレッド数（1なら逐次）
        initial_pheromone (Optional[float]): フェロモン初期値（Noneなら1/エッジ数）
        min_pheromone (float): フェロモン下限
        max_pheromone (float): フェロモン上限
        elitist_weight (float): 暫定最良経路による追加付加の重み（0で無効）
        q (float): 付加量の係数Q
        objective (str): 経路コストとして合計するエッジ属性
        heuristic (str): ヒューリスティック 1/value に使うエッジ属性
        deposit_rule (str): 付加量の式
        terminal_categories (Tuple[str, ...]): 到達すると経路が完成するノード種別
        start_node (Optional[int]): スタートノード（Noneなら最小IDの供給者）
        goal_nodes (Optional[Tuple[int, ...]]): ゴールノード（指定時はterminal_categoriesより優先）
    """

    iterations: int = 100
    ant_count: int = 20
    evaporation_rate: float = 0.5
    alpha: float = 1.0
    beta: float = 2.0
    epsilon: float = 0.0
    max_hops: Optional[int] = None
    workers: int = 1
    initial_pheromone: Optional[float] = None
    min_pheromone: float = 0.0
    max_pheromone: float = math.inf
    elitist_weight: float = 0.0
    q: float = 1.0
    objective: str = "cost"
    heuristic: str = "distance"
    deposit_rule: str = "inverse_cost"
    terminal_categories: Tuple[str, ...] = field(default=("retailer",))
    start_node: Optional[int] = None
    goal_nodes: Optional[Tuple[int, ...]] = None

    def __post_init__(self):
        self.terminal_categories = tuple(self.terminal_categories)
        if self.goal_nodes is not None:
            self.goal_nodes = tuple(self.goal_nodes)

    @classmethod
    def from_dict(cls, mapping: Mapping) -> "ACOParameters":
        """
        辞書からパラメータを生成します。

        外部インターフェースのキー（iterations, antCount, evaporationRate, alpha, beta）と
        snake_caseのキーのどちらも受け付けます。

        Raises:
            ConfigurationError: 未知のキーが含まれる場合
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in mapping.items():
            name = _snake_case(key)
            name = _ALIASES.get(name, name)
            if name not in known:
                raise ConfigurationError(f"Unknown ACO parameter: {key}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_config(cls, config: Mapping) -> "ACOParameters":
        """
        設定辞書（config.yaml）の aco セクションと experiment セクションから生成します。
        """
        values = dict(config.get("aco") or {})
        experiment = config.get("experiment") or {}
        for key in ("start_node", "goal_nodes"):
            if experiment.get(key) is not None:
                values[key] = experiment[key]
        return cls.from_dict(values)

    def validate(self) -> None:
        """
        パラメータを検証します。

        Raises:
            ConfigurationError: いずれかのパラメータが範囲外の場合
        """
        if not _is_int(self.iterations) or self.iterations <= 0:
            raise ConfigurationError(
                f"iterations must be a positive integer, got {self.iterations!r}"
            )
        if not _is_int(self.ant_count) or self.ant_count <= 0:
            raise ConfigurationError(
                f"ant_count must be a positive integer, got {self.ant_count!r}"
            )
        # 数値パラメータの型と有限性（max_pheromoneのみ無限大を許す）
        for name in _REAL_PARAMETERS:
            value = getattr(self, name)
            if value is None and name == "initial_pheromone":
                continue
            if not _is_real(value, allow_inf=name == "max_pheromone"):
                raise ConfigurationError(
                    f"{name} must be a finite number, got {value!r}"
                )
        if not 0.0 < self.evaporation_rate < 1.0:
            raise ConfigurationError(
                f"evaporation_rate must be in (0, 1), got {self.evaporation_rate!r}"
            )
        if self.alpha < 0 or self.beta < 0:
            raise ConfigurationError(
                f"alpha and beta must be non-negative, got alpha={self.alpha}, beta={self.beta}"
            )
        if not 0.0 <= self.epsilon <= 1.0:
            raise ConfigurationError(f"epsilon must be in [0, 1], got {self.epsilon!r}")
        if self.max_hops is not None and (
            not _is_int(self.max_hops) or self.max_hops <= 0
        ):
            raise ConfigurationError(
                f"max_hops must be a positive integer, got {self.max_hops!r}"
            )
        if not _is_int(self.workers) or self.workers <= 0:
            raise ConfigurationError(
                f"workers must be a positive integer, got {self.workers!r}"
            )
        if self.initial_pheromone is not None and not self.initial_pheromone > 0:
            raise ConfigurationError(
                f"initial_pheromone must be positive, got {self.initial_pheromone!r}"
            )
        if self.min_pheromone < 0 or self.max_pheromone < self.min_pheromone:
            raise ConfigurationError(
                f"invalid pheromone bounds [{self.min_pheromone}, {self.max_pheromone}]"
            )
        if self.elitist_weight < 0:
            raise ConfigurationError(
                f"elitist_weight must be non-negative, got {self.elitist_weight!r}"
            )
        if not self.q > 0:
            raise ConfigurationError(f"q must be positive, got {self.q!r}")
        if self.objective not in OBJECTIVES:
            raise ConfigurationError(f"Unknown objective: {self.objective!r}")
        if self.heuristic not in HEURISTICS:
            raise ConfigurationError(f"Unknown heuristic: {self.heuristic!r}")
        if self.deposit_rule not in DEPOSIT_RULES:
            raise ConfigurationError(f"Unknown deposit rule: {self.deposit_rule!r}")
        for category in self.terminal_categories:
            try:
                NodeCategory.parse(category)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

    def resolved_terminal_categories(self) -> List[NodeCategory]:
        return [NodeCategory.parse(c) for c in self.terminal_categories]

    def to_dict(self) -> Dict:
        """外部インターフェース形式（camelCase）の主要パラメータ"""
        return {
            "iterations": self.iterations,
            "antCount": self.ant_count,
            "evaporationRate": self.evaporation_rate,
            "alpha": self.alpha,
            "beta": self.beta,
        }


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_real(value, allow_inf: bool = False) -> bool:
    """bool以外の実数で、NaNでない（allow_infがFalseなら有限）か"""
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        return False
    if math.isnan(value):
        return False
    return allow_inf or math.isfinite(value)
