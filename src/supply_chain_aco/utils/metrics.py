"""
評価指標モジュール

収束履歴（世代ごとの暫定最良コスト）から、初期コスト・最終コスト・改善率・収束速度などを計算します。
"""

from typing import Dict, Optional, Sequence

import numpy as np


class ConvergenceMetrics:
    """
    収束履歴の評価指標を計算するクラス

    Attributes:
        convergence_threshold (float): 収束世代の判定に使う改善量の割合（既定は総改善量の90%）
    """

    def __init__(self, convergence_threshold: float = 0.9):
        if not 0.0 < convergence_threshold <= 1.0:
            raise ValueError(
                f"convergence_threshold must be in (0, 1], got {convergence_threshold}"
            )
        self.convergence_threshold = convergence_threshold

    @staticmethod
    def _costs(records: Sequence) -> np.ndarray:
        """ConvergenceRecord または {"bestCost": ...} の列からコスト配列を取り出す（Noneは無限大）"""
        costs = []
        for record in records:
            if isinstance(record, dict):
                cost = record.get("bestCost")
            else:
                cost = record.best_cost
            costs.append(np.inf if cost is None else float(cost))
        return np.asarray(costs, dtype=float)

    def summarize(self, records: Sequence) -> Dict[str, Optional[float]]:
        """
        収束履歴を要約します。

        Args:
            records: 収束履歴（ConvergenceRecordのリスト、または外部形式の辞書のリスト）

        Returns:
            以下のキーを持つ辞書（有効な経路が見つかっていない場合、コスト関連はNone）
            - iterations: 世代数
            - first_found_iteration: 最初に有効な経路が見つかった世代
            - initial_cost: 最初に見つかった経路のコスト
            - final_cost: 最終的な最良コスト
            - total_improvement: initial_cost - final_cost
            - percent_improvement: 改善率（%）
            - convergence_iteration: 総改善量の threshold 割合に最初に到達した世代
            - best_found_iteration: 最終的な最良コストに最初に到達した世代
            - improvement_count: 暫定最良解が更新された回数（最初の発見を含む）
        """
        costs = self._costs(records)
        summary: Dict[str, Optional[float]] = {
            "iterations": int(costs.size),
            "first_found_iteration": None,
            "initial_cost": None,
            "final_cost": None,
            "total_improvement": None,
            "percent_improvement": None,
            "convergence_iteration": None,
            "best_found_iteration": None,
            "improvement_count": 0,
        }

        finite = np.flatnonzero(np.isfinite(costs))
        if finite.size == 0:
            return summary

        first = int(finite[0])
        initial_cost = float(costs[first])
        final_cost = float(costs[-1])
        total_improvement = initial_cost - final_cost

        found = costs[first:]
        target = initial_cost - total_improvement * self.convergence_threshold
        # 浮動小数点誤差を吸収するため、目標値との比較に小さな許容差を入れる
        reached = np.flatnonzero(found <= target + 1e-9)
        best_reached = np.flatnonzero(found <= final_cost)

        summary.update(
            {
                "first_found_iteration": first + 1,
                "initial_cost": initial_cost,
                "final_cost": final_cost,
                "total_improvement": total_improvement,
                "percent_improvement": (
                    total_improvement / initial_cost * 100.0 if initial_cost else 0.0
                ),
                "convergence_iteration": first + int(reached[0]) + 1,
                "best_found_iteration": first + int(best_reached[0]) + 1,
                "improvement_count": int(np.count_nonzero(np.diff(found) < 0)) + 1,
            }
        )
        return summary

    @staticmethod
    def is_non_increasing(records: Sequence) -> bool:
        """収束履歴の最良コストが単調非増加か"""
        costs = ConvergenceMetrics._costs(records)
        if costs.size < 2:
            return True
        return bool(np.all(costs[1:] <= costs[:-1]))
