"""
ノードモジュール

サプライチェーンを構成するノード（拠点）を表現します。

【ノード種別】
供給者（supplier）→ 製造者（manufacturer）→ 卸売（distributor）→ 小売（retailer）
の4階層で構成され、隣接する階層間の接続が典型的な物流の流れとなります。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NodeCategory(str, Enum):
    """ノード種別（サプライチェーンの階層）"""

    SUPPLIER = "supplier"
    MANUFACTURER = "manufacturer"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"

    @property
    def tier(self) -> int:
        """階層番号（供給者=0 ... 小売=3）"""
        return _TIERS[self]

    def is_adjacent_to(self, other: "NodeCategory") -> bool:
        """
        selfからotherへの接続が隣接階層間の流れかを判定します。

        Args:
            other: 接続先の種別

        Returns:
            supplier→manufacturer、manufacturer→distributor、distributor→retailer
            のいずれかならTrue
        """
        return other.tier == self.tier + 1

    @classmethod
    def parse(cls, value) -> "NodeCategory":
        """文字列（大文字小文字を区別しない）またはNodeCategoryから変換"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown node category: {value!r}") from None


_TIERS = {
    NodeCategory.SUPPLIER: 0,
    NodeCategory.MANUFACTURER: 1,
    NodeCategory.DISTRIBUTOR: 2,
    NodeCategory.RETAILER: 3,
}

# 階層順に並べた種別（ネットワーク生成時の割り当て順）
CATEGORIES = (
    NodeCategory.SUPPLIER,
    NodeCategory.MANUFACTURER,
    NodeCategory.DISTRIBUTOR,
    NodeCategory.RETAILER,
)


@dataclass(frozen=True)
class SupplyChainNode:
    """
    サプライチェーンのノード（生成後は不変）

    Attributes:
        id (int): ノードID（グラフ内で一意）
        category (NodeCategory): ノード種別
        x (float): 2次元座標x（距離の算出と表示にのみ使用）
        y (float): 2次元座標y
        capacity (float): 処理能力（非負）
        cost (float): 拠点固有のコスト（非負）
        name (Optional[str]): 表示名。省略時は "Supplier 3" の形式
    """

    id: int
    category: NodeCategory
    x: float = 0.0
    y: float = 0.0
    capacity: float = 0.0
    cost: float = 0.0
    name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "category", NodeCategory.parse(self.category))
        if not (self.capacity >= 0 and self.cost >= 0):
            raise ValueError(
                f"Node {self.id}: capacity and cost must be non-negative "
                f"(capacity={self.capacity}, cost={self.cost})"
            )

    @property
    def label(self) -> str:
        return self.name or f"{self.category.value.capitalize()} {self.id}"

    def __repr__(self) -> str:
        return f"SupplyChainNode(id={self.id}, category={self.category.value})"
