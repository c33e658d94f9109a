"""
例外モジュール

最適化エンジンが呼び出し元に通知するエラーを定義します。

【エラー分類】
- ConfigurationError: パラメータ・グラフが不正な場合。最適化開始前に送出される
- GraphValidationError: ネットワーク記述の不整合（存在しないノード、自己ループなど）

アリ単位の構築失敗・世代全体の失敗は例外ではなく、結果の値（状態・無限大コスト）として扱います。
"""


class ConfigurationError(ValueError):
    """不正な設定（反復回数、アリ数、揮発率、グラフなど）"""


class GraphValidationError(ConfigurationError):
    """ネットワーク記述がグラフの不変条件を満たさない"""
