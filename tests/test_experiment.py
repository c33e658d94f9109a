"""
実験実行スクリプト（コマンドライン）のテスト
"""

import json

import yaml

from supply_chain_aco.experiment import main


def write_config(path, **sections):
    config = {
        "experiment": {"name": "test", "seed": 0},
        "graph": {"node_count": 12, "density": 0.6},
        "aco": {"iterations": 5, "num_ants": 4},
        "output": {"log_level": "WARNING"},
    }
    config.update(sections)
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


class TestExperiment:
    """main()のテスト"""

    def test_network_file(self, tmp_path, chain_description):
        """ネットワーク記述を読み込んで結果をJSONに保存する"""
        network = tmp_path / "network.json"
        network.write_text(json.dumps(chain_description), encoding="utf-8")
        config = write_config(tmp_path / "config.yaml")
        output = tmp_path / "out" / "result.json"

        exit_code = main(
            ["--config", str(config), "--network", str(network), "--output", str(output)]
        )

        assert exit_code == 0
        result = json.loads(output.read_text(encoding="utf-8"))
        assert result["bestPath"] == [0, 1, 2, 3]
        assert result["pathCost"] == 30.0
        assert len(result["convergenceData"]) == 5

    def test_generated_network_is_reproducible(self, tmp_path):
        """同じシードで生成・実行すると同じ結果になる"""
        config = write_config(tmp_path / "config.yaml")
        first = tmp_path / "first.json"
        second = tmp_path / "second.json"

        assert main(["--config", str(config), "--seed", "3", "--output", str(first)]) == 0
        assert main(["--config", str(config), "--seed", "3", "--output", str(second)]) == 0
        assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")

    def test_result_file_from_config(self, tmp_path, chain_description):
        network = tmp_path / "network.json"
        network.write_text(json.dumps(chain_description), encoding="utf-8")
        output = tmp_path / "result.json"
        config = write_config(
            tmp_path / "config.yaml",
            graph={"network_file": str(network)},
            output={"log_level": "WARNING", "result_file": str(output)},
        )

        assert main(["--config", str(config)]) == 0
        assert json.loads(output.read_text(encoding="utf-8"))["pathCost"] == 30.0

    def test_invalid_configuration(self, tmp_path):
        """不正なパラメータは終了コード2"""
        config = write_config(tmp_path / "config.yaml", aco={"num_ants": 0})
        assert main(["--config", str(config)]) == 2

    def test_unknown_log_level(self, tmp_path):
        """不正なログレベルも設定エラーとして終了コード2"""
        config = write_config(tmp_path / "config.yaml", output={"log_level": "CHATTY"})
        assert main(["--config", str(config)]) == 2
