"""
CLI tests: end-to-end conversion through click.
"""
import json
import os
import shutil
import subprocess
import sys

from click.testing import CliRunner

from cfn2mermaid.cli import cli

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")

EXPECTED_DIAGRAM = (
    "```mermaid\n"
    "flowchart LR\n"
    "OrdersApiMethod[[OrdersApiMethod]] --> OrdersFunction([orders-handler])\n"
    "OrdersQueue((orders-queue)) --> OrdersFunction([orders-handler])\n"
    "```"
)


def test_module_execution():
    """Test that 'python -m cfn2mermaid' works."""
    result = subprocess.run(
        [sys.executable, "-m", "cfn2mermaid", "--help"],
        capture_output=True,
        text=True
    )
    assert result.returncode == 0
    assert "cfn2mermaid" in result.stdout


class TestConvert:
    def setup_method(self):
        self.runner = CliRunner()

    def test_writes_diagram_with_utf8_and_lf(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output_file = tmp_path / "diagram.md"
        result = self.runner.invoke(
            cli, ["convert", os.path.join(FIXTURES, "sample_stack.json"), "-o", str(output_file)]
        )
        assert result.exit_code == 0

        with open(output_file, "rb") as f:
            content = f.read()
        assert b"\r\n" not in content
        assert content.decode("utf-8") == EXPECTED_DIAGRAM

    def test_yaml_template_to_stdout(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = self.runner.invoke(cli, ["convert", os.path.join(FIXTURES, "sample_stack.yaml")])
        assert result.exit_code == 0
        assert EXPECTED_DIAGRAM in result.output

    def test_json_format(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output_file = tmp_path / "graph.json"
        result = self.runner.invoke(
            cli,
            ["convert", os.path.join(FIXTURES, "sample_stack.json"),
             "--format", "json", "-o", str(output_file)],
        )
        assert result.exit_code == 0
        data = json.loads(output_file.read_text(encoding="utf-8"))
        assert data["edges"] == [
            {"from": "OrdersApiMethod", "to": "OrdersFunction"},
            {"from": "OrdersQueue", "to": "OrdersFunction"},
        ]

    def test_markdown_format_and_direction(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output_file = tmp_path / "report.md"
        result = self.runner.invoke(
            cli,
            ["convert", os.path.join(FIXTURES, "sample_stack.yaml"),
             "--format", "markdown", "--direction", "TB", "-o", str(output_file)],
        )
        assert result.exit_code == 0
        report = output_file.read_text(encoding="utf-8")
        assert "# Architecture Diagram" in report
        assert "flowchart TB" in report
        assert "`StaleMapping`" in report

    def test_config_file_sets_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "cfn2mermaid.yaml").write_text("direction: TD\n")
        output_file = tmp_path / "diagram.md"
        result = self.runner.invoke(
            cli, ["convert", os.path.join(FIXTURES, "sample_stack.json"), "-o", str(output_file)]
        )
        assert result.exit_code == 0
        assert output_file.read_text(encoding="utf-8").splitlines()[1] == "flowchart TD"

    def test_flag_overrides_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "cfn2mermaid.yaml").write_text("direction: TD\n")
        output_file = tmp_path / "diagram.md"
        result = self.runner.invoke(
            cli,
            ["convert", os.path.join(FIXTURES, "sample_stack.json"),
             "--direction", "RL", "-o", str(output_file)],
        )
        assert result.exit_code == 0
        assert output_file.read_text(encoding="utf-8").splitlines()[1] == "flowchart RL"

    def test_verbose_warns_about_dropped_mappings(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        stack = tmp_path / "stack.yaml"
        shutil.copy(os.path.join(FIXTURES, "sample_stack.yaml"), stack)
        result = self.runner.invoke(
            cli, ["convert", str(stack), "--verbose", "--no-color", "-o", str(tmp_path / "out.md")]
        )
        assert result.exit_code == 0
        assert "StaleMapping" in result.output

    def test_missing_file_exits_2(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = self.runner.invoke(cli, ["convert", str(tmp_path / "missing.json")])
        assert result.exit_code == 2

    def test_non_cloudformation_exits_2(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        f = tmp_path / "deploy.yaml"
        f.write_text("apiVersion: apps/v1\nkind: Deployment\n")
        result = self.runner.invoke(cli, ["convert", str(f)])
        assert result.exit_code == 2

    def test_parse_error_exits_2(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        f = tmp_path / "stack.json"
        f.write_text(json.dumps({
            "AWSTemplateFormatVersion": "2010-09-09",
            "Resources": {"Q": {"Type": "AWS::SQS::Queue", "Properties": {}}},
        }))
        result = self.runner.invoke(cli, ["convert", str(f)])
        assert result.exit_code == 2

    def test_bad_config_exits_2(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "cfn2mermaid.yaml").write_text("format: pdf\n")
        result = self.runner.invoke(cli, ["convert", os.path.join(FIXTURES, "sample_stack.json")])
        assert result.exit_code == 2

    def test_summary_prints_edge_table(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output_file = tmp_path / "diagram.md"
        result = self.runner.invoke(
            cli,
            ["convert", os.path.join(FIXTURES, "sample_stack.json"),
             "--summary", "--no-color", "-o", str(output_file)],
            env={"COLUMNS": "200"},
        )
        assert result.exit_code == 0
        assert "Edges" in result.output
        assert "OrdersApiMethod" in result.output
        assert "ApiMethod" in result.output
        assert "Queue" in result.output
        # The diagram itself is unaffected by the table
        assert output_file.read_text(encoding="utf-8") == EXPECTED_DIAGRAM

    def test_no_summary_by_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = self.runner.invoke(
            cli,
            ["convert", os.path.join(FIXTURES, "sample_stack.json"),
             "--no-color", "-o", str(tmp_path / "diagram.md")],
            env={"COLUMNS": "200"},
        )
        assert result.exit_code == 0
        assert "OrdersApiMethod" not in result.output
