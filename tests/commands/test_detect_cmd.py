"""Tests for the detect and parse commands."""

import json

from click.testing import CliRunner

from infraflow.cli import cli


class TestDetectCommand:
    def test_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "detect", "방화벽", "추가해줘"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["command"] == "add"
        assert data["primary"] == "firewall"
        assert [m["type"] for m in data["matches"]] == ["firewall"]

    def test_rich(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["detect", "connect", "waf", "to", "firewall"])
        assert result.exit_code == 0
        assert "command: connect" in result.stdout
        assert "primary: waf" in result.stdout

    def test_nothing_detected_warns(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["detect", "good morning everyone"])
        assert result.exit_code == 0
        assert "primary: -" in result.stdout
        assert "WARNING: No known components mentioned" in result.stderr

    def test_quiet_lists_types(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "detect", "user firewall database"])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == ["user", "firewall", "db-server"]

    def test_requires_text(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["detect"])
        assert result.exit_code == 2


class TestParseCommand:
    def test_json_spec(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "parse", "--name", "edge", "firewall then waf"])
        assert result.exit_code == 0, result.output
        spec = json.loads(result.stdout)["data"]["spec"]
        assert spec["name"] == "edge"
        assert [n["id"] for n in spec["nodes"]] == ["user-1", "firewall-1", "waf-1"]
        assert [(c["source"], c["target"]) for c in spec["connections"]] == [
            ("user-1", "firewall-1"),
            ("firewall-1", "waf-1"),
        ]

    def test_with_layout(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "parse", "--layout", "firewall then waf"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert "spec" in payload["data"]
        assert {n["id"] for n in payload["data"]["nodes"]} == {"user-1", "firewall-1", "waf-1"}
        assert len(payload["data"]["edges"]) == 2
        assert payload["meta"]["node_count"] == 3
        assert "tiers" in payload["meta"]

    def test_no_components(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "parse", "good morning everyone"])
        assert result.exit_code == 1
        payload = json.loads(result.stderr)
        assert payload["error"]["code"] == "NO_COMPONENTS"
        assert result.stdout == ""

    def test_template_keyword(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "parse", "3-tier web architecture"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["template"] == "3tier"
        assert len(data["spec"]["nodes"]) == 10

    def test_template_option_without_text(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["parse", "--template", "dr"])
        assert result.exit_code == 0, result.output
        assert "template: dr" in result.stdout
        assert "db-primary" in result.stdout

    def test_no_templates_flag(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(
            cli, ["--json", "parse", "--no-templates", "3-tier web architecture with firewall"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["data"]["template"] is None

    def test_unknown_template_rejected(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["parse", "--template", "mainframe"])
        assert result.exit_code == 2

    def test_requires_text_or_template(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["parse"])
        assert result.exit_code == 2
        assert "Provide TEXT or --template" in result.output
