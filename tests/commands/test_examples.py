"""Tests for the --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from infraflow.cli import cli

# (CLI args, expected keywords in output)
EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["detect", "--examples"], ["infraflow detect", "방화벽 추가해줘"]),
    (["parse", "--examples"], ["--layout", "--name", "--template zero-trust"]),
    (["apply", "--examples"], ["-o spec.new.json", "nodeIdMappings"]),
    (["edit", "--examples"], ["--dry-run", "add a waf after the firewall"]),
    (["layout", "--examples"], ["--tier-gap 320"]),
    (["validate", "--examples"], ["infraflow validate"]),
    (["catalog", "--examples"], ["--category security"]),
]


def _examples_id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a for a in args if a != "--examples")


@pytest.mark.parametrize(
    ("args", "keywords"),
    EXAMPLES_COMMANDS,
    ids=[_examples_id(item) for item in EXAMPLES_COMMANDS],
)
def test_examples_flag(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    assert "Examples for" in result.output
    for keyword in keywords:
        assert keyword in result.output


def test_examples_skips_required_arguments(cli_runner: CliRunner) -> None:
    """--examples is eager, so missing SPEC/OPS arguments are not an error."""
    result = cli_runner.invoke(cli, ["apply", "--examples"])
    assert result.exit_code == 0


def test_examples_not_in_help_text(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["layout", "--help"])
    assert "--examples" in result.output
    assert "infraflow layout spec.json --tier-gap" not in result.output
