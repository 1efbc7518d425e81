"""Tests for the format_result dispatcher and OutputSettings."""

import json

from infraflow.output.formatters import OutputSettings, format_result
from infraflow.services.result import ServiceResult


def _ok(op: str = "test", **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str = "test", msg: str = "fail") -> ServiceResult:
    return ServiceResult.failure(op, "ERR", msg)


class TestOutputSettings:
    def test_defaults(self) -> None:
        s = OutputSettings()
        assert s.json_output is False
        assert s.quiet is False
        assert s.verbose is False


class TestFormatResultJSON:
    def test_json_mode(self) -> None:
        output = format_result(_ok("layout", nodes=[]), settings=OutputSettings(json_output=True))
        data = json.loads(output)
        assert data["ok"] is True
        assert data["op"] == "layout"
        assert data["data"]["nodes"] == []

    def test_json_mode_error(self) -> None:
        data = json.loads(format_result(_err("apply_operations", "Bad"), json_output=True))
        assert data["ok"] is False
        assert data["error"]["code"] == "ERR"
        assert data["error"]["message"] == "Bad"

    def test_settings_override_shorthand(self) -> None:
        output = format_result(_ok(key="val"), settings=OutputSettings(), json_output=True)
        assert not output.startswith("{")

    def test_json_wins_over_quiet(self) -> None:
        output = format_result(_ok(), settings=OutputSettings(json_output=True, quiet=True))
        assert json.loads(output)["ok"] is True


class TestFormatResultQuiet:
    def test_quiet_success(self) -> None:
        output = format_result(_ok("validate_spec", valid=True), settings=OutputSettings(quiet=True))
        assert output == "OK: validate_spec"

    def test_quiet_error(self) -> None:
        output = format_result(_err("layout", "Bad input"), settings=OutputSettings(quiet=True))
        assert output == "ERROR: layout: Bad input"


class TestFormatResultRich:
    def test_default_is_rich(self) -> None:
        output = format_result(_ok("something", answer=42))
        assert "OK" in output
        assert "answer: 42" in output
