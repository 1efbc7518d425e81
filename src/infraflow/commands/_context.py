"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Owns logging setup, JSON input loading, and result
emission (stdout/stderr routing plus exit codes).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click
from pydantic import ValidationError

from infraflow.output.formatters import OutputSettings, format_result
from infraflow.services.result import ServiceResult

if TYPE_CHECKING:
    from infraflow.config.settings import InfraSettings
    from infraflow.domain.spec import Specification


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: InfraSettings) -> None:
        self.settings = settings

        from infraflow.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose, quiet=settings.quiet, log_json=settings.log_json
        )

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output and not settings.quiet:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)

    def fail(self, op: str, message: str, **detail: Any) -> NoReturn:
        """Emit an ``INVALID_INPUT`` failure and exit."""
        self.emit(ServiceResult.failure(op, "INVALID_INPUT", message, detail=detail))
        raise SystemExit(1)  # emit always exits on failure

    def read_json(self, path: str, *, op: str) -> Any:
        """Parse a JSON file (``-`` reads stdin)."""
        try:
            if path == "-":
                raw = click.get_text_stream("stdin").read()
            else:
                raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            self.fail(op, f"Cannot read {path}: {exc.strerror or exc}", path=path)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            self.fail(op, f"Invalid JSON in {path}: {exc}", path=path)

    def load_spec(self, path: str, *, op: str) -> Specification:
        """Read and validate a Specification JSON file."""
        from infraflow.domain.spec import Specification

        data = self.read_json(path, op=op)
        try:
            return Specification.model_validate(data)
        except ValidationError as exc:
            errors = [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]
            self.fail(op, f"Invalid specification in {path}", path=path, errors=errors)

    def load_operations(self, path: str, *, op: str) -> list[Any]:
        """Read a JSON list of operations, or an object with an ``operations`` list.

        Entries are returned raw; malformed entries are reported per
        operation by the diff engine.
        """
        data = self.read_json(path, op=op)
        if isinstance(data, dict):
            data = data.get("operations")
        if not isinstance(data, list):
            self.fail(op, f"Expected a list of operations in {path}", path=path)
        return data
