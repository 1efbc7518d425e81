"""Commands operating on Specification JSON files: apply, edit, layout, validate."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import click

from infraflow.commands._base import InfraCommand

if TYPE_CHECKING:
    from infraflow.commands._context import AppContext

_FILE = click.Path(dir_okay=False, allow_dash=True)


@click.command(
    cls=InfraCommand,
    examples="""\
  infraflow apply spec.json ops.json
  infraflow apply spec.json ops.json -o spec.new.json
  infraflow --json apply spec.json ops.json | jq .data.nodeIdMappings""",
)
@click.argument("spec_path", metavar="SPEC", type=_FILE)
@click.argument("ops_path", metavar="OPS", type=_FILE)
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the resulting specification JSON here (also on partial failure).",
)
@click.pass_obj
def apply(app: AppContext, spec_path: str, ops_path: str, output_path: str | None) -> None:
    """Apply the operations in OPS to the specification in SPEC."""
    from infraflow.services.diff import DiffService

    op = "apply_operations"
    spec = app.load_spec(spec_path, op=op)
    operations = app.load_operations(ops_path, op=op)
    result = DiffService(app.settings).apply(spec, operations)

    if output_path is not None:
        payload = json.dumps(result.data["newSpec"], ensure_ascii=False, indent=2)
        Path(output_path).write_text(payload + "\n", encoding="utf-8")
    app.emit(result)


@click.command(
    cls=InfraCommand,
    examples="""\
  infraflow layout spec.json
  infraflow layout spec.json --tier-gap 320 --start-y 0
  infraflow --json layout spec.json > flow.json""",
)
@click.argument("spec_path", metavar="SPEC", type=_FILE)
@click.option("--start-x", type=float, default=None, help="Left edge of the first tier column.")
@click.option("--start-y", type=float, default=None, help="Top edge of the tallest tier column.")
@click.option("--tier-gap", type=float, default=None, help="Horizontal distance between tiers.")
@click.option("--vertical-gap", type=float, default=None, help="Vertical distance between nodes.")
@click.pass_obj
def layout(
    app: AppContext,
    spec_path: str,
    start_x: float | None,
    start_y: float | None,
    tier_gap: float | None,
    vertical_gap: float | None,
) -> None:
    """Compute tiered node positions for the specification in SPEC."""
    from infraflow.services.layout import LayoutService

    spec = app.load_spec(spec_path, op="layout")
    overrides = {
        key: value
        for key, value in (
            ("startX", start_x),
            ("startY", start_y),
            ("tierGap", tier_gap),
            ("verticalGap", vertical_gap),
        )
        if value is not None
    }
    app.emit(LayoutService(app.settings).layout(spec, overrides or None))


@click.command(
    cls=InfraCommand,
    examples="""\
  infraflow validate spec.json
  infraflow --json validate spec.json""",
)
@click.argument("spec_path", metavar="SPEC", type=_FILE)
@click.pass_obj
def validate(app: AppContext, spec_path: str) -> None:
    """Report structural issues in the specification in SPEC."""
    from infraflow.services.validation import ValidationService

    spec = app.load_spec(spec_path, op="validate_spec")
    app.emit(ValidationService(app.settings).validate(spec))


@click.command(
    cls=InfraCommand,
    examples="""\
  infraflow edit spec.json "add a waf after the firewall"
  infraflow edit spec.json "change firewall to waf" -o spec.new.json
  infraflow edit --dry-run spec.json "웹서버 삭제해줘"
  infraflow --json edit --dry-run spec.json "connect cache to db" | jq .data.operations""",
)
@click.argument("spec_path", metavar="SPEC", type=_FILE)
@click.argument("text", nargs=-1, required=True)
@click.option("--dry-run", is_flag=True, help="Print the derived operations without applying them.")
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the resulting specification JSON here (also on partial failure).",
)
@click.pass_obj
def edit(
    app: AppContext,
    spec_path: str,
    text: tuple[str, ...],
    dry_run: bool,
    output_path: str | None,
) -> None:
    """Apply the edit described in TEXT to the specification in SPEC."""
    from infraflow.services.detection import DetectionService
    from infraflow.services.diff import DiffService
    from infraflow.services.result import ServiceResult

    spec = app.load_spec(spec_path, op="plan_edits")
    plan = DetectionService(app.settings).plan_edits(" ".join(text), spec)
    if dry_run or not plan.ok:
        app.emit(plan)
        return

    applied = DiffService(app.settings).apply(spec, plan.data["operations"])
    result = ServiceResult(
        ok=applied.ok,
        op=applied.op,
        data={**applied.data, **plan.data},
        warnings=applied.warnings,
        error=applied.error,
        meta=applied.meta,
    )
    if output_path is not None:
        payload = json.dumps(result.data["newSpec"], ensure_ascii=False, indent=2)
        Path(output_path).write_text(payload + "\n", encoding="utf-8")
    app.emit(result)
