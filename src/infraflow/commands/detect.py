"""Commands: detect components in text, and parse text or a template into a specification."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from infraflow.commands._base import InfraCommand
from infraflow.domain.templates import available_templates

if TYPE_CHECKING:
    from infraflow.commands._context import AppContext


@click.command(
    cls=InfraCommand,
    examples="""\
  infraflow detect "방화벽 추가해줘"
  infraflow detect user firewall web server and db
  infraflow --json detect 'WAF 뒤에 로드밸런서 연결'""",
)
@click.argument("text", nargs=-1, required=True)
@click.pass_obj
def detect(app: AppContext, text: tuple[str, ...]) -> None:
    """Detect component types and command intent in TEXT."""
    from infraflow.services.detection import DetectionService

    app.emit(DetectionService(app.settings).detect(" ".join(text)))


@click.command(
    cls=InfraCommand,
    examples="""\
  infraflow parse "firewall -> web server -> database"
  infraflow parse --layout "방화벽, 웹서버, DB"
  infraflow parse "3-tier web architecture"
  infraflow parse --template zero-trust
  infraflow parse --no-templates "api server with redis cache"
  infraflow --json parse --name "3-tier" "firewall web server db" > spec.json""",
)
@click.argument("text", nargs=-1)
@click.option("--name", default=None, help="Name stored on the specification.")
@click.option(
    "--template",
    type=click.Choice(available_templates()),
    default=None,
    help="Start from this architecture template instead of the text.",
)
@click.option(
    "--templates/--no-templates",
    "use_templates",
    default=True,
    help="Match template keywords in TEXT before detecting components.",
)
@click.option("--layout", "with_layout", is_flag=True, help="Also compute node positions.")
@click.pass_obj
def parse(
    app: AppContext,
    text: tuple[str, ...],
    name: str | None,
    template: str | None,
    use_templates: bool,
    with_layout: bool,
) -> None:
    """Build a specification from TEXT, or from an architecture template."""
    from infraflow.domain.spec import Specification
    from infraflow.services.detection import DetectionService
    from infraflow.services.layout import LayoutService
    from infraflow.services.result import ServiceResult

    if not text and template is None:
        raise click.UsageError("Provide TEXT or --template.")

    result = DetectionService(app.settings).parse_text(
        " ".join(text), name=name, template=template, use_templates=use_templates
    )
    if with_layout and result.ok:
        spec = Specification.model_validate(result.data["spec"])
        flow = LayoutService(app.settings).layout(spec)
        result = ServiceResult(
            ok=True,
            op=result.op,
            data={**result.data, **flow.data},
            warnings=[*result.warnings, *flow.warnings],
            meta={**(result.meta or {}), **(flow.meta or {})},
        )
    app.emit(result)
