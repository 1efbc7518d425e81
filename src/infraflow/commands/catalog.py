"""Command: list the component catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from infraflow.commands._base import InfraCommand
from infraflow.domain.types import NodeCategory

if TYPE_CHECKING:
    from infraflow.commands._context import AppContext


@click.command(
    cls=InfraCommand,
    examples="""\
  infraflow catalog
  infraflow catalog --category security
  infraflow -q catalog --category wan""",
)
@click.option(
    "--category",
    type=click.Choice([c.value for c in NodeCategory]),
    default=None,
    help="Only list components in this category.",
)
@click.pass_obj
def catalog(app: AppContext, category: str | None) -> None:
    """List known component types with their default tier."""
    from infraflow.services.catalog import CatalogService

    app.emit(CatalogService(app.settings).list_components(category))
