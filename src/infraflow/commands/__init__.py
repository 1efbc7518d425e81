"""Subcommand modules for infraflow.

Provides register_commands() which uses deferred imports to keep
``infraflow --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from infraflow.commands.catalog import catalog
    from infraflow.commands.detect import detect, parse
    from infraflow.commands.spec import apply, edit, layout, validate

    cli.add_command(detect)
    cli.add_command(parse)
    cli.add_command(apply)
    cli.add_command(edit)
    cli.add_command(layout)
    cli.add_command(validate)
    cli.add_command(catalog)
