"""Rich/JSON output selection.

The CLI renders ServiceResult for humans (Rich tables and colors) or for
machines (``--json``). This module picks the mode.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from infraflow.output.renderers import render_quiet, render_result

if TYPE_CHECKING:
    from infraflow.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Output-related CLI flags."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(
    result: ServiceResult,
    *,
    settings: OutputSettings | None = None,
    json_output: bool = False,
) -> str:
    """Format a ServiceResult for display.

    Args:
        result: The service result to format.
        settings: Output flags; when omitted only *json_output* applies.
        json_output: Shorthand for ``OutputSettings(json_output=True)``.
    """
    if settings is None:
        settings = OutputSettings(json_output=json_output)
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
