"""Rich Console factory and theme for infraflow output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments (tests,
pipes) Rich disables color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

INFRA_THEME = Theme(
    {
        "infra.ok": "bold green",
        "infra.error": "bold red",
        "infra.warning": "bold yellow",
        "infra.op": "bold cyan",
        "infra.key": "dim",
        "infra.id": "bold blue",
        "infra.type": "bold",
        "infra.tier.external": "magenta",
        "infra.tier.dmz": "red",
        "infra.tier.internal": "blue",
        "infra.tier.data": "green",
        "infra.flow": "cyan",
    }
)

_TIER_STYLES: dict[str, str] = {
    "external": "infra.tier.external",
    "dmz": "infra.tier.dmz",
    "internal": "infra.tier.internal",
    "data": "infra.tier.data",
}


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes.
        width: Override terminal width for stable test output.
    """
    return Console(
        file=StringIO(),
        theme=INFRA_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_tier(tier: str) -> str:
    """Return the Rich style name for a tier."""
    return _TIER_STYLES.get(tier, "")
