"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console backed by StringIO. Renderers are
dispatched by ``result.op`` in :func:`render_result`; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeAlias

from rich.table import Table
from rich.text import Text

from infraflow.output.console import create_console, get_output, style_for_tier

if TYPE_CHECKING:
    from rich.console import Console

    from infraflow.services.result import ServiceResult

_Renderer: TypeAlias = Callable[..., None]


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: ids only."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    ids = [_extract_id(item) for item in _quiet_items(result.data)]
    ids = [i for i in ids if i]
    if ids:
        return "\n".join(ids)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _quiet_items(data: dict[str, Any]) -> list[Any]:
    if isinstance(data.get("items"), list):
        return data["items"]
    if isinstance(data.get("matches"), list):
        return data["matches"]
    if isinstance(data.get("nodes"), list):
        return data["nodes"]
    for key in ("spec", "newSpec"):
        spec = data.get(key)
        if isinstance(spec, dict):
            return spec.get("nodes", [])
    return []


def _extract_id(item: Any) -> str:
    """Node id, or component type for catalog rows and detection matches."""
    if isinstance(item, dict):
        for key in ("id", "type"):
            val = item.get(key)
            if val is not None:
                return str(val)
    return ""


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="infra.ok")
    op = Text(f"  {result.op}", style="infra.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="infra.key")
    v = Text(str(value), style="infra.id" if key.endswith("id") else "")
    console.print(k, v, sep="")


def _tier_text(tier: Any) -> Text:
    return Text(str(tier or ""), style=style_for_tier(str(tier)))


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(Text(f"    {k}: {v}"))


def _node_table(nodes: list[dict[str, Any]], *, positions: bool = False) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="infra.id", no_wrap=True)
    table.add_column("Type", style="infra.type")
    table.add_column("Label")
    table.add_column("Tier")
    if positions:
        table.add_column("X", justify="right")
        table.add_column("Y", justify="right")

    for node in nodes:
        row: list[Any] = [
            str(node.get("id", "")),
            str(node.get("type", "")),
            str(node.get("label", "")),
            _tier_text(node.get("tier")),
        ]
        if positions:
            pos = node.get("position", {})
            row.append(f"{pos.get('x', 0):g}")
            row.append(f"{pos.get('y', 0):g}")
        table.add_row(*row)
    return table


def _render_connections(console: Console, connections: list[dict[str, Any]]) -> None:
    for conn in connections:
        line = Text(f"  {conn.get('source')} -> {conn.get('target')}")
        flow = conn.get("flowType")
        if flow:
            line.append(f"  ({flow})", style="infra.flow")
        console.print(line)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="infra.error")
    op = Text(f"  {result.op}", style="infra.op")
    console.print(label, op, Text(f": {msg}"), sep="")

    # Partial batch results still list each failed operation.
    for line in result.data.get("errors", []):
        console.print(Text("  - ", style="infra.error"), Text(str(line)))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Detection renderers ───────────────────────────────────────────────


def _render_detect(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "command", d.get("command"))
    _field(console, "primary", d.get("primary") or "-")

    matches = d.get("matches", [])
    if matches:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Type", style="infra.type", no_wrap=True)
        table.add_column("Label")
        table.add_column("Label (ko)")
        table.add_column("Category")
        table.add_column("Tier")
        for m in matches:
            table.add_row(m["type"], m["label"], m["label_ko"], m["category"], _tier_text(m["tier"]))
        console.print()
        console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_parse_text(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "command", d.get("command"))
    if d.get("template"):
        _field(console, "template", d["template"])

    if "nodes" in d:
        # Parsed and laid out in one go
        console.print()
        console.print(_node_table(d["nodes"], positions=True))
        _field(console, "edges", len(d.get("edges", [])))
    else:
        spec = d.get("spec", {})
        console.print()
        console.print(_node_table(spec.get("nodes", [])))
        _render_connections(console, spec.get("connections", []))
    if verbose:
        _render_meta(console, result)


# ── Spec renderers ────────────────────────────────────────────────────


def _operation_line(op: dict[str, Any]) -> Text:
    line = Text(f"  {op.get('type')}", style="infra.op")
    if op.get("target"):
        line.append(f" {op['target']}", style="infra.id")
    data = op.get("data") or {}
    if data:
        line.append("  " + ", ".join(f"{k}={v}" for k, v in data.items()), style="dim")
    return line


def _render_plan_edits(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    _field(console, "command", d.get("command"))
    console.print()
    for op in d.get("operations", []):
        console.print(_operation_line(op))
    if verbose:
        _render_meta(console, result)


def _render_apply(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    if "command" in d:
        # Applied from a text edit request
        _field(console, "command", d["command"])
    _field(console, "applied", d.get("appliedOps", 0))
    for old_id, new_id in d.get("nodeIdMappings", {}).items():
        console.print(
            Text("  replaced: ", style="infra.key"),
            Text(f"{old_id} -> "),
            Text(new_id, style="infra.id"),
            sep="",
        )

    spec = d.get("newSpec", {})
    if verbose:
        console.print()
        console.print(_node_table(spec.get("nodes", [])))
        _render_connections(console, spec.get("connections", []))
        _render_meta(console, result)
    else:
        _field(console, "nodes", len(spec.get("nodes", [])))
        _field(console, "connections", len(spec.get("connections", [])))


def _render_layout(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    console.print(_node_table(d.get("nodes", []), positions=True))
    _field(console, "edges", len(d.get("edges", [])))
    if verbose:
        _render_meta(console, result)


def _render_validate(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    for key in ("valid", "node_count", "connection_count", "components"):
        _field(console, key, d.get(key))

    issues = d.get("issues", [])
    if issues:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Code", style="infra.warning", no_wrap=True)
        table.add_column("Ref", style="infra.id")
        table.add_column("Message")
        for issue in issues:
            table.add_row(issue["code"], issue["ref"], issue["message"])
        console.print()
        console.print(table)


def _render_catalog(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Type", style="infra.type", no_wrap=True)
    table.add_column("Label")
    table.add_column("Label (ko)")
    table.add_column("Category")
    table.add_column("Tier")
    if verbose:
        table.add_column("Keywords", style="dim")
    for item in items:
        row: list[Any] = [
            item["type"],
            item["label"],
            item["label_ko"],
            item["category"],
            _tier_text(item["tier"]),
        ]
        if verbose:
            row.append(", ".join(item.get("keywords", [])))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{len(items)} components")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, _Renderer] = {
    "detect": _render_detect,
    "parse_text": _render_parse_text,
    "plan_edits": _render_plan_edits,
    "apply_operations": _render_apply,
    "layout": _render_layout,
    "validate_spec": _render_validate,
    "catalog": _render_catalog,
}
