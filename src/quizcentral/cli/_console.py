"""Rich console singletons and output helpers for quiz documents and sessions."""

import json as json_mod
from typing import Any, Dict, List, Optional, Union

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

# Status/progress to stderr so it doesn't pollute piped JSON output
console = Console(stderr=True)

# Data output to stdout (pipeable to jq); the stream is resolved at print time
stdout_console = Console()


def print_ok(msg: str) -> None:
    """Print a success message to stderr."""
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    """Print an error message to stderr."""
    console.print(f"[red]✗[/red] {msg}")


def _plain(data: Union[BaseModel, Dict[str, Any], List[Any]]) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    return data


def output_result(data: Union[BaseModel, Dict[str, Any]], *, ctx: typer.Context, title: str = "") -> None:
    """Print a document as JSON (stdout, --json) or as a Rich panel (stderr)."""
    data = _plain(data)
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data, default=str)
        return

    formatted = json_mod.dumps(data, indent=2, ensure_ascii=False, default=str)
    if title:
        console.print(Panel(formatted, title=title, border_style="blue"))
    else:
        console.print(formatted)


def output_values(values: List[Any], *, ctx: typer.Context, title: str = "") -> None:
    """Print domain values as a JSON array (--json) or a numbered Rich table."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=values, default=str)
        return

    if not values:
        console.print("[dim]No values[/dim]")
        return

    table = Table(title=title or None, show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("value")
    for index, value in enumerate(values):
        table.add_row(str(index), json_mod.dumps(value, ensure_ascii=False, default=str))
    console.print(table)


def output_nodes(nodes: Dict[str, Any], *, title: Optional[str] = None) -> None:
    """Render runtime nodes (value, validity, computed flags) as a Rich table on stderr."""
    table = Table(title=title, show_lines=False)
    for column in ("node", "value", "valid", "hidden", "disabled", "required"):
        table.add_column(column)
    for node_id, node in nodes.items():
        table.add_row(
            node_id,
            json_mod.dumps(node.value, ensure_ascii=False, default=str),
            "yes" if node.validation.is_valid else "[red]no[/red]",
            str(node.computed.hidden),
            str(node.computed.disabled),
            str(node.computed.required),
        )
    console.print(table)
