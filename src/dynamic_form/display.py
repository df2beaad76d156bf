# display.py
# All terminal output for the dynamic-form CLI.
#
# This module owns presentation entirely. The library never formats
# strings for humans; run.py calls named functions here. It is also the
# reference rendering collaborator: it draws only nodes that pass the
# visibility evaluator for the current values.
#
# Colour language:
#   cyan    — form structure
#   yellow  — conditional / required markers
#   green   — valid / submitted
#   red     — errors, decode and configuration failures

import json
from typing import Any, Mapping

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from dynamic_form.models import Element, FormField, Instance, Node, flatten_fields
from dynamic_form.submission import Submission
from dynamic_form.validation import Changes
from dynamic_form.visibility import visible_items

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: Any, max_len: int = 60) -> str:
    text = value if isinstance(value, str) else json.dumps(value, default=str)
    if len(text) > max_len:
        text = text[:max_len] + "…"
    return escape(text)


def _option_text(option: Any) -> str:
    if isinstance(option, tuple):
        return f"{option[0]}={option[1]}"
    return str(option)


def _field_line(field: FormField) -> str:
    parts = [f"[bold white]{escape(field.name)}[/bold white]", f"[dim]{escape(field.type)}[/dim]"]
    if field.label:
        parts.append(escape(field.label))
    if field.required:
        parts.append("[yellow]*required[/yellow]")
    if field.disabled:
        parts.append("[dim]disabled[/dim]")
    if field.visible_when:
        parts.append("[yellow]conditional[/yellow]")
    if field.options:
        parts.append("[dim]" + escape(", ".join(_option_text(o) for o in field.options)) + "[/dim]")
    return "  ".join(parts)


def _element_line(element: Element) -> str:
    text = f"[cyan]{escape(element.type)}[/cyan]"
    if element.content:
        text += f"  [white]{escape(element.content)}[/white]"
    if element.visible_when:
        text += "  [yellow]conditional[/yellow]"
    return text


def _add_nodes(branch: Tree, nodes: list[Node]) -> None:
    for node in nodes:
        if isinstance(node, FormField):
            branch.add(_field_line(node))
        else:
            child = branch.add(_element_line(node))
            _add_nodes(child, node.items)


# ---------------------------------------------------------------------------
# Form structure
# ---------------------------------------------------------------------------


def instance_tree(instance: Instance, values: Mapping[str, Any] | None = None) -> None:
    """Draw the nodes visible for `values` (all unconditional nodes if None)."""
    values = values or {}
    shown = visible_items(instance.items, values)
    root = Tree(
        f"[bold cyan]{escape(instance.name or instance.id)}[/bold cyan]  [dim]{escape(instance.id)}[/dim]"
    )
    _add_nodes(root, shown)

    hidden = len(instance.fields) - len(flatten_fields(shown))
    subtitle = f"[dim]{hidden} field(s) hidden by conditions[/dim]" if hidden else None
    backend = instance.backend
    if backend is not None:
        root.add(f"[dim]backend → {escape(backend.module)}.{escape(backend.function)}[/dim]")

    console.print()
    console.print(
        Panel(root, title=_label("FORM", "cyan"), subtitle=subtitle, border_style="cyan", padding=(0, 1))
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def changes_report(instance: Instance, changes: Changes) -> None:
    table = Table(
        box=box.SIMPLE_HEAVY,
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("Field", style="bold white")
    table.add_column("Required", justify="center", width=9)
    table.add_column("Value", style="dim white")
    table.add_column("Errors", style="red")

    required = set(changes.required)
    for field in instance.fields:
        value = changes.data.get(field.name)
        table.add_row(
            escape(field.name),
            "[yellow]●[/yellow]" if field.name in required else "",
            "" if value is None else _mono(value),
            escape("; ".join(changes.errors.get(field.name, []))),
        )

    if changes.valid:
        title, color = _label("VALID ✓", "green"), "green"
    else:
        title, color = _label(f"INVALID ✗ {len(changes.errors)} field(s)", "red"), "red"

    console.print()
    console.print(Panel(table, title=title, border_style=color, padding=(0, 1)))


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


def submission_result(submission: Submission) -> None:
    result = submission.result
    console.print()
    if submission.status == "ok":
        body = f"[bold green]{escape(result.message)}[/bold green]"
        console.print(Panel(body, title=_label("SUBMITTED ✓", "green"), border_style="green", padding=(0, 2)))
    elif submission.status == "invalid":
        message = result.message if result is not None else "Validation failed."
        console.print(
            Panel(
                f"[bold red]{escape(message)}[/bold red]",
                title=_label("REJECTED ✗", "red"),
                border_style="red",
                padding=(0, 2),
            )
        )
    else:
        console.print(
            Panel(
                f"[bold red]{escape(result.message)}[/bold red]",
                title=_label("BACKEND ERROR ✗", "red"),
                border_style="red",
                padding=(0, 2),
            )
        )


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


def decode_failed(path: str, reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]Could not decode {escape(path)}.[/bold red]\n\n[white]{escape(reason)}[/white]\n"
            "[dim]Nothing was imported or registered while decoding.[/dim]",
            title=_label("DECODE ERROR ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )


def config_failed(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]{escape(reason)}[/bold red]",
            title=_label("CONFIGURATION ERROR ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
