# gguf_metadata/reporting/console.py
"""
Console rendering of GGUF metadata records and raw metadata trees.
"""
from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Tuple, Union

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from gguf_metadata.model_formats.gguf.gguf import GGUFError, GGUFMetadata, SchemaValidationError

console = Console()

MAX_VALUE_WIDTH = 70


def format_value(value: Any) -> str:
    """Short human-readable form of a metadata value."""
    if isinstance(value, list):
        count = len(value)
        preview = f"[{', '.join(map(str, value[:3]))}{', ...' if count > 3 else ''}]"
        text = f"Array, Count={count}, Preview={preview}"
    elif isinstance(value, float):
        text = f"{value:.6g}"
    else:
        text = str(value)
    # Truncate long strings to keep the table clean
    if len(text) > MAX_VALUE_WIDTH:
        text = text[: MAX_VALUE_WIDTH - 3] + "..."
    return text


def _add_branch(parent: Tree, node: Mapping[str, Any]) -> None:
    for key in sorted(node):
        value = node[key]
        if isinstance(value, Mapping):
            _add_branch(parent.add(f"[bold cyan]{key}[/bold cyan]"), value)
        else:
            parent.add(f"[cyan]{key}[/cyan] = [white]{escape(format_value(value))}[/white]")


def build_tree(title: str, node: Mapping[str, Any]) -> Tree:
    root = Tree(f"[bold magenta]{title}[/bold magenta]")
    _add_branch(root, node)
    return root


def _flatten(node: Dict[str, Any], prefix: str = "") -> Iterator[Tuple[str, Any]]:
    # general.source nests two levels deep
    for k, v in node.items():
        if isinstance(v, dict):
            yield from _flatten(v, f"{prefix}{k}.")
        else:
            yield f"{prefix}{k}", v


def render_record(record: GGUFMetadata) -> None:
    """Render the general block as a table and the architecture block as a tree."""
    t = Table(title="GGUF General Metadata", box=box.SIMPLE_HEAVY)
    t.add_column("Field", style="bold")
    t.add_column("Value")
    for k, v in _flatten(record.general.to_dict()):
        t.add_row(k, escape(format_value(v)))
    console.print(t)
    console.print(build_tree(record.architecture, record.block))


def render_raw(tree: Dict[str, Any]) -> None:
    """Render an unvalidated metadata tree."""
    console.print(build_tree("GGUF Metadata (raw)", tree))


def render_error(err: Union[GGUFError, OSError]) -> None:
    """Render a failed parse or file access, naming the error kind."""
    body = f"[bold]{type(err).__name__}[/bold]: {escape(str(err))}"
    if isinstance(err, SchemaValidationError) and len(err.issues) > 1:
        t = Table(box=box.ROUNDED, show_header=True)
        t.add_column("Field", style="cyan")
        t.add_column("Problem")
        for path, message in err.issues:
            t.add_row(path, escape(message))
        console.print(Panel(f"[bold]{type(err).__name__}[/bold]", style="bold red"))
        console.print(t)
        return
    console.print(Panel(body, style="bold red"))
