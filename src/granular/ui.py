# src/granular/ui.py

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from .core.logging import console as default_console
from .core.models.predicates import CompiledSearch, Condition, Group, PredicateNode, RelationFilter
from .core.models.schema import TableSchema


def display_table_schema(schema: TableSchema, console: Optional[Console] = None) -> None:
    """Prints the classified columns of a table."""
    console = console or default_console

    structure_table = Table(
        title=f"[bold blue]{schema.name}[/bold blue] [dim]({schema.driver})[/dim]",
        box=None,
        padding=(0, 1),
        show_edge=False,
    )
    structure_table.add_column("Column", style="cyan", no_wrap=True, width=24)
    structure_table.add_column("Category", style="green", width=16)
    structure_table.add_column("Search", style="white")

    for column in schema.columns.values():
        search = "[green]text[/green]" if column.is_string_like else "[yellow]typed[/yellow]"
        structure_table.add_row(column.name, column.category, search)

    console.print(structure_table)
    console.print()


def _add_node(tree: Tree, node: PredicateNode) -> None:
    if isinstance(node, Condition):
        tree.add(f"[green]{escape(node.render())}[/green]")
    elif isinstance(node, RelationFilter):
        branch = tree.add(
            f"[magenta]EXISTS[/magenta] [bold]{node.relation.name}[/bold] [dim]-> {node.target_table}[/dim]"
        )
        _add_node(branch, node.predicate)
    elif isinstance(node, Group):
        if node.is_empty:
            tree.add("[dim]any[/dim]")
            return
        branch = tree.add(f"[bold yellow]{node.connective}[/bold yellow]")
        for child in node.children:
            _add_node(branch, child)


def display_search(compiled: CompiledSearch, console: Optional[Console] = None) -> None:
    """Prints the predicate tree, sorting and time range of a compiled search."""
    console = console or default_console

    tree = Tree(f"[bold cyan]{compiled.entity}[/bold cyan] [dim]({compiled.table})[/dim]")
    _add_node(tree, compiled.predicate)

    details = []
    if compiled.sort:
        order = ", ".join(f"{key.column} {'desc' if key.descending else 'asc'}" for key in compiled.sort)
        details.append(f"[bold]Sort[/bold]: {order}")
    if compiled.time_range is not None:
        span = compiled.time_range
        details.append(
            f"[bold]Range[/bold]: {span.column} from {span.start} to {span.end} [dim]({span.timezone})[/dim]"
        )
    if compiled.visited:
        details.append(f"[bold]Visited[/bold]: {', '.join(compiled.visited)}")

    console.print(Panel(tree, title="Search", expand=False))
    for line in details:
        console.print(f"  {line}")
