"""
Rendering functions for gitstart output.

The migration itself returns data; this module makes it human-readable.
"""

from rich.table import Table
from rich.console import Console
from rich import box

from .domain import MigrationResult

console = Console()


def render_migration_table(result: MigrationResult) -> None:
    """
    Render a migration summary: the main clone, then one row per external.

    Args:
        result: Result returned by CloneOrchestrator.run
    """
    console.print(
        f"[bold]{result.source.url}[/bold] at r{result.source.revision} "
        f"→ {result.target_path} ([cyan]{result.branch}[/cyan])"
    )
    if result.clone.empty_dirs:
        console.print(f"[dim]{len(result.clone.empty_dirs)} empty directories restored[/dim]")

    linked = list(result.iter_externals())
    if not linked:
        console.print("[yellow]No svn:externals found.[/yellow]")
        return

    table = Table(
        title="svn:externals",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Link")
    table.add_column("Source")
    table.add_column("Revision", justify="right")
    table.add_column("Clone")

    for external in linked:
        revision = ""
        if external.migration is not None:
            revision = f"r{external.migration.source.revision}"
        table.add_row(
            external.definition.link_path,
            external.definition.source.url,
            revision,
            "[green]cloned[/green]" if external.cloned else "[dim]reused[/dim]",
        )

    console.print(table)
