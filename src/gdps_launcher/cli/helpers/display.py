"""
Display helper functions for CLI commands.
"""

import json
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from gdps_launcher.core.models import Catalog, PatchPhase, PatchSession, ServerMetadata

console = Console()


def render_catalog_table(catalog: Catalog, selected_id: Optional[str] = None, numbered: bool = False) -> Table:
    """Build a table of catalog entries."""
    table = Table(
        title=f"GDPS Servers ({len(catalog)} total)",
        show_header=True,
        header_style="bold cyan",
        title_style="bold cyan",
        box=box.ROUNDED,
    )
    if numbered:
        table.add_column("#", style="dim", width=3)
    table.add_column("ID", style="yellow", width=10)
    table.add_column("Name", style="green", width=24)
    table.add_column("Users", justify="right", width=8)
    table.add_column("Levels", justify="right", width=8)
    table.add_column("Description", style="dim", width=40)
    
    for index, entry in enumerate(catalog.entries, 1):
        meta = entry.metadata
        name = meta.display_name
        if entry.server_id == selected_id:
            name = f"▶ {name}"
        row = [
            entry.server_id,
            name,
            str(meta.user_count),
            str(meta.level_count),
            _truncate(meta.description or "No description", 40),
        ]
        if numbered:
            row.insert(0, str(index))
        table.add_row(*row)
    return table


def catalog_to_json(catalog: Catalog, show_unresolved: bool = False) -> str:
    """Serialize a catalog for ``--output-format json``."""
    data = {
        "servers": [
            {"id": entry.server_id, **entry.metadata.model_dump(mode="json", exclude={"id"})}
            for entry in catalog.entries
        ],
    }
    if show_unresolved:
        data["unresolved"] = list(catalog.unresolved)
    return json.dumps(data, indent=2)


def show_unresolved_servers(server_ids: List[str]) -> None:
    """List registered servers whose metadata could not be fetched."""
    if not server_ids:
        return
    console.print(f"[yellow]⚠ {len(server_ids)} registered server(s) unavailable:[/yellow] "
                  + ", ".join(server_ids))


def show_server_panel(metadata: ServerMetadata) -> None:
    """Show detailed server metadata."""
    lines = [
        f"[bold cyan]ID:[/bold cyan] {metadata.id}",
        f"[bold cyan]Name:[/bold cyan] {metadata.display_name}",
        f"[bold cyan]Description:[/bold cyan] {metadata.description or 'No description'}",
        f"[bold cyan]Users:[/bold cyan] {metadata.user_count}",
        f"[bold cyan]Levels:[/bold cyan] {metadata.level_count}",
        f"[bold cyan]Icon:[/bold cyan] {metadata.icon_url or '-'}",
        f"[bold cyan]Background:[/bold cyan] {metadata.background_image_url or '-'}",
    ]
    console.print(Panel(
        "\n".join(lines),
        title=f"[bold]{metadata.display_name}[/bold]",
        border_style="blue",
        expand=False,
    ))


def show_patch_result(session: PatchSession) -> None:
    """Print the outcome of an add-server session."""
    if session.phase == PatchPhase.SUCCEEDED:
        console.print(f"[green]✓[/green] {session.status_message}")
    else:
        console.print(f"[red]✗ {session.status_message}[/red]")


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[:width - 3] + "..."
