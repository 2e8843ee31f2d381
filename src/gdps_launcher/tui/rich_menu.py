"""
Rich-based interactive menu for GDPS Launcher.

Renders the controller state (server list, selected server, add-server
status) and maps menu keys to controller operations.
"""

import asyncio
from typing import Optional

from rich import box
from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from gdps_launcher import __version__
from gdps_launcher.cli.helpers.display import render_catalog_table
from gdps_launcher.core.controller import LauncherController
from gdps_launcher.core.models import LauncherState, PatchPhase, TextAlignment
from gdps_launcher.utils.logging import get_logger

logger = get_logger(__name__)
console = Console()

_JUSTIFY = {
    TextAlignment.LEFT: "left",
    TextAlignment.CENTER: "center",
    TextAlignment.RIGHT: "right",
}


class RichMenuApp:
    """Rich-based interactive menu for GDPS Launcher."""

    MENU_OPTIONS = [
        ("s", "Select server", "Choose a server from the list"),
        ("l", "Launch", "Start the game for the selected server"),
        ("a", "Add server", "Patch the game for a new server ID"),
        ("r", "Refresh", "Reload the server list"),
        ("q", "Exit", "Quit GDPS Launcher"),
    ]

    def __init__(self, controller: LauncherController):
        self.controller = controller
        self.running = True

    def show_header(self) -> None:
        """Display the application header."""
        console.clear()

        header_text = Text()
        header_text.append("GDPS Launcher", style="bold blue")
        header_text.append(f" v{__version__}", style="dim")

        console.print(Panel(Align.center(header_text), box=box.DOUBLE, style="blue"))
        console.print()

    def show_state(self, state: LauncherState) -> None:
        """Render the catalog and the selected server."""
        if len(state.catalog) == 0:
            console.print("[yellow]No servers yet. Press [bold]a[/bold] to add one.[/yellow]")
        else:
            selected_id = state.selected.server_id if state.selected else None
            console.print(render_catalog_table(state.catalog, selected_id, numbered=True))
        console.print()

        view = state.view
        if view is None:
            console.print(Align.center("[dim]Select a server from the list[/dim]"))
        else:
            body = Text(view.description or "No description", justify=_JUSTIFY[view.text_alignment])
            console.print(Panel(
                body,
                title=f"[bold]{view.display_name}[/bold] [dim]({view.server_id})[/dim]",
                subtitle=f"{view.user_count} users · {view.level_count} levels",
                border_style="green",
            ))

        if state.last_error:
            console.print(f"[red]{state.last_error}[/red]")
        console.print()

    def show_main_menu(self) -> str:
        """Display main menu and get user choice."""
        table = Table(box=box.ROUNDED, show_header=False, padding=(0, 1))
        table.add_column("Key", style="bold cyan", width=4)
        table.add_column("Option", style="bold white", width=16)
        table.add_column("Description", style="dim", width=40)
        for key, option, desc in self.MENU_OPTIONS:
            table.add_row(f"[{key}]", option, desc)
        console.print(table)

        return Prompt.ask(
            "[bold cyan]Select an option[/bold cyan]",
            choices=[opt[0] for opt in self.MENU_OPTIONS],
            default="s",
        )

    async def run(self) -> None:
        """Main menu loop."""
        with self._spinner("Loading servers..."):
            await self.controller.start()

        while self.running:
            self.show_header()
            self.show_state(self.controller.state)
            choice = self.show_main_menu()

            if choice == "s":
                self.select_server()
            elif choice == "l":
                await self.launch()
            elif choice == "a":
                await self.add_server()
            elif choice == "r":
                with self._spinner("Refreshing servers..."):
                    await self.controller.refresh()
            elif choice == "q":
                self.running = False

    def select_server(self) -> None:
        """Pick a server by list number or ID."""
        catalog = self.controller.state.catalog
        if len(catalog) == 0:
            return
        answer = Prompt.ask("Server number or ID", default="").strip()
        if not answer:
            return
        if answer.isdigit() and 1 <= int(answer) <= len(catalog) and answer not in catalog:
            answer = catalog.entries[int(answer) - 1].server_id
        self.controller.select(answer)

    async def launch(self) -> None:
        state = self.controller.state
        if state.selected is None:
            console.print("[yellow]Select a server first[/yellow]")
            Prompt.ask("Press Enter to continue", default="")
            return
        if await self.controller.launch():
            console.print(f"[green]🚀 Launched {state.selected.metadata.display_name}[/green]")
            Prompt.ask("Press Enter to continue", default="")

    async def add_server(self) -> None:
        """Add-server dialog: loops until success or cancel."""
        self.controller.open_add_dialog()
        while self.controller.state.patch_session.dialog_open:
            console.print()
            console.print("[bold]Add server[/bold] [dim]Enter the GDPS server ID (e.g. 7650), empty to cancel[/dim]")
            answer: Optional[str] = Prompt.ask("ID", default="")
            if not answer.strip():
                self.controller.cancel_add_dialog()
                return

            self.controller.set_add_input(answer)
            with self._spinner("Patching game..."):
                session = await self.controller.add_server()

            if session.phase == PatchPhase.SUCCEEDED:
                console.print(f"[green]✓ {session.status_message}[/green]")
            else:
                console.print(f"[red]✗ {session.status_message}[/red]")

    def _spinner(self, description: str) -> Progress:
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        )
        progress.add_task(description, total=None)
        return progress


def launch_rich_menu(cli_context) -> None:
    """Launch the interactive menu."""

    async def main():
        async with cli_context.create_controller() as controller:
            await RichMenuApp(controller).run()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        console.print("\n[yellow]Goodbye![/yellow]")
