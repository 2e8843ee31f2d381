"""
Main CLI interface for GDPS Launcher.

Provides the command-line interface using Click with rich output. Without
a subcommand the interactive menu is launched.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from gdps_launcher import __version__
from gdps_launcher.cli.helpers import (
    catalog_to_json,
    handle_errors,
    render_catalog_table,
    show_patch_result,
    show_server_panel,
    show_unresolved_servers,
)
from gdps_launcher.core.controller import LauncherController
from gdps_launcher.core.exceptions import FetchError, LauncherError
from gdps_launcher.core.models import PatchPhase
from gdps_launcher.utils.config import Config, ConfigManager, get_config, reload_config
from gdps_launcher.utils.logging import get_logger, setup_from_config

console = Console()
logger = get_logger(__name__)


class CLIContext:
    """CLI context for passing state between commands."""

    def __init__(self):
        self.config: Optional[Config] = None

    def get_config(self) -> Config:
        """Get configuration instance."""
        if self.config is None:
            self.config = get_config()
        return self.config

    def create_controller(self) -> LauncherController:
        """Create a controller. Use it within a single event loop."""
        return LauncherController(self.get_config())


# Global CLI context
cli_context = CLIContext()


def _spinner(description: str) -> Progress:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
    progress.add_task(description, total=None)
    return progress


@click.group(invoke_without_command=True)
@click.option("--debug", "-d", is_flag=True, help="Enable debug logging")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--config", "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Extra configuration file (loaded after the default ones)",
)
@click.option("--menu", "-m", is_flag=True, help="Launch interactive menu")
@click.version_option(version=__version__, prog_name="GDPS Launcher")
@click.pass_context
def cli(ctx: click.Context, debug: bool, verbose: bool, config_file: Optional[Path], menu: bool):
    """
    Launcher for private Geometry Dash servers.

    Register servers by ID, patch the game for them and launch it.

    When called without a command, launches an interactive menu interface.
    """
    if config_file:
        cli_context.config = reload_config(
            config_files=[*ConfigManager.DEFAULT_FILES, config_file]
        )
    config = cli_context.get_config()

    setup_from_config(config.logging, config.get_log_file(), debug=debug, verbose=verbose)
    logger.debug(f"Using data directory {config.host.get_data_dir()}")

    if menu or ctx.invoked_subcommand is None:
        from gdps_launcher.tui.rich_menu import launch_rich_menu
        launch_rich_menu(cli_context)


@cli.command("list")
@click.option(
    "--output-format", "-o",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format",
)
@click.option(
    "--show-unresolved",
    is_flag=True,
    help="Also list registered servers the directory could not resolve",
)
@handle_errors
def list_cmd(output_format: str, show_unresolved: bool):
    """List registered servers."""

    async def run():
        async with cli_context.create_controller() as controller:
            ok = await controller.refresh()
            return ok, controller.state

    ok, state = asyncio.run(run())
    if not ok:
        console.print(f"[red]{state.last_error}[/red]")
        sys.exit(1)

    catalog = state.catalog
    if output_format == "json":
        click.echo(catalog_to_json(catalog, show_unresolved))
        return

    if len(catalog) == 0:
        console.print("[yellow]No servers registered[/yellow]")
        console.print("[dim]💡 Add one with: [cyan]gdps-launcher add <ID>[/cyan][/dim]")
    else:
        console.print("")
        console.print(render_catalog_table(catalog))
        console.print("")

    if show_unresolved:
        show_unresolved_servers(list(catalog.unresolved))


@cli.command("add")
@click.argument("server_id")
@handle_errors
def add_cmd(server_id: str):
    """Patch the game for a server and register it."""

    async def run():
        async with cli_context.create_controller() as controller:
            with _spinner(f"Patching game for {server_id.strip() or '?'}..."):
                session = await controller.add_server(server_id)
            return session, controller.state

    session, state = asyncio.run(run())
    show_patch_result(session)
    if session.phase != PatchPhase.SUCCEEDED:
        sys.exit(1)

    entry = state.catalog.get(server_id.strip())
    if entry is not None:
        console.print(f"[green]Registered[/green] [bold]{entry.metadata.display_name}[/bold]")
    else:
        console.print("[yellow]⚠ Server patched, but the directory did not return its details[/yellow]")
        if state.last_error:
            console.print(f"[dim]{state.last_error}[/dim]")


@cli.command("launch")
@click.argument("server_id")
@handle_errors
def launch_cmd(server_id: str):
    """Launch the game for a registered server."""

    async def run():
        async with cli_context.create_controller() as controller:
            if not await controller.refresh():
                return False, controller.state
            if not controller.select(server_id):
                return False, controller.state
            ok = await controller.launch()
            return ok, controller.state

    ok, state = asyncio.run(run())
    if not ok:
        console.print(f"[red]{state.last_error}[/red]")
        sys.exit(1)
    console.print(f"[green]🚀 Launched[/green] [bold]{state.selected.metadata.display_name}[/bold]")


@cli.command("scan")
@handle_errors
def scan_cmd():
    """List server IDs registered on this machine."""

    async def run():
        controller = cli_context.create_controller()
        async with controller:
            return await controller.host.scan_servers()

    server_ids = asyncio.run(run())
    if not server_ids:
        console.print("[yellow]No servers registered[/yellow]")
        return
    for server_id in server_ids:
        click.echo(server_id)


@cli.command("info")
@click.argument("server_id")
@handle_errors
def info_cmd(server_id: str):
    """Show directory metadata for a server ID."""

    async def run():
        async with cli_context.create_controller() as controller:
            return await controller.client.fetch_metadata(server_id.strip())

    result = asyncio.run(run())
    if not result.success:
        raise FetchError(result.server_id, result.error or "Unknown error")
    show_server_panel(result.metadata)


def main() -> None:
    """Console script entry point."""
    try:
        cli()
    except LauncherError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
