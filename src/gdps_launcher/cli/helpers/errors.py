"""
Error handling utilities for CLI commands.
"""

import functools
import sys

from rich.console import Console

from gdps_launcher.core.exceptions import LauncherError, ValidationError
from gdps_launcher.utils.logging import get_logger

console = Console()
logger = get_logger(__name__)


def handle_errors(func):
    """Turn launcher errors into a message on the console and exit code 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            sys.exit(130)
        except ValidationError as e:
            console.print(f"[yellow]{e.message}[/yellow]")
            sys.exit(1)
        except LauncherError as e:
            logger.debug(f"{func.__name__} failed", extra={"error": e.to_dict()})
            console.print(f"[red]Error: {e.message}[/red]")
            sys.exit(1)
        except Exception as e:
            logger.exception(f"Unexpected error in {func.__name__}")
            console.print(f"[red]Error: {e}[/red]")
            console.print("[dim]Use --debug for more details[/dim]")
            sys.exit(1)

    return wrapper
