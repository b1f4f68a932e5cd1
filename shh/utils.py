"""Shared console output, prompts, and logging setup."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.text import Text

from shh import __version__

# ---------------------------------------------------------------------------
# Console singletons
# ---------------------------------------------------------------------------

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def setup_logging(verbose: bool = False) -> None:
    """Route ``logging`` output for the ``shh`` package through Rich on stderr."""
    handler = RichHandler(console=err_console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger("shh")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


# ---------------------------------------------------------------------------
# Confirmation prompt
# ---------------------------------------------------------------------------


def confirm_action(message: str, *, default: bool = False, stderr: bool = False) -> bool:
    """Ask the user to confirm a potentially destructive action.

    With *stderr* the question is drawn on stderr, leaving stdout to the result.
    """
    return Confirm.ask(
        f"  [bold yellow]⚠ {message}[/bold yellow]",
        default=default,
        console=err_console if stderr else console,
    )


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def print_command_preview(cmd: list[str]) -> None:
    """Show the command that is about to be executed in dim style."""
    cmd_str = " ".join(cmd)
    err_console.print(f"\n  [dim]$ {cmd_str}[/dim]\n", highlight=False)


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {msg}", highlight=False)


def print_warning(msg: str) -> None:
    err_console.print(f"[bold yellow]Warning:[/bold yellow] {msg}", highlight=False)


def print_success(msg: str) -> None:
    console.print(f"[bold green]✓[/bold green] {msg}")


def print_info(msg: str) -> None:
    console.print(f"[bold blue]ℹ[/bold blue] {msg}")


def print_status(msg: str) -> None:
    """Informational message on stderr, kept out of scriptable output."""
    err_console.print(f"[bold blue]ℹ[/bold blue] {msg}", highlight=False)


def welcome_panel(db_path: str, host_count: int) -> None:
    """Display the welcome panel for interactive mode."""
    body = Text.from_markup(
        f"[bold]Database:[/bold] {db_path}\n"
        f"[bold]Hosts:[/bold]    {host_count}\n"
        f"\n"
        f"[dim]Type text to search, a number to connect, ? for help, q to quit.[/dim]"
    )
    panel = Panel(
        body,
        title="[bold magenta]shh - SSH helper[/bold magenta]",
        subtitle=f"[dim]v{__version__}[/dim]",
        border_style="bright_blue",
        padding=(1, 2),
    )
    err_console.print(panel)
