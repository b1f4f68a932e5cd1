"""Process hand-off to ssh.

On POSIX systems the current process is replaced by the user's shell running
ssh, so the terminal belongs entirely to the remote session. On Windows ssh
runs as a child and its exit code is propagated.
"""

from __future__ import annotations

import os
import subprocess
import sys

from shh.ssh import build_login_shell_command, build_ssh_command
from shh.utils import console, err_console, print_command_preview

TERMINAL_RESET = "\x1b[0m\x1b[?25h"


def reset_terminal() -> None:
    """Reset colours and make the cursor visible before handing over the tty."""
    if sys.stdout.isatty():
        sys.stdout.write(TERMINAL_RESET)
        sys.stdout.flush()


def run_interactive(cmd: list[str], *, preview: bool = True) -> int:
    """Run a command interactively, inheriting the terminal's stdin/stdout/stderr.

    Returns the process exit code.
    """
    if preview:
        print_command_preview(cmd)

    try:
        result = subprocess.run(cmd, env=os.environ.copy())
        return result.returncode
    except FileNotFoundError:
        err_console.print(f"[bold red]Command not found:[/bold red] {cmd[0]}")
        return 127
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        return 130


def exec_replace(cmd: list[str], *, preview: bool = False) -> None:
    """Replace the current process with the given command (exec).

    Does not return on success.
    """
    if preview:
        print_command_preview(cmd)

    try:
        os.execvp(cmd[0], cmd)
    except FileNotFoundError:
        err_console.print(f"[bold red]Command not found:[/bold red] {cmd[0]}")
        sys.exit(127)
    except OSError as exc:
        err_console.print(f"[bold red]Failed to exec {cmd[0]}:[/bold red] {exc}")
        sys.exit(126)


def connect(host: str, options: list[str] | None = None) -> None:
    """Hand the terminal to an ssh session for *host*. Does not return."""
    reset_terminal()
    if sys.platform == "win32":
        sys.exit(run_interactive(build_ssh_command(host, options), preview=False))
    exec_replace(build_login_shell_command(host, options=options))
