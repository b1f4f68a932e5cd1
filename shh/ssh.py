"""SSH command line building.

The selected host is launched through the user's login shell so that their
ssh agent, aliases and PATH are in effect. The host string ends up inside a
``-c`` command string, so it is re-checked against the allow-list and
shell-quoted here regardless of where it came from.
"""

from __future__ import annotations

import os
import shlex
from pathlib import PurePath

from shh.validation import InvalidHost, is_safe_host

DEFAULT_SHELL = "/bin/bash"
LOGIN_SHELLS = frozenset({"bash", "zsh", "fish"})


def _check_host(host: str) -> None:
    if not is_safe_host(host):
        raise InvalidHost(f"refusing to connect to unsafe host {host!r}")


def build_ssh_command(host: str, options: list[str] | None = None) -> list[str]:
    """Build a plain ``ssh`` argv for *host*."""
    _check_host(host)
    cmd: list[str] = ["ssh"]
    if options:
        cmd.extend(options)
    cmd.append(host)
    return cmd


def ssh_command_string(host: str, options: list[str] | None = None) -> str:
    """The ssh command as one shell-quoted string, e.g. ``ssh example.com``."""
    return " ".join(shlex.quote(arg) for arg in build_ssh_command(host, options))


def user_shell() -> str:
    return os.environ.get("SHELL") or DEFAULT_SHELL


def build_login_shell_command(
    host: str,
    shell: str | None = None,
    options: list[str] | None = None,
) -> list[str]:
    """Build an argv that runs ``exec ssh <host>`` inside the user's shell.

    bash, zsh and fish are started as interactive login shells (``-l -i``);
    other shells only get ``-i`` since not all of them accept ``-l``.
    """
    shell = shell or user_shell()
    command = f"exec {ssh_command_string(host, options)}"
    if PurePath(shell).name in LOGIN_SHELLS:
        return [shell, "-l", "-i", "-c", command]
    return [shell, "-i", "-c", command]
