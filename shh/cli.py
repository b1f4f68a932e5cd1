"""Typer CLI application for shh.

Runs the interactive picker by default and provides non-interactive commands
for scripting: ls, add, edit, rm, import, connect, config.
"""

from __future__ import annotations

import os
from typing import Annotated, Optional

import typer
from rich.panel import Panel

from shh import __version__
from shh.catalog import CatalogSnapshot
from shh.config import ENV_CONFIG_VAR, ConfigError, ShhConfig, load_config
from shh.history import (
    FileSource,
    import_from_history,
    possible_history_files,
    scan_sources,
)
from shh.matching import rank
from shh.store import IMPORT_DONE_KEY, HostStore, InsertOutcome, StoreError
from shh.utils import (
    console,
    print_error,
    print_info,
    print_status,
    print_success,
    print_warning,
    setup_logging,
)
from shh.validation import InvalidHost

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="shh",
    help="shh — pick a remembered SSH host and connect.",
    no_args_is_help=False,
    rich_markup_mode="rich",
    add_completion=True,
)

PrintOpt = Annotated[bool, typer.Option("--print", help="Print the selected host and exit.")]
CmdOpt = Annotated[bool, typer.Option("--cmd", help="Print 'ssh <host>' and exit.")]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_config_or_exit() -> ShhConfig:
    """Load config, printing a helpful error and exiting on failure."""
    try:
        return load_config()
    except ConfigError as exc:
        print_error(str(exc))
        raise typer.Exit(1)


def _open_store_or_exit(config: ShhConfig) -> HostStore:
    try:
        return HostStore(config.db_path)
    except StoreError as exc:
        print_error(str(exc))
        raise typer.Exit(1)


def _history_paths(config: ShhConfig):
    return possible_history_files(config.history_files)


def _maybe_first_import(store: HostStore, config: ShhConfig) -> None:
    """Import shell history once, the first time shh runs against a database."""
    if not config.auto_import or store.get_meta(IMPORT_DONE_KEY) == "1":
        return
    result = import_from_history(store, _history_paths(config))
    for err in result.errors:
        print_warning(str(err))
    if result.imported:
        print_status(f"Imported from history: {result.imported} hosts")
    store.set_meta(IMPORT_DONE_KEY, "1")


def _on_selected(host: str, config: ShhConfig, *, print_host: bool, print_cmd: bool) -> None:
    from shh.ssh import ssh_command_string

    mode = "print" if print_host else "cmd" if print_cmd else config.on_select
    if mode == "print":
        typer.echo(host)
    elif mode == "cmd":
        typer.echo(ssh_command_string(host, config.ssh_options))
    else:
        from shh.executor import connect

        connect(host, config.ssh_options)


# ---------------------------------------------------------------------------
# Default callback — interactive picker when no subcommand given
# ---------------------------------------------------------------------------


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    print_host: PrintOpt = False,
    print_cmd: CmdOpt = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logging on stderr.")
    ] = False,
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Show version and exit.")
    ] = False,
):
    """shh — run with no arguments for interactive mode."""
    if version:
        console.print(f"shh [bold]{__version__}[/bold]")
        raise typer.Exit()

    setup_logging(verbose)

    if ctx.invoked_subcommand is not None:
        return

    config = _load_config_or_exit()
    from shh.tui import run_picker

    with _open_store_or_exit(config) as store:
        try:
            _maybe_first_import(store, config)
            host = run_picker(store, config)
        except StoreError as exc:
            print_error(str(exc))
            raise typer.Exit(1)

    if host:
        _on_selected(host, config, print_host=print_host, print_cmd=print_cmd)


# ---------------------------------------------------------------------------
# shh ls
# ---------------------------------------------------------------------------


@app.command("ls")
def cmd_ls(
    query: Annotated[
        Optional[str], typer.Argument(help="Optional fuzzy filter (host and note).")
    ] = None,
):
    """List hosts, ranked by the filter if one is given."""
    config = _load_config_or_exit()
    from shh.tui import print_hosts_table

    with _open_store_or_exit(config) as store:
        snapshot = CatalogSnapshot.from_store(store)

    indices = rank(snapshot, query or "")
    if not indices:
        print_info(f"No hosts matching '{query}'." if query else "No hosts yet.")
        raise typer.Exit()
    print_hosts_table(snapshot, indices, title=f"Hosts — {query}" if query else "Hosts")


# ---------------------------------------------------------------------------
# shh add / edit / rm
# ---------------------------------------------------------------------------


@app.command("add")
def cmd_add(
    host: Annotated[str, typer.Argument(help="Host name, alias or address.")],
    note: Annotated[str, typer.Argument(help="Free-text description.")] = "",
):
    """Add a host to the catalog."""
    config = _load_config_or_exit()
    with _open_store_or_exit(config) as store:
        try:
            record = store.add_host(host, note)
        except (InvalidHost, StoreError) as exc:
            print_error(str(exc))
            raise typer.Exit(1)
    print_success(f"Added {record.host}.")


@app.command("edit")
def cmd_edit(
    host: Annotated[str, typer.Argument(help="Host to edit.")],
    new_host: Annotated[
        Optional[str], typer.Option("--host", "-H", help="New host value.")
    ] = None,
    note: Annotated[Optional[str], typer.Option("--note", "-n", help="New note.")] = None,
):
    """Change a host's name or note."""
    config = _load_config_or_exit()
    with _open_store_or_exit(config) as store:
        record = store.get_host(host.strip())
        if record is None:
            print_error(f"Unknown host '{host}'. Run `shh ls` to see available hosts.")
            raise typer.Exit(1)
        try:
            store.update_host(
                record.id,
                new_host if new_host is not None else record.host,
                note if note is not None else record.note,
            )
        except (InvalidHost, StoreError) as exc:
            print_error(str(exc))
            raise typer.Exit(1)
    print_success("Saved.")


@app.command("rm")
def cmd_rm(
    host: Annotated[str, typer.Argument(help="Host to delete.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """Delete a host from the catalog."""
    from shh.utils import confirm_action

    config = _load_config_or_exit()
    with _open_store_or_exit(config) as store:
        record = store.get_host(host.strip())
        if record is None:
            print_error(f"Unknown host '{host}'. Run `shh ls` to see available hosts.")
            raise typer.Exit(1)
        if not yes and not confirm_action(f"Delete {record.host}?"):
            print_info("Cancelled.")
            raise typer.Exit(0)
        try:
            store.delete_host(record.id)
        except StoreError as exc:
            print_error(str(exc))
            raise typer.Exit(1)
    print_success(f"Deleted {record.host}.")


# ---------------------------------------------------------------------------
# shh import
# ---------------------------------------------------------------------------


@app.command("import")
def cmd_import(
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-n", help="Only list hosts that would be imported.")
    ] = False,
):
    """Import hosts from shell history files."""
    config = _load_config_or_exit()
    paths = _history_paths(config)

    with _open_store_or_exit(config) as store:
        if dry_run:
            found: list[str] = []

            def record_only(host: str, note: str) -> InsertOutcome:
                if store.get_host(host) is not None:
                    return InsertOutcome.ALREADY_EXISTS
                found.append(host)
                return InsertOutcome.INSERTED

            result = scan_sources([FileSource(p) for p in paths], record_only)
            for host in found:
                console.print(f"  [cyan]{host}[/cyan]")
        else:
            result = import_from_history(store, paths)
            store.set_meta(IMPORT_DONE_KEY, "1")

    for err in result.errors:
        print_warning(str(err))
    verb = "Would import" if dry_run else "Imported"
    print_success(f"{verb} {result.imported} new host(s) from history.")


# ---------------------------------------------------------------------------
# shh connect
# ---------------------------------------------------------------------------


@app.command("connect")
def cmd_connect(
    query: Annotated[str, typer.Argument(help="Fuzzy query; the best match is used.")],
    print_host: PrintOpt = False,
    print_cmd: CmdOpt = False,
):
    """Connect to the best-ranked host for QUERY."""
    config = _load_config_or_exit()
    with _open_store_or_exit(config) as store:
        snapshot = CatalogSnapshot.from_store(store)
        indices = rank(snapshot, query)
        if not indices:
            print_error(f"No hosts matching '{query}'.")
            raise typer.Exit(1)
        record = snapshot[indices[0]]
        try:
            store.mark_used(record.id)
        except StoreError as exc:
            print_error(str(exc))
            raise typer.Exit(1)

    _on_selected(record.host, config, print_host=print_host, print_cmd=print_cmd)


# ---------------------------------------------------------------------------
# shh config
# ---------------------------------------------------------------------------


@app.command("config")
def cmd_config():
    """Show active config path and validate it."""
    from shh.config import get_config_path, validate_config_file

    path = get_config_path()
    env = os.environ.get(ENV_CONFIG_VAR)
    console.print(Panel(
        f"[bold]Config path:[/bold] {path}\n"
        f"[bold]Env var:[/bold]    {(ENV_CONFIG_VAR + '=' + env) if env else '[dim]not set[/dim]'}",
        title="[bold]shh config[/bold]",
        border_style="blue",
    ))

    ok, msg = validate_config_file()
    if ok:
        console.print(f"[green]✓ {msg}[/green]")
    else:
        print_error(msg)
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def app_entry() -> None:
    """Console script entry point for ``shh``."""
    app()
