"""Rich-based interactive host picker.

Implements the prompt loop:
  Show ranked hosts → read a line → filter / select / add / edit / delete / import → repeat
"""

from __future__ import annotations

from rich.prompt import Prompt
from rich.table import Table

from shh.catalog import CatalogSnapshot, HostRecord
from shh.config import ShhConfig
from shh.history import import_from_history, possible_history_files
from shh.matching import rank
from shh.store import IMPORT_DONE_KEY, DuplicateHost, HostStore, StoreError
from shh.utils import (
    confirm_action,
    console,
    err_console,
    print_error,
    print_status,
    print_warning,
    welcome_panel,
)
from shh.validation import InvalidHost

MAX_ROWS = 20

HELP_TEXT = """\
  [bold]text[/bold]     filter hosts (fuzzy, host and note)
  [bold]N[/bold]        connect to row N      [bold]empty[/bold]  connect to row 1
  [bold]/[/bold]        clear filter          [bold]q[/bold]      quit
  [bold]:a[/bold]       add a host            [bold]:e N[/bold]   edit row N
  [bold]:d N[/bold]     delete row N          [bold]:r[/bold]     import from shell history"""

# ---------------------------------------------------------------------------
# Table display (also used by `shh ls`)
# ---------------------------------------------------------------------------


def build_hosts_table(
    snapshot: CatalogSnapshot,
    indices: list[int],
    *,
    title: str = "Hosts",
    limit: int | None = None,
) -> Table:
    """Build a Rich table of the records at *indices*, numbered from 1."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold magenta",
        border_style="bright_blue",
        show_lines=False,
    )
    table.add_column("#", justify="right", style="bold green", min_width=3)
    table.add_column("Host", style="cyan", min_width=20)
    table.add_column("Note", min_width=20)
    table.add_column("Last Used", min_width=16)
    table.add_column("Uses", justify="right", min_width=4)

    shown = indices if limit is None else indices[:limit]
    for num, idx in enumerate(shown, start=1):
        record = snapshot[idx]
        table.add_row(
            str(num),
            record.host,
            record.note or "[dim]—[/dim]",
            record.last_used_display,
            str(record.use_count),
        )
    return table


def print_hosts_table(snapshot: CatalogSnapshot, indices: list[int], *, title: str = "Hosts") -> None:
    console.print()
    console.print(build_hosts_table(snapshot, indices, title=title))
    console.print()


# ---------------------------------------------------------------------------
# Interactive flow
# ---------------------------------------------------------------------------

# The picker draws on stderr; stdout carries only the chosen host or command.


def _print_done(msg: str) -> None:
    err_console.print(f"[bold green]✓[/bold green] {msg}")


class Picker:
    """State of one interactive session: the store, the current snapshot and query."""

    def __init__(self, store: HostStore, config: ShhConfig) -> None:
        self.store = store
        self.config = config
        self.snapshot = CatalogSnapshot()
        self.query = ""
        self.indices: list[int] = []
        self.reload()

    def reload(self) -> None:
        self.snapshot = CatalogSnapshot.from_store(self.store)
        self.indices = rank(self.snapshot, self.query)

    def set_query(self, query: str) -> bool:
        """Apply a new filter; keep the old one if nothing matches."""
        indices = rank(self.snapshot, query)
        if query.strip() and not indices:
            return False
        self.query = query
        self.indices = indices
        return True

    def record_at(self, row: int) -> HostRecord | None:
        """Record shown on 1-based display *row*, if any."""
        if 1 <= row <= min(len(self.indices), MAX_ROWS):
            return self.snapshot[self.indices[row - 1]]
        return None

    # ---------- rendering ----------

    def render(self) -> None:
        title = f"Hosts — filter: {self.query}" if self.query.strip() else "Hosts"
        err_console.print()
        err_console.print(
            build_hosts_table(self.snapshot, self.indices, title=title, limit=MAX_ROWS)
        )
        hidden = len(self.indices) - MAX_ROWS
        more = f"  (+{hidden} more, refine the filter)" if hidden > 0 else ""
        err_console.print(
            f"  [dim]Total: {len(self.snapshot)}  Matched: {len(self.indices)}{more}  "
            f"? for help[/dim]"
        )

    # ---------- commands ----------

    def select(self, row: int) -> str | None:
        record = self.record_at(row)
        if record is None:
            err_console.print(f"[red]No row {row}.[/red]")
            return None
        try:
            self.store.mark_used(record.id)
        except StoreError as exc:
            print_warning(f"could not record usage: {exc}")
        return record.host

    def add(self) -> None:
        host = Prompt.ask("  Host", default="", console=err_console)
        if not host.strip():
            print_status("Cancelled.")
            return
        note = Prompt.ask("  Note", default="", console=err_console)
        try:
            record = self.store.add_host(host, note)
        except (InvalidHost, DuplicateHost) as exc:
            print_error(str(exc))
            return
        _print_done(f"Added {record.host}.")
        self.reload()

    def edit(self, row: int) -> None:
        record = self.record_at(row)
        if record is None:
            err_console.print(f"[red]No row {row}.[/red]")
            return
        host = Prompt.ask("  Host", default=record.host, console=err_console)
        note = Prompt.ask("  Note", default=record.note, console=err_console)
        try:
            self.store.update_host(record.id, host, note)
        except (InvalidHost, StoreError) as exc:
            print_error(str(exc))
            return
        _print_done("Saved.")
        self.reload()

    def delete(self, row: int) -> None:
        record = self.record_at(row)
        if record is None:
            err_console.print(f"[red]No row {row}.[/red]")
            return
        if not confirm_action(f"Delete {record.host}?", stderr=True):
            print_status("Cancelled.")
            return
        self.store.delete_host(record.id)
        _print_done(f"Deleted {record.host}.")
        self.reload()

    def import_history(self) -> None:
        result = import_from_history(
            self.store, possible_history_files(self.config.history_files)
        )
        for err in result.errors:
            print_warning(str(err))
        self.store.set_meta(IMPORT_DONE_KEY, "1")
        self.reload()
        _print_done(f"Imported from history: +{result.imported}")

    # ---------- loop ----------

    def handle(self, raw: str) -> tuple[bool, str | None]:
        """Process one input line. Returns (done, selected_host)."""
        choice = raw.strip()

        if choice == "q":
            return True, None
        if choice == "?":
            err_console.print(HELP_TEXT)
            return False, None
        if choice == "/":
            self.set_query("")
            return False, None
        if choice == "":
            if not self.indices:
                return False, None
            return self._selected(1)
        if choice.isdigit():
            return self._selected(int(choice))

        if choice.startswith(":"):
            self._command(choice[1:].split())
            return False, None

        if not self.set_query(choice):
            err_console.print("[yellow]No matches. Filter unchanged.[/yellow]")
        return False, None

    def _selected(self, row: int) -> tuple[bool, str | None]:
        host = self.select(row)
        return host is not None, host

    def _command(self, parts: list[str]) -> None:
        if not parts:
            err_console.print(HELP_TEXT)
            return
        name, args = parts[0], parts[1:]
        row = int(args[0]) if args and args[0].isdigit() else None

        if name == "a":
            self.add()
        elif name == "r":
            self.import_history()
        elif name in ("e", "d") and row is None:
            err_console.print(f"[red]Usage: :{name} N[/red]")
        elif name == "e":
            self.edit(row)
        elif name == "d":
            self.delete(row)
        else:
            err_console.print(f"[red]Unknown command :{name}. Type ? for help.[/red]")


def run_picker(store: HostStore, config: ShhConfig) -> str | None:
    """Main interactive entry point. Returns the chosen host, or None on quit."""
    picker = Picker(store, config)
    welcome_panel(db_path=str(config.db_path), host_count=len(picker.snapshot))

    while True:
        picker.render()
        try:
            raw = Prompt.ask(
                "  [bold]>[/bold]", default="", show_default=False, console=err_console
            )
        except (EOFError, KeyboardInterrupt):
            err_console.print()
            return None
        done, host = picker.handle(raw)
        if done:
            return host
