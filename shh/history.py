"""Shell history import — finds hosts the user has connected to before.

Reads bash, zsh and fish history files line by line, picks out ``ssh``
invocations and extracts their destination host. The line parser is a
heuristic, not a shell parser: it would rather miss an invocation than put
a flag value or command name into the catalog.
"""

from __future__ import annotations

import ipaddress
import logging
import os
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from shh.store import HostStore, InsertOutcome, StoreError
from shh.validation import InvalidHost, normalize_host

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

IMPORT_NOTE = "imported from history"

ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
ZSH_EXTENDED_RE = re.compile(r"^: \d+:\d+;(.*)$", re.DOTALL)

# ssh(1) single-letter options that take their value as the next argument.
SSH_OPTIONS_WITH_ARG = frozenset(
    ["-b", "-c", "-D", "-E", "-F", "-I", "-i", "-J", "-L", "-l",
     "-m", "-o", "-p", "-Q", "-R", "-S", "-W", "-w"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class SourceUnavailable(Exception):
    """Raised when a history source does not exist."""


class SourceReadError(Exception):
    """A history source existed but could not be fully processed."""

    def __init__(self, source: str, cause: BaseException) -> None:
        super().__init__(f"history {source}: {cause}")
        self.source = source
        self.cause = cause


# ---------------------------------------------------------------------------
# Line parsing
# ---------------------------------------------------------------------------


def _is_ssh_command(field_: str) -> bool:
    lower = field_.lower()
    return lower == "ssh" or lower.endswith("/ssh") or lower.endswith("\\ssh")


def _extract_target(fields: list[str]) -> str | None:
    """Return the first bare argument in *fields* (the args after ``ssh``)."""
    expect_value = False
    for token in fields:
        if expect_value:
            expect_value = False
            continue
        if token == "--":
            continue
        if token.startswith("-"):
            # -p2222, -oFoo=bar, --help: no separate value
            if token in SSH_OPTIONS_WITH_ARG:
                expect_value = True
            continue
        return token
    return None


def _is_ipv6(host: str) -> bool:
    if ":" not in host:
        return False
    try:
        ipaddress.IPv6Address(host)
    except ValueError:
        return False
    return True


def _clean_target(token: str) -> str:
    host = token.rsplit("@", 1)[-1]
    host = host.strip("[]")
    if _is_ipv6(host):
        host = f"[{host}]"
    return host


def parse_history_line(line: str) -> str | None:
    """Return the normalized ssh destination host in *line*, or None.

    >>> parse_history_line("ssh -p 2222 deploy@example.com uptime")
    'example.com'
    """
    line = ANSI_RE.sub("", line).strip()
    if not line:
        return None

    m = ZSH_EXTENDED_RE.match(line)
    if m:
        line = m.group(1)

    fields = line.split()
    ssh_index = next((i for i, f in enumerate(fields) if _is_ssh_command(f)), None)
    if ssh_index is None:
        return None

    target = _extract_target(fields[ssh_index + 1:])
    if target is None:
        return None

    host = _clean_target(target)
    if not host:
        return None
    try:
        return normalize_host(host)
    except InvalidHost:
        return None


@dataclass(frozen=True, slots=True)
class ScannedHost:
    host: str
    source_line: str


def iter_scanned_hosts(lines: Iterable[str]) -> Iterator[ScannedHost]:
    """Yield every line that parses to a host. No de-duplication."""
    for line in lines:
        host = parse_history_line(line)
        if host is not None:
            yield ScannedHost(host=host, source_line=line.rstrip("\n"))


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class LineSource(Protocol):
    name: str

    def lines(self) -> Iterable[str]: ...


class FileSource:
    """A history file on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.name = str(self.path)

    def lines(self) -> Iterator[str]:
        try:
            # zsh stores non-ASCII bytes in its own "metafied" encoding
            fh = self.path.open("r", encoding="utf-8", errors="replace")
        except FileNotFoundError as exc:
            raise SourceUnavailable(self.name) from exc
        with fh:
            yield from fh

    def __repr__(self) -> str:
        return f"FileSource({self.name!r})"


class MemorySource:
    """In-memory lines, e.g. piped input or tests."""

    def __init__(self, name: str, lines: Iterable[str]) -> None:
        self.name = name
        self._lines = list(lines)

    def lines(self) -> Iterator[str]:
        return iter(self._lines)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


class DedupSet:
    """Hosts already handed to the store during one import run."""

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def add(self, host: str) -> bool:
        """Add *host*; return False if it was already present."""
        if host in self._seen:
            return False
        self._seen.add(host)
        return True

    def __contains__(self, host: object) -> bool:
        return host in self._seen

    def __len__(self) -> int:
        return len(self._seen)


@dataclass(slots=True)
class ScanResult:
    imported: int = 0
    errors: list[SourceReadError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


InsertFn = Callable[[str, str], InsertOutcome]


def scan_sources(
    sources: Iterable[LineSource],
    insert: InsertFn,
    dedup: DedupSet | None = None,
) -> ScanResult:
    """Scan *sources* in order and insert every newly seen host.

    *insert* is called as ``insert(host, note)`` and returns an
    ``InsertOutcome``; only ``INSERTED`` counts towards the result.

    Missing sources are skipped silently. A source that fails part-way,
    on read or on insert, is recorded in ``ScanResult.errors`` and scanning
    moves on to the next one; hosts it inserted before failing still count.
    """
    dedup = dedup if dedup is not None else DedupSet()
    result = ScanResult()

    for source in sources:
        added = 0
        try:
            for scanned in iter_scanned_hosts(source.lines()):
                if not dedup.add(scanned.host):
                    continue
                if insert(scanned.host, IMPORT_NOTE) is InsertOutcome.INSERTED:
                    added += 1
        except SourceUnavailable:
            logger.debug("history source %s not found, skipping", source.name)
            continue
        except (OSError, StoreError) as exc:
            result.errors.append(SourceReadError(source.name, exc))
            logger.info("history %s: %s", source.name, exc)
        else:
            logger.debug("history %s: %d new host(s)", source.name, added)
        result.imported += added

    return result


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def possible_history_files(extra: Iterable[Path | str] = ()) -> list[Path]:
    """Candidate history files: $HISTFILE, configured extras, then per-shell defaults."""
    paths: list[Path] = []

    def maybe_add(p: Path | str | None) -> None:
        if not p:
            return
        path = Path(p).expanduser()
        if path not in paths:
            paths.append(path)

    maybe_add(os.environ.get("HISTFILE"))
    for p in extra:
        maybe_add(p)

    home = Path.home()
    maybe_add(home / ".bash_history")
    maybe_add(home / ".zsh_history")
    maybe_add(home / ".local" / "share" / "fish" / "fish_history")
    return paths


def import_from_history(store: HostStore, paths: Iterable[Path | str] | None = None) -> ScanResult:
    """Import hosts from history files into *store* (a ``HostStore``)."""
    if paths is None:
        paths = possible_history_files()
    sources = [FileSource(p) for p in paths]
    return scan_sources(sources, store.import_host)
