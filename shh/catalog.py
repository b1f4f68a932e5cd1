"""Host records and the immutable catalog snapshot the matcher ranks over."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, overload

if TYPE_CHECKING:
    from shh.store import HostStore


@dataclass(frozen=True, slots=True)
class HostRecord:
    """A single remembered host."""

    id: int
    host: str
    note: str = ""
    last_used_at: datetime | None = None
    use_count: int = 0

    @property
    def last_used_display(self) -> str:
        if self.last_used_at is None:
            return "-"
        return self.last_used_at.astimezone().strftime("%Y-%m-%d %H:%M")


class CatalogSnapshot(Sequence[HostRecord]):
    """Ordered, read-only view of the catalog at one instant.

    The store hands records over most-relevant first; that order is kept
    as-is and is what an empty query ranks to.
    """

    __slots__ = ("_records", "_haystacks")

    def __init__(self, records: Iterable[HostRecord] = ()) -> None:
        self._records: tuple[HostRecord, ...] = tuple(records)
        self._haystacks: tuple[str, ...] = tuple(
            f"{r.host} {r.note}".lower() for r in self._records
        )

    @classmethod
    def from_store(cls, store: HostStore) -> CatalogSnapshot:
        return cls(store.list_hosts())

    @overload
    def __getitem__(self, index: int) -> HostRecord: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[HostRecord, ...]: ...

    def __getitem__(self, index):
        return self._records[index]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HostRecord]:
        return iter(self._records)

    def __repr__(self) -> str:
        return f"CatalogSnapshot({len(self._records)} records)"

    def haystack(self, index: int) -> str:
        """Lower-cased ``host + " " + note`` for the record at *index*."""
        return self._haystacks[index]

    def find(self, host: str) -> HostRecord | None:
        for record in self._records:
            if record.host == host:
                return record
        return None
