"""Mark-and-trim cache of process records keyed by pid."""

from collections.abc import Callable, Iterator
from typing import Any

from proctop.models import ProcessRecord


class ProcessRecordStore:
    """
    Index of pid -> ProcessRecord plus an ordered list of the same records.

    The list is what gets sorted and walked by the cursor; the index gives
    O(1) lookup during reconciliation. Every pid in the index has exactly one
    entry in the list and vice versa.

    A record survives only by being looked up during every cycle: trim()
    evicts everything that was not marked seen since the previous trim.
    """

    def __init__(self) -> None:
        self._index: dict[int, ProcessRecord] = {}
        self._order: list[ProcessRecord] = []

    def lookup_or_create(self, pid: int) -> ProcessRecord:
        """
        Return the record for pid marked as seen, creating a zeroed one if needed.

        Raises:
            MemoryError: If a new record cannot be allocated. The store is left
                unchanged in that case.
        """
        record = self._index.get(pid)
        if record is not None:
            record.seen = True
            return record

        record = ProcessRecord(pid=pid, seen=True)
        self._order.append(record)
        try:
            self._index[pid] = record
        except MemoryError:
            self._order.pop()
            raise
        return record

    def trim(self) -> int:
        """
        Evict records not seen this cycle and clear the mark on the survivors.

        Returns:
            Number of evicted records.
        """
        survivors: list[ProcessRecord] = []
        for record in self._order:
            if record.seen:
                record.seen = False
                survivors.append(record)
            else:
                del self._index[record.pid]

        evicted = len(self._order) - len(survivors)
        self._order = survivors
        return evicted

    def discard(self, pid: int) -> bool:
        """Remove the record for pid right away. Returns False if it was not tracked."""
        record = self._index.pop(pid, None)
        if record is None:
            return False
        self._order.remove(record)
        return True

    def get(self, pid: int) -> ProcessRecord | None:
        return self._index.get(pid)

    def count(self) -> int:
        return len(self._order)

    def sort(self, key: Callable[[ProcessRecord], Any], descending: bool = False) -> None:
        """Reorder the record list in place."""
        self._order.sort(key=key, reverse=descending)

    def at(self, row: int) -> ProcessRecord:
        """Return the record at row in the current order."""
        return self._order[row]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, pid: object) -> bool:
        return pid in self._index

    def __iter__(self) -> Iterator[ProcessRecord]:
        return iter(self._order)
