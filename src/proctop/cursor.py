"""Row cursor and sort façade over the process record store."""

from dataclasses import dataclass
from enum import Enum

from proctop.formatting import format_bytes, truncate
from proctop.models import STATE_RUNNING, ProcessRecord
from proctop.sources import clock_ticks
from proctop.store import ProcessRecordStore


class SortField(Enum):
    """Fields the process table can be sorted by."""

    PID = "pid"
    CPU = "cpu"
    MEM = "mem"
    STATE = "state"


class Column(Enum):
    """Columns the cursor can format."""

    PID = "pid"
    USER = "user"
    CPU = "cpu"
    MEM = "mem"
    STATE = "state"
    CMD = "cmd"

    @property
    def sort_field(self) -> SortField | None:
        """The sort field backing this column, None if the column is not sortable."""
        try:
            return SortField(self.value)
        except ValueError:
            return None


@dataclass(slots=True, frozen=True)
class Cell:
    """Formatted table cell."""

    text: str
    align: str = "left"  # 'left', 'right' or 'center'
    bold: bool = False


def sort_value(record: ProcessRecord, field: SortField) -> int | str:
    """Return the value of record used when ordering by field."""
    if field is SortField.PID:
        return record.pid
    if field is SortField.CPU:
        return record.delta
    if field is SortField.MEM:
        return record.rss
    if field is SortField.STATE:
        return record.state
    raise ValueError(f"Unknown sort field: {field!r}")


class SortableCursor:
    """
    Sequential/random-access read protocol for a table view.

    Holds a single row position and the active sort key. Moving past the end
    is allowed; callers detect it by comparing with seek_count(). Ties are
    ordered arbitrarily.
    """

    def __init__(
        self,
        store: ProcessRecordStore,
        period: float = 2.0,
        clk_tck: int | None = None,
        command_width: int = 0,
    ) -> None:
        """
        Initialize the cursor.

        Args:
            store: Records to expose.
            period: Refresh period in seconds, the divisor for per-process CPU%.
            clk_tck: Clock ticks per second. Defaults to the host's value.
            command_width: Truncate commands to this many characters (0 = no limit).
        """
        self._store = store
        self._row = 0
        self._sort_field: SortField | None = None
        self._descending = False
        self.period = period
        self.clk_tck = clk_tck or clock_ticks()
        self.command_width = command_width

    @property
    def row(self) -> int:
        return self._row

    @property
    def sort_field(self) -> SortField | None:
        return self._sort_field

    @property
    def descending(self) -> bool:
        return self._descending

    def reset(self) -> bool:
        """Move to the first row. Returns whether it exists."""
        self._row = 0
        return self._row < self.seek_count()

    def advance(self, n: int = 1) -> bool:
        """Move forward by n rows. Returns whether the new row exists."""
        self._row += n
        return self._row < self.seek_count()

    def seek_count(self) -> int:
        """Number of rows currently available."""
        return self._store.count()

    def set_sort(self, field: SortField, descending: bool = False) -> None:
        """Set the active sort key and reorder the rows."""
        self._sort_field = field
        self._descending = descending
        self.resort()

    def resort(self) -> None:
        """Re-apply the active sort key, e.g. after a refresh."""
        if self._sort_field is None:
            return
        field = self._sort_field
        self._store.sort(key=lambda r: sort_value(r, field), descending=self._descending)

    def record(self, row: int | None = None) -> ProcessRecord:
        """Return the record at row, or at the cursor position."""
        return self._store.at(self._row if row is None else row)

    def cpu_percent(self, record: ProcessRecord) -> float:
        """CPU usage of record over the last interval as a percentage of one core."""
        if self.period <= 0:
            return 0.0
        return 100.0 * record.delta / self.clk_tck / self.period

    def cell(self, row: int, column: Column) -> Cell:
        """Format column of the record at row, with alignment and emphasis."""
        record = self._store.at(row)
        bold = record.state == STATE_RUNNING

        if column is Column.PID:
            return Cell(str(record.pid), "right", bold)
        if column is Column.USER:
            return Cell(record.user, "left", bold)
        if column is Column.CPU:
            return Cell(f"{self.cpu_percent(record):.1f}", "right", bold)
        if column is Column.MEM:
            return Cell(format_bytes(record.rss), "right", bold)
        if column is Column.STATE:
            return Cell(record.state, "center", bold)
        if column is Column.CMD:
            return Cell(truncate(record.command, self.command_width), "left", bold)
        raise ValueError(f"Unknown column: {column!r}")

    def read_cell(self, row: int, column: Column) -> str:
        """Return the display text for column of the record at row."""
        return self.cell(row, column).text

    def rows(self, start: int = 0, limit: int | None = None) -> list[list[Cell]]:
        """
        Format one page of rows, walking the table with reset/advance.

        Only the requested page is formatted.
        """
        page: list[list[Cell]] = []
        valid = self.reset()
        if start:
            valid = self.advance(start)
        while valid and (limit is None or len(page) < limit):
            page.append([self.cell(self._row, column) for column in Column])
            valid = self.advance()
        return page
