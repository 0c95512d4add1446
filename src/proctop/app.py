"""proctop - Main Textual application."""

import structlog
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.css.query import NoMatches
from textual.widgets import DataTable, Footer, Static

from proctop.config import Config
from proctop.cursor import Column, SortField, SortableCursor
from proctop.formatting import CPU_SUMMARY_FIELDS, format_percent
from proctop.models import TaskCounts
from proctop.monitor import SystemMonitor

log = structlog.get_logger()

COLUMN_HEADERS = {
    Column.PID: ("PID", 8),
    Column.USER: ("USER", 10),
    Column.CPU: ("CPU%", 7),
    Column.MEM: ("RES", 9),
    Column.STATE: ("S", 3),
    Column.CMD: ("Command", None),
}


class HeaderStats(Static):
    """Header widget showing task counts and CPU usage."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 3;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._counts = TaskCounts()
        self._cpu: dict[str, float | None] = {}

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_tasks_info(), id="tasks-info"),
            Static(self._get_cpu_info(), id="cpu-info"),
        )

    def update_stats(self, monitor: SystemMonitor) -> None:
        """Update the statistics from the monitor's last refresh."""
        self._counts = monitor.counts
        self._cpu = {label: monitor.cpu_percent(name) for label, name in CPU_SUMMARY_FIELDS}
        self._refresh_display()

    def _refresh_display(self) -> None:
        """Refresh the display with current data."""
        try:
            self.query_one("#tasks-info", Static).update(self._get_tasks_info())
            self.query_one("#cpu-info", Static).update(self._get_cpu_info())
        except NoMatches:
            pass  # Widget not mounted yet

    def _get_tasks_info(self) -> str:
        c = self._counts
        return (
            f"Tasks: [bold]{c.total}[/] total, [bold green]{c.running}[/] running, "
            f"{c.sleeping} sleeping, {c.stopped} stopped, [red]{c.zombie}[/] zombie"
        )

    def _get_cpu_info(self) -> str:
        if not self._cpu:
            return "CPU: loading..."
        parts = [f"{format_percent(value)} {label}" for label, value in self._cpu.items()]
        return "CPU: " + ", ".join(parts)


class ProcessTable(Container):
    """Container for the process data table, filled through a SortableCursor."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, cursor: SortableCursor, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._cursor = cursor
        self._current_pids: list[int] = []

    @property
    def sort_key(self) -> SortField | None:
        """Get current sort key."""
        return self._cursor.sort_field

    @property
    def descending(self) -> bool:
        return self._cursor.descending

    def cycle_sort(self) -> SortField:
        """Cycle to the next sort key and return it."""
        keys = list(SortField)
        current = self._cursor.sort_field
        next_index = (keys.index(current) + 1) % len(keys) if current else 0
        key = keys[next_index]
        # CPU and memory read best largest-first
        self._cursor.set_sort(key, key in (SortField.CPU, SortField.MEM))
        self.reload()
        return key

    def invert_sort(self) -> bool:
        """Flip the sort direction. Returns the new descending flag."""
        field = self._cursor.sort_field or SortField.PID
        self._cursor.set_sort(field, not self._cursor.descending)
        self.reload()
        return self._cursor.descending

    def sort_by(self, field: SortField) -> None:
        """Sort by field, toggling direction if it is already the active field."""
        if self._cursor.sort_field is field:
            self.invert_sort()
            return
        self._cursor.set_sort(field, field in (SortField.CPU, SortField.MEM))
        self.reload()

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield DataTable(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "row"
        for column in Column:
            label, width = COLUMN_HEADERS[column]
            table.add_column(label, key=column.value, width=width)

    def on_data_table_header_selected(self, event: DataTable.HeaderSelected) -> None:
        """Sort by the clicked column when it is sortable."""
        field = Column(event.column_key.value).sort_field
        if field is not None:
            self.sort_by(field)

    def reload(self) -> None:
        """
        Rebuild the rows from the cursor.

        Rows are pulled with reset/advance in the cursor's order; the
        highlighted process is kept selected when it is still alive.
        """
        table = self.query_one("#process-table", DataTable)

        selected_pid = None
        if 0 <= table.cursor_row < len(self._current_pids):
            selected_pid = self._current_pids[table.cursor_row]

        table.clear()
        pids: list[int] = []
        cursor = self._cursor
        valid = cursor.reset()
        while valid:
            row = cursor.row
            cells = [cursor.cell(row, column) for column in Column]
            table.add_row(
                *(
                    Text(c.text, style="bold" if c.bold else "", justify=c.align)
                    for c in cells
                ),
                key=cells[0].text,
            )
            pids.append(cursor.record(row).pid)
            valid = cursor.advance()

        self._current_pids = pids
        if selected_pid in pids:
            table.move_cursor(row=pids.index(selected_pid))


class ProctopApp(App):
    """Main proctop application."""

    TITLE = "proctop"
    SUB_TITLE = "Process Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
    }

    Horizontal {
        height: auto;
    }

    #tasks-info {
        width: 1fr;
    }

    #cpu-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
        ("i", "invert", "Invert"),
    ]

    def __init__(self, config: Config | None = None, monitor: SystemMonitor | None = None) -> None:
        """Initialize the ProctopApp."""
        super().__init__()
        self._config = config or Config()
        self._monitor = monitor or SystemMonitor.from_config(self._config)

    @property
    def monitor(self) -> SystemMonitor:
        return self._monitor

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield ProcessTable(self._monitor.cursor)
        yield Footer()

    def on_mount(self) -> None:
        """Take the first sample once the layout is up and start the refresh timer."""
        self.call_after_refresh(self._refresh)
        self.set_interval(self._monitor.period, self._refresh)

    def _refresh(self) -> None:
        """Run one sampling cycle and redraw."""
        if not self._monitor.refresh():
            # Source unreadable: keep showing the previous table
            return
        self.query_one("#header-stats", HeaderStats).update_stats(self._monitor)
        self.query_one(ProcessTable).reload()

    def action_sort(self) -> None:
        """Handle sort action - cycle through sort keys."""
        new_sort_key = self.query_one(ProcessTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_invert(self) -> None:
        """Handle invert action - flip sort direction."""
        descending = self.query_one(ProcessTable).invert_sort()
        self.notify("Sort: descending" if descending else "Sort: ascending")


def run_app(config: Config) -> None:
    """Run the TUI with the given configuration."""
    log.info("app_starting", refresh_ms=config.sampling.refresh_ms)
    ProctopApp(config).run()
