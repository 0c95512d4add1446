"""Tests for the SortableCursor."""

import pytest

from proctop.cursor import Cell, Column, SortField, SortableCursor, sort_value
from proctop.store import ProcessRecordStore

from conftest import CLK_TCK, make_sample


@pytest.fixture
def populated(env, monitor):
    """Monitor with five processes and known deltas after two refreshes."""
    first = [
        make_sample(10, ticks=100, state="S", rss=2048),
        make_sample(20, ticks=100, state="R", rss=1024 * 1024),
        make_sample(30, ticks=100, state="Z", rss=0),
        make_sample(40, ticks=100, state="T", rss=512),
        make_sample(50, ticks=100, state="S", rss=4096),
    ]
    env.set_processes(*first)
    monitor.refresh()

    deltas = {10: 5, 20: 200, 30: 0, 40: 40, 50: 40}
    env.set_processes(
        *(make_sample(s.pid, ticks=100 + deltas[s.pid], state=s.state, rss=s.rss) for s in first)
    )
    monitor.refresh()
    return monitor


class TestCursorProtocol:
    """Tests for reset/advance/seek_count."""

    def test_reset_and_advance(self, populated):
        cursor = populated.cursor

        assert cursor.reset() is True
        assert cursor.row == 0
        assert cursor.advance() is True
        assert cursor.row == 1
        assert cursor.advance(3) is True
        assert cursor.row == 4

    def test_advance_past_end(self, populated):
        cursor = populated.cursor
        cursor.reset()

        assert cursor.advance(5) is False
        assert cursor.row == 5
        assert cursor.row >= cursor.seek_count()

    def test_reset_on_empty_table(self):
        cursor = SortableCursor(ProcessRecordStore(), clk_tck=CLK_TCK)

        assert cursor.reset() is False
        assert cursor.seek_count() == 0

    def test_seek_count_tracks_live_records(self, env, populated):
        assert populated.cursor.seek_count() == 5

        env.set_processes(make_sample(10, ticks=105))
        populated.refresh()

        assert populated.cursor.seek_count() == 1
        assert populated.cursor.seek_count() == populated.store.count()

    def test_walk_by_cpu_descending_is_non_increasing(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.CPU, descending=True)

        deltas = []
        valid = cursor.reset()
        while valid:
            deltas.append(cursor.record().delta)
            valid = cursor.advance(1)

        assert len(deltas) == cursor.seek_count()
        assert deltas == sorted(deltas, reverse=True)
        assert deltas[0] == 200


class TestSorting:
    """Tests for set_sort."""

    def test_sort_by_pid(self, populated):
        cursor = populated.cursor

        cursor.set_sort(SortField.PID)
        assert [cursor.record(i).pid for i in range(5)] == [10, 20, 30, 40, 50]

        cursor.set_sort(SortField.PID, descending=True)
        assert [cursor.record(i).pid for i in range(5)] == [50, 40, 30, 20, 10]

    def test_sort_by_mem(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.MEM, descending=True)

        assert cursor.record(0).pid == 20
        assert cursor.record(4).pid == 30

    def test_sort_by_state(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.STATE)

        states = [cursor.record(i).state for i in range(5)]
        assert states == sorted(states)

    def test_sort_key_is_remembered(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.MEM, descending=False)

        assert cursor.sort_field is SortField.MEM
        assert cursor.descending is False

    def test_no_sort_keeps_insertion_order(self, populated):
        assert [r.pid for r in populated.store] == [10, 20, 30, 40, 50]

    def test_sort_value(self, populated):
        record = populated.store.get(20)

        assert sort_value(record, SortField.PID) == 20
        assert sort_value(record, SortField.CPU) == 200
        assert sort_value(record, SortField.MEM) == 1024 * 1024
        assert sort_value(record, SortField.STATE) == "R"


class TestCells:
    """Tests for cell formatting."""

    def test_read_cell(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.PID)

        # pid 20: 200 ticks over a 2s period at 100 ticks/s is one full core
        assert cursor.read_cell(1, Column.PID) == "20"
        assert cursor.read_cell(1, Column.CPU) == "100.0"
        assert cursor.read_cell(1, Column.MEM) == "1.0M"
        assert cursor.read_cell(1, Column.STATE) == "R"
        assert cursor.read_cell(1, Column.USER) == "user"
        assert cursor.read_cell(1, Column.CMD) == "/bin/proc20"

    def test_cpu_uses_refresh_period(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.PID)
        populated.refresh_ms = 1000

        assert cursor.read_cell(1, Column.CPU) == "200.0"
        assert cursor.read_cell(0, Column.CPU) == "5.0"

    def test_read_cell_does_not_move_cursor(self, populated):
        cursor = populated.cursor
        cursor.reset()
        cursor.advance(2)

        cursor.read_cell(4, Column.PID)

        assert cursor.row == 2

    def test_running_rows_are_bold(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.PID)

        assert cursor.cell(1, Column.PID) == Cell("20", "right", True)
        assert cursor.cell(0, Column.PID).bold is False
        assert cursor.cell(0, Column.STATE).align == "center"
        assert cursor.cell(0, Column.CMD).align == "left"

    def test_command_width(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.PID)
        cursor.command_width = 5

        assert cursor.read_cell(0, Column.CMD) == "/bin…"

    def test_read_cell_past_end_raises(self, populated):
        with pytest.raises(IndexError):
            populated.cursor.read_cell(99, Column.PID)

    def test_rows_page(self, populated):
        cursor = populated.cursor
        cursor.set_sort(SortField.PID)

        page = cursor.rows(start=1, limit=2)

        assert [row[0].text for row in page] == ["20", "30"]
        assert len(page[0]) == len(Column)

    def test_rows_all(self, populated):
        assert len(populated.cursor.rows()) == 5


def test_column_sort_fields():
    assert Column.PID.sort_field is SortField.PID
    assert Column.CPU.sort_field is SortField.CPU
    assert Column.MEM.sort_field is SortField.MEM
    assert Column.STATE.sort_field is SortField.STATE
    assert Column.USER.sort_field is None
    assert Column.CMD.sort_field is None
