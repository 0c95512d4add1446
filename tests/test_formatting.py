"""Tests for presentation helpers."""

from proctop.formatting import format_bytes, format_percent, truncate


def test_format_bytes_bytes():
    """Test format_bytes with byte values."""
    assert format_bytes(500) == "500B"


def test_format_bytes_kilobytes():
    """Test format_bytes with kilobyte values."""
    assert format_bytes(2048) == "2.0K"


def test_format_bytes_megabytes():
    """Test format_bytes with megabyte values."""
    assert format_bytes(5242880) == "5.0M"


def test_format_bytes_gigabytes():
    """Test format_bytes with gigabyte values."""
    assert "G" in format_bytes(1073741824)


def test_format_percent():
    assert format_percent(12.345) == "12.3"
    assert format_percent(0.0) == "0.0"


def test_format_percent_unknown():
    assert format_percent(None) == "--"


def test_truncate():
    assert truncate("short", 10) == "short"
    assert truncate("exactly", 7) == "exactly"
    assert truncate("a long command line", 6) == "a lon…"
    assert truncate("unlimited", 0) == "unlimited"
