"""Presentation helpers shared by the TUI and the CLI."""


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:.1f}{unit}" if unit != "B" else f"{size}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def format_percent(value: float | None) -> str:
    """Format a percentage with one decimal, or '--' when it is unknown."""
    if value is None:
        return "--"
    return f"{value:.1f}"


def truncate(text: str, width: int) -> str:
    if width <= 0 or len(text) <= width:
        return text
    return text[: width - 1] + "…"


# Categories shown in the CPU summary line, with their short labels
CPU_SUMMARY_FIELDS = [
    ("usr", "user"),
    ("sys", "system"),
    ("nice", "nice"),
    ("idle", "idle"),
    ("iowait", "iowait"),
    ("steal", "steal"),
]
