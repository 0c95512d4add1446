"""Command line entry point for proctop."""

import time
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from proctop.config import Config
from proctop.cursor import Column, SortField
from proctop.formatting import CPU_SUMMARY_FIELDS, format_percent
from proctop.monitor import SystemMonitor

SORT_CHOICES = [f.value for f in SortField]


def _load_config(path: Path | None) -> Config:
    try:
        return Config.load(path)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


def print_page(monitor: SystemMonitor, limit: int, console: Console | None = None) -> None:
    """Print task counts, CPU usage and one page of the process table."""
    console = console or Console(highlight=False)

    c = monitor.counts
    console.print(
        f"Tasks: {c.total} total, {c.running} running, {c.sleeping} sleeping, "
        f"{c.stopped} stopped, {c.zombie} zombie"
    )
    cpu = ", ".join(
        f"{format_percent(monitor.cpu_percent(name))} {label}"
        for label, name in CPU_SUMMARY_FIELDS
    )
    console.print(f"CPU: {cpu}")

    table = Table(box=None, pad_edge=False)
    for column in Column:
        table.add_column(column.value.upper())
    for row in monitor.cursor.rows(limit=limit):
        table.add_row(*(cell.text for cell in row))
    console.print(table)


@click.command()
@click.version_option(package_name="proctop")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/proctop/config.toml)",
)
@click.option("--refresh-ms", type=click.IntRange(min=1), default=None, help="Refresh period")
@click.option("--sort", "sort_field", type=click.Choice(SORT_CHOICES), default=None)
@click.option("--ascending", is_flag=True, help="Sort smallest first")
@click.option("--once", is_flag=True, help="Print one page of the table and exit")
@click.option("--limit", "-n", default=20, show_default=True, help="Rows printed with --once")
@click.option("--no-log", is_flag=True, help="Do not write the log file")
def main(
    config_path: Path | None,
    refresh_ms: int | None,
    sort_field: str | None,
    ascending: bool,
    once: bool,
    limit: int,
    no_log: bool,
) -> None:
    """Interactive process monitor."""
    config = _load_config(config_path)
    if refresh_ms is not None:
        config.sampling.refresh_ms = refresh_ms
    if sort_field is not None:
        config.display.sort_field = sort_field
        config.display.sort_descending = sort_field in ("cpu", "mem")
    if ascending:
        config.display.sort_descending = False

    if not no_log:
        from proctop.logging import configure

        configure(config)

    if once:
        monitor = SystemMonitor.from_config(config)
        monitor.refresh()
        # CPU deltas need two samples one period apart
        time.sleep(monitor.period)
        monitor.refresh()
        print_page(monitor, limit)
        return

    from proctop.app import run_app

    run_app(config)


if __name__ == "__main__":
    main()
