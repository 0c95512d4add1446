"""Shared test fixtures for proctop."""

import pytest

from proctop.models import CpuCounters, ProcessSample
from proctop.monitor import SystemMonitor

CLK_TCK = 100


class FakeEnvironment:
    """In-memory stand-in for the process list and the CPU counters."""

    def __init__(self) -> None:
        self.processes: list[ProcessSample] = []
        self.counters = CpuCounters()
        self.processes_error: Exception | None = None
        self.counters_error: Exception | None = None
        self.process_reads = 0
        self.counter_reads = 0

    def read_processes(self) -> list[ProcessSample]:
        self.process_reads += 1
        if self.processes_error is not None:
            raise self.processes_error
        return list(self.processes)

    def read_counters(self) -> CpuCounters:
        self.counter_reads += 1
        if self.counters_error is not None:
            raise self.counters_error
        return self.counters

    def set_processes(self, *samples: ProcessSample) -> None:
        self.processes = list(samples)


def make_sample(
    pid: int,
    ticks: int | None = 0,
    state: str = "S",
    rss: int = 4096,
    user: str = "user",
    command: str | None = None,
    started: float | None = None,
) -> ProcessSample:
    """Create a ProcessSample for testing."""
    return ProcessSample(
        pid=pid,
        ticks=ticks,
        rss=rss,
        state=state,
        user=user,
        command=command if command is not None else f"/bin/proc{pid}",
        started=started,
    )


@pytest.fixture
def env() -> FakeEnvironment:
    """Create an empty fake environment."""
    return FakeEnvironment()


@pytest.fixture
def monitor(env: FakeEnvironment) -> SystemMonitor:
    """Create a SystemMonitor wired to the fake environment."""
    return SystemMonitor(
        refresh_ms=2000,
        process_source=env.read_processes,
        counter_source=env.read_counters,
        clk_tck=CLK_TCK,
    )
