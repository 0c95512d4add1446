"""Sampling engine for proctop."""

from collections.abc import Callable, Iterable
from functools import partial

import psutil
import structlog

from proctop.config import Config
from proctop.cpustats import CounterSource, CpuAccumulator
from proctop.cursor import SortableCursor
from proctop.models import ProcessRecord, ProcessSample, RefreshResult, TaskCounts
from proctop.sources import clock_ticks, read_cpu_counters, read_processes
from proctop.store import ProcessRecordStore

log = structlog.get_logger()

ProcessSource = Callable[[], Iterable[ProcessSample]]

MIN_REFRESH_MS = 100


class SampleReconciler:
    """
    Runs one refresh cycle against a ProcessRecordStore.

    Each cycle enumerates the live processes, updates or creates their
    records, tallies run-states, trims records that were not observed and
    finally advances the CPU accumulator.
    """

    def __init__(
        self,
        store: ProcessRecordStore,
        cpu: CpuAccumulator,
        source: ProcessSource = read_processes,
    ) -> None:
        self._store = store
        self._cpu = cpu
        self._source = source

    def refresh(self) -> RefreshResult:
        """
        Reconcile the store with the current process list.

        If the process list cannot be read at all nothing is touched and the
        result has ``ok=False``.
        """
        # Materialize first so a failing source cannot leave the store half-updated
        try:
            samples = list(self._source())
        except (OSError, psutil.Error) as e:
            log.warning("process_source_unavailable", error=str(e))
            return RefreshResult(ok=False)

        counts = TaskCounts()
        skipped: list[int] = []

        for sample in samples:
            if sample.vanished:
                if self._store.discard(sample.pid):
                    log.debug("process_vanished", pid=sample.pid)
                continue

            try:
                record = self._store.lookup_or_create(sample.pid)
            except MemoryError:
                log.warning("record_allocation_failed", pid=sample.pid)
                skipped.append(sample.pid)
                continue

            self.apply(record, sample)
            counts.tally(record.state)

        evicted = self._store.trim()
        self._cpu.update()

        return RefreshResult(ok=True, counts=counts, skipped=skipped, evicted=evicted)

    @staticmethod
    def apply(record: ProcessRecord, sample: ProcessSample) -> None:
        """Fold one sample into its record, deriving the tick delta."""
        reused = (
            record.started is not None
            and sample.started is not None
            and sample.started != record.started
        )

        if sample.ticks is None:
            # Unreadable this cycle: keep the old baseline unless the pid was reused
            record.prev_ticks = None
            record.delta = 0
            if reused:
                record.ticks = None
        elif record.ticks is None or reused or sample.ticks < record.ticks:
            # No usable baseline: first sighting, or the pid now names another process
            record.prev_ticks = None
            record.delta = 0
            record.ticks = sample.ticks
        else:
            record.prev_ticks = record.ticks
            record.delta = sample.ticks - record.ticks
            record.ticks = sample.ticks

        record.state = sample.state
        record.rss = sample.rss
        record.user = sample.user
        record.command = sample.command
        record.started = sample.started


class SystemMonitor:
    """
    Context object owning one complete sampling pipeline.

    Not thread-safe: refresh() and all cursor reads are expected to run on
    the same thread, driven by an external timer. refresh() always completes
    (trim included) before returning.
    """

    def __init__(
        self,
        refresh_ms: int = 2000,
        process_source: ProcessSource | None = None,
        counter_source: CounterSource | None = None,
        double_count_irq: bool = True,
        clk_tck: int | None = None,
        command_width: int = 0,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            refresh_ms: Refresh period in milliseconds. Default 2000.
            process_source: Callable returning the current process samples.
                Defaults to the psutil reader.
            counter_source: Callable returning the current CPU counters.
                Defaults to the psutil reader.
            double_count_irq: Count the irq delta twice in the CPU sum.
            clk_tck: Clock ticks per second. Defaults to the host's value.
            command_width: Truncate commands in table cells (0 = no limit).
        """
        self.clk_tck = clk_tck or clock_ticks()
        process_source = process_source or partial(read_processes, self.clk_tck)
        counter_source = counter_source or partial(read_cpu_counters, self.clk_tck)

        self.store = ProcessRecordStore()
        self.cpu = CpuAccumulator(counter_source, double_count_irq=double_count_irq)
        self.reconciler = SampleReconciler(self.store, self.cpu, process_source)
        self.cursor = SortableCursor(
            self.store,
            clk_tck=self.clk_tck,
            command_width=command_width,
        )
        self.counts = TaskCounts()
        self._refresh_ms = 0
        self.refresh_ms = refresh_ms

        self.cpu.init()

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "SystemMonitor":
        """Build a monitor using the sampling and display settings of config."""
        monitor = cls(
            refresh_ms=config.sampling.refresh_ms,
            double_count_irq=config.sampling.double_count_irq,
            command_width=config.display.command_width,
            **kwargs,
        )
        monitor.cursor.set_sort(config.display.sort_key, config.display.sort_descending)
        return monitor

    @property
    def refresh_ms(self) -> int:
        """Get the current refresh period in milliseconds."""
        return self._refresh_ms

    @refresh_ms.setter
    def refresh_ms(self, value: int) -> None:
        """Set the refresh period, also used as the divisor for per-process CPU%."""
        self._refresh_ms = max(MIN_REFRESH_MS, int(value))
        self.cursor.period = self._refresh_ms / 1000

    @property
    def period(self) -> float:
        """Refresh period in seconds."""
        return self._refresh_ms / 1000

    def refresh(self) -> bool:
        """
        Run one sampling cycle.

        Returns:
            False if the process list could not be read; the previous table and
            counts are kept in that case.
        """
        result = self.reconciler.refresh()
        if not result.ok:
            return False

        self.counts = result.counts
        self.cursor.resort()

        log.debug(
            "refresh_complete",
            **result.counts.as_dict(),
            evicted=result.evicted,
            skipped=len(result.skipped),
            cpu_sum=self.cpu.sum,
        )
        return True

    def cpu_percent(self, category: str) -> float | None:
        """System-wide share of the last interval spent in category."""
        return self.cpu.percent(category)
