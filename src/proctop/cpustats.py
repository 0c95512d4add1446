"""System-wide CPU accounting between two consecutive samples."""

from collections.abc import Callable

import psutil
import structlog

from proctop.models import CPU_CATEGORIES, CpuCounters, CpuDelta
from proctop.sources import read_cpu_counters

log = structlog.get_logger()

CounterSource = Callable[[], CpuCounters]


class CpuAccumulator:
    """
    Two generations of cumulative CPU counters and the delta between them.

    Only the current and the previous reading are kept; each update()
    overwrites the older slot and flips which one is current.

    io-wait is not monotonic on every kernel and may jump backwards. When the
    new io-wait reading is not strictly greater than the previous one its
    delta is forced to zero for that interval.

    With ``double_count_irq`` enabled (the default) the irq delta is added to
    ``sum`` twice, matching the percentages shown by the original gptop.
    """

    def __init__(
        self,
        source: CounterSource = read_cpu_counters,
        double_count_irq: bool = True,
    ) -> None:
        self._source = source
        self._double_count_irq = double_count_irq
        self._cnts: list[CpuCounters | None] = [None, None]
        self._cur = 0
        self._delta: CpuDelta | None = None

    @property
    def current(self) -> CpuCounters | None:
        return self._cnts[self._cur]

    @property
    def previous(self) -> CpuCounters | None:
        return self._cnts[not self._cur]

    @property
    def delta(self) -> CpuDelta | None:
        """Delta of the last completed interval, None until two readings exist."""
        return self._delta

    @property
    def sum(self) -> int:
        return self._delta.sum if self._delta else 0

    def _read(self) -> CpuCounters | None:
        try:
            return self._source()
        except (OSError, psutil.Error) as e:
            log.warning("cpu_counters_unreadable", error=str(e))
            return None

    def init(self) -> None:
        """Take the first reading into slot 0. Unreadable counters leave the delta unset."""
        self._cnts = [self._read(), None]
        self._cur = 0
        self._delta = None

    def update(self) -> bool:
        """
        Read a new generation and recompute the delta from scratch.

        Returns:
            False if the counters could not be read; the previous state is kept.
        """
        new = self._read()
        if new is None:
            return False

        old = self._cnts[self._cur]
        nxt = int(not self._cur)
        self._cnts[nxt] = new
        self._cur = nxt

        if old is None:
            # First successful reading, nothing to diff against yet
            return True

        self._delta = self.compute_delta(old, new, self._double_count_irq)
        return True

    @staticmethod
    def compute_delta(old: CpuCounters, new: CpuCounters, double_count_irq: bool = True) -> CpuDelta:
        diffs = {}
        for name in CPU_CATEGORIES:
            if name == "iowait":
                continue
            diffs[name] = getattr(new, name) - getattr(old, name)

        # iowait may jump back under some circumstances
        if new.iowait > old.iowait:
            diffs["iowait"] = new.iowait - old.iowait
        else:
            diffs["iowait"] = 0

        total = sum(diffs.values())
        if double_count_irq:
            total += diffs["irq"]

        return CpuDelta(**diffs, sum=total)

    def percent(self, category: str) -> float | None:
        """Percentage of the last interval spent in category, None if unknown."""
        if self._delta is None:
            return None
        return self._delta.percent(category)

    def percentages(self) -> dict[str, float | None]:
        return {name: self.percent(name) for name in CPU_CATEGORIES}
