"""Data models for proctop."""

from dataclasses import dataclass, field, fields

# Order matches the aggregate "cpu" line of /proc/stat
CPU_CATEGORIES = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)

# Run-state characters as reported by /proc/<pid>/stat
STATE_RUNNING = "R"
STATE_SLEEPING = "S"
STATE_STOPPED = "T"
STATE_TRACED = "t"
STATE_ZOMBIE = "Z"
STATE_UNKNOWN = "?"


@dataclass(slots=True, frozen=True)
class CpuCounters:
    """Immutable snapshot of the system-wide cumulative CPU tick counters."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0
    guest_nice: int = 0


@dataclass(slots=True, frozen=True)
class CpuDelta:
    """Per-category tick deltas over one refresh interval."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0
    guest_nice: int = 0
    sum: int = 0

    def percent(self, category: str) -> float | None:
        """Return the share of the interval spent in category, or None if sum is zero."""
        if category not in CPU_CATEGORIES:
            raise ValueError(f"Unknown CPU category: {category!r}")
        if self.sum == 0:
            return None
        return 100.0 * getattr(self, category) / self.sum


@dataclass(slots=True, frozen=True)
class ProcessSample:
    """One process as read from the environment during a refresh."""

    pid: int
    ticks: int | None = 0  # Cumulative user + system clock ticks, None if unreadable
    rss: int = 0  # Bytes
    state: str = STATE_UNKNOWN
    user: str = ""
    command: str = ""
    started: float | None = None  # Process creation time, used to detect pid reuse
    vanished: bool = False  # Process disappeared while being read


@dataclass(slots=True)
class ProcessRecord:
    """Mutable record for one tracked process, owned by ProcessRecordStore."""

    pid: int
    ticks: int | None = None
    prev_ticks: int | None = None
    delta: int = 0
    state: str = STATE_UNKNOWN
    rss: int = 0
    user: str = ""
    command: str = ""
    started: float | None = None
    seen: bool = False


@dataclass(slots=True)
class TaskCounts:
    """Number of processes per run-state bucket for one refresh."""

    total: int = 0
    running: int = 0
    sleeping: int = 0
    stopped: int = 0
    zombie: int = 0

    def tally(self, state: str) -> None:
        """Count one process with the given run-state character."""
        self.total += 1
        if state == STATE_RUNNING:
            self.running += 1
        elif state in (STATE_STOPPED, STATE_TRACED):
            self.stopped += 1
        elif state == STATE_ZOMBIE:
            self.zombie += 1
        else:
            self.sleeping += 1

    def as_dict(self) -> dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(slots=True)
class RefreshResult:
    """Outcome of one refresh cycle."""

    ok: bool
    counts: TaskCounts = field(default_factory=TaskCounts)
    skipped: list[int] = field(default_factory=list)  # Pids dropped this cycle
    evicted: int = 0
