"""Environment readers backed by psutil.

Both readers return clock ticks rather than psutil's seconds so that deltas
stay exact integers. psutil divides the kernel's tick counters by
``SC_CLK_TCK``; multiplying back recovers them.
"""

import os

import psutil

from proctop.models import (
    CPU_CATEGORIES,
    STATE_UNKNOWN,
    STATE_ZOMBIE,
    CpuCounters,
    ProcessSample,
)

# psutil status strings mapped back to the kernel's run-state characters.
# Literal keys: current psutil no longer exports STATUS_WAKE_KILL.
STATUS_CHARS = {
    "running": "R",
    "sleeping": "S",
    "disk-sleep": "D",
    "stopped": "T",
    "tracing-stop": "t",
    "zombie": "Z",
    "dead": "X",
    "wake-kill": "K",
    "waking": "W",
    "idle": "I",
    "parked": "P",
    "locked": "L",
    "waiting": "W",
}

PROCESS_ATTRS = [
    "pid",
    "name",
    "username",
    "status",
    "cpu_times",
    "memory_info",
    "cmdline",
    "create_time",
]


def clock_ticks() -> int:
    """Return the number of clock ticks per second (USER_HZ)."""
    try:
        return os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        # Not exposed on this platform; Linux uses 100 almost everywhere
        return 100


def to_ticks(seconds: float, clk_tck: int) -> int:
    return round(seconds * clk_tck)


def status_char(status: str | None) -> str:
    """Convert a psutil status string into a one-character run-state."""
    if not status:
        return STATE_UNKNOWN
    return STATUS_CHARS.get(status, STATE_UNKNOWN)


def read_cpu_counters(clk_tck: int | None = None) -> CpuCounters:
    """
    Read the aggregate CPU counters.

    Categories the platform does not report read as 0.

    Raises:
        OSError: If the counter source cannot be read.
    """
    clk_tck = clk_tck or clock_ticks()
    times = psutil.cpu_times()
    return CpuCounters(
        **{name: to_ticks(getattr(times, name, 0.0), clk_tck) for name in CPU_CATEGORIES}
    )


def read_processes(clk_tck: int | None = None) -> list[ProcessSample]:
    """
    Enumerate live processes.

    Uses oneshot() for efficient attribute access. A process that exits while
    it is being read is returned with ``vanished=True`` so the caller can drop
    its record instead of failing the whole enumeration.

    Raises:
        OSError: If the process list itself cannot be read.
    """
    clk_tck = clk_tck or clock_ticks()
    samples: list[ProcessSample] = []

    for proc in psutil.process_iter():
        try:
            with proc.oneshot():
                info = proc.as_dict(attrs=PROCESS_ATTRS, ad_value=None)
        except psutil.ZombieProcess:
            samples.append(ProcessSample(pid=proc.pid, ticks=None, state=STATE_ZOMBIE))
            continue
        except psutil.NoSuchProcess:
            samples.append(ProcessSample(pid=proc.pid, vanished=True))
            continue

        cpu_times = info.get("cpu_times")
        # None when access is denied; the reconciler keeps the previous baseline
        ticks = to_ticks(cpu_times.user + cpu_times.system, clk_tck) if cpu_times else None

        mem_info = info.get("memory_info")
        rss = mem_info.rss if mem_info else 0

        cmdline = info.get("cmdline") or []
        command = " ".join(cmdline) if cmdline else info.get("name") or ""

        samples.append(
            ProcessSample(
                pid=info.get("pid", proc.pid),
                ticks=ticks,
                rss=rss,
                state=status_char(info.get("status")),
                user=info.get("username") or "",
                command=command,
                started=info.get("create_time"),
            )
        )

    return samples
