"""Overall CPU utilisation read from the kernel's /proc/stat counters."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CpuTimes:
    """Cumulative jiffies of the aggregate ``cpu`` line."""

    user: int
    nice: int
    system: int
    idle: int

    @property
    def busy(self) -> int:
        return self.user + self.nice + self.system

    @property
    def total(self) -> int:
        return self.busy + self.idle


def parse_cpu_times(text: str) -> CpuTimes:
    """Parse the first line of /proc/stat into a :class:`CpuTimes`."""
    first_line = text.splitlines()[0] if text else ""
    fields = first_line.split()
    if len(fields) < 5 or not fields[0].startswith("cpu"):
        raise ValueError(f"not a cpu line: {first_line!r}")
    try:
        user, nice, system, idle = (int(value) for value in fields[1:5])
    except ValueError as exc:
        raise ValueError(f"bad cpu counters: {first_line!r}") from exc
    return CpuTimes(user=user, nice=nice, system=system, idle=idle)


class CpuMonitor:
    """Reports CPU usage in percent since the previous call."""

    def __init__(self, proc_root: str | os.PathLike[str] = "/proc") -> None:
        self._stat_path = Path(proc_root) / "stat"
        self._last: CpuTimes | None = None

    def usage(self) -> float:
        """Return busy time as a percentage of elapsed time; 0.0 on the first call."""
        current = parse_cpu_times(self._stat_path.read_text())
        previous, self._last = self._last, current
        if previous is None:
            return 0.0
        total = current.total - previous.total
        if total == 0:
            return 0.0
        return (current.busy - previous.busy) / total * 100.0