"""Physical memory figures read from /proc/meminfo."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_FIELDS = {
    "MemTotal:": "total",
    "MemFree:": "free",
    "Buffers:": "buffers",
    "Cached:": "cached",
}


@dataclass(frozen=True)
class MemInfo:
    """The meminfo fields used to compute usage, all in kB."""

    total: int = 0
    free: int = 0
    buffers: int = 0
    cached: int = 0

    @property
    def used(self) -> int:
        """Memory in use, excluding buffers and page cache, in kB."""
        return self.total - self.free - self.buffers - self.cached

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return self.used * 100.0 / self.total


def parse_meminfo(text: str) -> MemInfo:
    """Parse /proc/meminfo text; fields that are absent count as zero."""
    values: dict[str, int] = {}
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        key = _FIELDS.get(fields[0])
        if key is None:
            continue
        try:
            values[key] = int(fields[1])
        except ValueError:
            continue
    return MemInfo(**values)


class MemoryMonitor:
    """Reads current memory usage from a proc filesystem."""

    def __init__(self, proc_root: str | os.PathLike[str] = "/proc") -> None:
        self._meminfo_path = Path(proc_root) / "meminfo"

    def _read(self) -> MemInfo:
        return parse_meminfo(self._meminfo_path.read_text())

    def usage(self) -> float:
        """Memory in use as a percentage of the total."""
        return self._read().percent

    def total(self) -> int:
        """Total physical memory in bytes."""
        return self._read().total * 1024

    def used(self) -> int:
        """Memory in use in bytes."""
        return self._read().used * 1024