"""Disk throughput derived from /proc/diskstats sector counters."""

from __future__ import annotations

import os
from pathlib import Path

_DEVICE_PREFIXES = ("sd", "nvme")
# 512-byte sectors: 2048 of them make one MiB.
_SECTORS_PER_MIB = 2048.0


def parse_diskstats(text: str) -> tuple[int, int]:
    """Return total (read, written) sectors for sd* and nvme* devices."""
    total_read = 0
    total_write = 0
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 10:
            continue
        if not fields[2].startswith(_DEVICE_PREFIXES):
            continue
        try:
            read_sectors = int(fields[5])
            write_sectors = int(fields[9])
        except ValueError:
            continue
        total_read += read_sectors
        total_write += write_sectors
    return total_read, total_write


class DiskMonitor:
    """Reports MiB read and written since the previous call."""

    def __init__(self, proc_root: str | os.PathLike[str] = "/proc") -> None:
        self._diskstats_path = Path(proc_root) / "diskstats"
        self._last_read = 0
        self._last_write = 0

    def io(self) -> float:
        """MiB transferred since the last call (since boot on the first)."""
        total_read, total_write = parse_diskstats(self._diskstats_path.read_text())
        read_diff = total_read - self._last_read
        write_diff = total_write - self._last_write
        self._last_read = total_read
        self._last_write = total_write
        return (read_diff + write_diff) / _SECTORS_PER_MIB