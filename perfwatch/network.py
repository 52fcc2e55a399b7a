"""Network traffic derived from /proc/net/dev byte counters."""

from __future__ import annotations

import os
from pathlib import Path

_MIB = 1024.0 * 1024.0


def parse_net_dev(text: str) -> tuple[int, int]:
    """Return total (received, transmitted) bytes over all interfaces but ``lo``."""
    total_recv = 0
    total_sent = 0
    for line in text.splitlines()[2:]:
        name, sep, rest = line.partition(":")
        if not sep:
            continue
        if name.strip() == "lo":
            continue
        fields = rest.split()
        if len(fields) < 9:
            continue
        try:
            recv = int(fields[0])
            sent = int(fields[8])
        except ValueError:
            continue
        total_recv += recv
        total_sent += sent
    return total_recv, total_sent


class NetworkMonitor:
    """Reports bytes sent and received since the previous call."""

    def __init__(self, proc_root: str | os.PathLike[str] = "/proc") -> None:
        self._net_dev_path = Path(proc_root) / "net" / "dev"
        self._last_recv = 0
        self._last_sent = 0

    def usage_detailed(self) -> tuple[int, int]:
        """Return (uploaded, downloaded) bytes since the last call."""
        total_recv, total_sent = parse_net_dev(self._net_dev_path.read_text())
        recv_diff = total_recv - self._last_recv
        sent_diff = total_sent - self._last_sent
        self._last_recv = total_recv
        self._last_sent = total_sent
        return sent_diff, recv_diff

    def usage(self) -> float:
        """Total MiB moved in both directions since the last call."""
        sent, recv = self.usage_detailed()
        return (sent + recv) / _MIB