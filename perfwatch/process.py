"""Listing of the processes with the largest resident memory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class ProcessInfo:
    """One process as shown in the process list."""

    name: str
    pid: int
    cpu_percent: float = 0.0
    memory_mb: float = 0.0
    usage: float = 0.0
    usage_string: str = ""


def parse_stat_comm(text: str) -> str:
    """Return the command name from /proc/<pid>/stat, without its parentheses."""
    start = text.find("(")
    end = text.rfind(")")
    if start != -1 and end > start:
        return text[start + 1:end]
    fields = text.split()
    return fields[1] if len(fields) > 1 else ""


def parse_vmrss(text: str) -> float:
    """Return VmRSS from /proc/<pid>/status in MiB, or 0.0 if absent."""
    for line in text.splitlines():
        if line.startswith("VmRSS:"):
            fields = line.split()
            try:
                return float(fields[1]) / 1024.0
            except (IndexError, ValueError):
                return 0.0
    return 0.0


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text()
    except OSError:
        return None


def _read_process(entry: Path) -> ProcessInfo:
    stat = _read_text(entry / "stat")
    status = _read_text(entry / "status")
    name = parse_stat_comm(stat) if stat is not None else ""
    memory = parse_vmrss(status) if status is not None else 0.0
    return ProcessInfo(
        name=name,
        pid=int(entry.name),
        memory_mb=memory,
        usage=memory,
        usage_string=f"{memory:.1f} MB",
    )


def top_processes(max_count: int, proc_root: str | os.PathLike[str] = "/proc") -> list[ProcessInfo]:
    """Return up to ``max_count`` processes, largest resident memory first."""
    processes = [
        _read_process(entry)
        for entry in Path(proc_root).iterdir()
        if entry.name.isdigit() and entry.is_dir()
    ]
    processes.sort(key=lambda info: info.memory_mb, reverse=True)
    if 0 <= max_count < len(processes):
        del processes[max_count:]
    return processes