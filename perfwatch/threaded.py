"""Sampler that reads each metric on its own thread and interval."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from perfwatch.cpu import CpuMonitor
from perfwatch.disk import DiskMonitor
from perfwatch.gpu import GpuInfo, GpuStats
from perfwatch.memory import MemoryMonitor
from perfwatch.network import NetworkMonitor

_MIB = 1024.0 * 1024.0
_GPU_CHECK_SECONDS = 5.0
_DEFAULT_INTERVAL_MS = 1000

THREADED_EVENTS = (
    "cpu_usage",
    "memory_stats",
    "disk_stats",
    "network_stats",
    "gpu_stats",
    "gpu_availability",
    "performance_data",
)


class _GpuProbe(Protocol):
    def detect(self) -> GpuInfo | None: ...

    def stats(self, info: GpuInfo) -> GpuStats | None: ...


class _Events:
    """Named callback lists."""

    def __init__(self, names: Iterable[str]) -> None:
        self._handlers: dict[str, list[Callable[..., Any]]] = {name: [] for name in names}
        self._lock = threading.Lock()

    def connect(self, event: str, callback: Callable[..., Any]) -> None:
        if event not in self._handlers:
            raise ValueError(f"unknown event {event!r}")
        with self._lock:
            self._handlers[event].append(callback)

    def emit(self, event: str, *args: Any) -> None:
        with self._lock:
            handlers = list(self._handlers[event])
        for handler in handlers:
            handler(*args)


class SamplerType(Enum):
    """Which metric a sampling thread reads."""

    CPU = 0
    MEMORY = 1
    DISK = 2
    NETWORK = 3


class SamplerThread(threading.Thread):
    """Reads one metric repeatedly and hands each value to ``callback(value, timestamp)``."""

    def __init__(
        self,
        kind: SamplerType,
        source: Any,
        callback: Callable[[float, datetime], None],
    ) -> None:
        super().__init__(name=f"sampler-{kind.name.lower()}", daemon=True)
        self._kind = kind
        self._source = source
        self._on_value = callback
        self._interval_lock = threading.Lock()
        self._interval_ms = _DEFAULT_INTERVAL_MS
        self._halt = threading.Event()

    @property
    def kind(self) -> SamplerType:
        return self._kind

    @property
    def interval(self) -> int:
        with self._interval_lock:
            return self._interval_ms

    def set_interval(self, msecs: int) -> None:
        """Set the pause between samples; non-positive values are ignored."""
        if msecs > 0:
            with self._interval_lock:
                self._interval_ms = msecs

    def stop(self) -> None:
        """Ask the loop to finish after the current sample."""
        self._halt.set()

    def run(self) -> None:
        while not self._halt.is_set():
            timestamp = datetime.now()
            self._on_value(self.sample(), timestamp)
            if self._halt.wait(self.interval / 1000.0):
                break

    def sample(self) -> float:
        """Take one reading of this thread's metric."""
        if self._kind is SamplerType.CPU:
            return self._source.usage()
        if self._kind is SamplerType.MEMORY:
            return self._source.usage()
        if self._kind is SamplerType.DISK:
            return self._source.io()
        sent, received = self._source.usage_detailed()
        return (sent + received) / _MIB


class _RecordingNetwork:
    """Passes readings through and keeps the latest (sent, received) pair."""

    def __init__(self, monitor: Any) -> None:
        self._monitor = monitor
        self._lock = threading.Lock()
        self._last: tuple[int, int] = (0, 0)

    @property
    def last(self) -> tuple[int, int]:
        with self._lock:
            return self._last

    def usage_detailed(self) -> tuple[int, int]:
        pair = self._monitor.usage_detailed()
        with self._lock:
            self._last = pair
        return pair


class ThreadedSampler:
    """Runs one sampling thread per metric plus a periodic GPU check.

    Events and their arguments:
    ``cpu_usage(percent)``, ``memory_stats(total, used, free)``,
    ``disk_stats(read_bytes, write_bytes)``,
    ``network_stats(upload_mib, download_mib)``,
    ``gpu_stats(usage, temperature, memory_used, memory_total)``,
    ``gpu_availability(available, name, driver)`` and
    ``performance_data(cpu, memory, disk, network)``.
    """

    def __init__(
        self,
        cpu: Any = None,
        memory: Any = None,
        disk: Any = None,
        network: Any = None,
        storage: Any = None,
        gpu_probe: _GpuProbe | None = None,
    ) -> None:
        self._cpu = cpu if cpu is not None else CpuMonitor()
        self._memory = memory if memory is not None else MemoryMonitor()
        self._disk = disk if disk is not None else DiskMonitor()
        self._network = _RecordingNetwork(
            network if network is not None else NetworkMonitor()
        )
        self.storage = storage
        self._gpu_probe = gpu_probe
        self._events = _Events(THREADED_EVENTS)
        self._data_lock = threading.RLock()
        self._threads: dict[SamplerType, SamplerThread] = {}
        self._gpu_halt = threading.Event()
        self._gpu_thread: threading.Thread | None = None
        self._gpu_available = False
        self._gpu_info = GpuInfo("", "")
        self.last_cpu_usage = 0.0
        self.last_memory_usage = 0.0
        self.last_disk_io = 0.0
        self.last_network_usage = 0.0
        self.check_gpu()

    @property
    def gpu_available(self) -> bool:
        return self._gpu_available

    @property
    def gpu_info(self) -> GpuInfo:
        return self._gpu_info

    def connect(self, event: str, callback: Callable[..., Any]) -> None:
        """Register ``callback`` for ``event``; unknown names raise ValueError."""
        self._events.connect(event, callback)

    def start(
        self,
        cpu_interval: int = _DEFAULT_INTERVAL_MS,
        memory_interval: int = _DEFAULT_INTERVAL_MS,
        disk_interval: int = _DEFAULT_INTERVAL_MS,
        network_interval: int = _DEFAULT_INTERVAL_MS,
    ) -> None:
        """Start (or retune) every sampling thread and the GPU check."""
        plan = (
            (SamplerType.CPU, self._cpu, self.process_cpu_data, cpu_interval),
            (SamplerType.MEMORY, self._memory, self.process_memory_data, memory_interval),
            (SamplerType.DISK, self._disk, self.process_disk_data, disk_interval),
            (SamplerType.NETWORK, self._network, self.process_network_data, network_interval),
        )
        for kind, source, callback, interval in plan:
            thread = self._threads.get(kind)
            if thread is None or not thread.is_alive():
                thread = SamplerThread(kind, source, callback)
                thread.set_interval(interval)
                self._threads[kind] = thread
                thread.start()
            else:
                thread.set_interval(interval)

        self._stop_gpu_timer()
        self._gpu_halt = threading.Event()
        self._gpu_thread = threading.Thread(
            target=self._gpu_loop, args=(self._gpu_halt,), name="sampler-gpu", daemon=True
        )
        self._gpu_thread.start()

    def stop(self) -> None:
        """Stop every sampling thread and the GPU check."""
        threads = list(self._threads.values())
        for thread in threads:
            thread.stop()
        current = threading.current_thread()
        for thread in threads:
            if thread is not current and thread.is_alive():
                thread.join()
        self._stop_gpu_timer()

    def process_cpu_data(self, value: float, timestamp: datetime) -> None:
        with self._data_lock:
            self.last_cpu_usage = value
            self._store("CPU", value, timestamp)
            self._events.emit("cpu_usage", value)
            self._emit_performance()

    def process_memory_data(self, value: float, timestamp: datetime) -> None:
        with self._data_lock:
            self.last_memory_usage = value
            total = self._memory.total()
            used = self._memory.used()
            self._store("Memory", value, timestamp)
            self._events.emit("memory_stats", total, used, total - used)
            self._emit_performance()

    def process_disk_data(self, value: float, timestamp: datetime) -> None:
        with self._data_lock:
            self.last_disk_io = value
            read_bytes = int(value * _MIB / 2)
            self._store("Disk", value, timestamp)
            self._events.emit("disk_stats", read_bytes, read_bytes)
            self._emit_performance()

    def process_network_data(self, value: float, timestamp: datetime) -> None:
        with self._data_lock:
            self.last_network_usage = value
            sent, received = self._network.last
            self._store("Network", value, timestamp)
            self._events.emit("network_stats", sent / _MIB, received / _MIB)
            self._emit_performance()

    def check_gpu(self) -> bool:
        """Probe for a GPU, announce changes, and sample it when present."""
        was_available = self._gpu_available
        old_info = self._gpu_info
        info = self._gpu_probe.detect() if self._gpu_probe is not None else None
        if info is not None:
            self._gpu_info = info
        self._gpu_available = info is not None

        if self._gpu_available != was_available or self._gpu_info != old_info:
            self._events.emit(
                "gpu_availability",
                self._gpu_available,
                self._gpu_info.name,
                self._gpu_info.driver_version,
            )
        if self._gpu_available:
            self._sample_gpu()
        return self._gpu_available

    def _sample_gpu(self) -> None:
        if self._gpu_probe is None:
            return
        stats = self._gpu_probe.stats(self._gpu_info)
        if stats is None:
            return
        self._events.emit(
            "gpu_stats",
            stats.usage,
            stats.temperature,
            stats.memory_used,
            stats.memory_total,
        )
        self._store("GPU", stats.usage, None)

    def _store(self, kind: str, value: float, timestamp: datetime | None) -> None:
        storage = self.storage
        if storage is not None and storage.initialized:
            storage.store_sample(kind, value, timestamp)

    def _emit_performance(self) -> None:
        self._events.emit(
            "performance_data",
            self.last_cpu_usage,
            self.last_memory_usage,
            self.last_disk_io,
            self.last_network_usage,
        )

    def _gpu_loop(self, halt: threading.Event) -> None:
        while not halt.wait(_GPU_CHECK_SECONDS):
            self.check_gpu()

    def _stop_gpu_timer(self) -> None:
        self._gpu_halt.set()
        thread, self._gpu_thread = self._gpu_thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()