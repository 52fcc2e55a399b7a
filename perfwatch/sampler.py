"""Timer-driven sampler that polls every monitor and publishes the readings."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from perfwatch.cpu import CpuMonitor
from perfwatch.disk import DiskMonitor
from perfwatch.gpu import NO_DRIVER, NO_GPU_NAME, GpuInfo, GpuStats
from perfwatch.memory import MemoryMonitor
from perfwatch.network import NetworkMonitor

_MIB = 1024.0 * 1024.0
_NOTIFICATION_TITLE = "GPU状态"
_GPU_CONNECTED = "GPU已连接: {}"
_GPU_DISCONNECTED = "GPU已断开连接"

SAMPLER_EVENTS = (
    "cpu_usage",
    "memory_stats",
    "network_stats",
    "disk_stats",
    "gpu_stats",
    "gpu_availability",
    "gpu_notification",
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


class Sampler:
    """Collects all metrics on a fixed interval and emits them to listeners.

    Events and their arguments:
    ``cpu_usage(percent)``, ``memory_stats(total, used, free)``,
    ``network_stats(received_mib, sent_mib)``, ``disk_stats(read, write)``,
    ``gpu_stats(usage, temperature, memory_used, memory_total)``,
    ``gpu_availability(available, name, driver)``,
    ``gpu_notification(title, message)`` and
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
        self._network = network if network is not None else NetworkMonitor()
        self.storage = storage
        self._gpu_probe = gpu_probe
        self._events = _Events(SAMPLER_EVENTS)
        self._gpu_available = False
        self._gpu_info = GpuInfo(NO_GPU_NAME, NO_DRIVER)
        self._timer: threading.Thread | None = None
        self._halt = threading.Event()
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

    @property
    def running(self) -> bool:
        return self._timer is not None and self._timer.is_alive()

    def connect(self, event: str, callback: Callable[..., Any]) -> None:
        """Register ``callback`` for ``event``; unknown names raise ValueError."""
        self._events.connect(event, callback)

    def start(self, interval: int = 1000) -> None:
        """(Re)start periodic collection every ``interval`` milliseconds."""
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.stop()
        self._halt = threading.Event()
        self._timer = threading.Thread(
            target=self._run,
            args=(self._halt, interval / 1000.0),
            name="sampler",
            daemon=True,
        )
        self._timer.start()
        self.check_gpu()
        self._emit_availability()

    def stop(self) -> None:
        """Stop periodic collection."""
        self._halt.set()
        timer, self._timer = self._timer, None
        if timer is not None and timer is not threading.current_thread():
            timer.join()

    def collect(self) -> None:
        """Take one reading of every metric and emit the results."""
        was_available = self._gpu_available
        self.check_gpu()
        if was_available != self._gpu_available:
            self._emit_availability()
            if self._gpu_available:
                message = _GPU_CONNECTED.format(self._gpu_info.name)
            else:
                message = _GPU_DISCONNECTED
            self._events.emit("gpu_notification", _NOTIFICATION_TITLE, message)

        cpu_usage = self._cpu.usage()
        memory_usage = self._memory.usage()
        disk_io = self._disk.io()

        self._events.emit("cpu_usage", cpu_usage)

        total = self._memory.total()
        used = self._memory.used()
        self._events.emit("memory_stats", total, used, total - used)

        sent, received = self._network.usage_detailed()
        network_usage = (sent + received) / _MIB
        self._events.emit("network_stats", received / _MIB, sent / _MIB)

        self._events.emit("disk_stats", disk_io, disk_io)

        if self._gpu_available:
            self._sample_gpu()

        self.last_cpu_usage = cpu_usage
        self.last_memory_usage = memory_usage
        self.last_disk_io = disk_io
        self.last_network_usage = network_usage
        self._events.emit(
            "performance_data", cpu_usage, memory_usage, disk_io, network_usage
        )

    def check_gpu(self) -> bool:
        """Probe for a GPU, update the stored identity and return availability."""
        info = self._gpu_probe.detect() if self._gpu_probe is not None else None
        if info is None:
            self._gpu_info = GpuInfo(NO_GPU_NAME, NO_DRIVER)
            self._gpu_available = False
        else:
            self._gpu_info = info
            self._gpu_available = True
        return self._gpu_available

    def _emit_availability(self) -> None:
        self._events.emit(
            "gpu_availability",
            self._gpu_available,
            self._gpu_info.name,
            self._gpu_info.driver_version,
        )

    def _sample_gpu(self) -> None:
        if not self._gpu_available or self._gpu_probe is None:
            return
        stats = self._gpu_probe.stats(self._gpu_info) or GpuStats()
        self._events.emit(
            "gpu_stats",
            stats.usage,
            stats.temperature,
            stats.memory_used,
            stats.memory_total,
        )

    def _run(self, halt: threading.Event, seconds: float) -> None:
        while not halt.wait(seconds):
            self.collect()