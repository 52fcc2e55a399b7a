import threading

import pytest

from perfwatch.gpu import NO_DRIVER, NO_GPU_NAME, GpuInfo, GpuStats
from perfwatch.sampler import Sampler

MIB = 1024 * 1024


class FakeCpu:
    def __init__(self, value):
        self.value = value

    def usage(self):
        return self.value


class FakeMemory:
    def __init__(self, total, used, percent):
        self._total = total
        self._used = used
        self._percent = percent

    def usage(self):
        return self._percent

    def total(self):
        return self._total

    def used(self):
        return self._used


class FakeDisk:
    def __init__(self, value):
        self.value = value

    def io(self):
        return self.value


class FakeNetwork:
    def __init__(self, sent, received):
        self.pair = (sent, received)

    def usage_detailed(self):
        return self.pair


class FakeProbe:
    def __init__(self, info=None, stats=None):
        self.info = info
        self.stats_value = stats
        self.stats_calls = []

    def detect(self):
        return self.info

    def stats(self, info):
        self.stats_calls.append(info)
        return self.stats_value


def make_sampler(probe=None):
    return Sampler(
        cpu=FakeCpu(42.5),
        memory=FakeMemory(8192, 2048, 25.0),
        disk=FakeDisk(1.5),
        network=FakeNetwork(2 * MIB, 3 * MIB),
        storage=None,
        gpu_probe=probe,
    )


def record(sampler, event):
    calls = []
    sampler.connect(event, lambda *args: calls.append(args))
    return calls


def test_collect_emits_cpu_usage():
    sampler = make_sampler()
    calls = record(sampler, "cpu_usage")
    sampler.collect()
    assert calls == [(42.5,)]


def test_collect_emits_memory_stats_with_free():
    sampler = make_sampler()
    calls = record(sampler, "memory_stats")
    sampler.collect()
    assert calls == [(8192, 2048, 8192 - 2048)]


def test_collect_emits_network_received_then_sent():
    sampler = make_sampler()
    calls = record(sampler, "network_stats")
    sampler.collect()
    assert calls == [(3.0, 2.0)]


def test_collect_emits_disk_io_twice():
    sampler = make_sampler()
    calls = record(sampler, "disk_stats")
    sampler.collect()
    assert calls == [(1.5, 1.5)]


def test_collect_emits_performance_data_and_remembers_it():
    sampler = make_sampler()
    calls = record(sampler, "performance_data")
    sampler.collect()
    assert calls == [(42.5, 25.0, 1.5, 5.0)]
    assert sampler.last_cpu_usage == 42.5
    assert sampler.last_network_usage == 5.0


def test_unknown_event_is_rejected():
    sampler = make_sampler()
    with pytest.raises(ValueError):
        sampler.connect("bogus", lambda: None)


def test_without_gpu_uses_placeholder_identity():
    sampler = make_sampler()
    stats = record(sampler, "gpu_stats")
    assert sampler.check_gpu() is False
    assert sampler.gpu_info == GpuInfo(NO_GPU_NAME, NO_DRIVER)
    sampler.collect()
    assert stats == []


def test_gpu_connect_is_announced():
    probe = FakeProbe()
    sampler = make_sampler(probe)
    availability = record(sampler, "gpu_availability")
    notes = record(sampler, "gpu_notification")
    probe.info = GpuInfo("RTX Test", "555.1")
    sampler.collect()
    assert availability == [(True, "RTX Test", "555.1")]
    assert notes == [("GPU状态", "GPU已连接: RTX Test")]


def test_gpu_disconnect_is_announced():
    probe = FakeProbe(info=GpuInfo("RTX Test", "555.1"))
    sampler = make_sampler(probe)
    assert sampler.gpu_available is True
    notes = record(sampler, "gpu_notification")
    probe.info = None
    sampler.collect()
    assert notes == [("GPU状态", "GPU已断开连接")]
    assert sampler.gpu_info.name == NO_GPU_NAME


def test_gpu_stats_are_forwarded():
    stats = GpuStats(usage=30.0, temperature=60.0, memory_used=MIB, memory_total=4 * MIB)
    probe = FakeProbe(info=GpuInfo("RTX Test", "555.1"), stats=stats)
    sampler = make_sampler(probe)
    calls = record(sampler, "gpu_stats")
    sampler.collect()
    assert calls == [(30.0, 60.0, MIB, 4 * MIB)]
    assert probe.stats_calls == [GpuInfo("RTX Test", "555.1")]


def test_unreadable_gpu_stats_become_zero():
    probe = FakeProbe(info=GpuInfo("Some GPU", "1"), stats=None)
    sampler = make_sampler(probe)
    calls = record(sampler, "gpu_stats")
    sampler.collect()
    assert calls == [(0.0, 0.0, 0, 0)]


def test_start_rejects_nonpositive_interval():
    sampler = make_sampler()
    with pytest.raises(ValueError):
        sampler.start(0)


def test_start_announces_gpu_state_and_collects_periodically():
    sampler = make_sampler()
    availability = record(sampler, "gpu_availability")
    collected = threading.Event()
    sampler.connect("cpu_usage", lambda value: collected.set())
    sampler.start(10)
    try:
        assert availability[0] == (False, NO_GPU_NAME, NO_DRIVER)
        assert collected.wait(2.0)
        assert sampler.running
    finally:
        sampler.stop()
    assert not sampler.running