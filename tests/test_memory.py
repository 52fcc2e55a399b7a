import pytest

from perfwatch.memory import MemInfo, MemoryMonitor, parse_meminfo

MEMINFO = (
    "MemTotal:        1000 kB\n"
    "MemFree:          200 kB\n"
    "MemAvailable:     600 kB\n"
    "Buffers:          100 kB\n"
    "Cached:           200 kB\n"
    "SwapCached:       999 kB\n"
)


@pytest.fixture
def proc(tmp_path):
    (tmp_path / "meminfo").write_text(MEMINFO)
    return tmp_path


def test_parse_picks_the_right_fields():
    info = parse_meminfo(MEMINFO)
    assert info == MemInfo(total=1000, free=200, buffers=100, cached=200)


def test_swap_cached_is_not_taken_for_cached():
    info = parse_meminfo("MemTotal: 10 kB\nSwapCached: 7 kB\n")
    assert info.cached == 0


def test_used_excludes_free_buffers_and_cache():
    info = parse_meminfo(MEMINFO)
    assert info.used == info.total - info.free - info.buffers - info.cached


def test_empty_meminfo_gives_zero_usage():
    assert parse_meminfo("").percent == 0.0


def test_monitor_usage_percent(proc):
    assert MemoryMonitor(proc).usage() == pytest.approx(50.0)


def test_monitor_total_in_bytes(proc):
    assert MemoryMonitor(proc).total() == 1000 * 1024


def test_monitor_used_in_bytes(proc):
    monitor = MemoryMonitor(proc)
    assert monitor.used() == 500 * 1024
    assert monitor.used() <= monitor.total()


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        MemoryMonitor(tmp_path).usage()