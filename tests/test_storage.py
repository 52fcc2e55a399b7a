import sqlite3
from datetime import datetime, timedelta

import pytest

from perfwatch.storage import DataStorage, SystemData


def _rows(db_path):
    with sqlite3.connect(db_path) as connection:
        return connection.execute(
            "SELECT type, value, timestamp FROM samples ORDER BY id"
        ).fetchall()


def test_invalid_max_points():
    with pytest.raises(ValueError):
        DataStorage(max_points=0)


def test_store_data_keeps_latest_points():
    storage = DataStorage(max_points=3)
    for i in range(5):
        storage.store_data(float(i), 0.0, 0.0, 0.0, 0.0)
    assert [d.cpu_usage for d in storage.system_data] == [2.0, 3.0, 4.0]


def test_store_data_fields():
    storage = DataStorage()
    storage.store_data(10.0, 20.0, 30.0, 40.0, 50.0)
    (data,) = storage.system_data
    assert isinstance(data, SystemData)
    assert (
        data.cpu_usage,
        data.memory_usage,
        data.disk_usage,
        data.network_upload,
        data.network_download,
        data.gpu_usage,
    ) == (10.0, 20.0, 30.0, 40.0, 50.0, 0.0)


def test_clear():
    storage = DataStorage()
    storage.store_data(1.0, 2.0, 3.0, 4.0, 5.0)
    storage.clear()
    assert storage.system_data == []


def test_initialize_creates_directory_and_tables(tmp_path):
    db_path = tmp_path / "Data" / "data.db"
    with DataStorage() as storage:
        storage.initialize(db_path)
        assert storage.initialized
    assert db_path.exists()
    with sqlite3.connect(db_path) as connection:
        names = {
            row[0]
            for row in connection.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    assert {"system_data", "samples"} <= names


def test_initialize_twice_keeps_first_path(tmp_path):
    storage = DataStorage()
    storage.initialize(tmp_path / "a.db")
    storage.initialize(tmp_path / "b.db")
    assert storage.db_path == tmp_path / "a.db"
    assert not (tmp_path / "b.db").exists()
    storage.close()


def test_store_sample_writes_row(tmp_path):
    db_path = tmp_path / "data.db"
    moment = datetime(2024, 5, 6, 7, 8, 9)
    with DataStorage() as storage:
        storage.initialize(db_path)
        storage.store_sample("CPU", 42.5, moment)
    ((kind, value, stamp),) = _rows(db_path)
    assert kind == "CPU"
    assert value == 42.5
    assert datetime.fromisoformat(stamp) == moment


def test_store_sample_default_timestamp(tmp_path):
    db_path = tmp_path / "data.db"
    before = datetime.now().replace(microsecond=0)
    with DataStorage() as storage:
        storage.initialize(db_path)
        storage.store_sample("Memory", 1.0)
    after = datetime.now()
    ((_, _, stamp),) = _rows(db_path)
    assert before <= datetime.fromisoformat(stamp) <= after


def test_store_sample_requires_initialize():
    storage = DataStorage()
    with pytest.raises(RuntimeError):
        storage.store_sample("CPU", 1.0)


def test_store_sample_after_close_raises(tmp_path):
    storage = DataStorage()
    storage.initialize(tmp_path / "data.db")
    storage.close()
    assert not storage.initialized
    with pytest.raises(RuntimeError):
        storage.store_sample("CPU", 1.0)


def test_gpu_sample_updates_last_snapshot(tmp_path):
    with DataStorage() as storage:
        storage.initialize(tmp_path / "data.db")
        storage.store_data(1.0, 2.0, 3.0, 4.0, 5.0)
        storage.store_data(6.0, 7.0, 8.0, 9.0, 10.0)
        storage.store_sample("GPU", 77.0)
        first, last = storage.system_data
    assert last.gpu_usage == 77.0
    assert first.gpu_usage == 0.0


def test_non_gpu_sample_leaves_snapshot(tmp_path):
    with DataStorage() as storage:
        storage.initialize(tmp_path / "data.db")
        storage.store_data(1.0, 2.0, 3.0, 4.0, 5.0)
        storage.store_sample("CPU", 77.0)
        (data,) = storage.system_data
    assert data.gpu_usage == 0.0


def test_export_header_and_row(tmp_path):
    storage = DataStorage()
    storage.store_data(12.5, 50.0, 1.25, 1024.0, 2048.0)
    out = tmp_path / "system.csv"
    storage.export_system_data(out)
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "time,CPU,Memory,Disk,Network,GPU"
    assert len(lines) == 2
    fields = lines[1].split(",")
    assert len(fields) == 6
    assert fields[1] == "12.5000"
    assert fields[4] == "3"


def test_export_time_range(tmp_path):
    storage = DataStorage()
    storage.store_data(1.0, 2.0, 3.0, 4.0, 5.0)
    now = datetime.now()
    hour = timedelta(hours=1)
    out = tmp_path / "system.csv"

    storage.export_system_data(out, now + hour, None)
    assert len(out.read_text(encoding="utf-8").splitlines()) == 1

    storage.export_system_data(out, None, now - hour)
    assert len(out.read_text(encoding="utf-8").splitlines()) == 1

    storage.export_system_data(out, now - hour, now + hour)
    assert len(out.read_text(encoding="utf-8").splitlines()) == 2


def test_export_to_missing_directory_raises(tmp_path):
    storage = DataStorage()
    with pytest.raises(OSError):
        storage.export_system_data(tmp_path / "missing" / "system.csv")