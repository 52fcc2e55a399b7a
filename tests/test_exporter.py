import sqlite3
from datetime import datetime

import pytest

from perfwatch.exporter import export_to_csv
from perfwatch.storage import DataStorage

SAMPLES = [
    ("CPU", 12.34567, "2024-01-01T10:00:00"),
    ("Memory", 50.0, "2024-01-01T12:00:00"),
    ("Disk", 3.0, "2024-01-01T14:00:00"),
]


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "data.db"
    with sqlite3.connect(path) as connection:
        connection.execute(
            "CREATE TABLE samples (id INTEGER PRIMARY KEY AUTOINCREMENT,"
            " type TEXT NOT NULL, value REAL, timestamp TEXT)"
        )
        connection.executemany(
            "INSERT INTO samples (type, value, timestamp) VALUES (?, ?, ?)", SAMPLES
        )
    return path


def _read(path):
    return path.read_text(encoding="utf-8").splitlines()


def test_exports_all_rows(db_path, tmp_path):
    out = tmp_path / "out.csv"
    count = export_to_csv(db_path, out)
    lines = _read(out)
    assert count == len(SAMPLES)
    assert lines[0] == "type,value,timestamp"
    assert [line.split(",")[0] for line in lines[1:]] == [s[0] for s in SAMPLES]
    assert [line.split(",")[2] for line in lines[1:]] == [s[2] for s in SAMPLES]


def test_value_has_four_decimals(db_path, tmp_path):
    out = tmp_path / "out.csv"
    export_to_csv(db_path, out)
    assert _read(out)[1].split(",")[1] == "12.3457"


def test_time_range_filters(db_path, tmp_path):
    out = tmp_path / "out.csv"
    count = export_to_csv(
        db_path, out, datetime(2024, 1, 1, 11), datetime(2024, 1, 1, 13)
    )
    lines = _read(out)
    assert count == 1
    assert lines[1].split(",")[0] == "Memory"


def test_single_bound_is_ignored(db_path, tmp_path):
    out = tmp_path / "out.csv"
    count = export_to_csv(db_path, out, datetime(2024, 1, 1, 11), None)
    assert count == len(SAMPLES)
    assert len(_read(out)) == len(SAMPLES) + 1


def test_missing_table_raises(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        export_to_csv(tmp_path / "empty.db", tmp_path / "out.csv")


def test_unopenable_database_raises(tmp_path):
    with pytest.raises(sqlite3.OperationalError):
        export_to_csv(tmp_path / "nowhere" / "data.db", tmp_path / "out.csv")


def test_unwritable_csv_raises(db_path, tmp_path):
    with pytest.raises(OSError):
        export_to_csv(db_path, tmp_path / "nowhere" / "out.csv")


def test_round_trip_with_storage(tmp_path):
    db = tmp_path / "Data" / "data.db"
    moment = datetime(2024, 3, 4, 5, 6, 7)
    with DataStorage() as storage:
        storage.initialize(db)
        storage.store_sample("GPU", 25.0, moment)
    out = tmp_path / "out.csv"
    assert export_to_csv(db, out) == 1
    kind, value, stamp = _read(out)[1].split(",")
    assert kind == "GPU"
    assert float(value) == 25.0
    assert datetime.fromisoformat(stamp) == moment