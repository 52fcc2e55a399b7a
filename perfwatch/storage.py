"""Sample storage: an in-memory ring of system snapshots plus a SQLite sample log."""

from __future__ import annotations

import os
import sqlite3
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

MAX_DATA_POINTS = 3600

_CREATE_SYSTEM_DATA = (
    "CREATE TABLE IF NOT EXISTS system_data ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT,"
    "timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,"
    "cpu_usage REAL,"
    "memory_usage REAL,"
    "disk_usage REAL,"
    "network_upload REAL,"
    "network_download REAL"
    ")"
)
_CREATE_SAMPLES = (
    "CREATE TABLE IF NOT EXISTS samples ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT,"
    "type TEXT NOT NULL,"
    "value REAL,"
    "timestamp TEXT"
    ")"
)
_INSERT_SAMPLE = "INSERT INTO samples (type, value, timestamp) VALUES (?, ?, ?)"

_CSV_HEADER = "time,CPU,Memory,Disk,Network,GPU\n"
_CSV_TIME_FORMAT = "%Y-%m-%d :%M:%S"


@dataclass
class SystemData:
    """One snapshot of the main system metrics."""

    cpu_usage: float
    memory_usage: float
    disk_usage: float
    network_upload: float
    network_download: float
    gpu_usage: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)


class DataStorage:
    """Keeps recent snapshots in memory and logs samples to a SQLite database."""

    def __init__(self, max_points: int = MAX_DATA_POINTS) -> None:
        if max_points <= 0:
            raise ValueError(f"max_points must be positive, got {max_points}")
        self._data: deque[SystemData] = deque(maxlen=max_points)
        self._db: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        self.db_path: Path | None = None

    def __enter__(self) -> DataStorage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def initialized(self) -> bool:
        return self._db is not None

    @property
    def system_data(self) -> list[SystemData]:
        """The snapshots currently held, oldest first."""
        with self._lock:
            return list(self._data)

    def initialize(self, db_path: str | os.PathLike[str]) -> None:
        """Open (creating if needed) the database and its tables.

        Calling it again once initialised does nothing.
        """
        with self._lock:
            if self._db is not None:
                return
            path = Path(db_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(path, check_same_thread=False)
            try:
                with connection:
                    connection.execute(_CREATE_SYSTEM_DATA)
                    connection.execute(_CREATE_SAMPLES)
            except sqlite3.Error:
                connection.close()
                raise
            self._db = connection
            self.db_path = path

    def close(self) -> None:
        """Close the database; the in-memory snapshots are kept."""
        with self._lock:
            if self._db is not None:
                self._db.close()
                self._db = None

    def store_data(
        self,
        cpu: float,
        memory: float,
        disk: float,
        upload: float,
        download: float,
    ) -> None:
        """Record a snapshot, dropping the oldest once the limit is reached."""
        snapshot = SystemData(
            cpu_usage=cpu,
            memory_usage=memory,
            disk_usage=disk,
            network_upload=upload,
            network_download=download,
        )
        with self._lock:
            self._data.append(snapshot)

    def export_system_data(
        self,
        filename: str | os.PathLike[str],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> None:
        """Write the snapshots (optionally limited to a time range) as CSV."""
        with self._lock:
            rows = list(self._data)
        with open(filename, "w", encoding="utf-8") as out:
            out.write(_CSV_HEADER)
            for data in rows:
                if start is not None and data.timestamp < start:
                    continue
                if end is not None and data.timestamp > end:
                    continue
                network_total = (data.network_upload + data.network_download) / 1024.0
                out.write(
                    f"{data.timestamp.strftime(_CSV_TIME_FORMAT)},"
                    f"{data.cpu_usage:.4f},"
                    f"{data.memory_usage:.4f},"
                    f"{data.disk_usage:.2f},"
                    f"{network_total:.0f},"
                    f"{data.gpu_usage:.0f}\n"
                )

    def clear(self) -> None:
        """Drop all in-memory snapshots."""
        with self._lock:
            self._data.clear()

    def store_sample(
        self, kind: str, value: float, timestamp: datetime | None = None
    ) -> None:
        """Insert one typed sample; a GPU sample also updates the latest snapshot."""
        if timestamp is None:
            timestamp = datetime.now()
        with self._lock:
            if self._db is None:
                raise RuntimeError("storage is not initialized")
            with self._db:
                self._db.execute(
                    _INSERT_SAMPLE,
                    (kind, value, timestamp.isoformat(timespec="seconds")),
                )
            if kind == "GPU" and self._data:
                self._data[-1].gpu_usage = value