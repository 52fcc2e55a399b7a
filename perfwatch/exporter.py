"""Export of the logged samples table to CSV."""

from __future__ import annotations

import os
import sqlite3
from contextlib import closing
from datetime import datetime

_HEADER = "type,value,timestamp\n"
_QUERY = "SELECT type, value, timestamp FROM samples"


def export_to_csv(
    db_path: str | os.PathLike[str],
    csv_path: str | os.PathLike[str],
    start: datetime | None = None,
    end: datetime | None = None,
) -> int:
    """Write the samples in ``db_path`` to ``csv_path`` and return the row count.

    The time range applies only when both ``start`` and ``end`` are given.
    Database errors are raised as :class:`sqlite3.Error`.
    """
    query = _QUERY
    params: tuple[str, ...] = ()
    if start is not None and end is not None:
        query += " WHERE timestamp BETWEEN ? AND ?"
        params = (
            start.isoformat(timespec="seconds"),
            end.isoformat(timespec="seconds"),
        )

    with closing(sqlite3.connect(db_path)) as connection:
        rows = connection.execute(query, params).fetchall()

    with open(csv_path, "w", encoding="utf-8") as out:
        out.write(_HEADER)
        for kind, value, stamp in rows:
            number = float(value) if value is not None else 0.0
            out.write(f"{kind or ''},{number:.4f},{stamp or ''}\n")
    return len(rows)