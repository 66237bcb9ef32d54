"""
LOT counters for the WITH_COUNTER and CUSTOM patterns.

A counter is a durable integer per (logbook, species[, catch date]).
Increment-and-read is a single critical section: two generations racing
on the same key always get different values.
"""

import os
import sqlite3
import threading
from datetime import date
from typing import Protocol

from .core import COUNTER_DB_PATH
from .models import lot_date


class CounterStore(Protocol):
    def increment_and_get(self, key: str) -> int:
        ...

    def peek(self, key: str) -> int:
        ...


def counter_key(logbook_number: str, fao_code: str, catch_date: date | None = None) -> str:
    """Build the counter key; a catch date makes it a daily counter."""
    key = f"lot_counter:{logbook_number}:{fao_code}"
    if catch_date is not None:
        key += f":{lot_date(catch_date)}"
    return key


class MemoryCounterStore:
    """In-process counters guarded by a mutex. Used in tests and the demo."""

    def __init__(self):
        self._values: dict[str, int] = {}
        self._lock = threading.Lock()

    def increment_and_get(self, key: str) -> int:
        with self._lock:
            value = self._values.get(key, 0) + 1
            self._values[key] = value
            return value

    def peek(self, key: str) -> int:
        with self._lock:
            return self._values.get(key, 0)


class SqliteCounterStore:
    """Counters shared between processes through one SQLite file.

    Each increment runs in a BEGIN IMMEDIATE transaction, which takes the
    database write lock before reading.
    """

    def __init__(self, db_path: str | None = None, timeout: float = 10.0):
        self.db_path = db_path or COUNTER_DB_PATH
        self.timeout = timeout
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS lot_counters ("
                " key TEXT PRIMARY KEY,"
                " value INTEGER NOT NULL)"
            )
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        # isolation_level=None: transactions are managed explicitly below
        return sqlite3.connect(self.db_path, timeout=self.timeout, isolation_level=None)

    def increment_and_get(self, key: str) -> int:
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                conn.execute(
                    "INSERT INTO lot_counters (key, value) VALUES (?, 1) "
                    "ON CONFLICT(key) DO UPDATE SET value = value + 1",
                    (key,),
                )
                row = conn.execute(
                    "SELECT value FROM lot_counters WHERE key = ?", (key,)
                ).fetchone()
                conn.execute("COMMIT")
            except sqlite3.Error:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()
        return int(row[0])

    def peek(self, key: str) -> int:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT value FROM lot_counters WHERE key = ?", (key,)
            ).fetchone()
        finally:
            conn.close()
        return int(row[0]) if row else 0
