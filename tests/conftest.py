"""Shared fixtures for azdb_connect tests."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest


class FakeCursor:
    """Lightweight stand-in for a DB-API 2.0 cursor.

    Supply ``results`` as a list of lists -- each inner list is a set of rows
    returned by one successive ``execute()`` call.  Every executed statement
    is recorded in ``executed`` as ``(sql, params)``.
    """

    def __init__(
        self,
        results: Optional[List[List[Tuple[Any, ...]]]] = None,
        rowcount: int = 1,
    ) -> None:
        self._results = list(results or [])
        self._call_idx = -1
        self._rows: List[Tuple[Any, ...]] = []
        self.rowcount = rowcount
        self.executed: List[Tuple[str, Any]] = []
        self.closed = False

    def execute(self, sql: str, params: Any = None) -> None:
        self._call_idx += 1
        self.executed.append((sql, params))
        if self._call_idx < len(self._results):
            self._rows = list(self._results[self._call_idx])
        else:
            self._rows = []

    def fetchall(self) -> List[Tuple[Any, ...]]:
        return self._rows

    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        return self._rows[0] if self._rows else None

    def close(self) -> None:
        self.closed = True


class FakeSqlDatabase:
    """Tiny in-memory SQL Server: tracks tables and demo rows by id.

    Understands only the statements produced by :mod:`azdb_connect.queries`.
    """

    def __init__(self) -> None:
        self.tables: List[str] = []
        self.rows: dict = {}
        self.commits = 0
        self.cursors: List["_FakeSqlCursor"] = []

    def cursor(self) -> "_FakeSqlCursor":
        cur = _FakeSqlCursor(self)
        self.cursors.append(cur)
        return cur

    def commit(self) -> None:
        self.commits += 1

    def close(self) -> None:
        pass


class _FakeSqlCursor:
    def __init__(self, db: FakeSqlDatabase) -> None:
        self._db = db
        self._rows: List[Tuple[Any, ...]] = []
        self.rowcount = -1
        self.closed = False

    def execute(self, sql: str, params: Any = None) -> None:
        db = self._db
        self._rows = []
        if sql.startswith("SELECT COUNT(*) FROM INFORMATION_SCHEMA.TABLES"):
            name = ".".join(params)
            self._rows = [(db.tables.count(name),)]
        elif sql.startswith("CREATE TABLE"):
            name = sql.split(" (", 1)[0][len("CREATE TABLE "):]
            name = name.replace("[", "").replace("]", "")
            if name in db.tables:
                raise RuntimeError(f"There is already an object named '{name}'")
            db.tables.append(name)
        elif sql.startswith("INSERT INTO"):
            db.rows[params[0]] = list(params)
            self.rowcount = 1
        elif sql.startswith("SELECT Id"):
            row = db.rows.get(params[0])
            self._rows = [tuple(row)] if row else []
        elif sql.startswith("UPDATE"):
            status, value, record_id = params
            row = db.rows.get(record_id)
            if row:
                row[4], row[6] = status, value
            self.rowcount = 1 if row else 0
        elif sql.startswith("DELETE"):
            self.rowcount = 1 if db.rows.pop(params[0], None) else 0
        else:
            raise AssertionError(f"unexpected SQL: {sql}")

    def fetchone(self) -> Optional[Tuple[Any, ...]]:
        return self._rows[0] if self._rows else None

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def fake_cursor():
    """Return the ``FakeCursor`` *class* so tests can instantiate with custom data."""
    return FakeCursor


@pytest.fixture()
def fake_sql_db():
    return FakeSqlDatabase()


@pytest.fixture()
def mock_conn():
    """Return a ``MagicMock`` that looks like a DB-API 2.0 connection."""
    conn = MagicMock()
    return conn
