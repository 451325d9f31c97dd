"""SQL helpers for the Azure SQL smoke test.

All statement text lives here so it can be tested independently from the
connection and orchestration layers.  Every helper takes a DB-API cursor
or returns a statement using ``?`` placeholders.

Table names may be ``table`` or ``schema.table``; unqualified names are
placed in ``dbo``.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

DEMO_COLUMNS = (
    "Id", "Name", "Description", "Category", "Status", "CreatedAt", "Value", "Tags",
)


def _bracket_quote(name: str) -> str:
    """Bracket-quote a SQL Server identifier, escaping embedded ``]``."""
    return f"[{name.replace(']', ']]')}]"


def split_table_name(name: str) -> Tuple[str, str]:
    """Return ``(schema, table)`` for *name*, defaulting the schema to ``dbo``."""
    name = name.strip()
    if not name:
        raise ValueError("Table name must be provided")
    if "." in name:
        schema, table = name.split(".", 1)
        return schema, table
    return "dbo", name


def qualified_name(name: str) -> str:
    schema, table = split_table_name(name)
    return f"{_bracket_quote(schema)}.{_bracket_quote(table)}"


def server_info(cursor: Any) -> Dict[str, str]:
    """Return the current database name and the first line of ``@@VERSION``."""
    cursor.execute("SELECT @@VERSION AS Version, DB_NAME() AS DatabaseName")
    row = cursor.fetchone()
    if row is None:
        raise RuntimeError("Validation query returned no rows")
    version = (row[0] or "Unknown").split("\n")[0].strip()
    return {"version": version, "database": row[1]}


def table_exists(cursor: Any, name: str) -> bool:
    """Return ``True`` if *name* exists in ``INFORMATION_SCHEMA.TABLES``."""
    schema, table = split_table_name(name)
    cursor.execute(
        "SELECT COUNT(*) FROM INFORMATION_SCHEMA.TABLES "
        "WHERE TABLE_SCHEMA = ? AND TABLE_NAME = ?",
        (schema, table),
    )
    row = cursor.fetchone()
    return bool(row and row[0])


def build_create_table(name: str) -> str:
    """Return the DDL for the demo table."""
    return (
        f"CREATE TABLE {qualified_name(name)} ("
        "Id UNIQUEIDENTIFIER PRIMARY KEY DEFAULT NEWID(), "
        "Name NVARCHAR(255) NOT NULL, "
        "Description NVARCHAR(MAX), "
        "Category NVARCHAR(100), "
        "Status NVARCHAR(50), "
        "CreatedAt DATETIME2 DEFAULT GETUTCDATE(), "
        "Value INT, "
        "Tags NVARCHAR(500))"
    )


def build_insert(name: str) -> str:
    """Return an INSERT for every demo column, one ``?`` per column."""
    cols = ", ".join(DEMO_COLUMNS)
    placeholders = ", ".join("?" * len(DEMO_COLUMNS))
    return f"INSERT INTO {qualified_name(name)} ({cols}) VALUES ({placeholders})"


def build_select_by_id(name: str) -> str:
    return f"SELECT {', '.join(DEMO_COLUMNS)} FROM {qualified_name(name)} WHERE Id = ?"


def build_update_status(name: str) -> str:
    """UPDATE of ``Status`` and ``Value``; parameters are ``(status, value, id)``."""
    return f"UPDATE {qualified_name(name)} SET Status = ?, Value = ? WHERE Id = ?"


def build_delete_by_id(name: str) -> str:
    return f"DELETE FROM {qualified_name(name)} WHERE Id = ?"
