"""Tests for azdb_connect.queries -- SQL helpers with fake cursors."""

from __future__ import annotations

import pytest

from azdb_connect import queries


class TestSplitTableName:
    def test_unqualified_defaults_to_dbo(self):
        assert queries.split_table_name("TestTable") == ("dbo", "TestTable")

    def test_qualified(self):
        assert queries.split_table_name("sales.Orders") == ("sales", "Orders")

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="Table name must be provided"):
            queries.split_table_name("  ")


class TestQualifiedName:
    def test_brackets(self):
        assert queries.qualified_name("TestTable") == "[dbo].[TestTable]"

    def test_escapes_closing_bracket(self):
        assert queries.qualified_name("dbo.we]ird") == "[dbo].[we]]ird]"


class TestServerInfo:
    def test_first_version_line(self, fake_cursor):
        cur = fake_cursor(results=[[("Microsoft SQL Azure (RTM)\n\tCopyright", "mydb")]])
        assert queries.server_info(cur) == {
            "version": "Microsoft SQL Azure (RTM)", "database": "mydb",
        }
        assert "@@VERSION" in cur.executed[0][0]

    def test_no_row_raises(self, fake_cursor):
        with pytest.raises(RuntimeError, match="no rows"):
            queries.server_info(fake_cursor(results=[[]]))


class TestTableExists:
    def test_true_when_counted(self, fake_cursor):
        cur = fake_cursor(results=[[(1,)]])
        assert queries.table_exists(cur, "TestTable") is True
        assert cur.executed[0][1] == ("dbo", "TestTable")

    def test_false_when_zero(self, fake_cursor):
        assert queries.table_exists(fake_cursor(results=[[(0,)]]), "TestTable") is False

    def test_false_when_no_row(self, fake_cursor):
        assert queries.table_exists(fake_cursor(results=[[]]), "TestTable") is False


class TestStatements:
    def test_create_table_schema(self):
        sql = queries.build_create_table("TestTable")
        assert sql.startswith("CREATE TABLE [dbo].[TestTable] (")
        assert "Id UNIQUEIDENTIFIER PRIMARY KEY DEFAULT NEWID()" in sql
        assert "Name NVARCHAR(255) NOT NULL" in sql
        assert "CreatedAt DATETIME2 DEFAULT GETUTCDATE()" in sql
        assert "Tags NVARCHAR(500)" in sql

    def test_insert_has_one_placeholder_per_column(self):
        sql = queries.build_insert("TestTable")
        assert sql.count("?") == len(queries.DEMO_COLUMNS)
        assert "INSERT INTO [dbo].[TestTable] (Id, Name," in sql

    def test_update_and_delete_filter_by_id(self):
        assert queries.build_update_status("T").endswith("WHERE Id = ?")
        assert queries.build_delete_by_id("T") == "DELETE FROM [dbo].[T] WHERE Id = ?"
        assert queries.build_select_by_id("T").endswith("FROM [dbo].[T] WHERE Id = ?")
