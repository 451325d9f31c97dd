"""Tests for azdb_connect.report -- pure rendering helpers."""

from __future__ import annotations

from azdb_connect.client import Outcome, Status
from azdb_connect.report import (
    RULE,
    banner_lines,
    first_line,
    outcome_line,
    section_header,
    summary_lines,
    truncate_reason,
)


class TestTruncateReason:
    def test_short_unchanged(self):
        assert truncate_reason("Login failed") == "Login failed"

    def test_exactly_limit_unchanged(self):
        assert truncate_reason("x" * 100) == "x" * 100

    def test_long_cut_to_limit(self):
        reason = truncate_reason("y" * 150)
        assert len(reason) == 100
        assert reason == "y" * 97 + "..."

    def test_first_line_only(self):
        text = "\n  Login timeout expired  \nstack line 1\nstack line 2"
        assert truncate_reason(text) == "Login timeout expired"

    def test_empty(self):
        assert first_line("") == ""
        assert truncate_reason("") == ""


class TestBanner:
    def test_lines(self):
        assert banner_lines("CosmosDB", [("Database", "db"), ("Container", "c")]) == [
            "=== CosmosDB Connector Demo ===",
            "Database: db",
            "Container: c",
        ]

    def test_section_header(self):
        assert section_header("ManagedIdentity") == "--- Testing ManagedIdentity ---"


class TestOutcomeLine:
    def test_each_status(self):
        assert outcome_line(Outcome("A", Status.SUCCEEDED)) == "✓ A: succeeded"
        assert outcome_line(Outcome("B", Status.FAILED, "boom")) == "✗ B: boom"
        assert outcome_line(Outcome("C", Status.SKIPPED, "disabled")) == "- C: skipped (disabled)"


class TestSummaryLines:
    def test_groups_and_total(self):
        outcomes = [
            Outcome("ManagedIdentity", Status.SUCCEEDED),
            Outcome("SqlAuthentication", Status.FAILED, "Login failed"),
            Outcome("ConnectionString", Status.SUCCEEDED),
        ]
        lines = summary_lines(outcomes)
        assert lines[:3] == [RULE, "TEST SUMMARY", RULE]
        assert "Successful connections (2):" in lines
        assert "  ✓ ManagedIdentity" in lines
        assert "Failed connections (1):" in lines
        assert "  ✗ SqlAuthentication - Login failed" in lines
        assert "Total: 2/3 connection methods succeeded" in lines
        assert lines[-1] == RULE
        assert not any(line.startswith("Skipped") for line in lines)

    def test_skipped_group_counts_in_total(self):
        outcomes = [
            Outcome("AccountKey", Status.SUCCEEDED),
            Outcome("Emulator", Status.SKIPPED, "disabled"),
        ]
        lines = summary_lines(outcomes)
        assert "Skipped connections (1):" in lines
        assert "  - Emulator - disabled" in lines
        assert "Total: 1/2 connection methods succeeded" in lines
        assert not any(line.startswith("Failed") for line in lines)
