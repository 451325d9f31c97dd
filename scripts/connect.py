#!/usr/bin/env python3
"""Try every Azure SQL authentication method from the development settings.

Usage:
    python scripts/connect.py [appsettings.json]
"""

import sys

from azdb_connect import ConnectionTester, load_settings
from azdb_connect.client import all_methods_exit_code
from azdb_connect.report import summary_lines

path = sys.argv[1] if len(sys.argv) > 1 else "appsettings.Development.json"
tester = ConnectionTester.for_settings(load_settings(path, "sql"))

outcomes = tester.run_all()
print("\n".join(summary_lines(outcomes)))
raise SystemExit(all_methods_exit_code(outcomes))
