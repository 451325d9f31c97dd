#!/usr/bin/env python3
"""Example: connect to Azure SQL Database with SQL authentication.

Usage:
    # Set credentials in .env or as environment variables, then:
    python examples/connect.py

Requires the Microsoft ODBC Driver 18 for SQL Server.
"""

from azdb_connect.connection import AzureSQLConnection, load_dotenv
import os
import sys

load_dotenv()

server = os.environ.get("AZURE_SQL_SERVER", "")
database = os.environ.get("AZURE_SQL_DATABASE", "master")
user = os.environ.get("AZURE_SQL_USER", "")
password = os.environ.get("AZURE_SQL_PASSWORD", "")

if not server or not password:
    print("ERROR: AZURE_SQL_SERVER / AZURE_SQL_PASSWORD are not set in .env or environment.")
    sys.exit(1)

try:
    with AzureSQLConnection(server, database) as az:
        az.connect_with_sql_authentication(user, password)
        print(f"Connected to {az.server_info['database']} on {server} as {user}.")
        print(f"  Version    : {az.server_info['version']}")
except Exception as exc:
    print(f"FAILED to connect to {server} as {user}.")
    print(f"  Error type : {type(exc).__name__}")
    print(f"  Detail     : {exc}")
    sys.exit(1)
