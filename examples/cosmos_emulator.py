#!/usr/bin/env python3
"""Example: create the demo container and item in the local Cosmos DB Emulator.

Usage:
    python examples/cosmos_emulator.py
"""

import sys

from azdb_connect import ConnectionTester, CosmosSettings
from azdb_connect._constants import EMULATOR_ENDPOINT

settings = CosmosSettings(
    account_endpoint=EMULATOR_ENDPOINT,
    database_name="TestDatabase",
    container_name="TestContainer",
    connection_method="Emulator",
)

outcome = ConnectionTester.for_settings(settings, crud=True).run_method("Emulator")
if not outcome.succeeded:
    print(f"FAILED: {outcome.reason}")
    sys.exit(1)

print(f"Created item {outcome.result['record_id']} "
      f"({outcome.result['request_charge']:.2f} RU).")
for step in outcome.result["crud"]:
    print(f"  {step['step']:<6} {step['request_charge']:.2f} RU")
