"""Create / read / update / delete walkthrough on the demo resource.

Runs after the demo record has been written when ``--crud`` is given.  The
walkthrough inserts its own record and deletes it again, so it leaves the
table or container as it found it.  Returns one ``{"step", ...}`` dict per
operation.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import closing
from typing import Any, Dict, List

from . import queries
from .writer import request_charge, sample_item, sample_row

logger = logging.getLogger(__name__)

UPDATED_STATUS = "Updated"
UPDATED_VALUE = 200


def run_sql_crud(conn: Any, table_name: str) -> List[Dict[str, Any]]:
    logger.info("--- CRUD Operations Demo ---")
    with closing(conn.cursor()) as cur:
        steps = _sql_crud_steps(cur, table_name)
    conn.commit()

    for s in steps:
        logger.info("  %-6s ok %s", s["step"], {k: v for k, v in s.items() if k != "step"})
    return steps


def _sql_crud_steps(cur: Any, table_name: str) -> List[Dict[str, Any]]:
    steps: List[Dict[str, Any]] = []
    row = sample_row(uuid.uuid4())
    record_id = row[0]

    logger.info("Creating record with id: %s", record_id)
    cur.execute(queries.build_insert(table_name), row)
    steps.append({"step": "create", "rows_affected": cur.rowcount})

    logger.info("Reading record with id: %s", record_id)
    cur.execute(queries.build_select_by_id(table_name), (record_id,))
    found = cur.fetchone()
    if found is None:
        raise RuntimeError(f"Record {record_id} not found after insert")
    steps.append({"step": "read", "name": found[1]})

    logger.info("Updating record with id: %s", record_id)
    cur.execute(
        queries.build_update_status(table_name), (UPDATED_STATUS, UPDATED_VALUE, record_id),
    )
    steps.append({"step": "update", "rows_affected": cur.rowcount})

    logger.info("Deleting record with id: %s", record_id)
    cur.execute(queries.build_delete_by_id(table_name), (record_id,))
    steps.append({"step": "delete", "rows_affected": cur.rowcount})
    return steps


def run_cosmos_crud(container: Any, partition_key_path: str = "/id") -> List[Dict[str, Any]]:
    logger.info("--- CRUD Operations Demo ---")
    steps: List[Dict[str, Any]] = []
    item = sample_item(partition_key_path)
    item_id = item["id"]
    pk_value = _partition_value(item, partition_key_path)

    logger.info("Creating item with id: %s", item_id)
    container.create_item(body=item)
    steps.append({"step": "create", "request_charge": request_charge(container)})

    logger.info("Reading item with id: %s", item_id)
    read_back = container.read_item(item=item_id, partition_key=pk_value)
    steps.append({"step": "read", "request_charge": request_charge(container)})

    logger.info("Updating item with id: %s", item_id)
    read_back["Status"] = UPDATED_STATUS
    read_back["Value"] = UPDATED_VALUE
    container.upsert_item(body=read_back)
    steps.append({"step": "update", "request_charge": request_charge(container)})

    logger.info("Deleting item with id: %s", item_id)
    container.delete_item(item=item_id, partition_key=pk_value)
    steps.append({"step": "delete", "request_charge": request_charge(container)})

    for s in steps:
        logger.info("  %-6s ok (RU %.2f)", s["step"], s["request_charge"])
    return steps


def _partition_value(item: Dict[str, Any], partition_key_path: str) -> Any:
    value: Any = item
    for part in [p for p in partition_key_path.strip("/").split("/") if p]:
        value = value[part]
    return value
