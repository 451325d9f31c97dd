"""Demo record writers.

Each writer inserts exactly one record with a fixed field set and returns a
:class:`WriteResult`:

* ``write_sql_record``    -- one row; acknowledgement is rows affected.
* ``write_cosmos_record`` -- one item; acknowledgement is the request
  charge (RU) reported by the service.

No partial-write recovery is attempted; any failure propagates.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from . import queries

logger = logging.getLogger(__name__)

SAMPLE_NAME = "Sample Record"
SAMPLE_DESCRIPTION = "This is a dummy record created for testing"
SAMPLE_CATEGORY = "Test"
SAMPLE_STATUS = "Active"
SAMPLE_VALUE = 42
SAMPLE_TAGS = ("sample", "test", "dummy")
METADATA_SOURCE = "CosmosDB Connector Demo"
METADATA_VERSION = "1.0"

_REQUEST_CHARGE_HEADER = "x-ms-request-charge"


@dataclass(frozen=True)
class WriteResult:
    """Identifier of the inserted record plus the service's acknowledgement."""

    record_id: str
    rows_affected: Optional[int] = None
    request_charge: Optional[float] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"record_id": self.record_id}
        if self.rows_affected is not None:
            d["rows_affected"] = self.rows_affected
        if self.request_charge is not None:
            d["request_charge"] = self.request_charge
        d.update(self.extra)
        return d


def sample_row(record_id: Optional[uuid.UUID] = None, now: Optional[datetime] = None) -> tuple:
    """Return the demo row in :data:`~azdb_connect.queries.DEMO_COLUMNS` order."""
    record_id = record_id or uuid.uuid4()
    now = now or datetime.now(timezone.utc)
    return (
        str(record_id),
        SAMPLE_NAME,
        SAMPLE_DESCRIPTION,
        SAMPLE_CATEGORY,
        SAMPLE_STATUS,
        now.replace(tzinfo=None),
        SAMPLE_VALUE,
        ",".join(SAMPLE_TAGS),
    )


def _set_path(doc: Dict[str, Any], path: str, value: Any) -> None:
    """Set ``/a/b`` style *path* in *doc* unless it is already present."""
    parts = [p for p in path.strip("/").split("/") if p]
    if not parts:
        return
    target = doc
    for part in parts[:-1]:
        target = target.setdefault(part, {})
        if not isinstance(target, dict):
            raise ValueError(f"Cannot set {path!r}: {part!r} is not an object")
    target.setdefault(parts[-1], value)


def sample_item(
    partition_key_path: str = "/id",
    record_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Return the demo document.

    The property named by *partition_key_path* is set to the record id
    (unless it is one of the fixed fields) so every demo item lands in its
    own logical partition.
    """
    record_id = record_id or str(uuid.uuid4())
    now = now or datetime.now(timezone.utc)
    item: Dict[str, Any] = {
        "id": record_id,
        "Name": SAMPLE_NAME,
        "Description": SAMPLE_DESCRIPTION,
        "Category": SAMPLE_CATEGORY,
        "Status": SAMPLE_STATUS,
        "CreatedAt": now.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
        "Value": SAMPLE_VALUE,
        "Tags": list(SAMPLE_TAGS),
        "Metadata": {"Source": METADATA_SOURCE, "Version": METADATA_VERSION},
    }
    _set_path(item, partition_key_path, record_id)
    return item


def request_charge(proxy: Any) -> float:
    """Return the RU charge of the last request made through *proxy*."""
    headers = proxy.client_connection.last_response_headers or {}
    try:
        return float(headers.get(_REQUEST_CHARGE_HEADER, 0))
    except (TypeError, ValueError):
        return 0.0


def write_sql_record(conn: Any, table_name: str) -> WriteResult:
    """Insert the demo row into *table_name* and commit."""
    logger.info("--- Creating Dummy Record ---")
    row = sample_row()
    record_id = row[0]
    logger.info("Creating dummy record with id: %s", record_id)
    with closing(conn.cursor()) as cur:
        cur.execute(queries.build_insert(table_name), row)
        rows_affected = cur.rowcount
    conn.commit()
    logger.info("Dummy record created successfully")
    logger.info("  Record ID: %s", record_id)
    logger.info("  Rows affected: %s", rows_affected)
    return WriteResult(record_id=record_id, rows_affected=rows_affected)


def write_cosmos_record(container: Any, partition_key_path: str = "/id") -> WriteResult:
    """Create the demo item in *container*."""
    logger.info("--- Creating Dummy Record ---")
    item = sample_item(partition_key_path)
    logger.info("Creating dummy record with id: %s", item["id"])
    container.create_item(body=item)
    charge = request_charge(container)
    logger.info("Dummy record created successfully")
    logger.info("  Record ID: %s", item["id"])
    logger.info("  RU consumed: %.2f", charge)
    return WriteResult(record_id=item["id"], request_charge=charge)
