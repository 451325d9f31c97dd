"""Make the demo table / database / container exist.

Every ``ensure_*`` helper checks for the resource first and only creates it
when it is missing, so repeated calls are safe and never duplicate it.
Pre-existence counts as success.  Each helper returns whether it created
the resource.
"""

from __future__ import annotations

import logging
from contextlib import closing
from typing import Any, Optional, Tuple

from azure.cosmos import PartitionKey
from azure.cosmos.exceptions import CosmosResourceExistsError, CosmosResourceNotFoundError

from . import queries

logger = logging.getLogger(__name__)


def ensure_table(conn: Any, table_name: str) -> bool:
    """Create the demo table *table_name* on *conn* unless it already exists."""
    logger.info("Checking if table '%s' exists...", table_name)
    with closing(conn.cursor()) as cur:
        if queries.table_exists(cur, table_name):
            logger.info("Table '%s' already exists", table_name)
            return False
        logger.info("Creating table '%s'...", table_name)
        cur.execute(queries.build_create_table(table_name))
    conn.commit()
    logger.info("Table '%s' created successfully", table_name)
    return True


def ensure_database(
    client: Any, database_name: str, throughput: Optional[int] = None,
) -> Tuple[Any, bool]:
    """Return ``(DatabaseProxy, created)`` for *database_name*.

    New databases get *throughput* RU/s of manual throughput, shared by
    their containers.
    """
    logger.info("Getting or creating database: %s", database_name)
    database = client.get_database_client(database_name)
    try:
        database.read()
        logger.info("Database '%s' already exists", database_name)
        return database, False
    except CosmosResourceNotFoundError:
        pass
    try:
        database = client.create_database(database_name, offer_throughput=throughput)
    except CosmosResourceExistsError:
        logger.info("Database '%s' was created concurrently", database_name)
        return client.get_database_client(database_name), False
    logger.info("Database '%s' created", database_name)
    return database, True


def ensure_container(
    database: Any, container_name: str, partition_key_path: str,
) -> Tuple[Any, bool]:
    """Return ``(ContainerProxy, created)`` for *container_name* in *database*.

    No throughput is provisioned on the container; it shares the database's.
    """
    logger.info("Getting or creating container: %s", container_name)
    container = database.get_container_client(container_name)
    try:
        container.read()
        logger.info("Container '%s' already exists", container_name)
        return container, False
    except CosmosResourceNotFoundError:
        pass
    try:
        container = database.create_container(
            id=container_name, partition_key=PartitionKey(path=partition_key_path),
        )
    except CosmosResourceExistsError:
        logger.info("Container '%s' was created concurrently", container_name)
        return database.get_container_client(container_name), False
    logger.info(
        "Container '%s' created with partition key '%s' (sharing database throughput)",
        container_name, partition_key_path,
    )
    return container, True
