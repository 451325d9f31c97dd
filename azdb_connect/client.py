"""Connection-test harness.

:class:`ConnectionTester` is the primary entry point::

    from azdb_connect import ConnectionTester, load_settings

    settings = load_settings("appsettings.Development.json", "sql")
    tester = ConnectionTester.for_settings(settings)

    outcome = tester.run_method("SqlAuthentication")   # one method
    outcomes = tester.run_all()                         # whole registry

Each method attempt goes through the same steps:

1. ``Enabled: false`` in the settings -> ``Skipped``; nothing is opened.
2. A name outside the target's registry, or credentials that could not
   be read from the settings -> ``Failed`` with a configuration error;
   nothing is opened.
3. Connect (with validation), ensure the schema, write the demo record.
   Any exception -> ``Failed`` with the first line of its message, cut to
   100 characters.  The connection is closed on every path.
4. Otherwise ``Succeeded``.

Methods run one after another; a failure never stops the remaining ones.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union

from .config import CosmosSettings, SqlSettings
from .connection import AzureSQLConnection
from .cosmos import CosmosDBConnection
from .crud import run_cosmos_crud, run_sql_crud
from .errors import ConfigError
from .methods import COSMOS_METHODS, SQL_METHODS, ConnectionMethod, MethodConfig, parse_method
from .report import section_header, truncate_reason
from .schema import ensure_container, ensure_database, ensure_table
from .writer import write_cosmos_record, write_sql_record

logger = logging.getLogger(__name__)


class Status(str, Enum):
    SKIPPED = "Skipped"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Outcome:
    """Terminal state of one method attempt."""

    method: str
    status: Status
    reason: Optional[str] = None
    result: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status is Status.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status is Status.FAILED

    @property
    def skipped(self) -> bool:
        return self.status is Status.SKIPPED

    def as_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"method": self.method, "status": self.status.value}
        if self.reason is not None:
            d["reason"] = self.reason
        if self.result:
            d["result"] = self.result
        return d


def error_reason(exc: BaseException) -> str:
    """Bounded single-line description of *exc*."""
    return truncate_reason(str(exc)) or type(exc).__name__


# -- targets ------------------------------------------------------------------


class Target(Protocol):
    """A database service the harness can exercise."""

    name: str
    title: str
    methods: Tuple[ConnectionMethod, ...]

    def describe(self) -> List[Tuple[str, str]]:
        """``(label, value)`` pairs shown in the banner."""
        ...

    def attempt(self, config: MethodConfig) -> Dict[str, Any]:
        """Connect with *config*, ensure the schema, write the demo record.

        Returns a JSON-friendly result dict; raises on any failure.
        """
        ...  # pragma: no cover


class SqlTarget:
    name = "sql"
    title = "Azure SQL Database"
    methods = SQL_METHODS

    def __init__(self, settings: SqlSettings, *, crud: bool = False) -> None:
        self.settings = settings
        self.crud = crud

    def describe(self) -> List[Tuple[str, str]]:
        s = self.settings
        return [
            ("Connection Method", s.connection_method),
            ("Server", s.server_name),
            ("Database", s.database_name),
            ("Table", s.table_name),
        ]

    def attempt(self, config: MethodConfig) -> Dict[str, Any]:
        table = self.settings.table_name
        with AzureSQLConnection.from_settings(self.settings) as az:
            conn = az.connect(config)
            created = ensure_table(conn, table)
            result = write_sql_record(conn, table).as_dict()
            result["table_created"] = created
            result["server_info"] = dict(az.server_info)
            if self.crud:
                result["crud"] = run_sql_crud(conn, table)
            return result


class CosmosTarget:
    name = "cosmos"
    title = "CosmosDB"
    methods = COSMOS_METHODS

    def __init__(self, settings: CosmosSettings, *, crud: bool = False) -> None:
        self.settings = settings
        self.crud = crud

    def describe(self) -> List[Tuple[str, str]]:
        s = self.settings
        return [
            ("Connection Method", s.connection_method),
            ("Account Endpoint", s.account_endpoint),
            ("Database", s.database_name),
            ("Container", s.container_name),
        ]

    def attempt(self, config: MethodConfig) -> Dict[str, Any]:
        s = self.settings
        with CosmosDBConnection.from_settings(s) as cosmos:
            client = cosmos.connect(config)
            database, db_created = ensure_database(client, s.database_name, s.throughput)
            container, ctr_created = ensure_container(
                database, s.container_name, s.partition_key_path,
            )
            result = write_cosmos_record(container, s.partition_key_path).as_dict()
            result["database_created"] = db_created
            result["container_created"] = ctr_created
            if self.crud:
                result["crud"] = run_cosmos_crud(container, s.partition_key_path)
            return result


def build_target(
    settings: Union[SqlSettings, CosmosSettings], *, crud: bool = False,
) -> Target:
    if isinstance(settings, SqlSettings):
        return SqlTarget(settings, crud=crud)
    if isinstance(settings, CosmosSettings):
        return CosmosTarget(settings, crud=crud)
    raise TypeError(f"Unsupported settings type: {type(settings).__name__}")


# -- harness ------------------------------------------------------------------


class ConnectionTester:
    """Runs connection attempts against one target and records outcomes.

    Args:
        target:  The :class:`Target` to exercise.
        configs: Per-method enable flag and credentials.  Methods missing
                 from the mapping are treated as enabled with empty
                 credentials.
    """

    def __init__(
        self,
        target: Target,
        configs: Optional[Dict[ConnectionMethod, MethodConfig]] = None,
    ) -> None:
        self.target = target
        self.configs: Dict[ConnectionMethod, MethodConfig] = dict(configs or {})

    @classmethod
    def for_settings(
        cls, settings: Union[SqlSettings, CosmosSettings], *, crud: bool = False,
    ) -> "ConnectionTester":
        return cls(build_target(settings, crud=crud), settings.methods)

    def method_config(self, method: ConnectionMethod) -> MethodConfig:
        return self.configs.get(method) or MethodConfig(method)

    def run_method(self, name: Union[str, ConnectionMethod]) -> Outcome:
        """Attempt one method and return its :class:`Outcome`."""
        label = str(name)
        logger.info(section_header(label))
        try:
            method = parse_method(label, self.target.methods)
        except ConfigError as exc:
            logger.error("Configuration error: %s", exc)
            return Outcome(label, Status.FAILED, reason=error_reason(exc))

        config = self.method_config(method)
        if not config.enabled:
            logger.info("%s is disabled in settings; skipping", method)
            return Outcome(label, Status.SKIPPED, reason="disabled")
        if config.error:
            logger.error("Configuration error: %s", config.error)
            return Outcome(label, Status.FAILED, reason=truncate_reason(config.error))

        try:
            result = self.target.attempt(config)
        except Exception as exc:
            logger.error("%s failed: %s", method, exc)
            logger.debug("%s failure detail", method, exc_info=True)
            return Outcome(label, Status.FAILED, reason=error_reason(exc))

        logger.info("%s: all operations completed successfully", method)
        return Outcome(label, Status.SUCCEEDED, result=result)

    def run_all(self) -> List[Outcome]:
        """Attempt every registry method in order."""
        return [self.run_method(method) for method in self.target.methods]

    def __repr__(self) -> str:
        enabled = sum(1 for m in self.target.methods if self.method_config(m).enabled)
        return (
            f"ConnectionTester(target={self.target.name!r}, "
            f"methods={len(self.target.methods)}, enabled={enabled})"
        )


def single_exit_code(outcome: Outcome) -> int:
    """0 only when the requested method succeeded."""
    return 0 if outcome.succeeded else 1


def all_methods_exit_code(outcomes: Sequence[Outcome]) -> int:
    """0 when nothing failed and at least one method succeeded."""
    if any(o.failed for o in outcomes):
        return 1
    return 0 if any(o.succeeded for o in outcomes) else 1
