"""Azure SQL connection helper.

Provides :class:`AzureSQLConnection`, a connection wrapper with one connect
method per authentication pathway and context-manager support, plus the
dependency-free :func:`load_dotenv`.

Supported pathways:

* **Managed Identity**: an Entra ID token for the Azure SQL scope is
  obtained through ``DefaultAzureCredential`` (managed identity in Azure,
  Azure CLI or IDE sign-in locally) and handed to the ODBC driver as the
  ``SQL_COPT_SS_ACCESS_TOKEN`` pre-connect attribute.
* **SQL Authentication**: username and password.
* **Connection String**: a complete ODBC connection string, used as is.

Every connect call runs ``SELECT @@VERSION, DB_NAME()`` right after opening.
A connection that opens but cannot answer is closed and reported as a
:class:`~azdb_connect.errors.ValidationError`.
"""

from __future__ import annotations

import logging
import os
import struct
from contextlib import closing
from types import TracebackType
from typing import Callable, Dict, Optional, Type

import pyodbc
from azure.identity import DefaultAzureCredential

from . import queries
from ._constants import (
    DEFAULT_CONNECT_RETRY_COUNT,
    DEFAULT_CONNECT_RETRY_INTERVAL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DRIVER,
    SQL_COPT_SS_ACCESS_TOKEN,
    SQL_TOKEN_SCOPE,
)
from .errors import ConfigError, ValidationError
from .methods import (
    ConnectionMethod,
    ConnectionStringCredentials,
    MethodConfig,
    SqlCredentials,
)

logger = logging.getLogger(__name__)


_dotenv_loaded: set = set()


def load_dotenv(path: Optional[str] = None) -> None:
    """Read a simple key=value .env file into ``os.environ`` (no dependencies).

    Subsequent calls with the same resolved *path* are no-ops.
    """
    if path is None:
        path = os.path.join(os.getcwd(), ".env")
    resolved = os.path.abspath(path)
    if resolved in _dotenv_loaded:
        return
    if not os.path.isfile(resolved):
        return
    with open(resolved) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                k, v = line.split("=", 1)
                os.environ.setdefault(k.strip(), v.strip().strip("'\""))
    _dotenv_loaded.add(resolved)
    logger.debug("Loaded environment from %s", resolved)


def _token_struct(token: str) -> bytes:
    """Pack an access token the way msodbcsql expects it (UTF-16-LE, length-prefixed)."""
    raw = token.encode("utf-16-le")
    return struct.pack(f"<I{len(raw)}s", len(raw), raw)


class AzureSQLConnection:
    """Managed connection to an Azure SQL database.

    Usage as a context manager::

        with AzureSQLConnection("myserver.database.windows.net", "mydb") as az:
            conn = az.connect_with_managed_identity()
            cur = conn.cursor()
            cur.execute("SELECT 1")

    The connection is closed on exit whether or not the block raised.
    Only one connection is held at a time; call :meth:`close` before
    connecting again.
    """

    def __init__(
        self,
        server: str,
        database: str,
        *,
        driver: str = DEFAULT_DRIVER,
        connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
        connect_retry_count: int = DEFAULT_CONNECT_RETRY_COUNT,
        connect_retry_interval: int = DEFAULT_CONNECT_RETRY_INTERVAL,
    ) -> None:
        if not server:
            raise ConfigError("ServerName must not be empty")
        self.server = server
        self.database = database
        self.driver = driver
        self.connect_timeout = connect_timeout
        self.connect_retry_count = connect_retry_count
        self.connect_retry_interval = connect_retry_interval
        self.server_info: Dict[str, str] = {}
        self._conn: Optional[pyodbc.Connection] = None

    @classmethod
    def from_settings(cls, settings) -> "AzureSQLConnection":
        """Build from a :class:`~azdb_connect.config.SqlSettings`."""
        return cls(
            settings.server_name,
            settings.database_name,
            driver=settings.driver,
            connect_timeout=settings.connect_timeout,
            connect_retry_count=settings.connect_retry_count,
            connect_retry_interval=settings.connect_retry_interval,
        )

    @property
    def connection(self) -> Optional[pyodbc.Connection]:
        return self._conn

    def base_connection_string(self) -> str:
        """ODBC connection string without any credentials."""
        return (
            f"Driver={{{self.driver}}};Server={self.server};"
            f"Database={self.database};"
            "Encrypt=yes;TrustServerCertificate=no;"
            f"Connection Timeout={self.connect_timeout};"
            f"ConnectRetryCount={self.connect_retry_count};"
            f"ConnectRetryInterval={self.connect_retry_interval};"
        )

    # -- connect ------------------------------------------------------------

    def connect(self, config: MethodConfig) -> pyodbc.Connection:
        """Connect using whichever method *config* names."""
        method = config.method
        creds = config.credentials
        if method is ConnectionMethod.MANAGED_IDENTITY:
            return self.connect_with_managed_identity()
        if method is ConnectionMethod.SQL_AUTHENTICATION:
            return self.connect_with_sql_authentication(creds.username, creds.password)
        if method is ConnectionMethod.CONNECTION_STRING:
            return self.connect_with_connection_string(creds.value)
        raise ConfigError(f"{method} is not supported for Azure SQL Database")

    def connect_with_managed_identity(self) -> pyodbc.Connection:
        def _open() -> pyodbc.Connection:
            with DefaultAzureCredential() as credential:
                token = credential.get_token(SQL_TOKEN_SCOPE)
            return pyodbc.connect(
                self.base_connection_string(),
                attrs_before={SQL_COPT_SS_ACCESS_TOKEN: _token_struct(token.token)},
            )

        return self._open("Managed Identity", _open)

    def connect_with_sql_authentication(
        self, username: str, password: str,
    ) -> pyodbc.Connection:
        def _open() -> pyodbc.Connection:
            SqlCredentials(username, password).check()
            return pyodbc.connect(
                self.base_connection_string() + f"Uid={username};Pwd={password};"
            )

        return self._open("SQL Authentication", _open)

    def connect_with_connection_string(self, connection_string: str) -> pyodbc.Connection:
        def _open() -> pyodbc.Connection:
            ConnectionStringCredentials(connection_string).check()
            return pyodbc.connect(connection_string)

        return self._open("Connection String", _open)

    def _open(self, label: str, opener: Callable[[], pyodbc.Connection]) -> pyodbc.Connection:
        if self._conn is not None:
            raise RuntimeError("Already connected; call close() first")
        logger.info("Connecting to Azure SQL Database using %s...", label)
        try:
            self._conn = opener()
            self.server_info = self._validate(self._conn)
        except Exception as exc:
            logger.error("Failed to connect using %s: %s", label, exc)
            self.close()
            raise
        logger.info("Successfully connected using %s", label)
        return self._conn

    @staticmethod
    def _validate(conn: pyodbc.Connection) -> Dict[str, str]:
        try:
            with closing(conn.cursor()) as cur:
                info = queries.server_info(cur)
        except Exception as exc:
            raise ValidationError(
                f"Failed to validate connection to Azure SQL Database: {exc}"
            ) from exc
        logger.info("  Database: %s", info["database"])
        logger.info("  Version: %s", info["version"])
        return info

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """Close the underlying connection if open."""
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None

    def __enter__(self) -> "AzureSQLConnection":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"AzureSQLConnection(server={self.server!r}, "
            f"database={self.database!r}, driver={self.driver!r})"
        )
