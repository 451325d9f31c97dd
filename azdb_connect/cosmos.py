"""Azure Cosmos DB connection helper.

:class:`CosmosDBConnection` mirrors :class:`~azdb_connect.connection.AzureSQLConnection`
for the document store: one connect method per authentication pathway,
a validation round-trip right after the client is built, and a
context manager that releases the client (and any credential it owns).

Supported pathways:

* **Managed Identity**: ``DefaultAzureCredential`` is passed to
  ``CosmosClient`` and tokens are fetched on demand.
* **Account Key**: the account endpoint plus a primary or secondary key.
* **Connection String**: ``AccountEndpoint=...;AccountKey=...;``.
* **Emulator**: the local emulator endpoint and its well-known key, with
  TLS certificate verification turned off for the self-signed certificate.

Retry and timeout settings are forwarded to the SDK as client options;
nothing here retries on its own.
"""

from __future__ import annotations

import logging
from contextlib import ExitStack
from types import TracebackType
from typing import Any, Callable, Dict, List, Optional, Type

from azure.cosmos import CosmosClient
from azure.identity import DefaultAzureCredential

from ._constants import (
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_MAX_RETRY_WAIT_SECONDS,
    DEFAULT_REQUEST_TIMEOUT,
    EMULATOR_ENDPOINT,
    EMULATOR_KEY,
)
from .errors import ConfigError, ValidationError
from .methods import (
    AccountKeyCredentials,
    ConnectionMethod,
    ConnectionStringCredentials,
    EmulatorCredentials,
    MethodConfig,
)

logger = logging.getLogger(__name__)


def _readable_regions(account: Any) -> List[str]:
    locations = getattr(account, "ReadableLocations", None) or []
    return [loc.get("name", "") for loc in locations if isinstance(loc, dict)]


class CosmosDBConnection:
    """Managed client for an Azure Cosmos DB account.

    Usage::

        with CosmosDBConnection("https://acct.documents.azure.com:443/") as cosmos:
            client = cosmos.connect_with_account_key(key)
            client.get_database_client("mydb").read()
    """

    def __init__(
        self,
        account_endpoint: str,
        *,
        request_timeout: int = DEFAULT_REQUEST_TIMEOUT,
        max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS,
        max_retry_wait_seconds: int = DEFAULT_MAX_RETRY_WAIT_SECONDS,
    ) -> None:
        if not account_endpoint:
            raise ConfigError("AccountEndpoint must not be empty")
        self.account_endpoint = account_endpoint
        self.request_timeout = request_timeout
        self.max_retry_attempts = max_retry_attempts
        self.max_retry_wait_seconds = max_retry_wait_seconds
        self.account_info: Dict[str, Any] = {}
        self._client: Optional[CosmosClient] = None
        self._stack = ExitStack()

    @classmethod
    def from_settings(cls, settings) -> "CosmosDBConnection":
        """Build from a :class:`~azdb_connect.config.CosmosSettings`."""
        return cls(
            settings.account_endpoint,
            request_timeout=settings.request_timeout,
            max_retry_attempts=settings.max_retry_attempts,
            max_retry_wait_seconds=settings.max_retry_wait_seconds,
        )

    @property
    def client(self) -> Optional[CosmosClient]:
        return self._client

    def client_options(self) -> Dict[str, Any]:
        """Keyword options forwarded to every ``CosmosClient``."""
        return {
            "connection_timeout": self.request_timeout,
            "retry_total": self.max_retry_attempts,
            "retry_backoff_max": self.max_retry_wait_seconds,
        }

    # -- connect ------------------------------------------------------------

    def connect(self, config: MethodConfig) -> CosmosClient:
        """Connect using whichever method *config* names."""
        method = config.method
        creds = config.credentials
        if method is ConnectionMethod.MANAGED_IDENTITY:
            return self.connect_with_managed_identity()
        if method is ConnectionMethod.ACCOUNT_KEY:
            return self.connect_with_account_key(creds.key)
        if method is ConnectionMethod.CONNECTION_STRING:
            return self.connect_with_connection_string(creds.value)
        if method is ConnectionMethod.EMULATOR:
            return self.connect_to_emulator(creds.endpoint, creds.key)
        raise ConfigError(f"{method} is not supported for Cosmos DB")

    def connect_with_managed_identity(self) -> CosmosClient:
        def _open() -> CosmosClient:
            credential = DefaultAzureCredential()
            self._stack.enter_context(credential)
            return CosmosClient(
                self.account_endpoint, credential=credential, **self.client_options(),
            )

        return self._open("Managed Identity", _open)

    def connect_with_account_key(self, account_key: str) -> CosmosClient:
        def _open() -> CosmosClient:
            AccountKeyCredentials(account_key).check()
            return CosmosClient(
                self.account_endpoint, credential=account_key, **self.client_options(),
            )

        return self._open("Account Key", _open)

    def connect_with_connection_string(self, connection_string: str) -> CosmosClient:
        def _open() -> CosmosClient:
            ConnectionStringCredentials(connection_string).check()
            return CosmosClient.from_connection_string(
                connection_string, **self.client_options(),
            )

        return self._open("Connection String", _open)

    def connect_to_emulator(
        self, endpoint: str = EMULATOR_ENDPOINT, key: str = EMULATOR_KEY,
    ) -> CosmosClient:
        def _open() -> CosmosClient:
            EmulatorCredentials(endpoint, key).check()
            return CosmosClient(
                endpoint,
                credential=key,
                connection_verify=False,
                **self.client_options(),
            )

        try:
            return self._open("Emulator", _open)
        except Exception:
            logger.warning("Make sure the Cosmos DB Emulator is running at %s", endpoint)
            raise

    def _open(self, label: str, opener: Callable[[], CosmosClient]) -> CosmosClient:
        if self._client is not None:
            raise RuntimeError("Already connected; call close() first")
        logger.info("Connecting to Cosmos DB using %s...", label)
        try:
            client = opener()
            self._stack.enter_context(client)
            self._client = client
            self.account_info = self._validate(self._client)
        except Exception as exc:
            logger.error("Failed to connect using %s: %s", label, exc)
            self.close()
            raise
        logger.info("Successfully connected using %s", label)
        return self._client

    @staticmethod
    def _validate(client: CosmosClient) -> Dict[str, Any]:
        try:
            account = client.get_database_account()
        except Exception as exc:
            raise ValidationError(
                f"Failed to validate connection to Cosmos DB: {exc}"
            ) from exc
        info = {"regions": _readable_regions(account)}
        logger.info("  Regions: %s", ", ".join(info["regions"]) or "(none reported)")
        return info

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """Release the client and any credential opened with it."""
        self._client = None
        self._stack.close()
        self._stack = ExitStack()

    def __enter__(self) -> "CosmosDBConnection":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CosmosDBConnection(account_endpoint={self.account_endpoint!r})"
