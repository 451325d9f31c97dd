"""azdb_connect -- multi-method connection smoke tests for Azure SQL and Cosmos DB."""

from .client import ConnectionTester, CosmosTarget, Outcome, SqlTarget, Status
from .config import CosmosSettings, SqlSettings, load_settings
from .connection import AzureSQLConnection, load_dotenv
from .cosmos import CosmosDBConnection
from .errors import ConfigError, ConnectorError, CredentialError, ValidationError
from .methods import ConnectionMethod, MethodConfig

__all__ = [
    "ConnectionTester",
    "SqlTarget",
    "CosmosTarget",
    "Outcome",
    "Status",
    "SqlSettings",
    "CosmosSettings",
    "load_settings",
    "AzureSQLConnection",
    "CosmosDBConnection",
    "load_dotenv",
    "ConnectionMethod",
    "MethodConfig",
    "ConnectorError",
    "ConfigError",
    "CredentialError",
    "ValidationError",
]
