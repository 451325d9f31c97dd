"""Shared constants for the azdb_connect package."""

TEST_ALL = "TestAll"
DEFAULT_METHOD = "ManagedIdentity"
DEFAULT_CONFIG_PATH = "appsettings.Development.json"

MAX_REASON_LENGTH = 100
ELLIPSIS = "..."

# Azure SQL
DEFAULT_DRIVER = "ODBC Driver 18 for SQL Server"
DEFAULT_TABLE_NAME = "TestTable"
DEFAULT_CONNECT_TIMEOUT = 30
DEFAULT_CONNECT_RETRY_COUNT = 3
DEFAULT_CONNECT_RETRY_INTERVAL = 10
SQL_TOKEN_SCOPE = "https://database.windows.net/.default"
# msodbcsql pre-connect attribute that accepts an Entra ID access token
SQL_COPT_SS_ACCESS_TOKEN = 1256

# Cosmos DB
DEFAULT_PARTITION_KEY_PATH = "/id"
DEFAULT_THROUGHPUT = 400
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_MAX_RETRY_ATTEMPTS = 3
DEFAULT_MAX_RETRY_WAIT_SECONDS = 30
EMULATOR_ENDPOINT = "https://localhost:8081"
# Well-known key published with the Cosmos DB emulator; not a secret.
EMULATOR_KEY = (
    "C2y6yDjf5/R+ob0N8A7Cgv30VRDJIWEHLM+4QDU5DE2nQ9nDuVTqobD4b8mGGyPMbIZnqyMsEcaGQy67XIw/Jw=="
)
