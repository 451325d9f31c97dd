"""Settings file loading and validation.

A single JSON or YAML file (chosen by extension) holds one section per
target::

    {
      "AzureSql": {
        "ServerName": "myserver.database.windows.net",
        "DatabaseName": "mydb",
        "ConnectionMethod": "TestAll",
        "ManagedIdentity":   {"Enabled": true},
        "SqlAuthentication": {"Enabled": true, "Username": "sqladmin",
                              "Password": "${SQL_PASSWORD}"},
        "ConnectionString":  {"Enabled": false, "Value": "Driver=..."}
      },
      "CosmosDb": {
        "AccountEndpoint": "https://acct.documents.azure.com:443/",
        "DatabaseName": "mydb",
        "ContainerName": "items",
        "AccountKey": {"Enabled": true, "Key": "${COSMOS_KEY}"}
      }
    }

The flat layout used by older settings files, where ``ConnectionString``,
``AccountKey``, ``Username`` and ``Password`` are plain strings on the
section itself, is still accepted.

``${VAR}`` references are expanded from the environment (after loading
``.env``).  Credentials of disabled methods are not read at all, so a
disabled method may reference a variable that is not set.  An enabled
method whose credentials cannot be read keeps the reason on its
:class:`~azdb_connect.methods.MethodConfig` and fails on its own when
attempted.

Every other problem found here raises
:class:`~azdb_connect.errors.ConfigError` before any connection is attempted.
"""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from ._constants import (
    DEFAULT_CONNECT_RETRY_COUNT,
    DEFAULT_CONNECT_RETRY_INTERVAL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DRIVER,
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_MAX_RETRY_WAIT_SECONDS,
    DEFAULT_METHOD,
    DEFAULT_PARTITION_KEY_PATH,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TABLE_NAME,
    DEFAULT_THROUGHPUT,
    EMULATOR_ENDPOINT,
    EMULATOR_KEY,
    TEST_ALL,
)
from .connection import load_dotenv
from .errors import ConfigError
from .methods import (
    COSMOS_METHODS,
    SQL_METHODS,
    AccountKeyCredentials,
    ConnectionMethod,
    ConnectionStringCredentials,
    Credentials,
    EmulatorCredentials,
    ManagedIdentityCredentials,
    MethodConfig,
    SqlCredentials,
)
from .writer import sample_item

logger = logging.getLogger(__name__)

SQL_SECTION = "AzureSql"
COSMOS_SECTION = "CosmosDb"


def expand_env(value: str) -> str:
    """Expand ``${VAR}`` references in *value* with environment variables."""

    def _repl(m):
        name = m.group(1)
        if name not in os.environ:
            raise ConfigError(
                f"Environment variable {name!r} is not set "
                f"(referenced in config as ${{{name}}})"
            )
        return os.environ[name]

    return re.sub(r"\$\{(\w+)}", _repl, str(value))


def load_config_file(path: Union[str, Path]) -> dict:
    """Load a YAML or JSON config file, chosen by extension."""
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"Settings file not found: {p}")
    text = p.read_text()
    if p.suffix in (".yaml", ".yml"):
        try:
            import yaml
        except ImportError:
            raise ImportError(
                "PyYAML is required for YAML config files. "
                "Install it with: pip install azdb_connect[yaml]"
            )
        data = yaml.safe_load(text)
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {p} must contain a mapping at the top level")
    logger.debug("Loaded settings from %s", p)
    return data


# -- field helpers ----------------------------------------------------------


def _section(config: dict, name: str) -> dict:
    section = config.get(name)
    if section is None:
        raise ConfigError(f"Section {name!r} not found in settings")
    if not isinstance(section, dict):
        raise ConfigError(
            f"Section {name!r} must be a mapping, got {type(section).__name__}"
        )
    return section


def _str(section: dict, key: str, default: Optional[str] = None) -> Optional[str]:
    value = section.get(key)
    if value is None or value == "":
        return default
    return expand_env(value)


def _required(section: dict, section_name: str, key: str) -> str:
    value = _str(section, key)
    if not value:
        raise ConfigError(f"{key} not configured in {section_name}")
    return value


def _int(section: dict, key: str, default: int) -> int:
    value = section.get(key)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    try:
        return int(expand_env(value) if isinstance(value, str) else value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}")


def _enabled(sub: dict, method: ConnectionMethod) -> bool:
    value = sub.get("Enabled", True)
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise ConfigError(f"{method}.Enabled must be true or false, got {value!r}")


def _method_block(section: dict, method: ConnectionMethod) -> dict:
    """Return the per-method sub-mapping, translating the flat layout."""
    value = section.get(method.value)
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and method is ConnectionMethod.CONNECTION_STRING:
        return {"Value": value}
    if isinstance(value, str) and method is ConnectionMethod.ACCOUNT_KEY:
        return {"Key": value}
    raise ConfigError(
        f"{method} settings must be a mapping, got {type(value).__name__}"
    )


def _credentials(section: dict, sub: dict, method: ConnectionMethod) -> Credentials:
    if method is ConnectionMethod.MANAGED_IDENTITY:
        return ManagedIdentityCredentials()
    if method is ConnectionMethod.SQL_AUTHENTICATION:
        return SqlCredentials(
            username=_str(sub, "Username") or _str(section, "Username", ""),
            password=_str(sub, "Password") or _str(section, "Password", ""),
        )
    if method is ConnectionMethod.CONNECTION_STRING:
        return ConnectionStringCredentials(value=_str(sub, "Value", ""))
    if method is ConnectionMethod.ACCOUNT_KEY:
        return AccountKeyCredentials(key=_str(sub, "Key", ""))
    if method is ConnectionMethod.EMULATOR:
        return EmulatorCredentials(
            endpoint=_str(sub, "Endpoint", EMULATOR_ENDPOINT),
            key=_str(sub, "Key", EMULATOR_KEY),
        )
    raise ConfigError(f"No credentials defined for {method}")


def _method_configs(
    section: dict, registry: Tuple[ConnectionMethod, ...],
) -> Dict[ConnectionMethod, MethodConfig]:
    configs: Dict[ConnectionMethod, MethodConfig] = {}
    for method in registry:
        sub = _method_block(section, method)
        enabled = _enabled(sub, method)
        if not enabled:
            configs[method] = MethodConfig(method, enabled=False)
            continue
        try:
            credentials = _credentials(section, sub, method)
        except ConfigError as exc:
            # Reported as this method's failure; the other methods still run.
            logger.warning("%s credentials unavailable: %s", method, exc)
            configs[method] = MethodConfig(method, error=str(exc))
            continue
        configs[method] = MethodConfig(method, credentials=credentials)
    return configs


# -- settings ---------------------------------------------------------------


@dataclass(frozen=True)
class SqlSettings:
    """Validated ``AzureSql`` section."""

    server_name: str
    database_name: str
    table_name: str = DEFAULT_TABLE_NAME
    connection_method: str = DEFAULT_METHOD
    driver: str = DEFAULT_DRIVER
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    connect_retry_count: int = DEFAULT_CONNECT_RETRY_COUNT
    connect_retry_interval: int = DEFAULT_CONNECT_RETRY_INTERVAL
    methods: Dict[ConnectionMethod, MethodConfig] = field(default_factory=dict)

    @property
    def test_all(self) -> bool:
        return self.connection_method == TEST_ALL

    @classmethod
    def from_config(cls, config: dict) -> "SqlSettings":
        section = _section(config, SQL_SECTION)
        return cls(
            server_name=_required(section, SQL_SECTION, "ServerName"),
            database_name=_required(section, SQL_SECTION, "DatabaseName"),
            table_name=_str(section, "TableName", DEFAULT_TABLE_NAME),
            connection_method=_str(section, "ConnectionMethod", DEFAULT_METHOD),
            driver=_str(section, "Driver", DEFAULT_DRIVER),
            connect_timeout=_int(section, "ConnectTimeout", DEFAULT_CONNECT_TIMEOUT),
            connect_retry_count=_int(
                section, "ConnectRetryCount", DEFAULT_CONNECT_RETRY_COUNT,
            ),
            connect_retry_interval=_int(
                section, "ConnectRetryInterval", DEFAULT_CONNECT_RETRY_INTERVAL,
            ),
            methods=_method_configs(section, SQL_METHODS),
        )


@dataclass(frozen=True)
class CosmosSettings:
    """Validated ``CosmosDb`` section."""

    account_endpoint: str
    database_name: str
    container_name: str
    partition_key_path: str = DEFAULT_PARTITION_KEY_PATH
    connection_method: str = DEFAULT_METHOD
    throughput: int = DEFAULT_THROUGHPUT
    request_timeout: int = DEFAULT_REQUEST_TIMEOUT
    max_retry_attempts: int = DEFAULT_MAX_RETRY_ATTEMPTS
    max_retry_wait_seconds: int = DEFAULT_MAX_RETRY_WAIT_SECONDS
    methods: Dict[ConnectionMethod, MethodConfig] = field(default_factory=dict)

    @property
    def test_all(self) -> bool:
        return self.connection_method == TEST_ALL

    @classmethod
    def from_config(cls, config: dict) -> "CosmosSettings":
        section = _section(config, COSMOS_SECTION)
        pk_path = _str(section, "PartitionKeyPath", DEFAULT_PARTITION_KEY_PATH)
        if not pk_path.startswith("/"):
            raise ConfigError(f"PartitionKeyPath must start with '/', got {pk_path!r}")
        try:
            sample_item(pk_path)
        except ValueError as exc:
            raise ConfigError(
                f"PartitionKeyPath {pk_path!r} does not fit the demo item: {exc}"
            ) from exc
        return cls(
            account_endpoint=_required(section, COSMOS_SECTION, "AccountEndpoint"),
            database_name=_required(section, COSMOS_SECTION, "DatabaseName"),
            container_name=_required(section, COSMOS_SECTION, "ContainerName"),
            partition_key_path=pk_path,
            connection_method=_str(section, "ConnectionMethod", DEFAULT_METHOD),
            throughput=_int(section, "Throughput", DEFAULT_THROUGHPUT),
            request_timeout=_int(section, "RequestTimeout", DEFAULT_REQUEST_TIMEOUT),
            max_retry_attempts=_int(
                section, "MaxRetryAttempts", DEFAULT_MAX_RETRY_ATTEMPTS,
            ),
            max_retry_wait_seconds=_int(
                section, "MaxRetryWaitSeconds", DEFAULT_MAX_RETRY_WAIT_SECONDS,
            ),
            methods=_method_configs(section, COSMOS_METHODS),
        )


def load_settings(
    path: Union[str, Path, dict], target: str,
) -> Union[SqlSettings, CosmosSettings]:
    """Load the settings for *target* (``"sql"`` or ``"cosmos"``).

    *path* may also be an already-parsed dict.
    """
    load_dotenv()
    config: Any = path
    if isinstance(path, (str, Path)):
        config = load_config_file(path)
    if target == "sql":
        return SqlSettings.from_config(config)
    if target == "cosmos":
        return CosmosSettings.from_config(config)
    raise ConfigError(f"Unknown target {target!r} (expected 'sql' or 'cosmos')")
