"""Authentication methods and the credentials each one carries.

Every method is a member of :class:`ConnectionMethod`.  The credential
payload a method needs is a small frozen dataclass; :data:`PAYLOAD_TYPES`
ties the two together so a :class:`MethodConfig` can never pair a method
with the wrong kind of credentials.

The registries are fixed and ordered; test-all runs walk them in order::

    SQL_METHODS     ManagedIdentity, SqlAuthentication, ConnectionString
    COSMOS_METHODS  ManagedIdentity, AccountKey, ConnectionString, Emulator
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Type, Union

from ._constants import EMULATOR_ENDPOINT, EMULATOR_KEY
from .errors import ConfigError, CredentialError


class ConnectionMethod(str, Enum):
    MANAGED_IDENTITY = "ManagedIdentity"
    SQL_AUTHENTICATION = "SqlAuthentication"
    ACCOUNT_KEY = "AccountKey"
    CONNECTION_STRING = "ConnectionString"
    EMULATOR = "Emulator"

    def __str__(self) -> str:
        return self.value


SQL_METHODS: Tuple[ConnectionMethod, ...] = (
    ConnectionMethod.MANAGED_IDENTITY,
    ConnectionMethod.SQL_AUTHENTICATION,
    ConnectionMethod.CONNECTION_STRING,
)

COSMOS_METHODS: Tuple[ConnectionMethod, ...] = (
    ConnectionMethod.MANAGED_IDENTITY,
    ConnectionMethod.ACCOUNT_KEY,
    ConnectionMethod.CONNECTION_STRING,
    ConnectionMethod.EMULATOR,
)


def _require(value: str, label: str) -> str:
    if value is None or not str(value).strip():
        raise CredentialError(f"{label} cannot be empty")
    return value


@dataclass(frozen=True)
class ManagedIdentityCredentials:
    """No secret: the token comes from the default Azure credential chain."""

    def check(self) -> None:
        return None


@dataclass(frozen=True)
class SqlCredentials:
    username: str = ""
    password: str = field(default="", repr=False)

    def check(self) -> None:
        _require(self.username, "Username")
        _require(self.password, "Password")


@dataclass(frozen=True)
class ConnectionStringCredentials:
    value: str = field(default="", repr=False)

    def check(self) -> None:
        _require(self.value, "Connection string")


@dataclass(frozen=True)
class AccountKeyCredentials:
    key: str = field(default="", repr=False)

    def check(self) -> None:
        _require(self.key, "Account key")


@dataclass(frozen=True)
class EmulatorCredentials:
    endpoint: str = EMULATOR_ENDPOINT
    key: str = field(default=EMULATOR_KEY, repr=False)

    def check(self) -> None:
        _require(self.endpoint, "Emulator endpoint")
        _require(self.key, "Emulator key")


Credentials = Union[
    ManagedIdentityCredentials,
    SqlCredentials,
    ConnectionStringCredentials,
    AccountKeyCredentials,
    EmulatorCredentials,
]

PAYLOAD_TYPES: Dict[ConnectionMethod, Type] = {
    ConnectionMethod.MANAGED_IDENTITY: ManagedIdentityCredentials,
    ConnectionMethod.SQL_AUTHENTICATION: SqlCredentials,
    ConnectionMethod.CONNECTION_STRING: ConnectionStringCredentials,
    ConnectionMethod.ACCOUNT_KEY: AccountKeyCredentials,
    ConnectionMethod.EMULATOR: EmulatorCredentials,
}


@dataclass(frozen=True)
class MethodConfig:
    """Enable flag plus credentials for one method.

    *error* holds the reason the credentials could not be read from the
    settings (for example an unset environment variable); such a method
    fails when attempted instead of stopping the whole run.
    """

    method: ConnectionMethod
    enabled: bool = True
    credentials: Credentials = None  # type: ignore[assignment]
    error: Optional[str] = None

    def __post_init__(self) -> None:
        expected = PAYLOAD_TYPES[self.method]
        if self.credentials is None:
            object.__setattr__(self, "credentials", expected())
        elif not isinstance(self.credentials, expected):
            raise ConfigError(
                f"{self.method} expects {expected.__name__}, "
                f"got {type(self.credentials).__name__}"
            )


def parse_method(name: str, registry: Tuple[ConnectionMethod, ...]) -> ConnectionMethod:
    """Resolve *name* against *registry* or raise :class:`ConfigError`."""
    for method in registry:
        if method.value == name:
            return method
    raise ConfigError(
        f"Unknown connection method: {name!r} "
        f"(expected one of {[m.value for m in registry]})"
    )
