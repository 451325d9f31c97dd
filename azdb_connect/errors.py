"""Exception types raised before or around a connection attempt.

Errors raised by the database SDKs themselves (``pyodbc.Error``,
``azure.core.exceptions.AzureError``) are not wrapped, except when they
occur during post-open validation.
"""


class ConnectorError(Exception):
    """Base class for errors owned by azdb_connect."""


class ConfigError(ConnectorError, ValueError):
    """A required setting is missing or malformed, or a method name is unknown."""


class CredentialError(ConnectorError, ValueError):
    """A method-specific credential field is empty."""


class ValidationError(ConnectorError, RuntimeError):
    """The connection opened but the validation round-trip failed."""
