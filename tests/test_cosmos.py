"""Tests for azdb_connect.cosmos -- CosmosDBConnection."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

import pytest

from azdb_connect._constants import EMULATOR_ENDPOINT, EMULATOR_KEY
from azdb_connect.cosmos import CosmosDBConnection
from azdb_connect.errors import ConfigError, CredentialError, ValidationError
from azdb_connect.methods import (
    AccountKeyCredentials,
    ConnectionMethod,
    ConnectionStringCredentials,
    MethodConfig,
    SqlCredentials,
)

ENDPOINT = "https://acct.documents.azure.com:443/"


def _client(regions=("West US", "East US")):
    client = MagicMock()
    client.get_database_account.return_value = MagicMock(
        ReadableLocations=[{"name": r, "databaseAccountEndpoint": "x"} for r in regions],
    )
    return client


class TestCosmosDBConnection:
    def test_requires_endpoint(self):
        with pytest.raises(ConfigError, match="AccountEndpoint"):
            CosmosDBConnection("")

    def test_client_options(self):
        cosmos = CosmosDBConnection(ENDPOINT, request_timeout=5, max_retry_attempts=2)
        assert cosmos.client_options() == {
            "connection_timeout": 5, "retry_total": 2, "retry_backoff_max": 30,
        }

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_account_key(self, mock_client_cls):
        mock_client_cls.return_value = _client()
        cosmos = CosmosDBConnection(ENDPOINT)
        client = cosmos.connect_with_account_key("key==")
        assert client is mock_client_cls.return_value
        args, kwargs = mock_client_cls.call_args
        assert args == (ENDPOINT,)
        assert kwargs["credential"] == "key=="
        assert kwargs["retry_total"] == 3
        assert cosmos.account_info == {"regions": ["West US", "East US"]}

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_account_key_empty_fails_before_client(self, mock_client_cls):
        cosmos = CosmosDBConnection(ENDPOINT)
        with pytest.raises(CredentialError, match="Account key cannot be empty"):
            cosmos.connect_with_account_key("")
        mock_client_cls.assert_not_called()

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_connection_string(self, mock_client_cls):
        mock_client_cls.from_connection_string.return_value = _client()
        cosmos = CosmosDBConnection(ENDPOINT)
        cosmos.connect_with_connection_string("AccountEndpoint=x;AccountKey=y;")
        args, kwargs = mock_client_cls.from_connection_string.call_args
        assert args == ("AccountEndpoint=x;AccountKey=y;",)
        assert kwargs["connection_timeout"] == 30

    @patch("azdb_connect.cosmos.DefaultAzureCredential")
    @patch("azdb_connect.cosmos.CosmosClient")
    def test_managed_identity(self, mock_client_cls, mock_cred_cls):
        mock_client_cls.return_value = _client()
        credential = mock_cred_cls.return_value
        with CosmosDBConnection(ENDPOINT) as cosmos:
            cosmos.connect_with_managed_identity()
            assert mock_client_cls.call_args.kwargs["credential"] is credential
        credential.__exit__.assert_called_once()
        mock_client_cls.return_value.__exit__.assert_called_once()

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_emulator_disables_cert_verification(self, mock_client_cls):
        mock_client_cls.return_value = _client(regions=("South Central US",))
        cosmos = CosmosDBConnection(ENDPOINT)
        cosmos.connect_to_emulator()
        args, kwargs = mock_client_cls.call_args
        assert args == (EMULATOR_ENDPOINT,)
        assert kwargs["credential"] == EMULATOR_KEY
        assert kwargs["connection_verify"] is False

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_emulator_empty_key_fails_before_client(self, mock_client_cls):
        cosmos = CosmosDBConnection(ENDPOINT)
        with pytest.raises(CredentialError, match="Emulator key cannot be empty"):
            cosmos.connect_to_emulator(EMULATOR_ENDPOINT, "")
        mock_client_cls.assert_not_called()

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_connect_checks_credentials_before_client(self, mock_client_cls):
        cosmos = CosmosDBConnection(ENDPOINT)
        cfg = MethodConfig(ConnectionMethod.CONNECTION_STRING)
        with pytest.raises(CredentialError, match="Connection string cannot be empty"):
            cosmos.connect(cfg)
        mock_client_cls.from_connection_string.assert_not_called()

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_emulator_failure_logs_hint(self, mock_client_cls, caplog):
        mock_client_cls.side_effect = ConnectionError("Connection refused")
        cosmos = CosmosDBConnection(ENDPOINT)
        with caplog.at_level(logging.WARNING, logger="azdb_connect.cosmos"):
            with pytest.raises(ConnectionError):
                cosmos.connect_to_emulator()
        assert "Emulator is running" in caplog.text

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_validation_failure_releases_client(self, mock_client_cls):
        client = MagicMock()
        client.get_database_account.side_effect = RuntimeError("Forbidden\nActivityId: 1")
        mock_client_cls.return_value = client
        cosmos = CosmosDBConnection(ENDPOINT)
        with pytest.raises(ValidationError, match="Failed to validate connection to Cosmos DB") as exc_info:
            cosmos.connect_with_account_key("k")
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        client.__exit__.assert_called_once()
        assert cosmos.client is None

    @patch("azdb_connect.cosmos.CosmosClient")
    def test_connect_twice_requires_close(self, mock_client_cls):
        mock_client_cls.return_value = _client()
        cosmos = CosmosDBConnection(ENDPOINT)
        cosmos.connect_with_account_key("k")
        with pytest.raises(RuntimeError, match="Already connected"):
            cosmos.connect_with_account_key("k")
        cosmos.close()
        cosmos.connect_with_account_key("k")

    def test_repr(self):
        assert ENDPOINT in repr(CosmosDBConnection(ENDPOINT))


class TestConnectDispatch:
    @pytest.mark.parametrize("config,attr,args", [
        (MethodConfig(ConnectionMethod.MANAGED_IDENTITY), "connect_with_managed_identity", ()),
        (
            MethodConfig(ConnectionMethod.ACCOUNT_KEY, credentials=AccountKeyCredentials("k")),
            "connect_with_account_key", ("k",),
        ),
        (
            MethodConfig(
                ConnectionMethod.CONNECTION_STRING,
                credentials=ConnectionStringCredentials("AccountEndpoint=x;"),
            ),
            "connect_with_connection_string", ("AccountEndpoint=x;",),
        ),
        (
            MethodConfig(ConnectionMethod.EMULATOR),
            "connect_to_emulator", (EMULATOR_ENDPOINT, EMULATOR_KEY),
        ),
    ])
    def test_dispatches_by_method(self, config, attr, args):
        cosmos = CosmosDBConnection(ENDPOINT)
        with patch.object(CosmosDBConnection, attr) as m:
            cosmos.connect(config)
        m.assert_called_once_with(*args)

    def test_rejects_sql_only_method(self):
        cosmos = CosmosDBConnection(ENDPOINT)
        cfg = MethodConfig(ConnectionMethod.SQL_AUTHENTICATION, credentials=SqlCredentials("u", "p"))
        with pytest.raises(ConfigError, match="not supported for Cosmos DB"):
            cosmos.connect(cfg)
