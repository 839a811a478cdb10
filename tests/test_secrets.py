"""Tests for credential providers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from azure.core.exceptions import ResourceNotFoundError, ServiceRequestError
from rolloutscorer.config.secrets import (
    EnvCredentialProvider,
    KeyVaultCredentialProvider,
    create_credential_provider,
)
from rolloutscorer.core.errors import ConfigurationError, ProviderError

VAULT = "https://eng.vault.azure.net"


class TestEnvCredentialProvider:
    @pytest.mark.asyncio
    async def test_reads_normalized_env_name(self, monkeypatch):
        monkeypatch.setenv("ROLLOUTSCORER_SECRET_GITHUB_PAT", "gh-secret")

        provider = EnvCredentialProvider()

        assert await provider.get_secret(VAULT, "github-pat") == "gh-secret"

    @pytest.mark.asyncio
    async def test_missing_env_var(self, monkeypatch):
        monkeypatch.delenv("ROLLOUTSCORER_SECRET_AZDO_PAT", raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            await EnvCredentialProvider().get_secret(None, "azdo-pat")

        assert exc_info.value.details["env"] == "ROLLOUTSCORER_SECRET_AZDO_PAT"


@pytest.fixture
def credential():
    credential = MagicMock()
    credential.close = AsyncMock()
    return credential


def mock_secret_client(value="secret-value", error=None):
    client = MagicMock()
    if error is not None:
        client.get_secret = AsyncMock(side_effect=error)
    else:
        client.get_secret = AsyncMock(return_value=MagicMock(value=value))
    client.close = AsyncMock()
    return client


class TestKeyVaultCredentialProvider:
    @pytest.mark.asyncio
    async def test_get_secret_reuses_client_per_vault(self, credential):
        client = mock_secret_client()
        with patch(
            "rolloutscorer.config.secrets.SecretClient", return_value=client
        ) as client_cls:
            provider = KeyVaultCredentialProvider(credential=credential)

            assert await provider.get_secret(VAULT, "azdo-pat") == "secret-value"
            assert await provider.get_secret(VAULT, "github-pat") == "secret-value"

        client_cls.assert_called_once_with(vault_url=VAULT, credential=credential)
        client.get_secret.assert_any_await("azdo-pat")

    @pytest.mark.asyncio
    async def test_missing_vault_uri(self, credential):
        provider = KeyVaultCredentialProvider(credential=credential)

        with pytest.raises(ConfigurationError):
            await provider.get_secret(None, "github-pat")

    @pytest.mark.asyncio
    async def test_secret_not_found_is_configuration_error(self, credential):
        client = mock_secret_client(error=ResourceNotFoundError("missing"))
        with patch("rolloutscorer.config.secrets.SecretClient", return_value=client):
            provider = KeyVaultCredentialProvider(credential=credential)

            with pytest.raises(ConfigurationError) as exc_info:
                await provider.get_secret(VAULT, "azdo-pat")

        assert exc_info.value.details == {"vault": VAULT, "secret": "azdo-pat"}

    @pytest.mark.asyncio
    async def test_vault_outage_is_provider_error(self, credential):
        client = mock_secret_client(error=ServiceRequestError("connection reset"))
        with patch("rolloutscorer.config.secrets.SecretClient", return_value=client):
            provider = KeyVaultCredentialProvider(credential=credential)

            with pytest.raises(ProviderError):
                await provider.get_secret(VAULT, "azdo-pat")

    @pytest.mark.asyncio
    async def test_empty_secret_value(self, credential):
        client = mock_secret_client(value=None)
        with patch("rolloutscorer.config.secrets.SecretClient", return_value=client):
            provider = KeyVaultCredentialProvider(credential=credential)

            with pytest.raises(ConfigurationError, match="no value"):
                await provider.get_secret(VAULT, "azdo-pat")

    @pytest.mark.asyncio
    async def test_aclose_closes_clients_and_credential(self, credential):
        client = mock_secret_client()
        with patch("rolloutscorer.config.secrets.SecretClient", return_value=client):
            provider = KeyVaultCredentialProvider(credential=credential)
            await provider.get_secret(VAULT, "azdo-pat")
            await provider.aclose()

        client.close.assert_awaited_once()
        credential.close.assert_awaited_once()


class TestCreateCredentialProvider:
    def test_env_backend(self):
        assert isinstance(create_credential_provider("env"), EnvCredentialProvider)

    def test_azure_backend(self):
        with patch("rolloutscorer.config.secrets.DefaultAzureCredential") as credential_cls:
            provider = create_credential_provider("azure")

        assert isinstance(provider, KeyVaultCredentialProvider)
        credential_cls.assert_called_once_with()

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_credential_provider("vault")
