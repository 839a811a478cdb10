"""
Credential providers.

Backends:
- Azure Key Vault (default, uses DefaultAzureCredential)
- Environment variables (local runs and tests)
"""

from __future__ import annotations

import os
from typing import Protocol

import structlog
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient

from rolloutscorer.core.errors import ConfigurationError, ProviderError

logger = structlog.get_logger()


def _sanitize_error(exc: Exception) -> str:
    """Sanitize error message to avoid leaking sensitive details."""
    return type(exc).__name__


class CredentialProvider(Protocol):
    async def get_secret(self, vault_uri: str | None, secret_name: str) -> str: ...

    async def aclose(self) -> None: ...


class KeyVaultCredentialProvider:
    """Reads secrets from Azure Key Vault, one client per vault."""

    def __init__(self, credential: DefaultAzureCredential | None = None) -> None:
        self._credential = credential or DefaultAzureCredential()
        self._clients: dict[str, SecretClient] = {}

    def _get_client(self, vault_uri: str) -> SecretClient:
        client = self._clients.get(vault_uri)
        if client is None:
            client = SecretClient(vault_url=vault_uri, credential=self._credential)
            self._clients[vault_uri] = client
        return client

    async def get_secret(self, vault_uri: str | None, secret_name: str) -> str:
        if not vault_uri:
            raise ConfigurationError(
                "No key vault configured for secret", details={"secret": secret_name}
            )

        logger.info("fetching_secret", vault=vault_uri, secret=secret_name)
        try:
            secret = await self._get_client(vault_uri).get_secret(secret_name)
        except ResourceNotFoundError as exc:
            raise ConfigurationError(
                "Secret not found in key vault",
                details={"vault": vault_uri, "secret": secret_name},
            ) from exc
        except AzureError as exc:
            logger.error(
                "failed_to_load_secret",
                vault=vault_uri,
                secret=secret_name,
                error=_sanitize_error(exc),
            )
            raise ProviderError(
                "Key vault request failed",
                details={"vault": vault_uri, "secret": secret_name},
            ) from exc

        if secret.value is None:
            raise ConfigurationError(
                "Secret has no value", details={"vault": vault_uri, "secret": secret_name}
            )
        return secret.value

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.close()
        self._clients.clear()
        await self._credential.close()


class EnvCredentialProvider:
    """Reads secrets from ROLLOUTSCORER_SECRET_<NAME> environment variables.

    The vault URI is ignored; secret names are upper-cased with dashes
    turned into underscores.
    """

    def __init__(self, prefix: str = "ROLLOUTSCORER_SECRET_") -> None:
        self.prefix = prefix

    def _name_to_env(self, secret_name: str) -> str:
        normalized = secret_name.replace("/", "_").replace("-", "_").upper()
        return f"{self.prefix}{normalized}"

    async def get_secret(self, vault_uri: str | None, secret_name: str) -> str:
        env_key = self._name_to_env(secret_name)
        value = os.environ.get(env_key)
        if value is None:
            raise ConfigurationError(
                "Secret not set in environment",
                details={"secret": secret_name, "env": env_key},
            )
        return value

    async def aclose(self) -> None:
        return None


def create_credential_provider(backend: str) -> CredentialProvider:
    if backend == "azure":
        return KeyVaultCredentialProvider()
    if backend == "env":
        return EnvCredentialProvider()
    raise ConfigurationError(
        f"Unknown credentials backend '{backend}'", details={"backend": backend}
    )
