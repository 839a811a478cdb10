"""
Rollout Scorer configuration.

- Pydantic-based runtime settings (environment variables, .env files)
- YAML scoring configuration (services, platform instances, weights)
- Credential providers (Azure Key Vault, environment)
"""

from rolloutscorer.config.scoring import (
    GithubConfig,
    PlatformInstanceConfig,
    ScoringConfig,
    ServiceConfig,
    WeightConfig,
    load_scoring_config,
)
from rolloutscorer.config.secrets import (
    CredentialProvider,
    EnvCredentialProvider,
    KeyVaultCredentialProvider,
    create_credential_provider,
)
from rolloutscorer.config.settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Scoring config
    "GithubConfig",
    "PlatformInstanceConfig",
    "ScoringConfig",
    "ServiceConfig",
    "WeightConfig",
    "load_scoring_config",
    # Credentials
    "CredentialProvider",
    "EnvCredentialProvider",
    "KeyVaultCredentialProvider",
    "create_credential_provider",
]
