"""
Static scoring configuration.

Loads the repository/service table, the deployment platform instances and
the rollout weighting from a YAML file:

    weights:
      rollout_hours: 1
      failed_rollout: 50
    github:
      owner: dotnet
      repo: core-eng
      pat_secret_name: github-pat
    platform_instances:
      - name: dnceng
        organization: dnceng
        project: internal
        key_vault_uri: https://engkeyvault.vault.azure.net
        pat_secret_name: dn-bot-dnceng-build-rw
    services:
      - service: arcade-services
        platform_instance: dnceng

``${env:NAME}`` references are expanded from the environment on load.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from rolloutscorer.core.errors import ConfigurationError

logger = structlog.get_logger()

ENV_REF_PATTERN = re.compile(r"\$\{env:([A-Za-z_][A-Za-z0-9_]*)(?:\|default:([^}]*))?\}")


class WeightConfig(BaseModel):
    """Rollout weighting handed to the scoring function."""

    rollout_hours: float = 1.0
    failed_rollout: float = 50.0
    hotfix: float = 10.0
    rollback: float = 25.0
    downtime_minutes: float = 1.0


class GithubConfig(BaseModel):
    """Where scorecards are published for review."""

    owner: str
    repo: str
    base_branch: str = "main"
    output_path: str = "scorecards"
    key_vault_uri: str | None = None
    pat_secret_name: str = "github-pat"
    api_url: str = "https://api.github.com"


class PlatformInstanceConfig(BaseModel):
    """A deployment platform (Azure DevOps) instance and where its PAT lives."""

    name: str
    organization: str
    project: str
    key_vault_uri: str
    pat_secret_name: str
    base_url: str = "https://dev.azure.com"


class ServiceConfig(BaseModel):
    """Per-service scoring settings."""

    service: str
    platform_instance: str
    display_name: str | None = None
    weights: WeightConfig | None = None


class ScoringConfig(BaseModel):
    """Lookup tables for services and platform instances."""

    weights: WeightConfig = Field(default_factory=WeightConfig)
    github: GithubConfig
    services: list[ServiceConfig] = Field(default_factory=list)
    platform_instances: list[PlatformInstanceConfig] = Field(default_factory=list)

    def resolve_service_config(self, service_id: str) -> ServiceConfig:
        for service in self.services:
            if service.service == service_id:
                return service
        raise ConfigurationError(
            f"No scoring configuration for service '{service_id}'",
            details={"service": service_id},
        )

    def resolve_instance_config(self, instance_name: str) -> PlatformInstanceConfig:
        for instance in self.platform_instances:
            if instance.name == instance_name:
                return instance
        raise ConfigurationError(
            f"No platform instance configuration named '{instance_name}'",
            details={"platform_instance": instance_name},
        )

    def weights_for(self, service: ServiceConfig) -> WeightConfig:
        return service.weights or self.weights


def expand_env_refs(value: Any) -> Any:
    """Recursively expand ``${env:NAME}`` references in loaded YAML."""
    if isinstance(value, str):

        def replace_match(match: re.Match[str]) -> str:
            resolved = os.environ.get(match.group(1))
            if resolved is None:
                resolved = match.group(2)
            return resolved if resolved is not None else match.group(0)

        return ENV_REF_PATTERN.sub(replace_match, value)
    if isinstance(value, dict):
        return {k: expand_env_refs(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_refs(v) for v in value]
    return value


def load_scoring_config(path: str | Path) -> ScoringConfig:
    """Load and validate the scoring configuration file."""
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(
            "Scoring configuration file not found", details={"path": str(config_path)}
        )

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            "Scoring configuration is not valid YAML",
            details={"path": str(config_path), "error": str(e)},
        ) from e

    try:
        config = ScoringConfig.model_validate(expand_env_refs(data))
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Scoring configuration failed validation",
            details={"path": str(config_path), "errors": e.error_count()},
        ) from e

    logger.debug(
        "loaded_scoring_config",
        path=str(config_path),
        services=len(config.services),
        platform_instances=len(config.platform_instances),
    )
    return config
