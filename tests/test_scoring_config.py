"""Tests for scoring configuration loading and lookup."""

import pytest
from rolloutscorer.config.scoring import (
    WeightConfig,
    expand_env_refs,
    load_scoring_config,
)
from rolloutscorer.core.errors import ConfigurationError

CONFIG_YAML = """
weights:
  rollout_hours: 2
  failed_rollout: 40
github:
  owner: example-org
  repo: rollout-scorecards
  key_vault_uri: ${env:TEST_VAULT_URI}
platform_instances:
  - name: primary
    organization: example-org
    project: internal
    key_vault_uri: ${env:TEST_VAULT_URI}
    pat_secret_name: ${env:TEST_PAT_NAME|default:azdo-pat}
services:
  - service: x
    platform_instance: primary
  - service: z
    platform_instance: primary
    weights:
      hotfix: 99
"""


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_VAULT_URI", "https://eng.vault.azure.net")
    monkeypatch.delenv("TEST_PAT_NAME", raising=False)
    path = tmp_path / "scoring.yaml"
    path.write_text(CONFIG_YAML)
    return path


class TestLoadScoringConfig:
    def test_loads_and_expands_env_refs(self, config_file):
        config = load_scoring_config(config_file)

        assert config.github.key_vault_uri == "https://eng.vault.azure.net"
        instance = config.resolve_instance_config("primary")
        assert instance.key_vault_uri == "https://eng.vault.azure.net"
        assert instance.pat_secret_name == "azdo-pat"
        assert instance.base_url == "https://dev.azure.com"
        assert config.weights.rollout_hours == 2
        assert config.weights.hotfix == WeightConfig().hotfix

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_scoring_config(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "scoring.yaml"
        path.write_text("github: [unclosed\n")

        with pytest.raises(ConfigurationError, match="not valid YAML"):
            load_scoring_config(path)

    def test_validation_failure(self, tmp_path):
        path = tmp_path / "scoring.yaml"
        path.write_text("services:\n  - service: x\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_scoring_config(path)

        assert exc_info.value.details["errors"] >= 2


class TestResolution:
    def test_resolve_service(self, scoring_config):
        assert scoring_config.resolve_service_config("z").platform_instance == "public"

    def test_unknown_service(self, scoring_config):
        with pytest.raises(ConfigurationError) as exc_info:
            scoring_config.resolve_service_config("nope")
        assert exc_info.value.details == {"service": "nope"}

    def test_unknown_instance(self, scoring_config):
        with pytest.raises(ConfigurationError) as exc_info:
            scoring_config.resolve_instance_config("gone")
        assert exc_info.value.details == {"platform_instance": "gone"}

    def test_weights_fall_back_to_global(self, scoring_config):
        x = scoring_config.resolve_service_config("x")
        z = scoring_config.resolve_service_config("z")

        assert scoring_config.weights_for(x) is scoring_config.weights
        assert scoring_config.weights_for(z).rollout_hours == 5


def test_expand_env_refs_leaves_unknown_reference(monkeypatch):
    monkeypatch.delenv("NOT_SET_ANYWHERE", raising=False)

    assert expand_env_refs({"a": ["${env:NOT_SET_ANYWHERE}"]}) == {
        "a": ["${env:NOT_SET_ANYWHERE}"]
    }
