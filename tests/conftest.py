"""Root test configuration and shared fixtures."""

import logging
from datetime import datetime, timedelta, timezone

import pytest
import structlog
from rolloutscorer.config.scoring import (
    GithubConfig,
    PlatformInstanceConfig,
    ScoringConfig,
    ServiceConfig,
    WeightConfig,
)
from rolloutscorer.core.errors import InvalidRolloutError, ProviderError
from rolloutscorer.domain.models import DeploymentRecord, Scorecard

DAY0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


def pytest_configure(config):
    """Configure structlog for tests to suppress debug/info output."""
    logging.basicConfig(level=logging.WARNING, force=True)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.add_log_level,
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def at_day(days: float) -> datetime:
    return DAY0 + timedelta(days=days)


class FakeRecordStore:
    """In-memory record store keeping insertion order."""

    def __init__(self, deployments=(), scorecards=()):
        self.deployments = {d.id: d for d in deployments}
        self.scorecards = list(scorecards)
        self.replaced: list[DeploymentRecord] = []
        self.added = []
        self.fail_writes = False

    async def list_deployments(self):
        return list(self.deployments.values())

    async def list_scorecards(self):
        return list(self.scorecards)

    async def replace_deployment(self, record):
        if self.fail_writes:
            raise ProviderError("write failed", details={"deployment_id": record.id})
        current = self.deployments[record.id]
        if current.ended is not None:
            return False
        self.deployments[record.id] = record
        self.replaced.append(record)
        return True

    async def add_scorecards(self, records):
        records = list(records)
        self.scorecards.extend(records)
        self.added.extend(records)
        return len(records)


class StubCredentials:
    def __init__(self):
        self.calls: list[tuple[str | None, str]] = []
        self.closed = False

    async def get_secret(self, vault_uri, secret_name):
        self.calls.append((vault_uri, secret_name))
        return f"secret-{secret_name}"

    async def aclose(self):
        self.closed = True


class RecordingScorer:
    """Scoring function stub; services in ``invalid`` raise InvalidRolloutError."""

    def __init__(self, invalid=(), broken=()):
        self.invalid = set(invalid)
        self.broken = set(broken)
        self.calls = []

    async def __call__(self, service, rollout_start, weights, clients):
        self.calls.append((service, rollout_start, weights, clients))
        if service in self.invalid:
            raise InvalidRolloutError(f"no builds found for {service}")
        if service in self.broken:
            raise RuntimeError(f"scoring exploded for {service}")
        return Scorecard(
            service=service,
            rollout_start=rollout_start,
            total_score=42.0,
            metrics={"rollout_hours": 3},
        )


@pytest.fixture
def day():
    """Return a function mapping a day offset to an aware timestamp."""
    return at_day


@pytest.fixture
def deployment():
    def make(id, service, started=None, ended=None, **kwargs):
        return DeploymentRecord(
            id=id,
            service=service,
            started=at_day(started) if started is not None else None,
            ended=at_day(ended) if ended is not None else None,
            **kwargs,
        )

    return make


@pytest.fixture
def fake_store():
    return FakeRecordStore


@pytest.fixture
def credentials():
    return StubCredentials()


@pytest.fixture
def recording_scorer():
    return RecordingScorer


@pytest.fixture
def scoring_config():
    return ScoringConfig(
        weights=WeightConfig(),
        github=GithubConfig(
            owner="example-org",
            repo="rollout-scorecards",
            key_vault_uri="https://eng.vault.azure.net",
            pat_secret_name="github-pat",
        ),
        platform_instances=[
            PlatformInstanceConfig(
                name="primary",
                organization="example-org",
                project="internal",
                key_vault_uri="https://eng.vault.azure.net",
                pat_secret_name="azdo-pat",
            ),
            PlatformInstanceConfig(
                name="public",
                organization="example-org",
                project="public",
                key_vault_uri="https://public.vault.azure.net",
                pat_secret_name="azdo-public-pat",
            ),
        ],
        services=[
            ServiceConfig(service="x", platform_instance="primary"),
            ServiceConfig(service="y", platform_instance="primary"),
            ServiceConfig(
                service="z",
                platform_instance="public",
                weights=WeightConfig(rollout_hours=5),
            ),
        ],
    )
