"""
Scoring driver.

Scores rollout groups one at a time. Configuration for every group is
resolved before any group is scored, so a missing service or platform
instance aborts the cycle without partial results. Malformed rollout input
reported by the scoring function only skips that group.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

import structlog

from rolloutscorer.clients import AzureDevOpsClient, GitHubClient
from rolloutscorer.config.scoring import PlatformInstanceConfig, ScoringConfig, ServiceConfig
from rolloutscorer.config.secrets import CredentialProvider
from rolloutscorer.core.errors import ConfigurationError, InvalidRolloutError
from rolloutscorer.domain.models import Scorecard
from rolloutscorer.rollouts.grouping import RolloutGroup
from rolloutscorer.rollouts.scorer import ScoringClients, ScoringFunction, invoke_scorer

logger = structlog.get_logger()


class GroupOutcome(StrEnum):
    SCORED = "scored"
    SKIPPED = "skipped"


@dataclass
class GroupResult:
    service: str
    rollout_start: date | None
    rollouts: int
    outcome: GroupOutcome
    scorecard: Scorecard | None = None
    reason: str | None = None


@dataclass
class ScoringReport:
    results: list[GroupResult] = field(default_factory=list)

    @property
    def scorecards(self) -> list[Scorecard]:
        return [r.scorecard for r in self.results if r.scorecard is not None]

    @property
    def skipped(self) -> list[GroupResult]:
        return [r for r in self.results if r.outcome is GroupOutcome.SKIPPED]


@dataclass
class ResolvedGroup:
    group: RolloutGroup
    service: ServiceConfig
    instance: PlatformInstanceConfig


@dataclass
class ScoringDriver:
    config: ScoringConfig
    credentials: CredentialProvider
    scorer: ScoringFunction
    github: GitHubClient
    http_timeout: float = 30.0
    http_max_retries: int = 3
    _clients: dict[str, ScoringClients] = field(default_factory=dict, init=False)

    def resolve(self, groups: Sequence[RolloutGroup]) -> list[ResolvedGroup]:
        """Resolve service and instance configuration for every group up front."""
        resolved: list[ResolvedGroup] = []
        missing: list[str] = []
        for group in groups:
            try:
                service = self.config.resolve_service_config(group.service)
                instance = self.config.resolve_instance_config(service.platform_instance)
            except ConfigurationError as exc:
                logger.error("config_resolution_failed", service=group.service, error=exc.message)
                missing.append(group.service)
                continue
            resolved.append(ResolvedGroup(group=group, service=service, instance=instance))

        if missing:
            raise ConfigurationError(
                "Scoring configuration missing for services",
                details={"services": ", ".join(missing)},
            )
        return resolved

    async def _clients_for(self, instance: PlatformInstanceConfig) -> ScoringClients:
        clients = self._clients.get(instance.name)
        if clients is not None:
            return clients

        logger.info("fetching_platform_credentials", platform_instance=instance.name)
        pat = await self.credentials.get_secret(instance.key_vault_uri, instance.pat_secret_name)
        clients = ScoringClients(
            azure_devops=AzureDevOpsClient(
                instance.organization,
                instance.project,
                pat,
                base_url=instance.base_url,
                timeout=self.http_timeout,
                max_retries=self.http_max_retries,
            ),
            github=self.github,
        )
        self._clients[instance.name] = clients
        return clients

    async def _score_group(self, resolved: ResolvedGroup) -> GroupResult:
        group = resolved.group
        rollout_start = group.rollout_start
        log = logger.bind(service=group.service, rollout_start=str(rollout_start))

        if rollout_start is None:
            log.error("group_skipped", reason="missing_rollout_start")
            return GroupResult(
                service=group.service,
                rollout_start=None,
                rollouts=len(group.deployments),
                outcome=GroupOutcome.SKIPPED,
                reason="first deployment in group has no start time",
            )

        clients = await self._clients_for(resolved.instance)
        log.info("scoring_group", rollouts=len(group.deployments))
        try:
            scorecard = await invoke_scorer(
                self.scorer,
                group.service,
                rollout_start,
                self.config.weights_for(resolved.service),
                clients,
            )
        except InvalidRolloutError as exc:
            log.error("group_skipped", reason="invalid_rollout", error=exc.message)
            return GroupResult(
                service=group.service,
                rollout_start=rollout_start,
                rollouts=len(group.deployments),
                outcome=GroupOutcome.SKIPPED,
                reason=exc.message,
            )

        log.info("scorecard_created", total_score=scorecard.total_score)
        return GroupResult(
            service=group.service,
            rollout_start=rollout_start,
            rollouts=len(group.deployments),
            outcome=GroupOutcome.SCORED,
            scorecard=scorecard,
        )

    async def score(self, groups: Sequence[RolloutGroup]) -> ScoringReport:
        report = ScoringReport()
        for resolved in self.resolve(groups):
            report.results.append(await self._score_group(resolved))
        return report
