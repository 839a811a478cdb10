"""
One scoring cycle.

Loads deployment and scorecard records, selects rollouts not yet covered by
a scorecard, waits until the most recent one has stabilized (force-closing
stuck deployments), scores each service's rollout and publishes the batch.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Callable, Protocol

import structlog

from rolloutscorer.clients import GitHubClient
from rolloutscorer.config.scoring import ScoringConfig
from rolloutscorer.config.secrets import CredentialProvider
from rolloutscorer.domain.models import DeploymentRecord, Scorecard, ScorecardRecord
from rolloutscorer.publishing.publisher import Publisher, ScorecardPublisher, ScorecardWriter
from rolloutscorer.rollouts.completion import CompletionDecision, DeploymentWriter, normalize
from rolloutscorer.rollouts.driver import ScoringDriver, ScoringReport
from rolloutscorer.rollouts.eligibility import (
    SCORING_BUFFER,
    latest_scorecard_date,
    select_eligible,
)
from rolloutscorer.rollouts.grouping import group_by_service
from rolloutscorer.rollouts.scorer import ScoringFunction

logger = structlog.get_logger()


class RecordStoreLike(DeploymentWriter, ScorecardWriter, Protocol):
    async def list_deployments(self) -> list[DeploymentRecord]: ...

    async def list_scorecards(self) -> list[ScorecardRecord]: ...


class CycleStatus(StrEnum):
    NO_CANDIDATES = "no_candidates"
    WAITING = "waiting"
    SCORED = "scored"


@dataclass
class CycleReport:
    run_id: str
    status: CycleStatus
    deployments: int = 0
    eligible: int = 0
    decision: CompletionDecision | None = None
    closed: list[str] = field(default_factory=list)
    scoring: ScoringReport | None = None
    published: bool = False

    @property
    def scorecards(self) -> list[Scorecard]:
        return self.scoring.scorecards if self.scoring else []


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RolloutScoringJob:
    store: RecordStoreLike
    config: ScoringConfig
    credentials: CredentialProvider
    scorer: ScoringFunction
    skip_review: bool = True
    buffer: timedelta = SCORING_BUFFER
    http_timeout: float = 30.0
    http_max_retries: int = 3
    clock: Callable[[], datetime] = utcnow
    publisher_factory: Callable[[GitHubClient], Publisher] | None = None

    def _publisher(self, github: GitHubClient) -> Publisher:
        if self.publisher_factory is not None:
            return self.publisher_factory(github)
        return ScorecardPublisher(store=self.store, github=github, config=self.config.github)

    async def _github_client(self) -> GitHubClient:
        github_config = self.config.github
        token = await self.credentials.get_secret(
            github_config.key_vault_uri, github_config.pat_secret_name
        )
        return GitHubClient(
            token,
            base_url=github_config.api_url,
            timeout=self.http_timeout,
            max_retries=self.http_max_retries,
        )

    async def run(self, run_id: str | None = None) -> CycleReport:
        run_id = run_id or uuid.uuid4().hex
        now = self.clock()

        scorecards = await self.store.list_scorecards()
        deployments = await self.store.list_deployments()
        logger.info(
            "records_loaded",
            scorecards=len(scorecards),
            deployments=len(deployments),
        )

        latest = latest_scorecard_date(scorecards)
        eligible = select_eligible(deployments, scorecards, buffer=self.buffer)
        logger.info(
            "eligible_deployments",
            count=len(eligible),
            latest_scorecard=latest.isoformat() if latest else None,
        )
        report = CycleReport(
            run_id=run_id,
            status=CycleStatus.NO_CANDIDATES,
            deployments=len(deployments),
            eligible=len(eligible),
        )

        if not eligible:
            logger.info(
                "no_rollouts_to_score",
                latest_scorecard=latest.isoformat() if latest else None,
            )
            return report

        normalized = await normalize(eligible, self.store, now, buffer=self.buffer)
        if normalized is None:
            return report
        report.decision = normalized.decision
        report.closed = [d.id for d in normalized.closed]
        if not normalized.decision.should_score:
            report.status = CycleStatus.WAITING
            return report

        logger.info("rollouts_will_be_scored", decision=normalized.decision.value)
        github = await self._github_client()

        groups = group_by_service(normalized.deployments)
        driver = ScoringDriver(
            config=self.config,
            credentials=self.credentials,
            scorer=self.scorer,
            github=github,
            http_timeout=self.http_timeout,
            http_max_retries=self.http_max_retries,
        )
        report.scoring = await driver.score(groups)
        report.status = CycleStatus.SCORED

        batch = report.scoring.scorecards
        logger.info(
            "scoring_complete",
            scored=len(batch),
            skipped=len(report.scoring.skipped),
        )
        if not batch:
            logger.info("nothing_to_publish")
            return report

        await self._publisher(github).publish(
            batch, skip_review=self.skip_review, covered_until=now - self.buffer
        )
        report.published = True
        return report
