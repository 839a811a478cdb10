"""
Scorecard publication.

Opens a review pull request with the batch as CSV (production only), then
appends the scorecard records that mark these rollouts as scored. Records
are written last so a failed pull request leaves the rollouts eligible for
the next run.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

import structlog
from circuitbreaker import CircuitBreakerError

from rolloutscorer.clients import GitHubClient, PermanentHTTPError, RetryableHTTPError
from rolloutscorer.config.scoring import GithubConfig
from rolloutscorer.core.errors import ProviderError
from rolloutscorer.domain.models import Scorecard, ScorecardRecord

logger = structlog.get_logger()

BASE_COLUMNS = ["service", "rollout_start", "total_score"]


class ScorecardWriter(Protocol):
    async def add_scorecards(self, records: Iterable[ScorecardRecord]) -> int: ...


class Publisher(Protocol):
    async def publish(
        self,
        scorecards: Sequence[Scorecard],
        *,
        skip_review: bool,
        covered_until: datetime,
    ) -> dict[str, Any]: ...


def render_csv(scorecards: Sequence[Scorecard]) -> str:
    metric_columns = sorted({key for s in scorecards for key in s.metrics})
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow(BASE_COLUMNS + metric_columns)
    for scorecard in scorecards:
        writer.writerow(
            [scorecard.service, scorecard.rollout_start.isoformat(), scorecard.total_score]
            + [scorecard.metrics.get(column, "") for column in metric_columns]
        )
    return output.getvalue()


@dataclass
class ScorecardPublisher:
    store: ScorecardWriter
    github: GitHubClient
    config: GithubConfig

    async def _open_pull_request(self, scorecards: Sequence[Scorecard], now: datetime) -> str:
        owner, repo = self.config.owner, self.config.repo
        stamp = now.strftime("%Y-%m-%d")
        branch = f"rollout-scorecards/{now.strftime('%Y%m%d%H%M%S')}"
        path = f"{self.config.output_path.rstrip('/')}/Scorecard_{stamp}.csv"
        services = ", ".join(s.service for s in scorecards)

        try:
            sha = await self.github.get_branch_sha(owner, repo, self.config.base_branch)
            await self.github.create_branch(owner, repo, branch, sha)
            await self.github.put_file(
                owner,
                repo,
                path,
                render_csv(scorecards),
                branch=branch,
                message=f"Add rollout scorecards for {stamp}",
            )
            pull = await self.github.create_pull_request(
                owner,
                repo,
                title=f"Rollout scorecards for {stamp}",
                head=branch,
                base=self.config.base_branch,
                body=f"Scorecards for: {services}",
            )
        except (PermanentHTTPError, RetryableHTTPError, CircuitBreakerError) as exc:
            raise ProviderError(
                "Failed to open scorecard pull request",
                details={"repo": f"{owner}/{repo}", "error": str(exc)},
            ) from exc

        url = pull.get("html_url", "")
        logger.info("scorecard_pull_request_opened", url=url, branch=branch)
        return url

    async def publish(
        self,
        scorecards: Sequence[Scorecard],
        *,
        skip_review: bool,
        covered_until: datetime,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Publish ``scorecards`` and record them as covering up to ``covered_until``."""
        now = now or datetime.now(timezone.utc)
        logger.info(
            "publishing_scorecards",
            services=[s.service for s in scorecards],
            skip_review=skip_review,
            covered_until=covered_until.isoformat(),
        )

        pull_request_url = None
        if not skip_review:
            pull_request_url = await self._open_pull_request(scorecards, now)

        stored = await self.store.add_scorecards(s.to_record(covered_until) for s in scorecards)
        logger.info("scorecards_stored", count=stored)
        return {"stored": stored, "pull_request_url": pull_request_url}
