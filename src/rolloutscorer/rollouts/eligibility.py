"""
Eligibility selection.

A deployment is a scoring candidate when its effective end time falls
strictly after the latest scorecard date plus the buffer period. A missing
end time counts as later than any real timestamp.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from rolloutscorer.domain.models import DeploymentRecord, ScorecardRecord

SCORING_BUFFER = timedelta(days=2)


def effective_end_key(deployment: DeploymentRecord) -> tuple[bool, datetime | None]:
    """Sort key placing deployments without an end time last."""
    return (deployment.ended is None, deployment.ended)


def latest_scorecard_date(scorecards: Iterable[ScorecardRecord]) -> datetime | None:
    return max((s.date for s in scorecards), default=None)


def is_after(deployment: DeploymentRecord, cutoff: datetime) -> bool:
    return deployment.ended is None or deployment.ended > cutoff


def select_eligible(
    deployments: Iterable[DeploymentRecord],
    scorecards: Iterable[ScorecardRecord],
    *,
    buffer: timedelta = SCORING_BUFFER,
) -> list[DeploymentRecord]:
    """Deployments not yet covered by a scorecard, ordered by effective end."""
    ordered = sorted(deployments, key=effective_end_key)
    latest = latest_scorecard_date(scorecards)
    if latest is None:
        return ordered

    cutoff = latest + buffer
    return [d for d in ordered if is_after(d, cutoff)]


def most_recent(eligible: Sequence[DeploymentRecord]) -> DeploymentRecord | None:
    return eligible[-1] if eligible else None
