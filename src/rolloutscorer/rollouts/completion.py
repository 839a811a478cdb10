"""
Completion normalization.

Decides whether this cycle commits to scoring based on the most recently
ended candidate, and force-closes deployments whose end was never recorded
once they are old enough to be considered stuck.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Protocol

import structlog

from rolloutscorer.domain.models import DeploymentRecord
from rolloutscorer.rollouts.eligibility import SCORING_BUFFER, most_recent

logger = structlog.get_logger()

STUCK_GRACE = timedelta(days=1)


class CompletionDecision(StrEnum):
    READY = "ready"
    FORCED = "forced"
    WAITING_RECENT = "waiting_recent"
    WAITING_IN_PROGRESS = "waiting_in_progress"

    @property
    def should_score(self) -> bool:
        return self in (CompletionDecision.READY, CompletionDecision.FORCED)


class DeploymentWriter(Protocol):
    async def replace_deployment(self, record: DeploymentRecord) -> bool: ...


def evaluate(
    deployment: DeploymentRecord,
    now: datetime,
    *,
    buffer: timedelta = SCORING_BUFFER,
) -> CompletionDecision:
    """Classify the trigger deployment. Pure."""
    if deployment.ended is not None:
        if deployment.ended < now - buffer:
            return CompletionDecision.READY
        return CompletionDecision.WAITING_RECENT

    if deployment.started is not None and deployment.started < now - (buffer + STUCK_GRACE):
        return CompletionDecision.FORCED
    return CompletionDecision.WAITING_IN_PROGRESS


@dataclass
class NormalizationResult:
    decision: CompletionDecision
    trigger: DeploymentRecord
    deployments: list[DeploymentRecord] = field(default_factory=list)
    closed: list[DeploymentRecord] = field(default_factory=list)


async def normalize(
    eligible: Sequence[DeploymentRecord],
    store: DeploymentWriter,
    now: datetime,
    *,
    buffer: timedelta = SCORING_BUFFER,
) -> NormalizationResult | None:
    """Decide whether to score ``eligible`` and close any open records first.

    Returns None when there is nothing to decide on. On a scoring decision
    every open record in ``eligible`` is closed at ``now`` and persisted
    before the returned ``deployments`` list is built. Write failures
    propagate so nothing is scored against a record still marked open.
    """
    trigger = most_recent(eligible)
    if trigger is None:
        return None

    decision = evaluate(trigger, now, buffer=buffer)
    if not decision.should_score:
        if decision is CompletionDecision.WAITING_RECENT:
            logger.info(
                "waiting_to_score",
                reason="recent_rollout",
                service=trigger.service,
                ended=trigger.ended.isoformat() if trigger.ended else None,
            )
        else:
            logger.info(
                "waiting_to_score",
                reason="rollout_in_progress",
                service=trigger.service,
                started=trigger.started.isoformat() if trigger.started else None,
            )
        return NormalizationResult(decision=decision, trigger=trigger)

    deployments: list[DeploymentRecord] = []
    closed: list[DeploymentRecord] = []
    for deployment in eligible:
        if deployment.is_open:
            forced = deployment.force_close(now)
            if await store.replace_deployment(forced):
                closed.append(forced)
                logger.info(
                    "stuck_deployment_closed",
                    deployment_id=forced.id,
                    service=forced.service,
                    started=forced.started.isoformat() if forced.started else None,
                    ended=now.isoformat(),
                )
            else:
                logger.info("deployment_already_closed", deployment_id=forced.id)
            deployment = forced
        deployments.append(deployment)

    return NormalizationResult(
        decision=decision, trigger=trigger, deployments=deployments, closed=closed
    )
