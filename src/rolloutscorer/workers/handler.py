from __future__ import annotations

import asyncio
import uuid
from contextlib import nullcontext
from datetime import timedelta
from typing import Any

import structlog

from rolloutscorer.cloudwatch import MetricsCollector
from rolloutscorer.config import (
    Settings,
    create_credential_provider,
    get_settings,
    load_scoring_config,
)
from rolloutscorer.db.locks import advisory_lock
from rolloutscorer.db.repositories import RecordStore
from rolloutscorer.db.session import get_engine, get_session, init_engine
from rolloutscorer.jobs.score_rollouts import CycleReport, RolloutScoringJob
from rolloutscorer.logging import bind_run_context, clear_run_context, configure_logging
from rolloutscorer.rollouts.scorer import load_scorer

logger = structlog.get_logger()


async def run_cycle(settings: Settings) -> CycleReport:
    """Wire the collaborators from settings and run one scoring cycle."""
    config = load_scoring_config(settings.scoring_config_path)
    scorer = load_scorer(settings.scorer)
    credentials = create_credential_provider(settings.credentials_backend)
    metrics = MetricsCollector(
        "RolloutScorer", settings.aws_region, enabled=settings.metrics_enabled
    )

    run_id = uuid.uuid4().hex
    bind_run_context(run_id=run_id)
    environment = settings.deployment_environment

    logger.info(
        "cycle_started",
        environment=environment,
        skip_review=settings.skip_review,
        buffer_days=settings.scoring_buffer_days,
    )
    await metrics.emit("CycleStarted", 1, Environment=environment)

    lock = (
        advisory_lock(get_engine(), settings.run_lock_key)
        if settings.run_lock_enabled
        else nullcontext()
    )
    try:
        async with lock:
            async for session in get_session():
                job = RolloutScoringJob(
                    store=RecordStore(session, page_size=settings.page_size),
                    config=config,
                    credentials=credentials,
                    scorer=scorer,
                    skip_review=settings.skip_review,
                    buffer=timedelta(days=settings.scoring_buffer_days),
                    http_timeout=settings.http_timeout,
                    http_max_retries=settings.http_max_retries,
                )
                async with metrics.timer("CycleDuration", Environment=environment):
                    report = await job.run(run_id)
    except Exception as exc:
        logger.error("cycle_failed", error_type=type(exc).__name__, error=str(exc))
        await metrics.emit("CycleFailed", 1, Environment=environment)
        raise
    else:
        logger.info(
            "cycle_finished",
            status=report.status.value,
            scored=len(report.scorecards),
            closed=len(report.closed),
            published=report.published,
        )
        await metrics.emit("RolloutsScored", len(report.scorecards), Environment=environment)
        if report.scoring is not None:
            await metrics.emit(
                "GroupsSkipped", len(report.scoring.skipped), Environment=environment
            )
    finally:
        await credentials.aclose()
        await metrics.close()
        clear_run_context()

    return report


def summarize(report: CycleReport) -> dict[str, Any]:
    return {
        "run_id": report.run_id,
        "status": report.status.value,
        "eligible": report.eligible,
        "closed": report.closed,
        "scored": [s.service for s in report.scorecards],
        "skipped": [r.service for r in report.scoring.skipped] if report.scoring else [],
        "published": report.published,
    }


def scheduled_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Entry point for the daily scheduled trigger."""
    settings = get_settings()
    configure_logging()
    init_engine(settings)

    logger.info(
        "scheduled_invocation",
        request_id=getattr(context, "aws_request_id", "unknown"),
        scheduled_time=event.get("time"),
    )

    return summarize(asyncio.run(run_cycle(settings)))
