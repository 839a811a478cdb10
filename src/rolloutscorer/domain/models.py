from __future__ import annotations

import datetime as dt
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CompletionState(StrEnum):
    """How a deployment record came to have (or not have) an end time."""

    OPEN = "open"
    CLOSED_NATURAL = "closed_natural"
    CLOSED_FORCED = "closed_forced"


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class DeploymentRecord(BaseModel):
    """One rollout attempt of a service, as recorded by the deployment system."""

    model_config = ConfigDict(frozen=True)

    id: str
    service: str
    started: datetime | None = None
    ended: datetime | None = None
    closure: CompletionState = CompletionState.OPEN

    @field_validator("started", "ended")
    @classmethod
    def _normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @model_validator(mode="before")
    @classmethod
    def _derive_closure(cls, data: Any) -> Any:
        # closure must agree with ended; a stored FORCED marker survives reloads
        if isinstance(data, dict):
            data = dict(data)
            if data.get("ended") is None:
                data["closure"] = CompletionState.OPEN
            elif data.get("closure") in (None, CompletionState.OPEN):
                data["closure"] = CompletionState.CLOSED_NATURAL
        return data

    @property
    def is_open(self) -> bool:
        return self.closure is CompletionState.OPEN

    def force_close(self, now: datetime) -> DeploymentRecord:
        """Return a copy closed at ``now``. Closed records are returned unchanged."""
        if not self.is_open:
            return self
        return self.model_copy(
            update={"ended": _as_utc(now), "closure": CompletionState.CLOSED_FORCED}
        )


class ScorecardRecord(BaseModel):
    """A persisted scorecard row; only ``service`` and ``date`` drive eligibility.

    ``date`` is the cycle reference point (``now - buffer``) so the next
    cycle's cutoff covers every deployment this batch scored.
    """

    model_config = ConfigDict(frozen=True)

    service: str
    date: datetime
    rollout_start: dt.date | None = None
    id: int | None = None
    total_score: float | None = None
    metrics: Mapping[str, Any] = Field(default_factory=dict)

    @field_validator("date")
    @classmethod
    def _normalize_timezone(cls, value: datetime) -> datetime:
        return _as_utc(value)  # type: ignore[return-value]


class Scorecard(BaseModel):
    """Result of scoring one service's rollout."""

    service: str
    rollout_start: date
    total_score: float
    metrics: Mapping[str, Any] = Field(default_factory=dict)

    def to_record(self, covered_until: datetime) -> ScorecardRecord:
        return ScorecardRecord(
            service=self.service,
            date=covered_until,
            rollout_start=self.rollout_start,
            total_score=self.total_score,
            metrics=dict(self.metrics),
        )
