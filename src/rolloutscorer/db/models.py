from __future__ import annotations

import datetime as dt
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Date, DateTime, Enum, Float, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from rolloutscorer.domain.models import CompletionState


class Base(DeclarativeBase):
    pass


class DeploymentModel(Base):
    """Rollout records written by the deployment system."""

    __tablename__ = "deployments"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    service: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    started: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    ended: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    closure: Mapped[CompletionState] = mapped_column(
        Enum(
            CompletionState,
            name="completion_state",
            native_enum=False,
            values_callable=lambda states: [s.value for s in states],
        ),
        nullable=False,
        default=CompletionState.OPEN,
    )

    __table_args__ = (Index("idx_deployments_service_ended", "service", "ended"),)


class ScorecardModel(Base):
    """Published rollout scorecards."""

    __tablename__ = "scorecards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    service: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    rollout_start: Mapped[dt.date | None] = mapped_column(Date)
    total_score: Mapped[float | None] = mapped_column(Float)
    metrics: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    __table_args__ = (Index("idx_scorecards_service_date", "service", "date"),)
