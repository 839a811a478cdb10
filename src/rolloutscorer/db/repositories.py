from __future__ import annotations

from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from rolloutscorer.core.errors import ProviderError
from rolloutscorer.db.models import DeploymentModel, ScorecardModel
from rolloutscorer.domain.models import CompletionState, DeploymentRecord, ScorecardRecord

logger = structlog.get_logger()


@dataclass(slots=True)
class RecordStore:
    """Persistence helpers for deployment and scorecard records."""

    session: AsyncSession
    page_size: int = 1000

    async def _paginate(self, model: Any, key: Any) -> AsyncIterator[Any]:
        last_key = None
        while True:
            stmt = select(model).order_by(key).limit(self.page_size)
            if last_key is not None:
                stmt = stmt.where(key > last_key)
            result = await self.session.execute(stmt)
            rows = list(result.scalars().all())
            for row in rows:
                yield row
            if len(rows) < self.page_size:
                return
            last_key = getattr(rows[-1], key.key)

    async def list_deployments(self) -> list[DeploymentRecord]:
        try:
            return [
                DeploymentRecord(
                    id=row.id,
                    service=row.service,
                    started=row.started,
                    ended=row.ended,
                    closure=row.closure,
                )
                async for row in self._paginate(DeploymentModel, DeploymentModel.id)
            ]
        except SQLAlchemyError as exc:
            raise ProviderError(
                "Failed to read deployment records", details={"error": str(exc)}
            ) from exc

    async def list_scorecards(self) -> list[ScorecardRecord]:
        try:
            return [
                ScorecardRecord(
                    id=row.id,
                    service=row.service,
                    date=row.date,
                    rollout_start=row.rollout_start,
                    total_score=row.total_score,
                    metrics=row.metrics or {},
                )
                async for row in self._paginate(ScorecardModel, ScorecardModel.id)
            ]
        except SQLAlchemyError as exc:
            raise ProviderError(
                "Failed to read scorecard records", details={"error": str(exc)}
            ) from exc

    async def replace_deployment(self, record: DeploymentRecord) -> bool:
        """Persist a closure for ``record``.

        Returns False without writing when the stored row is already closed.
        """
        try:
            result = await self.session.execute(
                select(DeploymentModel).where(DeploymentModel.id == record.id)
            )
            model = result.scalar_one_or_none()
            if model is None:
                raise ProviderError(
                    "Deployment record not found", details={"deployment_id": record.id}
                )
            if model.ended is not None:
                return False

            model.started = record.started
            model.ended = record.ended
            model.closure = record.closure
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise ProviderError(
                "Failed to persist deployment record",
                details={"deployment_id": record.id, "error": str(exc)},
            ) from exc

        logger.debug(
            "deployment_replaced",
            deployment_id=record.id,
            closure=CompletionState(record.closure).value,
        )
        return True

    async def add_scorecards(self, records: Iterable[ScorecardRecord]) -> int:
        models = [
            ScorecardModel(
                service=record.service,
                date=record.date,
                rollout_start=record.rollout_start,
                total_score=record.total_score,
                metrics=dict(record.metrics),
            )
            for record in records
        ]
        try:
            self.session.add_all(models)
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            raise ProviderError(
                "Failed to persist scorecards", details={"error": str(exc)}
            ) from exc
        return len(models)
