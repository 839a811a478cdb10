from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import aioboto3
import structlog

logger = structlog.get_logger()


class MetricsCollector:
    """CloudWatch metrics collector. Disabled collectors drop every datapoint."""

    def __init__(
        self,
        namespace: str = "RolloutScorer",
        region: str = "us-east-1",
        *,
        enabled: bool = True,
    ) -> None:
        self.namespace = namespace
        self.region = region
        self.enabled = enabled
        self._metrics_buffer: list[dict[str, Any]] = []

    @asynccontextmanager
    async def timer(self, metric_name: str, **dimensions: str) -> AsyncIterator[None]:
        """Context manager to time operations and emit duration metric."""
        start = time.time()
        try:
            yield
        finally:
            duration = time.time() - start
            await self.emit(metric_name, duration, unit="Seconds", **dimensions)

    async def emit(
        self,
        metric_name: str,
        value: float,
        *,
        unit: str = "Count",
        **dimensions: str,
    ) -> None:
        """Buffer a datapoint, flushing every 20."""
        if not self.enabled:
            return

        self._metrics_buffer.append(
            {
                "MetricName": metric_name,
                "Value": value,
                "Unit": unit,
                "Dimensions": [{"Name": k, "Value": v} for k, v in dimensions.items()],
                "Timestamp": time.time(),
            }
        )

        if len(self._metrics_buffer) >= 20:
            await self._flush()

    async def _flush(self) -> None:
        """Flush buffered metrics to CloudWatch."""
        if not self._metrics_buffer:
            return

        try:
            session = aioboto3.Session(region_name=self.region)
            async with session.client("cloudwatch") as client:
                await client.put_metric_data(
                    Namespace=self.namespace,
                    MetricData=self._metrics_buffer,
                )
            self._metrics_buffer.clear()
        except Exception as exc:
            logger.error("metrics_flush_failed", error=str(exc))

    async def close(self) -> None:
        """Flush remaining metrics on shutdown."""
        await self._flush()
