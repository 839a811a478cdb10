from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from rolloutscorer.cloudwatch import MetricsCollector


@pytest.mark.asyncio
async def test_disabled_collector_drops_datapoints():
    metrics = MetricsCollector(enabled=False)

    await metrics.emit("RolloutsScored", 2, Environment="Staging")

    assert metrics._metrics_buffer == []


@pytest.mark.asyncio
async def test_close_flushes_buffer():
    client = MagicMock()
    client.put_metric_data = AsyncMock()
    client_cm = MagicMock()
    client_cm.__aenter__ = AsyncMock(return_value=client)
    client_cm.__aexit__ = AsyncMock(return_value=False)

    with patch("rolloutscorer.cloudwatch.aioboto3.Session") as session_cls:
        session_cls.return_value.client.return_value = client_cm
        metrics = MetricsCollector("RolloutScorer", "eu-west-1")

        async with metrics.timer("CycleDuration", Environment="Production"):
            pass
        await metrics.emit("RolloutsScored", 2, Environment="Production")
        await metrics.close()

    session_cls.assert_called_once_with(region_name="eu-west-1")
    kwargs = client.put_metric_data.call_args.kwargs
    assert kwargs["Namespace"] == "RolloutScorer"
    assert [m["MetricName"] for m in kwargs["MetricData"]] == ["CycleDuration", "RolloutsScored"]
    assert kwargs["MetricData"][0]["Unit"] == "Seconds"
    assert metrics._metrics_buffer == []
