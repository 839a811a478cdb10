"""
Scoring function contract.

The point-scoring algorithm is pluggable. It is loaded from a
``<module>:<callable>`` path and called as::

    await score(service, rollout_start, weights, clients) -> Scorecard

and raises ``InvalidRolloutError`` when the rollout's input is malformed.
Synchronous callables are accepted as well.
"""

from __future__ import annotations

import importlib
import inspect
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Union

from rolloutscorer.clients import AzureDevOpsClient, GitHubClient
from rolloutscorer.config.scoring import WeightConfig
from rolloutscorer.core.errors import ConfigurationError
from rolloutscorer.domain.models import Scorecard

REQUIRED_PARAMS = ("service", "rollout_start", "weights", "clients")


@dataclass(frozen=True)
class ScoringClients:
    """Authenticated clients handed to the scoring function."""

    azure_devops: AzureDevOpsClient
    github: GitHubClient


ScoringFunction = Callable[
    [str, date, WeightConfig, ScoringClients],
    Union[Scorecard, Awaitable[Scorecard]],
]


async def invoke_scorer(
    scorer: ScoringFunction,
    service: str,
    rollout_start: date,
    weights: WeightConfig,
    clients: ScoringClients,
) -> Scorecard:
    result: Any = scorer(service, rollout_start, weights, clients)
    if inspect.isawaitable(result):
        result = await result
    return result


def load_scorer(path: str | None) -> ScoringFunction:
    """Resolve ``<module>:<callable>`` into a scoring function."""
    if not path or ":" not in path:
        raise ConfigurationError(
            "Scoring function must be configured as '<module>:<callable>'",
            details={"scorer": path},
        )

    module_name, attr_name = path.split(":", maxsplit=1)
    if not module_name or not attr_name:
        raise ConfigurationError(
            "Scoring function must be configured as '<module>:<callable>'",
            details={"scorer": path},
        )

    try:
        module = importlib.import_module(module_name)
        target = getattr(module, attr_name)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(
            "Scoring function could not be imported", details={"scorer": path}
        ) from exc

    if not callable(target):
        raise ConfigurationError("Scoring function is not callable", details={"scorer": path})

    params = tuple(inspect.signature(target).parameters)
    if len(params) < len(REQUIRED_PARAMS):
        raise ConfigurationError(
            "Scoring function does not accept the required parameters",
            details={"scorer": path, "required": REQUIRED_PARAMS, "found": params},
        )

    return target
