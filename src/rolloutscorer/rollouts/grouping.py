from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from rolloutscorer.domain.models import DeploymentRecord


@dataclass
class RolloutGroup:
    """Eligible deployments of one service, in selection order."""

    service: str
    deployments: list[DeploymentRecord] = field(default_factory=list)

    @property
    def rollout_start(self) -> date | None:
        # first member in selection order, not the earliest start
        first = self.deployments[0]
        return first.started.date() if first.started is not None else None


def group_by_service(deployments: Iterable[DeploymentRecord]) -> list[RolloutGroup]:
    """Partition by service; groups keep first-appearance order."""
    groups: dict[str, RolloutGroup] = {}
    for deployment in deployments:
        group = groups.get(deployment.service)
        if group is None:
            group = groups[deployment.service] = RolloutGroup(service=deployment.service)
        group.deployments.append(deployment)
    return list(groups.values())
