"""Result models for heroku-release deploys.

``DeployResult`` records what a successful run did: which steps ran or were
skipped, which schemas were registered, and whether migrations were applied.
Failed runs raise instead of returning a result, so a ``DeployResult`` always
describes a completed deploy (``mark_complete()`` sets the status).
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class OverallStatus(str, Enum):
    """Overall status of a deploy."""

    RUNNING = "RUNNING"
    PASSED = "PASSED"


class StepResult(BaseModel):
    """One step of the deploy workflow."""

    name: str
    status: Literal["completed", "skipped"] = "completed"
    detail: str = ""


class DeployResult(BaseModel):
    """Outcome of a deploy run."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    environment: str
    app: str
    revision: str
    started_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    completed_at: str | None = None
    duration_seconds: float = 0.0
    steps: list[StepResult] = Field(default_factory=list)
    schemas_registered: list[str] = Field(default_factory=list)
    migrations_applied: bool = False
    overall_status: OverallStatus = OverallStatus.RUNNING

    def record(
        self,
        name: str,
        status: Literal["completed", "skipped"] = "completed",
        detail: str = "",
    ) -> StepResult:
        step = StepResult(name=name, status=status, detail=detail)
        self.steps.append(step)
        return step

    @property
    def step_names(self) -> list[str]:
        return [s.name for s in self.steps if s.status == "completed"]

    def mark_complete(self) -> None:
        """Finalise timestamps and duration."""
        self.completed_at = datetime.now(UTC).isoformat()
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        self.duration_seconds = (end - start).total_seconds()
        self.overall_status = OverallStatus.PASSED
