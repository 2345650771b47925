"""Canonical workflow records.

These are the only shapes that cross from the pipeline into storage and the
playback runtime. Loose input is narrowed into them by
:func:`stepflow.workflow.normalize.normalize`.

Python attributes are snake_case; the persisted and wire form uses the camelCase
aliases. Optional fields are omitted from the JSON form rather than written as
``null``.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_STEPS = 20


class _Canonical(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    def to_json(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @field_validator("created_at", "updated_at", check_fields=False)
    @classmethod
    def timestamps_as_utc(cls, value: datetime) -> datetime:
        # Records written by hand or by older versions may lack an offset.
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


class Step(_Canonical):
    id: str = Field(min_length=1)
    order: int = Field(ge=1)
    title: str = Field(min_length=1)
    description: str | None = None
    duration_sec: int | None = Field(default=None, alias="durationSec", ge=1)
    page: int | None = Field(default=None, ge=1)


class WorkflowSummary(_Canonical):
    """Listing payload. Never carries steps."""

    workflow_id: str = Field(alias="workflowId")
    uuid: str
    name: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class Workflow(_Canonical):
    workflow_id: str = Field(alias="workflowId", min_length=1)
    uuid: str = Field(min_length=1)
    name: str = Field(min_length=1)
    steps: tuple[Step, ...] = Field(min_length=1, max_length=MAX_STEPS)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    def summary(self) -> WorkflowSummary:
        return WorkflowSummary(
            workflow_id=self.workflow_id,
            uuid=self.uuid,
            name=self.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def step_by_id(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None
