"""Local edits to a workflow's step sequence.

The store only replaces whole records, so editing is read, edit locally, write
back. Every helper returns a new tuple of steps with ``order`` recomputed; step
ids survive reordering.
"""

from __future__ import annotations

from collections.abc import Sequence

from stepflow.workflow.errors import NotFoundError, ValidationError
from stepflow.workflow.models import MAX_STEPS, Step, Workflow
from stepflow.workflow.normalize import WorkflowIdentity, normalize, normalize_steps

_EDITABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "duration_sec": "durationSec",
    "page": "page",
}


def _raw(steps: Sequence[Step]) -> list[dict[str, object]]:
    return [step.to_json() for step in steps]


def _index_of(steps: Sequence[Step], step_id: str) -> int:
    for idx, step in enumerate(steps):
        if step.id == step_id:
            return idx
    raise NotFoundError(step_id, f"Step not found: {step_id}")


def move_step(steps: Sequence[Step], step_id: str, new_index: int) -> tuple[Step, ...]:
    """Move a step to ``new_index`` (clamped to the sequence bounds)."""

    raw = _raw(steps)
    entry = raw.pop(_index_of(steps, step_id))
    raw.insert(max(0, min(new_index, len(raw))), entry)
    return normalize_steps(raw)


def remove_step(steps: Sequence[Step], step_id: str) -> tuple[Step, ...]:
    idx = _index_of(steps, step_id)
    if len(steps) == 1:
        raise ValidationError("A workflow needs at least one step")
    raw = _raw(steps)
    del raw[idx]
    return normalize_steps(raw)


def add_step(
    steps: Sequence[Step],
    title: str,
    *,
    description: str | None = None,
    duration_sec: int | None = None,
    page: int | None = None,
    index: int | None = None,
) -> tuple[Step, ...]:
    """Insert a new step (appended unless ``index`` is given)."""

    if len(steps) >= MAX_STEPS:
        raise ValidationError(f"A workflow holds at most {MAX_STEPS} steps")
    entry: dict[str, object] = {"title": title}
    if description is not None:
        entry["description"] = description
    if duration_sec is not None:
        entry["durationSec"] = duration_sec
    if page is not None:
        entry["page"] = page

    raw = _raw(steps)
    position = len(raw) if index is None else max(0, min(index, len(raw)))
    raw.insert(position, entry)
    return normalize_steps(raw)


def update_step(steps: Sequence[Step], step_id: str, **changes: object) -> tuple[Step, ...]:
    """Change fields of one step.

    Accepts ``title``, ``description``, ``duration_sec`` and ``page``. Passing
    ``None`` for an optional field clears it. Values go through the same coercion
    as normalization, so an out-of-range timer is dropped rather than stored.
    """

    unknown = set(changes) - set(_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown step fields: {', '.join(sorted(unknown))}")

    idx = _index_of(steps, step_id)
    raw = _raw(steps)
    for name, value in changes.items():
        key = _EDITABLE_FIELDS[name]
        if value is None:
            raw[idx].pop(key, None)
        else:
            raw[idx][key] = value
    return normalize_steps(raw)


def replace_steps(workflow: Workflow, steps: Sequence[Step]) -> Workflow:
    """Return ``workflow`` carrying ``steps``, identity and timestamps unchanged."""

    payload = workflow.to_json()
    payload["steps"] = _raw(steps)
    return normalize(payload, WorkflowIdentity.of(workflow), now=workflow.updated_at)
