"""Narrow loosely-typed payloads into canonical :class:`Workflow` records.

Optional fields never raise: a timer or page link that is the wrong type, not
finite, or out of range is dropped, so "absent" keeps meaning "disabled". Required
structure (a non-empty step list, a title on every step) fails the whole batch.
"""

from __future__ import annotations

import logging
import math
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from stepflow.workflow.errors import ValidationError
from stepflow.workflow.models import MAX_STEPS, Step, Workflow

logger = logging.getLogger(__name__)

DEFAULT_WORKFLOW_NAME = "Untitled workflow"

_UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")


@dataclass(frozen=True, slots=True)
class WorkflowIdentity:
    """Identity carried over when re-normalizing an existing record."""

    workflow_id: str | None = None
    uuid: str | None = None
    created_at: datetime | None = None

    @staticmethod
    def of(workflow: Workflow) -> WorkflowIdentity:
        return WorkflowIdentity(
            workflow_id=workflow.workflow_id,
            uuid=workflow.uuid,
            created_at=workflow.created_at,
        )


def sanitize_id(value: object) -> str:
    """Strip every character outside ``[A-Za-z0-9_-]``."""

    if value is None or isinstance(value, bool):
        return ""
    return _UNSAFE_ID_CHARS.sub("", str(value))


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _finite_number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    if _finite_number(value) is not None:
        return str(value).strip()
    return ""


def _duration(value: object) -> int | None:
    number = _finite_number(value)
    if number is None or number <= 0:
        return None
    # Half-up rounding; Python's round() is banker's rounding.
    rounded = math.floor(number + 0.5)
    return rounded if rounded >= 1 else None


def _page(value: object) -> int | None:
    number = _finite_number(value)
    if number is None or number < 1:
        return None
    return math.floor(number)


def _timestamp(value: object) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _unique_id(raw: object, position: int, taken: set[str]) -> str:
    base = sanitize_id(raw) or f"step-{position}"
    candidate = base
    suffix = 2
    while candidate in taken:
        candidate = f"{base}-{suffix}"
        suffix += 1
    taken.add(candidate)
    return candidate


def _require_steps(parsed: Mapping[str, object]) -> list[object]:
    raw = parsed.get("steps")
    if not isinstance(raw, list | tuple):
        raise ValidationError("'steps' is missing or not an array")
    if len(raw) == 0:
        raise ValidationError("'steps' must not be empty")
    return list(raw)


def normalize_steps(raw_steps: list[object]) -> tuple[Step, ...]:
    """Canonicalize a raw step list.

    Falsy entries are skipped, the remainder is truncated to ``MAX_STEPS`` and
    ``order`` is recomputed from position. A step without a title fails the batch.
    """

    entries = [entry for entry in raw_steps if entry]
    if len(entries) > MAX_STEPS:
        logger.info(
            "Truncating steps", extra={"received": len(entries), "kept": MAX_STEPS}
        )
    entries = entries[:MAX_STEPS]
    if not entries:
        raise ValidationError("'steps' contains no usable entries")

    taken: set[str] = set()
    steps: list[Step] = []
    for position, entry in enumerate(entries, start=1):
        if isinstance(entry, Step):
            entry = entry.to_json()
        fields: Mapping[str, object] = entry if isinstance(entry, Mapping) else {}

        title = _text(fields.get("title"))
        if not title:
            raise ValidationError(f"Step {position}: step without a title")

        description = fields.get("description")
        raw_id = fields.get("id")
        if raw_id is None or raw_id == "":
            raw_id = fields.get("stepId")

        steps.append(
            Step(
                id=_unique_id(raw_id, position, taken),
                order=position,
                title=title,
                description=(description.strip() or None) if isinstance(description, str) else None,
                duration_sec=_duration(fields.get("durationSec")),
                page=_page(fields.get("page")),
            )
        )
    return tuple(steps)


def normalize(
    parsed: object,
    identity: WorkflowIdentity | None = None,
    *,
    fallback_name: str | None = None,
    now: datetime | None = None,
) -> Workflow:
    """Produce a canonical workflow from an arbitrary parsed object.

    Args:
        parsed: Untrusted value, typically the output of ``repair_json`` or a
            request body.
        identity: Identity of the record being updated. Wins over any identity
            fields found in ``parsed``.
        fallback_name: Used when the payload has no usable ``name``/``title``.
        now: Clock override for ``updatedAt`` (and ``createdAt`` on first write).

    Raises:
        ValidationError: With a human-readable reason.
    """

    if isinstance(parsed, Workflow):
        parsed = parsed.to_json()
    if not isinstance(parsed, Mapping):
        raise ValidationError("Workflow payload must be a JSON object")

    steps = normalize_steps(_require_steps(parsed))

    name = _text(parsed.get("name")) or _text(parsed.get("title"))
    if not name:
        name = (fallback_name or "").strip() or DEFAULT_WORKFLOW_NAME

    identity = identity or WorkflowIdentity()
    share_token = sanitize_id(identity.uuid) or sanitize_id(
        parsed.get("uuid") or parsed.get("workflowUUID")
    )
    if not share_token:
        share_token = str(uuid.uuid4())
    workflow_id = (
        sanitize_id(identity.workflow_id)
        or sanitize_id(parsed.get("workflowId"))
        or share_token
    )

    timestamp = now or _utc_now()
    created_at = (
        _timestamp(identity.created_at) or _timestamp(parsed.get("createdAt")) or timestamp
    )

    return Workflow(
        workflow_id=workflow_id,
        uuid=share_token,
        name=name,
        steps=steps,
        created_at=created_at,
        updated_at=timestamp,
    )


def validate_incoming(payload: object) -> None:
    """Strict check for client-submitted workflows.

    Reports every problem at once, in a fixed order, so a caller fixing the
    payload sees the full list.
    """

    if not isinstance(payload, Mapping):
        raise ValidationError("Missing body")

    problems: list[str] = []
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        problems.append("Missing name")

    steps = payload.get("steps")
    if not isinstance(steps, list):
        problems.append("steps must be an array")
    elif not steps:
        problems.append("steps must not be empty")

    if problems:
        raise ValidationError("; ".join(problems))
