"""Unit tests for step sequence editing."""

from __future__ import annotations

import pytest

from stepflow.workflow.editor import add_step, move_step, remove_step, replace_steps, update_step
from stepflow.workflow.errors import NotFoundError, ValidationError
from stepflow.workflow.models import Workflow
from stepflow.workflow.normalize import normalize


@pytest.fixture
def workflow() -> Workflow:
    return normalize(
        {
            "workflowId": "shelf",
            "name": "Shelf",
            "steps": [
                {"id": "a", "title": "A", "page": 1},
                {"id": "b", "title": "B", "durationSec": 30},
                {"id": "c", "title": "C"},
            ],
        }
    )


def _ids(steps) -> list[str]:
    return [s.id for s in steps]


def test_move_step_keeps_ids_and_renumbers(workflow: Workflow) -> None:
    steps = move_step(workflow.steps, "c", 0)

    assert _ids(steps) == ["c", "a", "b"]
    assert [s.order for s in steps] == [1, 2, 3]
    assert steps[2].duration_sec == 30


def test_move_step_clamps_index(workflow: Workflow) -> None:
    assert _ids(move_step(workflow.steps, "a", 99)) == ["b", "c", "a"]
    assert _ids(move_step(workflow.steps, "c", -4)) == ["c", "a", "b"]


def test_remove_step(workflow: Workflow) -> None:
    steps = remove_step(workflow.steps, "b")

    assert _ids(steps) == ["a", "c"]
    assert steps[1].order == 2


def test_remove_last_remaining_step_is_rejected(workflow: Workflow) -> None:
    single = remove_step(remove_step(workflow.steps, "a"), "b")

    with pytest.raises(ValidationError, match="at least one step"):
        remove_step(single, "c")


def test_add_step_appends_or_inserts(workflow: Workflow) -> None:
    appended = add_step(workflow.steps, "D", duration_sec=60, page=4)
    assert appended[-1].title == "D"
    assert (appended[-1].order, appended[-1].duration_sec, appended[-1].page) == (4, 60, 4)

    inserted = add_step(workflow.steps, "Zero", index=0)
    assert inserted[0].title == "Zero"
    assert _ids(inserted)[1:] == ["a", "b", "c"]
    assert inserted[0].id not in {"a", "b", "c"}


def test_add_step_rejects_a_full_workflow() -> None:
    full = normalize({"steps": [{"title": f"S{i}"} for i in range(20)]})

    with pytest.raises(ValidationError, match="at most 20 steps"):
        add_step(full.steps, "One more")


def test_add_step_requires_a_title(workflow: Workflow) -> None:
    with pytest.raises(ValidationError, match="step without a title"):
        add_step(workflow.steps, "   ")


def test_update_step_changes_and_clears_fields(workflow: Workflow) -> None:
    steps = update_step(workflow.steps, "b", title="  Wait  ", duration_sec=None, page=3)

    assert steps[1].title == "Wait"
    assert steps[1].duration_sec is None
    assert steps[1].page == 3
    assert steps[1].id == "b"


def test_update_step_drops_invalid_timer(workflow: Workflow) -> None:
    steps = update_step(workflow.steps, "a", duration_sec=-10)

    assert steps[0].duration_sec is None


def test_update_step_rejects_unknown_fields(workflow: Workflow) -> None:
    with pytest.raises(ValidationError, match="Unknown step fields: order"):
        update_step(workflow.steps, "a", order=5)


def test_unknown_step_id_raises_not_found(workflow: Workflow) -> None:
    with pytest.raises(NotFoundError, match="Step not found: zz"):
        move_step(workflow.steps, "zz", 0)
    with pytest.raises(NotFoundError):
        update_step(workflow.steps, "zz", title="X")


def test_replace_steps_keeps_identity(workflow: Workflow) -> None:
    edited = replace_steps(workflow, remove_step(workflow.steps, "a"))

    assert (edited.workflow_id, edited.uuid, edited.name) == ("shelf", workflow.uuid, "Shelf")
    assert edited.created_at == workflow.created_at
    assert edited.updated_at == workflow.updated_at
    assert _ids(edited.steps) == ["b", "c"]
