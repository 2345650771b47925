"""Unit tests for recovering JSON objects from model output."""

from __future__ import annotations

import json

import pytest

from stepflow.workflow.errors import ExtractionError
from stepflow.workflow.repair import repair_json, strip_fences

OBJECT = {"title": "Chair", "steps": [{"title": "Attach legs", "page": 2}]}
BARE = json.dumps(OBJECT)


@pytest.mark.parametrize(
    "text",
    [
        BARE,
        f"```json\n{BARE}\n```",
        f"```\n{json.dumps(OBJECT, indent=2)}\n```",
        f"Here is the workflow you asked for:\n{BARE}\nLet me know if you need changes.",
        f"Sure!\n```JSON\n{BARE}\n```\nDone.",
    ],
)
def test_recovers_same_object_from_common_wrappings(text: str) -> None:
    assert repair_json(text) == OBJECT


def test_tolerates_literal_line_breaks_inside_strings() -> None:
    text = '{\n  "title": "Desk",\n  "steps": [{"title": "Line one\nline two"}]\n}'

    parsed = repair_json(text)

    assert parsed["steps"][0]["title"] == "Line one\nline two"


def test_literal_line_breaks_inside_prose_wrapped_object() -> None:
    text = 'Output:\n{"title": "Oven", "steps": [{"title": "Preheat\r\nthe oven"}]}\nThanks'

    assert repair_json(text)["steps"][0]["title"] == "Preheat\r\nthe oven"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "I could not read this document.",
        "```json\n```",
        "{ this is not json }",
        "} backwards {",
        "[1, 2, 3]",
    ],
)
def test_raises_when_no_object_is_recoverable(text: str) -> None:
    with pytest.raises(ExtractionError, match="No JSON object found"):
        repair_json(text)


def test_strip_fences_removes_opening_and_closing_markers() -> None:
    assert strip_fences("```json\n{}\n```  ") == "{}"
