"""Recover a JSON object from free-form model output.

Models are asked for strict JSON but routinely wrap it in markdown fences, add a
sentence of commentary, or emit raw line breaks inside string values. Attempts
are ordered cheapest first:

1. strip fences and parse
2. parse again tolerating literal line breaks inside strings
3. slice from the first ``{`` to the last ``}`` and retry 1-2 on the slice
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from stepflow.workflow.errors import ExtractionError

logger = logging.getLogger(__name__)

# Opening fence with an optional language tag (```json, ```JSON, ```) and bare closing fences.
_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")

_LOG_PREVIEW_CHARS = 500


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def _parse_object(text: str) -> dict[str, Any] | None:
    # strict=False admits raw line breaks and tabs inside string values.
    for strict in (True, False):
        try:
            value = json.loads(text, strict=strict)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def repair_json(raw_text: str) -> dict[str, Any]:
    """Return the single JSON object contained in ``raw_text``.

    Raises:
        ExtractionError: If no object can be recovered.
    """

    cleaned = strip_fences(raw_text or "")

    parsed = _parse_object(cleaned)
    if parsed is not None:
        return parsed

    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last > first:
        parsed = _parse_object(cleaned[first : last + 1])
        if parsed is not None:
            logger.debug("Recovered JSON object by slicing surrounding text")
            return parsed

    logger.warning(
        "No JSON object found in model output",
        extra={"preview": cleaned[:_LOG_PREVIEW_CHARS], "length": len(cleaned)},
    )
    raise ExtractionError("No JSON object found")
