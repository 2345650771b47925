"""File-backed workflow store.

One pretty-printed JSON document per workflow, named after its sanitized
identifier. Records are replaced whole; there is no partial update and no
locking, so concurrent writers to the same identifier resolve as last write wins.

Listing re-reads every document. That is fine for a single editor with a handful
of manuals; a larger deployment needs a summary index maintained alongside
``put``/``delete``.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from stepflow.workflow.errors import NotFoundError, StoreError
from stepflow.workflow.models import Workflow, WorkflowSummary
from stepflow.workflow.normalize import sanitize_id

logger = logging.getLogger(__name__)


class WorkflowStore:
    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, workflow_id: str) -> Path | None:
        key = sanitize_id(workflow_id)
        if not key:
            return None
        return self._root / f"{key}.json"

    def _read(self, path: Path) -> Workflow:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            return Workflow.model_validate(raw)
        except (OSError, json.JSONDecodeError, PydanticValidationError) as e:
            raise StoreError(f"Stored workflow {path.name} is unreadable: {e}") from e

    def ensure_root(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    def exists(self, workflow_id: str) -> bool:
        path = self._path(workflow_id)
        return path is not None and path.is_file()

    def put(self, workflow: Workflow) -> Workflow:
        """Create or overwrite the record and return what was written."""

        path = self._path(workflow.workflow_id)
        if path is None:
            raise StoreError("Workflow identifier is empty after sanitizing")

        record = workflow.model_copy(
            update={
                "workflow_id": path.stem,
                "updated_at": datetime.now(tz=UTC),
            }
        )
        self.ensure_root()
        try:
            path.write_text(
                json.dumps(record.to_json(), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as e:
            raise StoreError(f"Failed to write workflow {path.stem}: {e}") from e

        logger.info(
            "Workflow saved",
            extra={"workflow_id": record.workflow_id, "steps": len(record.steps)},
        )
        return record

    def get(self, workflow_id: str) -> Workflow:
        path = self._path(workflow_id)
        if path is None or not path.is_file():
            raise NotFoundError(workflow_id)
        return self._read(path)

    def list(self) -> list[WorkflowSummary]:
        """Summaries of every stored workflow, most recently updated first."""

        if not self._root.exists():
            return []

        items: list[WorkflowSummary] = []
        for path in sorted(self._root.glob("*.json")):
            try:
                items.append(self._read(path).summary())
            except StoreError:
                logger.warning("Skipping unreadable workflow", extra={"path": str(path)})
        items.sort(key=lambda s: s.updated_at, reverse=True)
        return items

    def delete(self, workflow_id: str) -> None:
        path = self._path(workflow_id)
        if path is None:
            raise NotFoundError(workflow_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise NotFoundError(workflow_id) from e
        except OSError as e:
            raise StoreError(f"Failed to delete workflow {path.stem}: {e}") from e
        logger.info("Workflow deleted", extra={"workflow_id": path.stem})
