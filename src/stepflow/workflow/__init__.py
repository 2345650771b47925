"""Workflow extraction, normalization, storage and playback.

Leaf-first:
- `repair`: recover a JSON object from free-form model output
- `normalize`: narrow it into a canonical `Workflow`
- `store`: persist workflows as one JSON document each
- `runtime`: step through a workflow with timers and page alignment
"""

__all__: list[str] = []
