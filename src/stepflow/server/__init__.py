"""FastAPI server adapter for stepflow.

Design intent:
- Keep extraction, normalization and storage rules in `stepflow.workflow.*`
- Keep server-specific concerns (routing, CORS, status mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from stepflow.server.app import create_app
