"""stepflow.

Turns diagram-heavy manuals into validated, ordered step workflows:
- a document model extracts free-form JSON from the manual
- the extraction is repaired and normalized into a canonical `Workflow`
- workflows are persisted as one JSON document each
- a playback runtime steps through them with countdown timers and page alignment
"""

__version__ = "0.1.0"

from stepflow.workflow.models import Step, Workflow, WorkflowSummary

__all__ = ["__version__", "Step", "Workflow", "WorkflowSummary"]
