"""Read-only catalog of production workflows."""

from __future__ import annotations

from typing import Dict, Iterable, List

from ..errors import UnknownWorkflow
from ..models import WorkflowDefinition


class WorkflowCatalog:
    """Lookup table of workflow definitions keyed by workflow id.

    A catalog is built once from reference data and never mutated; catalog
    maintenance belongs to the administrative screens, not the engine.
    """

    def __init__(self, workflows: Iterable[WorkflowDefinition] = ()) -> None:
        self._workflows: Dict[str, WorkflowDefinition] = {}
        for workflow in workflows:
            if workflow.id in self._workflows:
                raise ValueError(f"Duplicate workflow id {workflow.id!r}")
            self._workflows[workflow.id] = workflow

    def __contains__(self, workflow_id: object) -> bool:
        return workflow_id in self._workflows

    def __len__(self) -> int:
        return len(self._workflows)

    def get(self, workflow_id: str) -> WorkflowDefinition:
        try:
            return self._workflows[workflow_id]
        except KeyError as exc:
            raise UnknownWorkflow(f"Workflow {workflow_id!r} is not in the catalog") from exc

    def list(self) -> List[WorkflowDefinition]:
        """Return workflows ordered by creation time, then id."""
        return sorted(self._workflows.values(), key=lambda wf: (wf.created_at, wf.id))


__all__ = ["WorkflowCatalog"]
