"""Workflow catalog and roster tests."""

from datetime import datetime, timezone

import pytest

from stitchflow.errors import UnknownEmployee, UnknownWorkflow
from stitchflow.models import Employee, EmployeeRole, WorkflowDefinition
from stitchflow.registry import Roster, WorkflowCatalog, get_reference_data, set_reference_data


def test_catalog_lookup(catalog):
    assert catalog.get("sewing").name == "Sewing"
    assert "cutting" in catalog
    assert "dyeing" not in catalog
    with pytest.raises(UnknownWorkflow):
        catalog.get("dyeing")


def test_catalog_lists_by_creation_time():
    t = datetime(2024, 1, 1, tzinfo=timezone.utc)
    later = datetime(2024, 2, 1, tzinfo=timezone.utc)
    catalog = WorkflowCatalog(
        [
            WorkflowDefinition(id="b", name="Sewing", created_at=later),
            WorkflowDefinition(id="z", name="Cutting", created_at=t),
            WorkflowDefinition(id="a", name="Packaging", created_at=later),
        ]
    )
    assert [wf.id for wf in catalog.list()] == ["z", "a", "b"]


def test_catalog_rejects_duplicate_ids():
    with pytest.raises(ValueError):
        WorkflowCatalog([WorkflowDefinition(id="a", name="A"), WorkflowDefinition(id="a", name="B")])


def test_roster_lookup_and_roles(roster):
    assert roster.get("NV004").role is EmployeeRole.QC
    assert [e.id for e in roster.by_role("worker")] == ["NV001", "NV002", "NV003", "NV005"]
    with pytest.raises(UnknownEmployee):
        roster.get("NV404")


def test_roster_eligibility_ignores_workflow_defaults(roster):
    # NV010 is not a default employee of cutting but is on the roster
    assert roster.is_eligible("NV010", "cutting")
    assert not roster.is_eligible("NV404", "cutting")
    assert roster.known_ids({"NV001", "NV404"}) == {"NV001"}


def test_employee_role_is_closed():
    with pytest.raises(ValueError):
        Employee(id="X", name="X", role="admin")


def test_reference_data_from_file(reference_path):
    reference = get_reference_data(path=str(reference_path))
    assert reference.catalog.get("qc").default_employee_ids == {"NV004"}
    assert reference.roster.get("NV009").role is EmployeeRole.SALE


def test_reference_data_defaults_to_empty(tmp_path, monkeypatch):
    monkeypatch.delenv("STITCHFLOW_REFERENCE_DATA", raising=False)
    monkeypatch.setenv("STITCHFLOW_CONFIG", str(tmp_path / "missing.yaml"))
    from stitchflow.config import load_config

    reference = get_reference_data(config=load_config())
    assert len(reference.catalog) == 0
    assert len(reference.roster) == 0


def test_set_reference_data_is_cached(catalog, roster):
    set_reference_data(catalog, roster)
    assert get_reference_data().catalog is catalog
    assert get_reference_data().roster is roster
