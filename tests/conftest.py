"""Shared deterministic fixtures for stitchflow tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from stitchflow.engine import WorkflowEngine, new_order
from stitchflow.models import Employee, WorkflowDefinition
from stitchflow.registry import Roster, WorkflowCatalog

FIXTURES_DIR = Path(__file__).parent / "fixtures_data"
EPOCH = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock advancing one minute per call."""

    def __init__(self, start: datetime = EPOCH) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(minutes=1)
        return self.now


def build_catalog() -> WorkflowCatalog:
    specs = [
        ("cutting", "Cutting", {"NV001", "NV002"}),
        ("sewing", "Sewing", {"NV001"}),
        ("qc", "Quality Control", {"NV004"}),
        ("packaging", "Packaging", {"NV002", "NV005"}),
        ("washing", "Washing", {"NV003"}),
        ("ironing", "Ironing", {"NV002"}),
        ("embroidery", "Embroidery", {"NV006", "NV099"}),
        ("button_sewing", "Button Sewing", {"NV001", "NV002"}),
    ]
    return WorkflowCatalog(
        WorkflowDefinition(
            id=wf_id,
            name=name,
            default_employee_ids=defaults,
            created_at=EPOCH + timedelta(days=index),
        )
        for index, (wf_id, name, defaults) in enumerate(specs)
    )


def build_roster() -> Roster:
    return Roster(
        [
            Employee(id="NV001", name="Nguyen Van A", role="worker"),
            Employee(id="NV002", name="Tran Thi B", role="worker"),
            Employee(id="NV003", name="Le Van C", role="worker"),
            Employee(id="NV004", name="Pham Thi D", role="qc"),
            Employee(id="NV005", name="Hoang Van E", role="worker"),
            Employee(id="NV006", name="Vo Thi F", role="specialist"),
            Employee(id="NV009", name="Do Van Sale", role="sale"),
            Employee(id="NV010", name="Ngo Thi Manager", role="manager"),
        ]
    )


@pytest.fixture
def catalog() -> WorkflowCatalog:
    return build_catalog()


@pytest.fixture
def roster() -> Roster:
    return build_roster()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine(catalog, roster, clock) -> WorkflowEngine:
    return WorkflowEngine(catalog, roster, clock=clock)


@pytest.fixture
def order(roster):
    return new_order(
        order_id="orderX",
        code="ORD001",
        customer_name="Linh",
        created_by="NV009",
        roster=roster,
        created_at=EPOCH,
    )


@pytest.fixture
def reference_path() -> Path:
    return FIXTURES_DIR / "reference.yaml"


@pytest.fixture(autouse=True)
def reset_process_state(monkeypatch, tmp_path):
    """Isolate cached singletons and environment between tests."""
    import stitchflow.persistence as persistence
    import stitchflow.registry as registry

    for name in (
        "STITCHFLOW_DATABASE_URL",
        "DATABASE_URL",
        "STITCHFLOW_REFERENCE_DATA",
        "STITCHFLOW_TRANSPORT",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STITCHFLOW_CONFIG", str(tmp_path / "config.yaml"))
    persistence._repository_instance = None
    registry._reference_instance = None
    yield
    persistence._repository_instance = None
    registry._reference_instance = None
