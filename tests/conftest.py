# tests/conftest.py

"""
Pytest fixtures shared by the model, rollup, API and CLI tests.
"""

import pytest
from fastapi.testclient import TestClient

from app.api import app
from pci_engine.config import get_config
from pci_engine.schema import Task

UNIT_FACTORS = dict(
    ISR=1, CF=1, UXI=1, RCF=1, AEP=1, L=0, MLW=1, CGW=1, RF=1, S=1, GLRI=1
)


def make_task(task_id="t1", ai_verified_units=0.0, **factors) -> Task:
    """Task with every factor at 1 (L at 0) unless overridden: PCI = 4."""
    values = {**UNIT_FACTORS, **factors}
    return Task(
        task_id=task_id,
        task_name=f"Task {task_id}",
        ai_verified_units=ai_verified_units,
        **values,
    )


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate tests from PCI_* variables in the developer's shell."""
    for name in (
        "PCI_HOURLY_RATE",
        "PCI_UNIT_TO_HOUR_RATIO",
        "PCI_INDUSTRY_PRESET",
        "PCI_LOW_AAS_THRESHOLD",
        "PCI_AAS_DIVISOR_POLICY",
        "PCI_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_config(force_reload=True)
    yield
    get_config(force_reload=True)


@pytest.fixture
def unit_task():
    return make_task("t1", ai_verified_units=4.0)


@pytest.fixture
def zero_task():
    """All factors zero, L large: raw = -100, PCI clamps to 0."""
    return make_task(
        "t0",
        ai_verified_units=5.0,
        ISR=0, CF=0, UXI=0, RCF=0, AEP=0, L=100, MLW=0, CGW=0, RF=0, S=0, GLRI=0,
    )


@pytest.fixture
def project_tasks():
    """
    Four tasks with PCI 4, 4, 4 and 20.

    t3 is under-verified (AAS 50%), t4 is the high outlier.
    """
    return [
        make_task("t1", ai_verified_units=4.0),
        make_task("t2", ai_verified_units=4.0),
        make_task("t3", ai_verified_units=2.0),
        make_task("t4", ai_verified_units=20.0, ISR=2, CF=2, UXI=2, S=2, GLRI=5),
    ]


@pytest.fixture(scope="module")
def client():
    """Create a TestClient for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client
