# tests/test_budget.py

"""
Tests for the budget tracker rollup.
"""

import pytest

from conftest import make_task
from pci_engine.budget import budget_health, calculate_budget_status
from pci_engine.pci_model import DivisorPolicy
from pci_engine.schema import Settings


@pytest.fixture
def budget_tasks():
    # Planned 4h and 2h at PCI 4; t1 has overrun and is half done
    return [
        make_task("t1", ai_verified_units=4.0, actual_hours=5.0, progress_percentage=50.0),
        make_task("t2", ai_verified_units=2.0, actual_hours=1.0),
    ]


class TestBudgetStatus:

    def test_totals(self, budget_tasks):
        b = calculate_budget_status(budget_tasks, Settings(hourly_rate=10.0))
        assert b.total_planned_hours == pytest.approx(6.0)
        assert b.total_planned_cost == pytest.approx(60.0)
        assert b.total_actual_hours == pytest.approx(6.0)
        assert b.total_actual_cost == pytest.approx(60.0)
        assert b.total_variance == pytest.approx(0.0)
        assert b.status == "on-track"

    def test_task_rows(self, budget_tasks):
        b = calculate_budget_status(budget_tasks, Settings(hourly_rate=10.0))
        t1, t2 = b.tasks
        assert t1.planned_cost == pytest.approx(40.0)
        assert t1.actual_cost == pytest.approx(50.0)
        assert t1.variance == pytest.approx(10.0)
        assert t1.variance_percent == pytest.approx(25.0)
        assert t2.variance == pytest.approx(-10.0)
        assert t2.progress_percentage == 0.0

    def test_forecast_uses_started_tasks_only(self, budget_tasks):
        b = calculate_budget_status(budget_tasks, Settings(hourly_rate=10.0))
        assert b.average_progress == pytest.approx(50.0)
        assert b.forecasted_total_cost == pytest.approx(120.0)
        assert b.forecast_variance == pytest.approx(60.0)
        assert b.forecast_variance_percent == pytest.approx(100.0)

    def test_no_progress_forecasts_plan(self, budget_tasks):
        for t in budget_tasks:
            t.progress_percentage = None
        b = calculate_budget_status(budget_tasks, Settings(hourly_rate=10.0))
        assert b.average_progress == 0.0
        assert b.forecasted_total_cost == pytest.approx(b.total_planned_cost)
        assert b.forecast_variance == pytest.approx(0.0)

    def test_overrun_is_critical(self):
        tasks = [make_task("t1", ai_verified_units=4.0, actual_hours=8.0)]
        b = calculate_budget_status(tasks, Settings(hourly_rate=10.0))
        assert b.total_variance_percent == pytest.approx(100.0)
        assert b.status == "critical"

    def test_empty_project(self):
        b = calculate_budget_status([])
        assert b.total_planned_cost == 0.0
        assert b.total_variance_percent == 0.0
        assert b.forecast_variance_percent == 0.0
        assert b.status == "on-track"
        assert b.tasks == []

    def test_zero_plan_has_zero_percentages(self):
        tasks = [make_task("t1", ai_verified_units=0.0, actual_hours=3.0)]
        b = calculate_budget_status(tasks, Settings(hourly_rate=10.0))
        assert b.total_actual_cost == pytest.approx(30.0)
        assert b.total_variance_percent == 0.0
        assert b.tasks[0].variance_percent == 0.0

    def test_default_settings_rate(self):
        tasks = [make_task("t1", ai_verified_units=4.0)]
        assert calculate_budget_status(tasks).total_planned_cost == pytest.approx(4.0 * 66.0)

    def test_divisor_policy(self):
        # PCI 0.5 with one verified unit
        tasks = [make_task(
            "f", ai_verified_units=1.0,
            ISR=0, CF=0, UXI=0, RCF=0, AEP=0, MLW=0, CGW=0, RF=0, S=0.5, GLRI=1,
        )]
        exact = calculate_budget_status(tasks, Settings(hourly_rate=10.0))
        floor_one = calculate_budget_status(tasks, Settings(hourly_rate=10.0), DivisorPolicy.FLOOR_ONE)
        assert exact.total_planned_hours == pytest.approx(1.0)
        assert floor_one.total_planned_hours == pytest.approx(0.5)


class TestBudgetHealth:

    @pytest.mark.parametrize("variance_percent, expected", [
        (-20.0, "on-track"),
        (5.0, "on-track"),
        (5.1, "warning"),
        (15.0, "warning"),
        (15.1, "critical"),
    ])
    def test_bands(self, variance_percent, expected):
        assert budget_health(variance_percent) == expected
