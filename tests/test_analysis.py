# tests/test_analysis.py

"""
Tests for project rollups: summary, low-AAS audit, anomalies, ranking,
cluster totals and proposal estimate.
"""

import pytest

from conftest import make_task
from pci_engine.analysis import (
    cluster_totals,
    detect_anomalies,
    estimate_proposal,
    low_aas_tasks,
    rank_by_pci,
    summarize_project,
)
from pci_engine.schema import Settings


class TestSummarizeProject:

    def test_totals(self, project_tasks):
        s = summarize_project(project_tasks, Settings(hourly_rate=50.0, unit_to_hour_ratio=1.5))
        assert s.task_count == 4
        assert s.total_pci == pytest.approx(32.0)
        assert s.total_ai_verified_units == pytest.approx(30.0)
        assert s.total_verified_units == pytest.approx(30.0)
        assert s.total_verified_cost == pytest.approx(1500.0)
        assert s.overall_aas == pytest.approx(93.75)
        assert s.average_pci == pytest.approx(8.0)
        assert s.total_hours == pytest.approx(45.0)
        assert s.effective_blended_rate == pytest.approx(1500.0 / 45.0)

    def test_low_aas_flagged(self, project_tasks):
        s = summarize_project(project_tasks)
        assert s.low_aas_task_ids == ["t3"]
        assert s.has_low_aas is True

    def test_empty_project(self):
        s = summarize_project([])
        assert s.task_count == 0
        assert s.total_pci == 0.0
        assert s.overall_aas == 0.0
        assert s.average_pci == 0.0
        assert s.effective_blended_rate == 0.0
        assert s.has_low_aas is False

    def test_default_settings(self, unit_task):
        s = summarize_project([unit_task])
        assert s.total_verified_cost == pytest.approx(4.0 * 66.0)
        assert s.total_hours == pytest.approx(6.0)

    def test_zero_pci_task_contributes_no_verified_units(self, unit_task, zero_task):
        s = summarize_project([unit_task, zero_task])
        assert s.total_pci == pytest.approx(4.0)
        assert s.total_ai_verified_units == pytest.approx(9.0)
        assert s.total_verified_units == pytest.approx(4.0)


class TestLowAAS:

    def test_unverified_task_not_flagged(self):
        assert low_aas_tasks([make_task(ai_verified_units=0.0)]) == []

    def test_threshold(self):
        # AAS 75%
        task = make_task(ai_verified_units=3.0)
        assert low_aas_tasks([task], threshold=70.0) == []
        assert low_aas_tasks([task], threshold=75.0) == []
        assert low_aas_tasks([task], threshold=85.0) == [task]

    def test_over_verified_not_flagged(self):
        assert low_aas_tasks([make_task(ai_verified_units=8.0)]) == []


class TestDetectAnomalies:

    def test_high_outlier(self, project_tasks):
        found = detect_anomalies(project_tasks)
        assert [a.task_id for a in found] == ["t4"]
        assert found[0].direction == "above"
        assert found[0].average_pci == pytest.approx(8.0)
        assert found[0].pci == pytest.approx(20.0)

    def test_low_outlier(self, zero_task):
        tasks = [make_task("a"), make_task("b"), zero_task]
        found = detect_anomalies(tasks)
        assert [a.task_id for a in found] == ["t0"]
        assert found[0].direction == "below"

    def test_uniform_tasks_have_no_anomalies(self):
        assert detect_anomalies([make_task(str(i)) for i in range(5)]) == []

    def test_empty(self):
        assert detect_anomalies([]) == []


class TestRankingAndClusters:

    def test_rank_descending_and_stable(self, project_tasks):
        ranked = rank_by_pci(project_tasks)
        assert [t.task_id for t in ranked] == ["t4", "t1", "t2", "t3"]

    def test_cluster_totals_floor_risk_term(self, project_tasks, zero_task):
        totals = cluster_totals(project_tasks + [zero_task])
        assert totals["scope_complexity"] == pytest.approx(3 * 1 + 8)
        assert totals["risk_engineering"] == pytest.approx(4.0)
        assert totals["multi_layer"] == pytest.approx(4.0)
        assert totals["specialty_governance"] == pytest.approx(3 * 1 + 10)


class TestEstimateProposal:

    def test_priced_on_pci(self, project_tasks):
        p = estimate_proposal(project_tasks, Settings(hourly_rate=100.0, unit_to_hour_ratio=1.5))
        assert p.total_pci == pytest.approx(32.0)
        assert p.total_cost == pytest.approx(3200.0)
        assert p.total_hours == pytest.approx(48.0)
        assert p.ranked_task_ids[0] == "t4"
        assert p.over_budget is False

    def test_over_budget(self, project_tasks):
        p = estimate_proposal(project_tasks, Settings(hourly_rate=100.0), budget=3000.0)
        assert p.over_budget is True
        assert p.budget == 3000.0

    def test_at_budget_is_not_over(self, project_tasks):
        p = estimate_proposal(project_tasks, Settings(hourly_rate=100.0), budget=3200.0)
        assert p.over_budget is False
