"""
Tests for government departments, the tax code and the department manager.
"""

import pytest

from departments import (
    DEPARTMENT_SPECS, Department, DepartmentManager, DepartmentType, ReformType, TaxCode,
)
from errors import StateValidationError
from events import EventBus, EventPhase


@pytest.fixture
def defense():
    return Department(DEPARTMENT_SPECS[DepartmentType.DEFENSE])


@pytest.fixture
def healthcare():
    bus = EventBus()
    return Department(DEPARTMENT_SPECS[DepartmentType.HEALTHCARE], bus), bus


class TestBudget:
    """Budgets are pure functions of the department metrics."""

    def test_defense_budget(self, defense):
        assert defense.calculate_budget() == pytest.approx(150000 * 30000 + 20e9 + 5e9)

    def test_soldier_count_scales_monthly_cost(self, defense):
        defense.set_metric("soldiers", 200000)
        expected = 200000 * 30000 + 20e9 + 5e9
        assert defense.calculate_budget() == pytest.approx(expected)
        assert defense.get_monthly_cost() == pytest.approx(expected / 12)
        assert defense.performance["defense_readiness"] == pytest.approx(1.0)

    def test_repeated_changes_do_not_drift(self, defense):
        for soldiers in (120000, 180000, 90000, 150000):
            defense.set_metric("soldiers", soldiers)
        assert defense.calculate_budget() == pytest.approx(150000 * 30000 + 25e9, rel=1e-12)

    def test_healthcare_budget_overhead_and_subsidy(self, healthcare):
        dept, _ = healthcare
        assert dept.calculate_budget() == pytest.approx((150000 * 45000 + 1200 * 2.5e6) * 1.12)
        dept.set_metric("subsidy_percentage", 0.5)
        assert dept.calculate_budget() == pytest.approx((150000 * 45000 + 1200 * 2.5e6) * 1.12 * 0.5)
        assert dept.policies["free_at_point_of_use"] is False

    def test_adjust_salaries(self):
        taxation = Department(DEPARTMENT_SPECS[DepartmentType.TAXATION])
        before = taxation.calculate_budget()
        taxation.adjust_salaries(0.10)
        assert taxation.metrics["officer_salary"] == pytest.approx(35200)
        assert taxation.budget == pytest.approx(before + 60000 * 3200)


class TestMetricsAndPolicies:

    def test_unknown_metric_ignored(self, defense):
        assert not defense.set_metric("dragons", 3)
        assert "dragons" not in defense.metrics

    def test_doctors_clamped_and_event_queued(self, healthcare):
        dept, bus = healthcare
        received = []
        bus.subscribe("healthcare", received.append)

        dept.set_metric("doctors", 500000)
        assert dept.metrics["doctors"] == 300000
        assert received == []

        bus.process_phase(EventPhase.MAIN)
        assert [e.type for e in received] == ["healthcare.staffing_change"]
        assert received[0].data == {"doctors": 300000}

    def test_unknown_policy_ignored(self, defense):
        assert defense.set_policy("conscription", True)
        assert not defense.set_policy("space_force", True)


class TestReforms:

    def test_reform_applies(self):
        taxation = Department(DEPARTMENT_SPECS[DepartmentType.TAXATION])
        assert taxation.implement_reform(ReformType.INCREASE_COMPLIANCE)
        assert taxation.performance["compliance_rate"] == pytest.approx(0.95)

    def test_foreign_reform_is_noop(self, defense):
        before = defense.to_dict()
        assert not defense.implement_reform(ReformType.INCREASE_LITERACY)
        assert defense.to_dict() == before

    def test_mental_health_focus_normalises_policies(self, healthcare):
        dept, _ = healthcare
        dept.implement_reform(ReformType.MENTAL_HEALTH_FOCUS)
        assert dept.policies["dental_coverage"] == pytest.approx(0.6)
        assert dept.policies["mental_health_funding"] == pytest.approx(0.4)
        assert dept.policies["free_at_point_of_use"] is True


class TestMonthlyDrift:

    def test_performance_stays_bounded(self):
        manager = DepartmentManager()
        for month in range(240):
            manager.simulate_month(month)
        for kind, dept in manager.departments.items():
            for key, value in dept.performance.items():
                if key not in dept.spec.unbounded_performance:
                    assert 0.0 <= value <= 1.0, f"{kind.value}.{key} out of range"

    def test_history_recorded_and_bounded(self):
        dept = Department(DEPARTMENT_SPECS[DepartmentType.EDUCATION], history_length=3)
        for month in range(5):
            dept.simulate_month(month)
        assert [h["month"] for h in dept.historical_data] == [2, 3, 4]

    def test_healthcare_life_expectancy(self, healthcare):
        dept, _ = healthcare
        dept.simulate_month(0)
        assert dept.performance["life_expectancy"] == pytest.approx(80.4)

    def test_conscription_adds_soldiers(self, defense):
        defense.set_policy("conscription", True)
        defense.simulate_month(0)
        assert defense.metrics["soldiers"] == 160000


class TestTaxCode:

    def test_progressive_income_tax(self):
        code = TaxCode()
        assert code.calculate_income_tax(10000) == 0.0
        assert code.calculate_income_tax(60000) == pytest.approx((60000 - 50270) * 0.40 + (50270 - 12570) * 0.20)

    def test_bands_sorted_highest_first(self):
        code = TaxCode()
        code.set_income_tax_bands([(10000, 10.0), (40000, 30.0)])
        assert code.income_tax_bands == [(40000, 30.0), (10000, 10.0)]

    def test_losses_and_negative_gains_untaxed(self):
        code = TaxCode()
        assert code.calculate_corporate_tax(-500.0) == 0.0
        assert code.calculate_capital_gains_tax(-500.0) == 0.0
        assert code.get_total_tax_revenue([], [1000.0], [200.0], [], []) == pytest.approx(200.0 + 10.0)


class TestManager:

    def test_spending_totals(self):
        manager = DepartmentManager()
        annual = sum(d.calculate_budget() for d in manager.departments.values())
        assert manager.total_government_spending == pytest.approx(annual)
        assert manager.total_spending == pytest.approx(annual / 12)

    def test_debt_interest(self):
        manager = DepartmentManager()
        manager.monetary_policy.interest_rate = 4.0
        assert manager.debt_interest_payments(1.2e12) == pytest.approx(4e9)
        assert manager.debt_interest_payments(-1.0) == 0.0

    def test_tax_assessment_scaled_by_collection(self):
        manager = DepartmentManager()
        rate = manager.collection_rate
        assessment = manager.assess_taxes(household_income=60000.0 * 10, workers=10, corporate_profits=0.0,
                                          consumption=0.0, property_value=0.0, capital_gains=0.0)
        per_worker = TaxCode().calculate_income_tax(60000.0)
        assert assessment.income_tax == pytest.approx(10 * per_worker * rate)
        assert assessment.monthly_revenue == pytest.approx(assessment.total / 12)

    def test_snapshot_round_trip(self):
        manager = DepartmentManager()
        manager.foreign_policy.set_tariff("Otherland", "technology", 0.2)
        manager.industry_subsidies["energy"] = 1e9
        manager.simulate_month(0)
        restored = DepartmentManager()
        restored.restore(manager.snapshot())
        assert restored.snapshot() == manager.snapshot()

    def test_restore_rejects_missing_keys(self):
        manager = DepartmentManager()
        before = manager.snapshot()
        with pytest.raises(StateValidationError):
            manager.restore({"departments": {}})
        assert manager.snapshot() == before

    @pytest.mark.parametrize("section, key", [("metrics", "soldiers"), ("policies", "conscription")])
    def test_restore_rejects_incomplete_department(self, section, key):
        manager = DepartmentManager()
        before = manager.snapshot()
        data = manager.snapshot()
        del data["departments"]["defense"][section][key]
        with pytest.raises(StateValidationError):
            manager.restore(data)
        assert manager.snapshot() == before

    def test_restore_rejects_foreign_metric(self):
        manager = DepartmentManager()
        data = manager.snapshot()
        data["departments"]["defense"]["metrics"]["warp_drives"] = 3.0
        with pytest.raises(StateValidationError):
            manager.restore(data)

    def test_restore_rejects_unknown_department(self):
        manager = DepartmentManager()
        data = manager.snapshot()
        data["departments"]["space"] = data["departments"]["defense"]
        with pytest.raises(StateValidationError):
            manager.restore(data)
