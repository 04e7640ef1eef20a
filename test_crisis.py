"""
Tests for crisis detection, responses and outcomes.
"""

import pytest

from country import AITraits, EconomicState
from crisis import CrisisModel, CrisisResponse, CrisisType


@pytest.fixture
def model(config):
    return CrisisModel(config)


def economic_state(**overrides):
    values = dict(gdp=1e12, potential_gdp=1e12, gdp_growth=0.02, inflation=0.02, unemployment=0.05,
                  debt_to_gdp=60.0, trade_balance=0.0, bank_health_index=0.7)
    values.update(overrides)
    return EconomicState(**values)


class TestDetection:

    def test_full_economic_crisis_sorts_first(self, model, make_country):
        country = make_country("A", inflation_target=0.02, stability=50.0)
        state = economic_state(inflation=0.25, gdp_growth=-0.03, debt_to_gdp=130.0)
        assert state.bank_health_index >= model.config.bank_health_floor

        crises = model.detect_crises(country, state)
        assert crises[0].type == CrisisType.ECONOMIC
        assert crises[0].severity == 1.0
        assert CrisisType.POLITICAL in [c.type for c in crises]
        assert [c.severity for c in crises] == sorted((c.severity for c in crises), reverse=True)

    def test_hyperinflation_threshold_inclusive(self, model):
        assert model.economic_crisis_severity(economic_state(inflation=0.25)) == pytest.approx(1 / 3)
        assert model.economic_crisis_severity(economic_state(inflation=0.2499)) == 0.0

    def test_two_conditions_stay_below_saturation(self, model):
        severity = model.economic_crisis_severity(economic_state(gdp_growth=-0.03, debt_to_gdp=130.0))
        assert severity == pytest.approx(2 / 3 + (0.5 + 10 / 120) / 6)
        assert severity < 1.0

    def test_healthy_country(self, model, make_country):
        country = make_country("A", stability=80.0, environmental_index=70.0)
        assert model.detect_crises(country, economic_state()) == []
        assert model.get_active_crises("A") == []

    def test_military_and_environmental(self, model, make_country):
        country = make_country("A", stability=80.0, environmental_index=20.0)
        crises = model.detect_crises(country, economic_state(), {"military_threat_level": 0.9})
        assert {c.type for c in crises} == {CrisisType.MILITARY, CrisisType.ENVIRONMENTAL}
        environmental = next(c for c in crises if c.type == CrisisType.ENVIRONMENTAL)
        assert environmental.severity == pytest.approx(0.5)

    def test_active_crises_track_latest_detection(self, model, make_country):
        country = make_country("A", stability=30.0)
        model.detect_crises(country, economic_state())
        assert model.get_active_crises("A") == [CrisisType.POLITICAL]

        country.stability = 90.0
        model.detect_crises(country, economic_state())
        assert model.get_active_crises("A") == []
        assert len(model.crisis_history["A"][CrisisType.POLITICAL]) == 1


class TestResponses:

    def test_economic_subtype(self, model, make_country):
        country = make_country("A", inflation=0.6, government_debt=0.5e12)
        assert model.identify_economic_crisis_type(country) == "hyperinflation"

        indebted = make_country("B", inflation=0.02, government_debt=2e12)
        assert model.identify_economic_crisis_type(indebted) == "debt_crisis"

    def test_cautious_economic_response_asks_for_aid(self, model, make_country):
        country = make_country("A", inflation=0.6, traits=AITraits(0.5, 0.5, 0.0, 0.2, 0.5))
        response = model.generate_crisis_response(country, model.detect_crises(country, economic_state(inflation=0.6))[0])
        assert response.subtype == "hyperinflation"
        assert "foreign_aid_request" in response.measures
        assert response.economic_impact == pytest.approx(-0.15 * 0.8)

    def test_military_escalation(self, model, make_country):
        hawk = make_country("A", nuclear=True, traits=AITraits(0.9, 0.5, 0.0, 0.5, 0.5))
        crisis = model.detect_crises(hawk, economic_state(), {"military_threat_level": 0.95})[0]
        response = model.generate_crisis_response(hawk, crisis, threat_level=0.95)
        assert "mobilization" in response.measures
        assert "deterrence_posturing" in response.measures
        assert "preemptive_strike" in response.measures
        assert response.economic_impact == pytest.approx(-0.45)


class TestOutcomes:

    def test_effectiveness_bounds(self, model, make_country):
        country = make_country("A", stability=100.0, traits=AITraits(0.0, 1.0, 0.0, 0.5, 0.5))
        response = CrisisResponse(CrisisType.ECONOMIC)
        assert model.calculate_response_effectiveness(response, country) == 1.0

        shaky = make_country("B", stability=1.0)
        assert model.calculate_response_effectiveness(response, shaky) == 0.1

    def test_contained_crisis_restores_stability(self, model, make_country):
        country = make_country("A", stability=100.0, economic_stability=0.4,
                               traits=AITraits(0.0, 1.0, 0.0, 0.5, 0.5))
        model.active_crises.add(("A", CrisisType.ECONOMIC))
        response = CrisisResponse(CrisisType.ECONOMIC, effectiveness_coefficient=0.9, economic_impact=-0.1)

        outcome = model.simulate_crisis_outcome(response, country, original_stability=0.8)
        assert outcome.contained
        assert outcome.severity_reduction == pytest.approx(0.9)
        assert country.economic_stability == pytest.approx(0.88)
        assert ("A", CrisisType.ECONOMIC) not in model.active_crises

    def test_failed_response_erodes_stability(self, model, make_country):
        country = make_country("A", stability=30.0, economic_stability=0.5)
        response = CrisisResponse(CrisisType.POLITICAL, effectiveness_coefficient=0.6)
        outcome = model.simulate_crisis_outcome(response, country, original_stability=0.5)
        assert not outcome.contained
        assert country.economic_stability == pytest.approx(0.4)

    def test_secondary_recession(self, model, make_country):
        country = make_country("A", gdp_growth=0.02, unemployment=0.05,
                               traits=AITraits(0.5, 0.0, 0.0, 0.5, 0.5))
        response = CrisisResponse(CrisisType.MILITARY, economic_impact=-0.45)
        outcome = model.simulate_crisis_outcome(response, country, original_stability=0.7)
        assert outcome.new_problems == ["secondary_recession"]
        assert country.gdp_growth == pytest.approx(-0.01)
        assert country.unemployment == pytest.approx(0.10)


def test_snapshot_round_trip(model, make_country, config):
    country = make_country("A", stability=30.0)
    model.initialize_crisis_system([country])
    model.detect_crises(country, economic_state(inflation=0.3))
    restored = CrisisModel(config)
    restored.restore(model.snapshot())
    assert restored.snapshot() == model.snapshot()
    assert restored.get_active_crises("A") == model.get_active_crises("A")
