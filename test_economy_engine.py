"""
Tests for the monthly economy loop: setup, rollback, history, persistence and player actions.
"""

import numpy as np
import pytest

from actions import MilitaryMove, TariffChange
from config import SimulationConfig
from country import Country
from economy_engine import EconomyEngine, PolicyImpactType
from errors import InitializationError, LoadError, SimulationError, StateValidationError
from events import EventBus
from scenario import generate_world


def build_engine(config, seed=None):
    countries, companies = generate_world(config, np.random.default_rng(7))
    engine = EconomyEngine(config, rng=np.random.default_rng(config.seed if seed is None else seed),
                           events=EventBus())
    engine.initialize(countries, companies, config.player_name)
    return engine


def ai_name(engine):
    return sorted(engine.ai.countries)[0]


class TestInitialization:

    def test_expenditure_identity_calibrated(self, engine):
        ind = engine.indicators
        assert ind["gdp"] == pytest.approx(engine.player.gdp)
        assert ind["consumption"] + ind["investment"] + ind["government_spending"] + ind["trade_balance"] \
            == pytest.approx(engine.player.gdp, rel=1e-6)

    def test_no_country_data(self, config, world):
        _, companies = world
        engine = EconomyEngine(config)
        with pytest.raises(InitializationError):
            engine.initialize([], companies)
        assert not engine.initialized

    def test_missing_player(self, config, world):
        countries, companies = world
        engine = EconomyEngine(config)
        with pytest.raises(InitializationError):
            engine.initialize(countries, companies, "Atlantis")
        assert not engine.initialized

    def test_duplicate_country(self, config, world):
        countries, companies = world
        engine = EconomyEngine(config)
        with pytest.raises(LoadError):
            engine.initialize(countries + [dict(countries[1])], companies)
        assert not engine.initialized

    def test_uninitialised_engine_refuses_work(self, config):
        engine = EconomyEngine(config)
        with pytest.raises(InitializationError):
            engine.simulate_month()
        with pytest.raises(InitializationError):
            engine.snapshot()
        with pytest.raises(InitializationError):
            engine.apply_player_action(TariffChange("Aria", "energy", 0.1))


class TestMonthlyStep:

    def test_first_month_stays_near_calibration(self, engine):
        record = engine.simulate_month()
        assert record["month"] == 1
        assert engine.month == 1
        assert abs(engine.indicators["gdp_growth"]) < 0.05
        assert 0.0 <= engine.indicators["consumer_confidence"] <= 100.0

    def test_history_keeps_most_recent_months(self, tmp_path):
        config = SimulationConfig(num_countries=3, seed=1, output_dir=tmp_path, history_length=5)
        engine = build_engine(config)
        engine.run(8)
        assert [r["month"] for r in engine.history] == [4, 5, 6, 7, 8]

    def test_same_seed_same_trajectory(self, config):
        first, second = build_engine(config), build_engine(config)
        first.run(3)
        second.run(3)
        assert first.snapshot() == second.snapshot()

    def test_completion_event(self, engine):
        seen = []
        engine.events.subscribe("simulation_complete", seen.append)
        engine.simulate_month()
        assert [e.data["month"] for e in seen] == [1]
        assert "gdp" in seen[0].data["indicators"]

    def test_threshold_events(self, engine):
        engine.indicators["gdp_growth"] = -0.05
        engine.indicators["inflation"] = 0.12
        engine._check_economic_events()
        kinds = [e.type for e in engine.events.get_event_history(source="economy")]
        assert kinds == ["recession_start", "high_inflation"]


class TestRollback:

    def test_failed_month_restores_previous_state(self, engine, monkeypatch):
        engine.simulate_month()
        before = engine.snapshot()
        rng_state = engine.rng.bit_generator.state

        def broken():
            raise RuntimeError("market data unavailable")

        monkeypatch.setattr(engine, "_run_market_simulations", broken)
        with pytest.raises(SimulationError):
            engine.simulate_month()

        assert engine.month == 1
        assert engine.snapshot() == before
        assert engine.rng.bit_generator.state == rng_state

        monkeypatch.undo()
        engine.simulate_month()
        assert engine.month == 2


class TestPersistence:

    def test_snapshot_round_trip(self, engine, config):
        engine.run(2)
        restored = EconomyEngine(config, events=EventBus())
        restored.restore(engine.snapshot())
        assert restored.snapshot() == engine.snapshot()
        assert restored.month == 2

    def test_snapshot_has_no_side_effects(self, engine):
        first = engine.snapshot()
        first["economy"]["indicators"]["gdp"] = -1.0
        assert engine.indicators["gdp"] > 0

    def test_missing_keys_rejected(self, engine):
        before = engine.snapshot()
        with pytest.raises(StateValidationError):
            engine.restore({"economy": before["economy"]})
        assert engine.snapshot() == before

    def test_malformed_section_rejected(self, engine):
        engine.simulate_month()
        before = engine.snapshot()
        broken = engine.snapshot()
        del broken["economy"]["month"]
        with pytest.raises(StateValidationError):
            engine.restore(broken)
        assert engine.snapshot() == before

    def test_non_mapping_rejected(self, engine):
        with pytest.raises(StateValidationError):
            engine.restore(["economy"])


class TestExternalInputs:

    def test_unknown_policy_impact_ignored(self, engine):
        engine.apply_policy_impact("taxation", {"consumer_impact": 0.5})
        assert engine.pending_impacts == []

    def test_taxation_impact_applies_next_month(self, engine, config):
        engine.apply_policy_impact(PolicyImpactType.TAXATION, {"consumer_impact": 0.9})
        assert engine.multipliers["consumption"] == config.consumption_multiplier
        engine.simulate_month()
        assert engine.multipliers["consumption"] == pytest.approx(config.consumption_multiplier * 0.9)
        assert engine.pending_impacts == []

    def test_tariff_action(self, engine):
        target = ai_name(engine)
        seen = []
        engine.events.subscribe("player", seen.append)
        engine.apply_player_action(TariffChange(target, "energy", 0.2))

        assert engine.departments.foreign_policy.tariffs[target]["energy"] == 0.2
        assert [e.type for e in seen] == ["player.tariff_change"]
        assert engine.get_player_actions()[0]["target"] == target

    def test_mobilization_sours_relations(self, engine):
        target = ai_name(engine)
        before = engine.ai.countries[target].relationships[engine.player.name]
        assert engine.apply_player_action(MilitaryMove(target)) is None
        assert engine.ai.countries[target].relationships[engine.player.name] < before

    def test_invasion_recorded_on_player(self, engine):
        target = ai_name(engine)
        result = engine.apply_player_action(MilitaryMove(target, kind="invasion", intensity=1.0))

        last = engine.player.memory.actions[-1]
        assert last["type"] == "military_move"
        assert last["move_kind"] == "invasion"
        assert last["victor"] == result.victor
        assert engine.get_player_actions()[0]["kind"] == "invasion"

    def test_failed_action_changes_nothing(self, engine, monkeypatch):
        target = ai_name(engine)
        before = engine.snapshot()

        def broken(*args, **kwargs):
            raise RuntimeError("action ledger unavailable")

        monkeypatch.setattr(Country, "record_action", broken)
        with pytest.raises(SimulationError):
            engine.apply_player_action(MilitaryMove(target))

        assert engine.snapshot() == before
        assert engine.get_player_actions() == []
        assert engine.ai.countries[target].relationships[engine.player.name] == \
            before["ai"]["countries"][target]["relationships"][engine.player.name]

    def test_unknown_action_ignored(self, engine):
        assert engine.apply_player_action({"type": "coup"}) is None
        assert engine.get_player_actions() == []


def test_state_queries(engine):
    engine.simulate_month()
    state = engine.get_economic_state()
    assert set(state) == {"indicators", "sectors", "trade_partners"}
    assert sorted(state["trade_partners"]) == sorted(engine.ai.countries)

    assert engine.get_country_state(engine.player.name).gdp == engine.player.gdp
    assert engine.get_country_state(ai_name(engine)) is not None
    assert engine.get_country_state("Atlantis") is None
