"""
Tests for the diplomatic AI: relationship matrix, negotiations, alliances, mediation.
"""

import numpy as np
import pytest

from country import AITraits
from diplomacy import (
    AllianceType, DiplomaticAI, DiplomaticCrisis, DiplomaticCrisisType, InteractionType,
    NegotiationState, RedLines, TradeTerms,
)

TRADER = AITraits(aggression=0.0, economic_focus=1.0, diplomatic_bias=0.0, risk_appetite=1.0, innovation=1.0)
PROTECTIONIST = AITraits(aggression=1.0, economic_focus=0.0, diplomatic_bias=0.0, risk_appetite=0.0, innovation=0.0)


@pytest.fixture
def trio(make_country):
    return [
        make_country("Aria", sectors={"technology": 1.0}),
        make_country("Boren", sectors={"energy": 1.0}),
        make_country("Calid", sectors={"finance": 1.0}),
    ]


@pytest.fixture
def diplomacy(config, trio):
    ai = DiplomaticAI(config, np.random.default_rng(5))
    ai.initialize_diplomacy(trio)
    return ai


class TestRelationships:
    """Trust, tension and cooperation stay within [0, 1]."""

    def test_initial_trust_in_range(self, diplomacy):
        for a, rels in diplomacy.relationships.items():
            assert a not in rels
            for rel in rels.values():
                assert 0.0 <= rel.trust <= 1.0

    def test_decay_without_interaction(self, diplomacy):
        before = diplomacy.get_relationship("Aria", "Boren").trust
        diplomacy.update_relationships()
        assert diplomacy.get_relationship("Aria", "Boren").trust == pytest.approx(before * 0.98)

    def test_interaction_applies_once(self, diplomacy):
        diplomacy.get_relationship("Aria", "Boren").trust = 0.5
        diplomacy.record_interaction("Aria", "Boren", InteractionType.SANCTION)
        diplomacy.update_relationships()
        rel = diplomacy.get_relationship("Aria", "Boren")
        assert rel.trust == pytest.approx(0.5 * 0.98 - 0.3)
        assert rel.tension == pytest.approx(0.2)
        assert rel.last_interaction is None

        diplomacy.update_relationships()
        assert rel.trust == pytest.approx((0.5 * 0.98 - 0.3) * 0.98)

    def test_values_stay_clamped_under_random_interactions(self, diplomacy):
        rng = np.random.default_rng(11)
        names = sorted(diplomacy.relationships)
        kinds = list(InteractionType)
        for _ in range(200):
            a, b = rng.choice(names, size=2, replace=False)
            diplomacy.record_interaction(str(a), str(b), kinds[int(rng.integers(len(kinds)))],
                                         outcome=float(rng.uniform(0, 3)))
            diplomacy.update_relations(str(a), str(b), {"trust": float(rng.uniform(-1, 1))})
            diplomacy.update_relationships()
            for rels in diplomacy.relationships.values():
                for rel in rels.values():
                    assert 0.0 <= rel.trust <= 1.0
                    assert 0.0 <= rel.tension <= 1.0
                    assert 0.0 <= rel.cooperation <= 1.0

    def test_update_relations_scales_reverse_direction(self, diplomacy):
        diplomacy.get_relationship("Aria", "Boren").tension = 0.0
        diplomacy.get_relationship("Boren", "Aria").tension = 0.0
        diplomacy.update_relations("Aria", "Boren", {"tension": 0.5})
        assert diplomacy.get_relationship("Aria", "Boren").tension == pytest.approx(0.5)
        assert diplomacy.get_relationship("Boren", "Aria").tension == pytest.approx(0.4)


class TestNegotiation:

    def test_rounds_from_complexity(self, diplomacy, trio):
        agreement = diplomacy.generate_trade_agreement(trio[0], trio[1], relation=0.6)
        # Disjoint sectors: no overlap, no conflicting tariffs
        assert agreement.rounds_remaining == 3
        assert agreement.state == NegotiationState.PROPOSED
        assert agreement.current_terms.tariff_reduction == pytest.approx(0.38)

    def test_unacceptable_deal_fails_when_rounds_run_out(self, diplomacy, trio):
        target = trio[1]
        target.ai_traits = PROTECTIONIST
        agreement = diplomacy.generate_trade_agreement(trio[0], target)

        assert diplomacy.run_negotiation(agreement) == NegotiationState.FAILED
        assert agreement.rounds_remaining == 0
        assert len(agreement.history) == 3
        assert "Boren" not in trio[0].trade_agreements

    def test_attractive_deal_finalises(self, diplomacy, trio):
        proposer, target = trio[0], trio[1]
        target.ai_traits = TRADER
        agreement = diplomacy.generate_trade_agreement(proposer, target)

        assert diplomacy.simulate_negotiation_round(agreement) == NegotiationState.FINALIZED
        assert "Boren" in proposer.trade_agreements
        assert "Aria" in target.trade_agreements
        assert proposer.memory.agreements[-1]["with"] == "Boren"
        assert diplomacy.get_relationship("Aria", "Boren").last_interaction.type == InteractionType.TRADE_DEAL

        diplomacy.prune_negotiations()
        assert diplomacy.get_active_negotiations("Aria") == []

    def test_concluded_round_is_stable(self, diplomacy, trio):
        trio[1].ai_traits = TRADER
        agreement = diplomacy.generate_trade_agreement(trio[0], trio[1])
        diplomacy.run_negotiation(agreement)
        assert diplomacy.simulate_negotiation_round(agreement) == NegotiationState.FINALIZED

    def test_no_duplicate_proposals(self, diplomacy, trio):
        a, b = trio[0], trio[1]
        diplomacy.get_relationship("Aria", "Boren").trust = 0.8
        assert diplomacy.should_propose_agreement(a, b)
        diplomacy.generate_trade_agreement(a, b)
        assert not diplomacy.should_propose_agreement(a, b)
        assert not diplomacy.should_propose_agreement(b, a)

    def test_concessions_respect_red_lines(self):
        terms = TradeTerms(tariff_reduction=0.5, market_access=0.2, intellectual_property=0.1)
        red_lines = RedLines(max_tariff_reduction=0.55, min_market_access=0.15)
        for rounds in (3, 2, 1, 0):
            terms = DiplomaticAI.adjust_terms(terms, rounds, red_lines)
        assert terms.tariff_reduction == pytest.approx(0.55)
        assert terms.market_access == pytest.approx(0.15)


class TestAlliances:

    def test_compatible_countries_ally(self, diplomacy, trio):
        a, b = trio[0], trio[1]
        diplomacy.get_relationship("Aria", "Boren").trust = 0.9
        alliance = diplomacy.form_alliance(a, b)

        assert alliance is not None
        assert alliance.type == AllianceType.DEFENSIVE
        assert alliance.strength == pytest.approx(0.9 * 0.4 + 0.4 + 0.2)
        assert diplomacy.get_relationship("Aria", "Boren").trust == 1.0
        assert diplomacy.are_allied("Boren", "Aria")
        assert diplomacy.form_alliance(a, b) is None

    def test_incompatible_countries_do_not_ally(self, diplomacy, make_country, config):
        hawk = make_country("Hawk", government_type="Autocracy",
                            traits=AITraits(0.5, 0.5, -1.0, 0.5, 0.5))
        dove = make_country("Dove", traits=AITraits(0.5, 0.5, 1.0, 0.5, 0.5))
        ai = DiplomaticAI(config, np.random.default_rng(0))
        ai.initialize_diplomacy([hawk, dove])
        ai.get_relationship("Hawk", "Dove").trust = 0.1
        assert ai.form_alliance(hawk, dove) is None
        assert ai.active_treaties == {}

    def test_breaking_alliance_penalises_instigator(self, diplomacy, trio):
        diplomacy.get_relationship("Aria", "Boren").trust = 0.9
        alliance = diplomacy.form_alliance(trio[0], trio[1])
        for a, b in (("Aria", "Boren"), ("Boren", "Aria")):
            diplomacy.get_relationship(a, b).trust = 1.0
            diplomacy.get_relationship(a, b).tension = 0.0

        assert diplomacy.break_alliance(alliance.id, "Aria")
        # The betrayed member loses trust in full, the instigator's view shifts less
        assert diplomacy.get_relationship("Boren", "Aria").trust == pytest.approx(0.6)
        assert diplomacy.get_relationship("Boren", "Aria").tension == pytest.approx(0.3)
        assert diplomacy.get_relationship("Aria", "Boren").trust == pytest.approx(0.68)
        assert diplomacy.get_relationship("Aria", "Boren").tension == pytest.approx(0.24)
        assert not diplomacy.are_allied("Aria", "Boren")
        assert not diplomacy.break_alliance(alliance.id, "Aria")

    def test_counter_alliance_needs_two_members(self, diplomacy):
        assert diplomacy.form_counter_alliance(["Aria", "Calid"], "Calid") is None

    def test_counter_alliance(self, diplomacy):
        alliance = diplomacy.form_counter_alliance(["Aria", "Boren"], "Calid")
        assert alliance.type == AllianceType.COUNTER_BALANCE
        assert alliance.target == "Calid"
        assert diplomacy.form_counter_alliance(["Aria", "Boren"], "Calid") is None

    def test_counter_alliance_grows_instead_of_duplicating(self, config, trio, make_country):
        ai = DiplomaticAI(config, np.random.default_rng(5))
        ai.initialize_diplomacy(trio + [make_country("Dune", sectors={"energy": 1.0})])

        first = ai.form_counter_alliance(["Aria", "Boren"], "Dune")
        second = ai.form_counter_alliance(["Boren", "Calid"], "Dune")
        assert second.id == first.id
        assert second.members == ["Aria", "Boren", "Calid"]
        blocs = [a for a in ai.active_treaties.values() if a.type == AllianceType.COUNTER_BALANCE]
        assert len(blocs) == 1
        assert ai.get_counter_alliance("Dune") is first


class TestCrisisMediation:

    def test_border_conflict_mediated_by_outsider(self, diplomacy, trio):
        for country in trio:
            country.military_strength = 50.0
        resolution = diplomacy.handle_crisis(DiplomaticCrisis(DiplomaticCrisisType.BORDER_CONFLICT,
                                                              ["Aria", "Boren"]))
        assert resolution.mediator == "Calid"
        assert resolution.settlement == {"Aria": 0.5, "Boren": 0.5}
        assert resolution.resolved

    def test_trade_war_lowers_tension(self, diplomacy):
        diplomacy.get_relationship("Aria", "Boren").tension = 0.5
        resolution = diplomacy.handle_crisis(DiplomaticCrisis(DiplomaticCrisisType.TRADE_WAR, ["Aria", "Boren"]))
        assert resolution.type == DiplomaticCrisisType.TRADE_WAR
        assert diplomacy.get_relationship("Aria", "Boren").tension == pytest.approx(0.4)

    def test_unknown_crisis_type(self, diplomacy):
        assert diplomacy.handle_crisis(DiplomaticCrisis("piracy", ["Aria", "Boren"])) is None


def test_snapshot_round_trip(diplomacy, trio, config):
    diplomacy.get_relationship("Aria", "Boren").trust = 0.9
    diplomacy.form_alliance(trio[0], trio[1])
    diplomacy.generate_trade_agreement(trio[1], trio[2])
    diplomacy.record_interaction("Aria", "Calid", InteractionType.BORDER_DISPUTE, 0.5)

    restored = DiplomaticAI(config, np.random.default_rng(0))
    restored.restore(diplomacy.snapshot(), trio)
    assert restored.snapshot() == diplomacy.snapshot()
