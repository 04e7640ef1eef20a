"""
Tests for AI economic strategy: tariffs, policy rules, crisis packages and trade flows.
"""

import pytest

from country import AITraits, EconomicState
from economic_relations import EconomicCrisisKind, EconomicRelationsModel, MeasureType


@pytest.fixture
def model(config):
    return EconomicRelationsModel(config)


def state_for(country, **overrides):
    state = country.economic_state()
    for key, value in overrides.items():
        setattr(state, key, value)
    return state


class TestTradePolicy:

    def test_tariffs_only_on_strategic_sectors(self, model, make_country):
        country = make_country("A", sectors={"technology": 0.6, "energy": 0.3, "retail": 0.1})
        decisions = model.calculate_tariffs(country, country.economic_state(), {"technology": 0.3})
        assert sorted(d.sector for d in decisions) == ["energy", "technology"]
        for decision in decisions:
            assert 0.0 <= decision.rate <= model.config.max_tariff

    def test_player_tariffs_raise_vulnerable_sector_rate(self, model, make_country):
        country = make_country("A", sectors={"technology": 0.6, "energy": 0.4})
        calm = {d.sector: d.rate for d in model.calculate_tariffs(country, country.economic_state(), {})}
        hit = {d.sector: d.rate for d in model.calculate_tariffs(country, country.economic_state(),
                                                                  {"technology": 0.5})}
        assert hit["technology"] > calm["technology"]
        assert hit["energy"] == pytest.approx(calm["energy"])


class TestPolicyRules:

    def test_taylor_rule(self, model, make_country):
        country = make_country("A", inflation=0.04)
        changes = model.determine_policy_changes(country, country.economic_state())
        # 1.5 x 2pp inflation gap + 0.5 x zero output gap + 1
        assert changes.interest_rate == pytest.approx(4.0)
        assert changes.government_spending == 0.0

    def test_negative_output_gap_triggers_stimulus(self, model, make_country):
        country = make_country("A", traits=AITraits(0.5, 0.5, 0.0, 0.5, 0.5))
        state = state_for(country, gdp=0.95e12)
        changes = model.determine_policy_changes(country, state)
        assert changes.government_spending == pytest.approx(min(0.05 * 0.95e12, country.fiscal_space * 0.8))
        assert changes.tax_rate == pytest.approx(-0.01)

    def test_debt_brake(self, model, make_country):
        country = make_country("A")
        state = state_for(country, gdp=0.95e12, debt_to_gdp=180.0)
        changes = model.determine_policy_changes(country, state)
        assert changes.government_spending == pytest.approx(min(0.05 * 0.95e12, country.fiscal_space * 0.8) * 0.5)
        assert changes.tax_rate == pytest.approx(-0.01 + 0.02)

    def test_interest_rate_never_negative(self, model, make_country):
        country = make_country("A", inflation=-0.05)
        changes = model.determine_policy_changes(country, state_for(country, gdp=0.8e12))
        assert changes.interest_rate == 0.0


class TestNeeds:

    def test_needs_in_unit_range(self, model, make_country):
        country = make_country("A", traits=AITraits(0.9, 0.9, 0.0, 0.5, 0.5))
        neighbour = make_country("B", military_strength=200.0)
        world = EconomicState(gdp=5e12, potential_gdp=5e12, gdp_growth=-0.05, inflation=0.2,
                              unemployment=0.1, debt_to_gdp=80.0, trade_balance=0.0)
        needs = model.analyze_needs(country, world, [neighbour], [(0.8, 0.9)])
        for value in (needs.economic, needs.military, needs.diplomatic):
            assert 0.0 <= value <= 1.0
        assert needs.military > 0

    def test_military_pressure_averages_stronger_neighbours(self, model, make_country):
        country = make_country("A", military_strength=50.0)
        stronger = make_country("B", military_strength=100.0)
        weaker = make_country("C", military_strength=25.0)
        assert model.military_pressure(country, [stronger, weaker]) == pytest.approx(0.5)
        assert model.military_pressure(country, []) == 0.0


class TestCrisisPackages:

    def test_cautious_government_tightens_harder(self, model, make_country):
        country = make_country("A", traits=AITraits(0.5, 0.5, 0.0, 0.2, 0.5))
        package = model.generate_crisis_response(country, EconomicCrisisKind.HYPERINFLATION)
        assert package.monetary["interest_rate"] == pytest.approx(6.0)
        assert package.fiscal["spending_cut"] == pytest.approx(0.12)

    def test_currency_crisis_imposes_capital_controls(self, model, make_country):
        package = model.generate_crisis_response(make_country("A"), EconomicCrisisKind.CURRENCY_CRISIS)
        assert package.capital_controls
        assert package.monetary["foreign_reserves"] == -0.4

    def test_innovative_government_adds_digital_reform(self, model, make_country):
        country = make_country("A", traits=AITraits(0.5, 0.5, 0.0, 0.5, 0.9))
        package = model.generate_crisis_response(country, EconomicCrisisKind.DEBT_DEFAULT)
        assert package.structural[-1] == "digital_transformation"
        assert "pension_reform" in package.structural


class TestRetaliation:

    def test_aggressive_country_escalates(self, model, make_country):
        country = make_country("A", traits=AITraits(0.8, 0.7, 0.0, 0.5, 0.5))
        measures = model.generate_retaliatory_measures(country, "Player", "technology", 0.2)
        assert [m.type for m in measures] == [MeasureType.TARIFF, MeasureType.SANCTION, MeasureType.TRADE_DIVERSION]
        assert measures[0].value == pytest.approx(0.2 * 0.9)

    def test_mild_country_only_mirrors_tariff(self, model, make_country):
        country = make_country("A", traits=AITraits(0.2, 0.3, 0.0, 0.5, 0.5))
        measures = model.generate_retaliatory_measures(country, "Player", "technology", 0.2)
        assert [m.type for m in measures] == [MeasureType.TARIFF]


class TestTradeFlows:

    @pytest.fixture
    def pair(self, make_country):
        player = make_country("Player", sectors={"technology": 1.0})
        partner = make_country("Partner", sectors={"technology": 1.0})
        return player, partner

    def test_partner_tariffs_cut_exports(self, model, pair):
        player, partner = pair
        free = model.calculate_global_trade_impacts(player, [partner], {})
        partner.tariffs["technology"] = 0.2
        taxed = model.calculate_global_trade_impacts(player, [partner], {})
        assert taxed.exports == pytest.approx(free.exports * 0.8)
        assert taxed.imports == pytest.approx(free.imports)

    def test_own_tariffs_cut_imports_and_raise_revenue(self, model, pair):
        player, partner = pair
        outcome = model.calculate_global_trade_impacts(player, [partner], {"Partner": {"technology": 0.25}})
        free = model.calculate_global_trade_impacts(player, [partner], {})
        assert outcome.imports == pytest.approx(free.imports * 0.75)
        assert outcome.tariff_revenue == pytest.approx(outcome.imports * 0.25)
        assert free.tariff_revenue == 0.0

    def test_agreement_raises_both_flows(self, model, pair):
        player, partner = pair
        base = model.calculate_global_trade_impacts(player, [partner], {})
        player.trade_agreements.add("Partner")
        bonus = model.calculate_global_trade_impacts(player, [partner], {})
        assert bonus.exports > base.exports
        assert bonus.imports > base.imports

    def test_strong_currency_favours_imports(self, model, pair):
        player, partner = pair
        weak = model.calculate_global_trade_impacts(player, [partner], {}, currency_value=0.5)
        strong = model.calculate_global_trade_impacts(player, [partner], {}, currency_value=2.0)
        assert strong.exports < weak.exports
        assert strong.imports > weak.imports
        assert strong.by_partner["Partner"] == pytest.approx(strong.balance)
