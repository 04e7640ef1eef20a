import numpy as np
import pytest

from country import AITraits, Country
from errors import LoadError


@pytest.fixture
def record():
    return {
        "name": "Testland",
        "gdp": 1e12,
        "sectors": {"technology": 0.4, "finance": 0.6},
        "population": 40e6,
        "government_type": "Monarchy",
        "government_debt": 1.2e12,
        "inflation": 0.03,
        "borders": ["Otherland"],
        "nuclear": True,
    }


class TestLoading:
    """Country records from the data source."""

    def test_from_record(self, record):
        country = Country.from_record(record)
        assert country.name == "Testland"
        assert country.population == 40e6
        assert country.inflation == 0.03
        assert country.borders == ["Otherland"]
        assert country.nuclear is True
        assert country.debt_to_gdp == pytest.approx(120.0)

    @pytest.mark.parametrize("key", ["name", "gdp", "sectors"])
    def test_missing_required_key(self, record, key):
        del record[key]
        with pytest.raises(LoadError):
            Country.from_record(record)

    def test_rejects_non_numeric_gdp(self, record):
        record["gdp"] = "lots"
        with pytest.raises(LoadError):
            Country.from_record(record)

    def test_rejects_boolean_as_number(self, record):
        record["inflation"] = True
        with pytest.raises(LoadError):
            Country.from_record(record)

    @pytest.mark.parametrize("gdp", [float("nan"), float("inf"), -1e12])
    def test_rejects_non_finite_or_negative_gdp(self, record, gdp):
        record["gdp"] = gdp
        with pytest.raises(LoadError):
            Country.from_record(record)

    @pytest.mark.parametrize("population", [0, float("nan"), "many"])
    def test_rejects_bad_population(self, record, population):
        record["population"] = population
        with pytest.raises(LoadError):
            Country.from_record(record)

    @pytest.mark.parametrize("history", [["Otherland", 0.5], {"Otherland": "friendly"}, {"Otherland": float("nan")}])
    def test_rejects_bad_historical_relations(self, record, history):
        record["historical_relations"] = history
        with pytest.raises(LoadError):
            Country.from_record(record)

    def test_historical_relations_loaded(self, record):
        record["historical_relations"] = {"Otherland": 0.25}
        assert Country.from_record(record).historical_relations == {"Otherland": 0.25}

    def test_rejects_non_mapping(self):
        with pytest.raises(LoadError):
            Country.from_record(["Testland", 1e12])


def test_traits_within_ranges():
    rng = np.random.default_rng(1)
    for _ in range(50):
        traits = AITraits.generate(rng)
        assert 0 <= traits.aggression <= 1
        assert 0 <= traits.economic_focus <= 1
        assert -1 <= traits.diplomatic_bias <= 1
        assert 0 <= traits.risk_appetite <= 1
        assert 0 <= traits.innovation <= 1


def test_adjust_relation_clamps(make_country):
    country = make_country("A")
    country.adjust_relation("B", 0.9)
    assert country.relationships["B"] == 1.0
    country.adjust_relation("B", -3.0)
    assert country.relationships["B"] == 0.0


def test_economic_need_zero_when_on_target(make_country):
    country = make_country("A", gdp_growth=0.025, inflation=0.02)
    assert country.economic_need == 0.0


def test_economic_state_view(make_country):
    country = make_country("A", gdp=2e12, government_debt=1e12)
    state = country.economic_state()
    assert state.gdp == 2e12
    assert state.debt_to_gdp == pytest.approx(50.0)
    assert state.output_gap == 0.0


def test_dict_round_trip(make_country):
    country = make_country("A", traits=AITraits(0.1, 0.2, -0.3, 0.4, 0.5))
    country.relationships["B"] = 0.7
    country.trade_agreements.add("B")
    country.record_action("alliance", 3, target="B")

    restored = Country.from_dict(country.to_dict())
    assert restored.to_dict() == country.to_dict()
    assert restored.ai_traits == country.ai_traits
    assert restored.trade_agreements == {"B"}
