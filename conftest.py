import numpy as np
import pytest

from config import SimulationConfig
from country import AITraits, Country
from economy_engine import EconomyEngine
from events import EventBus
from scenario import generate_world


@pytest.fixture
def config(tmp_path):
    """Small, seeded configuration for fast tests."""
    return SimulationConfig(
        num_countries=4,
        num_months=12,
        seed=42,
        output_dir=tmp_path
    )


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def make_country():
    """Factory for hand-built countries with fixed traits."""
    def _make(name, gdp=1e12, sectors=None, government_type="Democracy", traits=None, **attrs):
        country = Country(
            name=name,
            gdp=gdp,
            sectors=sectors if sectors is not None else {"technology": 0.5, "manufacturing": 0.5},
            government_type=government_type,
            ai_traits=traits or AITraits.neutral(),
        )
        for key, value in attrs.items():
            setattr(country, key, value)
        return country
    return _make


@pytest.fixture
def world(config):
    return generate_world(config, np.random.default_rng(7))


@pytest.fixture
def engine(config, world):
    """Initialised engine over a generated four-country world."""
    countries, companies = world
    engine = EconomyEngine(config, rng=np.random.default_rng(config.seed), events=EventBus())
    engine.initialize(countries, companies, config.player_name)
    return engine
