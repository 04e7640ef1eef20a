"""
Tests for procedural world generation.
"""

import numpy as np

from companies import Company
from country import Country
from scenario import generate_world


def test_world_shape(config, world):
    countries, companies = world
    assert len(countries) == config.num_countries
    assert countries[0]["name"] == config.player_name
    assert len({c["name"] for c in countries}) == len(countries)
    assert len(companies) == 4 * config.num_countries
    assert len({c["name"] for c in companies}) == len(companies)


def test_borders_symmetric(world):
    countries, _ = world
    borders = {c["name"]: set(c["borders"]) for c in countries}
    for name, neighbours in borders.items():
        assert name not in neighbours
        assert neighbours, f"{name} has no neighbours"
        for other in neighbours:
            assert name in borders[other]


def test_sector_weights_sum_to_one(world):
    countries, _ = world
    for record in countries:
        assert abs(sum(record["sectors"].values()) - 1.0) < 1e-3


def test_records_pass_validation(config, world):
    countries, companies = world
    loaded = [Country.from_record(r, is_player=r["name"] == config.player_name) for r in countries]
    assert loaded[0].is_player
    assert not any(c.is_player for c in loaded[1:])
    for record in companies:
        company = Company.from_record(record)
        assert company.country in {c.name for c in loaded}
        assert company.sector in next(c.sectors for c in loaded if c.name == company.country)


def test_same_seed_same_world(config):
    assert generate_world(config, np.random.default_rng(3)) == generate_world(config, np.random.default_rng(3))
    assert generate_world(config, np.random.default_rng(3)) != generate_world(config, np.random.default_rng(4))
