"""
Procedural world generation.
Produces country and company records in the same shape the data source supplies,
so a generated world goes through the same validation as loaded data.
"""

from typing import Any, Dict, List, Tuple

import numpy as np

from config import (SimulationConfig, GOVERNMENT_TYPES, SECTORS, TERRAIN_MODIFIERS,
                    NATION_NAME_PARTS, COMPANY_NAME_PARTS)

# Roughly the UK's headline figures
PLAYER_BASELINE = {
    "gdp": 3.1e12,
    "population": 67e6,
    "government_type": "Democracy",
    "government_debt": 2.6e12,
    "inflation": 0.04,
    "unemployment": 0.042,
    "interest_rate": 4.0,
    "military_strength": 70.0,
    "nuclear": True,
    "research_investment": 0.6,
    "infrastructure": 0.75,
    "terrain": "plains",
}


def _generate_nation_name(rng: np.random.Generator, taken: set) -> str:
    """Procedural nation name that is not already taken."""
    while True:
        if rng.random() < 0.3:
            prefix = rng.choice(NATION_NAME_PARTS["prefixes"])
            root = rng.choice(NATION_NAME_PARTS["roots"])
            name = f"{prefix} {root}"
        else:
            root = rng.choice(NATION_NAME_PARTS["roots"])
            if rng.random() < 0.5:
                name = f"{root}{rng.choice(NATION_NAME_PARTS['suffixes'])}"
            else:
                name = str(root)
        if name not in taken:
            return name


def _sector_profile(rng: np.random.Generator, n_sectors: int = 5) -> Dict[str, float]:
    chosen = rng.choice(SECTORS, size=n_sectors, replace=False)
    weights = rng.dirichlet(np.ones(n_sectors))
    return {str(s): round(float(w), 4) for s, w in zip(chosen, weights)}


def generate_country_records(config: SimulationConfig, rng: np.random.Generator) -> List[Dict[str, Any]]:
    """The player country plus ``num_countries - 1`` generated AI countries."""
    player = {"name": config.player_name, "sectors": _sector_profile(rng), **PLAYER_BASELINE}
    records = [player]
    taken = {config.player_name}

    for _ in range(max(0, config.num_countries - 1)):
        name = _generate_nation_name(rng, taken)
        taken.add(name)

        gov_type = str(rng.choice(list(GOVERNMENT_TYPES.keys()), p=[0.35, 0.3, 0.1, 0.15, 0.1]))
        population = float(np.clip(rng.lognormal(np.log(30e6), 1.0), 1e6, 1.4e9))
        gdp_per_capita = float(np.clip(rng.lognormal(np.log(15000), 0.9), 800, 90000))
        gdp = population * gdp_per_capita

        records.append({
            "name": name,
            "gdp": gdp,
            "sectors": _sector_profile(rng),
            "population": population,
            "government_type": gov_type,
            "government_debt": gdp * float(rng.uniform(0.2, 1.2)),
            "inflation": float(rng.uniform(0.01, 0.08)),
            "unemployment": float(rng.uniform(0.03, 0.12)),
            "interest_rate": float(rng.uniform(1.0, 8.0)),
            "bank_health_index": float(rng.uniform(0.4, 0.9)),
            "land_mass": float(rng.uniform(0.01, 0.5)),
            "accessible_terrain": float(rng.uniform(0.3, 0.9)),
            "terrain": str(rng.choice(list(TERRAIN_MODIFIERS))),
            "stability": float(np.clip(GOVERNMENT_TYPES[gov_type]["stability_base"] + rng.uniform(-15, 15), 0, 100)),
            "environmental_index": float(rng.uniform(30, 80)),
            "military_strength": float(rng.uniform(20, 90)),
            "military_budget": float(rng.uniform(0.01, 0.05)),
            "research_investment": float(rng.uniform(0.1, 0.8)),
            "infrastructure": float(rng.uniform(0.3, 0.9)),
            "resource_value": float(rng.uniform(0.1, 1.0)),
            "nuclear": bool(rng.random() < 0.15),
            "imports": [str(s) for s in rng.choice(SECTORS, size=3, replace=False)],
            "exports": [str(s) for s in rng.choice(SECTORS, size=3, replace=False)],
        })

    _assign_borders(records, rng)
    return records


def _assign_borders(records: List[Dict[str, Any]], rng: np.random.Generator):
    """Place countries on a ring; neighbours on the ring share a border, plus a few random links."""
    names = [r["name"] for r in records]
    order = list(rng.permutation(len(names)))
    borders: Dict[str, set] = {name: set() for name in names}
    links: List[Tuple[str, str]] = []
    if len(names) > 1:
        for i, idx in enumerate(order):
            links.append((names[idx], names[order[(i + 1) % len(order)]]))
    for _ in range(len(names) // 3):
        a, b = rng.choice(len(names), size=2, replace=False)
        links.append((names[a], names[b]))
    for a, b in links:
        if a != b:
            borders[a].add(b)
            borders[b].add(a)
    for record in records:
        record["borders"] = sorted(borders[record["name"]])


def _generate_company_name(rng: np.random.Generator, sector: str, taken: set) -> str:
    while True:
        name = f"{rng.choice(COMPANY_NAME_PARTS['stems'])} {sector.title()} {rng.choice(COMPANY_NAME_PARTS['suffixes'])}"
        if name not in taken:
            return name
        name = f"{name} {len(taken)}"
        if name not in taken:
            return name


def generate_company_records(countries: List[Dict[str, Any]], rng: np.random.Generator,
                             per_country: int = 4) -> List[Dict[str, Any]]:
    """A handful of companies per country, sized from the country's sector weights."""
    records = []
    taken: set = set()
    for country in countries:
        sectors = list(country["sectors"])
        weights = np.array([country["sectors"][s] for s in sectors], dtype=float)
        weights = weights / weights.sum()
        for _ in range(per_country):
            sector = str(rng.choice(sectors, p=weights))
            name = _generate_company_name(rng, sector, taken)
            taken.add(name)

            revenue = country["gdp"] * country["sectors"][sector] * float(rng.uniform(0.005, 0.03))
            margin = float(rng.uniform(0.05, 0.25))
            employees = max(50.0, round(revenue / float(rng.uniform(150000, 400000))))
            records.append({
                "name": name,
                "sector": sector,
                "country": country["name"],
                "revenue": revenue,
                "profit": revenue * margin,
                "employees": employees,
                "avg_salary": float(np.clip(country["gdp"] / country.get("population", 50e6) * 0.6, 8000, 80000)),
                "market_cap": revenue * float(rng.uniform(1.0, 4.0)),
                "subsidies": 0.0,
                "market_share": float(rng.uniform(0.02, 0.2)),
                "state_owned": bool(rng.random() < 0.1),
            })
    return records


def generate_world(config: SimulationConfig, rng: np.random.Generator) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    countries = generate_country_records(config, rng)
    return countries, generate_company_records(countries, rng)
