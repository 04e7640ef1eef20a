"""
Configuration and constants for the monthly economic and geopolitical simulation.
Coefficients are fixed heuristics (Phillips curve, Okun's law, Taylor rule,
Lanchester attrition) rather than econometric estimates.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass
class SimulationConfig:
    """Global simulation configuration."""

    num_countries: int = 8
    num_months: int = 120
    seed: Optional[int] = None
    player_name: str = "United Kingdom"
    output_dir: Path = field(default_factory=lambda: Path("output"))

    # History buffers
    history_length: int = 60  # 5 years of monthly snapshots
    statistics_history_length: int = 120
    department_history_length: int = 120
    decision_log_length: int = 50
    event_history_length: int = 500

    # Expenditure-approach multipliers
    consumption_multiplier: float = 0.6
    investment_multiplier: float = 0.3
    export_multiplier: float = 0.4
    import_multiplier: float = -0.3

    # Household sector
    labor_share: float = 0.65  # Share of output paid out as household income
    labor_force_ratio: float = 0.5  # Labour force as a share of population
    property_value_ratio: float = 3.0  # Taxable property stock relative to GDP
    capital_gains_ratio: float = 0.02  # Realised gains relative to GDP
    emissions_intensity: float = 2e-7  # Tonnes CO2 per unit of GDP

    # Phillips curve / Okun's law
    natural_unemployment: float = 0.045
    phillips_slope: float = 0.5
    inflation_persistence: float = 0.6
    okun_coefficient: float = 0.4
    unemployment_adjustment: float = 0.1
    min_wage_pressure: float = 0.002
    reference_min_wage: float = 11.44
    trend_growth: float = 0.02  # Annual potential growth
    ai_growth_bounds: tuple = (-0.3, 0.3)  # Annual growth range for AI economies
    unemployment_bounds: tuple = (0.01, 0.5)
    inflation_bounds: tuple = (-0.1, 1.0)

    # Confidence dynamics
    confidence_growth_sensitivity: float = 20.0
    confidence_inflation_sensitivity: float = 10.0
    confidence_unemployment_sensitivity: float = 10.0
    confidence_reversion: float = 0.05
    confidence_interest_sensitivity: float = 0.5
    neutral_interest_rate: float = 4.0  # percent

    # Currency
    currency_trade_scale: float = 1e9  # Trade balance expressed in billions for the FX rule
    currency_trade_sensitivity: float = 1e-4
    currency_inflation_sensitivity: float = 0.01
    currency_min: float = 0.01
    currency_max: float = 100.0

    # Threshold events
    recession_threshold: float = -0.02
    high_inflation_threshold: float = 0.05
    debt_warning_threshold: float = 100.0

    # International trade (gravity model)
    trade_openness: float = 0.3
    trade_agreement_bonus: float = 1.1

    # Relations
    relation_decay: float = 0.98
    initial_player_relation: float = 0.5
    hostile_relation_threshold: float = 0.4
    trade_partner_relation: float = 0.55
    alliance_threshold: float = 0.6
    alliance_trust_boost: float = 0.2
    alliance_cohesion: float = 0.8
    alliance_break_trust: float = -0.4
    alliance_break_tension: float = 0.3
    reverse_relation_scale: float = 0.8
    dominance_threshold: float = 0.7
    max_negotiations_per_country: int = 2

    # Tariffs
    strategic_sector_share: float = 0.15
    tariff_scale: float = 0.25
    max_tariff: float = 0.4

    # Military
    military_aggression_threshold: float = 0.7
    max_military_actions: int = 3
    nuclear_power_multiplier: float = 1.5
    battle_loss_coefficient: float = 0.1
    nuclear_defender_attack_probability: float = 0.01
    mutual_nuclear_attack_probability: float = 0.001
    tech_jitter: float = 0.1
    military_budget_bounds: tuple = (0.01, 0.5)
    military_budget_adjustment: float = 0.01

    # Crisis detection
    recession_growth: float = -0.02
    hyperinflation_rate: float = 0.25
    debt_crisis_ratio: float = 120.0
    bank_health_floor: float = 0.3
    political_stability_floor: float = 0.6
    military_threat_ceiling: float = 0.8
    environmental_floor: float = 40.0
    containment_threshold: float = 0.7
    max_severity_reduction: float = 0.95
    secondary_recession_threshold: float = 0.3


# Government types with stability baselines and a political position in [0, 1]
# used for diplomatic alignment.
GOVERNMENT_TYPES = {
    "Democracy": {"stability_base": 65, "alignment": 0.9, "war_reluctance": 0.7},
    "Autocracy": {"stability_base": 50, "alignment": 0.2, "war_reluctance": 0.4},
    "Theocracy": {"stability_base": 55, "alignment": 0.1, "war_reluctance": 0.5},
    "Technocracy": {"stability_base": 70, "alignment": 0.7, "war_reluctance": 0.6},
    "Monarchy": {"stability_base": 60, "alignment": 0.5, "war_reluctance": 0.5},
}

SECTORS = [
    "technology", "manufacturing", "finance", "pharmaceuticals", "retail",
    "energy", "aerospace", "telecoms", "agriculture", "services",
]

# Monthly revenue growth applied on top of base revenue
SECTOR_GROWTH_RATES = {
    "technology": 0.05,
    "manufacturing": 0.03,
    "finance": 0.04,
    "pharmaceuticals": 0.06,
    "retail": 0.02,
    "energy": 0.03,
    "aerospace": 0.04,
    "telecoms": 0.05,
    "agriculture": 0.02,
    "services": 0.03,
}
DEFAULT_SECTOR_GROWTH = 0.03

# Trade elasticity of demand per sector (tariff vulnerability)
SECTOR_ELASTICITIES = {
    "technology": 1.2,
    "manufacturing": 0.8,
    "energy": 0.6,
    "pharmaceuticals": 1.0,
}
DEFAULT_SECTOR_ELASTICITY = 1.0

# Defender bonus by terrain
TERRAIN_MODIFIERS = {
    "urban": 2.5,
    "mountain": 3.0,
    "forest": 1.8,
    "plains": 1.0,
}

DOCTRINE_MULTIPLIERS = {
    "offensive": 1.3,
    "defensive": 0.8,
    "modernization": 1.1,
    "balanced": 1.0,
}

# Trust/tension deltas per diplomatic interaction, scaled by outcome magnitude
INTERACTION_MODIFIERS = {
    "trade_deal": {"trust": 0.1, "tension": -0.05, "cooperation": 0.1},
    "sanction": {"trust": -0.3, "tension": 0.2, "cooperation": -0.2},
    "alliance": {"trust": 0.2, "tension": -0.1, "cooperation": 0.15},
    "border_dispute": {"trust": -0.4, "tension": 0.3, "cooperation": -0.1},
}

# UK-style progressive income tax: (threshold, marginal rate %) from the top band down
DEFAULT_INCOME_TAX_BANDS = [(150000, 45.0), (50270, 40.0), (12570, 20.0)]

NATION_NAME_PARTS = {
    "prefixes": ["North", "South", "East", "West", "New", "Greater", "United"],
    "roots": ["Aria", "Boren", "Calid", "Drakos", "Elaria", "Fendor", "Garvon",
              "Halcyon", "Ithara", "Jorvik", "Kalmar", "Lumeria", "Mordian",
              "Navaria", "Ostara", "Pyrrhia", "Quelmar", "Rhovana", "Solvaria",
              "Tarsus", "Urland", "Vesperia", "Westmark", "Xandria", "Yvoria", "Zephyria"],
    "suffixes": ["ia", "land", "stan", "mark", "burg", "haven", "realm"]
}

COMPANY_NAME_PARTS = {
    "stems": ["Apex", "Borealis", "Crown", "Delta", "Ember", "Fulcrum", "Granite",
              "Helix", "Ironside", "Juniper", "Keystone", "Lodestar", "Meridian",
              "Northwind", "Orbital", "Pinnacle", "Quantum", "Redwood", "Summit", "Vertex"],
    "suffixes": ["Holdings", "Group", "Industries", "Systems", "Partners", "Corp", "Works"],
}
