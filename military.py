"""
Military strategy for AI countries.
Battles use a Lanchester square-law approximation; nuclear capability acts as a
deterrence gate on invasions rather than as a combat modifier.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np

from config import SimulationConfig, TERRAIN_MODIFIERS, DOCTRINE_MULTIPLIERS
from country import Country, EconomicState
from game_math import clamp, lerp, safe_divide

logger = logging.getLogger(__name__)


class Doctrine(Enum):
    OFFENSIVE = "offensive"
    DEFENSIVE = "defensive"
    MODERNIZATION = "modernization"
    BALANCED = "balanced"

    @property
    def multiplier(self) -> float:
        return DOCTRINE_MULTIPLIERS[self.value]


@dataclass
class MilitaryProfile:
    tech_level: float
    doctrine: Doctrine
    supply_efficiency: float
    nuclear: bool


@dataclass
class BattleResult:
    attacker_wins: bool
    attacker_losses: float
    defender_losses: float
    duration_days: int
    attacker_strength: float = 0.0
    defender_strength: float = 0.0
    attacker: str = ""
    defender: str = ""
    terrain: str = "plains"

    @property
    def victor(self) -> str:
        return self.attacker if self.attacker_wins else self.defender


@dataclass
class CampaignPhase:
    type: str
    duration_days: int
    objective: str


@dataclass
class InvasionPlan:
    required_forces: float
    estimated_cost: float
    success_probability: float
    strategic_value: float
    phases: List[CampaignPhase] = field(default_factory=list)


@dataclass
class Target:
    name: str
    value: float
    risk: float


@dataclass
class MilitaryAction:
    type: str
    target: str
    plan: InvasionPlan
    priority: float = 0.0


def terrain_modifier(terrain: str) -> float:
    return TERRAIN_MODIFIERS.get(terrain, TERRAIN_MODIFIERS["plains"])


def battle_duration(ratio: float) -> int:
    """Days of fighting, banded by attacker/defender effective strength ratio."""
    if ratio > 3:
        return 7
    elif ratio > 1.5:
        return 14
    elif ratio > 1:
        return 30
    return 60


def resolve_battle(attacker_power: float, defender_power: float, terrain: str = "plains",
                   attacker_supply: float = 1.0, defender_supply: float = 1.0,
                   tech_advantage: float = 0.0, loss_coefficient: float = 0.1) -> BattleResult:
    """
    Resolve one engagement from base combat powers.

    The defender gets the terrain bonus, the attacker the technology edge.
    Each side loses sqrt(opposing effective strength) * loss_coefficient.
    """
    attacker = attacker_power * (1 + tech_advantage) * attacker_supply
    defender = defender_power * terrain_modifier(terrain) * defender_supply

    return BattleResult(
        attacker_wins=attacker > defender,
        attacker_losses=math.sqrt(max(defender, 0.0)) * loss_coefficient,
        defender_losses=math.sqrt(max(attacker, 0.0)) * loss_coefficient,
        duration_days=battle_duration(safe_divide(attacker, defender, default=math.inf)),
        attacker_strength=attacker,
        defender_strength=defender,
        terrain=terrain,
    )


class MilitaryStrategyEngine:
    """Per-country military profiles, target selection and battle simulation."""

    def __init__(self, config: SimulationConfig, rng: np.random.Generator):
        self.config = config
        self.rng = rng
        self.profiles: Dict[str, MilitaryProfile] = {}
        self.battle_history: deque = deque(maxlen=config.decision_log_length)

    def initialize_military(self, countries: Sequence[Country]):
        for country in countries:
            self.profiles[country.name] = MilitaryProfile(
                tech_level=self.generate_tech_level(country),
                doctrine=self.determine_doctrine(country),
                supply_efficiency=self.calculate_supply_efficiency(country),
                nuclear=country.nuclear,
            )
        logger.debug(f"Military profiles ready for {len(self.profiles)} countries")

    def generate_tech_level(self, country: Country) -> float:
        wealth = min(country.gdp_per_capita / 50000, 1.0)
        spending = min(country.military_budget / 0.05, 1.0)
        base = country.research_investment * 0.3 + wealth * 0.2 + spending * 0.5
        jitter = self.rng.uniform(-self.config.tech_jitter, self.config.tech_jitter)
        return clamp(base + jitter, 0.1, 1.0)

    @staticmethod
    def determine_doctrine(country: Country) -> Doctrine:
        traits = country.ai_traits
        if traits.aggression > 0.7:
            return Doctrine.OFFENSIVE
        if traits.innovation > 0.6:
            return Doctrine.MODERNIZATION
        if country.land_mass > 0.3:
            return Doctrine.DEFENSIVE
        return Doctrine.BALANCED

    @staticmethod
    def calculate_supply_efficiency(country: Country) -> float:
        return country.infrastructure * 0.7 + country.accessible_terrain * 0.3

    def combat_power(self, country: Country) -> float:
        profile = self.profiles[country.name]
        nuclear = self.config.nuclear_power_multiplier if profile.nuclear else 1.0
        return country.military_strength * profile.tech_level * profile.doctrine.multiplier * nuclear

    # -- deterrence --------------------------------------------------------

    def handle_nuclear_deterrence(self, attacker: Country, defender: Country) -> float:
        """Probability that an attack is allowed to proceed."""
        attacker_nuclear = self.profiles[attacker.name].nuclear
        defender_nuclear = self.profiles[defender.name].nuclear
        if defender_nuclear and not attacker_nuclear:
            return self.config.nuclear_defender_attack_probability
        if attacker_nuclear and defender_nuclear:
            return self.config.mutual_nuclear_attack_probability
        return 1.0

    def should_consider_attack(self, attacker: Country, defender: Country) -> bool:
        return bool(self.rng.random() < self.handle_nuclear_deterrence(attacker, defender))

    # -- planning ----------------------------------------------------------

    def calculate_strategic_value(self, attacker: Country, target: Country) -> float:
        geographic = 0.8 if target.name in attacker.borders else 0.2
        political = 1 - attacker.relationships.get(target.name, 0.5)
        return target.resource_value * 0.5 + geographic * 0.3 + political * 0.2

    def calculate_invasion_risk(self, attacker: Country, target: Country) -> float:
        own = self.combat_power(attacker)
        theirs = self.combat_power(target) * terrain_modifier(target.terrain)
        risk = safe_divide(theirs, own + theirs)
        if self.profiles[target.name].nuclear:
            risk = max(risk, 0.9)
        return risk

    def identify_targets(self, country: Country, countries: Sequence[Country]) -> List[Target]:
        targets = [
            Target(name=c.name,
                   value=self.calculate_strategic_value(country, c),
                   risk=self.calculate_invasion_risk(country, c))
            for c in countries if c.name != country.name
        ]
        targets = [t for t in targets if t.risk < country.ai_traits.risk_appetite]
        return sorted(targets, key=lambda t: (-t.value, t.name))

    def generate_invasion_plan(self, attacker: Country, defender: Country) -> InvasionPlan:
        own = self.combat_power(attacker)
        theirs = self.combat_power(defender) * terrain_modifier(defender.terrain)
        tech_ratio = safe_divide(self.profiles[defender.name].tech_level,
                                 self.profiles[attacker.name].tech_level, default=1.0)

        phases = [
            CampaignPhase("aerial", int(round(14 * tech_ratio)) + 1, "air_superiority"),
            CampaignPhase("ground", battle_duration(safe_divide(own, theirs, default=math.inf)),
                          "territory_capture"),
            CampaignPhase("occupation", int(defender.population / 1e6) + 30, "pacification"),
        ]
        days = sum(p.duration_days for p in phases)
        daily_budget = attacker.gdp * attacker.military_budget / 365
        return InvasionPlan(
            required_forces=theirs * 1.5,
            estimated_cost=days * daily_budget,
            success_probability=safe_divide(own, own + theirs),
            strategic_value=self.calculate_strategic_value(attacker, defender),
            phases=phases,
        )

    def consider_military_actions(self, country: Country, countries: Sequence[Country]) -> List[MilitaryAction]:
        by_name = {c.name: c for c in countries}
        actions = []
        for target in self.identify_targets(country, countries):
            plan = self.generate_invasion_plan(country, by_name[target.name])
            actions.append(MilitaryAction(
                type="invasion",
                target=target.name,
                plan=plan,
                priority=plan.strategic_value * country.ai_traits.aggression,
            ))
        actions.sort(key=lambda a: -a.priority)
        return actions[:self.config.max_military_actions]

    # -- combat ------------------------------------------------------------

    def simulate_battle(self, attacker: Country, defender: Country, terrain: Optional[str] = None) -> BattleResult:
        terrain = terrain or defender.terrain
        result = resolve_battle(
            self.combat_power(attacker),
            self.combat_power(defender),
            terrain=terrain,
            attacker_supply=self.profiles[attacker.name].supply_efficiency,
            defender_supply=self.profiles[defender.name].supply_efficiency,
            tech_advantage=self.profiles[attacker.name].tech_level - self.profiles[defender.name].tech_level,
            loss_coefficient=self.config.battle_loss_coefficient,
        )
        result.attacker = attacker.name
        result.defender = defender.name
        self.battle_history.append(result)
        logger.warning(f"BATTLE: {attacker.name} attacks {defender.name} on {terrain}; "
                       f"{result.victor} prevails after {result.duration_days} days")
        return result

    # -- budget and threat -------------------------------------------------

    def assess_threat_level(self, country: Country, countries: Sequence[Country]) -> float:
        """Worst single threat: rival power share x hostility, doubled for neighbours."""
        own = self.combat_power(country)
        worst = 0.0
        for other in countries:
            if other.name == country.name:
                continue
            theirs = self.combat_power(other)
            hostility = 1 - country.relationships.get(other.name, 0.5)
            proximity = 2.0 if other.name in country.borders else 1.0
            worst = max(worst, safe_divide(theirs, own + theirs) * hostility * proximity)
        return clamp(worst, 0.0, 1.0)

    def update_military_budget(self, country: Country, economic_state: EconomicState, threat_level: float) -> float:
        target = threat_level * 0.4 + country.ai_traits.aggression * 0.3 + economic_state.gdp_growth * 0.3
        lo, hi = self.config.military_budget_bounds
        return clamp(lerp(country.military_budget, target, self.config.military_budget_adjustment), lo, hi)

    def get_military_status(self, name: str) -> Dict:
        profile = self.profiles.get(name)
        if profile is None:
            return {}
        return {
            "tech_level": profile.tech_level,
            "doctrine": profile.doctrine.value,
            "supply_efficiency": profile.supply_efficiency,
            "nuclear": profile.nuclear,
            "battles": sum(1 for b in self.battle_history if name in (b.attacker, b.defender)),
        }

    # -- persistence ---------------------------------------------------------

    def snapshot(self) -> Dict:
        return {
            "profiles": {
                name: {"tech_level": p.tech_level, "doctrine": p.doctrine.value,
                       "supply_efficiency": p.supply_efficiency, "nuclear": p.nuclear}
                for name, p in self.profiles.items()
            },
            "battles": [vars(b).copy() for b in self.battle_history],
        }

    def restore(self, data: Dict):
        profiles = {
            name: MilitaryProfile(p["tech_level"], Doctrine(p["doctrine"]), p["supply_efficiency"], p["nuclear"])
            for name, p in data["profiles"].items()
        }
        self.battle_history = deque((BattleResult(**b) for b in data.get("battles", [])),
                                    maxlen=self.config.decision_log_length)
        self.profiles = profiles
