"""
Country model shared by the economy engine and the AI subsystems.
A country is created once from static data and mutated every simulated month.
"""

import math
import numbers
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Set

import numpy as np

from config import GOVERNMENT_TYPES
from errors import LoadError
from game_math import clamp, safe_divide

REQUIRED_COUNTRY_KEYS = ("name", "gdp", "sectors")


@dataclass(frozen=True)
class AITraits:
    """Persistent AI personality, drawn once at country creation."""
    aggression: float
    economic_focus: float
    diplomatic_bias: float  # -1..1
    risk_appetite: float
    innovation: float

    @classmethod
    def generate(cls, rng: np.random.Generator) -> "AITraits":
        return cls(
            aggression=float(rng.random()),
            economic_focus=float(rng.random()),
            diplomatic_bias=float(rng.uniform(-1.0, 1.0)),
            risk_appetite=float(rng.random()),
            innovation=float(rng.random()),
        )

    @classmethod
    def neutral(cls) -> "AITraits":
        return cls(0.5, 0.5, 0.0, 0.5, 0.5)


@dataclass
class CountryMemory:
    """Append-only log of what happened to a country."""
    past_conflicts: List[Dict[str, Any]] = field(default_factory=list)
    trade_history: List[Dict[str, Any]] = field(default_factory=list)
    agreements: List[Dict[str, Any]] = field(default_factory=list)
    actions: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class EconomicState:
    """Read-only view of a country's macro position handed to AI strategy functions."""
    gdp: float
    potential_gdp: float
    gdp_growth: float
    inflation: float
    unemployment: float
    debt_to_gdp: float
    trade_balance: float
    bank_health_index: float = 0.5
    currency_value: float = 1.0

    @property
    def output_gap(self) -> float:
        return safe_divide(self.gdp - self.potential_gdp, self.potential_gdp)


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


class Country:
    """Model of a sovereign country, AI-controlled or player-controlled."""

    def __init__(
        self,
        name: str,
        gdp: float,
        sectors: Dict[str, float],
        government_type: str = "Democracy",
        population: float = 50e6,
        ai_traits: Optional[AITraits] = None,
        is_player: bool = False,
    ):
        # identity
        self.name = name
        self.government_type = government_type
        self.is_player = is_player
        self.population = float(population)
        self.land_mass = 0.1  # share of the mapped world
        self.accessible_terrain = 0.6
        self.terrain = "plains"
        self.borders: List[str] = []

        # economy
        self.gdp = float(gdp)
        self.potential_gdp = float(gdp)
        self.sectors: Dict[str, float] = dict(sectors)
        self.government_debt = 0.0
        self.inflation_target = 0.02
        self.fiscal_space = 0.05 * self.gdp
        self.gdp_growth = 0.02  # annualised
        self.gdp_growth_target = 0.025
        self.inflation = 0.02
        self.unemployment = 0.05
        self.interest_rate = 3.0  # percent
        self.tax_rate = 0.3
        self.government_spending = 0.2 * self.gdp
        self.money_supply_growth = 0.0
        self.bank_health_index = 0.7
        self.foreign_reserves = 0.1 * self.gdp
        self.foreign_investment = 0.02 * self.gdp
        self.imports: List[str] = []
        self.exports: List[str] = []
        self.trade_balance = 0.0
        self.currency_value = 1.0
        self.economic_stability = 0.7

        # politics / environment (0-100 indices)
        self.stability = float(GOVERNMENT_TYPES.get(government_type, {}).get("stability_base", 60))
        self.environmental_index = 60.0

        # military
        self.military_strength = 50.0
        self.military_budget = 0.02  # share of GDP
        self.research_investment = 0.3
        self.infrastructure = 0.6
        self.nuclear = False
        self.resource_value = 0.5

        # AI state
        self.ai_traits = ai_traits or AITraits.neutral()
        self.relationships: Dict[str, float] = {}
        self.strategic_goals: List[str] = []
        self.memory = CountryMemory()
        self.tariffs: Dict[str, float] = {}  # sector -> rate applied to imports
        self.trade_agreements: Set[str] = set()
        self.capital_controls = False
        self.historical_relations: Dict[str, float] = {}

    def __repr__(self):
        return f"Country({self.name!r}, gdp={self.gdp:.3g})"

    # -- derived values -------------------------------------------------

    @property
    def debt_to_gdp(self) -> float:
        return safe_divide(self.government_debt, self.gdp) * 100

    @property
    def gdp_per_capita(self) -> float:
        return safe_divide(self.gdp, self.population)

    @property
    def political_alignment(self) -> float:
        return GOVERNMENT_TYPES.get(self.government_type, {}).get("alignment", 0.5)

    @property
    def trade_priority(self) -> float:
        return self.ai_traits.economic_focus

    @property
    def protectionism(self) -> float:
        return self.ai_traits.aggression * 0.8 + (1 - self.ai_traits.innovation) * 0.2

    @property
    def innovation_focus(self) -> float:
        return self.ai_traits.innovation

    @property
    def economic_need(self) -> float:
        """How badly the economy needs a deal: growth shortfall and inflation miss, in [0, 1]."""
        shortfall = max(0.0, self.gdp_growth_target - self.gdp_growth)
        miss = abs(self.inflation - self.inflation_target)
        return clamp(shortfall * 5 + miss * 2, 0.0, 1.0)

    def economic_state(self) -> EconomicState:
        return EconomicState(
            gdp=self.gdp,
            potential_gdp=self.potential_gdp,
            gdp_growth=self.gdp_growth,
            inflation=self.inflation,
            unemployment=self.unemployment,
            debt_to_gdp=self.debt_to_gdp,
            trade_balance=self.trade_balance,
            bank_health_index=self.bank_health_index,
            currency_value=self.currency_value,
        )

    # -- mutation helpers -------------------------------------------------

    def adjust_relation(self, other: str, delta: float):
        current = self.relationships.get(other, 0.5)
        self.relationships[other] = clamp(current + delta, 0.0, 1.0)

    def record_action(self, kind: str, month: int, /, **detail):
        self.memory.actions.append({"type": kind, "month": month, **detail})

    # -- loading / persistence -----------------------------------------

    @classmethod
    def from_record(cls, record: Dict[str, Any], ai_traits: Optional[AITraits] = None,
                    is_player: bool = False) -> "Country":
        """Build a country from a data-source record, rejecting malformed input."""
        if not isinstance(record, dict):
            raise LoadError(f"Country record must be a mapping, got {type(record).__name__}")
        missing = [k for k in REQUIRED_COUNTRY_KEYS if k not in record]
        if missing:
            raise LoadError(f"Country record {record.get('name', '?')!r} missing keys: {missing}")
        name = record["name"]
        if not isinstance(name, str) or not name:
            raise LoadError("Country name must be a non-empty string")
        if not _is_number(record["gdp"]) or record["gdp"] <= 0:
            raise LoadError(f"Country {name!r} has invalid gdp: {record['gdp']!r}")
        sectors = record["sectors"]
        if not isinstance(sectors, dict) or not all(_is_number(v) for v in sectors.values()):
            raise LoadError(f"Country {name!r} has invalid sectors")
        population = record.get("population", 50e6)
        if not _is_number(population) or population <= 0:
            raise LoadError(f"Country {name!r} has invalid population: {population!r}")

        country = cls(
            name=name,
            gdp=float(record["gdp"]),
            sectors={str(k): float(v) for k, v in sectors.items()},
            government_type=record.get("government_type", "Democracy"),
            population=float(population),
            ai_traits=ai_traits,
            is_player=is_player,
        )

        # Optional attributes override the defaults when present
        for key in ("land_mass", "accessible_terrain", "government_debt", "inflation_target",
                    "fiscal_space", "inflation", "unemployment", "interest_rate",
                    "bank_health_index", "foreign_investment", "stability",
                    "environmental_index", "military_strength", "military_budget",
                    "research_investment", "infrastructure", "resource_value",
                    "gdp_growth", "gdp_growth_target"):
            if key in record:
                if not _is_number(record[key]):
                    raise LoadError(f"Country {name!r} field {key!r} must be numeric")
                setattr(country, key, float(record[key]))
        if "nuclear" in record:
            country.nuclear = bool(record["nuclear"])
        if "terrain" in record:
            country.terrain = str(record["terrain"])
        for key in ("borders", "imports", "exports"):
            if key in record:
                if not isinstance(record[key], (list, tuple)):
                    raise LoadError(f"Country {name!r} field {key!r} must be a list")
                setattr(country, key, [str(x) for x in record[key]])
        if "historical_relations" in record:
            history = record["historical_relations"]
            if not isinstance(history, dict) or not all(_is_number(v) for v in history.values()):
                raise LoadError(f"Country {name!r} has invalid historical_relations")
            country.historical_relations = {str(k): float(v) for k, v in history.items()}
        return country

    def to_dict(self) -> Dict[str, Any]:
        data = {k: v for k, v in self.__dict__.items() if k not in ("ai_traits", "memory", "trade_agreements")}
        data["sectors"] = dict(self.sectors)
        data["borders"] = list(self.borders)
        data["imports"] = list(self.imports)
        data["exports"] = list(self.exports)
        data["relationships"] = dict(self.relationships)
        data["strategic_goals"] = list(self.strategic_goals)
        data["tariffs"] = dict(self.tariffs)
        data["historical_relations"] = dict(self.historical_relations)
        data["ai_traits"] = asdict(self.ai_traits)
        data["memory"] = {k: [dict(e) for e in v] for k, v in asdict(self.memory).items()}
        data["trade_agreements"] = sorted(self.trade_agreements)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Country":
        country = cls(
            name=data["name"],
            gdp=data["gdp"],
            sectors=data["sectors"],
            government_type=data.get("government_type", "Democracy"),
            population=data.get("population", 50e6),
            ai_traits=AITraits(**data["ai_traits"]),
            is_player=data.get("is_player", False),
        )
        for key, value in data.items():
            if key in ("ai_traits", "memory", "trade_agreements"):
                continue
            if isinstance(value, dict):
                value = dict(value)
            elif isinstance(value, list):
                value = list(value)
            setattr(country, key, value)
        country.memory = CountryMemory(**{k: [dict(e) for e in v] for k, v in data["memory"].items()})
        country.trade_agreements = set(data.get("trade_agreements", []))
        return country
