"""
National statistics: economic, social, health, education and environmental
indicator groups with derived headline figures and bounded historical series.
"""

import copy
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from errors import LoadError, StateValidationError
from game_math import safe_divide

logger = logging.getLogger(__name__)

INDICATOR_GROUPS = ("economic", "social", "health", "education", "environmental")

SERIES = (
    "gdp", "unemployment_rate", "inflation_rate", "literacy_rate",
    "life_expectancy", "poverty_rate", "carbon_footprint",
)


class StatisticsPolicyType(Enum):
    TAX_INCREASE = "taxIncrease"
    TAX_DECREASE = "taxDecrease"
    INFRASTRUCTURE_SPENDING = "infrastructureSpending"
    SOCIAL_SPENDING = "socialSpending"
    EDUCATION_FUNDING = "educationFunding"
    HEALTHCARE_FUNDING = "healthcareFunding"
    HOUSING_SUBSIDIES = "housingSubsidies"
    CARBON_TAX = "carbonTax"
    RENEWABLE_ENERGY_FUNDING = "renewableEnergyFunding"


@dataclass
class StatisticsPolicy:
    type: StatisticsPolicyType
    amount: float


class StatisticsManager:
    """Holds the five indicator groups and derives the headline rates (in percent)."""

    def __init__(self, history_length: int = 120):
        self.history_length = history_length
        self.economic: Dict[str, float] = {}
        self.social: Dict[str, float] = {}
        self.health: Dict[str, float] = {}
        self.education: Dict[str, float] = {}
        self.environmental: Dict[str, float] = {}
        self.history: Dict[str, deque] = {name: deque(maxlen=history_length) for name in SERIES}

    def initialize(self, stats: Dict[str, Dict[str, float]]):
        """Load all five groups at once; a missing group is a load error."""
        missing = [g for g in INDICATOR_GROUPS if not isinstance(stats.get(g), dict)]
        if missing:
            raise LoadError(f"Invalid statistics data structure, missing groups: {missing}")
        for group in INDICATOR_GROUPS:
            setattr(self, group, dict(stats[group]))

    # -- updates --------------------------------------------------------

    def update_economic_indicators(self, new: Dict[str, float]):
        self.economic.update(new)
        self.history["gdp"].append(self.calculate_gdp())
        self.history["unemployment_rate"].append(self.calculate_unemployment_rate())
        self.history["inflation_rate"].append(self.calculate_inflation_rate())

    def update_social_indicators(self, new: Dict[str, float]):
        self.social.update(new)
        self.history["poverty_rate"].append(self.calculate_poverty_rate())

    def update_health_indicators(self, new: Dict[str, float]):
        self.health.update(new)
        self.history["life_expectancy"].append(self.calculate_life_expectancy())

    def update_education_indicators(self, new: Dict[str, float]):
        self.education.update(new)
        self.history["literacy_rate"].append(self.calculate_literacy_rate())

    def update_environmental_indicators(self, new: Dict[str, float]):
        self.environmental.update(new)
        self.history["carbon_footprint"].append(self.calculate_carbon_footprint())

    # -- derived figures ------------------------------------------------

    def calculate_gdp(self) -> float:
        e = self.economic
        return (e.get("consumption", 0.0) + e.get("investment", 0.0)
                + e.get("government_spending", 0.0) + e.get("net_exports", 0.0))

    def calculate_unemployment_rate(self) -> float:
        return safe_divide(self.economic.get("unemployed", 0.0), self.economic.get("labor_force", 0.0)) * 100

    def calculate_inflation_rate(self) -> float:
        cpi = self.economic.get("consumer_price_index", 0.0)
        prev = self.economic.get("previous_consumer_price_index", 0.0)
        return safe_divide(cpi - prev, prev) * 100

    def calculate_literacy_rate(self) -> float:
        return safe_divide(self.education.get("literate_population", 0.0),
                           self.education.get("total_population", 0.0)) * 100

    def calculate_life_expectancy(self) -> float:
        return self.health.get("life_expectancy_at_birth", 0.0)

    def calculate_poverty_rate(self) -> float:
        return safe_divide(self.social.get("population_below_poverty_line", 0.0),
                           self.social.get("total_population", 0.0)) * 100

    def calculate_carbon_footprint(self) -> float:
        return self.environmental.get("total_emissions", 0.0)

    def get_summary(self) -> Dict[str, float]:
        return {
            "gdp": self.calculate_gdp(),
            "unemployment_rate": self.calculate_unemployment_rate(),
            "inflation_rate": self.calculate_inflation_rate(),
            "literacy_rate": self.calculate_literacy_rate(),
            "life_expectancy": self.calculate_life_expectancy(),
            "poverty_rate": self.calculate_poverty_rate(),
            "carbon_footprint": self.calculate_carbon_footprint(),
        }

    def get_detailed_economic_indicators(self) -> Dict[str, float]:
        return {**self.economic, "gdp": self.calculate_gdp(),
                "unemployment_rate": self.calculate_unemployment_rate(),
                "inflation_rate": self.calculate_inflation_rate()}

    def get_detailed_social_indicators(self) -> Dict[str, float]:
        return {**self.social, "poverty_rate": self.calculate_poverty_rate()}

    def get_detailed_health_indicators(self) -> Dict[str, float]:
        return {**self.health, "life_expectancy": self.calculate_life_expectancy()}

    def get_detailed_education_indicators(self) -> Dict[str, float]:
        return {**self.education, "literacy_rate": self.calculate_literacy_rate()}

    def get_detailed_environmental_indicators(self) -> Dict[str, float]:
        return {**self.environmental, "carbon_footprint": self.calculate_carbon_footprint()}

    # -- policy impact --------------------------------------------------

    def simulate_policy_impact(self, policy: StatisticsPolicy):
        """Apply a one-off policy shock to the raw indicators. Unknown types change nothing."""
        e, s, h, ed, env = self.economic, self.social, self.health, self.education, self.environmental
        amount = policy.amount
        kind = policy.type

        if kind == StatisticsPolicyType.TAX_INCREASE:
            e["government_spending"] = e.get("government_spending", 0.0) + amount
            e["consumption"] = e.get("consumption", 0.0) - amount * 0.5
        elif kind == StatisticsPolicyType.TAX_DECREASE:
            e["government_spending"] = e.get("government_spending", 0.0) - amount
            e["consumption"] = e.get("consumption", 0.0) + amount * 0.5
        elif kind == StatisticsPolicyType.INFRASTRUCTURE_SPENDING:
            e["government_spending"] = e.get("government_spending", 0.0) + amount
            e["investment"] = e.get("investment", 0.0) + amount * 0.3
        elif kind == StatisticsPolicyType.SOCIAL_SPENDING:
            e["government_spending"] = e.get("government_spending", 0.0) + amount
            s["population_below_poverty_line"] = max(0.0, s.get("population_below_poverty_line", 0.0) - amount * 1000)
        elif kind == StatisticsPolicyType.EDUCATION_FUNDING:
            ed["literate_population"] = min(
                ed.get("total_population", 0.0), ed.get("literate_population", 0.0) + amount * 1000)
        elif kind == StatisticsPolicyType.HEALTHCARE_FUNDING:
            h["life_expectancy_at_birth"] = h.get("life_expectancy_at_birth", 0.0) + amount * 0.1
        elif kind == StatisticsPolicyType.HOUSING_SUBSIDIES:
            s["population_below_poverty_line"] = max(0.0, s.get("population_below_poverty_line", 0.0) - amount * 500)
        elif kind == StatisticsPolicyType.CARBON_TAX:
            env["total_emissions"] = max(0.0, env.get("total_emissions", 0.0) - amount * 100000)
        elif kind == StatisticsPolicyType.RENEWABLE_ENERGY_FUNDING:
            env["total_emissions"] = max(0.0, env.get("total_emissions", 0.0) - amount * 50000)
        else:
            logger.debug(f"Ignoring unknown statistics policy {kind!r}")

    # -- persistence ----------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            **{group: dict(getattr(self, group)) for group in INDICATOR_GROUPS},
            "history": {name: list(values) for name, values in self.history.items()},
        }

    def restore(self, data: Dict[str, Any]):
        missing = [k for k in (*INDICATOR_GROUPS, "history") if k not in data]
        if missing:
            raise StateValidationError(f"Statistics snapshot missing keys: {missing}")
        data = copy.deepcopy(data)
        for group in INDICATOR_GROUPS:
            setattr(self, group, dict(data[group]))
        self.history = {
            name: deque(data["history"].get(name, []), maxlen=self.history_length) for name in SERIES
        }

    def series(self, name: str) -> List[float]:
        return list(self.history[name])
