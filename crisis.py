"""
Crisis detection, response generation and outcome simulation.

Detection is threshold based and runs every month for every AI country.
Responses are fixed measure tables per crisis type, tuned by AI traits.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from config import SimulationConfig
from country import Country, EconomicState
from game_math import clamp, safe_divide

logger = logging.getLogger(__name__)

# Per triggered economic sub-condition
CONDITION_WEIGHT = 1 / 3
OVERSHOOT_WEIGHT = 1 / 6


class CrisisType(Enum):
    ECONOMIC = "economic"
    POLITICAL = "political"
    MILITARY = "military"
    ENVIRONMENTAL = "environmental"


@dataclass
class Crisis:
    type: CrisisType
    severity: float


@dataclass
class CrisisResponse:
    type: CrisisType
    measures: List[str] = field(default_factory=list)
    effectiveness_coefficient: float = 0.8
    economic_impact: float = 0.0
    subtype: Optional[str] = None


@dataclass
class CrisisOutcome:
    contained: bool = False
    severity_reduction: float = 0.0
    new_problems: List[str] = field(default_factory=list)


# measures, effectiveness coefficient, economic impact
ECONOMIC_RESPONSES = {
    "hyperinflation": (["monetary_stabilization", "fiscal_austerity", "currency_peg"], 0.65, -0.15),
    "debt_crisis": (["debt_restructuring", "imf_bailout", "privatization"], 0.55, -0.25),
    "banking_crisis": (["bank_recapitalization", "deposit_insurance", "liquidity_injection"], 0.75, -0.1),
}


class CrisisModel:
    def __init__(self, config: SimulationConfig):
        self.config = config
        self.crisis_history: Dict[str, Dict[CrisisType, List[float]]] = {}
        self.active_crises: Set[Tuple[str, CrisisType]] = set()

    def initialize_crisis_system(self, countries):
        for country in countries:
            self.crisis_history[country.name] = {t: [] for t in CrisisType}

    # -- detection ---------------------------------------------------------

    def detect_crises(self, country: Country, economic_state: EconomicState,
                      relations: Optional[Dict[str, float]] = None) -> List[Crisis]:
        """Every crisis the country is in right now, most severe first."""
        cfg = self.config
        relations = relations or {}
        crises = []

        economic = self.economic_crisis_severity(economic_state)
        if economic > 0:
            crises.append(Crisis(CrisisType.ECONOMIC, economic))

        stability = country.stability / 100
        if stability < cfg.political_stability_floor:
            crises.append(Crisis(CrisisType.POLITICAL, 1 - stability))

        threat = relations.get("military_threat_level", 0.0)
        if threat > cfg.military_threat_ceiling:
            crises.append(Crisis(CrisisType.MILITARY, threat))

        if country.environmental_index < cfg.environmental_floor:
            crises.append(Crisis(CrisisType.ENVIRONMENTAL,
                                 (cfg.environmental_floor - country.environmental_index) / cfg.environmental_floor))

        crises.sort(key=lambda c: -c.severity)

        history = self.crisis_history.setdefault(country.name, {t: [] for t in CrisisType})
        detected = {c.type for c in crises}
        for crisis in crises:
            history[crisis.type].append(crisis.severity)
        for kind in CrisisType:
            if kind in detected:
                self.active_crises.add((country.name, kind))
            else:
                self.active_crises.discard((country.name, kind))
        return crises

    def economic_crisis_severity(self, state: EconomicState) -> float:
        """
        0 when no sub-condition holds. Each triggered condition (recession, hyperinflation,
        debt overhang, weak banks) adds a third plus a sixth of its relative overshoot,
        so any three triggered conditions saturate the severity at 1.
        """
        cfg = self.config
        overshoots = []
        if state.gdp_growth < cfg.recession_growth:
            overshoots.append(safe_divide(cfg.recession_growth - state.gdp_growth, abs(cfg.recession_growth)))
        if state.inflation >= cfg.hyperinflation_rate:
            overshoots.append(safe_divide(state.inflation - cfg.hyperinflation_rate, cfg.hyperinflation_rate))
        if state.debt_to_gdp > cfg.debt_crisis_ratio:
            overshoots.append(safe_divide(state.debt_to_gdp - cfg.debt_crisis_ratio, cfg.debt_crisis_ratio))
        if state.bank_health_index < cfg.bank_health_floor:
            overshoots.append(safe_divide(cfg.bank_health_floor - state.bank_health_index, cfg.bank_health_floor))
        severity = sum(CONDITION_WEIGHT + OVERSHOOT_WEIGHT * min(o, 1.0) for o in overshoots)
        return clamp(severity, 0.0, 1.0)

    @staticmethod
    def identify_economic_crisis_type(country: Country) -> str:
        indicators = {
            "hyperinflation": country.inflation,
            "debt_crisis": safe_divide(country.government_debt, country.gdp),
            "banking_crisis": 1 - country.bank_health_index,
        }
        return max(indicators, key=indicators.get)

    # -- responses ---------------------------------------------------------

    def generate_crisis_response(self, country: Country, crisis: Crisis, threat_level: float = 0.0) -> CrisisResponse:
        if crisis.type == CrisisType.ECONOMIC:
            return self._economic_response(country)
        elif crisis.type == CrisisType.MILITARY:
            return self._military_response(country, threat_level)
        elif crisis.type == CrisisType.POLITICAL:
            return self._political_response(country)
        elif crisis.type == CrisisType.ENVIRONMENTAL:
            return self._environmental_response(country)
        return CrisisResponse(type=crisis.type)

    def _economic_response(self, country: Country) -> CrisisResponse:
        subtype = self.identify_economic_crisis_type(country)
        measures, coefficient, impact = ECONOMIC_RESPONSES[subtype]
        response = CrisisResponse(CrisisType.ECONOMIC, list(measures), coefficient, impact, subtype)
        if country.ai_traits.risk_appetite < 0.4:
            response.measures.append("foreign_aid_request")
            response.economic_impact *= 0.8
        return response

    @staticmethod
    def _military_response(country: Country, threat_level: float) -> CrisisResponse:
        response = CrisisResponse(CrisisType.MILITARY, effectiveness_coefficient=0.9, economic_impact=-0.3)
        if threat_level > 0.8:
            response.measures = ["mobilization", "alliance_activation", "strategic_defense_preparation"]
            if country.nuclear:
                response.measures.append("deterrence_posturing")
        else:
            response.measures = ["diplomatic_engagement", "border_fortification", "intelligence_surge"]

        if country.ai_traits.aggression > 0.6:
            response.measures.append("preemptive_strike")
            response.effectiveness_coefficient *= 1.2
            response.economic_impact *= 1.5
        return response

    @staticmethod
    def _political_response(country: Country) -> CrisisResponse:
        response = CrisisResponse(
            CrisisType.POLITICAL,
            measures=["cabinet_reshuffle", "public_dialogue", "emergency_decrees"],
            effectiveness_coefficient=0.6,
            economic_impact=-0.05,
        )
        if country.ai_traits.risk_appetite > 0.6:
            response.measures.append("snap_election")
            response.effectiveness_coefficient *= 1.1
        return response

    @staticmethod
    def _environmental_response(country: Country) -> CrisisResponse:
        response = CrisisResponse(
            CrisisType.ENVIRONMENTAL,
            measures=["emission_controls", "green_investment", "disaster_relief"],
            effectiveness_coefficient=0.7,
            economic_impact=-0.1,
        )
        if country.ai_traits.innovation > 0.6:
            response.measures.append("clean_technology_program")
            response.economic_impact *= 0.5
        return response

    # -- outcomes ----------------------------------------------------------

    @staticmethod
    def calculate_response_effectiveness(response: CrisisResponse, country: Country) -> float:
        traits = country.ai_traits
        effectiveness = 1.0
        if response.type == CrisisType.ECONOMIC:
            effectiveness *= traits.economic_focus * 1.2
        elif response.type == CrisisType.MILITARY:
            effectiveness *= traits.aggression * 0.9
        elif response.type == CrisisType.POLITICAL:
            effectiveness *= 1 - traits.aggression * 0.5
        elif response.type == CrisisType.ENVIRONMENTAL:
            effectiveness *= 0.5 + traits.innovation * 0.5
        effectiveness *= country.stability / 100
        return clamp(effectiveness, 0.1, 1.0)

    def simulate_crisis_outcome(self, response: CrisisResponse, country: Country,
                                original_stability: float) -> CrisisOutcome:
        """Apply a response to the country and report whether it contained the crisis."""
        cfg = self.config
        effectiveness = self.calculate_response_effectiveness(response, country)
        outcome = CrisisOutcome()
        outcome.severity_reduction = clamp(effectiveness * response.effectiveness_coefficient,
                                           0.0, cfg.max_severity_reduction)
        outcome.contained = outcome.severity_reduction > cfg.containment_threshold

        spillover = abs(response.economic_impact) * (1 - country.ai_traits.economic_focus)
        if spillover > cfg.secondary_recession_threshold:
            outcome.new_problems.append("secondary_recession")

        if outcome.contained:
            country.economic_stability = min(original_stability * 1.1, 1.0)
            self.active_crises.discard((country.name, response.type))
        else:
            country.economic_stability *= 0.8

        if "secondary_recession" in outcome.new_problems:
            country.gdp_growth -= 0.03
            country.unemployment = clamp(country.unemployment + 0.05, *cfg.unemployment_bounds)
            logger.warning(f"SECONDARY RECESSION: {country.name} response to {response.type.value} "
                           f"crisis drags on growth")
        return outcome

    def get_active_crises(self, name: str) -> List[CrisisType]:
        return sorted((kind for n, kind in self.active_crises if n == name), key=lambda k: k.value)

    def snapshot(self) -> Dict:
        return {
            "history": {name: {kind.value: list(values) for kind, values in by_type.items()}
                        for name, by_type in self.crisis_history.items()},
            "active": sorted([name, kind.value] for name, kind in self.active_crises),
        }

    def restore(self, data: Dict):
        history = {
            name: {CrisisType(kind): list(values) for kind, values in by_type.items()}
            for name, by_type in data["history"].items()
        }
        active = {(name, CrisisType(kind)) for name, kind in data["active"]}
        self.crisis_history = history
        self.active_crises = active
