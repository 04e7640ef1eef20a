"""
Economic strategy functions for AI-controlled countries: tariffs, monetary and
fiscal responses, needs assessment, crisis packages, corporate competition,
retaliation and the gravity-style trade model.

Apart from a bounded cache of recent decisions the model keeps no state; every
decision is a function of the country and the economic state handed in.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from config import SimulationConfig, SECTOR_ELASTICITIES, DEFAULT_SECTOR_ELASTICITY
from country import AITraits, Country, EconomicState
from game_math import clamp, safe_divide

logger = logging.getLogger(__name__)


class EconomicCrisisKind(Enum):
    HYPERINFLATION = "hyperinflation"
    DEBT_DEFAULT = "debt_default"
    CURRENCY_CRISIS = "currency_crisis"


class MeasureType(Enum):
    TARIFF = "tariff"
    SANCTION = "sanction"
    TRADE_DIVERSION = "trade_diversion"


@dataclass
class TariffDecision:
    sector: str
    rate: float


@dataclass
class PolicyChanges:
    """Target policy settings: interest rate in percent, the rest as shares or amounts."""
    tax_rate: float = 0.0
    interest_rate: float = 0.0
    government_spending: float = 0.0
    money_supply: float = 0.0


@dataclass
class Needs:
    economic: float = 0.0
    military: float = 0.0
    diplomatic: float = 0.0


@dataclass
class CrisisPackage:
    kind: EconomicCrisisKind
    monetary: Dict[str, float] = field(default_factory=dict)
    fiscal: Dict[str, float] = field(default_factory=dict)
    structural: List[str] = field(default_factory=list)
    capital_controls: bool = False


@dataclass
class CompetitiveStrategy:
    price_adjustment: float = 0.0
    quality_investment: float = 0.0
    marketing_boost: float = 0.0
    rd_focus: float = 0.0


@dataclass
class EconomicMeasure:
    type: MeasureType
    target: str
    sector: Optional[str] = None
    value: float = 0.0


@dataclass
class TradeOutcome:
    exports: float = 0.0
    imports: float = 0.0
    tariff_revenue: float = 0.0
    by_partner: Dict[str, float] = field(default_factory=dict)

    @property
    def balance(self) -> float:
        return self.exports - self.imports


def sector_elasticity(sector: str) -> float:
    return SECTOR_ELASTICITIES.get(sector, DEFAULT_SECTOR_ELASTICITY)


def _weighted_rate(rates: Dict[str, float], weights: Dict[str, float]) -> float:
    """Average tariff weighted by sector shares; unweighted mean when no sector overlaps."""
    total_weight = sum(weights.get(s, 0.0) for s in rates)
    if total_weight > 0:
        return sum(rate * weights.get(s, 0.0) for s, rate in rates.items()) / total_weight
    return safe_divide(sum(rates.values()), len(rates))


class EconomicRelationsModel:
    """Strategy functions used by the AI manager for every AI country."""

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.base_competitiveness = 0.5
        self.historical_data: Dict[str, deque] = {}

    def _remember(self, country: str, kind: str, decision):
        self.historical_data.setdefault(country, deque(maxlen=self.config.decision_log_length)).append(
            (kind, decision))

    # -- trade policy --------------------------------------------------

    def strategic_sectors(self, country: Country) -> List[str]:
        return sorted(s for s, share in country.sectors.items()
                      if share >= self.config.strategic_sector_share)

    def calculate_tariffs(self, country: Country, economic_state: EconomicState,
                          player_tariffs: Dict[str, float]) -> List[TariffDecision]:
        """
        Tariff per strategic sector from strategic trade theory.

        ``player_tariffs`` maps sector -> rate the player currently levies on this
        country; sectors hit hardest (share x elasticity) become most vulnerable.
        """
        traits = country.ai_traits
        protectionism = traits.aggression * 0.8 + (1 - traits.innovation) * 0.2
        trade_balance_impact = 1 - math.tanh(economic_state.trade_balance / 1e9)

        decisions = []
        for sector in self.strategic_sectors(country):
            vulnerability = player_tariffs.get(sector, 0.0) * country.sectors[sector] * sector_elasticity(sector)
            rate = clamp(
                (protectionism * 0.4 + vulnerability * 0.3 + trade_balance_impact * 0.3) * self.config.tariff_scale,
                0.0,
                self.config.max_tariff,
            )
            decisions.append(TariffDecision(sector, rate))
        self._remember(country.name, "tariffs", decisions)
        return decisions

    def determine_policy_changes(self, country: Country, economic_state: EconomicState) -> PolicyChanges:
        """Modified Taylor rule plus Keynesian stimulus and a debt brake."""
        changes = PolicyChanges()
        inflation_gap = (economic_state.inflation - country.inflation_target) * 100
        output_gap = economic_state.output_gap * 100

        # Zero lower bound on the nominal rate
        changes.interest_rate = max(0.0, 1.5 * inflation_gap + 0.5 * output_gap + 1.0)

        if output_gap < -2.0:
            changes.government_spending = min(0.05 * economic_state.gdp, country.fiscal_space * 0.8)
            changes.tax_rate = -0.02 * country.ai_traits.risk_appetite

        if economic_state.debt_to_gdp > 90:
            changes.government_spending *= 0.5
            changes.tax_rate += 0.01 * (economic_state.debt_to_gdp / 90)

        self._remember(country.name, "policy", changes)
        return changes

    def analyze_needs(self, country: Country, global_economy: EconomicState,
                      neighbors: Sequence[Country] = (),
                      alliances: Sequence[Tuple[float, float]] = ()) -> Needs:
        """
        Need vector in [0, 1]^3.

        ``alliances`` holds (alliance strength, trust in partner) pairs.
        """
        traits = country.ai_traits

        growth_shortfall = max(0.0, country.gdp_growth_target - global_economy.gdp_growth)
        inflation_risk = abs(global_economy.inflation - country.inflation_target)
        economic = clamp((growth_shortfall * 0.7 + inflation_risk * 0.3) * 10, 0.0, 1.0)
        economic *= 0.5 + traits.economic_focus * 0.5

        military = clamp(self.military_pressure(country, neighbors) * traits.aggression, 0.0, 1.0)

        alliance_strength = clamp(sum(strength * trust for strength, trust in alliances), 0.0, 1.0)
        diplomatic = (1 - alliance_strength) * (1 - traits.aggression)

        return Needs(economic=economic, military=military, diplomatic=diplomatic)

    @staticmethod
    def military_pressure(country: Country, neighbors: Sequence[Country]) -> float:
        """Average excess strength of stronger neighbours."""
        if not neighbors:
            return 0.0
        pressure = 0.0
        for neighbor in neighbors:
            ratio = safe_divide(neighbor.military_strength, country.military_strength)
            pressure += ratio - 1 if ratio > 1 else 0.0
        return pressure / len(neighbors)

    # -- crises --------------------------------------------------------

    def generate_crisis_response(self, country: Country, kind: EconomicCrisisKind) -> CrisisPackage:
        package = CrisisPackage(kind=kind)

        if kind == EconomicCrisisKind.HYPERINFLATION:
            package.monetary = {"interest_rate": 5.0, "money_supply": -0.3}
            package.fiscal = {"spending_cut": 0.15, "tax_increase": 0.03}
        elif kind == EconomicCrisisKind.DEBT_DEFAULT:
            package.structural.extend(["pension_reform", "privatization", "labor_market_flexibility"])
            package.monetary = {"interest_rate": 3.0}
        elif kind == EconomicCrisisKind.CURRENCY_CRISIS:
            package.monetary = {"interest_rate": 7.0, "foreign_reserves": -0.4}
            package.capital_controls = True

        return self.apply_trait_modifiers(package, country.ai_traits)

    @staticmethod
    def apply_trait_modifiers(package: CrisisPackage, traits: AITraits) -> CrisisPackage:
        # Cautious governments tighten harder but cut spending less
        if traits.risk_appetite < 0.3:
            if "interest_rate" in package.monetary:
                package.monetary["interest_rate"] *= 1.2
            if "spending_cut" in package.fiscal:
                package.fiscal["spending_cut"] *= 0.8
        if traits.innovation > 0.7:
            package.structural.append("digital_transformation")
        return package

    # -- corporate competition -----------------------------------------

    def determine_competitive_action(self, company, competitors: Sequence, traits: AITraits) -> CompetitiveStrategy:
        total_share = sum(c.market_share for c in competitors) + company.market_share
        market_share = safe_divide(company.market_share, total_share)

        strategy = CompetitiveStrategy()
        if market_share > 0.4:
            strategy.price_adjustment = -0.02 * traits.aggression
            strategy.quality_investment = 0.1 * traits.innovation
        else:
            strategy.price_adjustment = -0.05 * traits.risk_appetite
            strategy.marketing_boost = 0.15 * (1 - traits.innovation)

        strategy.rd_focus = min(traits.innovation * 0.2 + (1 - self.base_competitiveness) * 0.1, 0.3)
        return strategy

    # -- retaliation and trade flows -----------------------------------

    def generate_retaliatory_measures(self, country: Country, target: str, sector: str,
                                      rate: float) -> List[EconomicMeasure]:
        traits = country.ai_traits
        measures = [EconomicMeasure(
            type=MeasureType.TARIFF,
            target=target,
            sector=sector,
            value=clamp(rate * (0.5 + traits.aggression * 0.5), 0.0, self.config.max_tariff),
        )]
        if traits.aggression > 0.6:
            measures.append(EconomicMeasure(MeasureType.SANCTION, target, sector, traits.aggression))
        if traits.economic_focus > 0.6:
            measures.append(EconomicMeasure(MeasureType.TRADE_DIVERSION, target, sector, traits.economic_focus * 0.1))
        self._remember(country.name, "retaliation", measures)
        return measures

    def calculate_global_trade_impacts(
        self,
        player: Country,
        partners: Sequence[Country],
        player_tariffs: Dict[str, Dict[str, float]],
        currency_value: float = 1.0,
        competitiveness: Optional[Dict[str, float]] = None,
        market_shares: Optional[Dict[str, float]] = None,
        export_scale: float = 1.0,
        import_scale: float = 1.0,
    ) -> TradeOutcome:
        """
        Bilateral flows between the player and every partner (gravity model).

        Flows are annual. A stronger currency makes exports dearer and imports
        cheaper; agreements raise both directions; tariffs on either side
        shrink the flow they apply to.
        """
        competitiveness = competitiveness or {}
        market_shares = market_shares or {}
        world_gdp = player.gdp + sum(p.gdp for p in partners)
        currency_value = max(currency_value, self.config.currency_min)

        total_share = sum(player.sectors.values())
        export_strength = 0.5 + safe_divide(
            sum(share * competitiveness.get(s, 0.0) for s, share in player.sectors.items()), total_share)

        outcome = TradeOutcome()
        for partner in partners:
            base = self.config.trade_openness * safe_divide(player.gdp * partner.gdp, world_gdp)
            bonus = self.config.trade_agreement_bonus if partner.name in player.trade_agreements else 1.0

            partner_tariff = _weighted_rate(partner.tariffs, player.sectors)
            own_tariff = _weighted_rate(player_tariffs.get(partner.name, {}), partner.sectors)
            import_strength = 0.5 + market_shares.get(partner.name, 0.0)

            exports = base * export_scale * export_strength * (1 - partner_tariff) * bonus / currency_value
            imports = base * import_scale * import_strength * (1 - own_tariff) * bonus * currency_value

            outcome.exports += exports
            outcome.imports += imports
            outcome.tariff_revenue += imports * own_tariff
            outcome.by_partner[partner.name] = exports - imports
        return outcome
