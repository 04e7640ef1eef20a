"""
Per-month orchestration of every AI-controlled country.

Countries are processed in name order so runs are reproducible for a given seed.
Each phase of each country runs in isolation: a failing phase is logged and
skipped, and the rest of the month carries on.
"""

import logging
from collections import deque
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from actions import MilitaryMove, PlayerAction, TariffChange, TradeAgreementProposal
from companies import CompanyManager
from config import SimulationConfig
from country import AITraits, Country, EconomicState
from crisis import CrisisModel, CrisisType
from diplomacy import CrisisResolution, DiplomaticAI, DiplomaticCrisis, DiplomaticCrisisType, InteractionType, \
    TradeTerms
from economic_relations import EconomicCrisisKind, EconomicMeasure, EconomicRelationsModel, MeasureType, \
    TradeOutcome
from errors import StateValidationError
from events import EventBus
from game_math import clamp, lerp, safe_divide
from military import BattleResult, MilitaryStrategyEngine

logger = logging.getLogger(__name__)

GOALS = ("economic", "military", "diplomatic")

CRISIS_PACKAGES = {
    "hyperinflation": EconomicCrisisKind.HYPERINFLATION,
    "debt_crisis": EconomicCrisisKind.DEBT_DEFAULT,
}


class AIManager:
    """Owns the AI countries and drives their economic, diplomatic and military decisions."""

    def __init__(self, config: SimulationConfig, rng: np.random.Generator,
                 companies: CompanyManager, events: EventBus):
        self.config = config
        self.rng = rng
        self.companies = companies
        self.events = events

        self.economic_model = EconomicRelationsModel(config)
        self.diplomacy = DiplomaticAI(config, rng)
        self.military = MilitaryStrategyEngine(config, rng)
        self.crisis_model = CrisisModel(config)

        self.countries: Dict[str, Country] = {}
        self.player: Optional[Country] = None
        self.trade_history: deque = deque(maxlen=config.history_length)
        self.crisis_states: set = set()
        self.month = 0

    # -- setup -------------------------------------------------------------

    def initialize(self, countries: Sequence[Country], player: Country):
        self.player = player
        self.countries = {c.name: c for c in sorted(countries, key=lambda c: c.name) if c.name != player.name}

        # Traits are drawn once, in name order, and never change afterwards
        for country in self.countries.values():
            country.ai_traits = AITraits.generate(self.rng)

        self._initialize_relations_matrix()
        everyone = self.all_countries()
        self.diplomacy.initialize_diplomacy(everyone)
        self.military.initialize_military(everyone)
        self.crisis_model.initialize_crisis_system(self.countries.values())
        self._generate_initial_alliances()
        logger.info(f"AI manager ready: {len(self.countries)} AI countries, "
                    f"{len(self.diplomacy.active_treaties)} initial alliances")

    def all_countries(self) -> List[Country]:
        countries = list(self.countries.values())
        if self.player is not None:
            countries.append(self.player)
        return sorted(countries, key=lambda c: c.name)

    def _lookup(self, name: str) -> Optional[Country]:
        if self.player is not None and name == self.player.name:
            return self.player
        return self.countries.get(name)

    @staticmethod
    def calculate_initial_relation(a: Country, b: Country) -> float:
        economic_similarity = 1 - abs(a.sectors.get("technology", 0.0) - b.sectors.get("technology", 0.0))
        political_alignment = 1 - abs(a.ai_traits.diplomatic_bias - b.ai_traits.diplomatic_bias)
        return clamp((economic_similarity * 0.6 + political_alignment * 0.4) * 0.8 + 0.1, 0.0, 1.0)

    def _initialize_relations_matrix(self):
        for name, country in self.countries.items():
            country.relationships = {
                other: self.calculate_initial_relation(country, self.countries[other])
                for other in self.countries if other != name
            }
            country.relationships[self.player.name] = self.config.initial_player_relation
            self.player.relationships[name] = self.config.initial_player_relation

    def _generate_initial_alliances(self):
        names = sorted(self.countries)
        for i, a in enumerate(names):
            for b in names[i + 1:]:
                self.diplomacy.form_alliance(self.countries[a], self.countries[b])

    # -- monthly step ------------------------------------------------------

    def simulate_ai_countries(self, global_economy: EconomicState,
                              player_tariffs: Dict[str, Dict[str, float]], month: int = 0):
        self.month = month
        for name in sorted(self.countries):
            country = self.countries[name]
            self._run_phase(self._update_strategic_goals, country, global_economy)
            self._run_phase(self._make_economic_decisions, country, global_economy, player_tariffs)
            self._run_phase(self._process_diplomacy, country)
            if country.ai_traits.aggression > self.config.military_aggression_threshold:
                self._run_phase(self._consider_military_actions, country)
            self._run_phase(self._update_relationships, country)

        self.diplomacy.update_relationships()
        self.diplomacy.prune_negotiations()
        self._sync_player_relations()
        self._balance_global_power()
        self._handle_crisis_situations()

    def _run_phase(self, phase, country: Country, *args):
        try:
            phase(country, *args)
        except Exception:
            logger.exception(f"AI phase {phase.__name__} failed for {country.name}; skipped this month")

    def _update_strategic_goals(self, country: Country, global_economy: EconomicState):
        neighbors = [c for c in self.all_countries() if c.name in country.borders]
        alliances = [
            (alliance.strength, self.diplomacy.get_relationship(country.name, member).trust)
            for alliance in self.diplomacy.get_alliances(country.name)
            for member in alliance.members if member != country.name
        ]
        needs = self.economic_model.analyze_needs(country, global_economy, neighbors, alliances)
        country.strategic_goals = self.prioritize_goals(
            {"economic": needs.economic, "military": needs.military, "diplomatic": needs.diplomatic},
            country.ai_traits,
        )

    @staticmethod
    def prioritize_goals(needs: Dict[str, float], traits: AITraits) -> List[str]:
        weights = {
            "economic": traits.economic_focus * needs["economic"],
            "military": traits.aggression * needs["military"],
            "diplomatic": (1 - traits.aggression) * needs["diplomatic"],
        }
        ranked = sorted(GOALS, key=lambda goal: -weights[goal])
        return ranked[:2]

    # -- economy -----------------------------------------------------------

    def _make_economic_decisions(self, country: Country, global_economy: EconomicState,
                                 player_tariffs: Dict[str, Dict[str, float]]):
        state = country.economic_state()

        for decision in self.economic_model.calculate_tariffs(country, state, player_tariffs.get(country.name, {})):
            country.tariffs[decision.sector] = decision.rate

        for agreement in self.diplomacy.get_active_negotiations(country.name):
            if agreement.proposer == country.name:
                self.diplomacy.simulate_negotiation_round(agreement)

        self._implement_policy_changes(country, self.economic_model.determine_policy_changes(country, state))
        self._advance_economy(country, global_economy)
        self._compete_with_player_companies(country)

    def _implement_policy_changes(self, country: Country, changes):
        country.interest_rate = lerp(country.interest_rate, changes.interest_rate, 0.25)
        country.tax_rate = clamp(country.tax_rate + changes.tax_rate / 12, 0.05, 0.7)
        if changes.government_spending > 0:
            stimulus = changes.government_spending / 12
            country.government_spending += stimulus
            country.fiscal_space = max(0.0, country.fiscal_space - stimulus)

    def _advance_economy(self, country: Country, global_economy: EconomicState):
        """One month of a reduced-form macro model for a country the player does not run."""
        cfg = self.config
        fiscal_impulse = safe_divide(country.government_spending, country.gdp) - 0.2

        annual = clamp(cfg.trend_growth
                       + 0.3 * (global_economy.gdp_growth - cfg.trend_growth)
                       - 0.005 * (country.interest_rate - 3.0)
                       + 0.5 * fiscal_impulse,
                       *cfg.ai_growth_bounds)
        country.gdp *= (1 + annual) ** (1 / 12)
        country.potential_gdp *= (1 + cfg.trend_growth) ** (1 / 12)
        country.gdp_growth = annual

        country.inflation = clamp(
            cfg.inflation_persistence * country.inflation
            + (1 - cfg.inflation_persistence) * country.inflation_target
            + cfg.phillips_slope * (cfg.natural_unemployment - country.unemployment) / 12
            + country.money_supply_growth / 12,
            *cfg.inflation_bounds,
        )
        country.money_supply_growth *= 0.9
        country.unemployment = clamp(
            country.unemployment
            - cfg.okun_coefficient * (annual - cfg.trend_growth) / 12
            + cfg.unemployment_adjustment * (cfg.natural_unemployment - country.unemployment) / 12,
            *cfg.unemployment_bounds,
        )

        revenue = country.tax_rate * country.gdp * cfg.labor_share
        interest = country.government_debt * country.interest_rate / 100
        country.government_debt = max(0.0, country.government_debt
                                      + (country.government_spending + interest - revenue) / 12)
        country.bank_health_index = clamp(
            country.bank_health_index + 0.01 * (0.7 - country.bank_health_index) + min(0.0, annual) * 0.05,
            0.0, 1.0,
        )

    def _compete_with_player_companies(self, country: Country):
        player_sectors = {c.sector for c in self.companies.companies.values() if c.country == self.player.name}
        for sector in sorted(player_sectors & set(country.sectors)):
            rivals = self.companies.get_sector_companies(sector, self.player.name)
            for company in self.companies.get_sector_companies(sector, country.name):
                strategy = self.economic_model.determine_competitive_action(company, rivals, country.ai_traits)
                self.companies.apply_company_strategy(company.name, strategy)

    # -- diplomacy -----------------------------------------------------------

    def _process_diplomacy(self, country: Country):
        open_talks = [n for n in self.diplomacy.get_active_negotiations(country.name) if n.proposer == country.name]
        for partner_name in sorted(self.countries):
            if len(open_talks) >= self.config.max_negotiations_per_country:
                break
            if partner_name == country.name:
                continue
            partner = self.countries[partner_name]
            relation = country.relationships.get(partner_name, 0.5)
            if relation > self.config.trade_partner_relation and \
                    self.diplomacy.should_propose_agreement(country, partner):
                open_talks.append(self.diplomacy.generate_trade_agreement(country, partner, relation))
                country.record_action("trade_proposal", self.month, target=partner_name)

        if "diplomatic" in country.strategic_goals:
            for partner_name in sorted(self.countries):
                if partner_name == country.name or self.diplomacy.are_allied(country.name, partner_name):
                    continue
                alliance = self.diplomacy.form_alliance(country, self.countries[partner_name])
                if alliance is not None:
                    country.record_action("alliance", self.month, target=partner_name)
                    self.events.publish("ai.alliance_formed", {"members": alliance.members}, source=country.name)
                    break

        for alliance in self.diplomacy.get_alliances(country.name):
            partners = [m for m in alliance.members if m != country.name]
            if any(self.diplomacy.get_relationship(country.name, m).trust < 0.2 for m in partners):
                resolution = self._mediate(DiplomaticCrisisType.ALLIANCE_BREAKDOWN, [country.name] + partners,
                                           alliance_id=alliance.id)
                if not resolution.resolved:
                    country.record_action("alliance_break", self.month, members=partners)

    def _update_relationships(self, country: Country):
        """Pull the per-country relation map toward the diplomatic trust matrix."""
        for other in sorted(country.relationships):
            trust = self.diplomacy.get_relationship(country.name, other).trust
            country.relationships[other] = clamp(lerp(country.relationships[other], trust, 0.1), 0.0, 1.0)

    def _sync_player_relations(self):
        for name, country in self.countries.items():
            self.player.relationships[name] = country.relationships.get(self.player.name, 0.5)

    # -- military ------------------------------------------------------------

    def _consider_military_actions(self, country: Country):
        everyone = self.all_countries()
        threat = self.military.assess_threat_level(country, everyone)
        country.military_budget = self.military.update_military_budget(country, country.economic_state(), threat)

        for action in self.military.consider_military_actions(country, everyone):
            target = self._lookup(action.target)
            if self.diplomacy.are_allied(country.name, target.name):
                continue
            if action.plan.success_probability <= 0.6:
                continue
            if self.military.should_consider_attack(country, target):
                self._execute_military_action(country, target)
                break  # at most one offensive per month

    def _execute_military_action(self, attacker: Country, defender: Country) -> BattleResult:
        result = self.military.simulate_battle(attacker, defender)
        attacker.military_strength = max(0.0, attacker.military_strength - result.attacker_losses)
        defender.military_strength = max(0.0, defender.military_strength - result.defender_losses)

        conflict = {"month": self.month, "victor": result.victor, "days": result.duration_days}
        attacker.memory.past_conflicts.append({"with": defender.name, **conflict})
        defender.memory.past_conflicts.append({"with": attacker.name, **conflict})
        attacker.record_action("invasion", self.month, target=defender.name, victor=result.victor)
        self.diplomacy.record_interaction(attacker.name, defender.name, InteractionType.BORDER_DISPUTE)
        self.events.publish("ai.battle", {
            "attacker": attacker.name,
            "defender": defender.name,
            "victor": result.victor,
            "duration_days": result.duration_days,
        }, source=attacker.name)
        self._mediate(DiplomaticCrisisType.BORDER_CONFLICT, [attacker.name, defender.name])
        return result

    def _balance_global_power(self):
        everyone = self.all_countries()
        power = {c.name: self.military.combat_power(c) for c in everyone}
        total = sum(power.values())
        if total <= 0:
            return
        dominant = max(sorted(power), key=power.get)
        if power[dominant] / total <= self.config.dominance_threshold:
            return

        members = [name for name in sorted(self.countries)
                   if name != dominant and self.countries[name].relationships.get(dominant, 0.5) < 0.5]
        alliance = self.diplomacy.form_counter_alliance(members, dominant)
        if alliance is not None:
            self.events.publish("ai.counter_alliance", {"members": alliance.members, "against": dominant})

    def _mediate(self, kind: DiplomaticCrisisType, parties: List[str],
                 alliance_id: Optional[str] = None) -> CrisisResolution:
        """Hand a bilateral flare-up to the diplomatic crisis handlers and announce the outcome."""
        resolution = self.diplomacy.handle_crisis(DiplomaticCrisis(kind, parties, alliance_id=alliance_id))
        logger.info(f"MEDIATION: {kind.value} between {', '.join(parties)} "
                    f"{'settled' if resolution.resolved else 'unresolved'} (mediator {resolution.mediator})")
        self.events.publish("ai.mediation", {
            "type": kind.value,
            "parties": list(parties),
            "mediator": resolution.mediator,
            "resolved": resolution.resolved,
        })
        return resolution

    # -- crises ----------------------------------------------------------------

    def _handle_crisis_situations(self):
        everyone = self.all_countries()
        current = set()
        for name in sorted(self.countries):
            country = self.countries[name]
            try:
                threat = self.military.assess_threat_level(country, everyone)
                crises = self.crisis_model.detect_crises(country, country.economic_state(),
                                                         {"military_threat_level": threat})
                for crisis in crises:
                    current.add((name, crisis.type))
                    if (name, crisis.type) in self.crisis_states:
                        continue  # respond once per episode
                    response = self.crisis_model.generate_crisis_response(country, crisis, threat)
                    outcome = self.crisis_model.simulate_crisis_outcome(response, country, country.economic_stability)
                    if crisis.type == CrisisType.ECONOMIC:
                        self._implement_crisis_package(country, response.subtype)
                    country.record_action("crisis_response", self.month, crisis=crisis.type.value,
                                          measures=response.measures, contained=outcome.contained)
                    self.events.publish("ai.crisis", {
                        "country": name,
                        "type": crisis.type.value,
                        "severity": crisis.severity,
                        "contained": outcome.contained,
                    }, source=name)
            except Exception:
                logger.exception(f"Crisis handling failed for {name}; skipped this month")
        self.crisis_states = current

    def _implement_crisis_package(self, country: Country, subtype: Optional[str]):
        kind = CRISIS_PACKAGES.get(subtype)
        if country.currency_value < 0.5:
            kind = EconomicCrisisKind.CURRENCY_CRISIS
        if kind is None:
            return
        package = self.economic_model.generate_crisis_response(country, kind)
        country.interest_rate += package.monetary.get("interest_rate", 0.0)
        country.money_supply_growth += package.monetary.get("money_supply", 0.0)
        country.foreign_reserves *= 1 + package.monetary.get("foreign_reserves", 0.0)
        country.government_spending *= 1 - package.fiscal.get("spending_cut", 0.0)
        country.tax_rate = clamp(country.tax_rate + package.fiscal.get("tax_increase", 0.0), 0.05, 0.7)
        country.capital_controls = country.capital_controls or package.capital_controls
        logger.warning(f"CRISIS PACKAGE: {country.name} adopts {kind.value} measures")

    # -- trade ---------------------------------------------------------------

    def calculate_global_trade(self, player: Country, player_tariffs: Dict[str, Dict[str, float]],
                               currency_value: float, competitiveness: Optional[Dict[str, float]] = None,
                               export_scale: float = 1.0, import_scale: float = 1.0) -> TradeOutcome:
        partners = [self.countries[name] for name in sorted(self.countries)]
        outcome = self.economic_model.calculate_global_trade_impacts(
            player, partners, player_tariffs,
            currency_value=currency_value,
            competitiveness=competitiveness,
            market_shares=self.companies.get_global_market_shares(),
            export_scale=export_scale,
            import_scale=import_scale,
        )
        for name, balance in outcome.by_partner.items():
            self.countries[name].trade_balance = -balance
        self.trade_history.append({"month": self.month, "exports": outcome.exports,
                                   "imports": outcome.imports, "by_partner": dict(outcome.by_partner)})
        return outcome

    # -- player actions ------------------------------------------------------

    def handle_player_action(self, action: PlayerAction):
        """React to a player action. Unknown action types are ignored."""
        if isinstance(action, TariffChange):
            return self._react_to_tariffs(action)
        elif isinstance(action, TradeAgreementProposal):
            return self._respond_to_trade_proposal(action)
        elif isinstance(action, MilitaryMove):
            return self._counter_military_action(action)
        logger.debug(f"Ignoring unknown player action {action!r}")
        return None

    def _react_to_tariffs(self, action: TariffChange) -> List[EconomicMeasure]:
        target = self.countries.get(action.target)
        if target is None:
            return []
        player = self.player.name
        self.diplomacy.record_interaction(target.name, player, InteractionType.SANCTION, outcome=action.rate)
        target.adjust_relation(player, -action.rate * 0.5)
        target.memory.trade_history.append({"month": self.month, "tariff_from": player,
                                            "sector": action.sector, "rate": action.rate})

        measures = []
        if target.relationships.get(player, 0.5) < self.config.hostile_relation_threshold:
            measures = self.economic_model.generate_retaliatory_measures(target, player, action.sector, action.rate)
            for measure in measures:
                self._implement_economic_measure(target, measure)
            logger.info(f"RETALIATION: {target.name} answers tariffs on {action.sector} with "
                        f"{', '.join(m.type.value for m in measures)}")
            self._mediate(DiplomaticCrisisType.TRADE_WAR, [target.name, player])
        return measures

    def _implement_economic_measure(self, country: Country, measure: EconomicMeasure):
        if measure.type == MeasureType.TARIFF:
            country.tariffs[measure.sector] = max(country.tariffs.get(measure.sector, 0.0), measure.value)
        elif measure.type == MeasureType.SANCTION:
            self.diplomacy.update_relations(country.name, measure.target, {"tension": measure.value * 0.2})
        elif measure.type == MeasureType.TRADE_DIVERSION:
            country.adjust_relation(measure.target, -measure.value)
        country.record_action(measure.type.value, self.month, target=measure.target, sector=measure.sector)

    def _respond_to_trade_proposal(self, action: TradeAgreementProposal) -> bool:
        target = self.countries.get(action.partner)
        if target is None:
            return False
        terms = TradeTerms(action.tariff_reduction, action.market_access, action.intellectual_property)
        utility = self.diplomacy.calculate_deal_utility(terms, target)
        accepted = utility > self.diplomacy.get_acceptance_threshold(target)
        if accepted:
            target.trade_agreements.add(self.player.name)
            self.player.trade_agreements.add(target.name)
            record = {"with": self.player.name, "month": self.month, "terms": vars(terms).copy()}
            target.memory.agreements.append(record)
            self.player.memory.agreements.append({**record, "with": target.name})
            self.diplomacy.record_interaction(target.name, self.player.name, InteractionType.TRADE_DEAL,
                                              outcome=action.tariff_reduction + 0.5)
            logger.info(f"TRADE AGREEMENT: {target.name} accepts the player's proposal")
        else:
            logger.info(f"{target.name} rejects the player's trade proposal (utility {utility:.2f})")
        return accepted

    def _counter_military_action(self, action: MilitaryMove) -> Optional[BattleResult]:
        target = self.countries.get(action.target)
        if target is None:
            return None
        self.diplomacy.update_relations(target.name, self.player.name,
                                        {"trust": -0.1 * action.intensity, "tension": 0.2 * action.intensity})
        target.adjust_relation(self.player.name, -0.1 * action.intensity)
        if target.ai_traits.aggression > 0.6:
            lo, hi = self.config.military_budget_bounds
            target.military_budget = clamp(target.military_budget * 1.1, lo, hi)
        if action.kind == "invasion":
            return self._execute_military_action(self.player, target)
        return None

    # -- queries -------------------------------------------------------------

    def get_country_state(self, name: str) -> Dict[str, Any]:
        country = self._lookup(name)
        if country is None:
            return {}
        return {
            "economy": country.economic_state(),
            "military": self.military.get_military_status(name),
            "relations": dict(country.relationships),
        }

    def get_diplomatic_status(self, name: str) -> Dict[str, Any]:
        return {
            "alliances": self.diplomacy.get_alliances(name),
            "tensions": self.diplomacy.get_current_tensions(name),
            "ongoing_negotiations": self.diplomacy.get_active_negotiations(name),
        }

    def get_trade_states(self) -> Dict[str, Dict[str, Any]]:
        return {
            name: {
                "tariffs": dict(c.tariffs),
                "trade_agreements": sorted(c.trade_agreements),
                "trade_balance": c.trade_balance,
            }
            for name, c in sorted(self.countries.items())
        }

    def get_ai_decision_log(self, name: str) -> Dict[str, Any]:
        country = self.countries[name]
        return {
            "goals": list(country.strategic_goals),
            "recent_actions": country.memory.actions[-10:],
            "relationship_map": sorted(country.relationships.items()),
        }

    # -- persistence ---------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "countries": {name: c.to_dict() for name, c in self.countries.items()},
            "diplomacy": self.diplomacy.snapshot(),
            "military": self.military.snapshot(),
            "crisis": self.crisis_model.snapshot(),
            "crisis_states": sorted([name, kind.value] for name, kind in self.crisis_states),
            "trade_history": list(self.trade_history),
        }

    def restore(self, data: Dict[str, Any], player: Country):
        try:
            countries = {name: Country.from_dict(c) for name, c in data["countries"].items()}
            crisis_states = {(name, CrisisType(kind)) for name, kind in data["crisis_states"]}
            self.player = player
            self.countries = countries
            self.diplomacy.restore(data["diplomacy"], self.all_countries())
            self.military.restore(data["military"])
            self.crisis_model.restore(data["crisis"])
        except (KeyError, TypeError, ValueError) as e:
            raise StateValidationError(f"Malformed AI snapshot: {e}") from e
        self.crisis_states = crisis_states
        self.trade_history = deque(data.get("trade_history", []), maxlen=self.config.history_length)
