from enum import Enum, auto
from typing import List, Dict, Optional, Sequence
import logging
import math
from collections import deque
from dataclasses import dataclass, field, asdict

import numpy as np

from config import SimulationConfig, INTERACTION_MODIFIERS
from country import Country
from game_math import clamp, generate_uuid, safe_divide

logger = logging.getLogger(__name__)


class InteractionType(Enum):
    TRADE_DEAL = "trade_deal"
    SANCTION = "sanction"
    ALLIANCE = "alliance"
    BORDER_DISPUTE = "border_dispute"


class NegotiationState(Enum):
    PROPOSED = auto()
    COUNTERING = auto()
    FINALIZED = auto()
    FAILED = auto()


class AllianceType(Enum):
    DEFENSIVE = auto()        # Mutual defence between compatible partners
    COUNTER_BALANCE = auto()  # Coalition formed against a dominant power


class DiplomaticCrisisType(Enum):
    BORDER_CONFLICT = "border_conflict"
    TRADE_WAR = "trade_war"
    ALLIANCE_BREAKDOWN = "alliance_breakdown"


@dataclass
class Interaction:
    type: InteractionType
    outcome: float = 1.0


@dataclass
class Relationship:
    trust: float
    tension: float = 0.0
    cooperation: float = 0.0
    last_interaction: Optional[Interaction] = None


@dataclass
class TradeTerms:
    tariff_reduction: float
    market_access: float
    intellectual_property: float


@dataclass
class RedLines:
    """Limits the proposer will not concede past."""
    max_tariff_reduction: float
    min_market_access: float


@dataclass
class TradeAgreement:
    id: str
    proposer: str
    target: str
    rounds_remaining: int
    current_terms: TradeTerms
    red_lines: RedLines
    state: NegotiationState = NegotiationState.PROPOSED
    history: List[TradeTerms] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.state in (NegotiationState.PROPOSED, NegotiationState.COUNTERING)


@dataclass
class Alliance:
    id: str
    members: List[str]
    type: AllianceType
    strength: float
    cohesion: float = 0.8
    target: Optional[str] = None  # power a counter-alliance is aimed at


@dataclass
class DiplomaticCrisis:
    type: DiplomaticCrisisType
    parties: List[str]
    disputed_zone: Optional[str] = None
    alliance_id: Optional[str] = None


@dataclass
class CrisisResolution:
    type: DiplomaticCrisisType
    mediator: Optional[str] = None
    settlement: Dict[str, float] = field(default_factory=dict)
    accepted_by: List[str] = field(default_factory=list)
    pressure_applied: List[str] = field(default_factory=list)
    resolved: bool = False


class DiplomaticAI:
    """
    Pairwise trust/tension/cooperation matrix over every country (player included),
    trade negotiations, alliances and conflict mediation.
    """

    def __init__(self, config: SimulationConfig, rng: np.random.Generator):
        self.config = config
        self.rng = rng
        self.countries: Dict[str, Country] = {}
        self.relationships: Dict[str, Dict[str, Relationship]] = {}
        self.active_treaties: Dict[str, Alliance] = {}
        self.negotiations: Dict[str, TradeAgreement] = {}
        self.alliance_history: Dict[str, deque] = {}

    def initialize_diplomacy(self, countries: Sequence[Country]):
        self.countries = {c.name: c for c in countries}
        self.relationships = {
            a.name: {
                b.name: Relationship(trust=self.calculate_initial_trust(a, b))
                for b in countries if b.name != a.name
            }
            for a in countries
        }
        self.active_treaties = {}
        self.negotiations = {}
        self.alliance_history = {}

    # -- initial trust ---------------------------------------------------

    def calculate_initial_trust(self, a: Country, b: Country) -> float:
        political = 1 - abs(a.political_alignment - b.political_alignment)
        economic = self.calculate_economic_alignment(a, b)
        historical = self.get_historical_modifier(a, b)
        return clamp((political * 0.4 + economic * 0.3 + historical * 0.3) * 0.8 + 0.1, 0.0, 1.0)

    @staticmethod
    def calculate_economic_alignment(a: Country, b: Country) -> float:
        complementarity = safe_divide(len(set(a.imports) & set(b.exports)), len(a.imports))
        overlap = min(safe_divide(a.foreign_investment, b.gdp), safe_divide(b.foreign_investment, a.gdp))
        return complementarity * 0.6 + clamp(overlap, 0.0, 1.0) * 0.4

    @staticmethod
    def get_historical_modifier(a: Country, b: Country) -> float:
        base = a.historical_relations.get(b.name, 0.5)
        conflicts = sum(1 for c in a.memory.past_conflicts if c.get("with") == b.name)
        agreements = sum(1 for x in a.memory.agreements if x.get("with") == b.name)
        return clamp(base - 0.1 * conflicts + 0.05 * agreements, 0.0, 1.0)

    # -- relationship matrix ---------------------------------------------

    def get_relationship(self, a: str, b: str) -> Relationship:
        return self.relationships[a][b]

    def record_interaction(self, a: str, b: str, kind: InteractionType, outcome: float = 1.0):
        """Queue an interaction; its effect lands on the next ``update_relationships``."""
        self.relationships[a][b].last_interaction = Interaction(kind, outcome)
        self.relationships[b][a].last_interaction = Interaction(kind, outcome)

    def update_relationships(self):
        """Decay every entry, then apply and clear pending interactions."""
        decay = self.config.relation_decay
        for name in sorted(self.relationships):
            for other in sorted(self.relationships[name]):
                rel = self.relationships[name][other]
                rel.trust *= decay
                rel.tension *= decay
                if rel.last_interaction is not None:
                    self._process_interaction(rel)

    @staticmethod
    def _process_interaction(rel: Relationship):
        interaction = rel.last_interaction
        modifiers = INTERACTION_MODIFIERS.get(interaction.type.value, {})
        for key, delta in modifiers.items():
            setattr(rel, key, clamp(getattr(rel, key) + delta * interaction.outcome, 0.0, 1.0))
        rel.last_interaction = None

    def update_relations(self, a: str, b: str, modifiers: Dict[str, float]):
        """Apply deltas to a->b in full and to b->a scaled down, clamped to [0, 1]."""
        rel_ab = self.relationships[a][b]
        rel_ba = self.relationships[b][a]
        scale = self.config.reverse_relation_scale
        for key, value in modifiers.items():
            setattr(rel_ab, key, clamp(getattr(rel_ab, key) + value, 0.0, 1.0))
            setattr(rel_ba, key, clamp(getattr(rel_ba, key) + value * scale, 0.0, 1.0))

    def get_current_tensions(self, name: str, threshold: float = 0.1) -> Dict[str, float]:
        return {other: rel.tension for other, rel in sorted(self.relationships.get(name, {}).items())
                if rel.tension > threshold}

    # -- trade negotiations ---------------------------------------------

    def calculate_deal_complexity(self, a: Country, b: Country) -> float:
        """Sector overlap and conflicting tariff policy, each normalised to [0, 1]."""
        common = set(a.sectors) & set(b.sectors)
        overlap = safe_divide(len(common), len(set(a.sectors) | set(b.sectors)))
        conflicting = sum(1 for s in common if a.tariffs.get(s, 0.0) > 0.1 or b.tariffs.get(s, 0.0) > 0.1)
        issues = safe_divide(conflicting, len(common))
        return overlap * 0.4 + issues * 0.6

    def should_propose_agreement(self, proposer: Country, target: Country) -> bool:
        if target.name in proposer.trade_agreements:
            return False
        if any(n.is_open and {n.proposer, n.target} == {proposer.name, target.name}
               for n in self.negotiations.values()):
            return False
        rel = self.relationships[proposer.name][target.name]
        return rel.trust > 0.4 and rel.tension < 0.5

    def generate_trade_agreement(self, proposer: Country, target: Country, relation: float = 0.5) -> TradeAgreement:
        complexity = self.calculate_deal_complexity(proposer, target)
        terms = TradeTerms(
            tariff_reduction=0.2 + 0.3 * relation,
            market_access=0.6 - 0.2 * relation,
            intellectual_property=proposer.innovation_focus * 0.5,
        )
        agreement = TradeAgreement(
            id=generate_uuid(self.rng),
            proposer=proposer.name,
            target=target.name,
            rounds_remaining=int(math.floor(3 + complexity * 2)),
            current_terms=terms,
            red_lines=self.identify_red_lines(proposer),
        )
        self.negotiations[agreement.id] = agreement
        return agreement

    @staticmethod
    def identify_red_lines(proposer: Country) -> RedLines:
        return RedLines(
            max_tariff_reduction=clamp(0.9 - proposer.protectionism * 0.4, 0.3, 0.9),
            min_market_access=clamp(0.1 + proposer.trade_priority * 0.2, 0.1, 0.3),
        )

    @staticmethod
    def adjust_terms(terms: TradeTerms, rounds_remaining: int, red_lines: RedLines) -> TradeTerms:
        """Concede towards the target, faster as rounds run out, never past the red lines."""
        concession = 0.1 / max(1, rounds_remaining)
        return TradeTerms(
            tariff_reduction=min(terms.tariff_reduction + concession, red_lines.max_tariff_reduction),
            market_access=max(terms.market_access - concession, red_lines.min_market_access),
            intellectual_property=terms.intellectual_property,
        )

    @staticmethod
    def calculate_deal_utility(terms: TradeTerms, country: Country) -> float:
        utility = terms.tariff_reduction * country.trade_priority
        utility -= terms.market_access * country.protectionism
        utility += terms.intellectual_property * country.innovation_focus
        return clamp(utility, -1.0, 1.0)

    @staticmethod
    def get_acceptance_threshold(country: Country) -> float:
        return (1 - country.ai_traits.risk_appetite) * 0.3 + country.economic_need * 0.7

    def simulate_negotiation_round(self, agreement: TradeAgreement) -> NegotiationState:
        """Advance one round. Running out of rounds without acceptance fails the deal."""
        if not agreement.is_open:
            return agreement.state
        target = self.countries[agreement.target]

        new_terms = self.adjust_terms(agreement.current_terms, agreement.rounds_remaining, agreement.red_lines)
        utility = self.calculate_deal_utility(new_terms, target)

        if utility > self.get_acceptance_threshold(target):
            agreement.current_terms = new_terms
            self._finalize_agreement(agreement)
        else:
            agreement.history.append(agreement.current_terms)
            agreement.current_terms = new_terms
            agreement.rounds_remaining -= 1
            agreement.state = NegotiationState.COUNTERING
            if agreement.rounds_remaining <= 0:
                agreement.state = NegotiationState.FAILED
                logger.debug(f"Trade talks {agreement.proposer} -> {agreement.target} failed")
        return agreement.state

    def run_negotiation(self, agreement: TradeAgreement) -> NegotiationState:
        while agreement.is_open:
            self.simulate_negotiation_round(agreement)
        return agreement.state

    def _finalize_agreement(self, agreement: TradeAgreement):
        agreement.state = NegotiationState.FINALIZED
        proposer = self.countries[agreement.proposer]
        target = self.countries[agreement.target]
        proposer.trade_agreements.add(target.name)
        target.trade_agreements.add(proposer.name)
        record = {"id": agreement.id, "terms": vars(agreement.current_terms).copy()}
        proposer.memory.agreements.append({"with": target.name, **record})
        target.memory.agreements.append({"with": proposer.name, **record})
        self.record_interaction(proposer.name, target.name, InteractionType.TRADE_DEAL,
                                outcome=agreement.current_terms.tariff_reduction + 0.5)
        self.record_historical_event([proposer.name, target.name], "trade_agreement")
        logger.info(f"TRADE AGREEMENT: {proposer.name} and {target.name} sign a trade deal")

    def get_active_negotiations(self, name: str) -> List[TradeAgreement]:
        return [n for n in self.negotiations.values() if n.is_open and name in (n.proposer, n.target)]

    def prune_negotiations(self):
        """Drop concluded negotiations."""
        self.negotiations = {k: n for k, n in self.negotiations.items() if n.is_open}

    # -- alliances --------------------------------------------------------

    def get_alliances(self, name: str) -> List[Alliance]:
        return [a for a in self.active_treaties.values() if name in a.members]

    def are_allied(self, a: str, b: str) -> bool:
        return any(b in alliance.members for alliance in self.get_alliances(a))

    def calculate_alliance_compatibility(self, a: Country, b: Country) -> float:
        trust = self.relationships[a.name][b.name].trust
        bias_alignment = 1 - abs(a.ai_traits.diplomatic_bias - b.ai_traits.diplomatic_bias) / 2
        political = 1 - abs(a.political_alignment - b.political_alignment)
        return trust * 0.4 + bias_alignment * 0.4 + political * 0.2

    def form_alliance(self, initiator: Country, target: Country) -> Optional[Alliance]:
        if self.are_allied(initiator.name, target.name):
            return None
        compatibility = self.calculate_alliance_compatibility(initiator, target)
        if compatibility <= self.config.alliance_threshold:
            return None

        alliance = Alliance(
            id=generate_uuid(self.rng),
            members=[initiator.name, target.name],
            type=AllianceType.DEFENSIVE,
            strength=compatibility,
            cohesion=self.config.alliance_cohesion,
        )
        self.active_treaties[alliance.id] = alliance
        boost = self.config.alliance_trust_boost
        for a, b in ((initiator.name, target.name), (target.name, initiator.name)):
            rel = self.relationships[a][b]
            rel.trust = clamp(rel.trust + boost, 0.0, 1.0)
        self.record_historical_event(alliance.members, "alliance_formed")
        logger.info(f"ALLIANCE: {initiator.name} and {target.name} form a defensive pact")
        return alliance

    def get_counter_alliance(self, against: str) -> Optional[Alliance]:
        for alliance in self.active_treaties.values():
            if alliance.type == AllianceType.COUNTER_BALANCE and alliance.target == against:
                return alliance
        return None

    def form_counter_alliance(self, members: Sequence[str], against: str) -> Optional[Alliance]:
        """
        Unite members against a dominant country. There is at most one bloc per
        target: newcomers join the existing bloc, and None means nothing changed.
        """
        members = [m for m in members if m != against]
        existing = self.get_counter_alliance(against)
        if existing is not None:
            joining = [m for m in members if m not in existing.members]
            if not joining:
                return None
            existing.members.extend(joining)
            self._bind_counter_members(existing, joining)
            self.record_historical_event(existing.members, "counter_alliance_joined")
            logger.info(f"COUNTER-ALLIANCE: {', '.join(joining)} join the bloc against {against}")
            return existing

        if len(members) < 2:
            return None
        alliance = Alliance(
            id=generate_uuid(self.rng),
            members=list(members),
            type=AllianceType.COUNTER_BALANCE,
            strength=0.0,
            cohesion=self.config.alliance_cohesion,
            target=against,
        )
        self.active_treaties[alliance.id] = alliance
        self._bind_counter_members(alliance, members)
        self.record_historical_event(alliance.members, "counter_alliance")
        logger.warning(f"COUNTER-ALLIANCE: {', '.join(members)} unite against {against}")
        return alliance

    def _bind_counter_members(self, alliance: Alliance, newcomers: Sequence[str]):
        pairs = [(a, b) for a in alliance.members for b in alliance.members
                 if a != b and (a in newcomers or b in newcomers)]
        for a, b in pairs:
            rel = self.relationships[a][b]
            rel.trust = clamp(rel.trust + self.config.alliance_trust_boost / 2, 0.0, 1.0)
        for member in newcomers:
            self.update_relations(member, alliance.target, {"tension": 0.1})
        everyone = [(a, b) for a in alliance.members for b in alliance.members if a != b]
        alliance.strength = sum(self.relationships[a][b].trust for a, b in everyone) / len(everyone)

    def break_alliance(self, alliance_id: str, instigator: str) -> bool:
        alliance = self.active_treaties.pop(alliance_id, None)
        if alliance is None:
            return False
        for member in alliance.members:
            if member != instigator:
                self.update_relations(member, instigator, {
                    "trust": self.config.alliance_break_trust,
                    "tension": self.config.alliance_break_tension,
                })
        self.record_historical_event(alliance.members, "alliance_broken")
        logger.info(f"ALLIANCE BROKEN: {instigator} leaves {alliance.type.name.lower()} pact")
        return True

    # -- crisis mediation -------------------------------------------------

    def handle_crisis(self, crisis: DiplomaticCrisis) -> Optional[CrisisResolution]:
        if crisis.type == DiplomaticCrisisType.BORDER_CONFLICT:
            return self._resolve_border_conflict(crisis)
        elif crisis.type == DiplomaticCrisisType.TRADE_WAR:
            return self._deescalate_trade_war(crisis)
        elif crisis.type == DiplomaticCrisisType.ALLIANCE_BREAKDOWN:
            return self._repair_alliance(crisis)
        logger.debug(f"No diplomatic handler for {crisis.type!r}")
        return None

    def find_mediator(self, parties: Sequence[str]) -> Optional[str]:
        """The outside country most trusted by all parties."""
        candidates = [n for n in sorted(self.relationships) if n not in parties]
        if not candidates:
            return None
        return max(candidates,
                   key=lambda n: sum(self.relationships[p][n].trust for p in parties) / len(parties))

    def _resolve_border_conflict(self, crisis: DiplomaticCrisis) -> CrisisResolution:
        parties = [p for p in crisis.parties if p in self.countries]
        total = sum(self.countries[p].military_strength for p in parties)
        resolution = CrisisResolution(
            type=crisis.type,
            mediator=self.find_mediator(parties),
            settlement={p: safe_divide(self.countries[p].military_strength, total) for p in parties},
        )
        for party in parties:
            share = resolution.settlement[party]
            # Parties accept a settlement that leaves them a fair share or when they cannot risk escalation
            if share >= 0.4 or self.countries[party].ai_traits.risk_appetite < 0.5:
                resolution.accepted_by.append(party)
                if resolution.mediator is not None:
                    self.update_relations(party, resolution.mediator, {"trust": 0.05})
                    resolution.pressure_applied.append(party)
        resolution.resolved = len(resolution.accepted_by) == len(parties)
        if resolution.resolved and len(parties) == 2:
            self.update_relations(parties[0], parties[1], {"tension": -0.15})
        return resolution

    def _deescalate_trade_war(self, crisis: DiplomaticCrisis) -> CrisisResolution:
        a, b = crisis.parties[0], crisis.parties[1]
        trust = (self.relationships[a][b].trust + self.relationships[b][a].trust) / 2
        self.update_relations(a, b, {"tension": -0.1})
        return CrisisResolution(
            type=crisis.type,
            mediator=self.find_mediator([a, b]),
            settlement={"tariff_reduction": 0.5 * trust},
            accepted_by=[a, b] if trust > 0.3 else [],
            resolved=trust > 0.3,
        )

    def _repair_alliance(self, crisis: DiplomaticCrisis) -> CrisisResolution:
        resolution = CrisisResolution(type=crisis.type)
        alliance = self.active_treaties.get(crisis.alliance_id)
        if alliance is None:
            return resolution
        pairs = [(a, b) for a in alliance.members for b in alliance.members if a != b]
        mean_trust = sum(self.relationships[a][b].trust for a, b in pairs) / len(pairs)
        if mean_trust > 0.5:
            alliance.cohesion = clamp(alliance.cohesion + 0.1, 0.0, 1.0)
            resolution.accepted_by = list(alliance.members)
            resolution.resolved = True
        else:
            self.break_alliance(alliance.id, crisis.parties[0])
        resolution.settlement = {"cohesion": alliance.cohesion, "mean_trust": mean_trust}
        return resolution

    # -- history -----------------------------------------------------------

    def record_historical_event(self, names: Sequence[str], event: str, month: Optional[int] = None):
        for name in names:
            self.alliance_history.setdefault(name, deque(maxlen=self.config.decision_log_length)).append({
                "event": event,
                "month": month,
                "participants": [n for n in names if n != name],
            })

    # -- persistence ---------------------------------------------------------

    def snapshot(self) -> Dict:
        return {
            "relationships": {
                a: {b: {"trust": r.trust, "tension": r.tension, "cooperation": r.cooperation,
                        "last_interaction": None if r.last_interaction is None else
                        [r.last_interaction.type.value, r.last_interaction.outcome]}
                    for b, r in rels.items()}
                for a, rels in self.relationships.items()
            },
            "alliances": [
                {"id": a.id, "members": list(a.members), "type": a.type.name, "strength": a.strength,
                 "cohesion": a.cohesion, "target": a.target}
                for a in self.active_treaties.values()
            ],
            "negotiations": [
                {"id": n.id, "proposer": n.proposer, "target": n.target,
                 "rounds_remaining": n.rounds_remaining, "state": n.state.name,
                 "current_terms": asdict(n.current_terms), "red_lines": asdict(n.red_lines),
                 "history": [asdict(t) for t in n.history]}
                for n in self.negotiations.values()
            ],
            "history": {name: list(events) for name, events in self.alliance_history.items()},
        }

    def restore(self, data: Dict, countries: Sequence[Country]):
        self.countries = {c.name: c for c in countries}
        self.relationships = {
            a: {b: _relationship_from_dict(values) for b, values in rels.items()}
            for a, rels in data["relationships"].items()
        }
        self.active_treaties = {
            a["id"]: Alliance(id=a["id"], members=list(a["members"]), type=AllianceType[a["type"]],
                              strength=a["strength"], cohesion=a["cohesion"], target=a.get("target"))
            for a in data["alliances"]
        }
        self.negotiations = {
            n["id"]: TradeAgreement(
                id=n["id"], proposer=n["proposer"], target=n["target"],
                rounds_remaining=n["rounds_remaining"],
                current_terms=TradeTerms(**n["current_terms"]),
                red_lines=RedLines(**n["red_lines"]),
                state=NegotiationState[n["state"]],
                history=[TradeTerms(**t) for t in n["history"]],
            )
            for n in data["negotiations"]
        }
        self.alliance_history = {
            name: deque(events, maxlen=self.config.decision_log_length)
            for name, events in data.get("history", {}).items()
        }


def _relationship_from_dict(values: Dict) -> Relationship:
    pending = values.get("last_interaction")
    return Relationship(
        trust=values["trust"],
        tension=values["tension"],
        cooperation=values["cooperation"],
        last_interaction=None if pending is None else Interaction(InteractionType(pending[0]), pending[1]),
    )
