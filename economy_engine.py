"""
Monthly simulation loop for the player's economy.
Each call to simulate_month() runs the phases in a fixed order and either
completes or rolls every owned component back to the pre-month state.
"""

import copy
import logging
from collections import deque
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from actions import MilitaryMove, PlayerAction, TariffChange, TradeAgreementProposal, action_to_dict
from ai_manager import AIManager
from companies import CompanyManager, MarketConditions, SectorMetrics
from config import SimulationConfig
from country import Country, EconomicState
from departments import DepartmentManager, DepartmentType, TaxAssessment
from errors import InitializationError, LoadError, SimulationError, StateValidationError
from events import EventBus, EventPhase
from game_math import clamp, safe_divide
from indicators import StatisticsManager

logger = logging.getLogger(__name__)

SNAPSHOT_KEYS = ("economy", "companies", "policies", "history")


class PolicyImpactType(Enum):
    TAXATION = "taxation"
    TRADE = "trade"


def default_indicators() -> Dict[str, float]:
    return {
        "gdp": 0.0,
        "gdp_growth": 0.0,  # month over month
        "inflation": 0.0,  # annual rate
        "unemployment": 0.0,
        "debt_to_gdp": 0.0,  # percent
        "budget_deficit": 0.0,  # monthly
        "trade_balance": 0.0,  # annual flows
        "exports": 0.0,
        "imports": 0.0,
        "currency_value": 1.0,
        "productivity": 100.0,
        "consumer_confidence": 50.0,
        "business_confidence": 50.0,
        "consumption": 0.0,
        "investment": 0.0,
        "government_spending": 0.0,
        "consumer_price_index": 100.0,
    }


class EconomyEngine:
    """Owns the player country and every manager; advances the world one month at a time."""

    def __init__(self, config: SimulationConfig, rng: Optional[np.random.Generator] = None,
                 events: Optional[EventBus] = None):
        self.config = config
        self.rng = rng if rng is not None else np.random.default_rng(config.seed)
        self.events = events if events is not None else EventBus(config.event_history_length)

        self.month = 0
        self.indicators = default_indicators()
        self.multipliers = self._default_multipliers()
        self.anchor = 1.0  # scales C and I so the first computed GDP matches the data
        self.history: deque = deque(maxlen=config.history_length)

        self.player: Optional[Country] = None
        self.companies: Optional[CompanyManager] = None
        self.departments: Optional[DepartmentManager] = None
        self.statistics: Optional[StatisticsManager] = None
        self.ai: Optional[AIManager] = None

        self.sector_metrics: Dict[str, SectorMetrics] = {}
        self.pending_impacts: List[Dict[str, Any]] = []
        self.player_actions: List[Dict[str, Any]] = []
        self.tax_assessment: Optional[TaxAssessment] = None
        self._base_productivity_denominator = 1.0

    def _default_multipliers(self) -> Dict[str, float]:
        cfg = self.config
        return {
            "consumption": cfg.consumption_multiplier,
            "investment": cfg.investment_multiplier,
            "export": cfg.export_multiplier,
            "import": cfg.import_multiplier,
        }

    @property
    def initialized(self) -> bool:
        return self.player is not None

    # -- setup -------------------------------------------------------------

    def initialize(self, country_records: Iterable[Dict[str, Any]], company_records: Iterable[Dict[str, Any]],
                   player_name: Optional[str] = None):
        """
        Load static data and build every manager.

        Malformed records raise LoadError; a missing player country raises
        InitializationError. Nothing is assigned to the engine unless the whole
        load succeeds.
        """
        player_name = player_name or self.config.player_name
        country_records = list(country_records or [])
        company_records = list(company_records or [])
        if not country_records:
            raise InitializationError("Country data has not been loaded")
        if not company_records:
            raise InitializationError("Company data has not been loaded")

        countries: Dict[str, Country] = {}
        for record in country_records:
            country = Country.from_record(record, is_player=isinstance(record, dict)
                                          and record.get("name") == player_name)
            if country.name in countries:
                raise LoadError(f"Duplicate country name: {country.name!r}")
            countries[country.name] = country
        if player_name not in countries:
            raise InitializationError(f"Player country {player_name!r} not found in country data")
        player = countries[player_name]

        companies = CompanyManager(home_country=player_name)
        companies.initialize(company_records)
        departments = DepartmentManager(self.events, self.config.department_history_length)
        departments.monetary_policy.interest_rate = player.interest_rate
        departments.monetary_policy.inflation_target = player.inflation_target
        statistics = StatisticsManager(self.config.statistics_history_length)
        ai = AIManager(self.config, self.rng, companies, self.events)
        ai.initialize(list(countries.values()), player)

        self.player = player
        self.companies = companies
        self.departments = departments
        self.statistics = statistics
        self.ai = ai
        self.month = 0
        self.history.clear()
        self.pending_impacts = []
        self.player_actions = []
        self.multipliers = self._default_multipliers()
        self._initialize_indicators()
        statistics.initialize(self._statistics_groups())
        logger.info(f"Economy engine initialised: player {player_name}, GDP {player.gdp:,.0f}, "
                    f"{len(countries)} countries, {len(companies.companies)} companies")

    def _initialize_indicators(self):
        player = self.player
        ind = default_indicators()
        ind["gdp"] = player.gdp
        ind["inflation"] = player.inflation
        ind["unemployment"] = player.unemployment
        ind["debt_to_gdp"] = player.debt_to_gdp
        ind["currency_value"] = player.currency_value
        self.indicators = ind

        self._process_international_trade(run_ai=False)
        self.tax_assessment = self._assess_taxes()

        # Calibrate so the expenditure identity reproduces the reported GDP
        self.anchor = 1.0
        consumption, investment = self._calculate_consumption(), self._calculate_investment()
        government = self.departments.total_government_spending
        private_target = player.gdp - government - ind["trade_balance"]
        if consumption + investment > 0 and private_target > 0:
            self.anchor = private_target / (consumption + investment)
        else:
            logger.warning(f"Cannot calibrate {player.name} expenditure model; using raw multipliers")
        ind["consumption"] = self._calculate_consumption()
        ind["investment"] = self._calculate_investment()
        ind["government_spending"] = government
        self._base_productivity_denominator = max(self._employed(), 1.0) / player.gdp

    # -- monthly step --------------------------------------------------------

    def simulate_month(self) -> Dict[str, Any]:
        if not self.initialized:
            raise InitializationError("simulate_month() called before initialize()")

        previous = self.snapshot()
        rng_state = copy.deepcopy(self.rng.bit_generator.state)
        self.events.current_month = self.month
        try:
            self.events.process_phase(EventPhase.PRE_SIMULATION)

            # Pre-calculation
            self._calculate_policy_impacts()
            self._update_consumer_behavior()

            # Core simulation
            self._calculate_domestic_economy()
            self._process_international_trade()
            self._run_market_simulations()

            # Post-processing
            self._process_government_finances()
            record = self._update_historical_data()
            self._check_economic_events()
            self.events.process_phase(EventPhase.MAIN)
        except Exception as e:
            logger.exception(f"Month {self.month + 1} failed; rolling back")
            self._restore_state(previous)
            self.rng.bit_generator.state = rng_state
            raise SimulationError(f"Simulation of month {self.month + 1} failed: {e}") from e

        self.month += 1
        self.events.publish("simulation_complete", {"month": self.month, "indicators": dict(self.indicators)},
                            source="economy")
        self.events.process_phase(EventPhase.POST_SIMULATION)
        return record

    def run(self, months: int) -> List[Dict[str, Any]]:
        return [self.simulate_month() for _ in range(months)]

    def _calculate_policy_impacts(self):
        for impact in self.pending_impacts:
            kind, values = impact["type"], impact["values"]
            if kind == PolicyImpactType.TAXATION.value:
                self.multipliers["consumption"] *= values.get("consumer_impact", 1.0)
                self.multipliers["investment"] *= values.get("investment_impact", 1.0)
            elif kind == PolicyImpactType.TRADE.value:
                self.multipliers["export"] = values.get("export_impact", self.multipliers["export"])
                self.multipliers["import"] = values.get("import_impact", self.multipliers["import"])
        self.pending_impacts = []

    def _update_consumer_behavior(self):
        cfg = self.config
        ind = self.indicators
        target = self.departments.monetary_policy.inflation_target
        mood = (cfg.confidence_growth_sensitivity * ind["gdp_growth"]
                - cfg.confidence_inflation_sensitivity * (ind["inflation"] - target)
                - cfg.confidence_unemployment_sensitivity * (ind["unemployment"] - cfg.natural_unemployment))
        rate_gap = self.departments.monetary_policy.interest_rate - cfg.neutral_interest_rate

        ind["consumer_confidence"] = clamp(
            ind["consumer_confidence"] + cfg.confidence_reversion * (50 - ind["consumer_confidence"]) + mood,
            0.0, 100.0)
        ind["business_confidence"] = clamp(
            ind["business_confidence"] + cfg.confidence_reversion * (50 - ind["business_confidence"]) + mood
            - cfg.confidence_interest_sensitivity * rate_gap,
            0.0, 100.0)

    # -- domestic economy ------------------------------------------------------

    def _labor_force(self) -> float:
        return self.player.population * self.config.labor_force_ratio

    def _employed(self) -> float:
        return self._labor_force() * (1 - self.indicators["unemployment"])

    def _household_income(self) -> float:
        cfg = self.config
        employment_factor = safe_divide(1 - self.indicators["unemployment"], 1 - cfg.natural_unemployment, 1.0)
        return self.player.potential_gdp * cfg.labor_share * employment_factor

    def _assess_taxes(self) -> TaxAssessment:
        cfg = self.config
        gdp = self.indicators["gdp"]
        profits = sum(max(0.0, c.profit) for c in self.companies.companies.values()
                      if c.country == self.player.name)
        return self.departments.assess_taxes(
            household_income=self._household_income(),
            workers=self._employed(),
            corporate_profits=profits,
            consumption=self.indicators["consumption"],
            property_value=gdp * cfg.property_value_ratio,
            capital_gains=gdp * cfg.capital_gains_ratio,
        )

    def _calculate_consumption(self) -> float:
        return (self.tax_assessment.disposable_income
                * self.indicators["consumer_confidence"] / 100
                * self.departments.finance_policy.credit_availability
                * self.multipliers["consumption"] * self.anchor)

    def _calculate_investment(self) -> float:
        rate = self.departments.monetary_policy.interest_rate / 100
        corporate_tax = self.departments.tax_code.corporate_tax / 100
        return (self.companies.total_investment * self.indicators["business_confidence"] / 100
                / (1 + rate + corporate_tax) * self.multipliers["investment"] * self.anchor)

    def _calculate_inflation(self, unemployment: float, target: float) -> float:
        """Phillips curve with adaptive expectations anchored on the target."""
        cfg = self.config
        expected = cfg.inflation_persistence * self.indicators["inflation"] + (1 - cfg.inflation_persistence) * target
        slack = cfg.phillips_slope * (cfg.natural_unemployment - unemployment)
        return clamp(expected + slack, *cfg.inflation_bounds)

    def _calculate_unemployment(self, gdp_growth: float, min_wage: float,
                                sector_employment: Dict[str, float]) -> float:
        """Okun's law on annualised growth, wage floor pressure and sector concentration."""
        cfg = self.config
        u = self.indicators["unemployment"]
        annual_growth = (1 + gdp_growth) ** 12 - 1
        concentration = sum(share ** 2 for share in sector_employment.values())
        change = (-cfg.okun_coefficient * (annual_growth - cfg.trend_growth) / 12
                  + cfg.unemployment_adjustment * (cfg.natural_unemployment - u) / 12
                  + cfg.min_wage_pressure * (min_wage / cfg.reference_min_wage - 1)
                  + 0.001 * max(0.0, concentration - 0.25))
        return clamp(u + change, *cfg.unemployment_bounds)

    def _calculate_domestic_economy(self):
        ind = self.indicators
        player = self.player
        player.potential_gdp *= (1 + self.config.trend_growth) ** (1 / 12)

        self.tax_assessment = self._assess_taxes()
        consumption = self._calculate_consumption()
        investment = self._calculate_investment()
        government = self.departments.total_government_spending

        previous_gdp = ind["gdp"]
        ind["consumption"] = consumption
        ind["investment"] = investment
        ind["government_spending"] = government
        ind["gdp"] = consumption + investment + government + (ind["exports"] - ind["imports"])
        ind["gdp_growth"] = safe_divide(ind["gdp"] - previous_gdp, previous_gdp)

        ind["inflation"] = self._calculate_inflation(ind["unemployment"],
                                                     self.departments.monetary_policy.inflation_target)
        ind["unemployment"] = self._calculate_unemployment(ind["gdp_growth"],
                                                           self.departments.labor_policy.min_wage,
                                                           self.companies.sector_employment_rates)
        ind["consumer_price_index"] *= (1 + ind["inflation"]) ** (1 / 12)
        ind["productivity"] = 100 * safe_divide(ind["gdp"], self._employed()) * self._base_productivity_denominator

        player.gdp = ind["gdp"]
        player.gdp_growth = (1 + ind["gdp_growth"]) ** 12 - 1
        player.inflation = ind["inflation"]
        player.unemployment = ind["unemployment"]
        player.interest_rate = self.departments.monetary_policy.interest_rate
        player.inflation_target = self.departments.monetary_policy.inflation_target

    # -- trade -----------------------------------------------------------------

    def global_economy(self) -> EconomicState:
        """GDP-weighted view of the world economy, growth annualised."""
        countries = self.ai.all_countries()
        world_gdp = sum(c.gdp for c in countries)

        def weighted(attr: str) -> float:
            return safe_divide(sum(getattr(c, attr) * c.gdp for c in countries), world_gdp)

        return EconomicState(
            gdp=world_gdp,
            potential_gdp=sum(c.potential_gdp for c in countries),
            gdp_growth=weighted("gdp_growth"),
            inflation=weighted("inflation"),
            unemployment=weighted("unemployment"),
            debt_to_gdp=weighted("debt_to_gdp"),
            trade_balance=0.0,
            bank_health_index=weighted("bank_health_index"),
            currency_value=1.0,
        )

    def _process_international_trade(self, run_ai: bool = True):
        cfg = self.config
        ind = self.indicators
        tariffs = self.departments.foreign_policy.tariffs
        if run_ai:
            self.ai.simulate_ai_countries(self.global_economy(), tariffs, self.month)

        outcome = self.ai.calculate_global_trade(
            self.player,
            tariffs,
            currency_value=ind["currency_value"],
            competitiveness=self.companies.sector_competitiveness(self.player.name),
            export_scale=self.multipliers["export"] / cfg.export_multiplier,
            import_scale=abs(self.multipliers["import"] / cfg.import_multiplier),
        )
        ind["exports"] = outcome.exports
        ind["imports"] = outcome.imports
        ind["trade_balance"] = outcome.balance
        self.departments.tariff_revenue = outcome.tariff_revenue

        if run_ai:
            change = (ind["trade_balance"] / cfg.currency_trade_scale * cfg.currency_trade_sensitivity
                      - ind["inflation"] * cfg.currency_inflation_sensitivity)
            ind["currency_value"] = clamp(ind["currency_value"] * (1 + change), cfg.currency_min, cfg.currency_max)

        self.player.trade_balance = ind["trade_balance"]
        self.player.currency_value = ind["currency_value"]

    # -- markets ---------------------------------------------------------------

    def _run_market_simulations(self):
        ind = self.indicators
        self.companies.run_market_simulations(MarketConditions(
            inflation=ind["inflation"] * 100 / 12,
            interest_rate=self.departments.monetary_policy.interest_rate / 12,
            consumer_demand=ind["consumer_confidence"] / 100,
            sector_subsidies=dict(self.departments.industry_subsidies),
            subsidy_country=self.player.name,
        ))
        self.sector_metrics = self.companies.calculate_sector_metrics(self.player.name)
        if self.sector_metrics:
            self.player.sectors = {sector: m.market_share for sector, m in self.sector_metrics.items()}

    # -- government finances ---------------------------------------------------

    def _process_government_finances(self):
        ind = self.indicators
        player = self.player
        self.departments.simulate_month(self.month)

        revenue = (self.tax_assessment.monthly_revenue
                   + self.companies.state_owned_enterprise_profits / 12
                   + self.departments.tariff_revenue / 12)
        expenses = (self.departments.total_spending
                    + self.companies.total_subsidies / 12
                    + self.departments.debt_interest_payments(player.government_debt))

        ind["budget_deficit"] = expenses - revenue
        player.government_debt += ind["budget_deficit"]
        ind["debt_to_gdp"] = safe_divide(player.government_debt, ind["gdp"]) * 100

        if ind["debt_to_gdp"] > self.config.debt_warning_threshold and ind["budget_deficit"] > 0:
            self._trigger_event("debt_crisis_warning")

    # -- post-processing -------------------------------------------------------

    def _update_historical_data(self) -> Dict[str, Any]:
        self._update_statistics()
        record = {"month": self.month + 1, "indicators": dict(self.indicators)}
        self.history.append(record)
        return record

    def _update_statistics(self):
        stats = self.statistics
        for group, values in self._statistics_groups().items():
            getattr(stats, f"update_{group}_indicators")(values)

    def _statistics_groups(self) -> Dict[str, Dict[str, float]]:
        ind = self.indicators
        population = self.player.population
        labor_force = self._labor_force()
        previous_cpi = self.statistics.economic.get("consumer_price_index", ind["consumer_price_index"])
        welfare = self.departments[DepartmentType.WELFARE].performance
        health = self.departments[DepartmentType.HEALTHCARE].performance
        education = self.departments[DepartmentType.EDUCATION].performance
        return {
            "economic": {
                "consumption": ind["consumption"],
                "investment": ind["investment"],
                "government_spending": ind["government_spending"],
                "net_exports": ind["exports"] - ind["imports"],
                "unemployed": labor_force * ind["unemployment"],
                "labor_force": labor_force,
                "previous_consumer_price_index": previous_cpi,
                "consumer_price_index": ind["consumer_price_index"],
            },
            "social": {
                "population_below_poverty_line": population * welfare["poverty_rate"],
                "total_population": population,
            },
            "health": {"life_expectancy_at_birth": health["life_expectancy"]},
            "education": {
                "literate_population": population * education["literacy_rate"],
                "total_population": population,
            },
            "environmental": {"total_emissions": ind["gdp"] * self.config.emissions_intensity},
        }

    def _check_economic_events(self):
        ind = self.indicators
        if ind["gdp_growth"] < self.config.recession_threshold:
            self._trigger_event("recession_start")
        if ind["inflation"] > self.config.high_inflation_threshold:
            self._trigger_event("high_inflation")

    def _trigger_event(self, event_type: str):
        ind = self.indicators
        data = {"month": self.month, "country": self.player.name}
        if event_type == "debt_crisis_warning":
            data.update(debt_to_gdp=ind["debt_to_gdp"], budget_deficit=ind["budget_deficit"])
            logger.warning(f"DEBT CRISIS WARNING: debt at {ind['debt_to_gdp']:.1f}% of GDP and rising")
        elif event_type == "recession_start":
            data.update(gdp_growth=ind["gdp_growth"])
            logger.warning(f"RECESSION: output fell {-ind['gdp_growth']:.1%} this month")
        elif event_type == "high_inflation":
            data.update(inflation=ind["inflation"])
            logger.info(f"HIGH INFLATION: {ind['inflation']:.1%}")
        self.events.publish(event_type, data, source="economy")

    # -- external integration ----------------------------------------------------

    def apply_policy_impact(self, kind: PolicyImpactType, values: Dict[str, float]):
        """Queue multiplier changes; they take effect at the start of the next month."""
        if not isinstance(kind, PolicyImpactType):
            logger.debug(f"Ignoring unknown policy impact {kind!r}")
            return
        self.pending_impacts.append({"type": kind.value, "values": dict(values)})

    def apply_player_action(self, action: PlayerAction):
        """
        Apply a one-shot player action between months. Unknown actions are a no-op.

        The action either takes full effect or none: on failure every owned
        component is restored and SimulationError is raised.
        """
        if not self.initialized:
            raise InitializationError("Player actions require an initialised engine")
        if not isinstance(action, (TariffChange, TradeAgreementProposal, MilitaryMove)):
            logger.debug(f"Ignoring unknown player action {action!r}")
            return None

        previous = self.snapshot()
        rng_state = copy.deepcopy(self.rng.bit_generator.state)
        try:
            result, data = self._dispatch_player_action(action)
            self.player_actions.append({"month": self.month, **action_to_dict(action)})
            self.player.record_action(action.type, self.month, **data)
        except Exception as e:
            logger.exception(f"Player action {action.type} failed; rolling back")
            self._restore_state(previous)
            self.rng.bit_generator.state = rng_state
            raise SimulationError(f"Player action {action.type} failed: {e}") from e

        self.events.publish(f"player.{action.type}", data, source=self.player.name)
        return result

    def _dispatch_player_action(self, action: PlayerAction):
        if isinstance(action, TariffChange):
            self.departments.foreign_policy.set_tariff(action.target, action.sector, action.rate)
            result = self.ai.handle_player_action(action)
            data = {"target": action.target, "sector": action.sector, "rate": action.rate,
                    "retaliation": [m.type.value for m in result]}
        elif isinstance(action, TradeAgreementProposal):
            result = self.ai.handle_player_action(action)
            data = {"partner": action.partner, "accepted": result}
        else:
            result = self.ai.handle_player_action(action)
            data = {"target": action.target, "move_kind": action.kind,
                    "victor": result.victor if result is not None else None}
        return result, data

    def get_player_actions(self) -> List[Dict[str, Any]]:
        return [dict(a) for a in self.player_actions]

    def get_economic_state(self) -> Dict[str, Any]:
        return {
            "indicators": dict(self.indicators),
            "sectors": dict(self.player.sectors),
            "trade_partners": self.ai.get_trade_states(),
        }

    def get_country_state(self, name: str) -> Optional[EconomicState]:
        if self.player is not None and name == self.player.name:
            return self.player.economic_state()
        country = self.ai.countries.get(name) if self.ai else None
        return country.economic_state() if country is not None else None

    # -- persistence -------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Serialisable copy of everything the engine owns. Has no side effects."""
        if not self.initialized:
            raise InitializationError("Nothing to snapshot before initialize()")
        return {
            "economy": {
                "month": self.month,
                "indicators": dict(self.indicators),
                "multipliers": dict(self.multipliers),
                "anchor": self.anchor,
                "productivity_base": self._base_productivity_denominator,
                "player": self.player.to_dict(),
                "pending_impacts": copy.deepcopy(self.pending_impacts),
                "player_actions": copy.deepcopy(self.player_actions),
            },
            "companies": self.companies.snapshot(),
            "policies": self.departments.snapshot(),
            "history": copy.deepcopy(list(self.history)),
            "statistics": self.statistics.snapshot(),
            "ai": self.ai.snapshot(),
        }

    def restore(self, snapshot: Dict[str, Any]):
        """Replace the engine state with a snapshot; on any validation error nothing changes."""
        if not isinstance(snapshot, dict):
            raise StateValidationError("Snapshot must be a mapping")
        missing = [k for k in SNAPSHOT_KEYS if k not in snapshot]
        if missing:
            raise StateValidationError(f"Snapshot missing required keys: {missing}")
        self._restore_state(snapshot)

    def _restore_state(self, snapshot: Dict[str, Any]):
        snapshot = copy.deepcopy(snapshot)
        try:
            economy = snapshot["economy"]
            month = int(economy["month"])
            player = Country.from_dict(economy["player"])
            indicators = {**default_indicators(), **economy["indicators"]}
            if not isinstance(snapshot["history"], list):
                raise StateValidationError("History must be a list")
            history = deque(snapshot["history"], maxlen=self.config.history_length)

            companies = CompanyManager(home_country=player.name)
            companies.restore(snapshot["companies"])
            departments = DepartmentManager(self.events, self.config.department_history_length)
            departments.restore(snapshot["policies"])
            statistics = StatisticsManager(self.config.statistics_history_length)
            if "statistics" in snapshot:
                statistics.restore(snapshot["statistics"])
            ai = AIManager(self.config, self.rng, companies, self.events)
            if "ai" in snapshot:
                ai.restore(snapshot["ai"], player)
            elif self.ai is not None:
                ai.restore(self.ai.snapshot(), player)
            else:
                raise StateValidationError("Snapshot has no AI state and the engine has none to keep")
        except StateValidationError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StateValidationError(f"Malformed snapshot: {e}") from e

        self.month = month
        self.indicators = indicators
        self.multipliers = {**self._default_multipliers(), **economy.get("multipliers", {})}
        self.anchor = float(economy.get("anchor", 1.0))
        self._base_productivity_denominator = float(economy.get("productivity_base", 1.0))
        self.pending_impacts = list(economy.get("pending_impacts", []))
        self.player_actions = list(economy.get("player_actions", []))
        self.player = player
        self.companies = companies
        self.departments = departments
        self.statistics = statistics
        self.ai = ai
        self.history = history
        self.sector_metrics = companies.calculate_sector_metrics(player.name)
        self.tax_assessment = self._assess_taxes()
