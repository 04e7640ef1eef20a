"""
Government departments as policy-driven budget and performance simulators.

All six departments share one ``Department`` type. What differs between them
(metrics, KPIs, policy levers, budget cost terms, monthly drift coefficients,
reform effects) lives in ``DepartmentSpec`` tables at the bottom of this module.
"""

import copy
import logging
from collections import deque
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from config import DEFAULT_INCOME_TAX_BANDS
from errors import StateValidationError
from events import EventBus, EventPhase
from game_math import clamp, safe_divide

logger = logging.getLogger(__name__)


class DepartmentType(Enum):
    TAXATION = "taxation"
    DEFENSE = "defense"
    EDUCATION = "education"
    HEALTHCARE = "healthcare"
    WELFARE = "welfare"
    FOREIGN_AFFAIRS = "foreign_affairs"


class ReformType(Enum):
    # Taxation
    INCREASE_COMPLIANCE = "increaseCompliance"
    MODERNIZE_COLLECTION = "modernizeCollection"
    # Defense
    INCREASE_READINESS = "increaseReadiness"
    BOOST_TECH_ADVANCEMENT = "boostTechAdvancement"
    # Education
    INCREASE_LITERACY = "increaseLiteracy"
    BOOST_RESEARCH_OUTPUT = "boostResearchOutput"
    EXPAND_VOCATIONAL_TRAINING = "expandVocationalTraining"
    # Healthcare
    PRIVATIZATION = "privatization"
    MENTAL_HEALTH_FOCUS = "mentalHealthFocus"
    # Welfare
    INCREASE_POVERTY_REDUCTION = "increasePovertyReduction"
    BOOST_EMPLOYMENT_SUPPORT = "boostEmploymentSupport"
    EXPAND_HOUSING_ASSISTANCE = "expandHousingAssistance"
    # Foreign affairs
    INCREASE_DIPLOMATIC_RELATIONS = "increaseDiplomaticRelations"
    BOOST_TRADE_AGREEMENTS = "boostTradeAgreements"
    EXPAND_CULTURAL_EXCHANGE = "expandCulturalExchange"


# -- configuration records ---------------------------------------------

@dataclass(frozen=True)
class CostTerm:
    """One additive budget line: metric x (optional second metric) x unit cost."""
    metric: str
    times: Optional[str] = None
    unit_cost: float = 1.0


@dataclass(frozen=True)
class Adjustment:
    """A bounded change to one field of a department (``performance``, ``policies`` or ``metrics``)."""
    group: str
    key: str
    delta: float = 0.0
    lo: float = 0.0
    hi: float = 1.0
    value: Any = None  # assign instead of add when set


@dataclass(frozen=True)
class Reform:
    adjustments: Tuple[Adjustment, ...]
    normalize_policies: bool = False


@dataclass(frozen=True)
class DriftRule:
    """
    Monthly change to a performance field.

    ``shortfall``: delta = coefficient * (1 - source / reference)
    ``load``:      delta = coefficient * source / reference
    """
    target: str
    coefficient: float
    source: str
    reference: float = 1.0
    mode: str = "shortfall"
    source_group: str = "metrics"


@dataclass(frozen=True)
class PolicyRule:
    """Adjustment applied each month while a policy is on (or above ``threshold``)."""
    policy: str
    adjustment: Adjustment
    threshold: Optional[float] = None


@dataclass(frozen=True)
class DepartmentSpec:
    kind: DepartmentType
    name: str
    metrics: Dict[str, float]
    performance: Dict[str, float]
    policies: Dict[str, Any]
    cost_terms: Tuple[CostTerm, ...]
    salary_metric: str
    overhead_rate: float = 0.0
    budget_multiplier: Optional[str] = None
    drift_rules: Tuple[DriftRule, ...] = ()
    policy_rules: Tuple[PolicyRule, ...] = ()
    reforms: Dict[ReformType, Reform] = field(default_factory=dict)
    derived_performance: Tuple[Tuple[str, Callable[["Department"], float]], ...] = ()
    unbounded_performance: Tuple[str, ...] = ()
    metric_bounds: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    metric_effects: Dict[str, Callable[["Department"], None]] = field(default_factory=dict)
    metric_events: Dict[str, str] = field(default_factory=dict)


# -- generic department -------------------------------------------------

class Department:
    """A policy domain: metrics drive the budget, policies and metrics drive performance."""

    def __init__(self, spec: DepartmentSpec, events: Optional[EventBus] = None,
                 history_length: int = 120):
        self.spec = spec
        self.events = events
        self.metrics: Dict[str, float] = dict(spec.metrics)
        self.performance: Dict[str, float] = dict(spec.performance)
        self.policies: Dict[str, Any] = dict(spec.policies)
        self.historical_data: Deque[Dict[str, Any]] = deque(maxlen=history_length)
        self.budget = self.calculate_budget()

    @property
    def kind(self) -> DepartmentType:
        return self.spec.kind

    @property
    def name(self) -> str:
        return self.spec.name

    def calculate_budget(self) -> float:
        """Annual budget; depends on nothing but the current metrics."""
        base = 0.0
        for term in self.spec.cost_terms:
            amount = self.metrics[term.metric] * term.unit_cost
            if term.times is not None:
                amount *= self.metrics[term.times]
            base += amount
        total = base * (1 + self.spec.overhead_rate)
        if self.spec.budget_multiplier is not None:
            total *= self.metrics[self.spec.budget_multiplier]
        return total

    def get_monthly_cost(self) -> float:
        return self.calculate_budget() / 12

    def adjust_salaries(self, pct_change: float):
        """Scale the department's salary metric by ``1 + pct_change`` (0.05 = +5%)."""
        self.metrics[self.spec.salary_metric] *= 1 + pct_change
        self.budget = self.calculate_budget()

    def set_metric(self, key: str, value: float) -> bool:
        if key not in self.metrics:
            logger.debug(f"{self.name}: ignoring unknown metric {key!r}")
            return False
        if key in self.spec.metric_bounds:
            lo, hi = self.spec.metric_bounds[key]
            value = clamp(value, lo, hi)
        self.metrics[key] = value
        effect = self.spec.metric_effects.get(key)
        if effect is not None:
            effect(self)
        self.budget = self.calculate_budget()

        event_type = self.spec.metric_events.get(key)
        if event_type and self.events is not None:
            self.events.queue_event(event_type, {key: value}, phase=EventPhase.MAIN,
                                    source=self.kind.value)
        return True

    def set_policy(self, key: str, value: Any) -> bool:
        if key not in self.policies:
            logger.debug(f"{self.name}: ignoring unknown policy {key!r}")
            return False
        self.policies[key] = value
        return True

    def implement_reform(self, reform: ReformType) -> bool:
        """One-shot reform. Reforms that do not belong to this department change nothing."""
        entry = self.spec.reforms.get(reform)
        if entry is None:
            logger.debug(f"{self.name}: reform {reform} not applicable")
            return False
        for adjustment in entry.adjustments:
            self._apply(adjustment)
        if entry.normalize_policies:
            self._normalize_policies()
        self.budget = self.calculate_budget()
        return True

    def simulate_month(self, month: int = 0):
        for rule in self.spec.drift_rules:
            source = getattr(self, rule.source_group)[rule.source]
            if rule.mode == "load":
                delta = rule.coefficient * safe_divide(source, rule.reference)
            else:
                delta = rule.coefficient * (1 - safe_divide(source, rule.reference))
            self.performance[rule.target] += delta

        for rule in self.spec.policy_rules:
            setting = self.policies.get(rule.policy)
            active = bool(setting) if rule.threshold is None else setting > rule.threshold
            if active:
                self._apply(rule.adjustment)

        for key, fn in self.spec.derived_performance:
            self.performance[key] = fn(self)

        for key, value in self.performance.items():
            if key not in self.spec.unbounded_performance:
                self.performance[key] = clamp(value, 0.0, 1.0)

        self.budget = self.calculate_budget()
        self.historical_data.append({
            "month": month,
            "metrics": dict(self.metrics),
            "performance": dict(self.performance),
        })

    def _apply(self, adjustment: Adjustment):
        target = getattr(self, adjustment.group)
        if adjustment.value is not None:
            target[adjustment.key] = adjustment.value
        else:
            target[adjustment.key] = clamp(target[adjustment.key] + adjustment.delta,
                                           adjustment.lo, adjustment.hi)

    def _normalize_policies(self):
        numeric = {k: v for k, v in self.policies.items()
                   if isinstance(v, (int, float)) and not isinstance(v, bool)}
        total = sum(numeric.values())
        for key, value in numeric.items():
            self.policies[key] = safe_divide(value, total)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": dict(self.metrics),
            "performance": dict(self.performance),
            "policies": dict(self.policies),
            "historical_data": copy.deepcopy(list(self.historical_data)),
            "budget": self.budget,
        }

    def load_dict(self, data: Dict[str, Any]):
        for key in ("metrics", "performance", "policies"):
            if not isinstance(data.get(key), dict):
                raise StateValidationError(f"{self.name} snapshot missing {key!r}")
        for key, expected in (("metrics", self.spec.metrics), ("policies", self.spec.policies)):
            if set(data[key]) != set(expected):
                missing = sorted(set(expected) - set(data[key]))
                unknown = sorted(set(data[key]) - set(expected))
                raise StateValidationError(f"{self.name} snapshot {key} do not match the department: "
                                           f"missing {missing}, unknown {unknown}")
        self.metrics = dict(data["metrics"])
        self.performance = dict(data["performance"])
        self.policies = dict(data["policies"])
        self.historical_data = deque(copy.deepcopy(data.get("historical_data", [])),
                                     maxlen=self.historical_data.maxlen)
        self.budget = self.calculate_budget()

    @classmethod
    def from_dict(cls, spec: DepartmentSpec, data: Dict[str, Any],
                  events: Optional[EventBus] = None, history_length: int = 120) -> "Department":
        department = cls(spec, events, history_length)
        department.load_dict(data)
        return department


# -- taxation rules -----------------------------------------------------

class TaxCode:
    """Statutory tax rates (in percent) and the revenue each produces."""

    def __init__(self, income_tax_bands: Optional[List[Tuple[float, float]]] = None):
        self.income_tax_bands = list(income_tax_bands or DEFAULT_INCOME_TAX_BANDS)
        self.corporate_tax = 20.0
        self.sales_tax = 5.0
        self.property_tax = 1.0
        self.capital_gains_tax = 15.0

    def set_income_tax_bands(self, bands: List[Tuple[float, float]]):
        """Bands are (threshold, marginal rate) pairs; stored highest threshold first."""
        self.income_tax_bands = sorted(bands, key=lambda band: band[0], reverse=True)

    def set_corporate_tax_rate(self, rate: float):
        self.corporate_tax = rate

    def set_sales_tax_rate(self, rate: float):
        self.sales_tax = rate

    def set_property_tax_rate(self, rate: float):
        self.property_tax = rate

    def set_capital_gains_tax_rate(self, rate: float):
        self.capital_gains_tax = rate

    def calculate_income_tax(self, income: float) -> float:
        tax = 0.0
        for threshold, rate in self.income_tax_bands:
            if income > threshold:
                tax += (income - threshold) * rate / 100
                income = threshold
        return tax

    def calculate_corporate_tax(self, profit: float) -> float:
        return max(0.0, profit) * self.corporate_tax / 100

    def calculate_sales_tax(self, amount: float) -> float:
        return amount * self.sales_tax / 100

    def calculate_property_tax(self, value: float) -> float:
        return value * self.property_tax / 100

    def calculate_capital_gains_tax(self, gain: float) -> float:
        return max(0.0, gain) * self.capital_gains_tax / 100

    def get_total_tax_revenue(self, incomes, profits, sales, properties, capital_gains) -> float:
        return (sum(self.calculate_income_tax(i) for i in incomes)
                + sum(self.calculate_corporate_tax(p) for p in profits)
                + sum(self.calculate_sales_tax(s) for s in sales)
                + sum(self.calculate_property_tax(p) for p in properties)
                + sum(self.calculate_capital_gains_tax(g) for g in capital_gains))


@dataclass
class TaxAssessment:
    """Annual tax take for one month's economy plus the household income left after tax."""
    income_tax: float
    corporate_tax: float
    sales_tax: float
    property_tax: float
    capital_gains_tax: float
    disposable_income: float

    @property
    def total(self) -> float:
        return (self.income_tax + self.corporate_tax + self.sales_tax
                + self.property_tax + self.capital_gains_tax)

    @property
    def monthly_revenue(self) -> float:
        return self.total / 12


# -- policy levers read by the economy engine ---------------------------

@dataclass
class MonetaryPolicy:
    interest_rate: float = 4.0  # percent, annual
    inflation_target: float = 0.02


@dataclass
class LaborPolicy:
    min_wage: float = 11.44


@dataclass
class FinancePolicy:
    credit_availability: float = 0.9


@dataclass
class ForeignPolicy:
    # partner -> sector -> tariff rate (fraction)
    tariffs: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def set_tariff(self, partner: str, sector: str, rate: float):
        self.tariffs.setdefault(partner, {})[sector] = clamp(rate, 0.0, 1.0)

    def average_tariff(self, partner: str) -> float:
        rates = self.tariffs.get(partner, {})
        return safe_divide(sum(rates.values()), len(rates))


class DepartmentManager:
    """Owns the six departments, the tax code and the government's policy levers."""

    def __init__(self, events: Optional[EventBus] = None, history_length: int = 120):
        self.events = events
        self.history_length = history_length
        self.departments: Dict[DepartmentType, Department] = {
            kind: Department(spec, events, history_length) for kind, spec in DEPARTMENT_SPECS.items()
        }
        self.tax_code = TaxCode()
        self.monetary_policy = MonetaryPolicy()
        self.labor_policy = LaborPolicy()
        self.finance_policy = FinancePolicy()
        self.foreign_policy = ForeignPolicy()
        self.industry_subsidies: Dict[str, float] = {}
        self.tariff_revenue = 0.0  # annualised, set by the trade phase

    def __getitem__(self, kind: DepartmentType) -> Department:
        return self.departments[kind]

    @property
    def taxation(self) -> Department:
        return self.departments[DepartmentType.TAXATION]

    @property
    def total_spending(self) -> float:
        """Monthly cost of all departments."""
        return sum(d.get_monthly_cost() for d in self.departments.values())

    @property
    def total_government_spending(self) -> float:
        """Annual budget of all departments."""
        return sum(d.calculate_budget() for d in self.departments.values())

    @property
    def collection_rate(self) -> float:
        perf = self.taxation.performance
        return perf["compliance_rate"] * perf["collection_efficiency"]

    def assess_taxes(self, household_income: float, workers: float, corporate_profits: float,
                     consumption: float, property_value: float, capital_gains: float) -> TaxAssessment:
        """Tax due on annual flows, scaled by how much the tax authority actually collects."""
        rate = self.collection_rate
        avg_income = safe_divide(household_income, workers)
        income_tax = workers * self.tax_code.calculate_income_tax(avg_income) * rate
        return TaxAssessment(
            income_tax=income_tax,
            corporate_tax=self.tax_code.calculate_corporate_tax(corporate_profits) * rate,
            sales_tax=self.tax_code.calculate_sales_tax(consumption) * rate,
            property_tax=self.tax_code.calculate_property_tax(property_value) * rate,
            capital_gains_tax=self.tax_code.calculate_capital_gains_tax(capital_gains) * rate,
            disposable_income=household_income - income_tax,
        )

    def debt_interest_payments(self, debt: float) -> float:
        """Monthly interest on outstanding government debt."""
        return max(0.0, debt) * self.monetary_policy.interest_rate / 100 / 12

    def implement_reform(self, kind: DepartmentType, reform: ReformType) -> bool:
        return self.departments[kind].implement_reform(reform)

    def simulate_month(self, month: int):
        for department in self.departments.values():
            department.simulate_month(month)

    def performance_summary(self) -> Dict[str, Dict[str, float]]:
        return {kind.value: dict(d.performance) for kind, d in self.departments.items()}

    def snapshot(self) -> Dict[str, Any]:
        return {
            "departments": {kind.value: d.to_dict() for kind, d in self.departments.items()},
            "tax_code": {
                "income_tax_bands": [list(b) for b in self.tax_code.income_tax_bands],
                "corporate_tax": self.tax_code.corporate_tax,
                "sales_tax": self.tax_code.sales_tax,
                "property_tax": self.tax_code.property_tax,
                "capital_gains_tax": self.tax_code.capital_gains_tax,
            },
            "monetary_policy": asdict(self.monetary_policy),
            "labor_policy": asdict(self.labor_policy),
            "finance_policy": asdict(self.finance_policy),
            "tariffs": copy.deepcopy(self.foreign_policy.tariffs),
            "industry_subsidies": dict(self.industry_subsidies),
            "tariff_revenue": self.tariff_revenue,
        }

    def restore(self, data: Dict[str, Any]):
        required = ("departments", "tax_code", "monetary_policy", "labor_policy",
                    "finance_policy", "tariffs", "industry_subsidies")
        missing = [k for k in required if k not in data]
        if missing:
            raise StateValidationError(f"Policy snapshot missing keys: {missing}")
        unknown = set(data["departments"]) - {k.value for k in DepartmentType}
        if unknown or len(data["departments"]) != len(DepartmentType):
            raise StateValidationError(f"Policy snapshot has unexpected departments: {sorted(data['departments'])}")

        # Build everything first so a bad entry leaves the current state untouched
        departments = {
            kind: Department.from_dict(DEPARTMENT_SPECS[kind], data["departments"][kind.value], self.events,
                                  self.history_length)
            for kind in DepartmentType
        }
        tax = data["tax_code"]
        tax_code = TaxCode([tuple(b) for b in tax["income_tax_bands"]])
        tax_code.corporate_tax = tax["corporate_tax"]
        tax_code.sales_tax = tax["sales_tax"]
        tax_code.property_tax = tax["property_tax"]
        tax_code.capital_gains_tax = tax["capital_gains_tax"]

        self.departments = departments
        self.tax_code = tax_code
        self.monetary_policy = MonetaryPolicy(**data["monetary_policy"])
        self.labor_policy = LaborPolicy(**data["labor_policy"])
        self.finance_policy = FinancePolicy(**data["finance_policy"])
        self.foreign_policy = ForeignPolicy(copy.deepcopy(data["tariffs"]))
        self.industry_subsidies = dict(data["industry_subsidies"])
        self.tariff_revenue = data.get("tariff_revenue", 0.0)


# -- department tables --------------------------------------------------

def _perf(key, delta, lo=0.0, hi=1.0):
    return Adjustment("performance", key, delta, lo, hi)


def _healthcare_life_expectancy(d: Department) -> float:
    funding_impact = (d.metrics["subsidy_percentage"] - 0.8) * 2
    doctor_impact = (d.metrics["doctors"] - 150000) / 50000
    return 80 + funding_impact + doctor_impact


def _healthcare_satisfaction(d: Department) -> float:
    waiting_factor = (8 - d.performance["waiting_times"]) / 8
    cost_factor = d.metrics["subsidy_percentage"]
    return clamp((waiting_factor * 0.6 + cost_factor * 0.4) * 0.9, 0.5, 0.95)


def _healthcare_waiting_times(d: Department) -> float:
    demand = 0.8 + (1 - d.metrics["subsidy_percentage"]) * 0.3
    capacity = d.metrics["doctors"] / 150000
    return clamp(4 * safe_divide(demand, capacity, default=26.0), 2, 26)


def _healthcare_emergency_response(d: Department):
    doctors_per_thousand = d.metrics["doctors"] / 67000  # 67M population
    d.performance["emergency_response"] = max(4.0, 10 - doctors_per_thousand * 0.8)


def _healthcare_free_at_point(d: Department):
    d.policies["free_at_point_of_use"] = d.metrics["subsidy_percentage"] == 1


def _ratio_effect(performance_key: str, metric: str, reference: float, invert: bool = False):
    def effect(d: Department):
        ratio = d.metrics[metric] / reference
        d.performance[performance_key] = clamp(1 - ratio if invert else ratio, 0.0, 1.0)
    return effect


DEPARTMENT_SPECS: Dict[DepartmentType, DepartmentSpec] = {
    DepartmentType.TAXATION: DepartmentSpec(
        kind=DepartmentType.TAXATION,
        name="Department of Taxation",
        metrics={"tax_officers": 60000, "officer_salary": 32000,
                 "collection_systems": 1.5e9, "compliance_budget": 0.8e9},
        performance={"compliance_rate": 0.92, "collection_efficiency": 0.85},
        policies={"audit_intensity": 0.1, "digital_filing": True},
        cost_terms=(CostTerm("tax_officers", "officer_salary"), CostTerm("collection_systems"),
                    CostTerm("compliance_budget")),
        salary_metric="officer_salary",
        drift_rules=(
            DriftRule("compliance_rate", -0.002, "tax_officers", 70000),
            DriftRule("collection_efficiency", -0.003, "collection_systems", 2e9),
        ),
        policy_rules=(
            PolicyRule("digital_filing", _perf("collection_efficiency", 0.002)),
            PolicyRule("audit_intensity", _perf("compliance_rate", 0.002), threshold=0.15),
        ),
        reforms={
            ReformType.INCREASE_COMPLIANCE: Reform((_perf("compliance_rate", 0.03),)),
            ReformType.MODERNIZE_COLLECTION: Reform((_perf("collection_efficiency", 0.05),)),
        },
    ),
    DepartmentType.DEFENSE: DepartmentSpec(
        kind=DepartmentType.DEFENSE,
        name="Department of Defense",
        metrics={"soldiers": 150000, "soldier_salary": 30000, "equipment_budget": 20e9,
                 "research_and_development": 5e9, "bases": 50, "international_missions": 5},
        performance={"defense_readiness": 0.8, "international_influence": 0.7,
                     "technological_advancement": 0.6},
        policies={"conscription": False, "international_aid": 0.1, "defense_contracts": 0.2},
        cost_terms=(CostTerm("soldiers", "soldier_salary"), CostTerm("equipment_budget"),
                    CostTerm("research_and_development")),
        salary_metric="soldier_salary",
        drift_rules=(
            DriftRule("defense_readiness", -0.01, "soldiers", 200000),
            DriftRule("international_influence", -0.005, "international_missions", mode="load"),
            DriftRule("technological_advancement", -0.005, "research_and_development", 1e10, mode="load"),
        ),
        policy_rules=(
            PolicyRule("conscription", Adjustment("metrics", "soldiers", 10000, 0, 200000)),
        ),
        reforms={
            ReformType.INCREASE_READINESS: Reform((_perf("defense_readiness", 0.1),)),
            ReformType.BOOST_TECH_ADVANCEMENT: Reform((_perf("technological_advancement", 0.1),)),
        },
        metric_effects={"soldiers": _ratio_effect("defense_readiness", "soldiers", 200000)},
    ),
    DepartmentType.EDUCATION: DepartmentSpec(
        kind=DepartmentType.EDUCATION,
        name="Department of Education",
        metrics={"teachers": 500000, "teacher_salary": 35000, "school_budget": 30e9,
                 "research_funding": 5e9, "schools": 20000, "universities": 150},
        performance={"literacy_rate": 0.99, "graduation_rate": 0.85,
                     "international_ranking": 0.8, "research_output": 0.7},
        policies={"free_education": True, "scholarship_programs": 0.15, "vocational_training": 0.2},
        cost_terms=(CostTerm("teachers", "teacher_salary"), CostTerm("school_budget"),
                    CostTerm("research_funding")),
        salary_metric="teacher_salary",
        drift_rules=(
            DriftRule("literacy_rate", -0.001, "teachers", 600000),
            DriftRule("graduation_rate", -0.002, "schools", 25000),
            DriftRule("international_ranking", -0.003, "universities", 200),
            DriftRule("research_output", -0.005, "research_funding", 1e10, mode="load"),
        ),
        policy_rules=(
            PolicyRule("free_education", _perf("literacy_rate", 0.01)),
        ),
        reforms={
            ReformType.INCREASE_LITERACY: Reform((_perf("literacy_rate", 0.05),)),
            ReformType.BOOST_RESEARCH_OUTPUT: Reform((_perf("research_output", 0.1),)),
            ReformType.EXPAND_VOCATIONAL_TRAINING: Reform(
                (Adjustment("policies", "vocational_training", 0.05, 0.0, 0.5),)),
        },
        metric_effects={"teachers": _ratio_effect("literacy_rate", "teachers", 600000)},
    ),
    DepartmentType.HEALTHCARE: DepartmentSpec(
        kind=DepartmentType.HEALTHCARE,
        name="National Health Service",
        metrics={"doctors": 150000, "doctor_salary": 45000, "subsidy_percentage": 1.0,
                 "facilities": 1200, "medical_schools": 33, "pharmaceutical_subsidy": 0.2},
        performance={"life_expectancy": 81.3, "patient_satisfaction": 0.76,
                     "emergency_response": 8.2, "preventable_deaths": 12.3, "waiting_times": 4.0},
        policies={"free_at_point_of_use": True, "dental_coverage": 0.3,
                  "mental_health_funding": 0.15, "private_practice_allowed": True},
        cost_terms=(CostTerm("doctors", "doctor_salary"), CostTerm("facilities", unit_cost=2.5e6)),
        salary_metric="doctor_salary",
        overhead_rate=0.12,  # research funding on top of staff and facilities
        budget_multiplier="subsidy_percentage",
        reforms={
            ReformType.PRIVATIZATION: Reform((
                Adjustment("policies", "private_practice_allowed", value=True),
                Adjustment("metrics", "subsidy_percentage", -0.2, 0.6, 1.0),
            )),
            ReformType.MENTAL_HEALTH_FOCUS: Reform(
                (Adjustment("policies", "mental_health_funding", 0.05),), normalize_policies=True),
        },
        derived_performance=(
            ("life_expectancy", _healthcare_life_expectancy),
            ("patient_satisfaction", _healthcare_satisfaction),
            ("waiting_times", _healthcare_waiting_times),
        ),
        unbounded_performance=("life_expectancy", "emergency_response", "preventable_deaths",
                               "waiting_times"),
        metric_bounds={"doctors": (100000, 300000), "subsidy_percentage": (0.0, 1.0)},
        metric_effects={"doctors": _healthcare_emergency_response,
                        "subsidy_percentage": _healthcare_free_at_point},
        metric_events={"doctors": "healthcare.staffing_change",
                       "subsidy_percentage": "healthcare.funding_change"},
    ),
    DepartmentType.WELFARE: DepartmentSpec(
        kind=DepartmentType.WELFARE,
        name="Department of Welfare",
        metrics={"unemployment_benefits": 10e9, "disability_benefits": 5e9, "pension_fund": 20e9,
                 "housing_assistance": 8e9, "social_workers": 100000, "social_worker_salary": 30000},
        performance={"poverty_rate": 0.15, "unemployment_rate": 0.06,
                     "satisfaction_rate": 0.7, "homelessness_rate": 0.02},
        policies={"universal_basic_income": False, "unemployment_insurance": 0.5,
                  "disability_support": 0.3, "housing_subsidies": 0.2},
        cost_terms=(CostTerm("unemployment_benefits"), CostTerm("disability_benefits"),
                    CostTerm("pension_fund"), CostTerm("housing_assistance"),
                    CostTerm("social_workers", "social_worker_salary")),
        salary_metric="social_worker_salary",
        drift_rules=(
            DriftRule("poverty_rate", 0.001, "unemployment_benefits", 12e9),
            DriftRule("unemployment_rate", 0.002, "social_workers", 120000),
            DriftRule("homelessness_rate", 0.003, "housing_assistance", 10e9),
            DriftRule("satisfaction_rate", -0.002, "poverty_rate", source_group="performance"),
        ),
        policy_rules=(
            PolicyRule("universal_basic_income", _perf("poverty_rate", -0.03)),
        ),
        reforms={
            ReformType.INCREASE_POVERTY_REDUCTION: Reform((_perf("poverty_rate", -0.02),)),
            ReformType.BOOST_EMPLOYMENT_SUPPORT: Reform((_perf("unemployment_rate", -0.01),)),
            ReformType.EXPAND_HOUSING_ASSISTANCE: Reform(
                (Adjustment("policies", "housing_subsidies", 0.05, 0.0, 0.5),)),
        },
        metric_effects={"social_workers": _ratio_effect("poverty_rate", "social_workers", 120000, invert=True)},
    ),
    DepartmentType.FOREIGN_AFFAIRS: DepartmentSpec(
        kind=DepartmentType.FOREIGN_AFFAIRS,
        name="Department of Foreign Affairs",
        metrics={"diplomats": 3000, "diplomat_salary": 80000, "embassies": 100,
                 "foreign_aid_budget": 10e9, "trade_agreements": 5, "international_projects": 20},
        performance={"diplomatic_relations": 0.8, "international_influence": 0.75,
                     "trade_balance": 0.6, "conflict_resolution": 0.7},
        policies={"foreign_aid": 0.1, "trade_policy": 0.2, "cultural_exchange": 0.15},
        cost_terms=(CostTerm("foreign_aid_budget"), CostTerm("embassies", unit_cost=5e6),
                    CostTerm("diplomats", "diplomat_salary")),
        salary_metric="diplomat_salary",
        drift_rules=(
            DriftRule("diplomatic_relations", -0.002, "diplomats", 4000),
            DriftRule("international_influence", -0.003, "embassies", 120),
            DriftRule("trade_balance", -0.005, "trade_agreements", 10),
            DriftRule("conflict_resolution", -0.004, "international_projects", 30),
        ),
        policy_rules=(
            PolicyRule("foreign_aid", _perf("international_influence", 0.02), threshold=0.1),
        ),
        reforms={
            ReformType.INCREASE_DIPLOMATIC_RELATIONS: Reform((_perf("diplomatic_relations", 0.05),)),
            ReformType.BOOST_TRADE_AGREEMENTS: Reform(
                (Adjustment("metrics", "trade_agreements", 1, 0, 10),)),
            ReformType.EXPAND_CULTURAL_EXCHANGE: Reform(
                (Adjustment("policies", "cultural_exchange", 0.05, 0.0, 0.5),)),
        },
        metric_effects={"diplomats": _ratio_effect("diplomatic_relations", "diplomats", 4000)},
    ),
}
