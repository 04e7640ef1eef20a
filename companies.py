"""
Corporate ledger and monthly market simulation.
"""

import copy
import logging
import numbers
from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, Iterable, List, Optional

from config import SECTOR_GROWTH_RATES, DEFAULT_SECTOR_GROWTH
from errors import LoadError, StateValidationError
from game_math import clamp, safe_divide

logger = logging.getLogger(__name__)

REQUIRED_COMPANY_KEYS = (
    "name", "sector", "revenue", "profit", "employees",
    "market_cap", "subsidies", "market_share",
)
NUMERIC_COMPANY_KEYS = ("revenue", "profit", "employees", "market_cap", "subsidies", "market_share")

DEFAULT_AVG_SALARY = 35000.0
MAINTENANCE_RATE = 0.05  # of assets


@dataclass
class Company:
    name: str
    sector: str
    country: str = ""
    state_owned: bool = False
    revenue: float = 0.0
    expenses: float = 0.0
    profit: float = 0.0
    investment: float = 0.0
    employees: float = 0.0
    avg_salary: float = DEFAULT_AVG_SALARY
    assets: float = 0.0
    market_share: float = 0.0
    base_revenue: float = 0.0
    base_expenses: float = 0.0
    market_cap: float = 0.0
    subsidies: float = 0.0

    @classmethod
    def from_record(cls, record: Dict[str, Any], default_country: str = "") -> "Company":
        """Build a company from a data-source record, rejecting malformed input."""
        if not isinstance(record, dict):
            raise LoadError(f"Company record must be a mapping, got {type(record).__name__}")
        missing = [k for k in REQUIRED_COMPANY_KEYS if k not in record]
        if missing:
            raise LoadError(f"Company record {record.get('name', '?')!r} missing keys: {missing}")
        if not isinstance(record["name"], str) or not record["name"]:
            raise LoadError("Company name must be a non-empty string")
        if not isinstance(record["sector"], str) or not record["sector"]:
            raise LoadError(f"Company {record['name']!r} has invalid sector")
        for key in NUMERIC_COMPANY_KEYS:
            value = record[key]
            if not isinstance(value, numbers.Real) or isinstance(value, bool):
                raise LoadError(f"Company {record['name']!r} field {key!r} must be numeric")

        revenue = float(record["revenue"])
        profit = float(record["profit"])
        employees = float(record["employees"])
        market_cap = float(record["market_cap"])
        avg_salary = float(record.get("avg_salary", DEFAULT_AVG_SALARY))
        assets = float(record.get("assets", market_cap * 0.5))
        investment = float(record.get("investment", market_cap * 0.05))

        # Non-labour operating costs implied by the reported profit
        base_expenses = max(0.0, revenue - profit - employees * avg_salary - assets * MAINTENANCE_RATE)

        return cls(
            name=record["name"],
            sector=record["sector"],
            country=str(record.get("country", default_country)),
            state_owned=bool(record.get("state_owned", False)),
            revenue=revenue,
            expenses=revenue - profit,
            profit=profit,
            investment=investment,
            employees=employees,
            avg_salary=avg_salary,
            assets=assets,
            market_share=clamp(float(record["market_share"]), 0.0, 1.0),
            base_revenue=revenue,
            base_expenses=base_expenses,
            market_cap=market_cap,
            subsidies=float(record["subsidies"]),
        )


@dataclass
class MarketConditions:
    """Monthly inputs to the market simulation. Rates are percentages."""
    inflation: float
    interest_rate: float
    consumer_demand: float
    sector_subsidies: Dict[str, float] = field(default_factory=dict)
    subsidy_country: Optional[str] = None  # only this country's firms receive subsidies


@dataclass
class SectorMetrics:
    total_revenue: float = 0.0
    total_profit: float = 0.0
    total_investment: float = 0.0
    total_employees: float = 0.0
    market_share: float = 0.0


def sector_growth_rate(sector: str) -> float:
    return SECTOR_GROWTH_RATES.get(sector, DEFAULT_SECTOR_GROWTH)


class CompanyManager:
    """Owns every company and the aggregates the economy engine reads."""

    def __init__(self, home_country: Optional[str] = None):
        self.home_country = home_country
        self.companies: Dict[str, Company] = {}
        self.sector_employment_rates: Dict[str, float] = {}
        self.total_investment = 0.0
        self.state_owned_enterprise_profits = 0.0
        self.total_subsidies = 0.0

    def initialize(self, records: Iterable[Dict[str, Any]]):
        """Index companies by unique name; the whole load fails on any bad record."""
        companies: Dict[str, Company] = {}
        for record in records:
            company = Company.from_record(record, default_country=self.home_country or "")
            if company.name in companies:
                raise LoadError(f"Duplicate company name: {company.name!r}")
            companies[company.name] = company
        self.companies = companies
        self._recalculate_aggregates()
        logger.info(f"Company ledger loaded: {len(companies)} companies in "
                    f"{len({c.sector for c in companies.values()})} sectors")

    def _home_companies(self) -> List[Company]:
        if self.home_country is None:
            return list(self.companies.values())
        return [c for c in self.companies.values() if c.country == self.home_country]

    def _recalculate_aggregates(self):
        home = self._home_companies()

        sector_employment: Dict[str, float] = {}
        for company in home:
            sector_employment[company.sector] = sector_employment.get(company.sector, 0.0) + company.employees
        total_employment = sum(sector_employment.values())
        self.sector_employment_rates = {
            sector: safe_divide(employed, total_employment) for sector, employed in sector_employment.items()
        }
        self.total_investment = sum(c.investment for c in home)
        self.state_owned_enterprise_profits = sum(c.profit for c in home if c.state_owned)
        self.total_subsidies = sum(c.subsidies for c in home)

    def calculate_sector_metrics(self, country: Optional[str] = None) -> Dict[str, SectorMetrics]:
        """Per-sector totals; market share is the sector's slice of total revenue."""
        metrics: Dict[str, SectorMetrics] = {}
        for company in self.companies.values():
            if country is not None and company.country != country:
                continue
            m = metrics.setdefault(company.sector, SectorMetrics())
            m.total_revenue += company.revenue
            m.total_profit += company.profit
            m.total_investment += company.investment
            m.total_employees += company.employees

        total_market_revenue = sum(m.total_revenue for m in metrics.values())
        for m in metrics.values():
            m.market_share = safe_divide(m.total_revenue, total_market_revenue)
        return metrics

    def run_market_simulations(self, conditions: MarketConditions):
        demand_factor = 1 + conditions.consumer_demand / 100
        inflation_factor = 1 + conditions.inflation / 100
        interest_factor = 1 + conditions.interest_rate / 100

        for company in self.companies.values():
            subsidised = conditions.subsidy_country is None or company.country == conditions.subsidy_country
            subsidy = conditions.sector_subsidies.get(company.sector, 0.0) if subsidised else 0.0

            company.revenue = (company.base_revenue * demand_factor * inflation_factor
                               + company.base_revenue * sector_growth_rate(company.sector))
            company.expenses = (company.base_expenses * inflation_factor
                                + company.employees * company.avg_salary * inflation_factor
                                + company.assets * MAINTENANCE_RATE)
            company.profit = company.revenue - (company.expenses + company.investment * interest_factor) + subsidy
            company.subsidies = subsidy

            company.investment *= 1 + conditions.interest_rate / 100
            company.employees *= 1 + conditions.inflation / 100
            # Shares only ever grow here and are not renormalised per sector
            company.market_share = min(company.market_share + conditions.consumer_demand / 100, 1.0)

        self._recalculate_aggregates()

    # -- queries used by the AI ----------------------------------------

    def get_sector_companies(self, sector: str, country: Optional[str] = None) -> List[Company]:
        return [c for c in self.companies.values()
                if c.sector == sector and (country is None or c.country == country)]

    def get_global_market_shares(self) -> Dict[str, float]:
        """Each country's share of total corporate revenue."""
        revenue_by_country: Dict[str, float] = {}
        for company in self.companies.values():
            revenue_by_country[company.country] = revenue_by_country.get(company.country, 0.0) + company.revenue
        total = sum(revenue_by_country.values())
        return {country: safe_divide(rev, total) for country, rev in revenue_by_country.items()}

    def sector_competitiveness(self, country: str) -> Dict[str, float]:
        """Per sector, the country's share of global sector revenue."""
        totals: Dict[str, float] = {}
        own: Dict[str, float] = {}
        for company in self.companies.values():
            totals[company.sector] = totals.get(company.sector, 0.0) + company.revenue
            if company.country == country:
                own[company.sector] = own.get(company.sector, 0.0) + company.revenue
        return {sector: safe_divide(own.get(sector, 0.0), total) for sector, total in totals.items()}

    def apply_company_strategy(self, name: str, strategy) -> bool:
        """Apply a competitive strategy (price, quality, marketing, R&D) to one company."""
        company = self.companies.get(name)
        if company is None:
            logger.debug(f"Strategy for unknown company {name!r} ignored")
            return False

        company.base_revenue *= 1 + strategy.price_adjustment + strategy.marketing_boost * 0.2 \
            + strategy.quality_investment * 0.1
        company.base_expenses *= 1 + strategy.quality_investment * 0.5 + strategy.marketing_boost * 0.3
        company.investment += company.base_revenue * strategy.rd_focus * 0.01
        share_gain = max(0.0, -strategy.price_adjustment) * 0.5 + strategy.marketing_boost * 0.1 \
            + strategy.quality_investment * 0.05
        company.market_share = clamp(company.market_share + share_gain, 0.0, 1.0)
        return True

    # -- persistence ----------------------------------------------------

    def snapshot(self) -> List[Dict[str, Any]]:
        return [asdict(c) for c in self.companies.values()]

    def restore(self, data: List[Dict[str, Any]]):
        if not isinstance(data, list):
            raise StateValidationError("Company snapshot must be a list")
        names = {f.name for f in fields(Company)}
        companies: Dict[str, Company] = {}
        for entry in copy.deepcopy(data):
            if not isinstance(entry, dict) or not names.issuperset(entry) or "name" not in entry \
                    or "sector" not in entry:
                raise StateValidationError(f"Malformed company snapshot entry: {entry!r}")
            companies[entry["name"]] = Company(**entry)
        self.companies = companies
        self._recalculate_aggregates()
