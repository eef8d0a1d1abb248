"""
Per-customer financial aggregation.

Folds a period's time entries into totals, then runs burn rate, risk
and margin calculations in one pass. Also produces forward-looking
credit forecasts and margin-ranked listings for reports.

Each call works only on its own arguments, so summaries for different
customers can be computed in parallel without cross-contamination.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .burn_rate import BurnRateResult, estimate_for_period
from .errors import InvalidPeriod
from .margin import MarginResult, compute_margin
from .risk import ActionType, RiskAssessment, RiskLevel, classify_risk
from credits_forecast.config.loader import ForecastConfig, default_config
from credits_forecast.storage.models import ConsumptionPeriod, CustomerAccount, TimeEntry

logger = logging.getLogger(__name__)

FORECAST_CONFIDENCE = 0.75
DEFAULT_FORECAST_DAYS = 30


@dataclass(frozen=True)
class CustomerFinancialSummary:
    """Dashboard-ready financial position of one customer for a period."""
    customer_id: str
    period: ConsumptionPeriod
    total_hours: float
    billable_hours: float
    total_credits: float
    total_cost: float
    price_per_credit: float
    credits_balance: float
    balance_percent_of_allocation: Optional[float]
    burn_rate: BurnRateResult
    risk: RiskAssessment
    margin: MarginResult
    avg_credit_cost: Optional[float]
    avg_hourly_rate: Optional[float]


@dataclass(frozen=True)
class CreditsForecast:
    """Forward-looking credit projection for a customer."""
    customer_id: str
    forecast_period_start: date
    forecast_period_end: date
    estimated_credits_consumption: float
    current_credits_balance: float
    projected_balance_end_of_period: float
    risk_level: RiskLevel
    risk_factors: Tuple[str, ...]
    recommended_action: Optional[str]
    action_type: ActionType
    forecast_confidence: float = FORECAST_CONFIDENCE


def _balance_percent(customer: CustomerAccount) -> Optional[float]:
    if customer.monthly_allocation <= 0:
        return None
    return customer.credits_balance / customer.monthly_allocation * 100


def _price_per_credit(customer: CustomerAccount, config: ForecastConfig) -> float:
    if customer.price_per_credit is not None:
        return customer.price_per_credit
    return config.catalog.resolve_price_per_credit(customer.plan)


def summarize_customer(
    customer: CustomerAccount,
    entries: Iterable[TimeEntry],
    period_start: date,
    period_end: date,
    today: date,
    config: Optional[ForecastConfig] = None,
) -> CustomerFinancialSummary:
    """Summarize a customer's financial position for a reporting period.

    An empty entry sequence yields zero totals, low risk and no action:
    risk is only assessed once consumption has been observed.

    Args:
        customer: Customer credit position and plan
        entries: Time entries logged against the customer in the period
        period_start: First day of the period (inclusive)
        period_end: Last day of the period (inclusive)
        today: Reference date for elapsed days
        config: Tables to calculate with (defaults to built-in tables)

    Returns:
        CustomerFinancialSummary

    Raises:
        InvalidPeriod: If the period or any quantity is invalid
    """
    config = config or default_config()

    entry_count = 0
    total_hours = 0.0
    billable_hours = 0.0
    total_credits = 0.0
    total_cost = 0.0
    for entry in entries:
        entry_count += 1
        total_hours += entry.hours
        if entry.billable:
            billable_hours += entry.hours
        total_credits += entry.credits_consumed
        total_cost += entry.internal_cost

    period = ConsumptionPeriod.as_of(
        period_start=period_start,
        period_end=period_end,
        today=today,
        credits_consumed_to_date=total_credits,
    )
    burn_rate = estimate_for_period(period, customer.credits_balance)
    balance_percent = _balance_percent(customer)

    if entry_count == 0:
        risk = RiskAssessment(level=RiskLevel.LOW, factors=(), recommended_action_type=ActionType.NONE)
    else:
        risk = classify_risk(
            balance_percent_of_allocation=balance_percent,
            days_until_depleted=burn_rate.days_until_depleted,
            projected_balance=burn_rate.projected_remaining_balance,
            daily_rate=burn_rate.daily_rate,
            monthly_allocation=customer.monthly_allocation,
            thresholds=config.thresholds,
        )

    price = _price_per_credit(customer, config)
    margin = compute_margin(total_credits, price, total_cost)

    summary = CustomerFinancialSummary(
        customer_id=customer.customer_id,
        period=period,
        total_hours=total_hours,
        billable_hours=billable_hours,
        total_credits=total_credits,
        total_cost=total_cost,
        price_per_credit=price,
        credits_balance=customer.credits_balance,
        balance_percent_of_allocation=balance_percent,
        burn_rate=burn_rate,
        risk=risk,
        margin=margin,
        avg_credit_cost=total_cost / total_credits if total_credits > 0 else None,
        avg_hourly_rate=total_cost / total_hours if total_hours > 0 else None,
    )
    logger.debug(
        "Summarized %s: %d entries, %.1f credits, risk=%s",
        customer.customer_id, entry_count, total_credits, risk.level.value,
    )
    return summary


def summarize_portfolio(
    customers: Iterable[CustomerAccount],
    entries_by_customer: Mapping[str, Sequence[TimeEntry]],
    period_start: date,
    period_end: date,
    today: date,
    config: Optional[ForecastConfig] = None,
) -> Dict[str, CustomerFinancialSummary]:
    """Summarize every customer, keyed by customer id in input order."""
    config = config or default_config()
    return {
        customer.customer_id: summarize_customer(
            customer,
            entries_by_customer.get(customer.customer_id, ()),
            period_start,
            period_end,
            today,
            config,
        )
        for customer in customers
    }


def build_credits_forecast(
    customer: CustomerAccount,
    summary: CustomerFinancialSummary,
    forecast_start: date,
    period_days: int = DEFAULT_FORECAST_DAYS,
    config: Optional[ForecastConfig] = None,
) -> CreditsForecast:
    """Project a customer's balance over the next period_days.

    Uses the observed daily rate from the summary and classifies the
    projected end-of-window balance.

    Raises:
        InvalidPeriod: If period_days is negative
    """
    if period_days < 0:
        raise InvalidPeriod("period_days cannot be negative")
    config = config or default_config()

    daily_rate = summary.burn_rate.daily_rate
    estimated = daily_rate * period_days
    projected = customer.credits_balance - estimated

    risk = classify_risk(
        balance_percent_of_allocation=_balance_percent(customer),
        days_until_depleted=summary.burn_rate.days_until_depleted,
        projected_balance=projected,
        daily_rate=daily_rate,
        monthly_allocation=customer.monthly_allocation,
        thresholds=config.thresholds,
    )
    action = risk.recommended_action_type
    recommended = None
    if action != ActionType.NONE:
        recommended = f"Consider {action.value.replace('_', ' ', 1)}"

    return CreditsForecast(
        customer_id=customer.customer_id,
        forecast_period_start=forecast_start,
        forecast_period_end=forecast_start + timedelta(days=period_days),
        estimated_credits_consumption=estimated,
        current_credits_balance=customer.credits_balance,
        projected_balance_end_of_period=projected,
        risk_level=risk.level,
        risk_factors=risk.factors,
        recommended_action=recommended,
        action_type=action,
    )


def top_by_margin(
    summaries: Iterable[CustomerFinancialSummary], n: int
) -> List[CustomerFinancialSummary]:
    """Highest absolute margin first; ties keep input order."""
    if n < 0:
        raise ValueError("n cannot be negative")
    return sorted(summaries, key=lambda s: s.margin.margin, reverse=True)[:n]


def bottom_by_margin_percentage(
    summaries: Iterable[CustomerFinancialSummary], n: int
) -> List[CustomerFinancialSummary]:
    """Lowest margin percentage first; ties keep input order."""
    if n < 0:
        raise ValueError("n cannot be negative")
    return sorted(summaries, key=lambda s: s.margin.margin_percentage)[:n]
