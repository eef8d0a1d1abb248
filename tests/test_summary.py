"""
Unit tests for per-customer aggregation, forecasts and margin listings.
"""

from datetime import date, timedelta

import pytest

from credits_forecast.config.loader import ForecastConfig
from credits_forecast.core.errors import InvalidPeriod
from credits_forecast.core.plans import PlanCatalog, PricingTier
from credits_forecast.core.risk import ActionType, RiskLevel
from credits_forecast.core.summary import (
    FORECAST_CONFIDENCE,
    bottom_by_margin_percentage,
    build_credits_forecast,
    summarize_customer,
    summarize_portfolio,
    top_by_margin,
)
from credits_forecast.storage.models import CustomerAccount, TimeEntry

PERIOD_START = date(2024, 6, 1)
PERIOD_END = date(2024, 6, 30)
TODAY = date(2024, 6, 10)


def create_customer(
    customer_id: str = "acme",
    plan: str = "growth",
    balance: float = 30.0,
    allocation: float = 50.0,
    price=None,
) -> CustomerAccount:
    return CustomerAccount(
        customer_id=customer_id,
        name=customer_id.title(),
        plan=plan,
        credits_balance=balance,
        monthly_allocation=allocation,
        price_per_credit=price,
    )


def summarize(customer, entries, today=TODAY, config=None):
    return summarize_customer(customer, entries, PERIOD_START, PERIOD_END, today, config)


class TestSummarizeCustomer:
    """Test folding time entries into a financial summary."""

    def create_entries(self):
        return [
            TimeEntry(hours=8, credits_consumed=4, internal_cost=400, billable=True),
            TimeEntry(hours=7, credits_consumed=4, internal_cost=300, billable=True),
            TimeEntry(hours=5, credits_consumed=2, internal_cost=200, billable=False),
        ]

    def test_totals(self):
        summary = summarize(create_customer(), self.create_entries())
        assert summary.customer_id == "acme"
        assert summary.total_hours == 20
        assert summary.billable_hours == 15
        assert summary.total_credits == 10
        assert summary.total_cost == 900
        assert summary.avg_credit_cost == pytest.approx(90.0)
        assert summary.avg_hourly_rate == pytest.approx(45.0)

    def test_burn_rate_uses_elapsed_days(self):
        summary = summarize(create_customer(), self.create_entries())
        assert summary.period.days_elapsed == 10
        assert summary.period.days_in_period == 30
        assert summary.burn_rate.daily_rate == pytest.approx(1.0)
        assert summary.burn_rate.projected_remaining_balance == pytest.approx(10.0)
        assert summary.burn_rate.days_until_depleted == pytest.approx(30.0)

    def test_margin_uses_plan_price(self):
        summary = summarize(create_customer(), self.create_entries())
        assert summary.price_per_credit == 135.0
        assert summary.margin.revenue == pytest.approx(1350.0)
        assert summary.margin.margin == pytest.approx(450.0)
        assert summary.margin.margin_percentage == pytest.approx(33.333, abs=0.001)

    def test_price_override_wins(self):
        summary = summarize(create_customer(price=100.0), self.create_entries())
        assert summary.price_per_credit == 100.0
        assert summary.margin.revenue == pytest.approx(1000.0)

    def test_unknown_plan_uses_baseline_price(self):
        summary = summarize(create_customer(plan="legacy-gold"), self.create_entries())
        assert summary.price_per_credit == 150.0

    def test_healthy_customer_is_low_risk(self):
        summary = summarize(create_customer(), self.create_entries())
        assert summary.balance_percent_of_allocation == pytest.approx(60.0)
        assert summary.risk.level == RiskLevel.LOW
        assert summary.risk.recommended_action_type == ActionType.NONE

    def test_overconsuming_customer_is_critical(self):
        """Verify balance 15 of 100 at 4 credits/day is critical."""
        customer = create_customer(balance=15.0, allocation=100.0)
        entries = [TimeEntry(hours=10, credits_consumed=10, internal_cost=100) for _ in range(4)]
        summary = summarize(customer, entries)
        assert summary.burn_rate.daily_rate == pytest.approx(4.0)
        assert summary.burn_rate.projected_remaining_balance < 0
        assert summary.risk.level == RiskLevel.CRITICAL
        assert summary.risk.recommended_action_type == ActionType.CREDITS_TOPUP
        assert "Projected balance is negative" in summary.risk.factors

    def test_empty_entries(self):
        """Verify no entries yields zero totals, low risk and no action."""
        summary = summarize(create_customer(balance=1.0, allocation=50.0), [])
        assert summary.total_hours == 0
        assert summary.total_credits == 0
        assert summary.total_cost == 0
        assert summary.burn_rate.daily_rate == 0
        assert summary.margin.revenue == 0
        assert summary.margin.margin_percentage == 0
        assert summary.avg_credit_cost is None
        assert summary.avg_hourly_rate is None
        assert summary.risk.level == RiskLevel.LOW
        assert summary.risk.factors == ()
        assert summary.risk.recommended_action_type == ActionType.NONE

    def test_no_allocation(self):
        summary = summarize(create_customer(plan="enterprise", allocation=0.0, price=140.0), self.create_entries())
        assert summary.balance_percent_of_allocation is None
        assert summary.risk.level == RiskLevel.LOW

    def test_before_period_start(self):
        summary = summarize(create_customer(), self.create_entries(), today=date(2024, 5, 30))
        assert summary.period.days_elapsed == 0
        assert summary.burn_rate.daily_rate == 0

    def test_injected_catalog(self):
        catalog = PlanCatalog(
            tiers={"basic": PricingTier("basic", 80.0, 10.0, 800.0)},
            baseline_plan="basic",
        )
        config = ForecastConfig(catalog=catalog)
        summary = summarize(create_customer(plan="growth"), self.create_entries(), config=config)
        assert summary.price_per_credit == 80.0


class TestBuildCreditsForecast:
    """Test forward-looking forecasts."""

    def test_healthy_forecast(self):
        customer = create_customer()
        entries = [TimeEntry(hours=20, credits_consumed=10, internal_cost=900)]
        summary = summarize(customer, entries)
        forecast = build_credits_forecast(customer, summary, TODAY, 30)

        assert forecast.forecast_period_start == TODAY
        assert forecast.forecast_period_end == TODAY + timedelta(days=30)
        assert forecast.estimated_credits_consumption == pytest.approx(30.0)
        assert forecast.current_credits_balance == 30.0
        assert forecast.projected_balance_end_of_period == pytest.approx(0.0)
        assert forecast.risk_level == RiskLevel.LOW
        assert forecast.action_type == ActionType.NONE
        assert forecast.recommended_action is None
        assert forecast.forecast_confidence == FORECAST_CONFIDENCE == 0.75

    def test_critical_forecast_recommends_topup(self):
        customer = create_customer(balance=15.0, allocation=100.0)
        entries = [TimeEntry(hours=10, credits_consumed=40)]
        summary = summarize(customer, entries)
        forecast = build_credits_forecast(customer, summary, TODAY)

        assert forecast.projected_balance_end_of_period == pytest.approx(-105.0)
        assert forecast.risk_level == RiskLevel.CRITICAL
        assert forecast.action_type == ActionType.CREDITS_TOPUP
        assert forecast.recommended_action == "Consider credits topup"

    def test_medium_forecast_recommends_scope_review(self):
        customer = create_customer(balance=12.0, allocation=50.0)
        entries = [TimeEntry(hours=2, credits_consumed=1)]
        summary = summarize(customer, entries)
        forecast = build_credits_forecast(customer, summary, TODAY)

        assert forecast.risk_level == RiskLevel.MEDIUM
        assert forecast.recommended_action == "Consider scope review"

    def test_negative_period_rejected(self):
        customer = create_customer()
        summary = summarize(customer, [])
        with pytest.raises(InvalidPeriod):
            build_credits_forecast(customer, summary, TODAY, -1)


class TestMarginListings:
    """Test ordering of report listings."""

    def create_summaries(self):
        specs = [
            ("c1", 10, 100.0, 500),   # margin 500, 50%
            ("c2", 10, 100.0, 200),   # margin 800, 80%
            ("c3", 5, 200.0, 500),    # margin 500, 50%
            ("c4", 0, 100.0, 0),      # margin 0, 0%
        ]
        return [
            summarize(
                create_customer(customer_id=cid, price=price),
                [TimeEntry(hours=1, credits_consumed=credits, internal_cost=cost)],
            )
            for cid, credits, price, cost in specs
        ]

    def test_top_by_margin(self):
        """Verify descending margin order with ties in input order."""
        result = top_by_margin(self.create_summaries(), 3)
        assert [s.customer_id for s in result] == ["c2", "c1", "c3"]

    def test_bottom_by_margin_percentage(self):
        """Verify ascending margin percentage with ties in input order."""
        result = bottom_by_margin_percentage(self.create_summaries(), 3)
        assert [s.customer_id for s in result] == ["c4", "c1", "c3"]

    def test_ties_follow_input_order_when_reversed(self):
        summaries = list(reversed(self.create_summaries()))
        result = top_by_margin(summaries, 4)
        assert [s.customer_id for s in result] == ["c2", "c3", "c1", "c4"]

    def test_n_larger_than_input(self):
        assert len(top_by_margin(self.create_summaries(), 10)) == 4

    def test_negative_n_rejected(self):
        with pytest.raises(ValueError):
            top_by_margin(self.create_summaries(), -1)


class TestSummarizePortfolio:
    """Test per-customer fan-out."""

    def test_each_customer_gets_own_entries(self):
        customers = [create_customer("a"), create_customer("b"), create_customer("c")]
        entries = {
            "a": [TimeEntry(hours=1, credits_consumed=1)],
            "b": [TimeEntry(hours=2, credits_consumed=5), TimeEntry(hours=2, credits_consumed=5)],
        }
        result = summarize_portfolio(customers, entries, PERIOD_START, PERIOD_END, TODAY)

        assert list(result.keys()) == ["a", "b", "c"]
        assert result["a"].total_credits == 1
        assert result["b"].total_credits == 10
        assert result["c"].total_credits == 0
        assert result["c"].risk.level == RiskLevel.LOW
