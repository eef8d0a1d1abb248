"""
CLI interface for Credits Forecast.

Provides command-line access to pricing, conversion, forecasting,
margin and utilization reports.
"""

import logging
import sys
from datetime import date
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from credits_forecast.config.loader import ForecastConfig, default_config, load_forecast_config
from credits_forecast.core.currency import convert as convert_amount, format_currency
from credits_forecast.core.risk import RiskLevel
from credits_forecast.core.summary import (
    bottom_by_margin_percentage,
    build_credits_forecast,
    summarize_portfolio,
    top_by_margin,
)
from credits_forecast.core.utilization import compute_utilization
from credits_forecast.storage.ledger import Ledger, load_ledger

app = typer.Typer()
console = Console()

EXIT_CODE_OK = 0
EXIT_CODE_FAIL = 1

RISK_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}

ConfigOption = typer.Option(None, "--config", "-c", help="Path to YAML forecast config")
AsOfOption = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD); defaults to the ledger's as_of or today")


def _load_config(path: Optional[str]) -> ForecastConfig:
    return load_forecast_config(path) if path else default_config()


def _reference_date(ledger: Ledger, as_of: Optional[str]) -> date:
    if as_of:
        return date.fromisoformat(as_of)
    return ledger.as_of or date.today()


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {str(error)}")
    sys.exit(EXIT_CODE_FAIL)


def _money(amount: float, currency: str, config: ForecastConfig) -> str:
    """Render a base-currency amount in the given currency."""
    return format_currency(convert_amount(amount, config.rate_table.base, currency, config.rate_table), currency)


def _days(value: Optional[float]) -> str:
    return "never" if value is None else f"{value:,.1f}"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Credits Forecast CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    if ctx.invoked_subcommand is None:
        console.print("Credits Forecast - Use --help to see available commands")


@app.command()
def plans(
    currency: Optional[str] = typer.Option(None, "--currency", help="Show prices in this currency"),
    config_path: Optional[str] = ConfigOption,
):
    """List pricing tiers and their discount against the baseline tier."""
    try:
        config = _load_config(config_path)
        target = (currency or config.rate_table.base).upper()

        table = Table(title="Pricing Tiers")
        table.add_column("Plan")
        table.add_column("Price / credit", justify="right")
        table.add_column("Monthly credits", justify="right")
        table.add_column("Monthly price", justify="right")
        table.add_column("Discount", justify="right")

        baseline_price = config.catalog.baseline.price_per_credit
        for tier in config.catalog.tiers.values():
            if tier.is_custom:
                table.add_row(tier.plan_id, "custom", "custom", "custom", "-")
                continue
            discount = config.catalog.discount_versus_baseline(tier.price_per_credit) if baseline_price else 0.0
            table.add_row(
                tier.plan_id,
                _money(tier.price_per_credit, target, config),
                f"{tier.monthly_credits:g}",
                _money(tier.monthly_price, target, config),
                f"{discount:.1f}%",
            )
        console.print(table)
    except Exception as e:
        _fail(e)
    sys.exit(EXIT_CODE_OK)


@app.command()
def convert(
    amount: float = typer.Argument(..., help="Amount to convert"),
    from_currency: str = typer.Argument(..., help="Source currency code"),
    to_currency: str = typer.Argument(..., help="Target currency code"),
    config_path: Optional[str] = ConfigOption,
):
    """Convert an amount between currencies."""
    try:
        config = _load_config(config_path)
        source = from_currency.upper()
        target = to_currency.upper()
        result = convert_amount(amount, source, target, config.rate_table)
        console.print(f"{format_currency(amount, source)} = {format_currency(result, target)}")
    except Exception as e:
        _fail(e)
    sys.exit(EXIT_CODE_OK)


@app.command()
def forecast(
    ledger_path: str = typer.Argument(..., help="Path to YAML ledger"),
    customer: Optional[str] = typer.Option(None, "--customer", help="Only forecast this customer"),
    days: int = typer.Option(30, "--days", "-d", help="Forecast window in days"),
    as_of: Optional[str] = AsOfOption,
    config_path: Optional[str] = ConfigOption,
):
    """Forecast credit burn and overdelivery risk per customer."""
    try:
        config = _load_config(config_path)
        ledger = load_ledger(ledger_path)
        today = _reference_date(ledger, as_of)

        customers = ledger.customers
        if customer:
            match = ledger.get_customer(customer)
            if match is None:
                raise ValueError(f"Customer not found: {customer}")
            customers = (match,)

        summaries = summarize_portfolio(
            customers, ledger.entries_by_customer(), ledger.period_start, ledger.period_end, today, config
        )

        table = Table(title=f"Credits Forecast ({days} days from {today.isoformat()})")
        table.add_column("Customer")
        table.add_column("Balance", justify="right")
        table.add_column("Daily burn", justify="right")
        table.add_column("Depleted in", justify="right")
        table.add_column("Projected", justify="right")
        table.add_column("Risk")
        table.add_column("Action")

        forecasts = [
            (account, summaries[account.customer_id],
             build_credits_forecast(account, summaries[account.customer_id], today, days, config))
            for account in customers
        ]
        for account, summary, result in forecasts:
            style = RISK_STYLES[result.risk_level]
            table.add_row(
                account.name,
                f"{account.credits_balance:,.1f}",
                f"{summary.burn_rate.daily_rate:,.2f}",
                _days(summary.burn_rate.days_until_depleted),
                f"{result.projected_balance_end_of_period:,.1f}",
                f"[{style}]{result.risk_level.value}[/]",
                result.recommended_action or "-",
            )
        console.print(table)

        for account, _, result in forecasts:
            for factor in result.risk_factors:
                console.print(f"[dim]{account.name}:[/] {factor}")
    except Exception as e:
        _fail(e)
    sys.exit(EXIT_CODE_OK)


@app.command()
def margins(
    ledger_path: str = typer.Argument(..., help="Path to YAML ledger"),
    top: int = typer.Option(5, "--top", "-n", help="Number of customers per listing"),
    as_of: Optional[str] = AsOfOption,
    config_path: Optional[str] = ConfigOption,
):
    """Show the best margins and the weakest margin percentages."""
    try:
        config = _load_config(config_path)
        ledger = load_ledger(ledger_path)
        today = _reference_date(ledger, as_of)
        summaries = summarize_portfolio(
            ledger.customers, ledger.entries_by_customer(), ledger.period_start, ledger.period_end, today, config
        )
        currency_for = {c.customer_id: c.currency for c in ledger.customers}

        listings = (
            ("Top margins", top_by_margin(summaries.values(), top)),
            ("Lowest margin %", bottom_by_margin_percentage(summaries.values(), top)),
        )
        for title, rows in listings:
            table = Table(title=title)
            table.add_column("Customer")
            table.add_column("Credits", justify="right")
            table.add_column("Revenue", justify="right")
            table.add_column("Cost", justify="right")
            table.add_column("Margin", justify="right")
            table.add_column("Margin %", justify="right")
            for summary in rows:
                currency = currency_for[summary.customer_id]
                table.add_row(
                    summary.customer_id,
                    f"{summary.total_credits:,.1f}",
                    _money(summary.margin.revenue, currency, config),
                    _money(summary.margin.cost, currency, config),
                    _money(summary.margin.margin, currency, config),
                    f"{summary.margin.margin_percentage:.1f}%",
                )
            console.print(table)
    except Exception as e:
        _fail(e)
    sys.exit(EXIT_CODE_OK)


@app.command()
def utilization(
    ledger_path: str = typer.Argument(..., help="Path to YAML ledger"),
):
    """Show partner capacity utilization for the ledger period."""
    try:
        ledger = load_ledger(ledger_path)
        if not ledger.partners:
            console.print("\n[bold yellow]No partners found in ledger[/]\n")
            sys.exit(EXIT_CODE_OK)

        table = Table(title="Partner Utilization")
        table.add_column("Partner")
        table.add_column("Hours", justify="right")
        table.add_column("Billable", justify="right")
        table.add_column("Capacity", justify="right")
        table.add_column("Utilization", justify="right")
        table.add_column("Credits", justify="right")
        table.add_column("Credits / hour", justify="right")
        for partner in ledger.partners:
            result = compute_utilization(partner, ledger.entries_for_partner(partner.partner_id))
            table.add_row(
                partner.name,
                f"{result.total_hours:,.1f}",
                f"{result.billable_hours:,.1f}",
                f"{result.available_capacity_hours:,.0f}",
                f"{result.utilization_percentage:.1f}%",
                f"{result.credits_generated:,.1f}",
                f"{result.avg_credits_per_hour:.2f}",
            )
        console.print(table)
    except Exception as e:
        _fail(e)
    sys.exit(EXIT_CODE_OK)


if __name__ == "__main__":
    app()
