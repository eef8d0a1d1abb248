"""
Margin calculation.

Revenue is credits consumed times price per credit; margin is revenue
minus internal delivery cost.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class MarginResult:
    """Gross margin for a block of delivered credits."""
    revenue: float
    cost: float
    margin: float
    margin_percentage: float


def compute_margin(
    credits_consumed: float,
    price_per_credit: float,
    internal_cost: float,
) -> MarginResult:
    """Compute revenue, margin and margin percentage.

    Zero revenue reports a margin percentage of exactly 0.0.

    Args:
        credits_consumed: Credits delivered
        price_per_credit: Price of one credit
        internal_cost: Internal cost of delivery

    Returns:
        MarginResult (margin may be negative)
    """
    revenue = credits_consumed * price_per_credit
    margin = revenue - internal_cost
    margin_percentage = (margin / revenue) * 100 if revenue > 0 else 0.0

    return MarginResult(
        revenue=revenue,
        cost=internal_cost,
        margin=margin,
        margin_percentage=margin_percentage,
    )
