"""
Partner capacity utilization.

Folds a partner's time entries into hours, credits generated and
utilization against monthly capacity.
"""

from dataclasses import dataclass
from typing import Iterable

from .errors import InvalidPeriod
from credits_forecast.storage.models import PartnerAccount, TimeEntry


@dataclass(frozen=True)
class CapacityUtilization:
    """Utilization of a partner over a reporting period."""
    partner_id: str
    total_hours: float
    billable_hours: float
    non_billable_hours: float
    available_capacity_hours: float
    utilization_percentage: float
    credits_generated: float
    internal_cost: float
    avg_credits_per_hour: float


def compute_utilization(partner: PartnerAccount, entries: Iterable[TimeEntry]) -> CapacityUtilization:
    """Compute capacity utilization for a partner.

    Args:
        partner: Partner whose capacity to measure against
        entries: Time entries logged by the partner in the period

    Returns:
        CapacityUtilization (utilization may exceed 100)

    Raises:
        InvalidPeriod: If the partner's capacity is not positive
    """
    capacity = partner.capacity_hours_per_month
    if capacity <= 0:
        raise InvalidPeriod(f"capacity_hours_per_month must be > 0 for {partner.partner_id}")

    total_hours = 0.0
    billable_hours = 0.0
    credits = 0.0
    cost = 0.0
    for entry in entries:
        total_hours += entry.hours
        if entry.billable:
            billable_hours += entry.hours
        credits += entry.credits_consumed
        cost += entry.internal_cost

    return CapacityUtilization(
        partner_id=partner.partner_id,
        total_hours=total_hours,
        billable_hours=billable_hours,
        non_billable_hours=total_hours - billable_hours,
        available_capacity_hours=capacity,
        utilization_percentage=total_hours / capacity * 100,
        credits_generated=credits,
        internal_cost=cost,
        avg_credits_per_hour=credits / total_hours if total_hours > 0 else 0.0,
    )
