"""
Overdelivery risk classification.

Maps a customer's credit position to an ordered risk level with
human-readable factors and a recommended action.

Rule Order (first match wins, most severe first):
1. Projected balance negative -> critical
2. Balance below 10% of allocation or depleted within 5 days -> critical
3. Balance below 20% of allocation or depleted within 10 days -> high
4. Balance below 30% of allocation -> medium
5. Otherwise -> low

A burn rate spike check runs independently and raises the level to at
least medium.
"""

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import List, Optional, Tuple


@total_ordering
class RiskLevel(Enum):
    """Risk levels in order of severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank


_RISK_ORDER = (RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL)


class ActionType(Enum):
    """Recommended follow-up actions.

    CAPACITY_ADJUSTMENT and LEVEL_UPGRADE are valid members that the
    classifier does not currently emit.
    """
    NONE = "none"
    CREDITS_TOPUP = "credits_topup"
    SCOPE_REVIEW = "scope_review"
    CAPACITY_ADJUSTMENT = "capacity_adjustment"
    LEVEL_UPGRADE = "level_upgrade"


ACTION_FOR_LEVEL = {
    RiskLevel.CRITICAL: ActionType.CREDITS_TOPUP,
    RiskLevel.HIGH: ActionType.CREDITS_TOPUP,
    RiskLevel.MEDIUM: ActionType.SCOPE_REVIEW,
    RiskLevel.LOW: ActionType.NONE,
}


@dataclass(frozen=True)
class RiskThresholds:
    """Rule table for risk classification."""
    critical_balance_percent: float = 10.0
    critical_days_until_depleted: float = 5.0
    high_balance_percent: float = 20.0
    high_days_until_depleted: float = 10.0
    medium_balance_percent: float = 30.0
    burn_spike_multiplier: float = 1.5
    days_in_month: int = 30

    def __post_init__(self):
        """Validate thresholds are ordered by severity."""
        if not (self.critical_balance_percent <= self.high_balance_percent <= self.medium_balance_percent):
            raise ValueError("balance thresholds must satisfy critical <= high <= medium")
        if self.critical_days_until_depleted > self.high_days_until_depleted:
            raise ValueError("critical_days_until_depleted must be <= high_days_until_depleted")
        if self.burn_spike_multiplier <= 1:
            raise ValueError("burn_spike_multiplier must be > 1")
        if self.days_in_month <= 0:
            raise ValueError("days_in_month must be > 0")


DEFAULT_THRESHOLDS = RiskThresholds()


@dataclass(frozen=True)
class RiskAssessment:
    """Classified risk with the factors that produced it."""
    level: RiskLevel
    factors: Tuple[str, ...]
    recommended_action_type: ActionType


def _fmt(value: float) -> str:
    return f"{value:g}"


def classify_risk(
    balance_percent_of_allocation: Optional[float],
    days_until_depleted: Optional[float],
    projected_balance: float,
    daily_rate: float = 0.0,
    monthly_allocation: float = 0.0,
    days_in_month: Optional[int] = None,
    thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
) -> RiskAssessment:
    """Classify overdelivery risk for a customer's credit position.

    Args:
        balance_percent_of_allocation: Current balance as a percentage of
            the monthly allocation, or None when there is no allocation
        days_until_depleted: Days until the balance runs out at the
            current rate, or None when it never does
        projected_balance: Projected balance at period end (may be negative)
        daily_rate: Observed credits consumed per day
        monthly_allocation: Monthly credit allocation
        days_in_month: Month length for the expected pace
            (defaults to thresholds.days_in_month)
        thresholds: Rule table to apply

    Returns:
        RiskAssessment with level, factors and recommended action
    """
    t = thresholds
    pct = balance_percent_of_allocation
    days = days_until_depleted
    factors: List[str] = []
    level = RiskLevel.LOW

    if projected_balance < 0:
        level = RiskLevel.CRITICAL
        factors.append("Projected balance is negative")
    else:
        critical_pct = pct is not None and pct < t.critical_balance_percent
        critical_days = days is not None and days < t.critical_days_until_depleted
        high_pct = pct is not None and pct < t.high_balance_percent
        high_days = days is not None and days < t.high_days_until_depleted

        if critical_pct or critical_days:
            level = RiskLevel.CRITICAL
            if critical_pct:
                factors.append(f"Balance below {_fmt(t.critical_balance_percent)}% of allocation")
            if critical_days:
                factors.append(
                    f"Credits depleted in under {_fmt(t.critical_days_until_depleted)} days"
                )
        elif high_pct or high_days:
            level = RiskLevel.HIGH
            if high_pct:
                factors.append(f"Balance below {_fmt(t.high_balance_percent)}% of allocation")
            if high_days:
                factors.append(
                    f"Credits depleted in under {_fmt(t.high_days_until_depleted)} days"
                )
        elif pct is not None and pct < t.medium_balance_percent:
            level = RiskLevel.MEDIUM
            factors.append(f"Balance below {_fmt(t.medium_balance_percent)}% of allocation")

    # Burn rate spike: faster than a flat-allocation pace by the multiplier
    month_days = days_in_month if days_in_month is not None else t.days_in_month
    if monthly_allocation > 0 and month_days > 0:
        expected_rate = monthly_allocation / month_days
        if daily_rate > expected_rate * t.burn_spike_multiplier:
            above = (t.burn_spike_multiplier - 1) * 100
            factors.append(f"Burn rate {_fmt(round(above, 2))}% above expected")
            level = max(level, RiskLevel.MEDIUM)

    return RiskAssessment(
        level=level,
        factors=tuple(factors),
        recommended_action_type=ACTION_FOR_LEVEL[level],
    )
