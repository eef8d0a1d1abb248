"""
Plan and tier catalog.

Resolves the price per credit for a customer's subscription plan.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from .credits import discount_versus_baseline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PricingTier:
    """Named bundle of monthly credits and price per credit (base currency)."""
    plan_id: str
    price_per_credit: float
    monthly_credits: float
    monthly_price: float
    features: Tuple[str, ...] = ()

    def __post_init__(self):
        """Validate tier values are non-negative."""
        if self.price_per_credit < 0:
            raise ValueError("price_per_credit cannot be negative")
        if self.monthly_credits < 0:
            raise ValueError("monthly_credits cannot be negative")
        if self.monthly_price < 0:
            raise ValueError("monthly_price cannot be negative")

    @property
    def is_custom(self) -> bool:
        """Custom tiers carry zero pricing and are resolved out-of-band."""
        return self.price_per_credit == 0


@dataclass(frozen=True)
class PlanCatalog:
    """Fixed catalog of pricing tiers with a designated baseline tier."""
    tiers: Mapping[str, PricingTier]
    baseline_plan: str = "starter"

    def __post_init__(self):
        """Validate the baseline tier exists and keys are lowercase, then freeze the tiers."""
        tiers = dict(self.tiers)
        for key in tiers:
            if key != key.lower():
                raise ValueError(f"Plan id must be lowercase: {key}")
        if self.baseline_plan not in tiers:
            raise ValueError(f"Baseline plan {self.baseline_plan} missing from catalog")
        object.__setattr__(self, "tiers", MappingProxyType(tiers))

    @property
    def baseline(self) -> PricingTier:
        return self.tiers[self.baseline_plan]

    def get_tier(self, plan: str) -> Optional[PricingTier]:
        """Strict, case-insensitive lookup. Returns None for unknown plans."""
        return self.tiers.get(plan.lower())

    def resolve_price_per_credit(self, plan: str) -> float:
        """Price per credit for a plan, falling back to the baseline tier.

        Unknown plan identifiers never raise: callers always receive a
        usable price.

        Args:
            plan: Plan identifier (any case)

        Returns:
            Price per credit in base currency
        """
        tier = self.get_tier(plan)
        if tier is None:
            logger.debug("Unknown plan %r, using %s pricing", plan, self.baseline_plan)
            return self.baseline.price_per_credit
        return tier.price_per_credit

    def discount_versus_baseline(self, price_per_credit: float) -> float:
        """Discount percentage of a price against the baseline tier."""
        return discount_versus_baseline(price_per_credit, self.baseline.price_per_credit)


DEFAULT_CATALOG = PlanCatalog(
    tiers={
        "starter": PricingTier(
            plan_id="starter",
            price_per_credit=150.0,
            monthly_credits=20.0,
            monthly_price=3000.0,
            features=("Basic support", "Email access", "Monthly reporting"),
        ),
        "growth": PricingTier(
            plan_id="growth",
            price_per_credit=135.0,
            monthly_credits=50.0,
            monthly_price=6750.0,
            features=("Priority support", "Dedicated CSM", "Weekly reporting", "API access"),
        ),
        "scale": PricingTier(
            plan_id="scale",
            price_per_credit=120.0,
            monthly_credits=100.0,
            monthly_price=12000.0,
            features=(
                "Premium support",
                "Dedicated team",
                "Daily reporting",
                "API access",
                "Custom integrations",
            ),
        ),
        # Custom pricing, resolved out-of-band
        "enterprise": PricingTier(
            plan_id="enterprise",
            price_per_credit=0.0,
            monthly_credits=0.0,
            monthly_price=0.0,
            features=(
                "White-glove support",
                "Dedicated account team",
                "Real-time reporting",
                "Full API access",
                "Custom integrations",
                "SLA guarantees",
                "Custom contract terms",
            ),
        ),
    },
    baseline_plan="starter",
)


def resolve_price_per_credit(plan: str, catalog: PlanCatalog = DEFAULT_CATALOG) -> float:
    """Module-level shortcut for PlanCatalog.resolve_price_per_credit."""
    return catalog.resolve_price_per_credit(plan)


def get_tier(plan: str, catalog: PlanCatalog = DEFAULT_CATALOG) -> Optional[PricingTier]:
    """Module-level shortcut for PlanCatalog.get_tier."""
    return catalog.get_tier(plan)
