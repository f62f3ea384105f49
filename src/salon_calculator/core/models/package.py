from dataclasses import dataclass, field
from typing import List, Tuple

VIP = "vip"
STANDARD = "standard"
ECONOMY = "economy"

TIERS: Tuple[str, ...] = (VIP, STANDARD, ECONOMY)


@dataclass(frozen=True)
class DiscountStep:
    """Staircase step: base cost at or above `threshold` unlocks `rate`."""

    threshold: float
    rate: float


@dataclass
class PackageConfig:
    """Per-tier discount and payment rules of a subscription package."""

    type: str
    name: str = ""
    discount_rate: float = 0.0
    min_cost: float = 0.0
    min_down_payment_percent: float = 0.0
    min_down_payment: float = 0.0  # absolute floor, 0 = none
    requires_full_payment: bool = False
    gift_sessions: int = 0
    bonus_account_percent: float = 0.0
    dynamic_rates: List[DiscountStep] = field(default_factory=list)
    perks: List[str] = field(default_factory=list)

    def resolve_discount_rate(self, base_cost: float) -> float:
        """
        Walk the dynamic steps from the highest threshold down; the first step
        reached by base_cost may only raise the base discount rate.
        """
        rate = self.discount_rate
        for step in sorted(self.dynamic_rates, key=lambda s: s.threshold, reverse=True):
            if base_cost >= step.threshold:
                rate = max(rate, step.rate)
                break
        return rate
