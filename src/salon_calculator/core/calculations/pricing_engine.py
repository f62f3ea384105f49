from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from numbers import Real
from typing import Iterable, Mapping, Optional

from salon_calculator.core.models.package import ECONOMY, TIERS, PackageConfig
from salon_calculator.core.models.payment import PaymentChoice
from salon_calculator.core.models.service import FreeZone, ServiceSelection
from salon_calculator.core.models.settings import CalculatorSettings

logger = logging.getLogger(__name__)

PACKAGE_NOT_FOUND = "package not found"

DISCOUNT_PACKAGE = "package"
DISCOUNT_BULK = "bulk"
DISCOUNT_CERTIFICATE = "certificate"
DISCOUNT_GIFT_SESSIONS = "gift_sessions"


@dataclass(frozen=True)
class AppliedDiscount:
    kind: str
    amount: float


@dataclass(frozen=True)
class PackageResult:
    """Breakdown of one tier. Gift and bonus values are display-only."""

    is_available: bool
    unavailable_reason: str
    final_cost: float
    total_savings: float
    monthly_payment: float
    applied_discounts: tuple[AppliedDiscount, ...] = ()
    discount_rate: float = 0.0
    actual_discount_total: float = 0.0
    gift_session_value: float = 0.0
    bonus_amount: float = 0.0
    min_down_payment: float = 0.0
    max_down_payment: float = 0.0
    requires_full_payment: bool = False
    perks: tuple[str, ...] = ()

    def monthly_payment_for(self, down_payment: float, installment_months: int) -> float:
        """Installment for a payment choice adjusted after this result was computed."""
        return monthly_payment(
            self.final_cost, down_payment, installment_months, self.requires_full_payment, self.is_available
        )

    def discount(self, kind: str) -> float:
        return sum(d.amount for d in self.applied_discounts if d.kind == kind)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["applied_discounts"] = [asdict(d) for d in self.applied_discounts]
        return data


@dataclass(frozen=True)
class CalculationResult:
    base_cost: float
    packages: dict[str, PackageResult] = field(default_factory=dict)
    total_procedures: int = 0
    free_zones_value: float = 0.0

    def total_gifts_value(self, tier: str) -> float:
        """Gift sessions + bonus account + free zones, as shown in the comparison table."""
        data = self.packages[tier]
        return data.gift_session_value + data.bonus_amount + self.free_zones_value

    def available_tiers(self) -> list[str]:
        return [tier for tier, data in self.packages.items() if data.is_available]


def _require_number(name: str, value, minimum: float | None = None) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return float(value)


def _require_int(name: str, value, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _require_items(name: str, items: Iterable, kind: type) -> list:
    items = list(items)
    for item in items:
        if not isinstance(item, kind):
            raise TypeError(f"{name} must contain {kind.__name__}, got {type(item).__name__}")
        _require_number(f"{name}.unit_price", item.unit_price)
        _require_int(f"{name}.quantity", item.quantity, 0)
    return items


def _missing_package() -> PackageResult:
    return PackageResult(
        is_available=False,
        unavailable_reason=PACKAGE_NOT_FOUND,
        final_cost=0.0,
        total_savings=0.0,
        monthly_payment=0.0,
    )


def monthly_payment(
    final_cost: float,
    down_payment: float,
    installment_months: int,
    requires_full_payment: bool = False,
    is_available: bool = True,
) -> float:
    """Not clamped: a negative value means the down payment exceeds the final cost."""
    if not is_available or installment_months <= 0 or requires_full_payment:
        return 0.0
    return (final_cost - down_payment) / installment_months


def down_payment_bounds(config: PackageConfig, final_cost: float, settings: CalculatorSettings) -> tuple[float, float]:
    """Return (min, max) allowed down payment for a tier at the given final cost."""
    if config.requires_full_payment:
        return final_cost, final_cost
    minimum = max(
        config.min_down_payment or 0.0,
        final_cost * config.min_down_payment_percent,
        settings.minimum_down_payment,
    )
    return min(minimum, final_cost), final_cost


def _price_package(
    tier: str,
    config: PackageConfig,
    base_cost: float,
    total_procedures: int,
    procedure_count: int,
    settings: CalculatorSettings,
    payment: PaymentChoice,
) -> PackageResult:
    rate = config.discount_rate
    if tier == ECONOMY:
        rate = config.resolve_discount_rate(base_cost)

    certificate_discount = settings.certificate_discount(base_cost, payment.used_certificate)
    qualifies_for_bulk = settings.qualifies_for_bulk(procedure_count)
    bulk_discount = base_cost * settings.bulk_discount_percentage if qualifies_for_bulk else 0.0

    # One "session" is a single pass through every selected service.
    cost_per_procedure = base_cost / total_procedures if total_procedures > 0 else 0.0
    gift_session_value = cost_per_procedure * (config.gift_sessions or 0)

    package_discount = base_cost * rate
    actual_discount_total = package_discount + certificate_discount + bulk_discount
    final_cost = max(0.0, base_cost - actual_discount_total)
    total_savings = actual_discount_total + gift_session_value

    is_available = base_cost >= config.min_cost
    unavailable_reason = "" if is_available else f"Minimum course cost: {config.min_cost:.0f} RUB"

    min_down, max_down = down_payment_bounds(config, final_cost, settings)

    installment = monthly_payment(
        final_cost, payment.down_payment, payment.installment_months, config.requires_full_payment, is_available
    )

    applied = [AppliedDiscount(DISCOUNT_PACKAGE, package_discount)]
    if qualifies_for_bulk and bulk_discount > 0:
        applied.append(AppliedDiscount(DISCOUNT_BULK, bulk_discount))
    if certificate_discount > 0:
        applied.append(AppliedDiscount(DISCOUNT_CERTIFICATE, certificate_discount))
    if gift_session_value > 0:
        applied.append(AppliedDiscount(DISCOUNT_GIFT_SESSIONS, gift_session_value))

    logger.debug(
        "tier=%s base=%.2f rate=%.4f discounts=%.2f gift=%.2f final=%.2f available=%s",
        tier,
        base_cost,
        rate,
        actual_discount_total,
        gift_session_value,
        final_cost,
        is_available,
    )

    return PackageResult(
        is_available=is_available,
        unavailable_reason=unavailable_reason,
        final_cost=final_cost,
        total_savings=total_savings,
        monthly_payment=installment,
        applied_discounts=tuple(applied),
        discount_rate=rate,
        actual_discount_total=actual_discount_total,
        gift_session_value=gift_session_value,
        bonus_amount=final_cost * config.bonus_account_percent,
        min_down_payment=min_down,
        max_down_payment=max_down,
        requires_full_payment=config.requires_full_payment,
        perks=tuple(config.perks),
    )


def compute_pricing(
    base_cost: float,
    services: Iterable[ServiceSelection],
    procedure_count: int,
    package_configs: Mapping[str, PackageConfig],
    settings: CalculatorSettings,
    payment: PaymentChoice,
    free_zones: Iterable[FreeZone] = (),
) -> CalculationResult:
    """
    Price every tier independently for one input snapshot.

    base_cost is the already-summed course price; services are used only to
    value gift sessions. Business non-availability is reported on the result,
    only malformed input raises.
    """
    base_cost = _require_number("base_cost", base_cost, minimum=0)
    procedure_count = _require_int("procedure_count", procedure_count, minimum=1)
    services = _require_items("services", services, ServiceSelection)
    free_zones = _require_items("free_zones", free_zones, FreeZone)
    if not isinstance(settings, CalculatorSettings):
        raise TypeError("settings must be CalculatorSettings")
    if not isinstance(payment, PaymentChoice):
        raise TypeError("payment must be PaymentChoice")
    _require_number("payment.down_payment", payment.down_payment, minimum=0)
    _require_int("payment.installment_months", payment.installment_months, minimum=0)
    for tier, config in package_configs.items():
        if not isinstance(config, PackageConfig):
            raise TypeError(f"package config for {tier!r} must be PackageConfig")

    total_procedures = sum(s.quantity for s in services) * procedure_count

    packages: dict[str, PackageResult] = {}
    for tier in TIERS:
        config = package_configs.get(tier)
        if config is None:
            packages[tier] = _missing_package()
            continue
        packages[tier] = _price_package(tier, config, base_cost, total_procedures, procedure_count, settings, payment)

    return CalculationResult(
        base_cost=base_cost,
        packages=packages,
        total_procedures=total_procedures,
        free_zones_value=sum(zone.value for zone in free_zones),
    )


class PricingEngine:
    """Holds package configs and settings; derives base cost from selections and prices all tiers."""

    def __init__(
        self,
        package_configs: Mapping[str, PackageConfig] | None = None,
        settings: CalculatorSettings | None = None,
    ):
        self.package_configs = dict(package_configs or {})
        self.settings = settings or CalculatorSettings()

    def update_configs(self, package_configs: Mapping[str, PackageConfig]) -> None:
        self.package_configs = dict(package_configs)

    def update_settings(self, settings: CalculatorSettings) -> None:
        self.settings = settings

    @staticmethod
    def base_cost(selections: Iterable[ServiceSelection], procedure_count: int) -> float:
        return sum(s.session_cost for s in selections) * procedure_count

    def calculate(
        self,
        selections: Iterable[ServiceSelection],
        procedure_count: int = 1,
        payment: Optional[PaymentChoice] = None,
        free_zones: Iterable[FreeZone] = (),
    ) -> Optional[CalculationResult]:
        """Returns None when nothing is selected; the caller hides the comparison then."""
        selections = list(selections)
        if not selections:
            return None
        _require_items("services", selections, ServiceSelection)
        _require_int("procedure_count", procedure_count, minimum=1)
        return compute_pricing(
            self.base_cost(selections, procedure_count),
            selections,
            procedure_count,
            self.package_configs,
            self.settings,
            payment or PaymentChoice(),
            free_zones,
        )

    @staticmethod
    def format_currency(value: float) -> str:
        # ASCII-friendly currency suffix to avoid encoding issues across terminals.
        return f"{value:,.0f}".replace(",", " ") + " RUB"
