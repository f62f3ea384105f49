from __future__ import annotations

from typing import Optional

from salon_calculator.core.calculations.pricing_engine import CalculationResult
from salon_calculator.core.models.package import ECONOMY, STANDARD, VIP
from salon_calculator.core.models.payment import PaymentChoice
from salon_calculator.core.models.settings import CalculatorSettings

# Preferred order when nothing has been picked yet.
AUTO_SELECT_ORDER = (STANDARD, VIP, ECONOMY)


class PackageUnavailableError(ValueError):
    pass


class PackageSelection:
    """
    Tracks the chosen tier and keeps the caller's PaymentChoice consistent with it.

    Selecting a full-payment tier forces the down payment to the final cost;
    other tiers only clamp the down payment when it falls outside their bounds.
    """

    def __init__(self, payment: PaymentChoice, settings: Optional[CalculatorSettings] = None):
        self.payment = payment
        self.settings = settings or CalculatorSettings()
        self.selected: Optional[str] = None

    def select(self, tier: str, result: CalculationResult) -> None:
        data = result.packages.get(tier)
        if data is None:
            raise PackageUnavailableError(f"Unknown package: {tier}")
        if not data.is_available:
            raise PackageUnavailableError(data.unavailable_reason or f"Package {tier} is not available")

        if data.requires_full_payment:
            self.payment.down_payment = data.final_cost
            self.payment.installment_months = 0
        elif self.payment.down_payment < data.min_down_payment:
            self.payment.down_payment = data.min_down_payment
        elif self.payment.down_payment > data.max_down_payment:
            self.payment.down_payment = data.max_down_payment
        self.selected = tier

    def clear(self) -> None:
        self.selected = None

    def auto_select(self, result: CalculationResult) -> Optional[str]:
        if self.selected is None:
            for tier in AUTO_SELECT_ORDER:
                data = result.packages.get(tier)
                if data is not None and data.is_available:
                    self.select(tier, result)
                    break
        return self.selected

    def validate(self, result: CalculationResult) -> list[str]:
        """Return problems with the current choice; empty list means a sale may be created."""
        if self.selected is None:
            return ["No package selected"]
        data = result.packages.get(self.selected)
        if data is None or not data.is_available:
            return [f"Package {self.selected} is not available"]
        errors = []
        if not data.min_down_payment <= self.payment.down_payment <= data.max_down_payment:
            errors.append(
                f"Down payment {self.payment.down_payment:.2f} outside "
                f"[{data.min_down_payment:.2f}, {data.max_down_payment:.2f}]"
            )
        if data.requires_full_payment and self.payment.installment_months:
            errors.append(f"Package {self.selected} requires full payment")
        months = self.payment.installment_months
        if months and not data.requires_full_payment and months not in self.settings.installment_month_options:
            errors.append(f"Installment term of {months} months is not offered")
        return errors
