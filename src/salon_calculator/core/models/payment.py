from dataclasses import dataclass


@dataclass
class PaymentChoice:
    """Caller-owned payment state; adjusted by package selection."""

    down_payment: float = 0.0
    installment_months: int = 0
    used_certificate: bool = False
