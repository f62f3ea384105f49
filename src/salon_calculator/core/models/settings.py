from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class CalculatorSettings:
    """Global tunables of the calculator, edited from the admin screen."""

    minimum_down_payment: float = 5000.0
    bulk_discount_threshold: int = 15
    bulk_discount_percentage: float = 0.025
    certificate_discount_amount: float = 3000.0
    certificate_min_course_amount: float = 25000.0
    installment_month_options: List[int] = field(default_factory=lambda: [2, 3, 4, 5, 6])

    def certificate_discount(self, base_cost: float, used_certificate: bool) -> float:
        if used_certificate and base_cost >= self.certificate_min_course_amount:
            return float(self.certificate_discount_amount)
        return 0.0

    def qualifies_for_bulk(self, procedure_count: int) -> bool:
        return procedure_count >= self.bulk_discount_threshold
