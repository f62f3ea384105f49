from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class ScheduledPayment:
    due_date: date
    amount: float
    description: str


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def generate_payment_schedule(
    down_payment: float,
    final_cost: float,
    installment_months: int = 0,
    start: Optional[date] = None,
) -> list[ScheduledPayment]:
    """
    Down payment today, then equal monthly installments of the remainder.
    A single month counts as paying the rest at once, so no installments are listed.
    """
    start = start or date.today()
    schedule = [ScheduledPayment(start, down_payment, "Down payment")]
    if installment_months and installment_months > 1:
        monthly = (final_cost - down_payment) / installment_months
        for i in range(1, installment_months + 1):
            schedule.append(
                ScheduledPayment(add_months(start, i), monthly, f"Payment {i} of {installment_months}")
            )
    return schedule
