from datetime import date

import pytest

from salon_calculator.core.calculations.payment_schedule import add_months, generate_payment_schedule


def test_schedule_splits_remainder_into_months():
    schedule = generate_payment_schedule(10000.0, 40000.0, 3, start=date(2024, 1, 31))

    assert [p.due_date for p in schedule] == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]
    assert schedule[0].amount == 10000.0
    assert schedule[0].description == "Down payment"
    assert [p.amount for p in schedule[1:]] == pytest.approx([10000.0] * 3)
    assert schedule[-1].description == "Payment 3 of 3"


@pytest.mark.parametrize("months", [0, 1])
def test_schedule_without_installments_has_only_down_payment(months):
    schedule = generate_payment_schedule(43500.0, 43500.0, months, start=date(2024, 5, 1))
    assert len(schedule) == 1
    assert schedule[0].amount == 43500.0


def test_add_months_rolls_over_year():
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
