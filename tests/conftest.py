import sys
from pathlib import Path

import pytest

# Ensure `src` is importable when running tests from repo root.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture
def settings():
    from salon_calculator.core.models.settings import CalculatorSettings

    return CalculatorSettings(
        minimum_down_payment=5000.0,
        bulk_discount_threshold=15,
        bulk_discount_percentage=0.025,
        certificate_discount_amount=3000.0,
        certificate_min_course_amount=25000.0,
    )


@pytest.fixture
def package_configs():
    from salon_calculator.core.models.package import DiscountStep, PackageConfig

    return {
        "vip": PackageConfig(
            type="vip",
            discount_rate=0.25,
            min_cost=50000.0,
            min_down_payment_percent=1.0,
            requires_full_payment=True,
            gift_sessions=2,
            bonus_account_percent=0.2,
        ),
        "standard": PackageConfig(
            type="standard",
            discount_rate=0.2,
            min_cost=25000.0,
            min_down_payment_percent=0.5,
            gift_sessions=1,
            bonus_account_percent=0.1,
        ),
        "economy": PackageConfig(
            type="economy",
            discount_rate=0.1,
            min_cost=15000.0,
            min_down_payment_percent=0.3,
            dynamic_rates=[DiscountStep(threshold=30000.0, rate=0.15)],
        ),
    }


@pytest.fixture
def one_service():
    from salon_calculator.core.models.service import ServiceSelection

    return [ServiceSelection(service_id=1, unit_price=3000.0, quantity=1)]


@pytest.fixture
def vip_scenario(one_service, package_configs, settings):
    """60 000 course of 20 sessions, four installments requested, nothing paid yet."""
    from salon_calculator.core.calculations.pricing_engine import compute_pricing
    from salon_calculator.core.models.payment import PaymentChoice

    payment = PaymentChoice(down_payment=0.0, installment_months=4)
    result = compute_pricing(60000.0, one_service, 20, package_configs, settings, payment, [])
    return result, payment
