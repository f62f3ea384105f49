import math

import pytest

from salon_calculator.core.calculations.pricing_engine import (
    PACKAGE_NOT_FOUND,
    PricingEngine,
    compute_pricing,
)
from salon_calculator.core.models.package import DiscountStep, PackageConfig
from salon_calculator.core.models.payment import PaymentChoice
from salon_calculator.core.models.service import FreeZone, ServiceSelection


def _kinds(data):
    return [d.kind for d in data.applied_discounts]


def test_vip_full_payment_with_bulk_discount(vip_scenario):
    result, _ = vip_scenario
    vip = result.packages["vip"]

    assert result.total_procedures == 20
    assert vip.is_available
    assert vip.discount("package") == pytest.approx(15000)
    assert vip.discount("bulk") == pytest.approx(1500)
    assert vip.actual_discount_total == pytest.approx(16500)
    assert vip.final_cost == pytest.approx(43500)
    assert vip.min_down_payment == vip.max_down_payment == vip.final_cost
    assert vip.monthly_payment == 0
    # two gifted passes through a 3000 session
    assert vip.gift_session_value == pytest.approx(6000)
    assert vip.total_savings == pytest.approx(22500)
    assert _kinds(vip) == ["package", "bulk", "gift_sessions"]


def test_standard_installment_and_bounds(vip_scenario):
    result, _ = vip_scenario
    standard = result.packages["standard"]

    assert standard.final_cost == pytest.approx(46500)
    assert standard.min_down_payment == pytest.approx(23250)
    assert standard.max_down_payment == pytest.approx(46500)
    assert standard.monthly_payment == pytest.approx(46500 / 4)
    assert standard.bonus_amount == pytest.approx(4650)
    assert result.total_gifts_value("standard") == pytest.approx(3000 + 4650)


def test_economy_below_min_cost_is_unavailable(package_configs, settings):
    services = [ServiceSelection(1, 1000.0, 1)]
    payment = PaymentChoice(down_payment=0.0, installment_months=4)

    result = compute_pricing(10000.0, services, 10, package_configs, settings, payment, [])
    economy = result.packages["economy"]

    assert not economy.is_available
    assert "15000" in economy.unavailable_reason
    assert economy.final_cost == pytest.approx(9000)
    assert economy.monthly_payment == 0
    assert result.available_tiers() == []


@pytest.mark.parametrize(
    "base_cost, expected",
    [
        (25000.0, 3000.0),
        (24999.0, 0.0),
    ],
)
def test_certificate_threshold_is_inclusive(package_configs, settings, base_cost, expected):
    payment = PaymentChoice(used_certificate=True)
    services = [ServiceSelection(1, base_cost / 10, 1)]

    result = compute_pricing(base_cost, services, 10, package_configs, settings, payment, [])

    for data in result.packages.values():
        assert data.discount("certificate") == expected
        assert ("certificate" in _kinds(data)) == bool(expected)


def test_certificate_not_used(package_configs, settings, one_service):
    result = compute_pricing(60000.0, one_service, 10, package_configs, settings, PaymentChoice(), [])
    for data in result.packages.values():
        assert "certificate" not in _kinds(data)


def test_free_zones_are_display_only(package_configs, settings):
    services = [ServiceSelection(1, 2000.0, 1), ServiceSelection(2, 1000.0, 1)]
    zones = [FreeZone(3, 2000.0, 1)]
    payment = PaymentChoice(down_payment=10000.0, installment_months=3)

    with_zones = compute_pricing(30000.0, services, 10, package_configs, settings, payment, zones)
    without = compute_pricing(30000.0, services, 10, package_configs, settings, payment, [])

    assert with_zones.free_zones_value == 2000
    assert with_zones.total_procedures == 20
    for tier in with_zones.packages:
        assert with_zones.packages[tier] == without.packages[tier]
        assert "free_zones" not in _kinds(with_zones.packages[tier])


def test_no_installment_means_no_monthly_payment(package_configs, settings, one_service):
    payment = PaymentChoice(down_payment=20000.0, installment_months=0)
    result = compute_pricing(60000.0, one_service, 20, package_configs, settings, payment, [])
    assert result.packages["standard"].monthly_payment == 0
    assert result.packages["economy"].monthly_payment == 0


def test_economy_dynamic_rate_steps_up_once(package_configs, settings, one_service):
    rates = []
    for base_cost in (20000.0, 29999.0, 30000.0, 45000.0, 90000.0):
        result = compute_pricing(base_cost, one_service, 10, package_configs, settings, PaymentChoice(), [])
        rates.append(result.packages["economy"].discount_rate)

    assert rates == [0.1, 0.1, 0.15, 0.15, 0.15]


def test_dynamic_steps_evaluated_from_highest_threshold(settings, one_service):
    economy = PackageConfig(
        type="economy",
        discount_rate=0.1,
        dynamic_rates=[DiscountStep(30000.0, 0.15), DiscountStep(80000.0, 0.2)],
    )
    configs = {"economy": economy}

    def rate(cost):
        result = compute_pricing(cost, one_service, 10, configs, settings, PaymentChoice(), [])
        return result.packages["economy"].discount_rate

    assert rate(40000.0) == 0.15
    assert rate(80000.0) == 0.2


def test_dynamic_steps_never_lower_the_rate(settings, one_service):
    economy = PackageConfig(type="economy", discount_rate=0.3, dynamic_rates=[DiscountStep(1000.0, 0.15)])
    result = compute_pricing(5000.0, one_service, 1, {"economy": economy}, settings, PaymentChoice(), [])
    assert result.packages["economy"].discount_rate == 0.3


def test_dynamic_steps_only_apply_to_economy(settings, one_service):
    standard = PackageConfig(type="standard", discount_rate=0.2, dynamic_rates=[DiscountStep(1000.0, 0.5)])
    result = compute_pricing(5000.0, one_service, 1, {"standard": standard}, settings, PaymentChoice(), [])
    assert result.packages["standard"].discount_rate == 0.2


def test_missing_tier_reports_package_not_found(package_configs, settings, one_service):
    del package_configs["economy"]

    result = compute_pricing(60000.0, one_service, 10, package_configs, settings, PaymentChoice(), [])

    assert list(result.packages) == ["vip", "standard", "economy"]
    assert not result.packages["economy"].is_available
    assert result.packages["economy"].unavailable_reason == PACKAGE_NOT_FOUND
    assert result.packages["vip"].is_available


def test_zero_services_guards_division(package_configs, settings):
    payment = PaymentChoice(down_payment=0.0, installment_months=4)

    result = compute_pricing(0.0, [], 1, package_configs, settings, payment, [])

    assert result.total_procedures == 0
    for data in result.packages.values():
        assert data.gift_session_value == 0
        assert math.isfinite(data.monthly_payment)
        assert data.monthly_payment == 0


def test_final_cost_is_clamped_at_zero(settings):
    configs = {"standard": PackageConfig(type="standard", discount_rate=0.99)}
    services = [ServiceSelection(1, 1500.0, 1)]
    payment = PaymentChoice(used_certificate=True)

    result = compute_pricing(30000.0, services, 20, configs, settings, payment, [])
    standard = result.packages["standard"]

    assert standard.actual_discount_total > 30000
    assert standard.final_cost == 0


def test_overpayment_gives_negative_monthly_payment(package_configs, settings, one_service):
    payment = PaymentChoice(down_payment=50000.0, installment_months=2)

    result = compute_pricing(60000.0, one_service, 20, package_configs, settings, payment, [])

    assert result.packages["standard"].monthly_payment == pytest.approx((46500 - 50000) / 2)


@pytest.mark.parametrize("base_cost", [0.0, 12000.0, 25000.0, 48000.0, 150000.0])
@pytest.mark.parametrize("procedure_count", [1, 14, 15, 30])
@pytest.mark.parametrize("used_certificate", [False, True])
def test_discount_accounting_closes(package_configs, settings, base_cost, procedure_count, used_certificate):
    services = [ServiceSelection(1, 1000.0, 2), ServiceSelection(2, 500.0, 1)]
    payment = PaymentChoice(down_payment=1000.0, installment_months=3, used_certificate=used_certificate)

    result = compute_pricing(base_cost, services, procedure_count, package_configs, settings, payment, [])

    for tier, data in result.packages.items():
        assert data.final_cost + data.actual_discount_total == pytest.approx(base_cost)
        assert data.total_savings >= data.actual_discount_total
        assert data.is_available == (base_cost >= package_configs[tier].min_cost)
        if procedure_count < settings.bulk_discount_threshold:
            assert "bulk" not in _kinds(data)
        assert _kinds(data)[0] == "package"


def test_compute_pricing_is_idempotent(package_configs, settings, one_service):
    payment = PaymentChoice(down_payment=15000.0, installment_months=4, used_certificate=True)
    zones = [FreeZone(9, 1200.0, 1)]

    first = compute_pricing(60000.0, one_service, 20, package_configs, settings, payment, zones)
    second = compute_pricing(60000.0, one_service, 20, package_configs, settings, payment, zones)

    assert first == second


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"base_cost": "60000"}, TypeError),
        ({"base_cost": True}, TypeError),
        ({"base_cost": -1.0}, ValueError),
        ({"procedure_count": 0}, ValueError),
        ({"procedure_count": 2.5}, TypeError),
        ({"services": [(1, 3000.0, 1)]}, TypeError),
        ({"payment": {"down_payment": 0}}, TypeError),
    ],
)
def test_malformed_input_raises(package_configs, settings, one_service, kwargs, error):
    call = {
        "base_cost": 60000.0,
        "services": one_service,
        "procedure_count": 10,
        "package_configs": package_configs,
        "settings": settings,
        "payment": PaymentChoice(),
        "free_zones": [],
    }
    call.update(kwargs)
    with pytest.raises(error):
        compute_pricing(**call)


def test_pricing_engine_derives_base_cost(package_configs, settings):
    engine = PricingEngine(package_configs, settings)
    selections = [ServiceSelection(1, 2000.0, 2), ServiceSelection(2, 1500.0, 1)]

    result = engine.calculate(selections, 10, PaymentChoice(down_payment=20000.0, installment_months=4))

    assert result.base_cost == pytest.approx((2000 * 2 + 1500) * 10)
    assert result.total_procedures == 30


def test_pricing_engine_returns_none_without_services(package_configs, settings):
    engine = PricingEngine(package_configs, settings)
    assert engine.calculate([], 10) is None


def test_pricing_engine_update_configs(package_configs, settings, one_service):
    engine = PricingEngine({}, settings)
    assert not engine.calculate(one_service, 20).packages["vip"].is_available

    engine.update_configs(package_configs)

    assert engine.calculate(one_service, 20).packages["vip"].is_available


def test_format_currency_uses_rub_suffix():
    formatted = PricingEngine.format_currency(43500)
    assert formatted == "43 500 RUB"


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_amounts_are_rejected(package_configs, settings, one_service, value):
    with pytest.raises(ValueError, match="finite"):
        compute_pricing(value, one_service, 10, package_configs, settings, PaymentChoice(), [])
    with pytest.raises(ValueError, match="finite"):
        compute_pricing(60000.0, one_service, 10, package_configs, settings, PaymentChoice(down_payment=value), [])
    with pytest.raises(ValueError, match="finite"):
        compute_pricing(60000.0, [ServiceSelection(1, value, 1)], 10, package_configs, settings, PaymentChoice(), [])


def test_package_perks_are_passed_through(package_configs, settings, one_service):
    package_configs["vip"].perks = ["3 gift sessions", "Free procedure freeze"]

    result = compute_pricing(60000.0, one_service, 20, package_configs, settings, PaymentChoice(), [])

    assert result.packages["vip"].perks == ("3 gift sessions", "Free procedure freeze")
    assert result.packages["economy"].perks == ()


def test_monthly_payment_for_later_payment_choice(vip_scenario):
    result, _ = vip_scenario

    assert result.packages["standard"].monthly_payment_for(23250.0, 4) == pytest.approx(5812.5)
    assert result.packages["standard"].monthly_payment_for(23250.0, 0) == 0
    assert result.packages["vip"].monthly_payment_for(0.0, 4) == 0
