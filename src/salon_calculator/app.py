from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from salon_calculator.core.calculations.pricing_engine import PricingEngine
from salon_calculator.core.models.payment import PaymentChoice
from salon_calculator.core.services.catalog import build_free_zones, build_selections, load_catalog
from salon_calculator.core.services.config_store import load_package_configs, load_settings


def _parse_quantities(raw: str | None) -> dict[int, int]:
    """Parse `12:2,15:1` (service id : quantity); bare ids mean quantity 1."""
    quantities: dict[int, int] = {}
    for chunk in (raw or "").split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        service_id, _, qty = chunk.partition(":")
        quantities[int(service_id)] = int(qty) if qty else 1
    return quantities


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Course package calculator (VIP / Standard / Economy)")
    parser.add_argument("--services", required=True, help="service ids with quantities, e.g. 12:2,15:1")
    parser.add_argument("--procedures", type=int, default=10, help="number of course sessions")
    parser.add_argument("--down-payment", type=float, default=0.0)
    parser.add_argument("--months", type=int, default=0, help="installment months, 0 = pay at once")
    parser.add_argument("--certificate", action="store_true", help="client uses a promo certificate")
    parser.add_argument("--free-zone", default="", help="free zone service id with quantity, e.g. 7:1")
    parser.add_argument("--data", default=None, help="directory with services/packages/settings JSON")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    catalog = load_catalog(args.data)
    engine = PricingEngine(load_package_configs(args.data), load_settings(args.data))
    selections = build_selections(catalog, _parse_quantities(args.services))
    free_zones = build_free_zones(catalog, _parse_quantities(args.free_zone))
    payment = PaymentChoice(
        down_payment=args.down_payment,
        installment_months=args.months,
        used_certificate=args.certificate,
    )

    result = engine.calculate(selections, args.procedures, payment, free_zones)
    if result is None:
        print("No known services selected.")
        return 1

    fmt = engine.format_currency
    print(f"Base cost: {fmt(result.base_cost)} ({result.total_procedures} procedures)")
    if result.free_zones_value:
        print(f"Free zones: {fmt(result.free_zones_value)}")
    for tier, data in result.packages.items():
        if not data.is_available:
            print(f"{tier:<9} unavailable: {data.unavailable_reason}")
            continue
        line = f"{tier:<9} {fmt(data.final_cost):>12}  savings {fmt(data.total_savings)}"
        if data.monthly_payment:
            line += f"  monthly {fmt(data.monthly_payment)}"
        print(line)
        if data.perks:
            print(" " * 10 + ", ".join(data.perks))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
