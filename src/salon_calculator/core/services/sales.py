from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

from salon_calculator.core.calculations.payment_schedule import ScheduledPayment, generate_payment_schedule
from salon_calculator.core.calculations.pricing_engine import AppliedDiscount, CalculationResult
from salon_calculator.core.calculations.selection import PackageSelection
from salon_calculator.core.models.service import FreeZone, ServiceSelection
from salon_calculator.utils.contract_number import DEFAULT_PREFIX, next_contract_number
from salon_calculator.utils.qr import generate_qr_png_base64, payment_qr_data

logger = logging.getLogger(__name__)

SALES_PATH = Path(__file__).resolve().parents[2] / "data" / "sales.jsonl"


class SaleValidationError(ValueError):
    pass


@dataclass(frozen=True)
class Sale:
    """Immutable snapshot of the chosen package at the moment the client signed."""

    contract_number: str
    selected_package: str
    base_cost: float
    final_cost: float
    total_savings: float
    down_payment: float
    installment_months: int
    monthly_payment: float
    used_certificate: bool = False
    applied_discounts: tuple[AppliedDiscount, ...] = ()
    selected_services: tuple[ServiceSelection, ...] = ()
    free_zones: tuple[FreeZone, ...] = ()
    perks: tuple[str, ...] = ()
    client: dict = field(default_factory=dict)
    master_id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Sale":
        data = dict(data)
        data["applied_discounts"] = tuple(AppliedDiscount(**d) for d in data.get("applied_discounts", []))
        data["selected_services"] = tuple(ServiceSelection(**s) for s in data.get("selected_services", []))
        data["free_zones"] = tuple(FreeZone(**z) for z in data.get("free_zones", []))
        data["perks"] = tuple(data.get("perks", []))
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        return cls(**data)


def create_sale(
    selection: PackageSelection,
    result: CalculationResult,
    services: Iterable[ServiceSelection],
    contract_number: str,
    free_zones: Iterable[FreeZone] = (),
    client: Optional[dict] = None,
    master_id: Optional[int] = None,
    created_at: Optional[datetime] = None,
) -> Sale:
    """
    Snapshot the selected tier with the payment as it stands now; the monthly
    installment is recomputed since selection may have clamped the down payment.
    Refuses payment choices the tier does not allow.
    """
    errors = selection.validate(result)
    if errors:
        raise SaleValidationError("; ".join(errors))

    data = result.packages[selection.selected]
    payment = selection.payment
    return Sale(
        contract_number=contract_number,
        selected_package=selection.selected,
        base_cost=result.base_cost,
        final_cost=data.final_cost,
        total_savings=data.total_savings,
        down_payment=payment.down_payment,
        installment_months=payment.installment_months,
        monthly_payment=data.monthly_payment_for(payment.down_payment, payment.installment_months),
        used_certificate=payment.used_certificate,
        applied_discounts=data.applied_discounts,
        selected_services=tuple(services),
        free_zones=tuple(free_zones),
        perks=data.perks,
        client=dict(client or {}),
        master_id=master_id,
        created_at=created_at or datetime.now(),
    )


class SaleStore:
    """Append-only JSON Lines log of sales."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else SALES_PATH

    def append(self, sale: Sale) -> Sale:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(sale.to_dict(), ensure_ascii=False) + "\n")
        logger.info("Recorded sale %s (%s, %.2f)", sale.contract_number, sale.selected_package, sale.final_cost)
        return sale

    def read_all(self) -> list[Sale]:
        if not self.path.exists():
            return []
        sales = []
        with self.path.open(encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if line:
                    sales.append(Sale.from_dict(json.loads(line)))
        return sales

    def next_contract_number(self, prefix: str = DEFAULT_PREFIX, today: Optional[date] = None) -> str:
        return next_contract_number((s.contract_number for s in self.read_all()), prefix=prefix, today=today)


def build_sale_payload(
    sale: Sale,
    schedule: Optional[list[ScheduledPayment]] = None,
    payee: str = "",
    doc_title: str = "Subscription agreement",
) -> dict:
    """
    Build structured payload for contract rendering.
    Schedule defaults to the one derived from the sale's own payment terms.
    """
    if schedule is None:
        schedule = generate_payment_schedule(
            sale.down_payment,
            sale.final_cost,
            sale.installment_months,
            start=sale.created_at.date(),
        )
    qr_data = payment_qr_data(sale.contract_number, sale.down_payment, payee)
    client = sale.client
    return {
        "contract_no": sale.contract_number,
        "issue_date": sale.created_at.strftime("%d.%m.%Y"),
        "doc_title": doc_title,
        "package": sale.selected_package,
        "client": {
            "name": client.get("name") or "-",
            "phone": client.get("phone") or "",
            "email": client.get("email") or "",
        },
        "totals": {
            "base_cost": sale.base_cost,
            "final_cost": sale.final_cost,
            "total_savings": sale.total_savings,
            "down_payment": sale.down_payment,
            "remaining": sale.final_cost - sale.down_payment,
            "installment_months": sale.installment_months,
            "monthly_payment": sale.monthly_payment,
        },
        "discounts": [asdict(d) for d in sale.applied_discounts],
        "perks": list(sale.perks),
        "schedule": [
            {"date": p.due_date.strftime("%d.%m.%Y"), "amount": p.amount, "description": p.description}
            for p in schedule
        ],
        "qr_data": qr_data,
        "qr_png": generate_qr_png_base64(qr_data),
    }
