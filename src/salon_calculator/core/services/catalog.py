from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Mapping

from salon_calculator.core.models.service import FreeZone, Service, ServiceSelection

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[2] / "data"
SERVICES_PATH = DATA_DIR / "services.json"


def _resolve(path: str | Path | None, default: Path) -> Path:
    if not path:
        return default
    custom = Path(path)
    return custom / default.name if custom.is_dir() else custom


def _parse_service(item: dict) -> Service:
    item = dict(item)
    # Older exports from the booking system carry `price_min` as a string.
    if "unit_price" not in item and "price_min" in item:
        item["unit_price"] = item.pop("price_min")
    item["unit_price"] = float(item.get("unit_price") or 0.0)
    item.setdefault("category", "")
    item.setdefault("is_active", True)
    allowed = {"id", "title", "unit_price", "category", "is_active"}
    return Service(**{k: v for k, v in item.items() if k in allowed})


def load_catalog(path: str | Path | None = None) -> dict[int, Service]:
    """
    Load active services keyed by id from `services.json` ({"services": [...]}).
    Missing or broken file gives an empty catalog.
    """
    target = _resolve(path, SERVICES_PATH)
    if not target.exists():
        logger.warning("Service catalog %s not found", target)
        return {}
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
        raw = data.get("services", []) if isinstance(data, dict) else data
        services = [_parse_service(item) for item in raw]
    except (ValueError, TypeError, AttributeError) as exc:
        logger.warning("Failed to load service catalog %s: %s", target, exc)
        return {}
    return {svc.id: svc for svc in services if svc.is_active}


def save_catalog(catalog: Mapping[int, Service], path: str | Path | None = None) -> Path:
    target = _resolve(path, SERVICES_PATH)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {"services": [asdict(s) for s in catalog.values()]}
    target.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Saved %d services to %s", len(catalog), target)
    return target


def build_selections(catalog: Mapping[int, Service], quantities: Mapping[int, int]) -> list[ServiceSelection]:
    """Resolve current prices for chosen service ids; unknown ids are skipped."""
    selections: list[ServiceSelection] = []
    for service_id, qty in quantities.items():
        service = catalog.get(service_id)
        if service is None:
            logger.warning("Unknown service id %s skipped", service_id)
            continue
        selections.append(ServiceSelection(service_id=service.id, unit_price=service.unit_price, quantity=qty))
    return selections


def build_free_zones(catalog: Mapping[int, Service], quantities: Mapping[int, int]) -> list[FreeZone]:
    zones: list[FreeZone] = []
    for service_id, qty in quantities.items():
        service = catalog.get(service_id)
        if service is None:
            logger.warning("Unknown free zone service id %s skipped", service_id)
            continue
        zones.append(FreeZone(service_id=service.id, unit_price=service.unit_price, quantity=qty, title=service.title))
    return zones
