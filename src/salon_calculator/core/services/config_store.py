from __future__ import annotations

import copy
import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Mapping

from salon_calculator.core.models.package import ECONOMY, STANDARD, TIERS, VIP, DiscountStep, PackageConfig
from salon_calculator.core.models.settings import CalculatorSettings

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[2] / "data"
PACKAGES_PATH = DATA_DIR / "packages.json"
SETTINGS_PATH = DATA_DIR / "settings.json"

SETTINGS_AMOUNTS = (
    "minimum_down_payment",
    "bulk_discount_percentage",
    "certificate_discount_amount",
    "certificate_min_course_amount",
)

DEFAULT_PACKAGES = {
    VIP: PackageConfig(
        type=VIP,
        name="VIP",
        discount_rate=0.25,
        min_cost=50000.0,
        min_down_payment_percent=1.0,
        requires_full_payment=True,
        gift_sessions=3,
        bonus_account_percent=0.2,
    ),
    STANDARD: PackageConfig(
        type=STANDARD,
        name="Standard",
        discount_rate=0.2,
        min_cost=25000.0,
        min_down_payment_percent=0.5,
        gift_sessions=1,
        bonus_account_percent=0.1,
    ),
    ECONOMY: PackageConfig(
        type=ECONOMY,
        name="Economy",
        discount_rate=0.1,
        min_cost=15000.0,
        min_down_payment_percent=0.3,
        dynamic_rates=[DiscountStep(threshold=30000.0, rate=0.15)],
    ),
}


def _resolve(path: str | Path | None, default: Path) -> Path:
    if not path:
        return default
    custom = Path(path)
    return custom / default.name if custom.is_dir() else custom


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _parse_package(item: dict) -> PackageConfig:
    item = dict(item)
    if "discount" in item and "discount_rate" not in item:
        item["discount_rate"] = item.pop("discount")
    steps = [DiscountStep(float(s["threshold"]), float(s["rate"])) for s in item.pop("dynamic_rates", [])]
    # Single threshold/rate pair kept in older configs.
    threshold = item.pop("dynamic_threshold", None)
    dynamic_rate = item.pop("dynamic_discount_rate", item.pop("dynamic_discount", None))
    if threshold is not None and dynamic_rate is not None:
        steps.append(DiscountStep(float(threshold), float(dynamic_rate)))
    allowed = {f.name for f in fields(PackageConfig)}
    config = PackageConfig(**{k: v for k, v in item.items() if k in allowed})
    config.dynamic_rates = steps
    for name in ("discount_rate", "min_cost", "min_down_payment_percent", "min_down_payment", "bonus_account_percent"):
        setattr(config, name, float(getattr(config, name) or 0.0))
    config.gift_sessions = int(config.gift_sessions or 0)
    config.requires_full_payment = _as_bool(config.requires_full_payment)
    return config


def load_package_configs(path: str | Path | None = None) -> dict[str, PackageConfig]:
    """
    Load per-tier configs from `packages.json` ({"packages": [{"type": "vip", ...}]}).
    Falls back to built-in defaults when the file is missing or unreadable.
    A file that omits a tier leaves that tier out; the engine reports it as not found.
    """
    target = _resolve(path, PACKAGES_PATH)
    if not target.exists():
        logger.warning("Package config %s not found, using defaults", target)
        return copy.deepcopy(DEFAULT_PACKAGES)
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
        raw = data.get("packages", []) if isinstance(data, dict) else data
        configs = [_parse_package(item) for item in raw]
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.warning("Failed to load package config %s: %s", target, exc)
        return copy.deepcopy(DEFAULT_PACKAGES)
    result = {}
    for config in configs:
        if config.type not in TIERS:
            logger.warning("Ignoring unknown package type %r", config.type)
            continue
        result[config.type] = config
    return result


def save_package_configs(configs: Mapping[str, PackageConfig], path: str | Path | None = None) -> Path:
    target = _resolve(path, PACKAGES_PATH)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = {"packages": [asdict(c) for c in configs.values()]}
    target.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Saved %d package configs to %s", len(configs), target)
    return target


def load_settings(path: str | Path | None = None) -> CalculatorSettings:
    target = _resolve(path, SETTINGS_PATH)
    if not target.exists():
        logger.warning("Calculator settings %s not found, using defaults", target)
        return CalculatorSettings()
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
        raw = data.get("settings", data)
        allowed = {f.name for f in fields(CalculatorSettings)}
        values = {k: v for k, v in raw.items() if k in allowed}
        if "installment_month_options" in values:
            values["installment_month_options"] = sorted(int(m) for m in values["installment_month_options"])
        if "bulk_discount_threshold" in values:
            values["bulk_discount_threshold"] = int(values["bulk_discount_threshold"])
        for name in SETTINGS_AMOUNTS:
            if name in values:
                values[name] = float(values[name])
        return CalculatorSettings(**values)
    except (ValueError, TypeError, AttributeError) as exc:
        logger.warning("Failed to load calculator settings %s: %s", target, exc)
        return CalculatorSettings()


def save_settings(settings: CalculatorSettings, path: str | Path | None = None) -> Path:
    target = _resolve(path, SETTINGS_PATH)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps({"settings": asdict(settings)}, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Saved calculator settings to %s", target)
    return target
