from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

DEFAULT_PREFIX = "AB"


def next_contract_number(
    existing: Iterable[str],
    prefix: str = DEFAULT_PREFIX,
    today: Optional[date] = None,
) -> str:
    """
    Generate `{prefix}{yyyy}{mm}{nnn}`; nnn continues the highest number issued
    with the same prefix in the same month and restarts at 001 each month.
    """
    today = today or date.today()
    stem = f"{prefix}{today:%Y%m}"
    highest = 0
    for number in existing:
        if not number or not number.startswith(stem):
            continue
        tail = number[len(stem):]
        if tail.isdigit():
            highest = max(highest, int(tail))
    return f"{stem}{highest + 1:03d}"
