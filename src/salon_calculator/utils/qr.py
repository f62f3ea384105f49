"""
Payment QR helper for sale documents.
"""

from __future__ import annotations

import base64
import io
from typing import Sequence

import qrcode
from qrcode.constants import ERROR_CORRECT_M

# Module size in pixels for codes embedded in contract documents.
DOCUMENT_BOX_SIZE = 8


def _payment_code(data: str, box_size: int) -> qrcode.QRCode:
    code = qrcode.QRCode(
        error_correction=ERROR_CORRECT_M,
        box_size=box_size,
        border=2,
    )
    code.add_data(data)
    code.make(fit=True)
    return code


def make_qr_matrix(data: str) -> Sequence[Sequence[bool]]:
    return _payment_code(data, box_size=1).get_matrix()


def generate_qr_png_base64(data: str, box_size: int = DOCUMENT_BOX_SIZE) -> str:
    """Base64 PNG of the payment code, ready to embed in a contract document."""
    image = _payment_code(data, box_size).make_image(fill_color="black", back_color="white")
    with io.BytesIO() as png:
        image.save(png, format="PNG")
        return base64.b64encode(png.getvalue()).decode("ascii")


def payment_qr_data(contract_number: str, amount: float, payee: str = "") -> str:
    """Compact payment string: contract number as reference plus the amount due now."""
    parts = [f"REF={contract_number}", f"SUM={amount:.2f}"]
    if payee:
        parts.insert(0, f"NAME={payee}")
    return "|".join(parts)
