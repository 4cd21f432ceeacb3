"""QR code rendering for deposit payment URIs."""

from __future__ import annotations

import base64

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from qrcode.image.svg import SvgPathImage


class SvgQRRenderer:
    """Render a payload as an SVG QR code wrapped in a data URL."""

    def __init__(self, box_size: int = 8, border: int = 1):
        self.box_size = box_size
        self.border = border

    def render(self, payload: str) -> str:
        qr = qrcode.QRCode(
            error_correction=ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
            image_factory=SvgPathImage,
        )
        qr.add_data(payload)
        qr.make(fit=True)
        svg = qr.make_image().to_string()
        if isinstance(svg, str):
            svg = svg.encode("utf-8")
        encoded = base64.b64encode(svg).decode("ascii")
        return f"data:image/svg+xml;base64,{encoded}"
