from __future__ import annotations

import io

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_M
from qrcode.image.pil import PilImage

from ..errors import EncodingError

"""QR rendering: token text -> square PNG of fixed width."""

__all__ = [
    "QR_WIDTH_PX",
    "QR_MARGIN_MODULES",
    "QrEncoder",
]

QR_WIDTH_PX = 600
QR_MARGIN_MODULES = 1


class QrEncoder:
    """Renders a token into a PNG ``width`` pixels wide with a ``margin``-module quiet zone."""

    def __init__(self, width: int = QR_WIDTH_PX, margin: int = QR_MARGIN_MODULES) -> None:
        self.width = width
        self.margin = margin

    def render(self, token: str) -> bytes:
        """Return PNG bytes for ``token``.

        Raises:
            EncodingError: If the token cannot be encoded (e.g. too long for level M).
        """
        try:
            qr = qrcode.QRCode(
                version=None,
                error_correction=ERROR_CORRECT_M,
                box_size=1,
                border=self.margin,
                image_factory=PilImage,
            )
            qr.add_data(token)
            qr.make(fit=True)
            # one pixel per module, then scale up without smoothing
            img = qr.make_image(fill_color="black", back_color="white").get_image()
            img = img.convert("L").resize((self.width, self.width), Image.Resampling.NEAREST)
            buf = io.BytesIO()
            img.save(buf, format="PNG")
        except Exception as e:
            raise EncodingError(f"QR encoding failed: {e}") from e
        return buf.getvalue()
