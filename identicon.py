"""QR identicon for the card face."""
from __future__ import annotations

import qrcode
from PIL import Image

DEFAULT_BOX_SIZE = 10
DEFAULT_BORDER = 4


def encode(text: str, box_size: int = DEFAULT_BOX_SIZE, border: int = DEFAULT_BORDER) -> Image.Image:
    """Encode ``text`` as a QR code bitmap.

    The smallest QR version that fits is chosen, so identical text always
    yields an identical image.
    """
    qr_code = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=box_size,
        border=border,
    )
    qr_code.add_data(text)
    qr_code.make(fit=True)
    image = qr_code.make_image(fill_color="black", back_color="white")
    return image.get_image().convert("RGB")
