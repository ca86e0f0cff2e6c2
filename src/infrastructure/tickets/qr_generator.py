# src/infrastructure/tickets/qr_generator.py

import base64
import io

import qrcode
import qrcode.exceptions
from PIL import Image


class QrGenerationError(Exception):
    """Raised when a QR code image cannot be produced."""


class QrCodeGenerator:

    def make_image(self, payload: str, width: int, height: int) -> Image.Image:
        if not payload:
            raise QrGenerationError("QR payload must not be empty.")
        if width <= 0 or height <= 0:
            raise QrGenerationError(f"Invalid QR size {width}x{height}.")

        try:
            qr = qrcode.QRCode(
                version=1,
                error_correction=qrcode.constants.ERROR_CORRECT_L,
                box_size=10,
                border=4,
            )
            qr.add_data(payload)
            qr.make(fit=True)

            img = qr.make_image(fill_color="black", back_color="white").get_image()
            return img.convert("RGB").resize((width, height), Image.NEAREST)
        except (ValueError, OSError, qrcode.exceptions.DataOverflowError) as exc:
            raise QrGenerationError(f"Could not encode {payload!r}: {exc}") from exc

    def generate(self, payload: str, width: int, height: int) -> str:
        """Returns the QR code as a base64-encoded PNG."""
        img = self.make_image(payload, width, height)

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return base64.b64encode(buffer.getvalue()).decode("utf-8")
