"""Payment QR code generation.

Builds a currency-specific payment payload and encodes it as a PNG data URL.

NOTE: The payloads imitate PromptPay, GCash, GoPay and VietQR but are
illustrative display strings only. They are not certified payloads for any
payment network; a real integration needs each network's certified EMVCo payload format.

Based on the qrcode library:
https://github.com/lincolnloop/python-qrcode
"""

import base64
import io
import logging
import time
from collections.abc import Callable

import qrcode
from qrcode.image.pil import PilImage

from voiceflow.shared.config import Settings
from voiceflow.shared.errors import QRGenerationError

logger = logging.getLogger(__name__)

PROMPTPAY_ID = "0891234567890"
GCASH_MERCHANT_ID = "DEMO123456"
GOPAY_MERCHANT_ID = "GOPAY_DEMO_12345"
VIETQR_BANK_CODE = "970436"
VIETQR_ACCOUNT_NUMBER = "1234567890"


def format_amount(amount: float) -> str:
    """Render an amount without a trailing '.0' for whole numbers."""
    return str(int(amount)) if float(amount).is_integer() else repr(float(amount))


def promptpay_payload(amount: float) -> str:
    amount_digits = f"{amount:.2f}".replace(".", "").zfill(12)
    return (
        f"00020101021129370016A000000677010111011300{PROMPTPAY_ID}"
        f"520454{amount_digits}5303764540{amount:.2f}5802TH63040123"
    )


def gcash_payload(amount: float, reference: str) -> str:
    return (
        f"https://qr.gcash.com/qrcode?merchantId={GCASH_MERCHANT_ID}"
        f"&amount={format_amount(amount)}&currency=PHP&reference={reference}"
    )


def gopay_payload(amount: float, reference: str) -> str:
    return (
        f"https://gojek.link/gopay/qr?merchant={GOPAY_MERCHANT_ID}"
        f"&amount={format_amount(amount)}&currency=IDR&ref={reference}"
    )


def vietqr_payload(amount: float) -> str:
    amount_str = format_amount(amount)
    return (
        f"00020101021238540010A00000072701240006{VIETQR_BANK_CODE}"
        f"01{len(VIETQR_ACCOUNT_NUMBER)}{VIETQR_ACCOUNT_NUMBER}"
        f"520454{len(amount_str)}{amount_str}5303704540{amount_str}.005802VN63041234"
    )


class PaymentQRGenerator:
    """Builds and encodes payment QR codes.

    Args:
        settings: Application settings (QR box size and border)
        clock: Epoch-seconds time source used for payment references
    """

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time) -> None:
        self.settings = settings
        self._clock = clock

    def build_payload(self, amount: float, currency: str) -> str:
        """Build the payment payload string for a currency.

        Currencies without a dedicated format get a plain-text amount line.
        """
        reference = f"VF{int(self._clock() * 1000)}"
        if currency == "THB":
            return promptpay_payload(amount)
        if currency == "PHP":
            return gcash_payload(amount, reference)
        if currency == "IDR":
            return gopay_payload(amount, reference)
        if currency == "VND":
            return vietqr_payload(amount)
        return f"Payment Amount: {format_amount(amount)} {currency}"

    def encode(self, payload: str) -> str:
        """Encode a payload as a PNG data URL.

        Raises:
            QRGenerationError: If the payload cannot be encoded
        """
        try:
            qr = qrcode.QRCode(
                box_size=self.settings.qr_box_size,
                border=self.settings.qr_border,
                image_factory=PilImage,
            )
            qr.add_data(payload)
            qr.make(fit=True)
            image = qr.make_image(fill_color="#000000", back_color="#FFFFFF")

            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
        except Exception as e:
            raise QRGenerationError(f"QR encoding failed: {e}") from e

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"

    def generate(self, amount: float, currency: str) -> str:
        """Build and encode the payment QR code.

        Returns:
            PNG data URL, or an empty string if generation failed
        """
        try:
            return self.encode(self.build_payload(amount, currency))
        except QRGenerationError as e:
            logger.error(f"QR generation error: {e}")
            return ""
