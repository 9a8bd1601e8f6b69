"""Business identities and style templates per business type."""

import logging

from voiceflow.invoice.schema import BusinessInfo

logger = logging.getLogger(__name__)

BUSINESS_TEMPLATES: dict[str, dict[str, BusinessInfo]] = {
    "street food": {
        "th": BusinessInfo(
            name="ร้านอาหารริมทาง",
            address="123 ถนนสุขุมวิท กรุงเทพฯ",
            phone="+66 2 123 4567",
            email="streetfood@example.com",
        ),
        "en": BusinessInfo(
            name="Street Food Corner",
            address="123 Main Street, Bangkok",
            phone="+66 2 123 4567",
            email="streetfood@example.com",
        ),
    },
    "repair shop": {
        "id": BusinessInfo(
            name="Bengkel Motor Pak Budi",
            address="Jl. Raya No. 123, Jakarta",
            phone="+62 21 123 4567",
            email="bengkel@example.com",
        ),
        "en": BusinessInfo(
            name="Budi Motor Repair",
            address="123 Main Road, Jakarta",
            phone="+62 21 123 4567",
            email="repair@example.com",
        ),
    },
    "sari-sari store": {
        "tl": BusinessInfo(
            name="Sari-Sari Store ni Maria",
            address="123 Barangay Street, Manila",
            phone="+63 2 123 4567",
            email="sarisari@example.com",
        ),
        "en": BusinessInfo(
            name="Maria's Sari-Sari Store",
            address="123 Barangay Street, Manila",
            phone="+63 2 123 4567",
            email="store@example.com",
        ),
    },
    "tailor": {
        "vi": BusinessInfo(
            name="Tiệm May Chị Lan",
            address="123 Đường Nguyễn Huệ, TP.HCM",
            phone="+84 28 123 4567",
            email="tailor@example.com",
        ),
        "en": BusinessInfo(
            name="Lan's Tailor Shop",
            address="123 Nguyen Hue Street, HCMC",
            phone="+84 28 123 4567",
            email="tailor@example.com",
        ),
    },
}

GENERIC_BUSINESS = BusinessInfo(
    name="VoiceFlow Business",
    address="123 Business Street",
    phone="+1 234 567 8900",
    email="contact@voiceflow.ai",
)

STYLE_TEMPLATES: dict[str, str] = {
    "street food": "food-service",
    "repair shop": "service-maintenance",
    "sari-sari store": "retail",
    "tailor": "custom-service",
    "retail": "retail",
    "general": "standard",
}
DEFAULT_STYLE = "standard"


def _key(business_type: str | None) -> str:
    return (business_type or "general").strip().lower()


def resolve_business(business_type: str | None, language: str) -> BusinessInfo:
    """Resolve the issuing business identity.

    Lookup order: (business_type, language), (business_type, 'en'), generic identity.
    """
    by_language = BUSINESS_TEMPLATES.get(_key(business_type), {})
    business = by_language.get(language) or by_language.get("en")
    if business is None:
        logger.debug(f"No business template for '{business_type}', using generic identity")
        return GENERIC_BUSINESS.model_copy()
    return business.model_copy()


def select_style(business_type: str | None) -> str:
    return STYLE_TEMPLATES.get(_key(business_type), DEFAULT_STYLE)
