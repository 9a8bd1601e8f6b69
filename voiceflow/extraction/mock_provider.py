"""Deterministic mock extraction provider.

Last stage of the fallback chain: returns a fixed, documented transaction per
language. Used when every model stage failed or no credential is configured,
so extraction always yields a complete record.
"""

import copy
import logging
from typing import Any

from voiceflow.extraction.base import ExtractionProvider
from voiceflow.extraction.schema import normalize_language

logger = logging.getLogger(__name__)

MOCK_TRANSACTIONS: dict[str, dict[str, Any]] = {
    "id": {
        "items": [
            {"name": "Ganti Oli", "quantity": 1, "unitPrice": 150000, "total": 150000},
            {"name": "Kampas Rem", "quantity": 1, "unitPrice": 200000, "total": 200000},
        ],
        "customer": {"name": "Pak Budi"},
        "total": 350000,
        "currency": "IDR",
        "paymentTerms": "later",
        "dueDate": "next week",
        "businessType": "repair shop",
        "language": "id",
        "metadata": {
            "confidence": 0.92,
            "extractedEntities": ["customer", "services", "amount", "payment_terms"],
        },
    },
    "th": {
        "items": [
            {"name": "ผัดไทย", "quantity": 3, "unitPrice": 60, "total": 180},
            {"name": "ส้มตำ", "quantity": 2, "unitPrice": 35, "total": 70},
        ],
        "total": 250,
        "currency": "THB",
        "paymentTerms": "immediate",
        "businessType": "street food",
        "language": "th",
        "metadata": {
            "confidence": 0.95,
            "extractedEntities": ["food_items", "quantity", "amount"],
        },
    },
    "vi": {
        "items": [
            {"name": "May áo dài", "quantity": 1, "unitPrice": 1500000, "total": 1500000},
        ],
        "customer": {"name": "Chị Lan"},
        "total": 1500000,
        "currency": "VND",
        "paymentTerms": "installment",
        "businessType": "tailor",
        "language": "vi",
        "metadata": {
            "confidence": 0.9,
            "extractedEntities": ["customer", "service", "deposit", "amount"],
        },
    },
    "tl": {
        "items": [
            {"name": "De lata", "quantity": 3, "unitPrice": 30, "total": 90},
            {"name": "Kape", "quantity": 2, "unitPrice": 30, "total": 60},
        ],
        "customer": {"name": "Maria"},
        "total": 150,
        "currency": "PHP",
        "paymentTerms": "installment",
        "businessType": "sari-sari store",
        "language": "tl",
        "metadata": {
            "confidence": 0.9,
            "extractedEntities": ["customer", "items", "amount", "payment_terms"],
        },
    },
    "en": {
        "items": [
            {"name": "Shirts", "quantity": 3, "unitPrice": 25, "total": 75},
            {"name": "Pants", "quantity": 2, "unitPrice": 37.5, "total": 75},
        ],
        "total": 150,
        "currency": "USD",
        "paymentTerms": "later",
        "dueDate": "next week",
        "businessType": "retail",
        "language": "en",
        "metadata": {
            "confidence": 0.9,
            "extractedEntities": ["items", "quantity", "amount", "payment_terms"],
        },
    },
}


class MockExtractionProvider(ExtractionProvider):
    """Returns the documented mock transaction for the request language."""

    @property
    def provider_name(self) -> str:
        return "mock"

    def is_available(self) -> bool:
        return True

    async def extract_transaction(self, transcript: str, language: str) -> dict[str, Any]:
        language = normalize_language(language)
        logger.info(f"Using mock transaction data for language '{language}'")
        return copy.deepcopy(MOCK_TRANSACTIONS[language])
