"""Transaction data models for structured extraction.

Attributes are snake_case in Python and camelCase on the wire
(`unitPrice`, `paymentTerms`, ...), matching the voice capture frontend.
"""

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

Language = Literal["en", "id", "th", "vi", "tl"]
PaymentTerms = Literal["immediate", "later", "installment", "credit"]

CURRENCY_BY_LANGUAGE: dict[str, str] = {
    "en": "USD",
    "id": "IDR",
    "th": "THB",
    "vi": "VND",
    "tl": "PHP",
}
SUPPORTED_LANGUAGES: tuple[str, ...] = tuple(CURRENCY_BY_LANGUAGE)
PAYMENT_TERMS: tuple[str, ...] = ("immediate", "later", "installment", "credit")
DEFAULT_LANGUAGE = "en"
DEFAULT_CONFIDENCE = 0.85


def normalize_language(language: str | None) -> str:
    """Map a requested language code onto the supported set.

    Args:
        language: Language code from the caller, e.g. 'th' or 'TH-th'

    Returns:
        Supported language code, 'en' when the code is unknown
    """
    code = (language or "").strip().lower().split("-")[0]
    if code in CURRENCY_BY_LANGUAGE:
        return code
    logger.warning(f"Unsupported language '{language}', falling back to '{DEFAULT_LANGUAGE}'")
    return DEFAULT_LANGUAGE


def currency_for(language: str) -> str:
    """Currency code for a supported language."""
    return CURRENCY_BY_LANGUAGE[normalize_language(language)]


class CamelModel(BaseModel):
    """Base model serializing field names in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LineItem(CamelModel):
    """Single sold item or service."""

    name: str = Field("", description="Item or service name as spoken")
    quantity: float = Field(1, description="Quantity sold")
    unit_price: float = Field(0, description="Price per unit")
    total: float = Field(0, description="Line total (quantity * unit price)")


class Customer(CamelModel):
    """Customer mentioned in the transaction, if any."""

    name: str | None = Field(None, description="Customer name, e.g. 'Pak Budi'")
    contact: str | None = Field(None, description="Phone or other contact detail")


class TransactionMetadata(CamelModel):
    confidence: float = Field(DEFAULT_CONFIDENCE, ge=0, le=1)
    extracted_entities: list[str] = Field(default_factory=list)


class TransactionData(CamelModel):
    """Canonical parsed transaction.

    Produced by the extraction chain and reconciled once by the validator;
    read-only afterwards.
    """

    items: list[LineItem] = Field(default_factory=list)
    customer: Customer = Field(default_factory=Customer)
    total: float = Field(0, description="Grand total")
    currency: str = Field(..., description="Currency code (ISO 4217)")
    payment_terms: PaymentTerms = Field("immediate")
    due_date: str | None = Field(
        None, description="ISO date or relative phrase such as 'next week'"
    )
    business_type: str = Field("general", description="Detected business category")
    language: Language
    metadata: TransactionMetadata = Field(default_factory=TransactionMetadata)
