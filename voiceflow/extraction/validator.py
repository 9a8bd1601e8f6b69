"""Validation and reconciliation of untrusted model output.

Rules, in order:
1. Default every optional field.
2. Repair item totals that are missing or zero (quantity * unit price).
3. Reconcile the grand total with the sum of item totals.

Item repair must run before grand-total reconciliation.
"""

import logging
import math
from typing import Any

from pydantic import ValidationError

from voiceflow.extraction.schema import (
    CURRENCY_BY_LANGUAGE,
    DEFAULT_CONFIDENCE,
    PAYMENT_TERMS,
    TransactionData,
    currency_for,
    normalize_language,
)
from voiceflow.shared.errors import MalformedProviderOutputError

logger = logging.getLogger(__name__)

TOTAL_TOLERANCE = 0.01

# Checked in order; the first keyword found in the phrase wins.
PAYMENT_TERM_KEYWORDS: list[tuple[str, str]] = [
    ("install", "installment"),
    ("hulugan", "installment"),
    ("cicilan", "installment"),
    ("trả góp", "installment"),
    ("ผ่อน", "installment"),
    ("credit", "credit"),
    ("utang", "credit"),
    ("hutang", "credit"),
    ("nợ", "credit"),
    ("later", "later"),
    ("nanti", "later"),
    ("mamaya", "later"),
    ("trả sau", "later"),
    ("ทีหลัง", "later"),
]


def normalize_payment_terms(value: Any) -> str:
    """Normalize free-form payment terms onto the canonical set.

    Args:
        value: Payment terms as returned by the model

    Returns:
        One of immediate, later, installment, credit
    """
    if not isinstance(value, str) or not value.strip():
        return "immediate"

    phrase = value.strip().lower()
    if phrase in PAYMENT_TERMS:
        return phrase
    for keyword, terms in PAYMENT_TERM_KEYWORDS:
        if keyword in phrase:
            return terms
    return "immediate"


def _number(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise MalformedProviderOutputError(f"Expected a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise MalformedProviderOutputError(f"Expected a number, got {value!r}") from e
    if not math.isfinite(number):
        raise MalformedProviderOutputError(f"Expected a finite number, got {value!r}")
    return number


def _default_items(raw_items: Any) -> list[dict[str, Any]]:
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise MalformedProviderOutputError("'items' must be a list")

    items = []
    for raw_item in raw_items:
        if not isinstance(raw_item, dict):
            raise MalformedProviderOutputError("Each item must be an object")
        quantity = _number(raw_item.get("quantity"), 1)
        unit_price = _number(raw_item.get("unitPrice", raw_item.get("unit_price")), 0)
        total = _number(raw_item.get("total"), 0)
        if total == 0:
            total = quantity * unit_price
        if not math.isfinite(total):
            raise MalformedProviderOutputError("Item total overflowed")
        items.append(
            {
                "name": str(raw_item.get("name") or ""),
                "quantity": quantity,
                "unitPrice": unit_price,
                "total": total,
            }
        )
    return items


def _optional_text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _default_customer(raw_customer: Any) -> dict[str, str | None]:
    # Models sometimes return the customer as a bare name.
    if isinstance(raw_customer, str):
        raw_customer = {"name": raw_customer}
    if raw_customer is None:
        raw_customer = {}
    if not isinstance(raw_customer, dict):
        raise MalformedProviderOutputError("'customer' must be an object or a name")
    return {
        "name": _optional_text(raw_customer.get("name")),
        "contact": _optional_text(raw_customer.get("contact")),
    }


def validate_transaction(raw: dict[str, Any], language: str) -> TransactionData:
    """Repair and normalize a raw model payload into TransactionData.

    Args:
        raw: JSON object produced by an extraction stage
        language: Language of the transcript; overrides whatever the model reported

    Returns:
        Reconciled TransactionData

    Raises:
        MalformedProviderOutputError: If the payload cannot be coerced into the schema
    """
    if not isinstance(raw, dict):
        raise MalformedProviderOutputError("Transaction payload must be a JSON object")

    language = normalize_language(language)
    items = _default_items(raw.get("items"))

    currency = raw.get("currency")
    if not isinstance(currency, str) or currency.upper() not in CURRENCY_BY_LANGUAGE.values():
        currency = currency_for(language)

    customer = _default_customer(raw.get("customer"))
    metadata = raw.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise MalformedProviderOutputError("'metadata' must be an object")

    confidence = _number(metadata.get("confidence"), DEFAULT_CONFIDENCE)
    entities = metadata.get("extractedEntities") or []

    reported_total = _number(raw.get("total"), 0)
    item_sum = sum(item["total"] for item in items)
    total = reported_total
    if item_sum > 0 and abs(reported_total - item_sum) > TOTAL_TOLERANCE:
        logger.info(f"Reconciled total {reported_total} -> {item_sum} from {len(items)} items")
        total = item_sum

    due_date = raw.get("dueDate")
    business_type = raw.get("businessType")

    try:
        return TransactionData(
            items=items,
            customer=customer,
            total=total,
            currency=currency.upper(),
            payment_terms=normalize_payment_terms(raw.get("paymentTerms")),
            due_date=str(due_date) if due_date else None,
            business_type=str(business_type).strip().lower() if business_type else "general",
            language=language,
            metadata={
                "confidence": min(max(confidence, 0.0), 1.0),
                "extracted_entities": [str(entity) for entity in entities]
                if isinstance(entities, list)
                else [],
            },
        )
    except ValidationError as e:
        raise MalformedProviderOutputError(f"Transaction payload failed validation: {e}") from e
