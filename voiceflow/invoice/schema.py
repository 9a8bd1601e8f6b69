"""Invoice data models.

An InvoiceData is derived from a TransactionData once per synthesis call and
is never persisted.
"""

import datetime

from pydantic import BaseModel, Field

from voiceflow.extraction.schema import CamelModel, Customer, LineItem


class BusinessInfo(CamelModel):
    """Identity of the issuing business."""

    name: str
    address: str
    phone: str
    email: str


class InvoiceData(CamelModel):
    """Rendered-ready invoice record."""

    invoice_number: str = Field(..., description="Prefix + timestamp digits + random suffix")
    date: datetime.date
    due_date: datetime.date | None = Field(None, description="Only set for 'later' payment terms")
    business: BusinessInfo
    customer: Customer = Field(default_factory=Customer)
    items: list[LineItem] = Field(default_factory=list)
    subtotal: float
    total: float
    currency: str
    payment_terms: str
    qr_code: str = Field("", description="PNG data URL, empty if generation failed")
    template: str = Field("standard", description="Renderer style tag")
    language: str


class InvoiceDocument(BaseModel):
    """Invoice record together with its rendered HTML."""

    invoice: InvoiceData
    html: str
