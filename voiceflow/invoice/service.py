"""Invoice synthesis: TransactionData in, invoice record + HTML out.

Assigns the invoice number, resolves relative due dates, picks the business
identity and style template, and attaches the payment QR code. QR and
due-date problems degrade to defaults and never fail the synthesis.
"""

import logging
import random
from collections.abc import Callable
from datetime import UTC, datetime

from voiceflow.extraction.schema import TransactionData
from voiceflow.invoice.due_dates import resolve_due_date
from voiceflow.invoice.qr import PaymentQRGenerator
from voiceflow.invoice.renderer import render_invoice_html
from voiceflow.invoice.schema import InvoiceData, InvoiceDocument
from voiceflow.invoice.templates import resolve_business, select_style
from voiceflow.shared.config import Settings

logger = logging.getLogger(__name__)


class InvoiceSynthesizer:
    """Builds invoices from validated transactions.

    Args:
        settings: Application settings
        qr_generator: Payment QR generator, built from settings if omitted
        clock: Source of the synthesis timestamp (timezone-aware)
        rng: Random source for the invoice number suffix
    """

    def __init__(
        self,
        settings: Settings,
        qr_generator: PaymentQRGenerator | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.qr_generator = qr_generator or PaymentQRGenerator(settings)
        self._clock = clock
        self._rng = rng or random.Random()

    def generate_invoice_number(self, now: datetime) -> str:
        """Prefix + last 8 digits of the epoch-millisecond timestamp + 2 random digits.

        Unique enough for a single low-traffic process; not collision-free.
        """
        timestamp = str(int(now.timestamp() * 1000))[-8:]
        suffix = f"{self._rng.randint(0, 98):02d}"
        return f"{self.settings.invoice_prefix}{timestamp}{suffix}"

    def build_invoice(
        self, transaction: TransactionData, business_type: str | None = None
    ) -> InvoiceData:
        """Compose the invoice record for a transaction.

        Args:
            transaction: Validated transaction data
            business_type: Business category for branding, defaults to the
                transaction's detected business type

        Returns:
            InvoiceData for this synthesis call
        """
        now = self._clock()
        today = now.date()
        business_type = business_type or transaction.business_type

        due_date = None
        if transaction.payment_terms == "later" and transaction.due_date:
            due_date = resolve_due_date(transaction.due_date, today)

        invoice = InvoiceData(
            invoice_number=self.generate_invoice_number(now),
            date=today,
            due_date=due_date,
            business=resolve_business(business_type, transaction.language),
            customer=transaction.customer.model_copy(),
            items=[item.model_copy() for item in transaction.items],
            subtotal=transaction.total,
            total=transaction.total,
            currency=transaction.currency,
            payment_terms=transaction.payment_terms,
            qr_code=self.qr_generator.generate(transaction.total, transaction.currency),
            template=select_style(business_type),
            language=transaction.language,
        )
        logger.info(
            f"Generated invoice {invoice.invoice_number} "
            f"({invoice.total} {invoice.currency}, template={invoice.template})"
        )
        return invoice

    def synthesize_invoice(
        self, transaction: TransactionData, business_type: str | None = None
    ) -> InvoiceDocument:
        """Build the invoice record and render it to HTML."""
        invoice = self.build_invoice(transaction, business_type)
        return InvoiceDocument(invoice=invoice, html=render_invoice_html(invoice))
