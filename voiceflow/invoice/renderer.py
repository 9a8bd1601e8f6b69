"""Self-contained printable HTML rendering of invoices.

Every interpolated field is escaped with html.escape; item names and customer
names originate from speech and model output.
"""

from html import escape

from voiceflow.invoice.schema import InvoiceData

CURRENCY_SYMBOLS: dict[str, str] = {
    "IDR": "Rp",
    "THB": "฿",
    "VND": "₫",
    "PHP": "₱",
    "USD": "$",
}

PAYMENT_TERM_NOTES: dict[str, str] = {
    "immediate": "Due immediately",
    "later": "Payment due as agreed",
    "installment": "Payable in installments",
    "credit": "Sold on credit",
}

TEMPLATE_ACCENTS: dict[str, str] = {
    "food-service": "#e76f51",
    "service-maintenance": "#264653",
    "retail": "#2a9d8f",
    "custom-service": "#9b5de5",
    "standard": "#667eea",
}

STYLES = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }
    .invoice-container { max-width: 800px; margin: 0 auto; background: white; border-radius: 12px; overflow: hidden; box-shadow: 0 4px 20px rgba(0,0,0,0.1); }
    .invoice-header { background: var(--accent); color: white; padding: 30px; text-align: center; }
    .invoice-header h1 { margin: 0; font-size: 2.5rem; }
    .invoice-number { opacity: 0.9; margin-top: 10px; }
    .invoice-body { padding: 30px; }
    .info-grid { display: grid; grid-template-columns: 1fr 1fr; gap: 30px; margin-bottom: 30px; }
    .info-grid h2 { color: #333; border-bottom: 2px solid var(--accent); padding-bottom: 10px; }
    .items-table { width: 100%; border-collapse: collapse; margin: 30px 0; }
    .items-table th { background: #f8f9fa; padding: 15px; text-align: left; border-bottom: 2px solid var(--accent); }
    .items-table td { padding: 12px 15px; border-bottom: 1px solid #eee; }
    .total-section { text-align: right; margin: 30px 0; }
    .total-amount { font-size: 1.5rem; font-weight: bold; color: var(--accent); padding: 15px; background: #f8f9fa; border-radius: 8px; }
    .payment-terms { margin-top: 10px; color: #666; }
    .payment-section { display: grid; grid-template-columns: 1fr auto; gap: 30px; align-items: center; margin-top: 30px; padding-top: 30px; border-top: 2px solid #eee; }
    .qr-code { text-align: center; }
    .footer { text-align: center; color: #666; margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee; }
    @media print { body { background: white; padding: 0; } .invoice-container { box-shadow: none; } }
    @media (max-width: 768px) { .info-grid, .payment-section { grid-template-columns: 1fr; } }
"""


def format_money(amount: float, symbol: str = "") -> str:
    """Format an amount with thousands separators, e.g. 'Rp350,000' or '$37.5'."""
    if float(amount).is_integer():
        text = f"{amount:,.0f}"
    else:
        text = f"{amount:,.2f}".rstrip("0").rstrip(".")
    return f"{symbol}{text}"


def format_quantity(quantity: float) -> str:
    return str(int(quantity)) if float(quantity).is_integer() else str(quantity)


def _customer_block(invoice: InvoiceData) -> str:
    if not invoice.customer.name:
        return ""
    contact = f"<br>{escape(invoice.customer.contact)}" if invoice.customer.contact else ""
    return (
        '<div class="customer-info">'
        "<h2>To</h2>"
        f"<strong>{escape(invoice.customer.name)}</strong>{contact}"
        "</div>"
    )


def _item_rows(invoice: InvoiceData, symbol: str) -> str:
    rows = []
    for item in invoice.items:
        rows.append(
            "<tr>"
            f"<td>{escape(item.name)}</td>"
            f"<td>{format_quantity(item.quantity)}</td>"
            f"<td>{escape(format_money(item.unit_price, symbol))}</td>"
            f"<td>{escape(format_money(item.total, symbol))}</td>"
            "</tr>"
        )
    return "\n".join(rows)


def _payment_terms_note(invoice: InvoiceData) -> str:
    note = PAYMENT_TERM_NOTES.get(invoice.payment_terms, PAYMENT_TERM_NOTES["later"])
    if invoice.due_date is not None:
        note = f"{note} (by {invoice.due_date.isoformat()})"
    return note


def _payment_section(invoice: InvoiceData, total: str) -> str:
    if not invoice.qr_code:
        return ""
    return (
        '<div class="payment-section">'
        "<div>"
        "<h3>Payment Information</h3>"
        "<p>Scan the QR code to pay using your mobile payment app</p>"
        f"<p><strong>Amount:</strong> {total}</p>"
        "</div>"
        '<div class="qr-code">'
        f'<img src="{escape(invoice.qr_code, quote=True)}" alt="Payment QR Code" width="150" height="150">'
        "<div>Scan to Pay</div>"
        "</div>"
        "</div>"
    )


def render_invoice_html(invoice: InvoiceData) -> str:
    """Render an invoice as a standalone HTML document.

    Optional parts (due date, customer, QR code) are omitted when absent.

    Args:
        invoice: Invoice record

    Returns:
        Complete HTML document
    """
    symbol = CURRENCY_SYMBOLS.get(invoice.currency, "")
    accent = TEMPLATE_ACCENTS.get(invoice.template, TEMPLATE_ACCENTS["standard"])
    total = escape(f"{format_money(invoice.total, symbol)} {invoice.currency}")
    business = invoice.business
    due_line = (
        f"<div>Due: {invoice.due_date.isoformat()}</div>" if invoice.due_date is not None else ""
    )

    return f"""<!DOCTYPE html>
<html lang="{escape(invoice.language, quote=True)}">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Invoice {escape(invoice.invoice_number)}</title>
<style>{STYLES}</style>
</head>
<body class="template-{escape(invoice.template, quote=True)}" style="--accent: {accent};">
<div class="invoice-container">
<div class="invoice-header">
<h1>INVOICE</h1>
<div class="invoice-number">Invoice #{escape(invoice.invoice_number)}</div>
<div>Date: {invoice.date.isoformat()}</div>
{due_line}
</div>
<div class="invoice-body">
<div class="info-grid">
<div class="business-info">
<h2>From</h2>
<strong>{escape(business.name)}</strong><br>
{escape(business.address)}<br>
{escape(business.phone)}<br>
{escape(business.email)}
</div>
{_customer_block(invoice)}
</div>
<table class="items-table">
<thead>
<tr><th>Description</th><th>Qty</th><th>Unit Price</th><th>Total</th></tr>
</thead>
<tbody>
{_item_rows(invoice, symbol)}
</tbody>
</table>
<div class="total-section">
<div class="total-amount">Total: {total}</div>
<div class="payment-terms">Payment Terms: {escape(_payment_terms_note(invoice))}</div>
</div>
{_payment_section(invoice, total)}
<div class="footer">
<p>Generated by VoiceFlow AI - Voice to Invoice System</p>
<p>This invoice was automatically generated from voice input on {invoice.date.isoformat()}</p>
</div>
</div>
</div>
</body>
</html>
"""
