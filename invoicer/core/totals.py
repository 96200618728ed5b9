import re
from typing import Iterable, Optional

from invoicer.schemas.invoice import LineItem, Totals

# Single source of truth for invoice arithmetic and numbering.
# Values are passed through at full float precision; rounding belongs to the display layer.

INVOICE_PREFIX = "INV-"
FIRST_INVOICE_NUMBER = "INV-001"
_INVOICE_NUMBER_RE = re.compile(r"INV-([0-9]+)")

class InvoiceNumberParseError(ValueError):
    """Raised when an invoice number does not have the ``INV-<digits>`` form."""

    def __init__(self, value: str):
        super().__init__(f"Invalid invoice number '{value}': expected INV-<digits>")
        self.value = value

def line_amount(item: LineItem) -> float:
    return item.quantity * item.unit_price

def calculate_totals(items: Iterable[LineItem], tax_rate: float) -> Totals:
    """
    Subtotal, tax and grand total for a list of line items.
    ``tax_rate`` is a percentage (21 means 21%).
    """
    subtotal = sum((line_amount(item) for item in items), 0)
    tax_amount = subtotal * (tax_rate / 100)
    total = subtotal + tax_amount
    return Totals(subtotal=subtotal, tax_amount=tax_amount, total=total)

def parse_invoice_number(value: str) -> int:
    match = _INVOICE_NUMBER_RE.fullmatch(value)
    if not match:
        raise InvoiceNumberParseError(value)
    return int(match.group(1))

def is_sequential_number(value: Optional[str]) -> bool:
    return bool(value) and _INVOICE_NUMBER_RE.fullmatch(value) is not None

def next_invoice_number(last_number: Optional[str]) -> str:
    """
    Next number in the ``INV-NNN`` sequence.
    Pads to three digits only; INV-999 is followed by INV-1000.
    """
    if not last_number:
        return FIRST_INVOICE_NUMBER
    current = parse_invoice_number(last_number)
    return f"{INVOICE_PREFIX}{current + 1:03d}"
