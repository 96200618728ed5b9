from datetime import date
from typing import Optional

CURRENCY_SYMBOL = "€"
NBSP = "\u00a0"

def format_currency(amount: float) -> str:
    """EUR amount with Dutch separators, e.g. ``€ 1.234,56`` (non-breaking space)."""
    sign = "-" if round(amount, 2) < 0 else ""
    grouped = f"{abs(amount):,.2f}"
    # swap separators: 1,234.56 -> 1.234,56
    localized = grouped.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{CURRENCY_SYMBOL}{NBSP}{sign}{localized}"

def format_date(value: Optional[date]) -> str:
    if value is None:
        return ""
    return value.strftime("%d-%m-%Y")
