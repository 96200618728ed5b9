from datetime import datetime
from typing import List, Optional, Tuple
import logging

from invoicer.core.totals import calculate_totals, line_amount, next_invoice_number
from invoicer.db.memory import InvoiceRepository
from invoicer.schemas.invoice import (
    Invoice,
    InvoiceCreate,
    InvoiceDetail,
    InvoiceQuickUpdate,
    StoredLineItem,
)

logger = logging.getLogger(__name__)

def build_line_items(invoice_id: str, data: InvoiceCreate) -> List[StoredLineItem]:
    items = []
    for index, item in enumerate(data.line_items):
        items.append(StoredLineItem(
            invoice_id=invoice_id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            sort_order=item.sort_order if item.sort_order is not None else index,
            amount=line_amount(item),
        ))
    return items

def _apply(invoice: Invoice, data: InvoiceCreate) -> Tuple[Invoice, List[StoredLineItem]]:
    totals = calculate_totals(data.line_items, data.tax_rate)
    fields = data.model_dump(exclude={"line_items"})
    updated = invoice.model_copy(update={**fields, **totals.model_dump()})
    return updated, build_line_items(updated.id, data)

def create_invoice(repo: InvoiceRepository, data: InvoiceCreate, user_id: Optional[str]) -> InvoiceDetail:
    invoice, items = _apply(Invoice(invoice_number=data.invoice_number, created_by=user_id), data)
    saved = repo.save(invoice, items)
    logger.info(f"Invoice {saved.invoice_number} created by {user_id}: total={saved.total}")
    return saved

def update_invoice(repo: InvoiceRepository, invoice_id: str, data: InvoiceCreate) -> InvoiceDetail:
    existing = repo.get(invoice_id)
    base = Invoice(**existing.model_dump(exclude={"line_items"}))
    invoice, items = _apply(base, data)
    invoice.updated_at = datetime.utcnow()
    saved = repo.save(invoice, items)
    logger.info(f"Invoice {saved.invoice_number} updated: total={saved.total}")
    return saved

def quick_update_invoice(repo: InvoiceRepository, invoice_id: str, data: InvoiceQuickUpdate) -> InvoiceDetail:
    """Edit client name and dates in place. Line items and totals are untouched."""
    existing = repo.get(invoice_id)
    base = Invoice(**existing.model_dump(exclude={"line_items"}))
    changes = data.model_dump(exclude_unset=True)
    changes["updated_at"] = datetime.utcnow()
    saved = repo.save(base.model_copy(update=changes))
    logger.info(f"Invoice {saved.invoice_number} quick-edited: {sorted(changes)}")
    return saved

def suggest_invoice_number(repo: InvoiceRepository) -> str:
    return next_invoice_number(repo.latest_invoice_number())
