from fastapi import APIRouter, Depends, HTTPException, Response
from typing import List
import logging

from invoicer.core.auth import current_user
from invoicer.core.invoicing import (
    create_invoice,
    quick_update_invoice,
    suggest_invoice_number,
    update_invoice,
)
from invoicer.core.pdf import PdfRenderError, render_invoice_pdf
from invoicer.core.totals import InvoiceNumberParseError
from invoicer.db.memory import (
    DuplicateInvoiceNumberError,
    InvoiceNotFoundError,
    invoice_repo,
    logo_storage,
    settings_repo,
)
from invoicer.schemas.invoice import (
    Invoice,
    InvoiceCreate,
    InvoiceDetail,
    InvoiceQuickUpdate,
    NextInvoiceNumber,
)

router = APIRouter(prefix="/invoices", tags=["invoices"])
logger = logging.getLogger(__name__)

def _get_or_404(invoice_id: str) -> InvoiceDetail:
    try:
        return invoice_repo.get(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.get("", response_model=List[Invoice])
async def list_invoices(user_id: str = Depends(current_user)):
    return invoice_repo.list()

@router.get("/next-number", response_model=NextInvoiceNumber)
async def get_next_invoice_number(user_id: str = Depends(current_user)):
    try:
        return NextInvoiceNumber(invoice_number=suggest_invoice_number(invoice_repo))
    except InvoiceNumberParseError as e:
        # Never fall back to a default here: that could reissue an existing number
        raise HTTPException(status_code=422, detail=str(e))

@router.post("", response_model=InvoiceDetail, status_code=201)
async def create(data: InvoiceCreate, user_id: str = Depends(current_user)):
    try:
        return create_invoice(invoice_repo, data, user_id)
    except DuplicateInvoiceNumberError as e:
        raise HTTPException(status_code=409, detail=str(e))

@router.get("/{invoice_id}", response_model=InvoiceDetail)
async def get_invoice(invoice_id: str, user_id: str = Depends(current_user)):
    return _get_or_404(invoice_id)

@router.put("/{invoice_id}", response_model=InvoiceDetail)
async def update(invoice_id: str, data: InvoiceCreate, user_id: str = Depends(current_user)):
    try:
        return update_invoice(invoice_repo, invoice_id, data)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateInvoiceNumberError as e:
        raise HTTPException(status_code=409, detail=str(e))

@router.patch("/{invoice_id}", response_model=InvoiceDetail)
async def quick_update(invoice_id: str, data: InvoiceQuickUpdate, user_id: str = Depends(current_user)):
    try:
        return quick_update_invoice(invoice_repo, invoice_id, data)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.delete("/{invoice_id}")
async def delete(invoice_id: str, user_id: str = Depends(current_user)):
    try:
        invoice_repo.delete(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    logger.info(f"Invoice {invoice_id} deleted by {user_id}")
    return {"success": True}

@router.get("/{invoice_id}/pdf")
async def download_pdf(invoice_id: str, user_id: str = Depends(current_user)):
    invoice = _get_or_404(invoice_id)
    company = settings_repo.get()
    logger.info(f"PDF export STARTED for invoice {invoice.invoice_number}")

    try:
        pdf_bytes = render_invoice_pdf(invoice, company, logo_storage.resolve(company.logo_url))
    except PdfRenderError as e:
        raise HTTPException(status_code=500, detail=str(e))

    filename = "".join(c for c in invoice.invoice_number if c.isalnum() or c in "-_") or "invoice"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}.pdf"},
    )
