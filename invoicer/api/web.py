from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
import logging

from invoicer.api.templating import templates
from invoicer.core.config import settings
from invoicer.core.invoicing import suggest_invoice_number
from invoicer.core.keymap import shortcut_help
from invoicer.core.totals import InvoiceNumberParseError
from invoicer.db.memory import InvoiceNotFoundError, invoice_repo, preferences_repo, settings_repo

router = APIRouter(include_in_schema=False)
logger = logging.getLogger(__name__)

NAV_PAGES = [
    {"label": "Invoices", "href": "/invoices"},
    {"label": "New Invoice", "href": "/invoices/new"},
    {"label": "Settings", "href": "/settings"},
]

def _page(request: Request, name: str, context: dict):
    # Session presence is enforced by the middleware before we get here
    theme = preferences_repo.get_theme(request.state.user_id)
    return templates.TemplateResponse(request, name, {
        "api_prefix": settings.API_PREFIX,
        "nav_pages": NAV_PAGES,
        "shortcuts": shortcut_help(),
        "theme": theme.value if theme else "system",
        **context,
    })

@router.get("/")
async def root():
    return RedirectResponse(url="/invoices")

@router.get("/invoices", response_class=HTMLResponse)
async def invoices_page(request: Request):
    return _page(request, "invoices.html", {"invoices": invoice_repo.list()})

@router.get("/invoices/new", response_class=HTMLResponse)
async def new_invoice_page(request: Request):
    company = settings_repo.get()
    try:
        number = suggest_invoice_number(invoice_repo)
    except InvoiceNumberParseError as e:
        # Leave the field blank; the user has to pick a number by hand
        logger.warning(f"Cannot suggest next invoice number: {e}")
        number = ""
    return _page(request, "invoice_form.html", {
        "invoice": None,
        "default_invoice_number": number,
        "default_tax_rate": company.default_tax_rate if company.default_tax_rate is not None else settings.DEFAULT_TAX_RATE,
    })

@router.get("/invoices/{invoice_id}", response_class=HTMLResponse)
async def edit_invoice_page(request: Request, invoice_id: str):
    try:
        invoice = invoice_repo.get(invoice_id)
    except InvoiceNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _page(request, "invoice_form.html", {
        "invoice": invoice,
        "default_invoice_number": invoice.invoice_number,
        "default_tax_rate": invoice.tax_rate,
    })

@router.get("/settings", response_class=HTMLResponse)
async def settings_page(request: Request):
    return _page(request, "settings.html", {"company": settings_repo.get()})
