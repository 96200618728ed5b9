from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
import logging

from invoicer.core.config import settings
from invoicer.core.totals import is_sequential_number, parse_invoice_number
from invoicer.schemas.invoice import Invoice, InvoiceDetail, StoredLineItem
from invoicer.schemas.settings import CompanySettings, Theme

logger = logging.getLogger(__name__)

# In-memory stores only. Each store sits behind an abstract repository so a
# database-backed implementation can replace it without touching the routers.

class InvoiceNotFoundError(LookupError):
    def __init__(self, invoice_id: str):
        super().__init__(f"Invoice '{invoice_id}' not found")
        self.invoice_id = invoice_id

class DuplicateInvoiceNumberError(ValueError):
    def __init__(self, invoice_number: str):
        super().__init__(f"Invoice number '{invoice_number}' already exists")
        self.invoice_number = invoice_number

class InvoiceRepository(ABC):
    @abstractmethod
    def list(self) -> List[Invoice]:
        pass

    @abstractmethod
    def get(self, invoice_id: str) -> InvoiceDetail:
        pass

    @abstractmethod
    def save(self, invoice: Invoice, line_items: Optional[List[StoredLineItem]] = None) -> InvoiceDetail:
        """Insert or replace an invoice. ``line_items=None`` keeps the stored items."""

    @abstractmethod
    def delete(self, invoice_id: str):
        pass

    @abstractmethod
    def invoice_numbers(self) -> List[str]:
        pass

    def latest_invoice_number(self) -> Optional[str]:
        """Highest well-formed ``INV-NNN`` number, compared numerically."""
        latest = None
        latest_value = -1
        for number in self.invoice_numbers():
            if not is_sequential_number(number):
                logger.warning(f"Ignoring non-sequential invoice number '{number}' for numbering")
                continue
            value = parse_invoice_number(number)
            if value > latest_value:
                latest, latest_value = number, value
        return latest

class InMemoryInvoiceRepository(InvoiceRepository):
    def __init__(self):
        self._invoices: Dict[str, Invoice] = {}
        self._line_items: Dict[str, List[StoredLineItem]] = {}

    def list(self) -> List[Invoice]:
        return sorted(self._invoices.values(), key=lambda inv: inv.created_at, reverse=True)

    def get(self, invoice_id: str) -> InvoiceDetail:
        invoice = self._invoices.get(invoice_id)
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        items = sorted(self._line_items.get(invoice_id, []), key=lambda li: li.sort_order)
        return InvoiceDetail(**invoice.model_dump(), line_items=items)

    def save(self, invoice: Invoice, line_items: Optional[List[StoredLineItem]] = None) -> InvoiceDetail:
        for other in self._invoices.values():
            if other.id != invoice.id and other.invoice_number == invoice.invoice_number:
                raise DuplicateInvoiceNumberError(invoice.invoice_number)
        self._invoices[invoice.id] = invoice
        if line_items is not None:
            self._line_items[invoice.id] = list(line_items)
        return self.get(invoice.id)

    def delete(self, invoice_id: str):
        if invoice_id not in self._invoices:
            raise InvoiceNotFoundError(invoice_id)
        del self._invoices[invoice_id]
        self._line_items.pop(invoice_id, None)

    def invoice_numbers(self) -> List[str]:
        return [inv.invoice_number for inv in self._invoices.values()]

    def clear(self):
        self._invoices.clear()
        self._line_items.clear()

class SettingsRepository(ABC):
    @abstractmethod
    def get(self) -> CompanySettings:
        pass

    @abstractmethod
    def save(self, company: CompanySettings) -> CompanySettings:
        pass

class InMemorySettingsRepository(SettingsRepository):
    def __init__(self):
        self._settings = CompanySettings(default_tax_rate=settings.DEFAULT_TAX_RATE)

    def get(self) -> CompanySettings:
        return self._settings.model_copy()

    def save(self, company: CompanySettings) -> CompanySettings:
        self._settings = company.model_copy()
        return self.get()

    def clear(self):
        self._settings = CompanySettings(default_tax_rate=settings.DEFAULT_TAX_RATE)

class PreferencesRepository(ABC):
    @abstractmethod
    def get_theme(self, user_id: str) -> Optional[Theme]:
        pass

    @abstractmethod
    def save_theme(self, user_id: str, theme: Theme):
        pass

class InMemoryPreferencesRepository(PreferencesRepository):
    def __init__(self):
        self._themes: Dict[str, Dict[str, object]] = {}

    def get_theme(self, user_id: str) -> Optional[Theme]:
        row = self._themes.get(user_id)
        return row["theme"] if row else None

    def save_theme(self, user_id: str, theme: Theme):
        # Upsert keyed on user_id
        self._themes[user_id] = {"theme": theme, "updated_at": datetime.utcnow()}

    def clear(self):
        self._themes.clear()

class LocalLogoStorage:
    """Writes uploaded logos to a directory served under ``/static/logos``."""

    def __init__(self, directory: str, url_prefix: str = "/static/logos"):
        self.directory = directory
        self.url_prefix = url_prefix

    def save(self, filename: str, content: bytes) -> str:
        target_dir = Path(self.directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / filename).write_bytes(content)
        return f"{self.url_prefix}/{filename}"

    def resolve(self, url: Optional[str]) -> Optional[Path]:
        """Local path for a logo URL produced by :meth:`save`, if the file exists."""
        if not url or not url.startswith(self.url_prefix + "/"):
            return None
        path = Path(self.directory) / url[len(self.url_prefix) + 1:]
        return path if path.is_file() else None

invoice_repo = InMemoryInvoiceRepository()
settings_repo = InMemorySettingsRepository()
preferences_repo = InMemoryPreferencesRepository()
logo_storage = LocalLogoStorage(settings.LOGO_DIR)
