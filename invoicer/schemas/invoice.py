from pydantic import BaseModel, ConfigDict, Field, field_validator, ValidationInfo
from datetime import date, datetime
import re
import uuid
from typing import List, Optional

class LineItem(BaseModel):
    description: str = ""
    quantity: float = 0
    unit_price: float = 0

    @field_validator('quantity', 'unit_price', mode='before')
    @classmethod
    def validate_numeric(cls, v, info: ValidationInfo):
        # Form posts arrive as strings; reject anything that is not a plain number
        if isinstance(v, str):
            if not re.match(r'^-?\d+(\.\d+)?$', v.strip()):
                raise ValueError(f"{info.field_name} must be strictly numeric")
        return v

class LineItemInput(LineItem):
    sort_order: Optional[int] = None

class StoredLineItem(LineItem):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    invoice_id: str
    sort_order: int = 0
    amount: float = 0.0
    created_at: datetime = Field(default_factory=datetime.utcnow)

class Totals(BaseModel):
    subtotal: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0

class InvoiceBase(BaseModel):
    invoice_number: str
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: float = 0.0
    client_name: Optional[str] = None
    client_address: Optional[str] = None
    client_city: Optional[str] = None
    client_postal_code: Optional[str] = None
    client_country: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    client_vat_number: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('invoice_number')
    @classmethod
    def validate_invoice_number(cls, v):
        # Free text is allowed (the number field is user-editable), but not blank
        if not v or not v.strip():
            raise ValueError('Invoice number is required')
        return v.strip()

    @field_validator('issue_date', 'due_date', mode='before')
    @classmethod
    def validate_date_format(cls, v):
        if v == "":
            return None
        if isinstance(v, str):
            try:
                datetime.strptime(v, '%Y-%m-%d')
            except ValueError:
                raise ValueError("Date must be in YYYY-MM-DD format")
        return v

    @field_validator(
        'client_name', 'client_address', 'client_city', 'client_postal_code',
        'client_country', 'client_email', 'client_phone', 'client_vat_number', 'notes',
        mode='before',
    )
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

class InvoiceCreate(InvoiceBase):
    line_items: List[LineItemInput] = Field(default_factory=list)

class InvoiceQuickUpdate(BaseModel):
    # Totals are derived from line items, so they are not editable here
    model_config = ConfigDict(extra="forbid")

    client_name: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None

    @field_validator('issue_date', 'due_date', mode='before')
    @classmethod
    def validate_date_format(cls, v):
        if v == "":
            return None
        return v

class Invoice(InvoiceBase, Totals):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

class InvoiceDetail(Invoice):
    line_items: List[StoredLineItem] = Field(default_factory=list)

class NextInvoiceNumber(BaseModel):
    invoice_number: str
