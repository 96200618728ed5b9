from enum import Enum
from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional

class CompanySettingsUpdate(BaseModel):
    company_name: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    bank_name: Optional[str] = None
    bank_iban: Optional[str] = None
    bank_bic: Optional[str] = None
    vat_number: Optional[str] = None
    default_tax_rate: Optional[float] = None

    @field_validator('default_tax_rate', mode='before')
    @classmethod
    def parse_tax_rate(cls, v):
        if isinstance(v, str):
            if not v.strip():
                return None
            try:
                return float(v)
            except ValueError:
                raise ValueError("default_tax_rate must be a number")
        return v

class CompanySettings(CompanySettingsUpdate):
    id: str = "default"
    logo_url: Optional[str] = None
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_name or self.bank_iban or self.bank_bic)

class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"

class ThemePreference(BaseModel):
    theme: Optional[Theme] = None

class LogoUploadResult(BaseModel):
    logo_url: str
