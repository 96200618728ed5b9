from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    PROJECT_NAME: str = "Invoicer"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Session / single-account auth
    SESSION_COOKIE: str = "invoicer_session"
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "changeme"

    # Invoicing defaults
    DEFAULT_TAX_RATE: float = 21.0

    # Logo storage
    LOGO_MAX_BYTES: int = 2 * 1024 * 1024
    LOGO_ALLOWED_TYPES: List[str] = ["image/png", "image/jpeg"]
    STATIC_DIR: str = str(PACKAGE_DIR / "static")
    LOGO_DIR: str = str(PACKAGE_DIR / "static" / "logos")
    TEMPLATES_DIR: str = str(PACKAGE_DIR / "templates")

    # Keyboard shortcuts
    SHORTCUT_SEQUENCE_TIMEOUT_MS: int = 1000

    class Config:
        case_sensitive = True

settings = Settings()
