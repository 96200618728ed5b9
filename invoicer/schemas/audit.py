from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid
from enum import Enum

class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"

class ActionType(str, Enum):
    HEALTH_CHECK = "HEALTH_CHECK"
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    PDF_DOWNLOAD = "PDF_DOWNLOAD"
    UPLOAD_LOGO = "UPLOAD_LOGO"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    UPDATE_THEME = "UPDATE_THEME"
    CREATE_INVOICE = "CREATE_INVOICE"
    UPDATE_INVOICE = "UPDATE_INVOICE"
    DELETE_INVOICE = "DELETE_INVOICE"
    VIEW = "VIEW"

class AuditLogEntry(BaseModel):
    """One request through the session middleware. Bodies are stored as SHA-256 hashes only."""
    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    endpoint: str
    method: str
    action_type: ActionType
    # Session user id, or ANONYMOUS on public paths and rejected requests
    actor: str = "ANONYMOUS"
    input_hash: Optional[str] = None
    output_hash: Optional[str] = None
    status: AuditStatus

    @property
    def is_write(self) -> bool:
        return self.action_type not in (ActionType.VIEW, ActionType.HEALTH_CHECK)
