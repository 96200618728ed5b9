from abc import ABC, abstractmethod
from typing import List, Optional
from invoicer.schemas.audit import AuditLogEntry
import logging

logger = logging.getLogger(__name__)

class AuditRepository(ABC):
    @abstractmethod
    def save(self, entry: AuditLogEntry):
        pass

    @abstractmethod
    def get_all(self) -> List[AuditLogEntry]:
        pass

    def latest(self, endpoint: str, method: Optional[str] = None) -> Optional[AuditLogEntry]:
        for entry in reversed(self.get_all()):
            if entry.endpoint == endpoint and (method is None or entry.method == method):
                return entry
        return None

class InMemoryAuditRepository(AuditRepository):
    def __init__(self):
        self._storage: List[AuditLogEntry] = []

    def save(self, entry: AuditLogEntry):
        # Append-only
        self._storage.append(entry)
        level = logging.INFO if entry.is_write else logging.DEBUG
        logger.log(level, f"Audit: {entry.method} {entry.endpoint} action={entry.action_type.value} actor={entry.actor} status={entry.status.value}")

    def get_all(self) -> List[AuditLogEntry]:
        return list(self._storage)

    def writes(self) -> List[AuditLogEntry]:
        return [entry for entry in self._storage if entry.is_write]

    def clear(self):
        self._storage.clear()

audit_repo = InMemoryAuditRepository()
