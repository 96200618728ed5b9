from fastapi import HTTPException, Request
from typing import Dict, Optional
import hmac
import logging
import secrets
import uuid

from invoicer.core.config import settings

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not authenticated"
SESSION_HEADER = "X-Session-Token"

def user_id_for(email: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"mailto:{email.strip().lower()}"))

def authenticate(email: str, password: str) -> Optional[str]:
    """Check credentials against the configured account. Returns the user id or None."""
    email_ok = hmac.compare_digest(email.strip().lower().encode(), settings.ADMIN_EMAIL.lower().encode())
    password_ok = hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
    if email_ok and password_ok:
        return user_id_for(settings.ADMIN_EMAIL)
    return None

class SessionStore:
    def __init__(self):
        self._sessions: Dict[str, str] = {}

    def create(self, user_id: str) -> str:
        token = secrets.token_urlsafe(32)
        self._sessions[token] = user_id
        return token

    def resolve(self, token: Optional[str]) -> Optional[str]:
        if not token:
            return None
        return self._sessions.get(token)

    def drop(self, token: Optional[str]):
        if token:
            self._sessions.pop(token, None)

    def clear(self):
        self._sessions.clear()

sessions = SessionStore()

def session_token(cookies, headers) -> Optional[str]:
    # Cookie for the web UI, header for API clients
    return cookies.get(settings.SESSION_COOKIE) or headers.get(SESSION_HEADER)

def current_user(request: Request) -> str:
    user_id = getattr(request.state, "user_id", None) or sessions.resolve(session_token(request.cookies, request.headers))
    if not user_id:
        raise HTTPException(status_code=401, detail=NOT_AUTHENTICATED)
    return user_id
