from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse, RedirectResponse
import hashlib
from invoicer.core.audit import audit_repo
from invoicer.core.auth import NOT_AUTHENTICATED, session_token, sessions
from invoicer.core.config import settings
from invoicer.schemas.audit import ActionType, AuditLogEntry, AuditStatus
import logging
from typing import Callable

logger = logging.getLogger(__name__)

PUBLIC_PREFIXES = ["/login", "/logout", "/static", "/health"]

def is_public(path: str) -> bool:
    return any(path == p or path.startswith(p + "/") for p in PUBLIC_PREFIXES)

def classify_action(method: str, path: str) -> ActionType:
    api = settings.API_PREFIX
    if path.startswith("/health"):
        return ActionType.HEALTH_CHECK
    if path == "/login" and method == "POST":
        return ActionType.LOGIN
    if path == "/logout":
        return ActionType.LOGOUT
    if path.endswith("/pdf"):
        return ActionType.PDF_DOWNLOAD
    if path.startswith(f"{api}/settings/logo"):
        return ActionType.UPLOAD_LOGO
    if path.startswith(f"{api}/settings") and method == "PUT":
        return ActionType.UPDATE_SETTINGS
    if path.startswith(f"{api}/preferences") and method == "PUT":
        return ActionType.UPDATE_THEME
    if path.startswith(f"{api}/invoices"):
        if method == "POST":
            return ActionType.CREATE_INVOICE
        if method in ("PUT", "PATCH"):
            return ActionType.UPDATE_INVOICE
        if method == "DELETE":
            return ActionType.DELETE_INVOICE
    return ActionType.VIEW

def _save_audit(entry: AuditLogEntry):
    try:
        audit_repo.save(entry)
    except Exception as e:
        logger.error(f"Audit Logging Failed: {e}")

class SessionAuditMiddleware(BaseHTTPMiddleware):
    """Session check for every HTTP request, plus one audit entry per request."""

    async def dispatch(self, request: Request, call_next: Callable):
        endpoint = request.url.path
        method = request.method
        action_type = classify_action(method, endpoint)

        user_id = sessions.resolve(session_token(request.cookies, request.headers))
        public = is_public(endpoint)

        if not user_id and not public:
            # API clients get 401, browsers are sent to the login page
            if endpoint.startswith(settings.API_PREFIX):
                response = JSONResponse(status_code=401, content={"detail": NOT_AUTHENTICATED})
            else:
                response = RedirectResponse(url="/login", status_code=303)
            _save_audit(AuditLogEntry(
                endpoint=endpoint,
                method=method,
                action_type=action_type,
                status=AuditStatus.FAILURE,
            ))
            return response

        request.state.user_id = user_id
        actor = user_id or "ANONYMOUS"

        input_hash = None
        try:
            request_body_bytes = await request.body()
            input_hash = hashlib.sha256(request_body_bytes).hexdigest()
        except Exception as e:
            logger.debug(f"Request body not readable for {endpoint}: {e}")

        status = AuditStatus.FAILURE
        output_hash = None
        try:
            response = await call_next(request)
            if 200 <= response.status_code < 400:
                status = AuditStatus.SUCCESS

            response_body_bytes = b""
            async for chunk in response.body_iterator:
                response_body_bytes += chunk
            output_hash = hashlib.sha256(response_body_bytes).hexdigest()

            response = Response(
                content=response_body_bytes,
                status_code=response.status_code,
                headers=dict(response.headers),
                media_type=response.media_type
            )
        finally:
            _save_audit(AuditLogEntry(
                endpoint=endpoint,
                method=method,
                action_type=action_type,
                actor=actor,
                input_hash=input_hash,
                output_hash=output_hash,
                status=status
            ))

        return response
