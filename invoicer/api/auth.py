from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
import logging

from invoicer.core.auth import authenticate, session_token, sessions
from invoicer.core.config import settings
from invoicer.api.templating import templates

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)

@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    return templates.TemplateResponse(request, "login.html", {"error": None})

@router.post("/login")
async def login(request: Request, email: str = Form(...), password: str = Form(...)):
    user_id = authenticate(email, password)
    if not user_id:
        logger.warning(f"Failed login attempt for {email}")
        return templates.TemplateResponse(
            request, "login.html", {"error": "Invalid email or password", "email": email}, status_code=401
        )

    token = sessions.create(user_id)
    logger.info(f"User {user_id} logged in")
    response = RedirectResponse(url="/invoices", status_code=303)
    response.set_cookie(key=settings.SESSION_COOKIE, value=token, httponly=True, samesite="lax", path="/")
    return response

@router.post("/logout")
async def logout(request: Request):
    sessions.drop(session_token(request.cookies, request.headers))
    response = RedirectResponse(url="/login", status_code=303)
    response.delete_cookie(key=settings.SESSION_COOKIE, path="/")
    return response
