from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile
from datetime import datetime
from pathlib import Path
import logging
import time

from invoicer.core.auth import current_user
from invoicer.core.config import settings
from invoicer.db.memory import logo_storage, preferences_repo, settings_repo
from invoicer.schemas.settings import (
    CompanySettings,
    CompanySettingsUpdate,
    LogoUploadResult,
    Theme,
    ThemePreference,
)

router = APIRouter(tags=["settings"])
logger = logging.getLogger(__name__)

@router.get("/settings", response_model=CompanySettings)
async def get_company_settings(user_id: str = Depends(current_user)):
    return settings_repo.get()

@router.put("/settings", response_model=CompanySettings)
async def save_company_settings(data: CompanySettingsUpdate, user_id: str = Depends(current_user)):
    current = settings_repo.get()
    updated = current.model_copy(update={
        **data.model_dump(),
        "updated_at": datetime.utcnow(),
        "updated_by": user_id,
    })
    saved = settings_repo.save(updated)
    logger.info(f"Company settings updated by {user_id}")
    return saved

@router.post("/settings/logo", response_model=LogoUploadResult)
async def upload_logo(logo: UploadFile = File(...), user_id: str = Depends(current_user)):
    if logo.content_type not in settings.LOGO_ALLOWED_TYPES:
        raise HTTPException(status_code=400, detail="Only PNG and JPEG images are allowed")

    content = await logo.read()
    if len(content) > settings.LOGO_MAX_BYTES:
        raise HTTPException(status_code=400, detail="File size must be less than 2MB")

    ext = Path(logo.filename or "").suffix.lstrip(".").lower() or ("png" if logo.content_type == "image/png" else "jpg")
    filename = f"logo-{int(time.time() * 1000)}.{ext}"
    try:
        logo_url = logo_storage.save(filename, content)
    except OSError as e:
        logger.error(f"Logo upload failed: {e}")
        raise HTTPException(status_code=500, detail="Storage upload failed")

    current = settings_repo.get()
    settings_repo.save(current.model_copy(update={
        "logo_url": logo_url,
        "updated_at": datetime.utcnow(),
        "updated_by": user_id,
    }))
    logger.info(f"Logo uploaded by {user_id}: {logo_url}")
    return LogoUploadResult(logo_url=logo_url)

@router.get("/preferences/theme", response_model=ThemePreference)
async def get_theme_preference(user_id: str = Depends(current_user)):
    return ThemePreference(theme=preferences_repo.get_theme(user_id))

@router.put("/preferences/theme", response_model=ThemePreference)
async def save_theme_preference(theme: str = Body(..., embed=True), user_id: str = Depends(current_user)):
    try:
        value = Theme(theme)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid theme value")
    preferences_repo.save_theme(user_id, value)
    return ThemePreference(theme=value)
