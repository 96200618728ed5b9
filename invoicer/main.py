import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from invoicer.core.config import settings
from invoicer.core.middleware import SessionAuditMiddleware
from invoicer.api import auth, health, invoices, settings as settings_api, shortcuts, web

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME)
app.add_middleware(SessionAuditMiddleware)

Path(settings.STATIC_DIR).mkdir(parents=True, exist_ok=True)
app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")

# Include routers
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(invoices.router, prefix=settings.API_PREFIX)
app.include_router(settings_api.router, prefix=settings.API_PREFIX)
app.include_router(shortcuts.router, prefix=settings.API_PREFIX)
app.include_router(shortcuts.ws_router)
app.include_router(web.router)

@app.on_event("startup")
async def startup_event():
    logger.info(f"{settings.PROJECT_NAME} started (api prefix {settings.API_PREFIX})")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
