# agenda/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv see it
from dotenv import load_dotenv
load_dotenv()

import sqlalchemy as sa
from fastapi import FastAPI, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from agenda.core.config import settings
from agenda.core.errors import AgendaError, log_error
from agenda.core.logging import setup_logging, LoggingMiddleware, get_logger
from agenda.db.session import get_session

# Routers
from agenda.api.routes.appointments import router as appointments_router
from agenda.api.routes.calendar import router as calendar_router

setup_logging(
    debug=settings.is_development,
    max_log_length=settings.MAX_LOG_LENGTH,
    level=settings.LOG_LEVEL,
)
logger = get_logger(__name__)

app = FastAPI(title="Agenda", description="Scheduling core for a single-practitioner clinic")

app.middleware("http")(LoggingMiddleware(
    log_requests=settings.LOG_REQUESTS or settings.is_development,
    log_responses=settings.LOG_RESPONSES or settings.is_development,
    slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
))

@app.exception_handler(AgendaError)
async def agenda_error_handler(request: Request, exc: AgendaError):
    log_error(exc, {"endpoint": request.url.path, "method": request.method})
    body = {"detail": exc.message}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(body, status_code=exc.status_code)

# -------- Health / readiness (public) --------
@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"ok": True}

@app.get("/readyz", include_in_schema=False)
async def readyz(db: AsyncSession = Depends(get_session)):
    await db.execute(sa.text("SELECT 1"))
    return {"db": "ok"}

# -------- Include routers --------
app.include_router(appointments_router)
app.include_router(calendar_router)
