import logging
import time

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from studio_attendance.api.deps import get_db, get_settings
from studio_attendance.core.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check: database unreachable: {e}")
        database = "unavailable"

    return {
        "status": "ok" if database == "connected" else "degraded",
        "uptime": round(time.monotonic() - request.app.state.started_at, 1),
        "environment": settings.ENVIRONMENT,
        "integrations": {
            "database": database,
            "googleSheets": "configured" if settings.sheets_configured else "not configured",
            "smtp": "configured" if settings.smtp_configured else "not configured",
        },
    }
