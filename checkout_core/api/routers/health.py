# checkout_core/api/routers/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from checkout_core.data.database import get_db
from checkout_core.domain.schemas import Envelope, HealthOut
from checkout_core.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Envelope[HealthOut])
def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except OperationalError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"success": False, "data": {"status": "degraded", "database": "unavailable"}},
        )
    return {"data": {"status": "ok", "database": "ok"}}
