# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + slot pool.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from app.database import get_db
from app.services.parking_engine import ParkingEngine, get_parking_engine
from app.utils.clock import utcnow
from app.utils.logger import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db), parking: ParkingEngine = Depends(get_parking_engine)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Slot pool totals (degraded if below configured capacity)
    """
    result = {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "slots": None,
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        summary = parking.slot_summary(db)
    except SQLAlchemyError as e:
        logger.error(f"Health check DB error: {e}")
        result["database"] = f"error: {e}"
        result["status"] = "degraded"
        return result

    result["slots"] = {"total": summary.total, "occupied": summary.occupied, "free": summary.free}
    if summary.total < parking.capacity:
        result["status"] = "degraded"
    return result
