# app/routers/parking_stats.py
"""Daily checkout count, revenue and average parking time."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.stats import DailySummaryOut
from app.services.parking_engine import ParkingEngine, get_parking_engine
from app.utils.clock import utcnow

router = APIRouter()


@router.get("/stats/daily", response_model=DailySummaryOut, summary="Daily checkout summary")
def get_daily_stats(target_date: Optional[date] = None, db: Session = Depends(get_db),
                    parking: ParkingEngine = Depends(get_parking_engine)):
    """Totals over vehicles whose exit falls on target_date (UTC, default today)."""
    return parking.daily_summary(db, target_date or utcnow().date())
