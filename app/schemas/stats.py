# app/schemas/stats.py
from pydantic import BaseModel
from datetime import date


class DailySummaryOut(BaseModel):
    day: date
    vehicles_checked_out: int
    revenue: int
    avg_parking_minutes: float

    class Config:
        from_attributes = True
