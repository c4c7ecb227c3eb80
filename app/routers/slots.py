# app/routers/slots.py
"""Slot pool: per-slot status and occupancy totals."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.parking_slot import SlotOut, SlotSummaryOut
from app.services.parking_engine import ParkingEngine, get_parking_engine

router = APIRouter()


@router.get("/slots", response_model=list[SlotOut], summary="All slots in number order")
def list_slots(db: Session = Depends(get_db), parking: ParkingEngine = Depends(get_parking_engine)):
    return parking.pool.list_slots(db)


@router.get("/slots/summary", response_model=SlotSummaryOut, summary="Total / occupied / free")
def slot_summary(db: Session = Depends(get_db), parking: ParkingEngine = Depends(get_parking_engine)):
    return parking.slot_summary(db)
