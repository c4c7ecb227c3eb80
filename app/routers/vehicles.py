# app/routers/vehicles.py
"""Vehicle lifecycle: register, quote, checkout, cancel, history."""

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.vehicle import FareQuoteOut, VehicleCreate, VehicleOut
from app.services.parking_engine import ParkingEngine, get_parking_engine
from app.services.vehicle_ledger import VehicleFilter

router = APIRouter()


@router.post("/vehicles", response_model=VehicleOut, status_code=201,
             summary="Register a vehicle on the lowest free slot")
def register_vehicle(body: VehicleCreate, db: Session = Depends(get_db),
                     parking: ParkingEngine = Depends(get_parking_engine)):
    return parking.register(db, body.model_dump())


@router.get("/vehicles", response_model=list[VehicleOut], summary="List parked vehicles or history")
def list_vehicles(
    status: Optional[Literal["active", "history"]] = None,
    slot_number: Optional[int] = None,
    vehicle_number: Optional[str] = None,
    day: Optional[date] = Query(None, alias="date", description="Exit day (UTC)"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    parking: ParkingEngine = Depends(get_parking_engine),
):
    """
    status=active → vehicles currently parked.
    status=history → checked-out vehicles (cancelled registrations never appear).
    `date` is shorthand for date_from = date_to = date, filtering on exit day.
    Newest entry first.
    """
    filters = VehicleFilter(
        status=status,
        slot_number=slot_number,
        vehicle_number=vehicle_number,
        exit_date_from=day or date_from,
        exit_date_to=day or date_to,
    )
    return parking.list_vehicles(db, filters).offset(offset).limit(limit).all()


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut, summary="Get one vehicle record")
def get_vehicle(vehicle_id: str, db: Session = Depends(get_db),
                parking: ParkingEngine = Depends(get_parking_engine)):
    return parking.get_vehicle(db, vehicle_id)


@router.get("/vehicles/{vehicle_id}/fare", response_model=FareQuoteOut, summary="Quote the fare as of now")
def quote_fare(vehicle_id: str, db: Session = Depends(get_db),
               parking: ParkingEngine = Depends(get_parking_engine)):
    """Read-only. The charged fare is recomputed at checkout, not taken from this quote."""
    return parking.quote_fare(db, vehicle_id)


@router.post("/vehicles/{vehicle_id}/checkout", response_model=VehicleOut, summary="Check out and charge")
def checkout_vehicle(vehicle_id: str, db: Session = Depends(get_db),
                     parking: ParkingEngine = Depends(get_parking_engine)):
    return parking.checkout(db, vehicle_id)


@router.post("/vehicles/{vehicle_id}/cancel", summary="Cancel a registration within the grace window")
def cancel_vehicle(vehicle_id: str, db: Session = Depends(get_db),
                   parking: ParkingEngine = Depends(get_parking_engine)):
    parking.cancel(db, vehicle_id)
    return {"success": True, "id": vehicle_id}
