# app/schemas/vehicle.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class VehicleCreate(BaseModel):
    owner_name: str
    phone_number: str
    vehicle_number: str      # plate
    brand: str
    category: str            # car | motorcycle | truck (others billed as car)


class VehicleOut(BaseModel):
    id: str
    owner_name: str
    phone_number: str
    vehicle_number: str
    brand: str
    category: str
    slot_number: int
    entry_time: datetime
    exit_time: Optional[datetime]
    parking_fare: Optional[int]
    status: str              # active | checked_out

    class Config:
        from_attributes = True


class FareQuoteOut(BaseModel):
    vehicle_id: str
    category: str
    entry_time: datetime
    quoted_at: datetime
    minutes: int
    fare: int
    final: bool

    class Config:
        from_attributes = True
