# app/schemas/parking_slot.py
from pydantic import BaseModel


class SlotOut(BaseModel):
    slot_number: int
    is_occupied: bool

    class Config:
        from_attributes = True


class SlotSummaryOut(BaseModel):
    total: int
    occupied: int
    free: int

    class Config:
        from_attributes = True
