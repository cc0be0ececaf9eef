from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator


class StaffDetailCreate(BaseModel):
    assignment_id: int
    staff_name: str
    sia_number: Optional[str] = None
    role: Optional[str] = None
    sia_expiry_date: Optional[datetime] = None

    @field_validator('sia_number')
    @classmethod
    def normalize_sia_number(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return value.strip().upper()


class StaffTimeCreate(BaseModel):
    assignment_id: int
    role_type: Optional[str] = None
    shift_number: int = 1
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class RosterMatch(BaseModel):
    """Roster entry resolved for a badge at one event."""

    staff_detail_id: int
    assignment_id: int
    staff_name: str
    role: Optional[str] = None
    provider_id: Optional[int] = None
    provider_name: Optional[str] = None
    sia_expiry_date: Optional[datetime] = None


class ShiftWindow(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
