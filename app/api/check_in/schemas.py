from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, field_validator

from app.api.check_in.models import STEWARD_BADGE
from app.core.sia_register import SIARegisterResult


class ScanMethod(str, Enum):
    QR_SCAN = 'qr_scan'
    MANUAL_ENTRY = 'manual_entry'
    OCR_SCAN = 'ocr_scan'


class ScanStatus(str, Enum):
    VERIFIED = 'verified'
    UNLISTED = 'unlisted'
    DUPLICATE = 'duplicate'
    ERROR = 'error'
    SIGNED_OUT = 'signed_out'


class InternalCheckInCreate(BaseModel):
    event_id: int
    sia_number: str
    staff_name: str
    staff_detail_id: Optional[int] = None
    provider_id: Optional[int] = None
    provider_name: Optional[str] = None
    verified: bool = False
    is_duplicate: bool = False
    check_in_method: ScanMethod = ScanMethod.QR_SCAN
    check_in_time: datetime
    sign_in_time: Optional[datetime] = None


class NewScan(BaseModel):
    event_id: int
    code: str
    method: ScanMethod = ScanMethod.QR_SCAN

    @field_validator('code')
    def validate_code(cls, v):
        if not v or not v.strip():
            raise ValueError('Code is required')
        if v.strip().upper() == STEWARD_BADGE:
            raise ValueError('Stewards are checked in by name')
        return v


class NewStewardCheckIn(BaseModel):
    event_id: int
    name: str
    provider_name: str

    @field_validator('name', 'provider_name')
    def validate_required(cls, v):
        if not v or not v.strip():
            raise ValueError('Field is required')
        return v.strip()


class DeleteCheckIns(BaseModel):
    ids: List[int]


class ScanResult(BaseModel):
    success: bool
    status: ScanStatus
    message: str
    timestamp: datetime
    staff_name: Optional[str] = None
    provider_name: Optional[str] = None
    role: Optional[str] = None
    sia_number: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    check_in_time: Optional[datetime] = None
    sign_in_time: Optional[datetime] = None
    sign_out_time: Optional[datetime] = None
    is_sign_out: bool = False
    register_check: Optional[SIARegisterResult] = None


class RecentScan(ScanResult):
    id: int


class CheckInStatistics(BaseModel):
    staff_booked: int
    staff_in_provider_lists: int
    scanned_correctly: int
    duplicates: int
    rejected: int


class VerifiedCheckIn(BaseModel):
    id: int
    check_in_time: datetime
    sign_in_time: Optional[datetime] = None
    sign_out_time: Optional[datetime] = None
    staff_name: str
    role: Optional[str] = None
    sia_number: str
    # Grouped in fours for 16 digit licences, as printed on the badge
    sia_number_display: str
    sia_expiry_date: Optional[datetime] = None
    licence_warnings: List[str] = []
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    provider_name: str
