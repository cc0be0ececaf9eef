from typing import Dict, Optional, Tuple

from app.api.roster.schemas import ShiftWindow
from app.core.sia_license import (
    format_licence_number,
    is_licence_number,
    validate_licence,
)

from . import models, schemas

UNKNOWN_STAFF = 'Unknown Staff'
UNKNOWN_PROVIDER = 'Unknown Provider'

ACCESS_GRANTED = 'Access Granted'
NOT_ON_LIST = 'Warning: Staff not on event list'
STEWARD_CHECK_IN = 'Steward Check-In'


def display_names(check_in: models.CheckIn) -> Tuple[str, str]:
    """Name and provider to show for a stored check-in."""
    if not check_in.is_steward:
        provider = check_in.provider
        return (
            check_in.staff_name or UNKNOWN_STAFF,
            provider.company_name if provider else UNKNOWN_PROVIDER,
        )

    name, packed_provider = models.unpack_steward_name(check_in.staff_name)
    if check_in.provider:
        return name, check_in.provider.company_name
    return name, check_in.provider_name or packed_provider or UNKNOWN_PROVIDER


def record_status(check_in: models.CheckIn) -> schemas.ScanStatus:
    if check_in.sign_out_time:
        return schemas.ScanStatus.SIGNED_OUT
    if check_in.is_duplicate:
        return schemas.ScanStatus.DUPLICATE
    if check_in.verified:
        return schemas.ScanStatus.VERIFIED
    return schemas.ScanStatus.UNLISTED


def record_message(check_in: models.CheckIn) -> str:
    if check_in.is_steward:
        return STEWARD_CHECK_IN
    if check_in.sign_out_time:
        return 'Signed Out'
    if check_in.is_duplicate:
        return 'Duplicate scan'
    return ACCESS_GRANTED if check_in.verified else NOT_ON_LIST


def to_recent_scan(check_in: models.CheckIn) -> schemas.RecentScan:
    staff_name, provider_name = display_names(check_in)
    staff_detail = check_in.staff_detail
    return schemas.RecentScan(
        id=check_in.id,
        success=True,
        status=record_status(check_in),
        message=record_message(check_in),
        timestamp=check_in.check_in_time,
        staff_name=staff_name,
        provider_name=provider_name,
        role=staff_detail.role if staff_detail else None,
        sia_number=check_in.sia_number,
        check_in_time=check_in.check_in_time,
        sign_in_time=check_in.sign_in_time or check_in.check_in_time,
        sign_out_time=check_in.sign_out_time,
        is_sign_out=check_in.sign_out_time is not None,
    )


def to_verified_check_in(
    check_in: models.CheckIn,
    shifts: Dict[int, ShiftWindow],
) -> schemas.VerifiedCheckIn:
    staff_name, provider_name = display_names(check_in)
    staff_detail = check_in.staff_detail

    shift: Optional[ShiftWindow] = None
    warnings = []
    expiry = None
    role = None
    if staff_detail:
        shift = shifts.get(staff_detail.assignment_id)
        expiry = staff_detail.sia_expiry_date
        role = staff_detail.role
        if expiry:
            warnings = validate_licence(check_in.sia_number, expiry).errors

    return schemas.VerifiedCheckIn(
        id=check_in.id,
        check_in_time=check_in.check_in_time,
        sign_in_time=check_in.sign_in_time or check_in.check_in_time,
        sign_out_time=check_in.sign_out_time,
        staff_name=staff_name,
        role=role,
        sia_number=check_in.sia_number,
        sia_number_display=(
            format_licence_number(check_in.sia_number)
            if is_licence_number(check_in.sia_number)
            else check_in.sia_number
        ),
        sia_expiry_date=expiry,
        licence_warnings=warnings,
        start_time=shift.start_time if shift else None,
        end_time=shift.end_time if shift else None,
        provider_name=provider_name,
    )
