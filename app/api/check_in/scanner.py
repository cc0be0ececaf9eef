"""
Gate scan processing.

A scan of a badge at an event goes through these steps, in order:

1. normalize the raw text (trim, upper-case) and the capture method;
2. duplicate window: any record of the same badge at the same event whose
   check_in_time is inside the window short-circuits with ``duplicate`` and
   nothing is written. This check runs before the session check and only
   looks at check_in_time, so a badge cannot sign out inside the window of
   its own sign-in;
3. session: an open record (no sign_out_time) turns the scan into a sign-out
   of that record, otherwise it is a new sign-in verified against the event
   roster;
4. one committed write (insert or update). A failed write is reported as
   ``error`` and never as a successful check-in;
5. register lookup for 16 digit licence numbers. It runs after the write and
   can only add ``register_check`` to the result.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.providers.crud import provider as provider_crud
from app.api.roster.crud import staff_detail as staff_detail_crud
from app.api.roster.crud import staff_time as staff_time_crud
from app.core.logger import logger
from app.core.sia_license import is_licence_number
from app.core.sia_register import SIARegisterClient, SIARegisterResult
from app.core.utils import current_time, to_local_time

from . import display, models, schemas
from .crud import check_in as check_in_crud


def normalize_scan(
    raw: str, method: schemas.ScanMethod
) -> Tuple[str, schemas.ScanMethod]:
    """Badge id as stored plus the stored capture method (OCR is kept as QR)."""
    badge = (raw or '').strip().upper()
    if method == schemas.ScanMethod.MANUAL_ENTRY:
        return badge, schemas.ScanMethod.MANUAL_ENTRY
    return badge, schemas.ScanMethod.QR_SCAN


class ScanProcessor:
    def __init__(
        self,
        duplicate_window: timedelta,
        register_client: Optional[SIARegisterClient] = None,
        pack_steward_names: bool = True,
        display_timezone: tzinfo = timezone.utc,
        clock: Callable[[], datetime] = current_time,
    ):
        self.duplicate_window = duplicate_window
        self.register_client = register_client
        self.pack_steward_names = pack_steward_names
        self.display_timezone = display_timezone
        self._clock = clock

    def process_scan(
        self,
        db: Session,
        event_id: int,
        code: str,
        method: schemas.ScanMethod = schemas.ScanMethod.QR_SCAN,
    ) -> schemas.ScanResult:
        badge, stored_method = normalize_scan(code, method)
        now = self._clock()
        logger.info('Scan of %s at event %s (%s)', badge, event_id, method.value)

        try:
            recent = check_in_crud.get_recent_check_in(
                db, event_id, badge, since=now - self.duplicate_window
            )
            if recent:
                logger.info('Duplicate scan of %s at event %s', badge, event_id)
                return self._duplicate_result(badge, recent, now)

            open_check_in = check_in_crud.get_open_check_in(db, event_id, badge)
            if open_check_in:
                result = self._sign_out(db, open_check_in, badge, now)
            else:
                result = self._sign_in(db, event_id, badge, stored_method, now)
        except SQLAlchemyError as e:
            logger.error('Scan error for %s at event %s: %s', badge, event_id, e)
            db.rollback()
            return self._error_result(now)

        result.register_check = self._check_register(badge)
        return result

    def process_steward_check_in(
        self,
        db: Session,
        event_id: int,
        name: str,
        provider_name: str,
    ) -> schemas.ScanResult:
        """Stewards carry no badge. Every call records a new verified check-in."""
        now = self._clock()
        try:
            provider = provider_crud.get_by_company_name(db, provider_name)
            staff_name = name
            if not provider:
                logger.info(
                    'Provider %s not found, keeping it with steward %s',
                    provider_name,
                    name,
                )
                if self.pack_steward_names:
                    staff_name = models.pack_steward_name(name, provider_name)

            check_in_crud.record(
                db,
                schemas.InternalCheckInCreate(
                    event_id=event_id,
                    sia_number=models.STEWARD_BADGE,
                    staff_name=staff_name,
                    provider_id=provider.id if provider else None,
                    provider_name=None if provider else provider_name,
                    verified=True,
                    check_in_method=schemas.ScanMethod.MANUAL_ENTRY,
                    check_in_time=now,
                    sign_in_time=now,
                ),
            )
        except SQLAlchemyError as e:
            logger.error('Steward check-in error at event %s: %s', event_id, e)
            db.rollback()
            return self._error_result(now)

        return schemas.ScanResult(
            success=True,
            status=schemas.ScanStatus.VERIFIED,
            message=display.STEWARD_CHECK_IN,
            timestamp=now,
            staff_name=name,
            provider_name=provider_name,
            sia_number=models.STEWARD_BADGE,
            check_in_time=now,
            sign_in_time=now,
        )

    def _sign_in(
        self,
        db: Session,
        event_id: int,
        badge: str,
        method: schemas.ScanMethod,
        now: datetime,
    ) -> schemas.ScanResult:
        match = staff_detail_crud.verify(db, event_id, badge)
        shift = (
            staff_time_crud.get_first_shift(db, match.assignment_id) if match else None
        )

        staff_name = match.staff_name if match else display.UNKNOWN_STAFF
        check_in_crud.record(
            db,
            schemas.InternalCheckInCreate(
                event_id=event_id,
                sia_number=badge,
                staff_name=staff_name,
                staff_detail_id=match.staff_detail_id if match else None,
                provider_id=match.provider_id if match else None,
                verified=match is not None,
                check_in_method=method,
                check_in_time=now,
                sign_in_time=now,
            ),
        )
        logger.info(
            'Sign-in of %s at event %s recorded, verified=%s',
            badge,
            event_id,
            match is not None,
        )

        return schemas.ScanResult(
            success=True,
            status=(
                schemas.ScanStatus.VERIFIED if match else schemas.ScanStatus.UNLISTED
            ),
            message=display.ACCESS_GRANTED if match else display.NOT_ON_LIST,
            timestamp=now,
            staff_name=staff_name,
            provider_name=(match and match.provider_name) or display.UNKNOWN_PROVIDER,
            role=match.role if match else None,
            sia_number=badge,
            start_time=shift.start_time if shift else None,
            end_time=shift.end_time if shift else None,
            check_in_time=now,
            sign_in_time=now,
        )

    def _sign_out(
        self,
        db: Session,
        open_check_in: models.CheckIn,
        badge: str,
        now: datetime,
    ) -> schemas.ScanResult:
        # Resolved before the update so the display does not depend on it
        staff_name = open_check_in.staff_name or display.UNKNOWN_STAFF
        provider_name = display.UNKNOWN_PROVIDER
        role = None
        if open_check_in.staff_detail_id:
            match = staff_detail_crud.get_match(db, open_check_in.staff_detail_id)
            if match:
                staff_name = match.staff_name or staff_name
                role = match.role
                provider_name = match.provider_name or provider_name
        elif open_check_in.provider_id:
            provider_name = (
                provider_crud.get_company_name(db, open_check_in.provider_id)
                or provider_name
            )

        sign_in_time = open_check_in.sign_in_time or open_check_in.check_in_time
        check_in_time = open_check_in.check_in_time
        check_in_crud.record_sign_out(db, open_check_in, now)
        logger.info('Sign-out of %s at event %s', badge, open_check_in.event_id)

        return schemas.ScanResult(
            success=True,
            status=schemas.ScanStatus.SIGNED_OUT,
            message='Signed Out Successfully',
            timestamp=now,
            staff_name=staff_name,
            provider_name=provider_name,
            role=role,
            sia_number=badge,
            check_in_time=check_in_time,
            sign_in_time=sign_in_time,
            sign_out_time=now,
            is_sign_out=True,
        )

    def _check_register(self, badge: str) -> Optional[SIARegisterResult]:
        if self.register_client is None or not is_licence_number(badge):
            return None
        try:
            return self.register_client.lookup(badge)
        except Exception as e:
            logger.error('Error checking SIA register for %s: %s', badge, e)
            return None

    def _duplicate_result(
        self, badge: str, original: models.CheckIn, now: datetime
    ) -> schemas.ScanResult:
        checked_in_at = to_local_time(
            original.check_in_time, self.display_timezone
        ).strftime('%H:%M:%S')
        return schemas.ScanResult(
            success=False,
            status=schemas.ScanStatus.DUPLICATE,
            message=f'Already checked in at {checked_in_at}',
            timestamp=now,
            sia_number=badge,
            check_in_time=original.check_in_time,
        )

    def _error_result(self, now: datetime) -> schemas.ScanResult:
        return schemas.ScanResult(
            success=False,
            status=schemas.ScanStatus.ERROR,
            message='System Error: the check-in could not be recorded',
            timestamp=now,
        )
