from typing import List, Optional, Sequence, TypeVar

from sqlalchemy.orm import Session

from app.api.assignments.models import Assignment
from app.api.base_crud import CRUDBase
from app.core.logger import logger

from . import models, schemas

T = TypeVar('T')


def pick_single(rows: Sequence[T], context: str = '') -> Optional[T]:
    """
    Reduce a joined result to at most one row.

    No rows gives None. Several rows (the same badge listed twice for one
    event) logs a warning and keeps the first, callers order by id so the
    oldest roster entry wins.
    """
    if not rows:
        return None
    if len(rows) > 1:
        logger.warning(
            'Expected one row for %s, got %s. Using the first one', context, len(rows)
        )
    return rows[0]


def _to_match(staff_detail: models.StaffDetail) -> schemas.RosterMatch:
    assignment = staff_detail.assignment
    provider = assignment.provider if assignment else None
    return schemas.RosterMatch(
        staff_detail_id=staff_detail.id,
        assignment_id=staff_detail.assignment_id,
        staff_name=staff_detail.staff_name,
        role=staff_detail.role,
        provider_id=assignment.provider_id if assignment else None,
        provider_name=provider.company_name if provider else None,
        sia_expiry_date=staff_detail.sia_expiry_date,
    )


class CRUDStaffDetail(
    CRUDBase[models.StaffDetail, schemas.StaffDetailCreate, schemas.StaffDetailCreate]
):
    def find_for_event(
        self, db: Session, event_id: int, sia_number: str
    ) -> List[models.StaffDetail]:
        # Scoped through the assignment, a badge listed for another event never matches
        return (
            db.query(self.model)
            .join(Assignment, self.model.assignment_id == Assignment.id)
            .filter(
                self.model.sia_number == sia_number,
                Assignment.event_id == event_id,
            )
            .order_by(self.model.id)
            .all()
        )

    def verify(
        self, db: Session, event_id: int, sia_number: str
    ) -> Optional[schemas.RosterMatch]:
        rows = self.find_for_event(db, event_id, sia_number)
        staff_detail = pick_single(rows, f'badge {sia_number} at event {event_id}')
        if not staff_detail:
            return None
        return _to_match(staff_detail)

    def get_match(
        self, db: Session, staff_detail_id: int
    ) -> Optional[schemas.RosterMatch]:
        staff_detail = (
            db.query(self.model).filter(self.model.id == staff_detail_id).first()
        )
        if not staff_detail:
            return None
        return _to_match(staff_detail)

    def count_for_assignments(self, db: Session, assignment_ids: List[int]) -> int:
        if not assignment_ids:
            return 0
        return (
            db.query(self.model)
            .filter(self.model.assignment_id.in_(assignment_ids))
            .count()
        )


class CRUDStaffTime(
    CRUDBase[models.StaffTime, schemas.StaffTimeCreate, schemas.StaffTimeCreate]
):
    def get_first_shift(
        self, db: Session, assignment_id: int
    ) -> Optional[schemas.ShiftWindow]:
        shift = (
            db.query(self.model)
            .filter(self.model.assignment_id == assignment_id)
            .order_by(self.model.shift_number.asc())
            .first()
        )
        if not shift:
            return None
        return schemas.ShiftWindow(start_time=shift.start_time, end_time=shift.end_time)

    def get_first_shifts(
        self, db: Session, assignment_ids: List[int]
    ) -> dict:
        """Earliest shift per assignment, keyed by assignment id."""
        if not assignment_ids:
            return {}
        shifts = (
            db.query(self.model)
            .filter(self.model.assignment_id.in_(assignment_ids))
            .order_by(self.model.shift_number.asc())
            .all()
        )
        windows = {}
        for shift in shifts:
            if shift.assignment_id not in windows:
                windows[shift.assignment_id] = schemas.ShiftWindow(
                    start_time=shift.start_time, end_time=shift.end_time
                )
        return windows


staff_detail = CRUDStaffDetail(models.StaffDetail)
staff_time = CRUDStaffTime(models.StaffTime)
