from sqlalchemy.orm import Session

from app.api.assignments.crud import assignment as assignment_crud
from app.api.roster.crud import staff_detail as staff_detail_crud
from app.core.logger import logger

from . import schemas
from .crud import check_in as check_in_crud


def get_check_in_statistics(db: Session, event_id: int) -> schemas.CheckInStatistics:
    """
    Recompute the gate figures of an event from the stored rows.

    Nothing is cached or counted incrementally, every call reads the accepted
    assignments, their rosters and all check-ins of the event.
    """
    assignments = assignment_crud.get_accepted_for_event(db, event_id)
    staff_booked = sum(a.staff_booked for a in assignments)
    staff_in_lists = staff_detail_crud.count_for_assignments(
        db, [a.id for a in assignments]
    )

    scanned_correctly = duplicates = rejected = 0
    for check_in in check_in_crud.get_for_event(db, event_id):
        if check_in.is_duplicate:
            duplicates += 1
        elif check_in.verified:
            scanned_correctly += 1
        else:
            rejected += 1

    statistics = schemas.CheckInStatistics(
        staff_booked=staff_booked,
        staff_in_provider_lists=staff_in_lists,
        scanned_correctly=scanned_correctly,
        duplicates=duplicates,
        rejected=rejected,
    )
    logger.info('Check-in statistics for event %s: %s', event_id, statistics)
    return statistics
