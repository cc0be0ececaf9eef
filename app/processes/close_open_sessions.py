"""
Closes sign-ins that were never paired with a sign-out.

This runs apart from the gate: the scan flow itself never expires an open
session. Open check-ins of events that ended more than
OPEN_SESSION_GRACE_HOURS ago get the event end as their sign_out_time.
"""

import time
from datetime import timedelta

from sqlalchemy.orm import Session

from app.api.check_in.crud import check_in as check_in_crud
from app.api.events.crud import event as event_crud
from app.api.events.models import Event
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.logger import logger
from app.core.utils import current_time


def close_event_sessions(db: Session, event: Event) -> int:
    open_check_ins = check_in_crud.get_open_for_event(db, event.id)
    for check_in in open_check_ins:
        logger.info(
            'Closing open check-in %s (%s) of event %s',
            check_in.id,
            check_in.sia_number,
            event.id,
        )
        check_in.sign_out_time = event.end_date
    db.commit()
    return len(open_check_ins)


def close_open_sessions(db: Session, grace: timedelta) -> int:
    cutoff = current_time() - grace
    events = event_crud.get_ended_before(db, cutoff)
    logger.info('Events ended before %s: %s', cutoff, [e.id for e in events])

    closed = 0
    for event in events:
        closed += close_event_sessions(db, event)
    logger.info('Closed %s open check-ins', closed)
    return closed


def main():
    with SessionLocal() as db:
        close_open_sessions(db, timedelta(hours=settings.OPEN_SESSION_GRACE_HOURS))


if __name__ == '__main__':
    logger.info('Starting open session reconciliation...')
    main()
    logger.info('Open session reconciliation completed. Sleeping for 1 hour...')
    time.sleep(60 * 60)
