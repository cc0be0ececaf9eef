from datetime import datetime, timedelta

from app.api.check_in.models import CheckIn, pack_steward_name
from app.api.events.models import Event
from app.core.utils import current_time
from app.processes.close_open_sessions import close_open_sessions
from app.processes.migrate_steward_names import migrate_steward_names


def add_check_in(db_session, event_id, sia_number, staff_name, **kwargs):
    check_in_time = kwargs.pop('check_in_time', datetime(2025, 7, 5, 18, 0))
    check_in = CheckIn(
        event_id=event_id,
        sia_number=sia_number,
        staff_name=staff_name,
        check_in_time=check_in_time,
        sign_in_time=check_in_time,
        **kwargs,
    )
    db_session.add(check_in)
    db_session.commit()
    return check_in


def test_close_open_sessions_of_ended_event(db_session, test_event, other_event):
    open_check_in = add_check_in(db_session, test_event.id, '9876543210123456', 'Priya Shah')
    closed_check_in = add_check_in(
        db_session,
        test_event.id,
        '1111222233334444',
        'Unknown Staff',
        sign_out_time=datetime(2025, 7, 5, 20, 0),
    )
    no_end_date = add_check_in(db_session, other_event.id, '9876543210123456', 'Priya Shah')

    closed = close_open_sessions(db_session, timedelta(hours=12))

    assert closed == 1
    db_session.refresh(open_check_in)
    db_session.refresh(closed_check_in)
    db_session.refresh(no_end_date)
    assert open_check_in.sign_out_time == test_event.end_date
    assert closed_check_in.sign_out_time == datetime(2025, 7, 5, 20, 0)
    assert no_end_date.sign_out_time is None


def test_recent_event_sessions_stay_open(db_session):
    now = current_time()
    event = Event(
        id=3,
        name='Tonight',
        start_date=now - timedelta(hours=6),
        end_date=now - timedelta(hours=1),
        status='active',
    )
    db_session.add(event)
    db_session.commit()
    check_in = add_check_in(db_session, event.id, '9876543210123456', 'Priya Shah')

    closed = close_open_sessions(db_session, timedelta(hours=12))

    assert closed == 0
    db_session.refresh(check_in)
    assert check_in.sign_out_time is None


def test_migrate_packed_steward_names(db_session, test_event, test_provider):
    known = add_check_in(
        db_session,
        test_event.id,
        'STEWARD',
        pack_steward_name('Sam Lee', 'Acme Security'),
        verified=True,
    )
    unknown = add_check_in(
        db_session,
        test_event.id,
        'STEWARD',
        pack_steward_name('Jo Park', 'Unlisted Events Ltd'),
        verified=True,
    )
    plain = add_check_in(
        db_session, test_event.id, 'STEWARD', 'Ana Silva', provider_id=test_provider.id
    )
    badge = add_check_in(db_session, test_event.id, '9876543210123456', 'Priya Shah')

    migrated = migrate_steward_names(db_session)

    assert migrated == 2
    for check_in in (known, unknown, plain, badge):
        db_session.refresh(check_in)
    assert known.staff_name == 'Sam Lee'
    assert known.provider_id == test_provider.id
    assert known.provider_name is None
    assert unknown.staff_name == 'Jo Park'
    assert unknown.provider_id is None
    assert unknown.provider_name == 'Unlisted Events Ltd'
    assert plain.staff_name == 'Ana Silva'
    assert badge.staff_name == 'Priya Shah'


def test_migrate_steward_names_is_idempotent(db_session, test_event):
    add_check_in(
        db_session,
        test_event.id,
        'STEWARD',
        pack_steward_name('Jo Park', 'Unlisted Events Ltd'),
    )

    assert migrate_steward_names(db_session) == 1
    assert migrate_steward_names(db_session) == 0
