from unittest.mock import patch

from fastapi import status
from sqlalchemy.exc import OperationalError

from app.api.check_in.crud import check_in as check_in_crud
from app.api.check_in.models import CheckIn
from app.core.sia_register import SIARegisterResult
from tests.conftest import API_KEY_HEADERS

BADGE = '9876543210123456'


def scan(client, code, event_id=1, method='qr_scan'):
    return client.post(
        '/check-in/scan',
        json={'event_id': event_id, 'code': code, 'method': method},
        headers=API_KEY_HEADERS,
    )


def test_scan_verified_badge(
    client, test_staff, test_shifts, register_client, clock, db_session
):
    """A rostered badge signs in as verified and the register is consulted"""
    response = scan(client, BADGE)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data['success'] is True
    assert data['status'] == 'verified'
    assert data['message'] == 'Access Granted'
    assert data['staff_name'] == 'Priya Shah'
    assert data['provider_name'] == 'Acme Security'
    assert data['role'] == 'Supervisor'
    assert data['start_time'] == '17:00'
    assert data['end_time'] == '23:30'
    assert data['sign_in_time'] == clock.now.isoformat()
    assert data['is_sign_out'] is False
    assert data['register_check']['found'] is True
    assert data['register_check']['surname'] == 'SHAH'
    register_client.lookup.assert_called_once_with(BADGE)

    check_in = db_session.query(CheckIn).filter_by(sia_number=BADGE).one()
    assert check_in.verified is True
    assert check_in.is_duplicate is False
    assert check_in.staff_detail_id == test_staff.id
    assert check_in.provider_id == 1
    assert check_in.check_in_method == 'qr_scan'
    assert check_in.sign_in_time == clock.now
    assert check_in.sign_out_time is None


def test_scan_within_window_is_duplicate(client, test_staff, clock, db_session):
    """A second scan two minutes later is a duplicate and writes nothing"""
    first = scan(client, BADGE)
    assert first.json()['status'] == 'verified'

    clock.advance(minutes=2)
    response = scan(client, BADGE)

    data = response.json()
    assert response.status_code == status.HTTP_200_OK
    assert data['success'] is False
    assert data['status'] == 'duplicate'
    # 18:00 UTC is 19:00 in London during summer time
    assert data['message'] == 'Already checked in at 19:00:00'
    assert data['check_in_time'] == '2025-07-05T18:00:00'
    assert data['register_check'] is None
    assert db_session.query(CheckIn).count() == 1


def test_repeated_scans_only_first_persists(client, test_staff, clock, db_session):
    for _ in range(4):
        response = scan(client, f'  {BADGE} ')
        clock.advance(seconds=30)

    assert response.json()['status'] == 'duplicate'
    assert db_session.query(CheckIn).count() == 1


def test_scan_after_window_signs_out(
    client, test_staff, clock, register_client, db_session
):
    """The next scan outside the window closes the open record"""
    scan(client, BADGE)
    signed_in_at = clock.now

    clock.advance(minutes=45)
    response = scan(client, BADGE)

    data = response.json()
    assert data['success'] is True
    assert data['status'] == 'signed_out'
    assert data['message'] == 'Signed Out Successfully'
    assert data['is_sign_out'] is True
    assert data['staff_name'] == 'Priya Shah'
    assert data['provider_name'] == 'Acme Security'
    assert data['role'] == 'Supervisor'
    assert data['sign_in_time'] == signed_in_at.isoformat()
    assert data['sign_out_time'] == clock.now.isoformat()
    assert register_client.lookup.call_count == 2

    check_ins = db_session.query(CheckIn).all()
    assert len(check_ins) == 1
    assert check_ins[0].sign_out_time == clock.now


def test_scan_after_sign_out_starts_new_session(client, test_staff, clock, db_session):
    scan(client, BADGE)
    clock.advance(minutes=30)
    scan(client, BADGE)
    clock.advance(minutes=30)

    response = scan(client, BADGE)

    assert response.json()['status'] == 'verified'
    check_ins = db_session.query(CheckIn).order_by(CheckIn.id).all()
    assert len(check_ins) == 2
    assert check_ins[0].sign_out_time is not None
    assert check_ins[1].sign_out_time is None


def test_duplicate_window_blocks_quick_sign_out(client, test_staff, clock, db_session):
    """Inside the window of its sign-in a badge cannot sign out"""
    scan(client, BADGE)
    clock.advance(minutes=4, seconds=59)

    response = scan(client, BADGE)

    assert response.json()['status'] == 'duplicate'
    check_in = db_session.query(CheckIn).one()
    assert check_in.sign_out_time is None


def test_scan_at_window_end_signs_out(client, test_staff, clock, db_session):
    """Exactly one window after the sign-in the scan is no longer a duplicate"""
    scan(client, BADGE)
    clock.advance(minutes=5)

    response = scan(client, BADGE)

    assert response.json()['status'] == 'signed_out'
    assert db_session.query(CheckIn).one().sign_out_time == clock.now


def test_scan_unlisted_badge(client, test_event, register_client, db_session):
    """A badge that is not on the roster is recorded as unverified"""
    response = scan(client, 'ab12', method='manual_entry')

    data = response.json()
    assert response.status_code == status.HTTP_200_OK
    assert data['success'] is True
    assert data['status'] == 'unlisted'
    assert data['message'] == 'Warning: Staff not on event list'
    assert data['staff_name'] == 'Unknown Staff'
    assert data['provider_name'] == 'Unknown Provider'
    assert data['sia_number'] == 'AB12'
    assert data['register_check'] is None
    register_client.lookup.assert_not_called()

    check_in = db_session.query(CheckIn).one()
    assert check_in.sia_number == 'AB12'
    assert check_in.verified is False
    assert check_in.staff_detail_id is None
    assert check_in.check_in_method == 'manual_entry'


def test_roster_is_scoped_to_the_event(client, test_staff, other_event, db_session):
    """The same badge listed for another event is unlisted here"""
    response = scan(client, BADGE, event_id=other_event.id)

    assert response.json()['status'] == 'unlisted'
    check_in = db_session.query(CheckIn).one()
    assert check_in.event_id == other_event.id
    assert check_in.verified is False


def test_ocr_scan_stored_as_qr(client, test_staff, db_session):
    response = scan(client, BADGE, method='ocr_scan')

    assert response.json()['status'] == 'verified'
    assert db_session.query(CheckIn).one().check_in_method == 'qr_scan'


def test_register_failure_does_not_change_status(client, test_staff, register_client):
    register_client.lookup.side_effect = RuntimeError('register down')

    response = scan(client, BADGE)

    data = response.json()
    assert data['status'] == 'verified'
    assert data['success'] is True
    assert data['register_check'] is None


def test_register_not_found_is_only_enrichment(client, test_event, register_client):
    register_client.lookup.return_value = SIARegisterResult(
        found=False, error='SIA Website requires CAPTCHA'
    )

    response = scan(client, '1111222233334444')

    data = response.json()
    assert data['status'] == 'unlisted'
    assert data['register_check'] == {
        'found': False,
        'first_name': None,
        'surname': None,
        'licence_number': None,
        'role': None,
        'licence_sector': None,
        'expiry_date': None,
        'status': None,
        'status_explanation': None,
        'error': 'SIA Website requires CAPTCHA',
    }


def test_failed_write_reports_error(client, test_staff, register_client, db_session):
    with patch.object(
        check_in_crud, 'record', side_effect=OperationalError('INSERT', {}, 'db down')
    ):
        response = scan(client, BADGE)

    data = response.json()
    assert response.status_code == status.HTTP_200_OK
    assert data['success'] is False
    assert data['status'] == 'error'
    assert data['message'].startswith('System Error')
    register_client.lookup.assert_not_called()
    assert db_session.query(CheckIn).count() == 0


def test_failed_sign_out_reports_error(
    client, test_staff, register_client, clock, db_session
):
    """A sign-out that cannot be committed leaves the session open"""
    scan(client, BADGE)
    clock.advance(minutes=30)

    with patch.object(
        db_session, 'commit', side_effect=OperationalError('UPDATE', {}, 'db down')
    ):
        response = scan(client, BADGE)

    data = response.json()
    assert response.status_code == status.HTTP_200_OK
    assert data['success'] is False
    assert data['status'] == 'error'
    assert register_client.lookup.call_count == 1
    check_in = db_session.query(CheckIn).one()
    assert check_in.sign_out_time is None


def test_failed_steward_write_reports_error(client, test_event, db_session):
    with patch.object(
        db_session, 'commit', side_effect=OperationalError('INSERT', {}, 'db down')
    ):
        response = client.post(
            '/check-in/steward',
            json={'event_id': test_event.id, 'name': 'Jane Doe', 'provider_name': 'X'},
            headers=API_KEY_HEADERS,
        )

    data = response.json()
    assert response.status_code == status.HTTP_200_OK
    assert data['success'] is False
    assert data['status'] == 'error'
    assert db_session.query(CheckIn).count() == 0


def test_scan_invalid_api_key(client, test_event):
    response = client.post(
        '/check-in/scan',
        json={'event_id': test_event.id, 'code': BADGE},
        headers={'x-api-key': 'invalid_api_key'},
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert 'Invalid API key' in response.json()['detail']


def test_scan_unknown_event(client):
    response = scan(client, BADGE, event_id=99)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()['detail'] == 'Event not found'


def test_scan_empty_code(client, test_event):
    response = scan(client, '   ')

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_scan_steward_marker_rejected(client, test_event):
    response = scan(client, 'steward')

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_steward_with_unknown_provider(client, test_event, register_client, db_session):
    """An unresolved provider is kept with the steward name"""
    response = client.post(
        '/check-in/steward',
        json={
            'event_id': test_event.id,
            'name': 'Jane Doe',
            'provider_name': 'Acme Security',
        },
        headers=API_KEY_HEADERS,
    )

    data = response.json()
    assert response.status_code == status.HTTP_200_OK
    assert data['success'] is True
    assert data['status'] == 'verified'
    assert data['message'] == 'Steward Check-In'
    assert data['staff_name'] == 'Jane Doe'
    assert data['provider_name'] == 'Acme Security'
    assert data['sia_number'] == 'STEWARD'
    register_client.lookup.assert_not_called()

    check_in = db_session.query(CheckIn).one()
    assert check_in.staff_name == 'Jane Doe | Acme Security'
    assert check_in.provider_id is None
    assert check_in.provider_name == 'Acme Security'
    assert check_in.verified is True
    assert check_in.sia_number == 'STEWARD'
    assert check_in.check_in_method == 'manual_entry'


def test_steward_with_known_provider(client, test_event, test_provider, db_session):
    client.post(
        '/check-in/steward',
        json={
            'event_id': test_event.id,
            'name': 'Jane Doe',
            'provider_name': 'Acme Security',
        },
        headers=API_KEY_HEADERS,
    )

    check_in = db_session.query(CheckIn).one()
    assert check_in.staff_name == 'Jane Doe'
    assert check_in.provider_id == test_provider.id
    assert check_in.provider_name is None


def test_steward_skips_duplicate_and_session_logic(client, test_event, db_session):
    payload = {'event_id': test_event.id, 'name': 'Jane Doe', 'provider_name': 'X'}
    for _ in range(3):
        response = client.post(
            '/check-in/steward', json=payload, headers=API_KEY_HEADERS
        )
        assert response.json()['status'] == 'verified'

    assert db_session.query(CheckIn).count() == 3


def test_recent_scans(client, test_staff, clock):
    scan(client, BADGE)
    clock.advance(minutes=1)
    scan(client, 'AB12')
    clock.advance(minutes=1)
    client.post(
        '/check-in/steward',
        json={'event_id': 1, 'name': 'Jane Doe', 'provider_name': 'Nobody Ltd'},
        headers=API_KEY_HEADERS,
    )
    clock.advance(minutes=10)
    scan(client, BADGE)

    response = client.get('/check-in/events/1/recent', headers=API_KEY_HEADERS)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [d['sia_number'] for d in data] == ['STEWARD', 'AB12', BADGE]

    steward, unlisted, signed_out = data
    assert steward['staff_name'] == 'Jane Doe'
    assert steward['provider_name'] == 'Nobody Ltd'
    assert steward['message'] == 'Steward Check-In'
    assert unlisted['status'] == 'unlisted'
    assert signed_out['status'] == 'signed_out'
    assert signed_out['role'] == 'Supervisor'
    assert signed_out['message'] == 'Signed Out'


def test_statistics(client, auth_headers, test_staff, db_session, clock):
    scan(client, BADGE)
    clock.advance(minutes=1)
    scan(client, BADGE)
    scan(client, 'AB12')
    db_session.add(
        CheckIn(
            event_id=1,
            sia_number='CD34',
            staff_name='Unknown Staff',
            verified=False,
            is_duplicate=True,
            check_in_time=clock.now,
        )
    )
    db_session.commit()

    response = client.get('/check-in/events/1/statistics', headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        'staff_booked': 17,
        'staff_in_provider_lists': 1,
        'scanned_correctly': 1,
        'duplicates': 1,
        'rejected': 1,
    }


def test_statistics_requires_auth(client, test_event):
    response = client.get('/check-in/events/1/statistics')

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_verified_check_ins(client, auth_headers, test_staff, test_shifts):
    scan(client, BADGE)
    scan(client, 'AB12')

    response = client.get('/check-in/events/1/verified', headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert len(data) == 1
    assert data[0]['staff_name'] == 'Priya Shah'
    assert data[0]['provider_name'] == 'Acme Security'
    assert data[0]['role'] == 'Supervisor'
    assert data[0]['start_time'] == '17:00'
    assert data[0]['end_time'] == '23:30'
    assert data[0]['sia_expiry_date'] == '2026-02-26T00:00:00'
    assert data[0]['sia_number_display'] == '9876 5432 1012 3456'
    assert isinstance(data[0]['licence_warnings'], list)


def test_verified_count(client, test_staff):
    scan(client, BADGE)
    scan(client, 'AB12')

    response = client.get('/check-in/events/1/verified-count', headers=API_KEY_HEADERS)

    assert response.json() == 1


def test_delete_check_ins(client, auth_headers, test_event, clock, db_session):
    scan(client, 'AB12')
    scan(client, 'CD34')
    ids = [c.id for c in db_session.query(CheckIn).all()]

    response = client.post(
        '/check-in/delete', json={'ids': ids[:1]}, headers=auth_headers
    )

    assert response.status_code == status.HTTP_204_NO_CONTENT
    remaining = db_session.query(CheckIn).all()
    assert [c.id for c in remaining] == ids[1:]

    response = client.post('/check-in/delete', json={'ids': []}, headers=auth_headers)
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert db_session.query(CheckIn).count() == 1


def test_register_search_disabled(client, auth_headers):
    response = client.get(f'/check-in/register/{BADGE}', headers=auth_headers)

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
