from datetime import datetime, timedelta
from unittest.mock import Mock
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.assignments.models import Assignment
from app.api.check_in.dependencies import get_scan_processor
from app.api.check_in.scanner import ScanProcessor
from app.api.events.models import Event
from app.api.providers.models import Provider
from app.api.roster.models import StaffDetail, StaffTime
from app.core.config import Environment, settings
from app.core.database import Base, get_db
from app.core.security import create_access_token
from app.core.sia_register import SIARegisterClient, SIARegisterResult
from main import app

API_KEY_HEADERS = {'x-api-key': 'test_check_in_api_key'}


@pytest.fixture(scope='session', autouse=True)
def check_test_environment():
    if settings.ENVIRONMENT != Environment.TEST:
        raise RuntimeError(
            f'Tests can only be executed in test environment. Current environment: {settings.ENVIRONMENT}'
        )


@pytest.fixture(scope='session', autouse=True)
def setup_test_keys():
    """Set API key and JWT secret for testing to avoid None values"""
    original_check_in_key = settings.CHECK_IN_API_KEY
    original_secret_key = settings.SECRET_KEY

    settings.CHECK_IN_API_KEY = 'test_check_in_api_key'
    settings.SECRET_KEY = 'test_secret_key'

    yield

    settings.CHECK_IN_API_KEY = original_check_in_key
    settings.SECRET_KEY = original_secret_key


@pytest.fixture(scope='session')
def test_db_engine():
    engine = create_engine(
        settings.SQLALCHEMY_TEST_DATABASE_URL,
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope='function')
def db_session(test_db_engine):
    """Create a fresh database session for each test"""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_db_engine
    )

    Base.metadata.drop_all(bind=test_db_engine)
    Base.metadata.create_all(bind=test_db_engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 7, 5, 18, 0, 0))


@pytest.fixture
def register_client():
    client = Mock(spec=SIARegisterClient)
    client.lookup.return_value = SIARegisterResult(
        found=True,
        first_name='PRIYA',
        surname='SHAH',
        licence_number='9876543210123456',
        role='Front Line',
        licence_sector='Door Supervision',
        expiry_date='26 February 2026',
        status='Active',
    )
    return client


@pytest.fixture
def scan_processor(register_client, clock):
    return ScanProcessor(
        duplicate_window=timedelta(minutes=5),
        register_client=register_client,
        display_timezone=ZoneInfo('Europe/London'),
        clock=clock,
    )


@pytest.fixture(scope='function')
def client(db_session, scan_processor):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_scan_processor] = lambda: scan_processor
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def get_auth_headers_for_operator(operator_id: int) -> dict:
    """Generate auth headers for a specific gate operator"""
    access_token = create_access_token(
        data={'operator_id': operator_id, 'email': f'operator{operator_id}@example.com'}
    )
    return {'Authorization': f'Bearer {access_token}'}


@pytest.fixture
def auth_headers():
    return get_auth_headers_for_operator(1)


@pytest.fixture
def test_event(db_session):
    event = Event(
        id=1,
        name='Test Stadium Concert',
        location='Test Stadium',
        start_date=datetime(2025, 7, 5, 17, 0),
        end_date=datetime(2025, 7, 5, 23, 30),
        status='scheduled',
    )
    db_session.add(event)
    db_session.commit()
    return event


@pytest.fixture
def other_event(db_session):
    event = Event(id=2, name='Other Event', status='scheduled')
    db_session.add(event)
    db_session.commit()
    return event


@pytest.fixture
def test_provider(db_session):
    provider = Provider(id=1, company_name='Acme Security')
    db_session.add(provider)
    db_session.commit()
    return provider


@pytest.fixture
def test_assignment(db_session, test_event, test_provider):
    assignment = Assignment(
        id=1,
        event_id=test_event.id,
        provider_id=test_provider.id,
        status='accepted',
        assigned_managers=1,
        assigned_supervisors=2,
        assigned_sia=10,
        assigned_stewards=4,
    )
    db_session.add(assignment)
    db_session.commit()
    return assignment


@pytest.fixture
def test_shifts(db_session, test_assignment):
    late = StaffTime(
        assignment_id=test_assignment.id,
        role_type='SIA',
        shift_number=2,
        start_time='21:00',
        end_time='02:00',
    )
    early = StaffTime(
        assignment_id=test_assignment.id,
        role_type='SIA',
        shift_number=1,
        start_time='17:00',
        end_time='23:30',
    )
    db_session.add_all([late, early])
    db_session.commit()
    return early, late


@pytest.fixture
def test_staff(db_session, test_assignment):
    staff = StaffDetail(
        id=1,
        assignment_id=test_assignment.id,
        staff_name='Priya Shah',
        sia_number='9876543210123456',
        role='Supervisor',
        sia_expiry_date=datetime(2026, 2, 26),
    )
    db_session.add(staff)
    db_session.commit()
    return staff
