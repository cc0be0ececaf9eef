import os
from enum import Enum

from dotenv import load_dotenv

load_dotenv()


class Environment(str, Enum):
    TEST = 'test'
    PRODUCTION = 'production'
    DEVELOP = 'develop'


def _as_bool(value: str, default: bool) -> bool:
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Settings:
    ENVIRONMENT: Environment = Environment(os.getenv('ENVIRONMENT') or Environment.TEST)
    DB_USERNAME: str = os.getenv('DB_USERNAME')
    DB_PASSWORD: str = os.getenv('DB_PASSWORD')
    DB_HOST: str = os.getenv('DB_HOST')
    DB_PORT: str = os.getenv('DB_PORT')
    DB_NAME: str = os.getenv('DB_NAME')

    SQLALCHEMY_TEST_DATABASE_URL = 'sqlite:///:memory:'
    DATABASE_URL: str = (
        f'postgresql://{DB_USERNAME}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}'
        if ENVIRONMENT != Environment.TEST
        else SQLALCHEMY_TEST_DATABASE_URL
    )

    SECRET_KEY: str = os.getenv('SECRET_KEY', '')
    CHECK_IN_API_KEY: str = os.getenv('CHECK_IN_API_KEY')

    # Repeat scans of one badge inside this window are reported as duplicates
    DUPLICATE_CHECK_WINDOW_MINUTES: int = int(
        os.getenv('DUPLICATE_CHECK_WINDOW_MINUTES') or 5
    )
    # Store unresolved steward providers as "Name | Provider" in staff_name.
    # Turn off once app/processes/migrate_steward_names.py has run.
    STEWARD_PACKED_NAMES: bool = _as_bool(os.getenv('STEWARD_PACKED_NAMES'), True)
    OPEN_SESSION_GRACE_HOURS: int = int(os.getenv('OPEN_SESSION_GRACE_HOURS') or 12)
    # Times shown to gate operators in scan messages
    GATE_TIMEZONE: str = os.getenv('GATE_TIMEZONE') or 'Europe/London'

    SIA_REGISTER_URL: str = os.getenv(
        'SIA_REGISTER_URL', 'https://services.sia.homeoffice.gov.uk/rolh'
    )
    SIA_REGISTER_TIMEOUT: int = int(os.getenv('SIA_REGISTER_TIMEOUT') or 10)
    SIA_REGISTER_ENABLED: bool = _as_bool(
        os.getenv('SIA_REGISTER_ENABLED'), ENVIRONMENT != Environment.TEST
    )


settings = Settings()
