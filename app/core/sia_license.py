import re
from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel

from app.core.utils import current_time

LICENCE_NUMBER_PATTERN = re.compile(r'[0-9]{16}')
EXPIRY_WARNING_DAYS = 30


class LicenceValidation(BaseModel):
    is_valid: bool = False
    is_expired: bool = False
    expiry_date: Optional[date] = None
    days_until_expiry: Optional[int] = None
    errors: List[str] = []


def is_licence_number(value: Optional[str]) -> bool:
    """True only for exactly sixteen ASCII digits."""
    return bool(value) and LICENCE_NUMBER_PATTERN.fullmatch(value) is not None


def clean_licence_number(value: str) -> str:
    return re.sub(r'\s', '', value or '')


def format_licence_number(value: str) -> str:
    digits = re.sub(r'\D', '', value or '')
    return re.sub(r'^(\d{4})(\d{4})(\d{4})(\d{4})$', r'\1 \2 \3 \4', digits)


def _parse_expiry(expiry: Union[str, date, datetime]) -> date:
    if isinstance(expiry, datetime):
        return expiry.date()
    if isinstance(expiry, date):
        return expiry
    for fmt in ('%Y-%m-%d', '%d %B %Y', '%d/%m/%Y'):
        try:
            return datetime.strptime(expiry.strip(), fmt).date()
        except ValueError:
            continue
    return datetime.fromisoformat(expiry.strip()).date()


def validate_licence(
    licence_number: str,
    expiry: Optional[Union[str, date, datetime]] = None,
    today: Optional[date] = None,
) -> LicenceValidation:
    """
    Check the licence number format and, when known, how close it is to expiry.

    A licence expiring within EXPIRY_WARNING_DAYS is reported as an error so
    that gate staff see it, but it is not marked as expired.
    """
    result = LicenceValidation()
    today = today or current_time().date()

    if not is_licence_number(clean_licence_number(licence_number)):
        result.errors.append('SIA number must be 16 digits')

    if expiry:
        try:
            expiry_date = _parse_expiry(expiry)
        except ValueError:
            result.errors.append('Invalid expiry date format')
        else:
            result.expiry_date = expiry_date
            if expiry_date < today:
                result.is_expired = True
                result.errors.append(
                    f'License expired on {expiry_date.strftime("%d/%m/%Y")}'
                )
            else:
                result.days_until_expiry = (expiry_date - today).days
                if result.days_until_expiry < EXPIRY_WARNING_DAYS:
                    result.errors.append(
                        f'License expires soon ({result.days_until_expiry} days)'
                    )

    result.is_valid = not result.errors
    return result
