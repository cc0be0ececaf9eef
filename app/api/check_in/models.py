from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, relationship

from app.core.database import Base
from app.core.utils import current_time

if TYPE_CHECKING:
    from app.api.providers.models import Provider
    from app.api.roster.models import StaffDetail

STEWARD_BADGE = 'STEWARD'
STEWARD_NAME_SEPARATOR = ' | '


class CheckIn(Base):
    """
    One gate visit of a badge at an event.

    Created on sign-in and updated once, when the paired sign-out sets
    sign_out_time. At most one row per (event_id, sia_number) is open
    (sign_out_time is null); the scan flow checks this before writing.
    """

    __tablename__ = 'event_checkins'

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        unique=True,
        index=True,
    )
    event_id = Column(Integer, ForeignKey('events.id'), nullable=False, index=True)
    sia_number = Column(String, nullable=False, index=True)
    staff_detail_id = Column(Integer, ForeignKey('staff_details.id'), nullable=True)
    staff_name = Column(String, nullable=False)
    provider_id = Column(Integer, ForeignKey('providers.id'), nullable=True)
    # Provider text kept when provider_id could not be resolved (stewards)
    provider_name = Column(String, nullable=True)
    verified = Column(Boolean, nullable=False, default=False)
    is_duplicate = Column(Boolean, nullable=False, default=False)
    check_in_method = Column(String, nullable=False, default='qr_scan')

    check_in_time = Column(DateTime, nullable=False, default=current_time, index=True)
    sign_in_time = Column(DateTime, nullable=True)
    sign_out_time = Column(DateTime, nullable=True)

    provider: Mapped[Optional['Provider']] = relationship('Provider')
    staff_detail: Mapped[Optional['StaffDetail']] = relationship('StaffDetail')

    created_at = Column(DateTime, default=current_time)
    updated_at = Column(DateTime, default=current_time, onupdate=current_time)

    @property
    def is_steward(self) -> bool:
        return self.sia_number == STEWARD_BADGE


def pack_steward_name(name: str, provider_name: str) -> str:
    return f'{name}{STEWARD_NAME_SEPARATOR}{provider_name}'


def unpack_steward_name(staff_name: str):
    """Split a legacy "Name | Provider" value. Provider is None when not packed."""
    if not staff_name or STEWARD_NAME_SEPARATOR not in staff_name:
        return staff_name, None
    name, provider_name = staff_name.split(STEWARD_NAME_SEPARATOR, 1)
    return name, provider_name or None
