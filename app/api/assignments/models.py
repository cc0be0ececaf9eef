from typing import TYPE_CHECKING, List

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, relationship

from app.core.database import Base
from app.core.utils import current_time

if TYPE_CHECKING:
    from app.api.events.models import Event
    from app.api.providers.models import Provider
    from app.api.roster.models import StaffDetail, StaffTime


class Assignment(Base):
    """A provider booked to supply staff for one event."""

    __tablename__ = 'assignments'

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        unique=True,
        index=True,
    )
    event_id = Column(Integer, ForeignKey('events.id'), nullable=False, index=True)
    provider_id = Column(Integer, ForeignKey('providers.id'), nullable=False)
    status = Column(String, nullable=False, default='pending')

    assigned_managers = Column(Integer, default=0)
    assigned_supervisors = Column(Integer, default=0)
    assigned_sia = Column(Integer, default=0)
    assigned_stewards = Column(Integer, default=0)

    event: Mapped['Event'] = relationship('Event', back_populates='assignments')
    provider: Mapped['Provider'] = relationship('Provider', lazy='joined')
    staff: Mapped[List['StaffDetail']] = relationship(
        'StaffDetail', back_populates='assignment'
    )
    shifts: Mapped[List['StaffTime']] = relationship(
        'StaffTime', back_populates='assignment', order_by='StaffTime.shift_number'
    )

    created_at = Column(DateTime, default=current_time)
    updated_at = Column(DateTime, default=current_time, onupdate=current_time)

    @property
    def staff_booked(self) -> int:
        return sum(
            quota or 0
            for quota in (
                self.assigned_managers,
                self.assigned_supervisors,
                self.assigned_sia,
                self.assigned_stewards,
            )
        )
