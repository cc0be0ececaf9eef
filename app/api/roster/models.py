from typing import TYPE_CHECKING

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, relationship

from app.core.database import Base
from app.core.utils import current_time

if TYPE_CHECKING:
    from app.api.assignments.models import Assignment


class StaffDetail(Base):
    """One named person on a provider's roster for an assignment."""

    __tablename__ = 'staff_details'

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        unique=True,
        index=True,
    )
    assignment_id = Column(
        Integer, ForeignKey('assignments.id'), nullable=False, index=True
    )
    staff_name = Column(String, nullable=False)
    sia_number = Column(String, index=True)
    role = Column(String)
    sia_expiry_date = Column(DateTime, nullable=True)

    assignment: Mapped['Assignment'] = relationship(
        'Assignment', back_populates='staff'
    )

    created_at = Column(DateTime, default=current_time)
    updated_at = Column(DateTime, default=current_time, onupdate=current_time)


class StaffTime(Base):
    __tablename__ = 'staff_times'

    id = Column(Integer, primary_key=True)
    assignment_id = Column(
        Integer, ForeignKey('assignments.id'), nullable=False, index=True
    )
    role_type = Column(String)
    shift_number = Column(Integer, nullable=False, default=1)
    start_time = Column(String)
    end_time = Column(String)

    assignment: Mapped['Assignment'] = relationship(
        'Assignment', back_populates='shifts'
    )
