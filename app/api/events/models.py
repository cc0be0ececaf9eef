from typing import TYPE_CHECKING, List

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import Mapped, relationship

from app.core.database import Base
from app.core.utils import current_time

if TYPE_CHECKING:
    from app.api.assignments.models import Assignment


class Event(Base):
    __tablename__ = 'events'

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        unique=True,
        index=True,
    )
    name = Column(String, index=True, nullable=False)
    location = Column(String)
    start_date = Column(DateTime)
    end_date = Column(DateTime)
    status = Column(String, nullable=False, default='scheduled')

    assignments: Mapped[List['Assignment']] = relationship(
        'Assignment', back_populates='event'
    )

    created_at = Column(DateTime, default=current_time)
    updated_at = Column(DateTime, default=current_time, onupdate=current_time)
