from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class EventStatus(str, Enum):
    SCHEDULED = 'scheduled'
    ACTIVE = 'active'
    COMPLETED = 'completed'


class EventBase(BaseModel):
    name: str
    location: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class EventCreate(EventBase):
    status: EventStatus = EventStatus.SCHEDULED

    model_config = ConfigDict(use_enum_values=True)


class EventUpdate(BaseModel):
    status: Optional[EventStatus] = None

    model_config = ConfigDict(use_enum_values=True)


class Event(EventBase):
    id: int
    status: EventStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EventFilter(BaseModel):
    status: Optional[EventStatus] = None

    model_config = ConfigDict(use_enum_values=True)
