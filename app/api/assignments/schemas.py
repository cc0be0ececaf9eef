from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AssignmentStatus(str, Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    DECLINED = 'declined'


class AssignmentCreate(BaseModel):
    event_id: int
    provider_id: int
    status: AssignmentStatus = AssignmentStatus.PENDING
    assigned_managers: Optional[int] = 0
    assigned_supervisors: Optional[int] = 0
    assigned_sia: Optional[int] = 0
    assigned_stewards: Optional[int] = 0

    model_config = ConfigDict(use_enum_values=True)
