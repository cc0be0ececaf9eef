# Import all models here to ensure SQLAlchemy can set up relationships correctly
from app.api.assignments.models import Assignment
from app.api.check_in.models import CheckIn
from app.api.events.models import Event
from app.api.providers.models import Provider
from app.api.roster.models import StaffDetail, StaffTime

__all__ = [
    'Assignment',
    'CheckIn',
    'Event',
    'Provider',
    'StaffDetail',
    'StaffTime',
]
