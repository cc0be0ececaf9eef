from typing import List

from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase
from app.core.logger import logger
from app.core.security import SYSTEM_TOKEN, TokenData

from . import models, schemas


class CRUDEvent(CRUDBase[models.Event, schemas.EventCreate, schemas.EventUpdate]):
    def _set_status(
        self,
        db: Session,
        id: int,
        event_status: schemas.EventStatus,
        user: TokenData,
    ) -> models.Event:
        logger.info('Setting event %s status to %s', id, event_status.value)
        return self.update(db, id, schemas.EventUpdate(status=event_status), user)

    def start(self, db: Session, id: int, user: TokenData = SYSTEM_TOKEN) -> models.Event:
        return self._set_status(db, id, schemas.EventStatus.ACTIVE, user)

    def stop(self, db: Session, id: int, user: TokenData = SYSTEM_TOKEN) -> models.Event:
        return self._set_status(db, id, schemas.EventStatus.SCHEDULED, user)

    def get_ended_before(self, db: Session, cutoff) -> List[models.Event]:
        return (
            db.query(self.model)
            .filter(self.model.end_date.isnot(None), self.model.end_date < cutoff)
            .all()
        )


event = CRUDEvent(models.Event)
