from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase
from app.core.logger import logger

from . import models, schemas


class CRUDCheckIn(
    CRUDBase[
        models.CheckIn, schemas.InternalCheckInCreate, schemas.InternalCheckInCreate
    ]
):
    def _commit(self, db: Session, db_obj: models.CheckIn) -> models.CheckIn:
        try:
            db.commit()
            db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            logger.error('Error writing check-in for event %s: %s', db_obj.event_id, e)
            db.rollback()
            raise

    def get_recent_check_in(
        self,
        db: Session,
        event_id: int,
        sia_number: str,
        since: datetime,
    ) -> Optional[models.CheckIn]:
        return (
            db.query(self.model)
            .filter(
                self.model.event_id == event_id,
                self.model.sia_number == sia_number,
                self.model.check_in_time > since,
            )
            .order_by(self.model.check_in_time.desc())
            .first()
        )

    def get_open_check_in(
        self,
        db: Session,
        event_id: int,
        sia_number: str,
    ) -> Optional[models.CheckIn]:
        return (
            db.query(self.model)
            .filter(
                self.model.event_id == event_id,
                self.model.sia_number == sia_number,
                self.model.sign_out_time.is_(None),
            )
            .order_by(self.model.check_in_time.desc())
            .first()
        )

    def record(
        self, db: Session, obj: schemas.InternalCheckInCreate
    ) -> models.CheckIn:
        db_obj = self.model(**obj.model_dump(mode='python'))
        db_obj.check_in_method = obj.check_in_method.value
        db.add(db_obj)
        return self._commit(db, db_obj)

    def record_sign_out(
        self, db: Session, check_in: models.CheckIn, when: datetime
    ) -> models.CheckIn:
        check_in.sign_out_time = when
        return self._commit(db, check_in)

    def get_recent(
        self, db: Session, event_id: int, limit: int = 10
    ) -> List[models.CheckIn]:
        return (
            db.query(self.model)
            .filter(self.model.event_id == event_id)
            .order_by(self.model.check_in_time.desc())
            .limit(limit)
            .all()
        )

    def get_verified(self, db: Session, event_id: int) -> List[models.CheckIn]:
        return (
            db.query(self.model)
            .filter(
                self.model.event_id == event_id,
                self.model.verified.is_(True),
                self.model.is_duplicate.is_(False),
            )
            .order_by(self.model.check_in_time.desc())
            .all()
        )

    def count_verified(self, db: Session, event_id: int) -> int:
        return (
            db.query(self.model)
            .filter(self.model.event_id == event_id, self.model.verified.is_(True))
            .count()
        )

    def get_for_event(self, db: Session, event_id: int) -> List[models.CheckIn]:
        return db.query(self.model).filter(self.model.event_id == event_id).all()

    def get_open_for_event(self, db: Session, event_id: int) -> List[models.CheckIn]:
        return (
            db.query(self.model)
            .filter(
                self.model.event_id == event_id,
                self.model.sign_out_time.is_(None),
            )
            .all()
        )

    def delete_many(self, db: Session, ids: List[int]) -> int:
        if not ids:
            return 0
        try:
            deleted = (
                db.query(self.model)
                .filter(self.model.id.in_(ids))
                .delete(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError as e:
            logger.error('Error deleting check-ins %s: %s', ids, e)
            db.rollback()
            raise
        logger.info('Deleted %s check-ins: %s', deleted, ids)
        return deleted


check_in = CRUDCheckIn(models.CheckIn)
