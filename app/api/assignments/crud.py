from typing import List

from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase

from . import models, schemas


class CRUDAssignment(
    CRUDBase[models.Assignment, schemas.AssignmentCreate, schemas.AssignmentCreate]
):
    def get_accepted_for_event(
        self, db: Session, event_id: int
    ) -> List[models.Assignment]:
        return (
            db.query(self.model)
            .filter(
                self.model.event_id == event_id,
                self.model.status == schemas.AssignmentStatus.ACCEPTED.value,
            )
            .all()
        )


assignment = CRUDAssignment(models.Assignment)
