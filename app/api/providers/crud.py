from typing import Optional

from sqlalchemy.orm import Session

from app.api.base_crud import CRUDBase

from . import models, schemas


class CRUDProvider(
    CRUDBase[models.Provider, schemas.ProviderCreate, schemas.ProviderCreate]
):
    def get_by_company_name(
        self, db: Session, company_name: str
    ) -> Optional[models.Provider]:
        return (
            db.query(self.model)
            .filter(self.model.company_name == company_name)
            .first()
        )

    def get_company_name(self, db: Session, id: Optional[int]) -> Optional[str]:
        if id is None:
            return None
        provider = db.query(self.model).filter(self.model.id == id).first()
        return provider.company_name if provider else None


provider = CRUDProvider(models.Provider)
