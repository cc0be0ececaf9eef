"""
One-time backfill for steward check-ins stored as "Name | Provider".

Moves the provider part into provider_name (or provider_id when the company
now exists) and leaves only the steward name in staff_name.
"""

from typing import List

from sqlalchemy.orm import Session

from app.api.check_in.models import (
    STEWARD_BADGE,
    STEWARD_NAME_SEPARATOR,
    CheckIn,
    unpack_steward_name,
)
from app.api.providers.crud import provider as provider_crud
from app.core.database import SessionLocal
from app.core.logger import logger


def get_packed_steward_check_ins(db: Session) -> List[CheckIn]:
    return (
        db.query(CheckIn)
        .filter(
            CheckIn.sia_number == STEWARD_BADGE,
            CheckIn.staff_name.contains(STEWARD_NAME_SEPARATOR),
        )
        .all()
    )


def migrate_steward_names(db: Session) -> int:
    check_ins = get_packed_steward_check_ins(db)
    logger.info('Packed steward check-ins to migrate: %s', len(check_ins))

    for check_in in check_ins:
        name, provider_name = unpack_steward_name(check_in.staff_name)
        provider = (
            provider_crud.get_by_company_name(db, provider_name)
            if provider_name
            else None
        )
        if provider and not check_in.provider_id:
            check_in.provider_id = provider.id
        if not check_in.provider_id:
            check_in.provider_name = check_in.provider_name or provider_name
        check_in.staff_name = name
        logger.info('Migrated steward check-in %s: %s', check_in.id, name)

    db.commit()
    return len(check_ins)


def main():
    with SessionLocal() as db:
        migrated = migrate_steward_names(db)
        logger.info('Migrated %s steward check-ins', migrated)


if __name__ == '__main__':
    main()
