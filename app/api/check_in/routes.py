from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.check_in import display, schemas
from app.api.check_in.crud import check_in as check_in_crud
from app.api.check_in.dependencies import get_register_client, get_scan_processor
from app.api.check_in.scanner import ScanProcessor
from app.api.check_in.statistics import get_check_in_statistics
from app.api.events.crud import event as event_crud
from app.api.roster.crud import staff_time as staff_time_crud
from app.core.config import settings
from app.core.database import get_db
from app.core.security import TokenData, check_api_key, get_current_user
from app.core.sia_register import SIARegisterClient, SIARegisterResult

router = APIRouter()


@router.post('/scan', response_model=schemas.ScanResult)
def new_scan(
    scan: schemas.NewScan,
    x_api_key: str = Header(...),
    processor: ScanProcessor = Depends(get_scan_processor),
    db: Session = Depends(get_db),
):
    check_api_key(x_api_key, settings.CHECK_IN_API_KEY)
    event_crud.get(db, scan.event_id)
    return processor.process_scan(
        db=db,
        event_id=scan.event_id,
        code=scan.code,
        method=scan.method,
    )


@router.post('/steward', response_model=schemas.ScanResult)
def new_steward_check_in(
    steward: schemas.NewStewardCheckIn,
    x_api_key: str = Header(...),
    processor: ScanProcessor = Depends(get_scan_processor),
    db: Session = Depends(get_db),
):
    check_api_key(x_api_key, settings.CHECK_IN_API_KEY)
    event_crud.get(db, steward.event_id)
    return processor.process_steward_check_in(
        db=db,
        event_id=steward.event_id,
        name=steward.name,
        provider_name=steward.provider_name,
    )


@router.get('/events/{event_id}/recent', response_model=list[schemas.RecentScan])
def get_recent_scans(
    event_id: int,
    limit: int = Query(default=10, ge=1, le=100),
    x_api_key: str = Header(...),
    db: Session = Depends(get_db),
):
    check_api_key(x_api_key, settings.CHECK_IN_API_KEY)
    check_ins = check_in_crud.get_recent(db, event_id, limit=limit)
    return [display.to_recent_scan(c) for c in check_ins]


@router.get('/events/{event_id}/statistics', response_model=schemas.CheckInStatistics)
def get_statistics(
    event_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    event_crud.get(db, event_id, current_user)
    return get_check_in_statistics(db, event_id)


@router.get('/events/{event_id}/verified-count', response_model=int)
def get_verified_count(
    event_id: int,
    x_api_key: str = Header(...),
    db: Session = Depends(get_db),
):
    check_api_key(x_api_key, settings.CHECK_IN_API_KEY)
    return check_in_crud.count_verified(db, event_id)


@router.get('/events/{event_id}/verified', response_model=list[schemas.VerifiedCheckIn])
def get_verified_check_ins(
    event_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    check_ins = check_in_crud.get_verified(db, event_id)
    assignment_ids = list(
        {c.staff_detail.assignment_id for c in check_ins if c.staff_detail}
    )
    shifts = staff_time_crud.get_first_shifts(db, assignment_ids)
    return [display.to_verified_check_in(c, shifts) for c in check_ins]


@router.post('/delete', status_code=status.HTTP_204_NO_CONTENT)
def delete_check_ins(
    obj: schemas.DeleteCheckIns,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    check_in_crud.delete_many(db, obj.ids)


@router.get('/register/{licence_number}', response_model=SIARegisterResult)
def search_register(
    licence_number: str,
    current_user: TokenData = Depends(get_current_user),
    client: Optional[SIARegisterClient] = Depends(get_register_client),
):
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail='SIA register lookups are disabled',
        )
    return client.lookup(licence_number)
