from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.events import schemas
from app.api.events.crud import event as event_crud
from app.core.database import get_db
from app.core.security import TokenData, get_current_user

router = APIRouter()


@router.get('/', response_model=list[schemas.Event])
def get_events(
    current_user: TokenData = Depends(get_current_user),
    event_status: Optional[schemas.EventStatus] = Query(default=None, alias='status'),
    skip: int = 0,
    limit: int = 100,
    sort_by: str = Query(default='start_date', description='Field to sort by'),
    sort_order: str = Query(default='desc', pattern='^(asc|desc)$'),
    db: Session = Depends(get_db),
):
    return event_crud.find(
        db=db,
        skip=skip,
        limit=limit,
        filters=schemas.EventFilter(status=event_status),
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get('/{event_id}', response_model=schemas.Event)
def get_event(
    event_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return event_crud.get(db=db, id=event_id, user=current_user)


@router.post('/{event_id}/start', response_model=schemas.Event)
def start_event(
    event_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return event_crud.start(db=db, id=event_id, user=current_user)


@router.post('/{event_id}/stop', response_model=schemas.Event)
def stop_event(
    event_id: int,
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return event_crud.stop(db=db, id=event_id, user=current_user)
