import csv
import os
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.api.assignments.crud import assignment as assignment_crud
from app.api.assignments.schemas import AssignmentCreate, AssignmentStatus
from app.api.events.crud import event as event_crud
from app.api.events.models import Event
from app.api.events.schemas import EventCreate
from app.api.providers.crud import provider as provider_crud
from app.api.providers.schemas import ProviderCreate
from app.api.roster.crud import staff_detail as staff_detail_crud
from app.api.roster.crud import staff_time as staff_time_crud
from app.api.roster.schemas import StaffDetailCreate, StaffTimeCreate
from app.core.database import SessionLocal, create_db


def create_event(db: Session) -> Event:
    print('Creating event...')
    start = datetime.now().replace(hour=17, minute=0, second=0, microsecond=0)
    event = event_crud.create(
        db,
        EventCreate(
            name='Demo Stadium Concert',
            location='Demo Stadium',
            start_date=start,
            end_date=start + timedelta(hours=7),
        ),
    )
    print(f'Event created: {event.id} - {event.name}')
    return event


def get_or_create_provider(db: Session, company_name: str):
    provider = provider_crud.get_by_company_name(db, company_name)
    if not provider:
        provider = provider_crud.create(db, ProviderCreate(company_name=company_name))
        print(f'Provider created: {provider.id} - {provider.company_name}')
    return provider


def read_roster_csv(csv_path: str):
    """Rows with provider, staff_name, sia_number, role, start_time, end_time."""
    with open(csv_path, newline='') as csvfile:
        return list(csv.DictReader(csvfile))


def populate_roster(db: Session, event: Event, rows: list):
    assignments = {}
    for row in rows:
        company_name = row['provider'].strip()
        if company_name not in assignments:
            provider = get_or_create_provider(db, company_name)
            assignment = assignment_crud.create(
                db,
                AssignmentCreate(
                    event_id=event.id,
                    provider_id=provider.id,
                    status=AssignmentStatus.ACCEPTED,
                    assigned_sia=sum(1 for r in rows if r['provider'] == company_name),
                ),
            )
            staff_time_crud.create(
                db,
                StaffTimeCreate(
                    assignment_id=assignment.id,
                    role_type=row.get('role'),
                    shift_number=1,
                    start_time=row.get('start_time'),
                    end_time=row.get('end_time'),
                ),
            )
            assignments[company_name] = assignment

        staff_detail_crud.create(
            db,
            StaffDetailCreate(
                assignment_id=assignments[company_name].id,
                staff_name=row['staff_name'],
                sia_number=row.get('sia_number'),
                role=row.get('role'),
            ),
        )
        print(f'Added {row["staff_name"]} to {company_name}')


def main():
    create_db()
    csv_path = os.path.join(os.path.dirname(__file__), 'demo_roster.csv')
    with SessionLocal() as db:
        event = create_event(db)
        populate_roster(db, event, read_roster_csv(csv_path))
    print('Demo data populated')


if __name__ == '__main__':
    main()
