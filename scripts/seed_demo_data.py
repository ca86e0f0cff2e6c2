from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from src.infrastructure.db.models import Base, Event, User
from src.infrastructure.db.session import engine, get_db_session


def _dt(days_from_now: int, hour: int, minute: int) -> datetime:
    now_utc = datetime.now(timezone.utc)
    target = now_utc + timedelta(days=days_from_now)
    return target.replace(hour=hour, minute=minute, second=0, microsecond=0)


def seed_users(db) -> dict[str, User]:
    user_defs = [
        {
            "first_name": "Maya",
            "last_name": "Organizer",
            "email": "maya.organizer@example.com",
            "user_type": "manager",
        },
        {
            "first_name": "Alex",
            "last_name": "Attendee",
            "email": "alex.attendee@example.com",
            "user_type": "attendee",
        },
    ]

    users = {}
    for item in user_defs:
        existing = db.execute(
            select(User).where(User.email == item["email"])
        ).scalar_one_or_none()
        if existing:
            users[item["user_type"]] = existing
            continue

        user = User(**item)
        db.add(user)
        db.flush()
        users[item["user_type"]] = user
    return users


def seed_events(db, organizer: User) -> None:
    event_defs = [
        {
            "event_name": "Riverside Jazz Night",
            "description": "An evening of live jazz on the river terrace.",
            "event_date_time": _dt(days_from_now=10, hour=19, minute=30),
            "address": "1 Harbor Way",
            "city": "Portland",
            "state": "OR",
            "zip_code": "97201",
            "event_capacity": 250,
            "ticket_price": 45.0,
            "event_instruction": "Doors open 30 minutes before the show.",
        },
        {
            "event_name": "Community Tech Meetup",
            "description": "Lightning talks and networking.",
            "event_date_time": _dt(days_from_now=21, hour=18, minute=0),
            "address": "500 Market Street",
            "city": "San Francisco",
            "state": "CA",
            "zip_code": "94105",
            "event_capacity": 80,
            "ticket_price": 0.0,
            "event_instruction": None,
        },
    ]

    for item in event_defs:
        existing = db.execute(
            select(Event).where(Event.event_name == item["event_name"])
        ).scalar_one_or_none()
        if existing:
            existing.event_date_time = item["event_date_time"]
            continue

        db.add(
            Event(
                organizer_id=organizer.id,
                available_tickets=item["event_capacity"],
                event_attendees=0,
                **item,
            )
        )


def main() -> None:
    Base.metadata.create_all(bind=engine)
    with get_db_session() as db:
        users = seed_users(db)
        seed_events(db, users["manager"])
        organizer_id, attendee_id = users["manager"].id, users["attendee"].id

    print(f"Seed complete: organizer {organizer_id}, attendee {attendee_id}, two upcoming events.")


if __name__ == "__main__":
    main()
