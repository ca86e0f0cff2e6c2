# src/infrastructure/repositories/event_repository.py

from datetime import datetime

from sqlalchemy.orm import Session
from sqlalchemy import case, select, update

from src.infrastructure.db.models import Event


class EventRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, event_id: str) -> Event | None:
        stmt = select(Event).where(Event.id == event_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_after(self, moment: datetime) -> list[Event]:
        stmt = (
            select(Event)
            .where(Event.event_date_time > moment)
            .order_by(Event.event_date_time)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_by_organizer(self, organizer_id: str) -> list[Event]:
        stmt = (
            select(Event)
            .where(Event.organizer_id == organizer_id)
            .order_by(Event.event_date_time)
        )
        return list(self.db.execute(stmt).scalars().all())

    def save(self, event: Event) -> Event:
        self.db.add(event)
        self.db.flush()
        return event

    def reserve_tickets(self, event_id: str, ticket_count: int) -> bool:
        """
        Single conditional UPDATE; no read-modify-write window.
        Returns False when fewer than ticket_count tickets remain.
        """

        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .where(Event.available_tickets >= ticket_count)
            .values(
                available_tickets=Event.available_tickets - ticket_count,
                event_attendees=Event.event_attendees + ticket_count,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def release_tickets(self, event_id: str, ticket_count: int) -> bool:
        """Gives tickets back; attendees never drop below zero."""

        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .values(
                available_tickets=Event.available_tickets + ticket_count,
                event_attendees=case(
                    (Event.event_attendees >= ticket_count, Event.event_attendees - ticket_count),
                    else_=0,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def refresh(self, event: Event) -> Event:
        self.db.refresh(event)
        return event

    def resize_capacity(self, event_id: str, new_capacity: int) -> bool:
        """
        Moves only the unsold remainder by the capacity difference, in the
        same UPDATE, so reservations committed meanwhile are kept.
        """

        resized = Event.available_tickets + (new_capacity - Event.event_capacity)
        stmt = (
            update(Event)
            .where(Event.id == event_id)
            .values(
                event_capacity=new_capacity,
                available_tickets=case((resized > 0, resized), else_=0),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount == 1
