import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from src.application.dto import EventByUserResult, EventPatch
from src.domain.exceptions import (
    DataInconsistencyError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import Event
from src.infrastructure.geocoding.geocoding_enricher import GeocodingEnricher
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.event_repository import EventRepository
from src.infrastructure.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

ORGANIZER_ROLE = "manager"
MAX_BANNER_BYTES = 2 * 1024 * 1024


def to_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def ensure_banner_size(image_base64: str | None) -> None:
    if image_base64 is None:
        return
    decoded_size = (len(image_base64) * 3) // 4
    if decoded_size > MAX_BANNER_BYTES:
        raise PayloadTooLargeError("Event banner image is too large. Max size allowed is 2MB.")


class EventService:
    """Application service for event creation, lookup and updates."""

    def __init__(self, db: Session, geocoder: GeocodingEnricher | None = None):
        self.db = db
        self.event_repository = EventRepository(db)
        self.booking_repository = BookingRepository(db)
        self.user_repository = UserRepository(db)
        self.geocoder = geocoder or GeocodingEnricher()

    def create_event(self, event: Event) -> Event:
        organizer = self.user_repository.get_by_id(event.organizer_id)
        if not organizer:
            raise NotFoundError(f"Organizer not found with ID: {event.organizer_id}")

        if (organizer.user_type or "").lower() != ORGANIZER_ROLE:
            raise ForbiddenError("User is not allowed to add an event")

        ensure_banner_size(event.event_image_base64)

        if None in (event.address, event.city, event.state, event.zip_code):
            raise ValidationError("Address, city, state, and zip code is required.")

        event.event_date_time = to_utc(event.event_date_time)
        event.event_attendees = 0
        event.available_tickets = event.event_capacity
        self.geocoder.enrich(event)

        event = self.event_repository.save(event)
        logger.info(
            "Event %s created by organizer %s with capacity %s",
            event.id,
            event.organizer_id,
            event.event_capacity,
        )
        return event

    def get_all_events(self) -> list[Event]:
        """Upcoming events only."""
        return self.event_repository.list_after(datetime.now(timezone.utc))

    def get_event_by_id(self, event_id: str) -> Event:
        event = self.event_repository.get_by_id(event_id)
        if not event:
            raise NotFoundError("Event does not exist")
        return event

    def get_events_by_user_id(self, user_id: str) -> list[EventByUserResult]:
        bookings = self.booking_repository.list_by_user_and_status(
            user_id,
            BookingStatus.CONFIRMED,
        )

        results = []
        for booking in bookings:
            if not booking.tickets:
                raise DataInconsistencyError(f"No tickets found for booking with ID: {booking.id}")

            event = self.event_repository.get_by_id(booking.event_id)
            if event is None:
                raise DataInconsistencyError(
                    f"Event {booking.event_id} referenced by booking {booking.id} does not exist"
                )
            results.append(EventByUserResult(booking=booking, event=event))

        return results

    def get_organizer_events_list(self, organizer_id: str | None) -> list[Event]:
        if not organizer_id:
            raise ValidationError("Organizer ID must not be empty")
        return self.event_repository.list_by_organizer(organizer_id)

    def update_event(self, event_id: str, patch: EventPatch, user_id: str) -> Event:
        event = self.event_repository.get_by_id(event_id)
        if not event:
            raise NotFoundError("Event not found")

        if event.organizer_id != user_id:
            raise ForbiddenError("User not authorized to update this event")

        changes = patch.present_fields()
        ensure_banner_size(changes.get("event_image_base64"))

        new_capacity = changes.pop("event_capacity", None)
        if "event_date_time" in changes:
            changes["event_date_time"] = to_utc(changes["event_date_time"])

        for name, value in changes.items():
            setattr(event, name, value)

        self.geocoder.enrich(event)

        event = self.event_repository.save(event)

        if new_capacity is not None:
            # Tickets already sold stay sold; only the unsold remainder moves.
            self.event_repository.resize_capacity(event.id, new_capacity)
            self.event_repository.refresh(event)

        logger.info("Event %s updated by %s: %s", event.id, user_id, sorted(patch.present_fields()))
        return event
