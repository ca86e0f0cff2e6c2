# src/application/dto.py

from dataclasses import dataclass, fields
from datetime import datetime

from src.infrastructure.db.models import Booking, Event, User


@dataclass
class BookingResult:
    booking: Booking
    user: User | None
    event: Event | None


@dataclass
class PdfTicketData:
    booking: Booking
    event: Event
    user: User


@dataclass
class EventByUserResult:
    booking: Booking
    event: Event | None


@dataclass
class EventPatch:
    """Partial update for an event. A field left as None is not touched."""

    event_name: str | None = None
    description: str | None = None
    ticket_price: float | None = None
    event_date_time: datetime | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    event_instruction: str | None = None
    event_image_base64: str | None = None
    event_capacity: int | None = None

    def present_fields(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
