# src/infrastructure/db/models.py

from sqlalchemy import (
    String,
    Integer,
    Float,
    DateTime,
    Enum,
    Text,
    UniqueConstraint,
    CheckConstraint,
    ForeignKey,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from uuid import uuid4

from src.infrastructure.db.session import Base
from src.domain.state_machine import BookingStatus


class User(Base):
    """
    Account owning bookings or organizing events.
    Created outside the booking engine; read-only here.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    first_name: Mapped[str] = mapped_column(String(64), nullable=False)
    last_name: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_type: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    organizer_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    event_name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    event_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    available_tickets: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    event_attendees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    ticket_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    event_image_base64: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_instruction: Mapped[str | None] = mapped_column(Text, nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    gmap_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # available_tickets <= event_capacity is not enforced: shrinking capacity
    # and then cancelling a booking can legitimately overshoot it.
    __table_args__ = (
        CheckConstraint("event_capacity >= 0", name="ck_event_capacity_nonnegative"),
        CheckConstraint("available_tickets >= 0", name="ck_event_available_nonnegative"),
        CheckConstraint("event_attendees >= 0", name="ck_event_attendees_nonnegative"),
        CheckConstraint("ticket_price >= 0", name="ck_event_price_nonnegative"),
    )

    @property
    def full_address(self) -> str:
        return ", ".join(
            part for part in (self.address, self.city, self.state, self.zip_code) if part
        )


class Booking(Base):
    """
    A user's reservation of one or more tickets.
    Domain controls transitions.
    DB stores current state safely.
    """

    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
    )
    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False)
    total_ticket_price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    booking_status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, name="booking_status"),
        nullable=False,
        default=BookingStatus.CONFIRMED,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    tickets: Mapped[list["Ticket"]] = relationship(
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="Ticket.position",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "ticket_count > 0",
            name="ck_ticket_count_positive",
        ),
    )

    @property
    def event_id(self) -> str | None:
        """Event of the booking, resolved through its first ticket."""
        if not self.tickets:
            return None
        return self.tickets[0].event_id


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    ticket_id: Mapped[str] = mapped_column(String(16), nullable=False)
    booking_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("bookings.id"),
        nullable=False,
    )
    event_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    booking: Mapped[Booking] = relationship(back_populates="tickets")

    # Not persisted; filled in when booking details are requested.
    qr_code_image_base64 = None

    __table_args__ = (
        UniqueConstraint(
            "booking_id",
            "ticket_id",
            name="uq_ticket_per_booking",
        ),
    )


class OutboxEvent(Base):
    """Record of a best-effort side effect and its delivery outcome."""

    __tablename__ = "outbox_events"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    aggregate_type: Mapped[str] = mapped_column(String(64), nullable=False)
    aggregate_id: Mapped[str] = mapped_column(String(36), nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    dedupe_key: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="PENDING")
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("dedupe_key", name="uq_outbox_dedupe_key"),
    )
