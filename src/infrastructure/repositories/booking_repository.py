# src/infrastructure/repositories/booking_repository.py

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import Booking
from src.domain.state_machine import BookingStatus


class BookingRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(
        self,
        booking_id: str,
        for_update: bool = False,
    ) -> Booking | None:

        stmt = select(Booking).where(Booking.id == booking_id)
        if for_update:
            # SELECT ... FOR UPDATE serialises concurrent cancellations.
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def list_by_user_and_status(
        self,
        user_id: str,
        status: BookingStatus,
    ) -> list[Booking]:

        stmt = (
            select(Booking)
            .where(Booking.user_id == user_id)
            .where(Booking.booking_status == status)
            .order_by(Booking.created_at)
        )
        return list(self.db.execute(stmt).scalars().all())

    def save(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.flush()
        return booking

    def update_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
    ) -> None:

        booking.booking_status = new_status
