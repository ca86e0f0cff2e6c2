import logging
from uuid import uuid4

from sqlalchemy.orm import Session

from src.application.dto import BookingResult, PdfTicketData
from src.application.notification_service import NotificationService
from src.domain.exceptions import (
    AlreadyCancelledError,
    CapacityExceededError,
    DataInconsistencyError,
    ForbiddenError,
    NotFoundError,
    PaymentRequiredError,
)
from src.domain.state_machine import BookingStateMachine, BookingStatus
from src.infrastructure.db.models import Booking, Event, Ticket, User
from src.infrastructure.geocoding.geocoding_enricher import build_gmap_url
from src.infrastructure.notifications.email_sender import (
    BOOKING_CANCELLATION_TEMPLATE,
    BOOKING_CONFIRMATION_TEMPLATE,
    EmailSender,
)
from src.infrastructure.repositories.booking_repository import BookingRepository
from src.infrastructure.repositories.event_repository import EventRepository
from src.infrastructure.repositories.user_repository import UserRepository
from src.infrastructure.tickets.pdf_renderer import PdfTicketRenderer
from src.infrastructure.tickets.qr_generator import QrCodeGenerator, QrGenerationError

logger = logging.getLogger(__name__)

QR_WIDTH = 200
QR_HEIGHT = 200
DEFAULT_INSTRUCTION = "No specific instructions provided."
CANCELLED_MESSAGE = "Booking cancelled successfully."


def generate_ticket_id() -> str:
    return "T" + uuid4().hex[:8]


class BookingService:
    """Application service coordinating booking workflow."""

    def __init__(
        self,
        db: Session,
        email_sender: EmailSender | None = None,
        qr_generator: QrCodeGenerator | None = None,
        pdf_renderer: PdfTicketRenderer | None = None,
    ):
        self.db = db
        self.booking_repository = BookingRepository(db)
        self.event_repository = EventRepository(db)
        self.user_repository = UserRepository(db)
        self.notifications = NotificationService(db, email_sender)
        self.qr_generator = qr_generator or QrCodeGenerator()
        self.pdf_renderer = pdf_renderer or PdfTicketRenderer(self.qr_generator)

    def book_event(
        self,
        user_id: str,
        event_id: str,
        ticket_count: int,
        ticket_price: float,
        total_ticket_price: float,
        payment_status: bool,
    ) -> BookingResult:
        user = self.user_repository.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")

        event = self.event_repository.get_by_id(event_id)
        if not event:
            raise NotFoundError(f"Event not found with id: {event_id}")

        if ticket_count > event.available_tickets:
            raise CapacityExceededError(
                available=event.available_tickets,
                requested=ticket_count,
            )

        if not payment_status:
            raise PaymentRequiredError("Payment was not successful, booking aborted.")

        # The read above can be stale; the conditional update is authoritative.
        if not self.event_repository.reserve_tickets(event_id, ticket_count):
            self.event_repository.refresh(event)
            raise CapacityExceededError(
                available=event.available_tickets,
                requested=ticket_count,
            )
        self.event_repository.refresh(event)

        booking = Booking(
            user_id=user_id,
            ticket_count=ticket_count,
            total_ticket_price=total_ticket_price,
            booking_status=BookingStatus.CONFIRMED,
            tickets=self._issue_tickets(event_id, ticket_count, ticket_price),
        )
        booking = self.booking_repository.save(booking)

        logger.info(
            "Booking %s confirmed: user=%s event=%s tickets=%s",
            booking.id,
            user_id,
            event_id,
            ticket_count,
        )

        self.notifications.send(
            aggregate_id=booking.id,
            event_type="BOOKING_CONFIRMED",
            to_address=user.email,
            subject=f"Booking Confirmation - {event.event_name}",
            template_name=BOOKING_CONFIRMATION_TEMPLATE,
            variables={
                **self._email_variables(user, event),
                "eventInstruction": event.event_instruction or DEFAULT_INSTRUCTION,
                "gmapUrl": build_gmap_url(self._address_query(event)),
            },
            tickets=booking.tickets,
        )

        return BookingResult(booking=booking, user=user, event=event)

    def get_booking_details_with_qr_codes(
        self,
        booking_id: str,
        requesting_user_id: str,
    ) -> BookingResult:
        booking = self._get_owned_booking(
            booking_id,
            requesting_user_id,
            "User not authorized to view this booking.",
        )

        if not booking.tickets:
            logger.warning("Booking with ID: %s has no tickets.", booking.id)

        for ticket in booking.tickets:
            ticket.qr_code_image_base64 = None
            if not ticket.ticket_id:
                continue
            try:
                ticket.qr_code_image_base64 = self.qr_generator.generate(
                    ticket.ticket_id,
                    QR_WIDTH,
                    QR_HEIGHT,
                )
            except QrGenerationError:
                logger.exception("Failed to generate QR code for ticketId %s", ticket.ticket_id)

        event = None
        if booking.event_id:
            event = self.event_repository.get_by_id(booking.event_id)
        if event is None:
            logger.warning("Event details not found for booking ID: %s", booking_id)

        user = self.user_repository.get_by_id(booking.user_id)
        if user is None:
            logger.warning("User details not found for booking ID: %s", booking_id)

        return BookingResult(booking=booking, user=user, event=event)

    def cancel_booking(self, booking_id: str, user_id: str) -> str:
        booking = self.booking_repository.get_by_id(booking_id, for_update=True)
        if not booking:
            raise NotFoundError(f"Booking not found with id: {booking_id}")

        if booking.user_id != user_id:
            raise ForbiddenError(f"This booking does not belong to the user: {user_id}")

        if booking.booking_status == BookingStatus.CANCELLED:
            raise AlreadyCancelledError("Booking is already cancelled.")

        user = self.user_repository.get_by_id(user_id)
        if not user:
            raise NotFoundError(f"User not found with id: {user_id}")

        event_id = booking.event_id
        if event_id is None:
            raise DataInconsistencyError(f"No tickets found for booking with ID: {booking.id}")

        event = self.event_repository.get_by_id(event_id)
        if not event:
            raise NotFoundError(f"Event not found with id: {event_id}")

        BookingStateMachine.validate_transition(booking.booking_status, BookingStatus.CANCELLED)
        self.booking_repository.update_status(booking, BookingStatus.CANCELLED)
        self.booking_repository.save(booking)

        self.event_repository.release_tickets(event_id, booking.ticket_count)
        self.event_repository.refresh(event)

        logger.info(
            "Booking %s cancelled: user=%s event=%s released=%s",
            booking.id,
            user_id,
            event_id,
            booking.ticket_count,
        )

        self.notifications.send(
            aggregate_id=booking.id,
            event_type="BOOKING_CANCELLED",
            to_address=user.email,
            subject=f"Booking Cancelled - {event.event_name}",
            template_name=BOOKING_CANCELLATION_TEMPLATE,
            variables=self._email_variables(user, event),
        )

        return CANCELLED_MESSAGE

    def get_pdf_generation_data(
        self,
        booking_id: str,
        requesting_user_id: str,
    ) -> PdfTicketData:
        booking = self._get_owned_booking(
            booking_id,
            requesting_user_id,
            "User not authorized to view this booking.",
        )

        if booking.event_id is None:
            raise DataInconsistencyError(f"Cannot determine event for booking: {booking_id}")

        event = self.event_repository.get_by_id(booking.event_id)
        if not event:
            raise NotFoundError(f"Event details not found for booking: {booking_id}")

        user = self.user_repository.get_by_id(booking.user_id)
        if not user:
            raise NotFoundError(f"User details not found for booking: {booking_id}")

        return PdfTicketData(booking=booking, event=event, user=user)

    def generate_pdf(self, booking_id: str, requesting_user_id: str) -> bytes:
        data = self.get_pdf_generation_data(booking_id, requesting_user_id)
        return self.pdf_renderer.generate_ticket_pdf(data.booking, data.event, data.user)

    def _get_owned_booking(self, booking_id: str, user_id: str, denied: str) -> Booking:
        booking = self.booking_repository.get_by_id(booking_id)
        if not booking:
            raise NotFoundError(f"Booking not found with ID: {booking_id}")
        if booking.user_id != user_id:
            raise ForbiddenError(denied)
        return booking

    @staticmethod
    def _issue_tickets(event_id: str, ticket_count: int, ticket_price: float) -> list[Ticket]:
        issued: set[str] = set()
        tickets = []
        while len(tickets) < ticket_count:
            ticket_id = generate_ticket_id()
            if ticket_id in issued:
                continue
            issued.add(ticket_id)
            tickets.append(
                Ticket(
                    ticket_id=ticket_id,
                    event_id=event_id,
                    price=ticket_price,
                    position=len(tickets),
                )
            )
        return tickets

    @staticmethod
    def _address_query(event: Event) -> str:
        return ",".join(str(part) for part in (event.address, event.city, event.state, event.zip_code))

    @staticmethod
    def _email_variables(user: User, event: Event) -> dict[str, str]:
        return {
            "userName": user.full_name,
            "eventName": event.event_name,
            "eventDate": event.event_date_time.isoformat(),
            "eventAddress": f"{event.address}, {event.city}, {event.state} {event.zip_code}",
        }
