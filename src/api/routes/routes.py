import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from src.infrastructure.db.session import SessionLocal
from src.application.booking_service import BookingService
from src.application.dto import EventPatch
from src.application.event_service import EventService
from src.api.schemas.schemas import (
    BookingDetailsResponse,
    BookingRequest,
    BookingResponse,
    EventByUserResponse,
    EventCreate,
    EventResponse,
    EventUpdate,
    LocationResponse,
    MessageResponse,
    OutboxEventResponse,
    TicketResponse,
    UserResponse,
)
from src.domain.exceptions import (
    AlreadyCancelledError,
    CapacityExceededError,
    DataInconsistencyError,
    EventureError,
    ForbiddenError,
    InvalidStateTransitionError,
    NotFoundError,
    PayloadTooLargeError,
    PaymentRequiredError,
    ValidationError,
)
from src.infrastructure.db.models import Booking, Event, User
from src.infrastructure.geocoding.geocoding_enricher import GeocodingEnricher
from src.infrastructure.notifications.email_sender import EmailSender
from src.infrastructure.repositories.outbox_repository import OutboxRepository
from src.infrastructure.tickets.pdf_renderer import PdfTicketRenderer, TicketRenderError
from src.infrastructure.tickets.qr_generator import QrCodeGenerator


router = APIRouter()
logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: dict[type[EventureError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    CapacityExceededError: status.HTTP_409_CONFLICT,
    PaymentRequiredError: status.HTTP_402_PAYMENT_REQUIRED,
    AlreadyCancelledError: status.HTTP_409_CONFLICT,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
    PayloadTooLargeError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    DataInconsistencyError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_email_sender() -> EmailSender:
    return EmailSender()


def get_qr_generator() -> QrCodeGenerator:
    return QrCodeGenerator()


def get_pdf_renderer() -> PdfTicketRenderer:
    return PdfTicketRenderer()


def get_geocoder() -> GeocodingEnricher:
    return GeocodingEnricher()


def get_booking_service(
    db: Session = Depends(get_db),
    email_sender: EmailSender = Depends(get_email_sender),
    qr_generator: QrCodeGenerator = Depends(get_qr_generator),
    pdf_renderer: PdfTicketRenderer = Depends(get_pdf_renderer),
) -> BookingService:
    return BookingService(
        db,
        email_sender=email_sender,
        qr_generator=qr_generator,
        pdf_renderer=pdf_renderer,
    )


def get_event_service(
    db: Session = Depends(get_db),
    geocoder: GeocodingEnricher = Depends(get_geocoder),
) -> EventService:
    return EventService(db, geocoder=geocoder)


def _http_error(exc: EventureError) -> HTTPException:
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error("Data inconsistency: %s", exc)
    return HTTPException(status_code=status_code, detail=str(exc))


def _event_response(event: Event | None) -> EventResponse | None:
    if event is None:
        return None
    return EventResponse(
        id=event.id,
        organizer_id=event.organizer_id,
        event_name=event.event_name,
        description=event.description,
        event_date_time=event.event_date_time,
        address=event.address,
        city=event.city,
        state=event.state,
        zip_code=event.zip_code,
        event_capacity=event.event_capacity,
        available_tickets=event.available_tickets,
        event_attendees=event.event_attendees,
        ticket_price=event.ticket_price,
        event_image_base64=event.event_image_base64,
        event_instruction=event.event_instruction,
        location=LocationResponse(
            latitude=event.latitude,
            longitude=event.longitude,
            gmap_url=event.gmap_url,
        ),
    )


def _booking_details_response(booking: Booking) -> BookingDetailsResponse:
    return BookingDetailsResponse(
        id=booking.id,
        user_id=booking.user_id,
        ticket_count=booking.ticket_count,
        total_ticket_price=booking.total_ticket_price,
        booking_status=booking.booking_status.value,
        tickets=[
            TicketResponse(
                ticket_id=ticket.ticket_id,
                price=ticket.price,
                event_id=ticket.event_id,
                qr_code_image_base64=ticket.qr_code_image_base64,
            )
            for ticket in booking.tickets
        ],
    )


def _user_response(user: User | None) -> UserResponse | None:
    if user is None:
        return None
    return UserResponse.model_validate(user)


@router.get("/health")
def health():
    return {"message": "Eventure booking engine is running"}


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    request: EventCreate,
    service: EventService = Depends(get_event_service),
):
    try:
        event = service.create_event(Event(**request.model_dump()))
    except EventureError as exc:
        raise _http_error(exc) from exc

    return _event_response(event)


@router.get("/events", response_model=list[EventResponse])
def list_upcoming_events(service: EventService = Depends(get_event_service)):
    return [_event_response(event) for event in service.get_all_events()]


@router.get("/events/{event_id}", response_model=EventResponse)
def get_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
):
    try:
        event = service.get_event_by_id(event_id)
    except EventureError as exc:
        raise _http_error(exc) from exc

    return _event_response(event)


@router.put("/events/{event_id}", response_model=EventResponse)
def update_event(
    event_id: str,
    request: EventUpdate,
    user_id: str,
    service: EventService = Depends(get_event_service),
):
    patch = EventPatch(**request.model_dump(exclude_unset=True))
    try:
        event = service.update_event(event_id, patch, user_id)
    except EventureError as exc:
        raise _http_error(exc) from exc

    return _event_response(event)


@router.get("/organizers/events", response_model=list[EventResponse])
def list_organizer_events(
    organizer_id: str = "",
    service: EventService = Depends(get_event_service),
):
    try:
        events = service.get_organizer_events_list(organizer_id)
    except EventureError as exc:
        raise _http_error(exc) from exc

    return [_event_response(event) for event in events]


@router.get("/users/{user_id}/events", response_model=list[EventByUserResponse])
def list_user_events(
    user_id: str,
    service: EventService = Depends(get_event_service),
):
    try:
        results = service.get_events_by_user_id(user_id)
    except EventureError as exc:
        raise _http_error(exc) from exc

    return [
        EventByUserResponse(
            booking=_booking_details_response(item.booking),
            event=_event_response(item.event),
        )
        for item in results
    ]


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def book_event(
    request: BookingRequest,
    service: BookingService = Depends(get_booking_service),
):
    try:
        result = service.book_event(
            user_id=request.user_id,
            event_id=request.event_id,
            ticket_count=request.ticket_count,
            ticket_price=request.ticket_price,
            total_ticket_price=request.total_ticket_price,
            payment_status=request.payment_status,
        )
    except EventureError as exc:
        raise _http_error(exc) from exc

    return BookingResponse(
        booking=_booking_details_response(result.booking),
        user=_user_response(result.user),
        event=_event_response(result.event),
    )


@router.get("/bookings/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    user_id: str,
    service: BookingService = Depends(get_booking_service),
):
    try:
        result = service.get_booking_details_with_qr_codes(booking_id, user_id)
    except EventureError as exc:
        raise _http_error(exc) from exc

    return BookingResponse(
        booking=_booking_details_response(result.booking),
        user=_user_response(result.user),
        event=_event_response(result.event),
    )


@router.post("/bookings/{booking_id}/cancel", response_model=MessageResponse)
def cancel_booking(
    booking_id: str,
    user_id: str,
    service: BookingService = Depends(get_booking_service),
):
    try:
        message = service.cancel_booking(booking_id, user_id)
    except EventureError as exc:
        raise _http_error(exc) from exc

    return MessageResponse(message=message)


@router.get("/bookings/{booking_id}/pdf")
def download_tickets_pdf(
    booking_id: str,
    user_id: str,
    service: BookingService = Depends(get_booking_service),
):
    try:
        pdf_bytes = service.generate_pdf(booking_id, user_id)
    except EventureError as exc:
        raise _http_error(exc) from exc
    except TicketRenderError as exc:
        logger.exception("PDF generation failed for booking %s", booking_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not generate ticket PDF.",
        ) from exc

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="tickets-{booking_id}.pdf"'},
    )


@router.get("/outbox/events", response_model=list[OutboxEventResponse])
def list_outbox_events(
    status_filter: str | None = None,
    limit: int = 50,
    db: Session = Depends(get_db),
):
    safe_limit = max(1, min(limit, 200))
    events = OutboxRepository(db).list_by_status(status_filter, safe_limit)
    return [
        OutboxEventResponse(
            id=item.id,
            aggregate_type=item.aggregate_type,
            aggregate_id=item.aggregate_id,
            event_type=item.event_type,
            status=item.status,
            attempts=item.attempts,
            last_error=item.last_error,
            created_at=item.created_at.isoformat(),
        )
        for item in events
    ]
