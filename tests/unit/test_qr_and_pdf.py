# tests/unit/test_qr_and_pdf.py

import base64
import io
from datetime import datetime, timezone

import pytest
from PIL import Image

from src.domain.state_machine import BookingStatus
from src.infrastructure.db.models import Booking, Event, Ticket, User
from src.infrastructure.tickets.pdf_renderer import PdfTicketRenderer
from src.infrastructure.tickets.qr_generator import QrCodeGenerator, QrGenerationError


def test_qr_code_is_png_of_requested_size():
    encoded = QrCodeGenerator().generate("T1a2b3c4d", 200, 200)

    image = Image.open(io.BytesIO(base64.b64decode(encoded)))
    assert image.format == "PNG"
    assert image.size == (200, 200)


@pytest.mark.parametrize(
    "payload, width, height",
    [
        ("", 200, 200),
        ("T1a2b3c4d", 0, 200),
    ],
)
def test_qr_code_rejects_bad_input(payload, width, height):
    with pytest.raises(QrGenerationError):
        QrCodeGenerator().generate(payload, width, height)


def test_qr_code_payload_too_long_for_any_version():
    with pytest.raises(QrGenerationError):
        QrCodeGenerator().generate("T" * 8000, 200, 200)


def test_pdf_renders_every_ticket():
    user = User(first_name="Alex", last_name="Attendee", email="alex@example.com", user_type="attendee")
    event = Event(
        id="event-1",
        event_name="Riverside Jazz Night",
        event_date_time=datetime(2026, 11, 20, 19, 30, tzinfo=timezone.utc),
        address="1 Harbor Way",
        city="Portland",
        state="OR",
        zip_code="97201",
        event_instruction="Doors open at 7pm.",
    )
    booking = Booking(
        id="booking-1",
        ticket_count=2,
        total_ticket_price=50.0,
        booking_status=BookingStatus.CONFIRMED,
        tickets=[
            Ticket(ticket_id="T00000001", event_id="event-1", price=25.0, position=0),
            Ticket(ticket_id="T00000002", event_id="event-1", price=25.0, position=1),
        ],
    )

    pdf_bytes = PdfTicketRenderer().generate_ticket_pdf(booking, event, user)

    assert pdf_bytes.startswith(b"%PDF")
    assert pdf_bytes.rstrip().endswith(b"%%EOF")
