# src/infrastructure/tickets/pdf_renderer.py

import io
import logging

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from src.infrastructure.db.models import Booking, Event, User
from src.infrastructure.tickets.qr_generator import QrCodeGenerator, QrGenerationError

logger = logging.getLogger(__name__)

QR_SIZE_PX = 200


class TicketRenderError(OSError):
    """Raised when the ticket PDF cannot be produced."""


class PdfTicketRenderer:
    """Draws one A4 page per ticket with the event details and its QR code."""

    def __init__(self, qr_generator: QrCodeGenerator | None = None):
        self.qr_generator = qr_generator or QrCodeGenerator()

    def generate_ticket_pdf(self, booking: Booking, event: Event, user: User) -> bytes:
        buffer = io.BytesIO()
        try:
            pdf = canvas.Canvas(buffer, pagesize=A4)
            pdf.setTitle(f"Tickets - {event.event_name}")

            for index, ticket in enumerate(booking.tickets, start=1):
                self._draw_ticket_page(pdf, booking, event, user, ticket, index)
                pdf.showPage()

            pdf.save()
        except (ValueError, TypeError, OSError) as exc:
            raise TicketRenderError(f"Could not render tickets for booking {booking.id}: {exc}") from exc

        return buffer.getvalue()

    def _draw_ticket_page(self, pdf, booking, event, user, ticket, index) -> None:
        width, height = A4
        x = 20 * mm
        y = height - 30 * mm

        pdf.setFont("Helvetica-Bold", 20)
        pdf.drawString(x, y, event.event_name)

        pdf.setFont("Helvetica", 11)
        lines = [
            f"Ticket {index} of {booking.ticket_count}: {ticket.ticket_id}",
            f"Attendee: {user.full_name} <{user.email}>",
            f"Date: {event.event_date_time:%Y-%m-%d %H:%M}",
            f"Venue: {event.full_address}",
            f"Price: {ticket.price:.2f}",
            f"Booking: {booking.id} ({booking.booking_status.value})",
        ]
        if event.event_instruction:
            lines.append(f"Instructions: {event.event_instruction}")

        for line in lines:
            y -= 8 * mm
            pdf.drawString(x, y, line)

        try:
            image = self.qr_generator.make_image(ticket.ticket_id, QR_SIZE_PX, QR_SIZE_PX)
        except QrGenerationError:
            logger.exception("QR code missing on PDF for ticket %s", ticket.ticket_id)
            return

        size = 60 * mm
        pdf.drawImage(ImageReader(image), width - x - size, height - 30 * mm - size, size, size)
