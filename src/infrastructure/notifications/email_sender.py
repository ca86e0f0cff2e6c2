# src/infrastructure/notifications/email_sender.py

from email.message import EmailMessage
from pathlib import Path
from typing import Iterable, Mapping
import logging
import smtplib

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from src.config import settings
from src.infrastructure.db.models import Ticket

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parents[2] / "templates" / "email"

BOOKING_CONFIRMATION_TEMPLATE = "booking_confirmation.html"
BOOKING_CANCELLATION_TEMPLATE = "booking_cancellation.html"


class EmailSendError(Exception):
    """Raised when an email cannot be rendered or handed to the SMTP server."""


class EmailSender:
    """Renders Jinja2 HTML templates and delivers them over SMTP."""

    def __init__(
        self,
        template_dir: str | Path | None = None,
        host: str | None = None,
        port: int | None = None,
    ):
        directory = template_dir or settings.email_template_dir or DEFAULT_TEMPLATE_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html"]),
        )
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port

    def render(
        self,
        template_name: str,
        variables: Mapping[str, str],
        tickets: Iterable[Ticket] | None = None,
    ) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(**variables, tickets=list(tickets or []))
        except TemplateError as exc:
            raise EmailSendError(f"Could not render {template_name}: {exc}") from exc

    def send_html_email(
        self,
        to_address: str,
        subject: str,
        template_name: str,
        variables: Mapping[str, str],
        tickets: Iterable[Ticket] | None = None,
    ) -> None:
        body = self.render(template_name, variables, tickets)

        if not self.host:
            raise EmailSendError("SMTP_HOST is not configured.")

        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = settings.mail_from
        message["To"] = to_address
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(body, subtype="html")

        try:
            with smtplib.SMTP(
                self.host,
                self.port,
                timeout=settings.smtp_timeout_seconds,
            ) as smtp:
                if settings.smtp_use_tls:
                    smtp.starttls()
                if settings.smtp_username and settings.smtp_password:
                    smtp.login(settings.smtp_username, settings.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise EmailSendError(f"SMTP delivery to {to_address} failed: {exc}") from exc

        logger.info("Email '%s' sent to %s.", subject, to_address)
