# src/application/notification_service.py

import logging
from typing import Iterable, Mapping

from sqlalchemy.orm import Session

from src.infrastructure.db.models import Ticket
from src.infrastructure.notifications.email_sender import EmailSender
from src.infrastructure.repositories.outbox_repository import OutboxRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Best-effort email delivery.

    Exactly one send attempt is made; the outcome is written to the outbox and
    failures are logged, never raised to the caller.
    """

    def __init__(self, db: Session, email_sender: EmailSender | None = None):
        self.outbox_repository = OutboxRepository(db)
        self.email_sender = email_sender if email_sender is not None else EmailSender()

    def send(
        self,
        aggregate_id: str,
        event_type: str,
        to_address: str,
        subject: str,
        template_name: str,
        variables: Mapping[str, str],
        tickets: Iterable[Ticket] | None = None,
    ) -> bool:
        error = None
        try:
            self.email_sender.send_html_email(
                to_address,
                subject,
                template_name,
                dict(variables),
                list(tickets) if tickets is not None else None,
            )
        except Exception as exc:
            error = str(exc) or exc.__class__.__name__
            logger.exception(
                "Failed to send %s email for booking %s to %s",
                event_type,
                aggregate_id,
                to_address,
            )

        self.outbox_repository.record(
            aggregate_type="booking",
            aggregate_id=aggregate_id,
            event_type=event_type,
            payload={
                "to": to_address,
                "subject": subject,
                "template": template_name,
                "variables": dict(variables),
            },
            dedupe_key=f"booking:{aggregate_id}:{event_type.lower()}",
            error=error,
        )
        return error is None
