# src/infrastructure/repositories/outbox_repository.py

from datetime import datetime, timezone
import json

from sqlalchemy.orm import Session
from sqlalchemy import select

from src.infrastructure.db.models import OutboxEvent


class OutboxRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_dedupe_key(self, dedupe_key: str) -> OutboxEvent | None:
        stmt = select(OutboxEvent).where(OutboxEvent.dedupe_key == dedupe_key)
        return self.db.execute(stmt).scalar_one_or_none()

    def record(
        self,
        aggregate_type: str,
        aggregate_id: str,
        event_type: str,
        payload: dict,
        dedupe_key: str,
        error: str | None = None,
    ) -> OutboxEvent:
        """Stores the outcome of a single delivery attempt."""

        existing = self.get_by_dedupe_key(dedupe_key)
        if existing:
            return existing

        item = OutboxEvent(
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            event_type=event_type,
            payload=json.dumps(payload, sort_keys=True, default=str),
            dedupe_key=dedupe_key,
            status="FAILED" if error else "SENT",
            attempts=1,
            last_error=error,
            published_at=None if error else datetime.now(timezone.utc),
        )
        self.db.add(item)
        self.db.flush()
        return item

    def list_by_status(self, status: str | None, limit: int) -> list[OutboxEvent]:
        stmt = select(OutboxEvent).order_by(OutboxEvent.created_at).limit(limit)
        if status:
            stmt = stmt.where(OutboxEvent.status == status)
        return list(self.db.execute(stmt).scalars().all())
