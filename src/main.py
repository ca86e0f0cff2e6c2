import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from src.api.routes.routes import router
from src.config import settings
from src.infrastructure.db.session import engine
from src.infrastructure.db.models import Base

logger = logging.getLogger(__name__)


def _wait_for_db(max_retries: int, retry_delay_seconds: float) -> None:
    # The API container usually comes up before Postgres accepts connections.
    for attempt in range(1, max_retries + 1):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database is reachable.")
            return
        except OperationalError:
            if attempt == max_retries:
                logger.exception(
                    "Database not reachable after %s attempts. Check DATABASE_URL.",
                    max_retries,
                )
                raise
            logger.warning(
                "Database not ready (attempt %s/%s). Retrying in %.1f seconds...",
                attempt,
                max_retries,
                retry_delay_seconds,
            )
            time.sleep(retry_delay_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _wait_for_db(settings.db_connect_max_retries, settings.db_connect_retry_delay)
    Base.metadata.create_all(bind=engine)
    logger.info("Eventure tables ready; serving %s.", app.title)
    yield
    engine.dispose()


app = FastAPI(title="Eventure Booking Engine", lifespan=lifespan)
app.include_router(router)
