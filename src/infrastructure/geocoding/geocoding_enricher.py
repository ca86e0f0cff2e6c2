# src/infrastructure/geocoding/geocoding_enricher.py

import logging
from urllib.parse import quote_plus

import httpx

from src.config import settings
from src.infrastructure.db.models import Event

logger = logging.getLogger(__name__)

GMAP_SEARCH_URL = "https://www.google.com/maps/search/?api=1&query={query}"


def build_gmap_url(full_address: str) -> str:
    return GMAP_SEARCH_URL.format(query=quote_plus(full_address, safe=","))


class GeocodingEnricher:
    """
    Resolves an event's postal address to coordinates.

    Enrichment is best-effort: any transport, status or parse failure leaves
    the event with whatever location it already had.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        api_key: str | None = None,
        url: str | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.google_maps_api_key
        self.url = url or settings.geocoding_url
        self._client = client

    def enrich(self, event: Event) -> bool:
        """Returns True when a location was attached to the event."""
        if not self.api_key:
            logger.debug("Geocoding skipped for event %s: no API key configured.", event.id)
            return False

        full_address = ", ".join(
            str(part) for part in (event.address, event.city, event.state, event.zip_code)
        )

        try:
            payload = self._lookup(full_address)
            location = payload["results"][0]["geometry"]["location"]
            latitude = float(location["lat"])
            longitude = float(location["lng"])
        except (
            httpx.HTTPError,
            httpx.InvalidURL,
            ValueError,
            KeyError,
            IndexError,
            TypeError,
        ) as exc:
            logger.warning(
                "Geocoding failed for event %s (%s): %s",
                event.id,
                full_address,
                exc,
            )
            return False

        event.latitude = latitude
        event.longitude = longitude
        event.gmap_url = build_gmap_url(full_address)
        return True

    def _lookup(self, full_address: str) -> dict:
        params = {"address": full_address, "key": self.api_key}
        if self._client is not None:
            response = self._client.get(self.url, params=params)
        else:
            response = httpx.get(
                self.url,
                params=params,
                timeout=settings.geocoding_timeout_seconds,
            )
        response.raise_for_status()
        return response.json()
