"""OpenStreetMap Nominatim geocoding provider."""

import asyncio
import logging
import time
from typing import Any, Optional

import httpx

from ...core.config import settings
from ...core.exceptions import UpstreamUnavailableException
from ...monitoring.prometheus_metrics import prometheus_metrics
from .base import AddressQuery, Coordinates, GeocodingProvider

logger = logging.getLogger(__name__)


class NominatimProvider(GeocodingProvider):
    """
    Nominatim search client.

    The public endpoint allows one request per second and requires an
    identifying User-Agent. Requests are serialised through a lock and spaced
    by ``min_interval`` seconds; only the HTTP call is held under the lock.
    """

    name = "nominatim"

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        min_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url or settings.nominatim_base_url
        self.user_agent = user_agent or settings.nominatim_user_agent
        self.min_interval = (
            settings.geocoding_min_interval_seconds if min_interval is None else min_interval
        )
        self.timeout = timeout or settings.geocoding_timeout_seconds
        self._transport = transport
        self._lock = asyncio.Lock()
        self._last_request_at: Optional[float] = None

    async def resolve(self, query: AddressQuery) -> Optional[Coordinates]:
        params = {
            "q": query.to_query(),
            "format": "json",
            "limit": 1,
            "addressdetails": 1,
        }
        async with self._lock:
            await self._wait_for_slot()
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout,
                    headers={"User-Agent": self.user_agent},
                    transport=self._transport,
                ) as client:
                    resp = await client.get(self.base_url, params=params)
            except httpx.HTTPError as e:
                prometheus_metrics.record_geocoding_request(self.name, "error")
                logger.warning(f"Nominatim request failed for '{params['q']}': {e}")
                raise UpstreamUnavailableException(
                    "Geocoding service is unavailable", code="GEOCODING_UNAVAILABLE"
                ) from e
            finally:
                self._last_request_at = time.monotonic()

        if not resp.is_success:
            prometheus_metrics.record_geocoding_request(self.name, "error")
            logger.warning(f"Nominatim returned HTTP {resp.status_code} for '{params['q']}'")
            raise UpstreamUnavailableException(
                "Geocoding service is unavailable",
                code="GEOCODING_UNAVAILABLE",
                details={"status_code": resp.status_code},
            )

        return self._parse(resp.json())

    async def _wait_for_slot(self) -> None:
        if self._last_request_at is None or self.min_interval <= 0:
            return
        wait = self.min_interval - (time.monotonic() - self._last_request_at)
        if wait > 0:
            await asyncio.sleep(wait)

    def _parse(self, data: Any) -> Optional[Coordinates]:
        if not isinstance(data, list) or not data:
            prometheus_metrics.record_geocoding_request(self.name, "empty")
            return None
        first = data[0]
        try:
            coords = Coordinates(latitude=float(first["lat"]), longitude=float(first["lon"]))
        except (KeyError, TypeError, ValueError):
            prometheus_metrics.record_geocoding_request(self.name, "empty")
            logger.warning(f"Nominatim result without usable coordinates: {first!r}")
            return None
        prometheus_metrics.record_geocoding_request(self.name, "ok")
        return coords
