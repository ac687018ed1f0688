"""
Postcode Resolution - UK postcode → coordinate via postcodes.io

Wraps a single GET against a postcodes.io compatible service. Every failure
mode collapses to ``None`` so callers only handle one case, but the two kinds
of failure are logged and counted separately:

    not_found        service answered, postcode unknown (404 / no result)
    transport_error  service unreachable, timed out, 5xx, or malformed body

No retries and no caching: one HTTP call per resolve().
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import httpx

from app.errors import ResolutionTransportFailure
from app.middleware.metrics import record_geocode_lookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedLocation:
    longitude: float
    latitude: float
    postcode: str

    @property
    def coordinates(self) -> tuple[float, float]:
        return (self.longitude, self.latitude)


def normalize_postcode(postcode: str) -> str:
    """Upper-case and collapse internal whitespace ("sw1a  1aa" → "SW1A 1AA")."""
    return re.sub(r"\s+", " ", postcode.strip()).upper()


class LocationResolver:
    """Resolves postcodes through an injected httpx.AsyncClient."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = "https://api.postcodes.io",
        timeout: float = 5.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def resolve(self, postcode: Optional[str]) -> Optional[ResolvedLocation]:
        trimmed = (postcode or "").strip()
        if not trimmed:
            record_geocode_lookup("skipped")
            return None

        start = time.perf_counter()
        try:
            result = await self._lookup(trimmed)
        except ResolutionTransportFailure as e:
            record_geocode_lookup("transport_error", time.perf_counter() - start)
            logger.warning(f"Postcode API error for {trimmed!r}: {e}")
            return None

        duration = time.perf_counter() - start
        if result is None:
            record_geocode_lookup("not_found", duration)
            logger.info(f"Postcode not found: {trimmed!r}")
            return None

        record_geocode_lookup("resolved", duration)
        return result

    async def _lookup(self, postcode: str) -> Optional[ResolvedLocation]:
        """
        Query the service once.

        Returns:
            ResolvedLocation, or None when the service reports no match

        Raises:
            ResolutionTransportFailure: network error, timeout, 5xx, or a
                body that is not the expected JSON shape
        """
        url = f"{self.base_url}/postcodes/{quote(postcode, safe='')}"
        try:
            response = await self.client.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise ResolutionTransportFailure(str(e)) from e
        except ValueError as e:
            raise ResolutionTransportFailure(f"malformed response: {e}") from e

        if not isinstance(data, dict):
            raise ResolutionTransportFailure("malformed response: expected an object")
        if data.get("status") != 200 or not data.get("result"):
            return None

        result = data["result"]
        try:
            longitude = float(result["longitude"])
            latitude = float(result["latitude"])
        except (KeyError, TypeError, ValueError):
            # postcodes.io returns null coordinates for some non-geographic postcodes
            return None

        canonical = result.get("postcode") or postcode
        return ResolvedLocation(
            longitude=longitude,
            latitude=latitude,
            postcode=normalize_postcode(canonical),
        )
