"""Google Geocoding API reverse-geocoder."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from parcelmatch.core.config import GeocoderConfig
from parcelmatch.core.errors import GeocodingFailure
from parcelmatch.core.limiter import ProviderLimiter
from parcelmatch.geocoding.client import ReverseGeocoder
from parcelmatch.geocoding.models import AddressComponents, GeocodeResult

logger = logging.getLogger(__name__)

RESULT_TYPES = ("street_address", "premise")


def extract_components(components: list[dict[str, Any]]) -> AddressComponents:
    result = AddressComponents()
    for component in components:
        types = component.get("types") or []
        if "street_number" in types:
            result.street_number = component.get("long_name")
        elif "route" in types:
            result.route = component.get("long_name")
        elif "locality" in types:
            result.locality = component.get("long_name")
        elif "administrative_area_level_1" in types:
            result.state = component.get("short_name")
        elif "postal_code" in types:
            result.zip_code = component.get("long_name")
    return result


class GoogleGeocoder(ReverseGeocoder):
    """Talks to ``{base_url}/geocode/json``."""

    def __init__(
        self,
        config: GeocoderConfig,
        limiter: ProviderLimiter | None = None,
    ) -> None:
        if not config.api_key:
            raise ValueError("Google geocoder requires PARCELMATCH_GEOCODER_API_KEY")
        super().__init__(config, limiter=limiter)
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def _reverse(self, latitude: float, longitude: float) -> GeocodeResult | None:
        params = {
            "latlng": f"{latitude:.7f},{longitude:.7f}",
            "result_type": "|".join(RESULT_TYPES),
            "key": self.config.api_key,
        }
        data = await self._get_with_retry("/geocode/json", params)

        status = data.get("status")
        if status == "ZERO_RESULTS":
            return None
        if status != "OK":
            raise GeocodingFailure(
                f"Geocoder status {status}: {data.get('error_message', '')}".strip()
            )

        results = data.get("results") or []
        if not results:
            return None
        top = results[0]
        location_type = (top.get("geometry") or {}).get("location_type") or "APPROXIMATE"
        return GeocodeResult(
            address=top.get("formatted_address", ""),
            confidence=1.0 if location_type == "ROOFTOP" else 0.9,
            location_type=location_type,
            place_id=top.get("place_id"),
            components=extract_components(top.get("address_components") or []),
        )

    async def _get_with_retry(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        max_attempts = max(1, self.config.max_retries + 1)

        for attempt in range(max_attempts):
            try:
                resp = await self._http.get(path, params=params)
            except httpx.TransportError as exc:
                if attempt < max_attempts - 1:
                    delay = 0.5 * (2 ** attempt)
                    logger.warning(
                        "Transport error on %s: %s, retrying in %.1fs (%d/%d)",
                        path, exc, delay, attempt + 1, max_attempts,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise GeocodingFailure(f"Geocoder unreachable: {exc}") from exc

            if resp.status_code >= 500 and attempt < max_attempts - 1:
                delay = 0.5 * (2 ** attempt)
                logger.warning(
                    "Request to %s returned %d, retrying in %.1fs (%d/%d)",
                    path, resp.status_code, delay, attempt + 1, max_attempts,
                )
                await asyncio.sleep(delay)
                continue
            if resp.status_code >= 400:
                raise GeocodingFailure(f"Geocoder returned HTTP {resp.status_code}")
            try:
                return resp.json()
            except ValueError as exc:
                raise GeocodingFailure("Geocoder returned invalid JSON") from exc

        raise GeocodingFailure("Geocoder retries exhausted")
