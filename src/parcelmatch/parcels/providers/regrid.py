"""Regrid parcel provider using the v2 ``/parcels/point`` REST endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from parcelmatch.core.config import ParcelProviderConfig
from parcelmatch.core.errors import LookupFailure
from parcelmatch.core.limiter import ProviderLimiter
from parcelmatch.geo.geometry import validate_coordinate
from parcelmatch.geo.models import Coordinate
from parcelmatch.parcels.client import ParcelLookupClient
from parcelmatch.parcels.models import (
    MailingAddress,
    OwnerInfo,
    ParcelAddress,
    ParcelRecord,
    Valuation,
    Zoning,
)

logger = logging.getLogger(__name__)

_POLYGON_TYPES = {"Polygon", "MultiPolygon"}


def _int(value: Any) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return None


def _str(value: Any) -> str:
    return "" if value is None else str(value).strip()


def parcel_from_feature(
    feature: dict[str, Any],
    nearby_parcel_count: int | None = None,
) -> ParcelRecord | None:
    """Map one provider feature onto a ParcelRecord.

    Returns None when the feature carries no attributes or no polygon
    boundary, since neither can be matched against.
    """
    props = feature.get("properties") or {}
    fields = props.get("fields") or props
    if not fields:
        return None

    geometry = feature.get("geometry") or {}
    if geometry.get("type") not in _POLYGON_TYPES:
        logger.warning(
            "Parcel %s has no polygon boundary (geometry type %r)",
            fields.get("parcelnumb"), geometry.get("type"),
        )
        return None

    zoning = None
    if fields.get("zoning"):
        zoning = Zoning(
            code=_str(fields.get("zoning")),
            description=_str(fields.get("zoning_description")),
        )

    return ParcelRecord(
        provider_id=_str(fields.get("ll_uuid") or feature.get("id")),
        parcel_number=_str(fields.get("parcelnumb")),
        address=ParcelAddress(
            street=_str(fields.get("address")),
            city=_str(fields.get("scity") or fields.get("city")),
            state=_str(fields.get("state2")),
            zip_code=_str(fields.get("szip")),
        ),
        owner=OwnerInfo(
            name=_str(fields.get("owner")),
            care_of=_str(fields.get("careof")) or None,
            mailing_address=MailingAddress(
                street=_str(fields.get("mailadd")),
                city=_str(fields.get("mail_city")),
                state=_str(fields.get("mail_state2")),
                zip_code=_str(fields.get("mail_zip")),
                country=_str(fields.get("mail_country")) or "US",
            ),
        ),
        year_built=_int(fields.get("yearbuilt")),
        valuation=Valuation(
            total=_int(fields.get("parval")) or 0,
            improvements=_int(fields.get("improvval")) or 0,
            land=_int(fields.get("landval")) or 0,
        ),
        use_description=_str(fields.get("usedesc")),
        zoning=zoning,
        boundary=geometry,
        centroid=validate_coordinate(fields.get("lat"), fields.get("lon")),
        nearby_parcel_count=nearby_parcel_count,
    )


class RegridParcelClient(ParcelLookupClient):
    """Talks to the Regrid parcel API."""

    def __init__(
        self,
        config: ParcelProviderConfig,
        limiter: ProviderLimiter | None = None,
    ) -> None:
        if not config.api_key:
            raise ValueError("Regrid provider requires PARCELMATCH_PARCELS_API_KEY")
        super().__init__(config, limiter=limiter)
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    # -- public API ----------------------------------------------------------

    async def is_available(self) -> bool:
        try:
            r = await self._http.get(
                "/parcels/point",
                params={"token": self.config.api_key, "lat": "0", "lon": "0", "limit": "1"},
            )
            return r.status_code < 500
        except httpx.HTTPError:
            return False

    async def close(self) -> None:
        await self._http.aclose()

    # -- internal ------------------------------------------------------------

    async def _query(
        self,
        coord: Coordinate,
        radius_meters: float,
        limit: int,
        want_density_hint: bool,
    ) -> ParcelRecord | None:
        features = await self._features(coord, radius_meters, limit)
        nearby = len(features) if want_density_hint else None
        for feature in features:
            parcel = parcel_from_feature(feature, nearby_parcel_count=nearby)
            if parcel is not None:
                return parcel
        return None

    async def _count_nearby(self, coord: Coordinate, radius_meters: float, limit: int) -> int:
        return len(await self._features(coord, radius_meters, limit))

    async def _features(
        self,
        coord: Coordinate,
        radius_meters: float,
        limit: int,
    ) -> list[dict[str, Any]]:
        lat = round(coord.latitude, 6)
        lng = round(coord.longitude, 6)
        params = {
            "token": self.config.api_key,
            "lat": f"{lat:.6f}",
            "lon": f"{lng:.6f}",
            "radius": str(int(round(radius_meters))),
            "return_geometry": "true",
            "return_zoning": "true",
            "return_field_labels": "false",
            "limit": str(limit),
        }
        logger.debug(
            "Querying parcels at %.6f,%.6f radius=%sm limit=%d",
            lat, lng, params["radius"], limit,
        )

        data = await self._get_with_retry("/parcels/point", params)
        features = ((data.get("parcels") or {}).get("features")) or []
        if not features:
            logger.info("No parcels found at %.6f,%.6f within %sm", lat, lng, params["radius"])
        return features

    async def _get_with_retry(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        """GET with retry on 5xx and transport errors; raises LookupFailure."""
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
                raise LookupFailure(f"Parcel provider unreachable: {exc}") from exc

            if resp.status_code >= 500 and attempt < max_attempts - 1:
                delay = 0.5 * (2 ** attempt)
                logger.warning(
                    "Request to %s returned %d, retrying in %.1fs (%d/%d)",
                    path, resp.status_code, delay, attempt + 1, max_attempts,
                )
                await asyncio.sleep(delay)
                continue

            if resp.status_code >= 400:
                logger.error(
                    "Parcel provider error %d on %s: %s",
                    resp.status_code, path, resp.text[:500],
                )
                raise LookupFailure(
                    f"Parcel provider returned {resp.status_code}",
                    status_code=resp.status_code,
                )

            try:
                return resp.json()
            except ValueError as exc:
                raise LookupFailure("Parcel provider returned invalid JSON") from exc

        raise LookupFailure("Parcel provider retries exhausted")
