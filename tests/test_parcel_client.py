"""Tests for parcel lookup clients: Regrid over HTTP, the mock provider and the factory."""

from __future__ import annotations

import httpx
import pytest

from parcelmatch.core.config import ParcelProviderConfig
from parcelmatch.core.errors import InvalidCoordinate, LookupFailure
from parcelmatch.parcels.client import ParcelLookupClient, create_parcel_client
from parcelmatch.parcels.providers.mock import MockParcelClient
from parcelmatch.parcels.providers.regrid import RegridParcelClient, parcel_from_feature

CENTER_LAT = 39.7817
CENTER_LNG = -89.6501


def _feature(**overrides):
    fields = {
        "ll_uuid": "abc-123",
        "parcelnumb": "14-22-300-010",
        "address": "123 Main St",
        "scity": "Springfield",
        "state2": "IL",
        "szip": "62701",
        "owner": "Jane Doe",
        "mailadd": "PO Box 9",
        "mail_city": "Springfield",
        "mail_state2": "IL",
        "mail_zip": "62705",
        "yearbuilt": "1958",
        "parval": "185000",
        "improvval": 130000,
        "landval": 55000.0,
        "usedesc": "Single Family",
        "zoning": "R-1",
        "zoning_description": "Residential",
        "lat": "39.7817",
        "lon": "-89.6501",
    }
    fields.update(overrides)
    return {
        "type": "Feature",
        "id": 1,
        "geometry": {
            "type": "Polygon",
            "coordinates": [[
                [-89.6503, 39.7815], [-89.6499, 39.7815],
                [-89.6499, 39.7819], [-89.6503, 39.7819], [-89.6503, 39.7815],
            ]],
        },
        "properties": {"fields": fields},
    }


def _payload(*features):
    return {"parcels": {"type": "FeatureCollection", "features": list(features)}}


@pytest.fixture
def regrid_config() -> ParcelProviderConfig:
    return ParcelProviderConfig(
        provider="regrid",
        base_url="https://parcels.test/api/v2",
        api_key="test-token",
        max_retries=1,
    )


class TestParcelFromFeature:
    def test_maps_fields(self):
        parcel = parcel_from_feature(_feature())
        assert parcel is not None
        assert parcel.provider_id == "abc-123"
        assert parcel.parcel_number == "14-22-300-010"
        assert parcel.address.full_address == "123 Main St, Springfield, IL 62701"
        assert parcel.owner.name == "Jane Doe"
        assert parcel.owner.mailing_address.zip_code == "62705"
        assert parcel.year_built == 1958
        assert parcel.valuation.total == 185000
        assert parcel.valuation.land == 55000
        assert parcel.zoning is not None
        assert parcel.zoning.code == "R-1"
        assert parcel.centroid.latitude == pytest.approx(39.7817)

    def test_missing_geometry_is_skipped(self):
        feature = _feature()
        feature["geometry"] = {"type": "Point", "coordinates": [-89.65, 39.78]}
        assert parcel_from_feature(feature) is None

    def test_missing_attributes_is_skipped(self):
        feature = _feature()
        feature["properties"] = {}
        assert parcel_from_feature(feature) is None

    def test_garbage_numbers_become_defaults(self):
        parcel = parcel_from_feature(_feature(yearbuilt="unknown", parval=None))
        assert parcel.year_built is None
        assert parcel.valuation.total == 0


class TestRegridClient:
    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="API_KEY"):
            RegridParcelClient(ParcelProviderConfig(provider="regrid"))

    async def test_lookup_sends_point_query(self, httpx_mock, regrid_config):
        httpx_mock.add_response(json=_payload(_feature()))
        client = RegridParcelClient(regrid_config)
        parcel = await client.lookup(CENTER_LAT, CENTER_LNG, 20)
        await client.close()

        assert parcel is not None
        assert parcel.parcel_number == "14-22-300-010"
        assert parcel.nearby_parcel_count is None
        request = httpx_mock.get_request()
        assert request.url.path == "/api/v2/parcels/point"
        params = request.url.params
        assert params["token"] == "test-token"
        assert params["lat"] == "39.781700"
        assert params["lon"] == "-89.650100"
        assert params["radius"] == "20"
        assert params["limit"] == "1"

    async def test_density_hint_counts_features(self, httpx_mock, regrid_config):
        httpx_mock.add_response(json=_payload(_feature(), _feature(), _feature()))
        client = RegridParcelClient(regrid_config)
        parcel = await client.lookup(CENTER_LAT, CENTER_LNG, 50, want_density_hint=True)
        await client.close()

        assert parcel.nearby_parcel_count == 3
        assert httpx_mock.get_request().url.params["limit"] == "10"

    async def test_skips_features_without_polygon(self, httpx_mock, regrid_config):
        point_only = _feature(parcelnumb="POINT-ONLY")
        point_only["geometry"] = {"type": "Point", "coordinates": [-89.65, 39.78]}
        httpx_mock.add_response(json=_payload(point_only, _feature()))
        client = RegridParcelClient(regrid_config)
        parcel = await client.lookup(CENTER_LAT, CENTER_LNG, 50, want_density_hint=True)
        await client.close()

        assert parcel.parcel_number == "14-22-300-010"
        assert parcel.nearby_parcel_count == 2

    async def test_dense_area_without_polygons_is_dense(self, httpx_mock, regrid_config):
        features = []
        for i in range(5):
            feature = _feature(parcelnumb=f"P-{i}")
            feature["geometry"] = {"type": "Point", "coordinates": [-89.65, 39.78]}
            features.append(feature)
        httpx_mock.add_response(json=_payload(*features))
        httpx_mock.add_response(json=_payload(*features))
        client = RegridParcelClient(regrid_config)
        assert await client.count_nearby(CENTER_LAT, CENTER_LNG, 50) == 5
        assert await client.search_radius(CENTER_LAT, CENTER_LNG) == 50.0
        await client.close()

    async def test_no_features_is_none(self, httpx_mock, regrid_config):
        httpx_mock.add_response(json=_payload())
        client = RegridParcelClient(regrid_config)
        assert await client.lookup(CENTER_LAT, CENTER_LNG, 20) is None
        await client.close()

    async def test_client_error_raises_lookup_failure(self, httpx_mock, regrid_config):
        httpx_mock.add_response(status_code=401, text="bad token")
        client = RegridParcelClient(regrid_config)
        with pytest.raises(LookupFailure) as exc_info:
            await client.lookup(CENTER_LAT, CENTER_LNG, 20)
        await client.close()
        assert exc_info.value.status_code == 401
        assert len(httpx_mock.get_requests()) == 1

    async def test_server_error_is_retried(self, httpx_mock, regrid_config):
        httpx_mock.add_response(status_code=503)
        httpx_mock.add_response(json=_payload(_feature()))
        client = RegridParcelClient(regrid_config)
        parcel = await client.lookup(CENTER_LAT, CENTER_LNG, 20)
        await client.close()

        assert parcel is not None
        assert len(httpx_mock.get_requests()) == 2

    async def test_transport_error_exhausts_retries(self, httpx_mock):
        config = ParcelProviderConfig(
            provider="regrid",
            base_url="https://parcels.test/api/v2",
            api_key="test-token",
            max_retries=0,
        )
        httpx_mock.add_exception(httpx.ConnectError("refused"))
        client = RegridParcelClient(config)
        with pytest.raises(LookupFailure, match="unreachable"):
            await client.lookup(CENTER_LAT, CENTER_LNG, 20)
        await client.close()

    async def test_invalid_coordinate_makes_no_request(self, regrid_config):
        client = RegridParcelClient(regrid_config)
        with pytest.raises(InvalidCoordinate):
            await client.lookup(95.0, 0.0, 20)
        await client.close()


class FailingParcelClient(ParcelLookupClient):
    async def _query(self, coord, radius_meters, limit, want_density_hint):
        raise LookupFailure("provider down", status_code=503)

    async def is_available(self):
        return False


class TestSearchRadius:
    async def test_dense_area_gets_wide_radius(self, make_parcel):
        parcels = [
            make_parcel(CENTER_LAT + offset, CENTER_LNG, half_size=0.00004, parcel_number=str(i))
            for i, offset in enumerate([0.0, 0.0001, -0.0001, 0.0002, -0.0002])
        ]
        client = MockParcelClient(parcels=parcels)
        assert await client.search_radius(CENTER_LAT, CENTER_LNG) == 50.0
        assert client.calls[0]["density"] is True
        assert client.calls[0]["limit"] == 10

    async def test_exactly_threshold_is_sparse(self, make_parcel):
        parcels = [
            make_parcel(CENTER_LAT + offset, CENTER_LNG, half_size=0.00004, parcel_number=str(i))
            for i, offset in enumerate([0.0, 0.0001, -0.0001])
        ]
        client = MockParcelClient(parcels=parcels)
        assert await client.search_radius(CENTER_LAT, CENTER_LNG) == 20.0

    async def test_empty_area_is_sparse(self):
        client = MockParcelClient(parcels=[])
        assert await client.search_radius(CENTER_LAT, CENTER_LNG) == 20.0

    async def test_failed_density_check_assumes_sparse(self):
        client = FailingParcelClient(ParcelProviderConfig(provider="mock"))
        assert await client.search_radius(CENTER_LAT, CENTER_LNG) == 20.0


class TestMockClient:
    async def test_prefers_containing_parcel(self, make_parcel):
        inside = make_parcel(parcel_number="INSIDE")
        closer_center = make_parcel(CENTER_LAT + 0.00025, CENTER_LNG, half_size=0.00001,
                                    parcel_number="NEAR")
        client = MockParcelClient(parcels=[closer_center, inside])
        parcel = await client.lookup(CENTER_LAT + 0.00019, CENTER_LNG, 50)
        assert parcel.parcel_number == "INSIDE"

    async def test_nothing_in_radius(self, make_parcel):
        client = MockParcelClient(parcels=[make_parcel()])
        assert await client.lookup(CENTER_LAT + 0.01, CENTER_LNG, 20) is None

    async def test_default_fixtures_loaded(self):
        client = MockParcelClient()
        parcel = await client.lookup(39.7900, -89.6440, 20)
        assert parcel.owner.name == "Acme Corp"


class TestFactory:
    def test_creates_mock(self):
        client = create_parcel_client(ParcelProviderConfig(provider="MOCK"))
        assert isinstance(client, MockParcelClient)

    def test_creates_regrid(self, regrid_config):
        assert isinstance(create_parcel_client(regrid_config), RegridParcelClient)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown parcel provider"):
            create_parcel_client(ParcelProviderConfig(provider="nope"))
