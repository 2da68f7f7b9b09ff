"""
Unit tests for the geocoding providers and LocationService.
"""

import httpx
import pytest

from fitsched.core.exceptions import UpstreamUnavailableException
from fitsched.models.location import Location
from fitsched.services.geocoding.base import AddressQuery, Coordinates
from fitsched.services.geocoding.factory import create_geocoding_provider
from fitsched.services.geocoding.mock_provider import MockGeocodingProvider
from fitsched.services.geocoding.nominatim_provider import NominatimProvider
from fitsched.services.location_service import LocationService, haversine_km

QUERY = AddressQuery(street="Marszalkowska", building_number="1", zip_code="00-001", city="Warszawa")


def _provider(handler) -> NominatimProvider:
    return NominatimProvider(
        base_url="https://nominatim.test/search",
        user_agent="fitsched-tests",
        min_interval=0,
        transport=httpx.MockTransport(handler),
    )


class TestAddressQuery:
    def test_to_query_format(self):
        assert QUERY.to_query() == "Marszalkowska 1, 00-001 Warszawa"

    def test_cache_material_is_case_insensitive(self):
        other = AddressQuery(
            street=" MARSZALKOWSKA ", building_number="1", zip_code="00-001", city="warszawa"
        )
        assert other.cache_material() == QUERY.cache_material()


class TestNominatimProvider:
    @pytest.mark.asyncio
    async def test_resolves_first_result(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            seen["user_agent"] = request.headers["User-Agent"]
            return httpx.Response(200, json=[{"lat": "52.2297", "lon": "21.0122"}])

        coords = await _provider(handler).resolve(QUERY)

        assert coords == Coordinates(latitude=52.2297, longitude=21.0122)
        assert seen["params"]["q"] == "Marszalkowska 1, 00-001 Warszawa"
        assert seen["params"]["format"] == "json"
        assert seen["params"]["limit"] == "1"
        assert seen["user_agent"] == "fitsched-tests"

    @pytest.mark.asyncio
    async def test_empty_result_is_none(self):
        coords = await _provider(lambda request: httpx.Response(200, json=[])).resolve(QUERY)
        assert coords is None

    @pytest.mark.asyncio
    async def test_http_error_status_is_unavailable(self):
        provider = _provider(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(UpstreamUnavailableException) as exc_info:
            await provider.resolve(QUERY)

        assert exc_info.value.code == "GEOCODING_UNAVAILABLE"
        assert exc_info.value.details["status_code"] == 502

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamUnavailableException):
            await _provider(handler).resolve(QUERY)


class TestProviderFactory:
    def test_mock_override(self):
        assert isinstance(create_geocoding_provider("mock"), MockGeocodingProvider)

    def test_defaults_to_nominatim(self):
        assert isinstance(create_geocoding_provider("nominatim"), NominatimProvider)


class TestHaversine:
    def test_same_point_is_zero(self):
        point = Coordinates(latitude=52.23, longitude=21.01)
        assert haversine_km(point, point) == 0.0

    def test_warsaw_to_krakow(self):
        warsaw = Coordinates(latitude=52.2297, longitude=21.0122)
        krakow = Coordinates(latitude=50.0647, longitude=19.9450)
        assert haversine_km(warsaw, krakow) == pytest.approx(252, abs=2)

    def test_one_degree_of_latitude(self):
        a = Coordinates(latitude=0.0, longitude=0.0)
        b = Coordinates(latitude=1.0, longitude=0.0)
        assert haversine_km(a, b) == 111.19


class TestLocationService:
    @pytest.mark.asyncio
    async def test_coordinates_are_cached_by_address(self, db, cache, geocoder):
        geocoder.register(QUERY, 52.23, 21.01)
        service = LocationService(db, cache, geocoder)
        location = Location(
            street="Marszalkowska", building_number="1", zip_code="00-001", city="Warszawa"
        )

        first = await service.get_coordinates(location)
        second = await service.get_coordinates(location)

        assert first == second == Coordinates(latitude=52.23, longitude=21.01)
        assert geocoder.calls == 1

    @pytest.mark.asyncio
    async def test_unknown_address_is_not_cached(self, db, cache, geocoder):
        service = LocationService(db, cache, geocoder)
        location = Location(street="Nowhere", building_number="0", zip_code="99-999", city="X")

        assert await service.get_coordinates(location) is None
        assert await service.get_coordinates(location) is None
        assert geocoder.calls == 2

    @pytest.mark.asyncio
    async def test_provider_failure_propagates(self, db, cache, geocoder):
        geocoder.fail = True
        service = LocationService(db, cache, geocoder)
        location = Location(
            street="Marszalkowska", building_number="1", zip_code="00-001", city="Warszawa"
        )

        with pytest.raises(UpstreamUnavailableException):
            await service.get_coordinates(location)
