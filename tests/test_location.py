from unittest.mock import MagicMock

import pytest
from googlemaps.exceptions import ApiError

from location import LocationError, LocationService, calculate_distance, rank_by_distance
from models import Location, Store


class TestCalculateDistance:
    def test_same_point_is_zero(self):
        assert calculate_distance(35.6812, 139.7671, 35.6812, 139.7671) == 0

    def test_tokyo_to_osaka(self):
        # Tokyo Station -> Osaka Station, roughly 403 km great-circle
        meters = calculate_distance(35.6812, 139.7671, 34.7025, 135.4959)
        assert meters == pytest.approx(403_000, rel=0.01)

    def test_one_degree_of_latitude(self):
        assert calculate_distance(0, 0, 1, 0) == pytest.approx(111_195, rel=0.001)

    def test_symmetric(self):
        a = calculate_distance(35.0, 139.0, 35.1, 139.2)
        b = calculate_distance(35.1, 139.2, 35.0, 139.0)
        assert a == pytest.approx(b)


class TestRankByDistance:
    def test_computes_missing_and_sorts(self):
        origin = Location(lat=35.0, lng=139.0)
        stores = [
            Store(id="far", name="Far", location_lat=35.02, location_lng=139.0),
            Store(id="given", name="Given", distance_meters=100),
            Store(id="unknown", name="Unknown"),
            Store(id="near", name="Near", location_lat=35.001, location_lng=139.0),
        ]

        ranked = rank_by_distance(stores, origin)

        assert [s.id for s in ranked] == ["given", "near", "far", "unknown"]
        assert ranked[1].distance_meters == pytest.approx(111, rel=0.01)
        assert ranked[-1].distance_meters is None

    def test_does_not_mutate_input(self):
        store = Store(id="s", name="S", location_lat=35.0, location_lng=139.0)
        rank_by_distance([store], Location(lat=35.0, lng=139.0))
        assert store.distance_meters is None


class TestLocationService:
    def test_geocodes_and_caches(self):
        gmaps = MagicMock()
        gmaps.geocode.return_value = [{"geometry": {"location": {"lat": 35.68, "lng": 139.76}}}]
        service = LocationService(client=gmaps)

        first = service.get_current_location("Tokyo Station")
        second = service.get_current_location("somewhere else")

        assert first == second == Location(lat=35.68, lng=139.76)
        gmaps.geocode.assert_called_once_with("Tokyo Station")

    def test_clear_cache_forces_lookup(self):
        gmaps = MagicMock()
        gmaps.geocode.return_value = [{"geometry": {"location": {"lat": 1.0, "lng": 2.0}}}]
        service = LocationService(client=gmaps)

        service.get_current_location("a")
        service.clear_cache()
        service.get_current_location("b")

        assert gmaps.geocode.call_count == 2

    def test_no_results(self):
        gmaps = MagicMock()
        gmaps.geocode.return_value = []

        with pytest.raises(LocationError):
            LocationService(client=gmaps).get_current_location("nowhere")

    def test_api_error_is_wrapped(self):
        gmaps = MagicMock()
        gmaps.geocode.side_effect = ApiError("REQUEST_DENIED")

        with pytest.raises(LocationError):
            LocationService(client=gmaps).get_current_location("Tokyo")

    def test_without_api_key(self):
        with pytest.raises(LocationError, match="not configured"):
            LocationService().get_current_location("Tokyo")

    def test_explicit_coordinates(self):
        service = LocationService()
        service.set_current_location(35.0, 139.0)
        assert service.get_current_location() == Location(lat=35.0, lng=139.0)
