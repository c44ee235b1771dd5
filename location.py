"""
Location helpers for the Price Tracker

Provides:
- Great-circle (haversine) distance in meters
- Nearest-first ranking of stores around a point
- Current location resolution via Google Maps geocoding, cached per process
"""

import logging
import math
from typing import Iterable, List, Optional

import googlemaps
from googlemaps.exceptions import ApiError, TransportError

from models import Location, Store

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6371000


class LocationError(Exception):
    """Raised when the user's location cannot be determined"""
    pass


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two coordinates in meters"""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def rank_by_distance(stores: Iterable[Store], origin: Location) -> List[Store]:
    """
    Sort stores nearest first.

    Stores without a distance get one computed from their coordinates.
    Stores with neither sort last, keeping their relative order.
    """
    ranked = []
    for store in stores:
        if store.distance_meters is None and store.has_location:
            store = store.model_copy(update={
                "distance_meters": calculate_distance(
                    origin.lat, origin.lng, store.location_lat, store.location_lng
                )
            })
        ranked.append(store)

    return sorted(
        ranked,
        key=lambda s: (s.distance_meters is None, s.distance_meters or 0.0),
    )


class LocationService:
    """Resolves the user's current location from an address"""

    def __init__(self, api_key: Optional[str] = None, client: Optional[googlemaps.Client] = None):
        """
        Args:
            api_key: Google Maps API key (geocoding disabled without it)
            client: Pre-built googlemaps client, mainly for tests
        """
        self.client = client
        if self.client is None and api_key:
            self.client = googlemaps.Client(key=api_key)
        self._current_location: Optional[Location] = None

    @property
    def current_location(self) -> Optional[Location]:
        return self._current_location

    def set_current_location(self, lat: float, lng: float) -> Location:
        """Use explicit coordinates as the current location"""
        self._current_location = Location(lat=lat, lng=lng)
        return self._current_location

    def get_current_location(self, address: Optional[str] = None) -> Location:
        """
        Return the current location, geocoding the address on first use.

        Args:
            address: Street address or place name

        Returns:
            Cached or freshly geocoded Location

        Raises:
            LocationError: If geocoding is unavailable or finds nothing
        """
        if self._current_location is not None:
            return self._current_location

        if not address:
            raise LocationError("No location available: enter an address")
        if self.client is None:
            raise LocationError("Geocoding is not configured (GOOGLEMAPS_API_KEY missing)")

        try:
            results = self.client.geocode(address)
        except (ApiError, TransportError) as e:
            logger.error(f"Google Maps API error: {e}")
            raise LocationError(f"Could not geocode address: {address}") from e

        if not results:
            raise LocationError(f"Could not geocode address: {address}")

        point = results[0]["geometry"]["location"]
        self._current_location = Location(lat=point["lat"], lng=point["lng"])
        logger.info(f"Geocoded: {address} -> ({point['lat']:.4f}, {point['lng']:.4f})")
        return self._current_location

    def clear_cache(self) -> None:
        self._current_location = None
