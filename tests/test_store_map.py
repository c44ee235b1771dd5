import pydeck as pdk

from models import Location, Store
from store_map import (
    CURRENT_LOCATION_COLOR,
    DEFAULT_ZOOM,
    MAX_ZOOM,
    STORE_COLOR,
    build_store_map,
    fitted_view,
    marker_rows,
)

CENTER = Location(lat=35.6812, lng=139.7671)

STORES = [
    Store(id="1", name="Test Store 1", address="Addr 1", distance_meters=500,
          location_lat=35.6850, location_lng=139.7700),
    Store(id="2", name="Test Store 2", distance_meters=1500,
          location_lat=35.6700, location_lng=139.7500),
    Store(id="3", name="No coordinates", distance_meters=800),
]


def test_marker_rows_current_location_first_and_skips_unlocated():
    rows = marker_rows(STORES, CENTER)

    assert [r["store_id"] for r in rows] == [None, "1", "2"]
    assert rows[0]["color"] == CURRENT_LOCATION_COLOR
    assert rows[1]["color"] == STORE_COLOR
    assert rows[1]["distance"] == "500m"
    assert rows[2]["distance"] == "1.5km"
    assert rows[2]["address"] == ""


def test_view_centered_on_user_without_stores():
    view = fitted_view(marker_rows([], CENTER), CENTER)
    assert view.latitude == CENTER.lat
    assert view.longitude == CENTER.lng
    assert view.zoom == DEFAULT_ZOOM


def test_view_covers_all_markers():
    rows = marker_rows(STORES, CENTER)
    view = fitted_view(rows, CENTER)

    lats = [r["lat"] for r in rows]
    lons = [r["lon"] for r in rows]
    assert min(lats) <= view.latitude <= max(lats)
    assert min(lons) <= view.longitude <= max(lons)
    assert view.zoom <= MAX_ZOOM


def test_build_store_map():
    deck = build_store_map(STORES, CENTER)
    assert isinstance(deck, pdk.Deck)
    assert len(deck.layers) == 1

    with_token = build_store_map(STORES, CENTER, mapbox_token="pk.test")
    assert with_token.map_provider == "mapbox"
