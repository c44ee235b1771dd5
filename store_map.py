"""
Store map rendering with pydeck

One red marker for the user's position, one blue marker per store with
coordinates. Tooltips show store name, distance and address. The initial
view is fitted to all markers.
"""

from typing import Dict, List, Optional

import pandas as pd
import pydeck as pdk
from pydeck.data_utils import compute_view

from models import Location, Store
from utils import format_distance

CURRENT_LOCATION_COLOR = [239, 68, 68, 230]  # red
STORE_COLOR = [59, 130, 246, 230]  # blue

MAPBOX_STYLE = "mapbox://styles/mapbox/streets-v12"
DEFAULT_ZOOM = 14
MAX_ZOOM = 16

TOOLTIP = {
    "html": "<b>{name}</b><br/>{distance}<br/><small>{address}</small>",
    "style": {"backgroundColor": "white", "color": "black"},
}


def marker_rows(stores: List[Store], center: Location) -> List[Dict]:
    """Marker records for the map layer, current location first"""
    rows = [{
        "name": "Current location",
        "distance": "",
        "address": "",
        "lat": center.lat,
        "lon": center.lng,
        "color": CURRENT_LOCATION_COLOR,
        "store_id": None,
    }]

    for store in stores:
        if not store.has_location:
            continue
        rows.append({
            "name": store.name,
            "distance": format_distance(store.distance_meters) if store.distance_meters is not None else "",
            "address": store.address or "",
            "lat": store.location_lat,
            "lon": store.location_lng,
            "color": STORE_COLOR,
            "store_id": store.id,
        })

    return rows


def fitted_view(rows: List[Dict], center: Location) -> pdk.ViewState:
    """View state covering every marker; centered on the user if alone"""
    if len({(r["lat"], r["lon"]) for r in rows}) < 2:
        return pdk.ViewState(latitude=center.lat, longitude=center.lng, zoom=DEFAULT_ZOOM)

    view = compute_view([[r["lon"], r["lat"]] for r in rows], view_proportion=1)
    view.zoom = min(view.zoom, MAX_ZOOM)
    return view


def build_store_map(
    stores: List[Store],
    center: Location,
    mapbox_token: Optional[str] = None,
) -> pdk.Deck:
    rows = marker_rows(stores, center)

    layer = pdk.Layer(
        "ScatterplotLayer",
        data=pd.DataFrame(rows),
        get_position="[lon, lat]",
        get_fill_color="color",
        get_radius=25,
        radius_min_pixels=6,
        radius_max_pixels=14,
        pickable=True,
    )

    deck_kwargs = {}
    if mapbox_token:
        deck_kwargs = {
            "map_provider": "mapbox",
            "map_style": MAPBOX_STYLE,
            "api_keys": {"mapbox": mapbox_token},
        }
    else:
        # token-free basemap
        deck_kwargs = {"map_provider": "carto", "map_style": "road"}

    return pdk.Deck(
        layers=[layer],
        initial_view_state=fitted_view(rows, center),
        tooltip=TOOLTIP,
        **deck_kwargs,
    )
