"""
Streamlit UI for the Price Tracker

- Home: nearby stores on a map, store list, price submission for a store
- Product detail (?product=<id>): price stats, store comparison,
  price history chart, related products

Every backend call is wrapped so a failure shows a message instead of
breaking the page.
"""

import logging

import pandas as pd
import streamlit as st

from anonymous_user import AnonymousUserService, LocalStorage
from baas_client import BaasClient, BaasError
from config import Settings
from database import DatabaseService
from location import LocationError, LocationService
from price_service import (
    DEFAULT_PERIOD,
    PERIOD_DAYS,
    SortBy,
    cheapest,
    period_days,
    related_products,
    sort_store_prices,
    summarize_history,
)
from store_map import build_store_map
from submission import SubmissionError, submit_observed_price
from utils import format_date, format_distance, format_price

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Price Tracker", layout="wide")

SORT_LABELS = {
    SortBy.PRICE_ASC: "Price (low to high)",
    SortBy.PRICE_DESC: "Price (high to low)",
    SortBy.DISTANCE_ASC: "Distance",
    SortBy.STORE_NAME: "Store name",
}
PERIOD_LABELS = {"7d": "1 week", "1m": "1 month", "3m": "3 months"}


# ============================================================================
# SERVICE INITIALIZATION
# ============================================================================


@st.cache_resource
def init_services():
    """
    Build backend, identity and geocoding services once per server process.

    Requires SUPABASE_URL and SUPABASE_ANON_KEY.
    """
    settings = Settings.from_env()

    client = BaasClient(settings.supabase_url, settings.supabase_anon_key)
    db = DatabaseService(client)
    users = AnonymousUserService(client, LocalStorage(settings.anonymous_user_file))

    if not settings.googlemaps_api_key:
        logger.warning("GOOGLEMAPS_API_KEY not configured; enter coordinates manually")

    return settings, db, users


def location_service() -> LocationService:
    # Cached location is per browser session, not per server
    if "location_service" not in st.session_state:
        st.session_state["location_service"] = LocationService(settings.googlemaps_api_key)
    return st.session_state["location_service"]


def price(value) -> str:
    return format_price(value, settings.currency) if value is not None else "n/a"


try:
    settings, db, users = init_services()
except Exception as e:
    st.error(f"❌ Failed to initialize services: {e}")
    st.stop()


# ============================================================================
# SIDEBAR: PRODUCT SEARCH
# ============================================================================


def render_product_search():
    st.sidebar.header("🔍 Product search")
    query = st.sidebar.text_input("Product name", key="product_query")
    if not query.strip():
        return

    results = db.search_products_with_prices(query.strip())
    if not results:
        st.sidebar.info("No products found")
        return

    for product in results:
        spread = ""
        if product.min_price is not None:
            spread = f" · {price(product.min_price)} – {price(product.max_price)}"
        if st.sidebar.button(f"{product.name}{spread}", key=f"search_{product.id}"):
            st.query_params["product"] = product.id
            st.rerun()


# ============================================================================
# HOME PAGE
# ============================================================================


def render_location_input():
    service = location_service()

    with st.form("location_form"):
        address = st.text_input(
            "Your location",
            placeholder="e.g., 1-1 Marunouchi, Chiyoda, Tokyo",
            help="Address or place name to search around",
        )
        with st.expander("Or enter coordinates"):
            col_lat, col_lng = st.columns(2)
            lat = col_lat.number_input("Latitude", value=0.0, format="%.6f")
            lng = col_lng.number_input("Longitude", value=0.0, format="%.6f")
        submitted = st.form_submit_button("📍 Find nearby stores", type="primary")

    if submitted:
        service.clear_cache()
        st.session_state.pop("stores", None)
        st.session_state.pop("selected_store_id", None)
        try:
            if address.strip():
                service.get_current_location(address.strip())
            elif lat or lng:
                service.set_current_location(lat, lng)
            else:
                st.warning("Enter an address or coordinates.")
        except LocationError as e:
            st.error(f"Failed to get your location: {e}")

    return service.current_location


def load_nearby_stores(location):
    if "stores" not in st.session_state:
        try:
            with st.spinner("Looking for nearby stores..."):
                st.session_state["stores"] = db.get_nearby_stores(
                    location.lat, location.lng, settings.search_radius_meters
                )
        except BaasError:
            st.toast("Failed to load nearby stores", icon="❌")
            st.session_state["stores"] = []
    return st.session_state["stores"]


def render_store_list(stores):
    st.subheader("Nearby stores")

    labels = {}
    for store in stores:
        label = store.name
        if store.distance_meters is not None:
            label += f" · {format_distance(store.distance_meters)}"
        if store.address:
            label += f" · {store.address}"
        labels[store.id] = label

    ids = list(labels)
    current = st.session_state.get("selected_store_id")
    selected_id = st.radio(
        "Select a store",
        ids,
        index=ids.index(current) if current in ids else None,
        format_func=labels.get,
        label_visibility="collapsed",
    )
    st.session_state["selected_store_id"] = selected_id
    return next((s for s in stores if s.id == selected_id), None)


def render_price_form(store):
    st.subheader("Submit a price")
    if store is None:
        st.write("Select a store to submit a price.")
        return

    st.caption(f"Selected: {store.name}")

    col_name, col_search = st.columns([4, 1])
    product_name = col_name.text_input(
        "Product name", key="form_product_name", placeholder="e.g., Whole milk 1L"
    )
    if col_search.button("Search", disabled=not product_name.strip()):
        try:
            st.session_state["form_matches"] = db.search_products(product_name.strip())
        except BaasError:
            st.toast("Product search failed", icon="❌")
            st.session_state["form_matches"] = []

    selected_product = None
    matches = {p.id: p for p in st.session_state.get("form_matches") or []}
    if matches:
        choice = st.selectbox(
            "Matching products",
            [""] + list(matches),
            format_func=lambda pid: "Use the name as typed" if not pid else (
                f"{matches[pid].name} · {matches[pid].description}"
                if matches[pid].description else matches[pid].name
            ),
        )
        selected_product = matches.get(choice)

    price_text = st.text_input("Price", key="form_price", placeholder="e.g., 298")

    if st.button("Submit price", type="primary"):
        try:
            with st.spinner("Submitting..."):
                result = submit_observed_price(
                    db, users, store,
                    product_name=selected_product.name if selected_product else product_name,
                    price_text=price_text,
                    selected_product=selected_product,
                )
        except SubmissionError as e:
            st.toast(str(e), icon="❌")
            return

        st.session_state.pop("form_matches", None)
        st.toast("Price submitted!", icon="✅")
        st.success(f"{result.product.name}: {price(result.price.price)} at {store.name}")


def render_home():
    st.title("Price Tracker 🛒")
    st.caption("Crowdsourced grocery prices at stores near you")

    location = render_location_input()
    if location is None:
        st.info("Enter your location to see nearby stores.")
        return

    stores = load_nearby_stores(location)
    st.pydeck_chart(build_store_map(stores, location, settings.mapbox_access_token))

    store = None
    if stores:
        store = render_store_list(stores)
    else:
        st.write(f"No stores within {format_distance(settings.search_radius_meters)}.")

    st.markdown("---")
    render_price_form(store)


# ============================================================================
# PRODUCT DETAIL PAGE
# ============================================================================


def render_product_info(product):
    st.title(f"📦 {product.name}")
    if product.description:
        st.write(product.description)
    if product.jan_code:
        st.caption(f"JAN: {product.jan_code}")

    stats = db.get_product_price_stats(product.id)
    cols = st.columns(4)
    cols[0].metric("Lowest", price(stats.min_price))
    cols[1].metric("Highest", price(stats.max_price))
    cols[2].metric("Average", price(stats.avg_price))
    cols[3].metric("Stores", stats.store_count)


def render_price_comparison(product, location):
    st.subheader("Price comparison")
    try:
        rows = db.get_product_prices_with_distance(
            product.id,
            location.lat if location else None,
            location.lng if location else None,
        )
    except BaasError:
        rows = []

    if not rows:
        st.write("No prices reported for this product yet.")
        return

    sort_by = st.radio(
        "Sort by",
        list(SORT_LABELS),
        format_func=SORT_LABELS.get,
        horizontal=True,
    )
    best = cheapest(rows)

    table = pd.DataFrame([
        {
            "Store": ("⭐ " if r.price == best.price else "") + r.store_name,
            "Address": r.address or "",
            "Price": price(r.price),
            "Distance": format_distance(r.distance_meters) if r.distance_meters is not None else "",
            "Updated": format_date(r.last_updated),
        }
        for r in sort_store_prices(rows, sort_by)
    ])
    st.dataframe(table, hide_index=True, use_container_width=True)


def render_price_history(product):
    st.subheader("Price history")
    period = st.radio(
        "Period",
        list(PERIOD_DAYS),
        index=list(PERIOD_DAYS).index(DEFAULT_PERIOD),
        format_func=PERIOD_LABELS.get,
        horizontal=True,
    )

    try:
        points = db.get_price_history(product.id, period_days(period))
    except BaasError:
        points = []

    if not points:
        st.write("No price data for this period.")
        return

    chart = pd.DataFrame(
        [{"date": p.day, "Lowest": p.min_price, "Average": p.avg_price, "Highest": p.max_price}
         for p in points]
    ).set_index("date")
    st.line_chart(chart)

    summary = summarize_history(points)
    cols = st.columns(3)
    cols[0].write(f"Samples: **{summary.sample_count}**")
    cols[1].write(f"Period low: **{price(summary.period_min)}**")
    cols[2].write(f"Period high: **{price(summary.period_max)}**")


def render_related_products(product):
    related = related_products(db, product.id, product.name)
    if not related:
        return

    st.subheader("Related products")
    cols = st.columns(len(related))
    for col, item in zip(cols, related):
        with col:
            st.markdown(f"**{item.name}**")
            if item.min_price is not None:
                st.caption(f"{price(item.min_price)} – {price(item.max_price)}")
            if st.button("View", key=f"related_{item.id}"):
                st.query_params["product"] = item.id
                st.rerun()


def render_product_detail(product_id):
    if st.button("← Back"):
        del st.query_params["product"]
        st.rerun()

    product = db.get_product_by_id(product_id)
    if product is None:
        st.error("Product not found")
        return

    location = location_service().current_location
    if location:
        st.caption("📍 Distances from your location")

    render_product_info(product)
    st.markdown("---")
    render_price_comparison(product, location)
    st.markdown("---")
    render_price_history(product)
    st.markdown("---")
    render_related_products(product)


# ============================================================================
# ROUTING
# ============================================================================

render_product_search()

product_id = st.query_params.get("product")
if product_id:
    render_product_detail(product_id)
else:
    render_home()
