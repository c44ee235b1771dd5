import time
from datetime import datetime, timedelta, timezone

import pytest

from utils import format_date, format_distance, format_price

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("meters, expected", [
    (0, "0m"),
    (420.4, "420m"),
    (999, "999m"),
    (1000, "1.0km"),
    (1549, "1.5km"),
    (12345, "12.3km"),
    (500.5, "501m"),
    (1250, "1.3km"),
    (1050, "1.1km"),
])
def test_format_distance(meters, expected):
    assert format_distance(meters) == expected


@pytest.mark.parametrize("delta, expected", [
    (timedelta(minutes=5), "5 minutes ago"),
    (timedelta(hours=3, minutes=10), "3 hours ago"),
    (timedelta(days=1, hours=2), "Yesterday"),
    (timedelta(days=4), "4 days ago"),
    (timedelta(days=15), "2 weeks ago"),
])
def test_format_date_relative(delta, expected):
    assert format_date(NOW - delta, now=NOW) == expected


@pytest.fixture
def local_tz(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset unavailable")

    def apply(name):
        monkeypatch.setenv("TZ", name)
        time.tzset()

    yield apply
    monkeypatch.undo()
    time.tzset()


def test_format_date_old_shows_calendar_date(local_tz):
    local_tz("UTC0")
    assert format_date("2024-01-02T08:00:00Z", now=NOW) == "2024-01-02"


def test_format_date_accepts_iso_strings_and_future_skew():
    assert format_date("2024-06-15T11:30:00+00:00", now=NOW) == "30 minutes ago"
    assert format_date(NOW + timedelta(seconds=5), now=NOW) == "0 minutes ago"


def test_format_price():
    assert format_price(298) == "¥298"
    assert format_price(1298.4) == "¥1,298"
    assert format_price(3.99, currency="USD") == "$4"
    assert format_price(10, currency="CHF") == "CHF 10"


def test_format_price_rounds_halves_up():
    assert format_price(298.5) == "¥299"
    assert format_price((297 + 300) / 2) == "¥299"
    assert format_price(2.5, currency="USD") == "$3"


def test_format_date_old_uses_local_calendar_date(local_tz):
    local_tz("JST-9")
    # 20:00 UTC is already the next morning in Tokyo
    assert format_date("2024-01-01T20:00:00Z", now=NOW) == "2024-01-02"
