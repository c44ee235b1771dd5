"""Display formatting for distances, timestamps and prices."""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

CURRENCY_SYMBOLS = {
    "JPY": "¥",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}


def _round_half_up(value: Union[float, Decimal], step: str = "1") -> Decimal:
    # halves round away from zero, not to even
    return Decimal(str(value)).quantize(Decimal(step), rounding=ROUND_HALF_UP)


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{_round_half_up(meters)}m"
    return f"{_round_half_up(Decimal(str(meters)).scaleb(-3), '0.1')}km"


def _as_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(value: Union[str, datetime], now: Optional[datetime] = None) -> str:
    """
    Relative description of a timestamp.

    Same day: minutes or hours ago. Then "Yesterday", days (< 7),
    weeks (< 30), and finally the calendar date in local time.
    """
    moment = _as_datetime(value)
    now = _as_datetime(now) if now is not None else datetime.now(timezone.utc)

    # clock skew can put fresh rows slightly in the future
    diff_seconds = max((now - moment).total_seconds(), 0)
    diff_days = int(diff_seconds // 86400)

    if diff_days == 0:
        diff_hours = int(diff_seconds // 3600)
        if diff_hours == 0:
            return f"{int(diff_seconds // 60)} minutes ago"
        return f"{diff_hours} hours ago"
    if diff_days == 1:
        return "Yesterday"
    if diff_days < 7:
        return f"{diff_days} days ago"
    if diff_days < 30:
        return f"{diff_days // 7} weeks ago"
    return moment.astimezone().date().isoformat()


def format_price(price: float, currency: str = "JPY") -> str:
    """Currency amount without minor digits, e.g. ¥1,298"""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    return f"{symbol}{int(_round_half_up(price)):,}"
