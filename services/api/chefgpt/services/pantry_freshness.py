from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

EXPIRING_WITHIN_DAYS = 3
WARNING_WITHIN_DAYS = 7


class ExpiryStatus(str, Enum):
    NO_DATE = "no-date"
    EXPIRED = "expired"
    EXPIRING = "expiring"
    WARNING = "warning"
    FRESH = "fresh"


def _as_date(value: date) -> date:
    return value.date() if isinstance(value, datetime) else value


def days_until_expiry(expiry_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Whole days from today to the expiry date; negative once expired."""
    if expiry_date is None:
        return None
    today = _as_date(today or date.today())
    return (_as_date(expiry_date) - today).days


def classify_expiry(expiry_date: Optional[date], today: Optional[date] = None) -> ExpiryStatus:
    """
    Bucket a pantry item by days until expiry:
    < 0 expired, 0-3 expiring, 4-7 warning, > 7 fresh.
    """
    days = days_until_expiry(expiry_date, today)
    if days is None:
        return ExpiryStatus.NO_DATE
    if days < 0:
        return ExpiryStatus.EXPIRED
    if days <= EXPIRING_WITHIN_DAYS:
        return ExpiryStatus.EXPIRING
    if days <= WARNING_WITHIN_DAYS:
        return ExpiryStatus.WARNING
    return ExpiryStatus.FRESH


def summarize_expiry(items: Iterable[Any], today: Optional[date] = None) -> dict[str, int]:
    """Count pantry items per status. Every status is present, zero or not."""
    today = today or date.today()
    counts = {status.value: 0 for status in ExpiryStatus}
    for item in items:
        expiry = item.get("expiry_date") if isinstance(item, Mapping) else getattr(item, "expiry_date", None)
        counts[classify_expiry(expiry, today).value] += 1
    return counts


_USE_FIRST_ORDER = {
    ExpiryStatus.EXPIRING: 0,
    ExpiryStatus.WARNING: 1,
    ExpiryStatus.FRESH: 2,
    ExpiryStatus.NO_DATE: 3,
}


def prioritize_for_cooking(items: Iterable[Any], today: Optional[date] = None) -> list[Any]:
    """Usable pantry items, soonest-to-expire first. Expired items are left out."""
    today = today or date.today()
    ranked = []
    for position, item in enumerate(items):
        expiry = getattr(item, "expiry_date", None)
        status = classify_expiry(expiry, today)
        if status is ExpiryStatus.EXPIRED:
            continue
        days = days_until_expiry(expiry, today)
        ranked.append((_USE_FIRST_ORDER[status], days if days is not None else 0, position, item))
    ranked.sort(key=lambda row: row[:3])
    return [row[3] for row in ranked]
