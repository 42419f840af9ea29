"""
Stock status classification.

One status per drug, checked in priority order (first match wins):
EXPIRED > EXPIRING_SOON > OUT_OF_STOCK > LOW_STOCK > IN_STOCK.
Expiry dominates quantity: an expired drug with zero units is EXPIRED.
"""
import enum
from datetime import date, datetime, timedelta
from typing import Optional

LOW_STOCK_THRESHOLD = 20
EXPIRY_WARNING_DAYS = 90


class StockStatus(str, enum.Enum):
    IN_STOCK = "In Stock"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"
    EXPIRING_SOON = "Expiring Soon"
    EXPIRED = "Expired"


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


def classify_stock(quantity: int, expiry_date, today: Optional[date] = None) -> StockStatus:
    """Classify by quantity and expiry at day granularity."""
    today = _as_date(today) if today is not None else date.today()
    expiry = _as_date(expiry_date)

    if expiry < today:
        return StockStatus.EXPIRED
    if expiry < today + timedelta(days=EXPIRY_WARNING_DAYS):
        return StockStatus.EXPIRING_SOON
    if quantity == 0:
        return StockStatus.OUT_OF_STOCK
    if quantity < LOW_STOCK_THRESHOLD:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def get_stock_status(drug, today: Optional[date] = None) -> StockStatus:
    return classify_stock(drug.quantity, drug.expiry_date, today)


def days_until_expiry(drug, today: Optional[date] = None) -> int:
    today = _as_date(today) if today is not None else date.today()
    return (_as_date(drug.expiry_date) - today).days
