"""
Utility functions for TripSplit application
"""
from __future__ import annotations
import os
import sys
import uuid
from datetime import date, datetime

CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "CA$",
    "AUD": "A$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "CN¥",
    "INR": "₹",
    "KRW": "₩",
}


def today_str() -> str:
    """Get today's date as ISO string"""
    return date.today().isoformat()


def parse_date(s: str) -> date:
    """Parse YYYY-MM-DD date string"""
    return datetime.strptime(s.strip(), "%Y-%m-%d").date()


def safe_float(x: str, default: float = 0.0) -> float:
    """Convert string to float safely, returning default on error"""
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def new_id() -> str:
    return str(uuid.uuid4())


def format_currency(amount: float, code: str) -> str:
    """
    Format amount for display, e.g. 1234.5, "USD" -> "$1,234.50".
    Codes without a known symbol fall back to "CODE 1,234.50".
    """
    code = (code or "").upper()
    sign = "-" if amount < 0 else ""
    body = f"{abs(amount):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{body}"
    return f"{code} {sign}{body}".strip()


def app_dir() -> str:
    """
    Get application data directory.
    macOS: ~/Library/Application Support/TripSplit, elsewhere: $XDG_DATA_HOME/tripsplit.
    Creates directory if it doesn't exist.
    """
    if sys.platform == "darwin":
        path = os.path.join(os.path.expanduser("~/Library/Application Support"), "TripSplit")
    else:
        base = os.environ.get("XDG_DATA_HOME") or os.path.expanduser("~/.local/share")
        path = os.path.join(base, "tripsplit")
    os.makedirs(path, exist_ok=True)
    return path
