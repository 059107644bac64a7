"""Shared helpers for adapters."""

import math
import re
from typing import Any
from urllib.parse import urlparse, urlunparse

CURRENCY_MAP = {
    "₪": "ILS",
    "ils": "ILS",
    "nis": "ILS",
    "ש\"ח": "ILS",
    "€": "EUR",
    "eur": "EUR",
    "$": "USD",
    "usd": "USD",
}

_ANGLE_BRACKETS = re.compile(r"[<>]")


def strip_brackets(value: Any, limit: int) -> str:
    """Coerce to text, drop angle brackets and cap the length."""
    if value is None:
        return ""
    return _ANGLE_BRACKETS.sub("", str(value))[:limit]


def sanitize_url(url: Any) -> str | None:
    """Return a normalized http(s) URL, or None for anything else."""
    if not url or not isinstance(url, str):
        return None
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return urlunparse(parsed)


def absolute_url(base: str, path: str | None) -> str | None:
    if not path:
        return None
    if path.startswith("http://") or path.startswith("https://"):
        return path
    if path.startswith("//"):
        return f"https:{path}"
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def to_number(value: Any) -> float | None:
    """Finite numeric value of ``value`` or None; booleans are not numbers."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        amount, _ = parse_price(value)
        return amount
    return None


def format_amount(value: float) -> str:
    """Render an amount with at most two decimals and no trailing zeros."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def parse_price(price_text: str | None) -> tuple[float | None, str | None]:
    """Parse price text into (amount, currency).

    Handles formats like:
    - "12.90 ₪"
    - "₪ 1,299.00"
    - "ILS 7"
    - "9,90"
    """
    if not price_text:
        return None, None

    text = price_text.strip().lower()

    currency = None
    for symbol, normalized in CURRENCY_MAP.items():
        if symbol in text:
            currency = normalized
            text = text.replace(symbol, "")
            break

    if not (match := re.search(r"[\d][\d\s.,]*", text)):
        return None, currency

    num = match.group(0).replace(" ", "").replace("\xa0", "").rstrip(".,")

    last_comma = num.rfind(",")
    last_dot = num.rfind(".")

    if last_comma != -1 and last_dot != -1:
        # Assume last separator is decimal; the other is thousands.
        if last_comma > last_dot:
            num = num.replace(".", "").replace(",", ".")
        else:
            num = num.replace(",", "")
    elif last_comma != -1:
        digits_after = len(num) - last_comma - 1
        if 1 <= digits_after <= 2:
            num = num.replace(",", ".")
        else:
            num = num.replace(",", "")

    try:
        return float(num), currency
    except ValueError:
        return None, currency
