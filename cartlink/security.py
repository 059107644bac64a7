"""Input validation and redaction for shopping operations.

Every validator is a pure function. None of them touch the network, so the
tool layer can run them all before resolving an adapter.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from numbers import Real
from typing import Any

from .models import PriceRange

_DANGEROUS = re.compile(r"[<>'\"\\]")
_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]*>")
_JS_PROTOCOL = re.compile(r"javascript:", re.IGNORECASE)
_SENSITIVE = re.compile(r"api[_-]?key|token|password|secret|credential", re.IGNORECASE)

REDACTED = "[REDACTED]"
MAX_ERROR_LENGTH = 500
MAX_PRICE = 1_000_000
MAX_QUANTITY = 100

# Per-retailer product id shapes. Retailers not listed are not checked.
PRODUCT_ID_PATTERNS: dict[str, tuple[re.Pattern[str], str]] = {
    "rami-levy": (re.compile(r"[0-9]+"), "Invalid Rami Levy product ID format (must be numeric)"),
}


@dataclass
class ValidationResult:
    is_valid: bool
    sanitized: Any = None
    error: str | None = None

    @classmethod
    def valid(cls, sanitized: Any = None) -> ValidationResult:
        return cls(is_valid=True, sanitized=sanitized)

    @classmethod
    def invalid(cls, error: str, sanitized: Any = None) -> ValidationResult:
        return cls(is_valid=False, sanitized=sanitized, error=error)


def validate_search_query(query: Any) -> ValidationResult:
    """Strip quote/bracket/backslash characters and enforce 2..200 chars."""
    if not query or not isinstance(query, str):
        return ValidationResult.invalid("Search query is required", sanitized="")

    sanitized = _DANGEROUS.sub("", query).strip()[:200]

    if not sanitized:
        return ValidationResult.invalid(
            "Search query cannot be empty after sanitization", sanitized=""
        )
    if len(sanitized) < 2:
        return ValidationResult.invalid(
            "Search query must be at least 2 characters", sanitized=sanitized
        )
    return ValidationResult.valid(sanitized)


def validate_product_id(product_id: Any, website: str) -> ValidationResult:
    if not product_id or not isinstance(product_id, str):
        return ValidationResult.invalid("Product ID is required")

    sanitized = product_id.strip()
    if not sanitized:
        return ValidationResult.invalid("Product ID cannot be empty")
    if len(sanitized) > 100:
        return ValidationResult.invalid("Product ID too long")

    if (rule := PRODUCT_ID_PATTERNS.get(website)) is not None:
        pattern, message = rule
        if not pattern.fullmatch(sanitized):
            return ValidationResult.invalid(message)

    return ValidationResult.valid(sanitized)


def validate_cart_item_id(cart_item_id: Any) -> ValidationResult:
    if not cart_item_id or not isinstance(cart_item_id, str):
        return ValidationResult.invalid("Cart item ID is required")

    sanitized = cart_item_id.strip()
    if not sanitized:
        return ValidationResult.invalid("Cart item ID cannot be empty")
    if len(sanitized) > 100:
        return ValidationResult.invalid("Cart item ID too long")
    if _DANGEROUS.search(sanitized):
        return ValidationResult.invalid("Cart item ID contains invalid characters")

    return ValidationResult.valid(sanitized)


def validate_quantity(quantity: Any) -> ValidationResult:
    """Accept whole numbers in 0..100. Zero is allowed: it means "remove"."""
    if isinstance(quantity, bool) or not isinstance(quantity, Real):
        return ValidationResult.invalid("Quantity must be a number")
    if isinstance(quantity, float) and math.isnan(quantity):
        return ValidationResult.invalid("Quantity must be a number")
    if isinstance(quantity, float) and not quantity.is_integer():
        return ValidationResult.invalid("Quantity must be a whole number")

    value = int(quantity)
    if value < 0:
        return ValidationResult.invalid("Quantity cannot be negative")
    if value > MAX_QUANTITY:
        return ValidationResult.invalid(f"Quantity cannot exceed {MAX_QUANTITY}")

    return ValidationResult.valid(value)


def validate_price_range(price_range: PriceRange | dict | None) -> ValidationResult:
    if price_range is None:
        return ValidationResult.valid()

    if isinstance(price_range, dict):
        low, high = price_range.get("min"), price_range.get("max")
    else:
        low, high = price_range.min, price_range.max

    for bound in (low, high):
        if isinstance(bound, bool) or not isinstance(bound, Real) or math.isnan(bound):
            return ValidationResult.invalid("Price range min and max must be numbers")

    if low < 0 or high < 0:
        return ValidationResult.invalid("Price range values cannot be negative")
    if low > high:
        return ValidationResult.invalid("Price range minimum cannot be greater than maximum")
    if high > MAX_PRICE:
        return ValidationResult.invalid("Price range maximum too high")

    return ValidationResult.valid(PriceRange(min=float(low), max=float(high)))


def _validate_optional_text(value: Any, label: str, limit: int) -> ValidationResult:
    if value is None or value == "":
        return ValidationResult.valid()
    if not isinstance(value, str):
        return ValidationResult.invalid(f"{label} must be a string")

    sanitized = _DANGEROUS.sub("", value).strip()[:limit]
    if not sanitized:
        return ValidationResult.invalid(f"{label} cannot be empty after sanitization")
    return ValidationResult.valid(sanitized)


def validate_category(category: Any) -> ValidationResult:
    return _validate_optional_text(category, "Category", 100)


def validate_variant(variant: Any) -> ValidationResult:
    return _validate_optional_text(variant, "Variant", 200)


def sanitize_response_text(text: Any) -> str:
    """Strip markup and ``javascript:`` from upstream text."""
    if not isinstance(text, str):
        return ""
    text = _SCRIPT_BLOCK.sub("", text)
    text = _HTML_TAG.sub("", text)
    text = _JS_PROTOCOL.sub("", text)
    return text[:10000]


def format_secure_error(message: str) -> str:
    """Redact credential-looking words and cap the message length."""
    return _SENSITIVE.sub(REDACTED, str(message))[:MAX_ERROR_LENGTH]
