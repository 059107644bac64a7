"""Data models shared by every retailer adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

UNAVAILABLE_SUFFIX = "-unavailable"


@dataclass
class Product:
    """A retailer-neutral product as returned by search."""

    id: str
    title: str
    description: str
    price: float
    currency: str
    availability: bool
    image_url: str | None = None
    rating: float | None = None
    review_count: int | None = None
    category: str | None = None
    brand: str | None = None
    url: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "currency": self.currency,
            "imageUrl": self.image_url,
            "availability": self.availability,
            "rating": self.rating,
            "reviewCount": self.review_count,
            "category": self.category,
            "brand": self.brand,
            "url": self.url,
        }


@dataclass
class PriceRange:
    min: float
    max: float

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


@dataclass
class ProductSearchOptions:
    query: str
    category: str | None = None
    price_range: PriceRange | None = None
    limit: int | None = None


@dataclass
class ProductSearchResult:
    products: list[Product]
    total_count: int
    has_more: bool
    next_page_token: str | None = None

    def to_dict(self) -> dict:
        return {
            "products": [p.to_dict() for p in self.products],
            "totalCount": self.total_count,
            "hasMore": self.has_more,
            "nextPageToken": self.next_page_token,
        }


@dataclass
class DiscountTier:
    """A "buy N for P" rule attached to a product.

    ``valid_from``/``valid_to`` are informational only; whether a sale is
    running is decided upstream and reported through ``active``.
    """

    threshold_qty: int
    bundle_price: float
    max_discounted_qty: int | None = None
    club_only: bool = False
    active: bool = True
    valid_from: str | None = None
    valid_to: str | None = None
    code: str | None = None
    label: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> DiscountTier:
        """Build a tier from a Rami Levy ``sale`` record."""

        def num(value: Any, default: float = 0) -> float:
            if isinstance(value, bool) or value is None:
                return default
            try:
                return float(value)
            except (TypeError, ValueError):
                return default

        cap = num(raw.get("max_in_doc"))
        code = raw.get("code")
        return cls(
            threshold_qty=int(num(raw.get("cmt"))),
            bundle_price=num(raw.get("scm")),
            max_discounted_qty=int(cap) if cap > 0 else None,
            club_only=num(raw.get("is_club")) == 1,
            active=num(raw.get("active")) == 1,
            valid_from=raw.get("from"),
            valid_to=raw.get("to"),
            code=str(code) if code is not None else None,
            label=raw.get("label") or raw.get("name"),
        )

    @property
    def is_capped(self) -> bool:
        return self.max_discounted_qty is not None and self.max_discounted_qty > 0

    @property
    def is_well_formed(self) -> bool:
        """Active with a positive threshold and bundle price."""
        return self.active and self.threshold_qty > 0 and self.bundle_price > 0


@dataclass
class PriceQuote:
    """Outcome of pricing ``quantity`` units of one product."""

    unit_price: float
    total_price: float
    sale_annotation: str | None = None


@dataclass
class CartItem:
    """A single cart line.

    ``id`` is adapter-qualified; ``product_id`` is the raw upstream id used to
    rebuild update payloads.
    """

    id: str
    product_id: str
    product_title: str
    quantity: int
    unit_price: float
    total_price: float
    variant: str | None = None
    image_url: str | None = None

    @property
    def is_unavailable(self) -> bool:
        return self.id.endswith(UNAVAILABLE_SUFFIX)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "productTitle": self.product_title,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
            "variant": self.variant,
            "imageUrl": self.image_url,
        }


@dataclass
class Cart:
    """Cart snapshot.

    ``total_items`` counts every line, ``total_price`` only lines that can
    actually be bought at the active store.
    """

    items: list[CartItem] = field(default_factory=list)
    total_items: int = 0
    total_price: float = 0.0
    currency: str = "ILS"

    @classmethod
    def empty(cls, currency: str = "ILS") -> Cart:
        return cls(items=[], total_items=0, total_price=0.0, currency=currency)

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.items],
            "totalItems": self.total_items,
            "totalPrice": self.total_price,
            "currency": self.currency,
        }


@dataclass
class ShoppingOperationResult(Generic[T]):
    """Uniform result returned by every adapter method."""

    success: bool
    website: str
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, website: str, data: T) -> ShoppingOperationResult[T]:
        return cls(success=True, website=website, data=data)

    @classmethod
    def fail(cls, website: str, error: str) -> ShoppingOperationResult[T]:
        return cls(success=False, website=website, error=error)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        payload: dict[str, Any] = {"success": self.success, "website": self.website}
        if self.success:
            data = self.data
            payload["data"] = data.to_dict() if hasattr(data, "to_dict") else data
        else:
            payload["error"] = self.error
        return payload
