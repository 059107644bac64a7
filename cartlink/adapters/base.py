"""Base adapter class for all retailers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

import httpx

from ..config import DEFAULT_HTTP_TIMEOUT, env_value, http_timeout
from ..errors import ConfigurationError
from ..models import Cart, CartItem, Product, ProductSearchOptions, ProductSearchResult, ShoppingOperationResult
from ..security import format_secure_error
from ..transport import ApiClient
from ..utils import sanitize_url, strip_brackets, to_number

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """Abstract base class for all retailer adapters.

    Public methods never raise: they return a ``ShoppingOperationResult``.
    Adapters may return a "not implemented" failure for operations the
    retailer does not expose.
    """

    name: str
    display_name: str
    base_url: str
    currency: str = "ILS"
    rate_limit_per_minute: int = 60
    requires_auth: bool = False
    # Environment variables that must be set before the adapter can be built.
    credential_vars: tuple[str, ...] = ()
    optional_vars: tuple[str, ...] = ()

    def __init__(
        self,
        credentials: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ):
        self.credentials: dict[str, str] = dict(credentials or {})
        missing = [var for var in self.credential_vars if not self.credentials.get(var)]
        if missing:
            raise ConfigurationError(f"{self.display_name} adapter requires {', '.join(missing)}")
        self._transport = transport
        self._timeout = timeout
        self._clients: list[ApiClient] = []

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> BaseAdapter:
        """Build the adapter from an environment/config mapping."""
        credentials = {}
        for var in (*cls.credential_vars, *cls.optional_vars):
            if (value := env_value(env, var)) is not None:
                credentials[var] = value
        return cls(credentials, transport=transport, timeout=http_timeout(env))

    @classmethod
    def missing_config(cls, env: Mapping[str, str] | None = None) -> list[str]:
        """Names of required variables that ``env`` does not provide."""
        return [var for var in cls.credential_vars if env_value(env, var) is None]

    @abstractmethod
    async def search_products(
        self, options: ProductSearchOptions
    ) -> ShoppingOperationResult[ProductSearchResult]:
        ...

    @abstractmethod
    async def add_to_cart(
        self, product_id: str, quantity: int, variant: str | None = None
    ) -> ShoppingOperationResult[CartItem | str]:
        ...

    @abstractmethod
    async def remove_from_cart(self, cart_item_id: str) -> ShoppingOperationResult[bool]:
        ...

    @abstractmethod
    async def update_cart_quantity(
        self, cart_item_id: str, quantity: int
    ) -> ShoppingOperationResult[CartItem]:
        ...

    @abstractmethod
    async def get_cart_contents(self) -> ShoppingOperationResult[Cart]:
        ...

    def get_rate_limit(self) -> int:
        return self.rate_limit_per_minute

    def _client(self, base_url: str, headers: dict[str, str]) -> ApiClient:
        client = ApiClient(base_url, headers, timeout=self._timeout, transport=self._transport)
        self._clients.append(client)
        return client

    async def aclose(self) -> None:
        """Close every HTTP client this adapter opened."""
        for client in self._clients:
            await client.aclose()
        self._clients.clear()

    def _ok(self, data: Any) -> ShoppingOperationResult:
        return ShoppingOperationResult.ok(self.name, data)

    def _fail(self, error: str) -> ShoppingOperationResult:
        return ShoppingOperationResult.fail(self.name, error)

    def _not_implemented(self, operation: str) -> ShoppingOperationResult:
        return self._fail(f"{operation} is not implemented for {self.display_name}")

    def _error(self, action: str, exc: Exception) -> ShoppingOperationResult:
        """Log an unexpected failure and turn it into a result."""
        message = format_secure_error(f"Failed to {action} on {self.display_name}: {exc}")
        logger.error("[%s] %s", self.display_name, message)
        return self._fail(message)

    def sanitize_product(self, raw: Mapping[str, Any]) -> Product:
        """Build a ``Product`` with capped, bracket-free text and safe URLs."""
        rating = to_number(raw.get("rating"))
        review_count = to_number(raw.get("review_count"))
        category = raw.get("category")
        brand = raw.get("brand")
        return Product(
            id=strip_brackets(raw.get("id"), 100),
            title=strip_brackets(raw.get("title"), 200),
            description=strip_brackets(raw.get("description"), 1000),
            price=max(to_number(raw.get("price")) or 0.0, 0.0),
            currency=str(raw.get("currency") or self.currency)[:3],
            image_url=sanitize_url(raw.get("image_url")),
            availability=bool(raw.get("availability")),
            rating=min(max(rating, 0.0), 5.0) if rating is not None else None,
            review_count=max(int(review_count), 0) if review_count is not None else None,
            category=strip_brackets(category, 100) if category else None,
            brand=strip_brackets(brand, 100) if brand else None,
            url=sanitize_url(raw.get("url")),
        )
