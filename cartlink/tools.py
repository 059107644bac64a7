"""Tool-facing operations.

``ShoppingTools`` is what the CLI, the web API and any tool host call. Each
method validates its arguments before touching an adapter, resolves the
adapter through the factory and hands back the adapter's result with the
error text redacted. Nothing here raises.
"""

from __future__ import annotations

import logging
from typing import Any

from .adapters import AdapterFactory, BaseAdapter
from .errors import ConfigurationError
from .models import Cart, CartItem, PriceRange, ProductSearchOptions, ProductSearchResult, ShoppingOperationResult
from .security import (
    ValidationResult,
    format_secure_error,
    validate_cart_item_id,
    validate_category,
    validate_price_range,
    validate_product_id,
    validate_quantity,
    validate_search_query,
    validate_variant,
)

logger = logging.getLogger(__name__)


class ShoppingTools:
    def __init__(self, factory: AdapterFactory | None = None):
        self.factory = factory or AdapterFactory()

    def _fail(self, website: str, error: str) -> ShoppingOperationResult:
        return ShoppingOperationResult.fail(website, format_secure_error(error))

    def _resolve(self, website: str) -> tuple[BaseAdapter | None, ShoppingOperationResult | None]:
        if not self.factory.is_website_supported(website):
            supported = ", ".join(self.factory.get_supported_websites())
            return None, self._fail(website, f"Unsupported website: {website}. Supported: {supported}")
        try:
            return self.factory.get_adapter(website), None
        except ConfigurationError as exc:
            logger.error("Adapter for %s unavailable: %s", website, format_secure_error(str(exc)))
            return None, self._fail(website, str(exc))

    @staticmethod
    def _first_invalid(*checks: ValidationResult) -> ValidationResult | None:
        return next((check for check in checks if not check.is_valid), None)

    def _redacted(self, result: ShoppingOperationResult) -> ShoppingOperationResult:
        if not result.success:
            result.error = format_secure_error(result.error or "Unknown error")
        return result

    async def search_products(
        self,
        website: str,
        query: Any,
        category: Any = None,
        price_range: PriceRange | dict | None = None,
        limit: int | None = None,
    ) -> ShoppingOperationResult[ProductSearchResult]:
        logger.info("Searching %r on %s", query, website)
        query_check = validate_search_query(query)
        category_check = validate_category(category)
        range_check = validate_price_range(price_range)
        if bad := self._first_invalid(query_check, category_check, range_check):
            return self._fail(website, bad.error)

        adapter, failure = self._resolve(website)
        if failure is not None:
            return failure

        options = ProductSearchOptions(
            query=query_check.sanitized,
            category=category_check.sanitized,
            price_range=range_check.sanitized,
            limit=limit if isinstance(limit, int) and limit > 0 else None,
        )
        return self._redacted(await adapter.search_products(options))

    async def add_to_cart(
        self, website: str, product_id: Any, quantity: Any = 1, variant: Any = None
    ) -> ShoppingOperationResult[CartItem | str]:
        logger.info("Adding to cart: %s (%s) on %s", product_id, quantity, website)
        id_check = validate_product_id(product_id, website)
        quantity_check = validate_quantity(quantity)
        variant_check = validate_variant(variant)
        if bad := self._first_invalid(id_check, quantity_check, variant_check):
            return self._fail(website, bad.error)
        if quantity_check.sanitized < 1:
            return self._fail(website, "Quantity must be at least 1")

        adapter, failure = self._resolve(website)
        if failure is not None:
            return failure
        return self._redacted(
            await adapter.add_to_cart(id_check.sanitized, quantity_check.sanitized, variant_check.sanitized)
        )

    async def remove_from_cart(self, website: str, cart_item_id: Any) -> ShoppingOperationResult[bool]:
        logger.info("Removing from cart: %s on %s", cart_item_id, website)
        id_check = validate_cart_item_id(cart_item_id)
        if not id_check.is_valid:
            return self._fail(website, id_check.error)

        adapter, failure = self._resolve(website)
        if failure is not None:
            return failure
        return self._redacted(await adapter.remove_from_cart(id_check.sanitized))

    async def update_cart_quantity(
        self, website: str, cart_item_id: Any, quantity: Any
    ) -> ShoppingOperationResult[CartItem]:
        logger.info("Updating cart quantity: %s to %s on %s", cart_item_id, quantity, website)
        id_check = validate_cart_item_id(cart_item_id)
        quantity_check = validate_quantity(quantity)
        if bad := self._first_invalid(id_check, quantity_check):
            return self._fail(website, bad.error)

        adapter, failure = self._resolve(website)
        if failure is not None:
            return failure
        return self._redacted(
            await adapter.update_cart_quantity(id_check.sanitized, quantity_check.sanitized)
        )

    async def get_cart_contents(self, website: str) -> ShoppingOperationResult[Cart]:
        logger.info("Getting cart contents for %s", website)
        adapter, failure = self._resolve(website)
        if failure is not None:
            return failure
        return self._redacted(await adapter.get_cart_contents())

    async def aclose(self) -> None:
        await self.factory.aclose()
