"""Adapter for rami-levy.co.il.

Search, add, remove, update and cart listing all go through the site's
private JSON API. The cart endpoint only accepts a full replacement cart, so
remove/update read the current cart, edit it locally and write it back. A
change made elsewhere between the read and the write is lost; the API has no
version token to detect that.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from .. import config
from ..errors import UpstreamError
from ..models import (
    UNAVAILABLE_SUFFIX,
    Cart,
    CartItem,
    DiscountTier,
    ProductSearchOptions,
    ProductSearchResult,
    ShoppingOperationResult,
)
from ..pricing import calculate_best_price
from ..utils import absolute_url, strip_brackets, to_number
from .base import BaseAdapter

logger = logging.getLogger(__name__)

SITE_URL = "https://www.rami-levy.co.il"
USER_API_URL = "https://www-api.rami-levy.co.il/api"


def _quantity(value: Any) -> int | float:
    amount = to_number(value) or 0
    return int(amount) if float(amount).is_integer() else amount


def _status_ok(payload: Mapping[str, Any]) -> bool:
    status = payload.get("status")
    return status is None or str(status) == "200"


class RamiLevyAdapter(BaseAdapter):
    """Rami Levy online supermarket."""

    name = "rami-levy"
    display_name = "Rami Levy"
    base_url = f"{SITE_URL}/api"
    currency = "ILS"
    requires_auth = True
    credential_vars = (
        config.RAMI_LEVY_API_KEY,
        config.RAMI_LEVY_ECOM_TOKEN,
        config.RAMI_LEVY_COOKIE,
    )
    optional_vars = (config.RAMI_LEVY_USER_ID, config.RAMI_LEVY_STORE_ID)

    def __init__(self, credentials: Mapping[str, str] | None = None, **kwargs: Any):
        super().__init__(credentials, **kwargs)
        self.store = self.credentials.get(config.RAMI_LEVY_STORE_ID) or config.DEFAULT_RAMI_LEVY_STORE
        self.user_id = self.credentials.get(config.RAMI_LEVY_USER_ID)

        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "locale": "he",
            "origin": SITE_URL,
            "referer": f"{SITE_URL}/he/online/search",
            "user-agent": config.USER_AGENT,
            "Authorization": f"Bearer {self.credentials[config.RAMI_LEVY_API_KEY]}",
            "Ecomtoken": self.credentials[config.RAMI_LEVY_ECOM_TOKEN],
            "Cookie": self.credentials[config.RAMI_LEVY_COOKIE],
        }
        self.api = self._client(self.base_url, headers)
        self.user_api = self._client(USER_API_URL, headers)

    # --- search ---

    async def search_products(
        self, options: ProductSearchOptions
    ) -> ShoppingOperationResult[ProductSearchResult]:
        try:
            logger.info("[%s] Searching for: %r", self.display_name, options.query)
            response = await self.api.post(
                "/catalog", {"q": options.query, "store": self.store, "aggs": 1}
            )
            if not isinstance(response, dict) or not _status_ok(response):
                return self._fail("Search request failed")

            items = response.get("data")
            if not isinstance(items, list):
                return self._fail("Search request returned no product list")

            products = [
                self.sanitize_product(self._product_fields(item, options.category))
                for item in items
                if isinstance(item, dict)
            ]
            if options.price_range is not None:
                products = [p for p in products if options.price_range.contains(p.price)]
            if options.limit:
                products = products[: options.limit]

            total = to_number(response.get("total")) or 0
            return self._ok(
                ProductSearchResult(
                    products=products,
                    total_count=len(products),
                    has_more=total > len(items),
                )
            )
        except Exception as exc:
            return self._error("search products", exc)

    def _product_fields(self, item: Mapping[str, Any], category: str | None) -> dict[str, Any]:
        name = item.get("name") or ""
        price = item.get("price")
        available_in = item.get("available_in")
        gs = item.get("gs") if isinstance(item.get("gs"), dict) else {}
        department = item.get("department") if isinstance(item.get("department"), dict) else {}
        return {
            "id": item.get("id"),
            "title": name,
            # The catalog has no separate description.
            "description": name,
            "price": price.get("price") if isinstance(price, dict) else price,
            "currency": self.currency,
            "image_url": self._image_url(item),
            "availability": self._in_store(available_in) if isinstance(available_in, list) else True,
            "category": category or department.get("name"),
            "brand": gs.get("BrandName") or self.display_name,
        }

    @staticmethod
    def _image_url(item: Mapping[str, Any]) -> str | None:
        images = item.get("images")
        if isinstance(images, dict):
            return absolute_url(SITE_URL, images.get("small"))
        return None

    def _in_store(self, available_in: list[Any]) -> bool:
        return self.store in {str(store) for store in available_in}

    # --- cart writes ---

    def _cart_payload(self, items: Mapping[str, int | float]) -> dict[str, Any]:
        supply_at = datetime.now(UTC) + timedelta(days=1)
        return {
            "store": self.store,
            "isClub": 0,
            "supplyAt": supply_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "items": {pid: str(qty) for pid, qty in items.items()},
            "meta": None,
        }

    async def _push_cart(self, items: Mapping[str, int | float]) -> Any:
        """Replace the whole remote cart with ``items`` (product id -> qty)."""
        logger.debug("[%s] Writing cart: %s", self.display_name, dict(items))
        return await self.api.post("/v2/cart", self._cart_payload(items))

    async def add_to_cart(
        self, product_id: str, quantity: int, variant: str | None = None
    ) -> ShoppingOperationResult[CartItem]:
        try:
            logger.info("[%s] Adding to cart: %s, qty: %s", self.display_name, product_id, quantity)
            response = await self._push_cart({product_id: quantity})
            if not isinstance(response, dict) or not _status_ok(response):
                return self._fail("Failed to add item to cart")

            lines = response.get("items")
            added = next(
                (
                    line
                    for line in (lines if isinstance(lines, list) else [])
                    if isinstance(line, dict) and str(line.get("id")) == product_id
                ),
                None,
            )
            if added is None:
                return self._fail("Item was not added to cart")

            unit_price = to_number(added.get("price")) or 0.0
            line_qty = _quantity(added.get("quantity"))
            return self._ok(
                CartItem(
                    id=f"{self.name}-{product_id}",
                    product_id=product_id,
                    product_title=strip_brackets(added.get("name"), 200),
                    quantity=line_qty,
                    unit_price=unit_price,
                    total_price=to_number(added.get("FormatedTotalPrice")) or unit_price * line_qty,
                    variant=variant,
                )
            )
        except Exception as exc:
            return self._error("add product to cart", exc)

    @staticmethod
    def _writable_items(cart: Cart) -> dict[str, int | float]:
        """Product id -> quantity for lines that can be written back."""
        return {item.product_id: item.quantity for item in cart.items if not item.is_unavailable}

    async def remove_from_cart(self, cart_item_id: str) -> ShoppingOperationResult[bool]:
        try:
            logger.info("[%s] Removing from cart: %s", self.display_name, cart_item_id)
            current = await self.get_cart_contents()
            if not current.success:
                return self._fail(f"Failed to get current cart contents: {current.error}")

            target = next((item for item in current.data.items if item.id == cart_item_id), None)
            if target is None:
                return self._fail("Cart item not found")

            # Unavailable lines are dropped from the rewritten cart as well.
            items = self._writable_items(current.data)
            items.pop(target.product_id, None)
            await self._push_cart(items)
            return self._ok(True)
        except Exception as exc:
            return self._error("remove item from cart", exc)

    async def update_cart_quantity(
        self, cart_item_id: str, quantity: int
    ) -> ShoppingOperationResult[CartItem]:
        try:
            logger.info(
                "[%s] Updating cart quantity: %s, new qty: %s", self.display_name, cart_item_id, quantity
            )
            current = await self.get_cart_contents()
            if not current.success:
                return self._fail(f"Failed to get current cart contents: {current.error}")

            target = next((item for item in current.data.items if item.id == cart_item_id), None)
            if target is None:
                return self._fail("Cart item not found")

            if quantity == 0:
                removed = await self.remove_from_cart(cart_item_id)
                if not removed.success:
                    return self._fail(removed.error or "Failed to remove item")
                return self._ok(
                    CartItem(
                        id=cart_item_id,
                        product_id=target.product_id,
                        product_title=target.product_title,
                        quantity=0,
                        unit_price=target.unit_price,
                        total_price=0.0,
                    )
                )

            if target.is_unavailable:
                return self._fail(f"Cart item is not available in store {self.store}")

            items = self._writable_items(current.data)
            items[target.product_id] = quantity
            await self._push_cart(items)

            updated = await self.get_cart_contents()
            if not updated.success:
                return self._fail(f"Failed to get updated cart contents: {updated.error}")
            item = next((i for i in updated.data.items if i.id == cart_item_id), None)
            if item is None:
                return self._fail("Updated item not found in cart after update")
            return self._ok(item)
        except Exception as exc:
            return self._error("update cart quantity", exc)

    # --- cart read ---

    async def get_cart_contents(self) -> ShoppingOperationResult[Cart]:
        try:
            logger.info("[%s] Getting cart contents", self.display_name)
            if not self.user_id:
                return self._fail(f"Missing Rami Levy user ID ({config.RAMI_LEVY_USER_ID})")

            user = await self.user_api.get(f"/v2/site/clubs/customer/{self.user_id}")
            if not isinstance(user, dict):
                raise UpstreamError("Invalid response from customer API")
            cart_record = user.get("cart")
            quantities = cart_record.get("items") if isinstance(cart_record, dict) else None
            if not isinstance(quantities, dict) or not quantities:
                return self._ok(Cart.empty(self.currency))

            details = await self.api.post("/items", {"ids": ",".join(quantities), "type": "id"})
            products = details.get("data") if isinstance(details, dict) else None
            if not isinstance(products, list):
                raise UpstreamError("Failed to get product details from cart")

            return self._ok(self.reconcile_cart(quantities, products))
        except Exception as exc:
            return self._error("get cart contents", exc)

    def reconcile_cart(
        self, quantities: Mapping[str, Any], products: list[Mapping[str, Any]]
    ) -> Cart:
        """Merge cart quantities with product details for the configured store.

        Every line is returned and counted in ``total_items``; lines not sold
        at the store get an ``-unavailable`` id, a marked title and a zero
        total, and are left out of ``total_price``.
        """
        available: list[CartItem] = []
        unavailable: list[CartItem] = []
        seen: set[str] = set()

        for product in products:
            if not isinstance(product, dict) or product.get("id") is None:
                continue
            pid = str(product["id"])
            seen.add(pid)
            quantity = _quantity(quantities.get(pid))
            price = product.get("price")
            regular_price = to_number(price.get("price") if isinstance(price, dict) else price) or 0.0
            gs = product.get("gs") if isinstance(product.get("gs"), dict) else {}
            name = strip_brackets(gs.get("name") or product.get("name"), 200)
            image_url = self._image_url(product)
            stores = product.get("available_in")

            if isinstance(stores, list) and self._in_store(stores):
                tiers = [
                    DiscountTier.from_raw(sale)
                    for sale in product.get("sale") or []
                    if isinstance(sale, dict)
                ]
                quote = calculate_best_price(regular_price, quantity, tiers, self.currency)
                available.append(
                    CartItem(
                        id=f"{self.name}-{pid}",
                        product_id=pid,
                        product_title=f"{name} - {quote.sale_annotation}" if quote.sale_annotation else name,
                        quantity=quantity,
                        unit_price=quote.unit_price,
                        total_price=quote.total_price,
                        image_url=image_url,
                    )
                )
            else:
                unavailable.append(
                    CartItem(
                        id=f"{self.name}-{pid}{UNAVAILABLE_SUFFIX}",
                        product_id=pid,
                        product_title=f"[Unavailable] {name} (Not available in store {self.store})",
                        quantity=quantity,
                        unit_price=regular_price,
                        total_price=0.0,
                        image_url=image_url,
                    )
                )

        if missing := [pid for pid in quantities if pid not in seen]:
            logger.warning("[%s] No product details for cart ids: %s", self.display_name, ", ".join(missing))

        items = available + unavailable
        cart = Cart(
            items=items,
            total_items=sum(item.quantity for item in items),
            total_price=sum((item.total_price for item in available), 0.0),
            currency=self.currency,
        )
        logger.info(
            "[%s] Store %s: %d available items (%s %s), %d unavailable",
            self.display_name,
            self.store,
            len(available),
            cart.total_price,
            self.currency,
            len(unavailable),
        )
        return cart
