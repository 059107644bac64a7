"""Adapter for shufersal.co.il.

Search is anonymous JSON. Cart endpoints need the session cookie and CSRF
token from a logged-in browser session and answer with HTML fragments, not
JSON. Changing a line's quantity is not supported.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from bs4 import BeautifulSoup

from .. import config
from ..models import Cart, CartItem, ProductSearchOptions, ProductSearchResult, ShoppingOperationResult
from ..utils import absolute_url, parse_price, strip_brackets, to_number
from .base import BaseAdapter

logger = logging.getLogger(__name__)

SITE_URL = "https://www.shufersal.co.il"
SEARCH_LIMIT = 20


def is_success_fragment(html: str) -> bool:
    """Cart endpoints answer with a ``<div class=...>`` fragment on success."""
    text = html.strip()
    # Full pages (login redirects, error pages) start with a doctype or <html>.
    if not text.startswith("<div"):
        return False
    soup = BeautifulSoup(text, "lxml")
    first = soup.body.find(True) if soup.body else None
    return first is not None and first.name == "div" and first.has_attr("class")


def _pick_price(item: Mapping[str, Any]) -> tuple[float, str]:
    """Resolve price and currency from the several shapes the API uses."""
    def numeric(value: Any) -> bool:
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    price_field = item.get("price")
    if numeric(price_field):
        return float(price_field), "ILS"

    for field in (price_field, item.get("categoryPrice"), item.get("pricePerUnit")):
        if isinstance(field, dict) and numeric(field.get("value")):
            return float(field["value"]), field.get("currencyIso") or "ILS"

    if numeric(item.get("effectivePrice")):
        return float(item["effectivePrice"]), "ILS"

    # Last resort: a formatted string such as "12.90 ₪".
    for field in (price_field, item.get("categoryPrice")):
        text = field.get("formattedValue") if isinstance(field, dict) else field
        if isinstance(text, str):
            amount, currency = parse_price(text)
            if amount is not None:
                return amount, currency or "ILS"

    return 0.0, "ILS"


def _pick_image(item: Mapping[str, Any]) -> str | None:
    for key in ("baseProductImageLarge", "baseProductImageMedium", "baseProductImageSmall"):
        if item.get(key):
            return item[key]

    images = [i for i in item.get("images") or [] if isinstance(i, dict)]
    for wanted in ("product", "large"):
        for image in images:
            if str(image.get("format") or "").lower() == wanted and image.get("url"):
                return image["url"]
    if images:
        return images[0].get("url")
    return None


class ShufersalAdapter(BaseAdapter):
    """Shufersal online supermarket."""

    name = "shufersal"
    display_name = "Shufersal"
    base_url = f"{SITE_URL}/online/he"
    currency = "ILS"
    optional_vars = (config.SHUFERSAL_CSRF_TOKEN, config.SHUFERSAL_COOKIE)

    def __init__(self, credentials: Mapping[str, str] | None = None, **kwargs: Any):
        super().__init__(credentials, **kwargs)
        self.api = self._client(
            self.base_url,
            {
                "accept": "application/json",
                "x-requested-with": "XMLHttpRequest",
                "referer": f"{self.base_url}/",
                "user-agent": config.USER_AGENT,
            },
        )

    def _auth_headers(self, referer: str, content_type: str | None = None) -> dict[str, str] | None:
        csrf_token = self.credentials.get(config.SHUFERSAL_CSRF_TOKEN)
        cookie = self.credentials.get(config.SHUFERSAL_COOKIE)
        if not csrf_token or not cookie:
            return None
        headers = {
            "accept": "*/*",
            "origin": SITE_URL,
            "referer": referer,
            "accept-language": "en-US,en;q=0.9",
            "cookie": cookie,
            "csrftoken": csrf_token,
        }
        if content_type:
            headers["content-type"] = content_type
        return headers

    def _missing_auth(self) -> ShoppingOperationResult:
        return self._fail(
            "Missing Shufersal authentication credentials "
            f"({config.SHUFERSAL_CSRF_TOKEN} or {config.SHUFERSAL_COOKIE})"
        )

    # --- search ---

    async def search_products(
        self, options: ProductSearchOptions
    ) -> ShoppingOperationResult[ProductSearchResult]:
        try:
            logger.info("[%s] Searching for: %r", self.display_name, options.query)
            response = await self.api.get(
                "/search/results", {"q": options.query, "limit": SEARCH_LIMIT}
            )
            results = response.get("results") if isinstance(response, dict) else None
            if not isinstance(results, list):
                return self._fail(f"No results found for query: {options.query}")

            products = [
                self.sanitize_product(self._product_fields(item))
                for item in results
                if isinstance(item, dict)
            ]
            if options.price_range is not None:
                products = [p for p in products if options.price_range.contains(p.price)]
            if options.limit:
                products = products[: options.limit]

            return self._ok(
                ProductSearchResult(
                    products=products,
                    total_count=len(products),
                    has_more=len(results) >= SEARCH_LIMIT,
                )
            )
        except Exception as exc:
            return self._error("search products", exc)

    def _product_fields(self, item: Mapping[str, Any]) -> dict[str, Any]:
        code = item.get("code")
        name = item.get("name") or ""
        brand = item.get("brandName")
        price, currency = _pick_price(item)
        stock = item.get("stock") if isinstance(item.get("stock"), dict) else {}
        status = stock.get("stockLevelStatus") if isinstance(stock.get("stockLevelStatus"), dict) else {}
        return {
            "id": code,
            "title": name,
            "description": f"{name} - {brand}" if brand else name,
            "price": price,
            "currency": currency,
            "availability": str(status.get("code") or "").lower() == "instock",
            "category": item.get("secondLevelCategory"),
            "brand": brand,
            "url": absolute_url(SITE_URL, item.get("url")) or f"{self.base_url}/product/{code}",
            "image_url": absolute_url(SITE_URL, _pick_image(item)),
            "rating": item.get("averageRating"),
            "review_count": item.get("numberOfReviews"),
        }

    # --- cart ---

    async def add_to_cart(
        self, product_id: str, quantity: int = 1, variant: str | None = None
    ) -> ShoppingOperationResult[str]:
        try:
            logger.info("[%s] Adding product %s to cart with quantity %s", self.display_name, product_id, quantity)
            headers = self._auth_headers(f"{self.base_url}/search", "application/json")
            if headers is None:
                return self._missing_auth()

            body = {
                "productCodePost": product_id,
                "productCode": product_id,
                "sellingMethod": "BY_UNIT",
                "qty": str(quantity),
                "frontQuantity": str(quantity),
                "comment": "",
                "affiliateCode": "",
            }
            response = await self.api.post("/cart/add", body, headers=headers)
            if not isinstance(response, str) or not is_success_fragment(response):
                logger.warning("[%s] Add to cart rejected: %.300s", self.display_name, response)
                return self._fail(
                    "Product could not be added to cart - possible stock or authentication issue"
                )

            message = f"Successfully added {quantity} units of {product_id} to Shufersal cart"
            if variant:
                message += f" (variant: {variant})"
            return self._ok(message)
        except Exception as exc:
            return self._error("add product to cart", exc)

    @staticmethod
    def entry_number(cart_item_id: str) -> str | None:
        """Entry number from ``"3"`` or ``"shufersal_P_123_3"`` style ids."""
        entry = cart_item_id.rsplit("_", 1)[-1]
        return entry if entry.isdigit() else None

    async def remove_from_cart(self, cart_item_id: str) -> ShoppingOperationResult[bool]:
        try:
            logger.info("[%s] Removing cart item: %s", self.display_name, cart_item_id)
            headers = self._auth_headers(
                f"{self.base_url}/cart", "application/x-www-form-urlencoded"
            )
            if headers is None:
                return self._missing_auth()

            entry = self.entry_number(cart_item_id)
            if entry is None:
                return self._fail(
                    "Invalid cart item ID format. Expected entry number (0, 1, 2...) "
                    f"but got: {cart_item_id}"
                )

            params = {
                "entryNumber": entry,
                "qty": "0",
                "sellingMethod": "",
                "cartContext[openFrom]": "CART",
                "cartContext[recommendationType]": "REGULAR",
                "cartContext[action]": "remove",
            }
            response = await self.api.request("POST", "/cart/update", params=params, headers=headers)
            if not isinstance(response, str) or not is_success_fragment(response):
                logger.warning("[%s] Remove from cart rejected: %.300s", self.display_name, response)
                return self._fail(
                    "Failed to remove item from cart - possible invalid entry number or authentication issue"
                )
            return self._ok(True)
        except Exception as exc:
            return self._error("remove item from cart", exc)

    async def update_cart_quantity(
        self, cart_item_id: str, quantity: int
    ) -> ShoppingOperationResult[CartItem]:
        return self._not_implemented("Updating cart quantity")

    async def get_cart_contents(self) -> ShoppingOperationResult[Cart]:
        try:
            logger.info("[%s] Getting cart contents", self.display_name)
            headers = self._auth_headers(f"{self.base_url}/cart")
            if headers is None:
                return self._missing_auth()
            headers["accept"] = "application/json"

            entries = await self.api.get("/recommendations/entry-recommendations", headers=headers)
            if not isinstance(entries, list):
                return self._fail("Invalid response from Shufersal cart contents API")

            # This endpoint carries no prices.
            items = [
                CartItem(
                    id=str(entry.get("entryNumber")),
                    product_id=str(entry.get("productCode") or ""),
                    product_title=strip_brackets(entry.get("productName"), 200),
                    quantity=int(to_number(entry.get("cartyQty")) or 0),
                    unit_price=0.0,
                    total_price=0.0,
                )
                for entry in entries
                if isinstance(entry, dict)
            ]
            return self._ok(
                Cart(
                    items=items,
                    total_items=sum(item.quantity for item in items),
                    total_price=0.0,
                    currency=self.currency,
                )
            )
        except Exception as exc:
            return self._error("get cart contents", exc)
