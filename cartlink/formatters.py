"""Render shopping results as text blocks for chat/tool output."""

from __future__ import annotations

from .models import Cart, CartItem, ProductSearchResult, ShoppingOperationResult
from .utils import format_amount

DESCRIPTION_PREVIEW = 150


def format_error(result: ShoppingOperationResult, action: str) -> str:
    return f"**Error**\n\n{action} failed: {result.error or 'Unknown error'}"


def format_search(result: ShoppingOperationResult[ProductSearchResult], query: str) -> str:
    if not result.success:
        return format_error(result, "Search")

    data = result.data
    lines = [
        "**Product Search Results**",
        "",
        f"**Website:** {result.website.upper()}",
        f'**Query:** "{query}"',
        f"**Found:** {data.total_count} products",
    ]
    for index, product in enumerate(data.products, 1):
        rating = (
            f"{product.rating}/5 ({product.review_count or 0} reviews)"
            if product.rating is not None
            else "No rating"
        )
        description = product.description[:DESCRIPTION_PREVIEW]
        if len(product.description) > DESCRIPTION_PREVIEW:
            description += "..."
        lines += [
            "",
            f"**{index}. {product.title}**",
            f"- **Price:** {product.currency} {format_amount(product.price)}",
            f"- **Availability:** {'In Stock' if product.availability else 'Out of Stock'}",
            f"- **Rating:** {rating}",
            f"- **Category:** {product.category or 'N/A'}",
            f"- **Product ID:** {product.id}",
            f"- **Description:** {description}",
        ]
    if data.has_more:
        lines += ["", "_More results are available; refine the query to narrow them down._"]
    return "\n".join(lines)


def format_added(result: ShoppingOperationResult[CartItem | str]) -> str:
    if not result.success:
        return format_error(result, "Add to cart")

    item = result.data
    if isinstance(item, str):
        return f"**Added to Cart**\n\n**Website:** {result.website.upper()}\n{item}"

    lines = [
        "**Added to Cart**",
        "",
        f"**Website:** {result.website.upper()}",
        f"**Product:** {item.product_title}",
        f"**Quantity:** {item.quantity}",
        f"**Unit Price:** {format_amount(item.unit_price)}",
        f"**Total Price:** {format_amount(item.total_price)}",
        f"**Cart Item ID:** {item.id}",
    ]
    if item.variant:
        lines.append(f"**Variant:** {item.variant}")
    return "\n".join(lines)


def format_removed(result: ShoppingOperationResult[bool], cart_item_id: str) -> str:
    if not result.success:
        return format_error(result, "Remove from cart")
    return (
        f"**Removed from Cart**\n\n**Website:** {result.website.upper()}\n"
        f"**Cart Item:** {cart_item_id}\n**Status:** Successfully removed"
    )


def format_updated(result: ShoppingOperationResult[CartItem]) -> str:
    if not result.success:
        return format_error(result, "Update cart quantity")
    item = result.data
    return (
        f"**Cart Updated**\n\n**Website:** {result.website.upper()}\n"
        f"**Product:** {item.product_title}\n**New Quantity:** {item.quantity}\n"
        f"**Unit Price:** {format_amount(item.unit_price)}\n"
        f"**New Total Price:** {format_amount(item.total_price)}"
    )


def _money(cart: Cart, amount: float) -> str:
    return f"{cart.currency} {amount:.2f}"


def format_cart(result: ShoppingOperationResult[Cart]) -> str:
    if not result.success:
        return format_error(result, "Get cart contents")

    cart = result.data
    header = [
        "**Shopping Cart**",
        "",
        f"**Website:** {result.website.upper()}",
    ]
    if not cart.items:
        return "\n".join(header + ["**Status:** Empty", "**Total Items:** 0", f"**Total Price:** {_money(cart, 0)}"])

    lines = header + [
        f"**Total Items:** {format_amount(cart.total_items)}",
        f"**Total Price:** {_money(cart, cart.total_price)}",
        "",
        "**Items:**",
    ]
    for index, item in enumerate(cart.items, 1):
        lines += [
            f"{index}. **{item.product_title}**",
            f"   - Quantity: {format_amount(item.quantity)}",
            f"   - Unit Price: {_money(cart, item.unit_price)}",
            f"   - Total: {_money(cart, item.total_price)}",
            f"   - Cart Item ID: {item.id}",
        ]
        if item.variant:
            lines.append(f"   - Variant: {item.variant}")
    return "\n".join(lines)
