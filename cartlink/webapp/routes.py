"""FastAPI routes for the JSON API.

Adapter and validation failures come back as HTTP 200 with
``success: false``; only an unknown retailer key is a 404.
"""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from ..adapters import get_adapter_display_name
from ..models import PriceRange
from ..tools import ShoppingTools

router = APIRouter()


# Left untyped; ShoppingTools validates these fields.
class AddToCartBody(BaseModel):
    productId: Any = None
    quantity: Any = 1
    variant: Any = None


class UpdateQuantityBody(BaseModel):
    quantity: Any = None


def get_tools(request: Request) -> ShoppingTools:
    """Get shopping tools instance from app state."""
    return request.app.state.tools


def _require_website(tools: ShoppingTools, website: str) -> None:
    if not tools.factory.is_website_supported(website):
        raise HTTPException(status_code=404, detail=f"Unsupported website: {website}")


@router.get("/api/websites")
async def list_websites(request: Request):
    """Supported retailers with their configuration status."""
    tools = get_tools(request)
    websites = []
    for key in tools.factory.get_supported_websites():
        check = tools.factory.validate_website_config(key)
        websites.append(
            {
                "website": key,
                "displayName": get_adapter_display_name(key),
                "configured": check.is_valid,
                "missingVars": check.missing_vars,
                "rateLimitPerMinute": tools.factory.get_rate_limit(key),
            }
        )
    return {"websites": websites}


@router.get("/api/{website}/search")
async def search_products(
    request: Request,
    website: str,
    query: str = Query(...),
    category: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    limit: int | None = None,
):
    tools = get_tools(request)
    _require_website(tools, website)

    price_range = None
    if min_price is not None or max_price is not None:
        price_range = PriceRange(
            min=min_price if min_price is not None else 0.0,
            max=max_price if max_price is not None else 1_000_000.0,
        )
    result = await tools.search_products(website, query, category, price_range, limit)
    return result.to_dict()


@router.get("/api/{website}/cart")
async def get_cart(request: Request, website: str):
    tools = get_tools(request)
    _require_website(tools, website)
    return (await tools.get_cart_contents(website)).to_dict()


@router.post("/api/{website}/cart/items")
async def add_to_cart(request: Request, website: str, body: AddToCartBody):
    tools = get_tools(request)
    _require_website(tools, website)
    result = await tools.add_to_cart(website, body.productId, body.quantity, body.variant)
    return result.to_dict()


@router.patch("/api/{website}/cart/items/{cart_item_id}")
async def update_cart_item(request: Request, website: str, cart_item_id: str, body: UpdateQuantityBody):
    tools = get_tools(request)
    _require_website(tools, website)
    result = await tools.update_cart_quantity(website, cart_item_id, body.quantity)
    return result.to_dict()


@router.delete("/api/{website}/cart/items/{cart_item_id}")
async def remove_cart_item(request: Request, website: str, cart_item_id: str):
    tools = get_tools(request)
    _require_website(tools, website)
    return (await tools.remove_from_cart(website, cart_item_id)).to_dict()
