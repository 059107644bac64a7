#!/usr/bin/env python3
"""CLI entry point for the multi-retailer shopping adapters."""

import asyncio
import argparse
import sys

from .adapters import AdapterFactory, get_adapter_display_name, list_adapters
from .config import load_env_file, log_level
from .formatters import format_added, format_cart, format_removed, format_search, format_updated
from .logging_setup import configure_logging
from .models import ShoppingOperationResult
from .tools import ShoppingTools


def print_check(factory: AdapterFactory, website: str) -> int:
    """Print which credentials a retailer is missing."""
    if not factory.is_website_supported(website):
        print(f"Error: Unknown website '{website}'", file=sys.stderr)
        print(f"Available: {', '.join(list_adapters())}", file=sys.stderr)
        return 1

    check = factory.validate_website_config(website)
    name = get_adapter_display_name(website)
    if check.is_valid:
        print(f"{name}: configured")
        return 0
    print(f"{name}: missing {', '.join(check.missing_vars)}")
    return 1


async def run_command(tools: ShoppingTools, args: argparse.Namespace) -> tuple[ShoppingOperationResult, str]:
    """Run the selected operation and return (result, rendered text)."""
    try:
        if args.search:
            website, query = args.search
            result = await tools.search_products(website, query, limit=args.limit)
            return result, format_search(result, query)
        if args.cart:
            result = await tools.get_cart_contents(args.cart)
            return result, format_cart(result)
        if args.add:
            website, product_id = args.add
            result = await tools.add_to_cart(website, product_id, args.quantity, args.variant)
            return result, format_added(result)
        if args.remove:
            website, cart_item_id = args.remove
            result = await tools.remove_from_cart(website, cart_item_id)
            return result, format_removed(result, cart_item_id)

        website, cart_item_id, quantity = args.update
        try:
            qty = int(quantity)
        except ValueError:
            qty = quantity
        result = await tools.update_cart_quantity(website, cart_item_id, qty)
        return result, format_updated(result)
    finally:
        await tools.aclose()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Search products and manage carts on supported grocery retailers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m cartlink.cli --list                          # List supported retailers
  python -m cartlink.cli --check rami-levy               # Show missing credentials
  python -m cartlink.cli --search shufersal milk         # Search products
  python -m cartlink.cli --cart rami-levy                # Show cart contents
  python -m cartlink.cli --add rami-levy 7290000 -q 2    # Add to cart
  python -m cartlink.cli --update rami-levy rami-levy-7290000 3
  python -m cartlink.cli --remove rami-levy rami-levy-7290000
  python -m cartlink.cli --serve                         # Run the JSON API
        """,
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--list", "-l", action="store_true", help="List supported retailers")
    group.add_argument("--check", "-c", metavar="WEBSITE", help="Check a retailer's credentials")
    group.add_argument("--search", "-s", nargs=2, metavar=("WEBSITE", "QUERY"), help="Search products")
    group.add_argument("--cart", metavar="WEBSITE", help="Show cart contents")
    group.add_argument("--add", nargs=2, metavar=("WEBSITE", "PRODUCT_ID"), help="Add a product to the cart")
    group.add_argument("--remove", nargs=2, metavar=("WEBSITE", "CART_ITEM_ID"), help="Remove a cart item")
    group.add_argument(
        "--update", nargs=3, metavar=("WEBSITE", "CART_ITEM_ID", "QUANTITY"), help="Change a cart item quantity"
    )
    group.add_argument("--serve", action="store_true", help="Run the JSON API with uvicorn")
    parser.add_argument("--quantity", "-q", type=int, default=1, help="Quantity for --add")
    parser.add_argument("--variant", help="Variant for --add")
    parser.add_argument("--limit", type=int, help="Maximum results for --search")

    args = parser.parse_args()

    load_env_file()
    configure_logging(log_level())

    if args.list:
        print("Supported retailers:")
        for name in list_adapters():
            print(f"  - {name} ({get_adapter_display_name(name)})")
        return 0

    if args.serve:
        from .webapp.run import main as run_webapp

        sys.argv = [sys.argv[0]]
        run_webapp()
        return 0

    factory = AdapterFactory()
    if args.check:
        return print_check(factory, args.check)

    result, text = asyncio.run(run_command(ShoppingTools(factory), args))
    print(text)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
