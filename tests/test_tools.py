import unittest

import httpx

from cartlink.adapters.base import BaseAdapter
from cartlink.models import Cart, CartItem, ProductSearchResult

FULL_ENV = {
    "RAMI_LEVY_API_KEY": "k",
    "ECOM_TOKEN": "e",
    "COOKIE": "c",
    "RAMI_LEVY_USER_ID": "42",
    "SHUFERSAL_CSRF_TOKEN": "csrf",
    "SHUFERSAL_COOKIE": "JSESSIONID=abc",
}


class RecordingAdapter(BaseAdapter):
    """Adapter double that records calls and echoes its arguments."""

    name = "recording"
    display_name = "Recording"
    base_url = "https://shop.example.com"
    calls: list = []

    async def search_products(self, options):
        self.calls.append(("search", options))
        return self._ok(ProductSearchResult(products=[], total_count=0, has_more=False))

    async def add_to_cart(self, product_id, quantity, variant=None):
        self.calls.append(("add", product_id, quantity, variant))
        return self._fail("upstream said: bad api_key sk-123")

    async def remove_from_cart(self, cart_item_id):
        self.calls.append(("remove", cart_item_id))
        return self._ok(True)

    async def update_cart_quantity(self, cart_item_id, quantity):
        self.calls.append(("update", cart_item_id, quantity))
        return self._ok(CartItem(cart_item_id, "1", "Item", quantity, 1.0, float(quantity)))

    async def get_cart_contents(self):
        self.calls.append(("cart",))
        return self._ok(Cart.empty())


class TestShoppingToolsValidation(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        from cartlink.adapters import AdapterFactory
        from cartlink.tools import ShoppingTools

        RecordingAdapter.calls = []
        self.tools = ShoppingTools(AdapterFactory(env={}, adapters={"recording": RecordingAdapter}))
        self.addAsyncCleanup(self.tools.aclose)

    async def test_invalid_inputs_never_reach_the_adapter(self):
        cases = [
            self.tools.search_products("recording", "x"),
            self.tools.search_products("recording", "milk", price_range={"min": 5, "max": 1}),
            self.tools.add_to_cart("recording", "", 1),
            self.tools.add_to_cart("recording", "P_1", 101),
            self.tools.add_to_cart("recording", "P_1", 0),
            self.tools.add_to_cart("recording", "P_1", 2.5),
            self.tools.remove_from_cart("recording", "bad'id"),
            self.tools.update_cart_quantity("recording", "1", -1),
        ]
        for coro in cases:
            result = await coro
            self.assertFalse(result.success)
            self.assertEqual(result.website, "recording")
        self.assertEqual(RecordingAdapter.calls, [])

    async def test_sanitized_values_are_passed_on(self):
        result = await self.tools.search_products(
            "recording", " <milk> ", category="dairy", price_range={"min": 1, "max": 9}, limit=5
        )
        self.assertTrue(result.success)
        _, options = RecordingAdapter.calls[0]
        self.assertEqual(options.query, "milk")
        self.assertEqual(options.category, "dairy")
        self.assertEqual(options.price_range.max, 9.0)
        self.assertEqual(options.limit, 5)

        result = await self.tools.update_cart_quantity("recording", " 7 ", 3.0)
        self.assertTrue(result.success)
        self.assertEqual(RecordingAdapter.calls[-1], ("update", "7", 3))

    async def test_adapter_errors_are_redacted(self):
        result = await self.tools.add_to_cart("recording", "P_1", 1)
        self.assertFalse(result.success)
        self.assertNotIn("api_key", result.error)
        self.assertIn("[REDACTED]", result.error)

    async def test_unsupported_website(self):
        result = await self.tools.get_cart_contents("amazon")
        self.assertFalse(result.success)
        self.assertEqual(result.error, "Unsupported website: amazon. Supported: recording")


class TestShoppingToolsConfiguration(unittest.IsolatedAsyncioTestCase):
    async def test_missing_credentials_become_failed_result(self):
        from cartlink.adapters import AdapterFactory
        from cartlink.tools import ShoppingTools

        tools = ShoppingTools(AdapterFactory(env={}))
        result = await tools.get_cart_contents("rami-levy")
        self.assertFalse(result.success)
        self.assertTrue(result.error.startswith("Failed to initialize rami-levy adapter"))
        await tools.aclose()


class TestOperationsNeverRaise(unittest.IsolatedAsyncioTestCase):
    """Every adapter operation answers with a result when the network fails."""

    async def _check_all(self, handler):
        from cartlink.adapters import AdapterFactory
        from cartlink.tools import ShoppingTools

        tools = ShoppingTools(AdapterFactory(env=FULL_ENV, transport=httpx.MockTransport(handler)))
        self.addAsyncCleanup(tools.aclose)

        for website in ["rami-levy", "shufersal"]:
            results = [
                await tools.search_products(website, "milk"),
                await tools.add_to_cart(website, "100", 1),
                await tools.remove_from_cart(website, "rami-levy-100"),
                await tools.update_cart_quantity(website, "rami-levy-100", 2),
                await tools.get_cart_contents(website),
            ]
            for result in results:
                with self.subTest(website=website):
                    self.assertFalse(result.success)
                    self.assertEqual(result.website, website)
                    self.assertTrue(result.error)
                    self.assertLessEqual(len(result.error), 500)

    async def test_connection_errors(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        await self._check_all(handler)

    async def test_server_errors(self):
        await self._check_all(lambda request: httpx.Response(500))

    async def test_garbage_payloads(self):
        await self._check_all(lambda request: httpx.Response(200, json="unexpected"))


class TestEndToEndSearch(unittest.IsolatedAsyncioTestCase):
    async def test_search_milk(self):
        from cartlink.adapters import AdapterFactory
        from cartlink.formatters import format_search
        from cartlink.tools import ShoppingTools

        raw = {
            "results": [
                {"code": "P_1", "name": "<i>Milk</i> 1L", "price": 5.9},
                {"code": "P_2", "name": "Milk " + "m" * 400, "price": 7},
            ]
        }
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=raw))
        tools = ShoppingTools(AdapterFactory(env={}, transport=transport))
        self.addAsyncCleanup(tools.aclose)

        result = await tools.search_products("shufersal", "milk")
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.data.total_count, 2)
        for product in result.data.products:
            self.assertNotRegex(product.title, "[<>]")
            self.assertLessEqual(len(product.title), 200)

        text = format_search(result, "milk")
        self.assertIn("**Found:** 2 products", text)
        self.assertIn("**1. iMilk/i 1L**", text)
        self.assertIn("- **Price:** ILS 5.9", text)
