import unittest

from cartlink.models import Cart, CartItem, ShoppingOperationResult


class TestFormatters(unittest.TestCase):
    def test_error_block(self):
        from cartlink.formatters import format_cart

        text = format_cart(ShoppingOperationResult.fail("rami-levy", "HTTP 500: Internal Server Error"))
        self.assertEqual(text, "**Error**\n\nGet cart contents failed: HTTP 500: Internal Server Error")

    def test_empty_cart(self):
        from cartlink.formatters import format_cart

        text = format_cart(ShoppingOperationResult.ok("shufersal", Cart.empty()))
        self.assertIn("**Website:** SHUFERSAL", text)
        self.assertIn("**Status:** Empty", text)
        self.assertIn("**Total Price:** ILS 0.00", text)

    def test_cart_lines(self):
        from cartlink.formatters import format_cart

        cart = Cart(
            items=[
                CartItem("rami-levy-1", "1", "Milk - Sale: 2 for 10 ILS (Save 2.00 ILS)", 2, 5.0, 10.0),
                CartItem("rami-levy-2-unavailable", "2", "[Unavailable] Bread (Not available in store 331)", 1, 5.5, 0.0),
            ],
            total_items=3,
            total_price=10.0,
        )
        text = format_cart(ShoppingOperationResult.ok("rami-levy", cart))
        self.assertIn("**Total Items:** 3", text)
        self.assertIn("**Total Price:** ILS 10.00", text)
        self.assertIn("1. **Milk - Sale: 2 for 10 ILS (Save 2.00 ILS)**", text)
        self.assertIn("   - Cart Item ID: rami-levy-2-unavailable", text)

    def test_added_confirmation_text(self):
        from cartlink.formatters import format_added

        text = format_added(ShoppingOperationResult.ok("shufersal", "Successfully added 1 units of P_1 to Shufersal cart"))
        self.assertTrue(text.startswith("**Added to Cart**"))
        self.assertIn("Successfully added 1 units", text)

    def test_added_item(self):
        from cartlink.formatters import format_added

        item = CartItem("rami-levy-1", "1", "Milk", 2, 6.0, 12.0, variant="1L")
        text = format_added(ShoppingOperationResult.ok("rami-levy", item))
        self.assertIn("**Total Price:** 12", text)
        self.assertIn("**Variant:** 1L", text)

    def test_removed_and_updated(self):
        from cartlink.formatters import format_removed, format_updated

        self.assertIn("Successfully removed", format_removed(ShoppingOperationResult.ok("rami-levy", True), "rami-levy-1"))
        item = CartItem("rami-levy-1", "1", "Milk", 3, 5.333, 16.0)
        text = format_updated(ShoppingOperationResult.ok("rami-levy", item))
        self.assertIn("**New Quantity:** 3", text)
        self.assertIn("**Unit Price:** 5.33", text)


class TestResultSerialization(unittest.TestCase):
    def test_success_and_failure_payloads(self):
        ok = ShoppingOperationResult.ok("rami-levy", Cart.empty()).to_dict()
        self.assertEqual(
            ok,
            {
                "success": True,
                "website": "rami-levy",
                "data": {"items": [], "totalItems": 0, "totalPrice": 0.0, "currency": "ILS"},
            },
        )
        failed = ShoppingOperationResult.fail("shufersal", "nope").to_dict()
        self.assertEqual(failed, {"success": False, "website": "shufersal", "error": "nope"})

    def test_unavailable_marker(self):
        self.assertTrue(CartItem("rami-levy-2-unavailable", "2", "x", 1, 1, 0).is_unavailable)
        self.assertFalse(CartItem("rami-levy-2", "2", "x", 1, 1, 1).is_unavailable)


class TestFormatAmount(unittest.TestCase):
    def test_amounts(self):
        from cartlink.utils import format_amount, parse_price

        self.assertEqual(format_amount(10.0), "10")
        self.assertEqual(format_amount(12.5), "12.5")
        self.assertEqual(format_amount(1234567.891), "1234567.89")
        self.assertEqual(parse_price("₪ 1,299.00"), (1299.0, "ILS"))
        self.assertEqual(parse_price("9,90"), (9.9, None))

    def test_to_number_drops_non_finite_values(self):
        from cartlink.utils import to_number

        self.assertEqual(to_number(4), 4.0)
        self.assertEqual(to_number("12.90 ₪"), 12.9)
        self.assertIsNone(to_number(float("nan")))
        self.assertIsNone(to_number(float("inf")))
        self.assertIsNone(to_number(10**400))
        self.assertIsNone(to_number(True))
