import json
import unittest

import httpx
from fastapi.testclient import TestClient

ENV = {
    "RAMI_LEVY_API_KEY": "k",
    "ECOM_TOKEN": "e",
    "COOKIE": "c",
    "RAMI_LEVY_USER_ID": "42",
}


def upstream(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/api/v2/site/clubs/customer/42":
        return httpx.Response(200, json={"cart": {"items": {"100": 3}}})
    if path == "/api/items":
        return httpx.Response(
            200,
            json={
                "data": [
                    {
                        "id": 100,
                        "name": "Yogurt",
                        "price": {"price": 4},
                        "available_in": [331],
                        "sale": [{"cmt": 3, "scm": 10, "active": 1}],
                    }
                ]
            },
        )
    if path == "/api/v2/cart":
        items = json.loads(request.content)["items"]
        return httpx.Response(
            200,
            json={"status": 200, "items": [{"id": int(k), "name": "Yogurt", "price": 4, "quantity": int(v)} for k, v in items.items()]},
        )
    if path == "/online/he/search/results":
        return httpx.Response(200, json={"results": [{"code": "P_1", "name": "Milk", "price": 6}]})
    return httpx.Response(404)


class TestWebapp(unittest.TestCase):
    def setUp(self):
        from cartlink.adapters import AdapterFactory
        from cartlink.tools import ShoppingTools
        from cartlink.webapp.app import create_app

        tools = ShoppingTools(AdapterFactory(env=ENV, transport=httpx.MockTransport(upstream)))
        self.client = TestClient(create_app(tools))
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def test_list_websites(self):
        resp = self.client.get("/api/websites")
        self.assertEqual(resp.status_code, 200)
        websites = {w["website"]: w for w in resp.json()["websites"]}
        self.assertTrue(websites["rami-levy"]["configured"])
        self.assertEqual(websites["rami-levy"]["displayName"], "Rami Levy")
        self.assertEqual(websites["shufersal"]["rateLimitPerMinute"], 60)

    def test_search(self):
        resp = self.client.get("/api/shufersal/search", params={"query": "milk", "max_price": 10})
        body = resp.json()
        self.assertTrue(body["success"], body)
        self.assertEqual(body["data"]["totalCount"], 1)
        self.assertEqual(body["data"]["products"][0]["title"], "Milk")

    def test_cart(self):
        body = self.client.get("/api/rami-levy/cart").json()
        self.assertTrue(body["success"], body)
        self.assertEqual(body["data"]["totalPrice"], 10)
        self.assertEqual(
            body["data"]["items"][0]["productTitle"], "Yogurt - Sale: 3 for 10 ILS (Save 2.00 ILS)"
        )

    def test_add_item(self):
        resp = self.client.post("/api/rami-levy/cart/items", json={"productId": "100", "quantity": 2})
        body = resp.json()
        self.assertTrue(body["success"], body)
        self.assertEqual(body["data"]["id"], "rami-levy-100")
        self.assertEqual(body["data"]["totalPrice"], 8)

    def test_validation_failure_is_not_an_http_error(self):
        resp = self.client.post("/api/rami-levy/cart/items", json={"productId": "abc", "quantity": 1})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {"success": False, "website": "rami-levy", "error": "Invalid Rami Levy product ID format (must be numeric)"},
        )

    def test_malformed_body_values_come_back_as_results(self):
        cases = [
            ("post", "/api/rami-levy/cart/items", {"productId": "100", "quantity": 2.5}, "Quantity must be a whole number"),
            ("post", "/api/rami-levy/cart/items", {"productId": 100, "quantity": 1}, "Product ID is required"),
            ("post", "/api/rami-levy/cart/items", {"quantity": 1}, "Product ID is required"),
            ("patch", "/api/rami-levy/cart/items/rami-levy-100", {"quantity": 2.5}, "Quantity must be a whole number"),
            ("patch", "/api/rami-levy/cart/items/rami-levy-100", {"quantity": "lots"}, "Quantity must be a number"),
        ]
        for method, url, payload, error in cases:
            with self.subTest(method=method, payload=payload):
                resp = getattr(self.client, method)(url, json=payload)
                self.assertEqual(resp.status_code, 200)
                self.assertEqual(resp.json(), {"success": False, "website": "rami-levy", "error": error})

    def test_update_and_remove(self):
        body = self.client.patch("/api/rami-levy/cart/items/rami-levy-100", json={"quantity": 3}).json()
        self.assertTrue(body["success"], body)
        self.assertEqual(body["data"]["quantity"], 3)

        body = self.client.delete("/api/rami-levy/cart/items/rami-levy-100").json()
        self.assertEqual(body, {"success": True, "website": "rami-levy", "data": True})

    def test_shufersal_update_not_implemented(self):
        body = self.client.patch("/api/shufersal/cart/items/1", json={"quantity": 3}).json()
        self.assertFalse(body["success"])
        self.assertIn("not implemented", body["error"])

    def test_unknown_website_is_404(self):
        self.assertEqual(self.client.get("/api/amazon/cart").status_code, 404)
