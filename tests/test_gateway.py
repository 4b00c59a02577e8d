import json
import unittest
from decimal import Decimal
from unittest import mock

import requests

from api.errors import GatewayError, RejectedError, TransportError
from api.gateway import Gateway
from db.models import OrderSubmission, Product


def _response(status: int, body=None, reason: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    if body is None:
        response._content = b""
    elif isinstance(body, str):
        response._content = body.encode("utf-8")
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


class GatewayTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.http = mock.Mock()
        self.http.headers = {}
        self.token = None
        self.unauthorized = mock.Mock()
        self.gateway = Gateway(
            "http://shop.test/",
            timeout=2.5,
            token_provider=lambda: self.token,
            on_unauthorized=self.unauthorized,
            http=self.http,
        )

    def _call(self, index: int = -1):
        return self.http.request.call_args_list[index]

    # ---------- Request shape ----------

    async def test_json_content_type_and_timeout(self):
        self.http.request.return_value = _response(200, [])
        await self.gateway.list_products()

        call = self._call()
        self.assertEqual(call.args, ("GET", "http://shop.test/products"))
        self.assertEqual(call.kwargs["timeout"], 2.5)
        self.assertEqual(self.http.headers["Content-Type"], "application/json")
        self.assertNotIn("Authorization", call.kwargs["headers"])

    async def test_bearer_token_attached_when_present(self):
        self.token = "abc.def.ghi"
        self.http.request.return_value = _response(200, [])
        await self.gateway.list_orders()
        self.assertEqual(
            self._call().kwargs["headers"]["Authorization"], "Bearer abc.def.ghi"
        )

    async def test_order_and_product_payloads(self):
        self.http.request.return_value = _response(201, {"id": 7})
        body = await self.gateway.create_order(OrderSubmission(3, 2, "Jane Doe"))
        self.assertEqual(body, {"id": 7})
        self.assertEqual(
            self._call().kwargs["json"],
            {"productId": 3, "quantity": 2, "customerName": "Jane Doe"},
        )

        product = Product(7, "Widget", "Small", Decimal("9.50"), 4, "Tools")
        self.http.request.return_value = _response(201, {"id": 42})
        created = await self.gateway.create_product(product)
        self.assertEqual(created.id, 42)
        self.assertEqual(created.price, Decimal("9.5"))
        payload = self._call().kwargs["json"]
        self.assertNotIn("id", payload)
        self.assertEqual(payload["stockQuantity"], 4)

        self.http.request.return_value = _response(204)
        await self.gateway.update_product(42, product)
        self.assertEqual(self._call().args, ("PUT", "http://shop.test/products/42"))
        await self.gateway.delete_product(42)
        self.assertEqual(self._call().args, ("DELETE", "http://shop.test/products/42"))

    async def test_listing_parses_models(self):
        self.http.request.return_value = _response(
            200,
            [
                {
                    "id": 1,
                    "name": "Cloud Processor X9",
                    "price": 299.99,
                    "stockQuantity": 45,
                    "category": "Hardware",
                }
            ],
        )
        (product,) = await self.gateway.list_products()
        self.assertEqual(product.price, Decimal("299.99"))
        self.assertEqual(product.stock_quantity, 45)

        self.http.request.return_value = _response(
            200, {"id": 5, "productId": 1, "quantity": 2, "totalPrice": "10.00"}
        )
        order = await self.gateway.get_order(5)
        self.assertEqual(self._call().args, ("GET", "http://shop.test/orders/5"))
        self.assertEqual((order.id, order.quantity), (5, 2))
        self.assertEqual(order.status, "PENDING")

    # ---------- Failures ----------

    async def test_transport_failures(self):
        self.http.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(TransportError) as ctx:
            await self.gateway.login("amy", "pw")
        self.assertEqual(ctx.exception.path, "/auth/token")

        self.http.request.side_effect = requests.Timeout()
        with self.assertRaises(TransportError):
            await self.gateway.list_orders()

        self.http.request.side_effect = requests.TooManyRedirects("loop")
        with self.assertRaises(GatewayError) as ctx:
            await self.gateway.list_orders()
        self.assertNotIsInstance(ctx.exception, TransportError)

    async def test_rejection_carries_readable_message(self):
        self.http.request.return_value = _response(
            409, {"message": "Username taken"}, "Conflict"
        )
        with self.assertRaises(RejectedError) as ctx:
            await self.gateway.register("amy", "pw", "amy@example.com")
        exc = ctx.exception
        self.assertEqual(exc.status_code, 409)
        self.assertEqual(exc.message, "Username taken")
        self.assertEqual(exc.detail, "Username taken")
        self.assertEqual(exc.body, {"message": "Username taken"})

        self.http.request.return_value = _response(500, None, "Server Error")
        with self.assertRaises(RejectedError) as ctx:
            await self.gateway.list_products()
        self.assertEqual(ctx.exception.message, "Server Error")
        self.assertIsNone(ctx.exception.detail)

        self.http.request.return_value = _response(400, "bad quantity", "Bad Request")
        with self.assertRaises(RejectedError) as ctx:
            await self.gateway.create_order(OrderSubmission(1, 0, "x"))
        self.assertEqual(ctx.exception.message, "bad quantity")

    async def test_unauthorized_hook_outside_auth_paths(self):
        self.http.request.return_value = _response(401, None, "Unauthorized")
        with self.assertRaises(RejectedError):
            await self.gateway.list_orders()
        self.unauthorized.assert_called_once_with()

        self.unauthorized.reset_mock()
        with self.assertRaises(RejectedError):
            await self.gateway.login("amy", "bad")
        self.unauthorized.assert_not_called()

    async def test_forbidden_does_not_drop_session(self):
        self.http.request.return_value = _response(403, None, "Forbidden")
        with self.assertRaises(RejectedError):
            await self.gateway.delete_product(1)
        self.unauthorized.assert_not_called()

    # ---------- Unexpected success bodies ----------

    async def test_listing_rejects_non_array_bodies(self):
        for body in ("<html>proxy</html>", {"content": []}, {"id": 1}):
            self.http.request.return_value = _response(200, body)
            with self.assertRaises(GatewayError):
                await self.gateway.list_products()
            with self.assertRaises(GatewayError):
                await self.gateway.list_orders()

    async def test_listing_skips_non_object_items(self):
        self.http.request.return_value = _response(
            200, [None, "x", 3, {"id": 2, "name": "Neural Link Hub"}]
        )
        (product,) = await self.gateway.list_products()
        self.assertEqual(product.id, 2)

        self.http.request.return_value = _response(200, [None])
        self.assertEqual(await self.gateway.list_orders(), [])

        self.http.request.return_value = _response(200)
        self.assertEqual(await self.gateway.list_products(), [])

    async def test_detail_rejects_non_object_bodies(self):
        for body in ("<html>proxy</html>", [{"id": 1}]):
            self.http.request.return_value = _response(200, body)
            with self.assertRaises(GatewayError):
                await self.gateway.get_product(1)
            with self.assertRaises(GatewayError):
                await self.gateway.get_order(1)


if __name__ == "__main__":
    unittest.main()
