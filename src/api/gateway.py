"""
Client for the remote commerce gateway.

All endpoints go through `Gateway._request`, which attaches the bearer token,
enforces the transport timeout and maps failures onto the `api.errors`
hierarchy. `requests` is blocking, so each call runs in a worker thread and
the event loop stays free while a request is in flight.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

import requests

from api.errors import GatewayError, RejectedError, TransportError
from db.models import Order, OrderSubmission, Product
from utils.logger import get_logger

_logger = get_logger(__name__)

AUTH_SEGMENT = "/auth/"


def _parse_body(response: requests.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def _body_detail(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        for key in ("message", "error"):
            if body.get(key):
                return str(body[key])
    return None


def _readable_message(body: Any, fallback: str) -> str:
    detail = _body_detail(body)
    if detail:
        return detail
    if isinstance(body, str) and body.strip():
        return body.strip()
    return fallback


def _expect_list(path: str, body: Any) -> List[dict]:
    """Objects of a JSON array body; anything that is not an object is skipped."""
    if body is None:
        return []
    if not isinstance(body, list):
        raise GatewayError(f"{path}: expected a JSON array, got {type(body).__name__}")
    return [item for item in body if isinstance(item, dict)]


def _expect_object(path: str, body: Any) -> dict:
    if not isinstance(body, dict):
        raise GatewayError(f"{path}: expected a JSON object, got {type(body).__name__}")
    return body


class Gateway:
    """
    HTTP contract of the backend.

    token_provider is called before every request; when it returns a token
    the request carries `Authorization: Bearer <token>`.
    on_unauthorized is called on a 401 from any path outside /auth/, before
    the RejectedError is raised to the caller.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        http: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self._http = http or requests.Session()
        self._http.headers.update({"Content-Type": "application/json"})

    async def _request(self, method: str, path: str, payload: Any = None) -> Any:
        headers = {}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = self.base_url + path
        _logger.debug(f"{method} {url}")
        try:
            response = await asyncio.to_thread(
                self._http.request,
                method,
                url,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransportError(path, str(exc) or type(exc).__name__) from exc
        except requests.RequestException as exc:
            raise GatewayError(f"{path}: {exc}") from exc

        body = _parse_body(response)
        if response.status_code == 401 and AUTH_SEGMENT not in path:
            _logger.info(f"{method} {path} answered 401, dropping session.")
            if self.on_unauthorized:
                self.on_unauthorized()
        if not response.ok:
            raise RejectedError(
                path,
                response.status_code,
                _readable_message(body, response.reason or "Request failed"),
                detail=_body_detail(body),
                body=body,
            )
        return body

    # ---------------------------
    # Auth
    # ---------------------------

    async def login(self, username: str, password: str) -> Any:
        return await self._request(
            "POST", "/auth/token", {"username": username, "password": password}
        )

    async def register(self, username: str, password: str, email: str) -> Any:
        return await self._request(
            "POST",
            "/auth/register",
            {"username": username, "password": password, "email": email},
        )

    # ---------------------------
    # Products
    # ---------------------------

    async def list_products(self) -> List[Product]:
        body = await self._request("GET", "/products")
        return [Product.from_json(p) for p in _expect_list("/products", body)]

    async def get_product(self, product_id: int) -> Product:
        path = f"/products/{product_id}"
        return Product.from_json(_expect_object(path, await self._request("GET", path)))

    async def create_product(self, product: Product) -> Product:
        body = await self._request("POST", "/products", product.to_json())
        if isinstance(body, dict):
            return Product.from_json({**product.to_json(), **body})
        return product

    async def update_product(self, product_id: int, product: Product) -> None:
        await self._request("PUT", f"/products/{product_id}", product.to_json())

    async def delete_product(self, product_id: int) -> None:
        await self._request("DELETE", f"/products/{product_id}")

    # ---------------------------
    # Orders
    # ---------------------------

    async def create_order(self, submission: OrderSubmission) -> Any:
        return await self._request("POST", "/orders", submission.to_json())

    async def list_orders(self) -> List[Order]:
        body = await self._request("GET", "/orders")
        return [Order.from_json(o) for o in _expect_list("/orders", body)]

    async def get_order(self, order_id: int) -> Order:
        path = f"/orders/{order_id}"
        return Order.from_json(_expect_object(path, await self._request("GET", path)))
