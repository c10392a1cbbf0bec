"""
Storefront REST API client.

Thin httpx wrapper around the backend:
- Injects `Authorization: Bearer <token>` from the credential store
- Deletes the stored token when the server answers 401
- Unwraps `{ "data": ... }` bodies and raises ApiError otherwise

No retry/backoff: failures go straight back to the caller.
"""
import os
from typing import Any, List, Optional

import httpx

from storefront.db import KeyValueStore, StorageKeys
from storefront.errors import ERROR_NETWORK, ApiError
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import OrderRequest, Product

logger = get_logger(__name__)

# Backend location (set STOREFRONT_API_URL to the machine running the API)
STOREFRONT_API_URL = os.environ.get("STOREFRONT_API_URL", "http://localhost:5000/api")
STOREFRONT_API_TIMEOUT = float(os.environ.get("STOREFRONT_API_TIMEOUT", "10"))


class StorefrontAPI:
    """Async client for the storefront backend."""

    def __init__(
        self,
        credentials: KeyValueStore,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.credentials = credentials
        self.base_url = (base_url or STOREFRONT_API_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or STOREFRONT_API_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "StorefrontAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """
        Send a request and return the `data` field of the response body.

        Raises:
            ApiError: non-2xx response or transport failure
        """
        headers = dict(kwargs.pop("headers", None) or {})
        token = await self.credentials.get(StorageKeys.TOKEN)
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.error("Network error on %s %s: %s", method, path, type(e).__name__)
            raise ApiError(None, ERROR_NETWORK.format(url=self.base_url)) from e

        if response.status_code == 401:
            await self.credentials.delete(StorageKeys.TOKEN)
            logger.info("Stored token rejected (401), cleared")

        body = self._json(response)
        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise ApiError(
                response.status_code,
                message or f"Request failed with status {response.status_code}",
                payload=body if isinstance(body, dict) else None,
            )

        if isinstance(body, dict):
            return body.get("data")
        return body

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {}

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, email: str, password: str) -> dict:
        """Log in and store the returned token. Returns the user fields."""
        data = await self.post("/auth/login", json={"email": email, "password": password})
        return await self._store_token(data)

    async def register(self, name: str, email: str, password: str) -> dict:
        data = await self.post("/auth/register", json={"name": name, "email": email, "password": password})
        return await self._store_token(data)

    async def me(self) -> dict:
        return await self.get("/auth/me")

    async def logout(self) -> None:
        await self.credentials.delete(StorageKeys.TOKEN)

    async def _store_token(self, data: dict) -> dict:
        user = dict(data or {})
        token = user.pop("token", None)
        if token:
            await self.credentials.set(StorageKeys.TOKEN, token)
        return user

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def get_product(self, product_id: str) -> Product:
        data = await self.get(f"/products/{product_id}")
        return Product.model_validate(data)

    async def search_products(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Product]:
        params = {}
        if search and search.strip():
            params["search"] = search.strip()
        if category and category.strip():
            params["category"] = category.strip()
        data = await self.get("/products", params=params)
        return [Product.model_validate(item) for item in data or []]

    async def get_categories(self) -> List[str]:
        return await self.get("/products/categories/list") or []

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def create_order(self, order: OrderRequest) -> dict:
        data = await self.post("/orders", json=order.to_payload())
        logger.info("Order created: %s", sanitize_id_for_logging((data or {}).get("_id")))
        return data

    async def get_orders(self) -> List[dict]:
        return await self.get("/orders") or []

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    async def get_addresses(self) -> List[dict]:
        return await self.get("/addresses") or []

    async def create_address(self, address: dict) -> dict:
        return await self.post("/addresses", json=address)

    async def update_address(self, address_id: str, address: dict) -> dict:
        return await self.put(f"/addresses/{address_id}", json=address)

    async def set_default_address(self, address_id: str) -> dict:
        return await self.put(f"/addresses/{address_id}/default")

    async def delete_address(self, address_id: str) -> None:
        await self.delete(f"/addresses/{address_id}")

    # ------------------------------------------------------------------
    # Wishlist
    # ------------------------------------------------------------------

    async def get_wishlist(self) -> List[dict]:
        return await self.get("/wishlist") or []

    async def add_to_wishlist(self, product_id: str) -> dict:
        return await self.post("/wishlist", json={"productId": product_id})

    async def remove_from_wishlist(self, product_id: str) -> None:
        await self.delete(f"/wishlist/{product_id}")

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def get_reviews(self, product_id: str) -> List[dict]:
        return await self.get(f"/reviews/product/{product_id}") or []

    async def create_review(self, product_id: str, rating: int, comment: str) -> dict:
        if not 1 <= rating <= 5:
            raise ValueError("rating must be between 1 and 5")
        return await self.post(
            "/reviews",
            json={"product": product_id, "rating": rating, "comment": comment.strip()},
        )

    async def delete_review(self, review_id: str) -> None:
        await self.delete(f"/reviews/{review_id}")
