"""Tests for the storefront API client"""
import json
import httpx
import pytest

from storefront.api_client import StorefrontAPI
from storefront.db import StorageKeys
from storefront.errors import ApiError
from storefront.models import OrderItem, OrderRequest, ShippingAddress


def make_api(memory_store, handler):
    """API client whose requests are answered by `handler`"""
    return StorefrontAPI(
        memory_store,
        base_url="http://testserver/api",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_bearer_token_injected(memory_store, sample_product):
    """Test stored token is sent on every request"""
    memory_store.data[StorageKeys.TOKEN] = "secret-token"
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": sample_product})

    async with make_api(memory_store, handler) as api:
        product = await api.get_product("product-123")

    assert seen[0].headers["Authorization"] == "Bearer secret-token"
    assert seen[0].url.path == "/api/products/product-123"
    assert product.id == "product-123"
    assert product.discount_tiers[0].min_qty == 5


@pytest.mark.asyncio
async def test_no_token_no_header(memory_store):
    """Test anonymous requests carry no Authorization header"""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": []})

    async with make_api(memory_store, handler) as api:
        assert await api.get_orders() == []

    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_unauthorized_deletes_token(memory_store):
    """Test a 401 clears the stored token and raises"""
    memory_store.data[StorageKeys.TOKEN] = "expired"

    def handler(request):
        return httpx.Response(401, json={"message": "Not authorized"})

    async with make_api(memory_store, handler) as api:
        with pytest.raises(ApiError) as exc_info:
            await api.me()

    assert exc_info.value.status_code == 401
    assert exc_info.value.is_unauthorized
    assert exc_info.value.message == "Not authorized"
    assert StorageKeys.TOKEN not in memory_store.data


@pytest.mark.asyncio
async def test_server_error_message(memory_store):
    """Test error responses surface the server message"""
    memory_store.data[StorageKeys.TOKEN] = "valid"

    def handler(request):
        return httpx.Response(400, json={"message": "Insufficient stock"})

    async with make_api(memory_store, handler) as api:
        with pytest.raises(ApiError) as exc_info:
            await api.get_orders()

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "Insufficient stock"
    assert memory_store.data[StorageKeys.TOKEN] == "valid"


@pytest.mark.asyncio
async def test_network_error(memory_store):
    """Test transport failures become ApiError without status"""
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_api(memory_store, handler) as api:
        with pytest.raises(ApiError) as exc_info:
            await api.get_orders()

    assert exc_info.value.status_code is None
    assert "Cannot connect to server" in exc_info.value.message


@pytest.mark.asyncio
async def test_login_stores_token(memory_store):
    """Test login keeps the token and returns the user"""
    def handler(request):
        assert json.loads(request.content) == {"email": "a@b.pk", "password": "pw"}
        return httpx.Response(200, json={"data": {"token": "new-token", "name": "Ali"}})

    async with make_api(memory_store, handler) as api:
        user = await api.login("a@b.pk", "pw")

    assert user == {"name": "Ali"}
    assert memory_store.data[StorageKeys.TOKEN] == "new-token"


@pytest.mark.asyncio
async def test_logout_deletes_token(memory_store):
    """Test logout clears the token"""
    memory_store.data[StorageKeys.TOKEN] = "t"

    async with make_api(memory_store, lambda request: httpx.Response(200)) as api:
        await api.logout()

    assert StorageKeys.TOKEN not in memory_store.data


@pytest.mark.asyncio
async def test_search_params(memory_store, sample_product):
    """Test search and category are sent trimmed, blanks dropped"""
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"data": [sample_product]})

    async with make_api(memory_store, handler) as api:
        products = await api.search_products(search="  mouse ", category="  ")

    assert dict(seen[0].url.params) == {"search": "mouse"}
    assert len(products) == 1


@pytest.mark.asyncio
async def test_create_order_payload(memory_store, sample_address):
    """Test order body uses the API field names"""
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(201, json={"data": {"_id": "order-1"}})

    order = OrderRequest(
        items=[OrderItem(product="prod-1", quantity=2)],
        shipping_address=ShippingAddress.model_validate(sample_address),
    )
    async with make_api(memory_store, handler) as api:
        data = await api.create_order(order)

    assert data == {"_id": "order-1"}
    assert seen[0]["items"] == [{"product": "prod-1", "quantity": 2}]
    assert seen[0]["shippingAddress"]["zipCode"] == "54000"
    assert seen[0]["paymentMethod"] == "COD"


@pytest.mark.asyncio
async def test_address_wishlist_review_routes(memory_store):
    """Test collaborator endpoints hit the expected routes"""
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path))
        return httpx.Response(200, json={"data": {}})

    async with make_api(memory_store, handler) as api:
        await api.update_address("a1", {"city": "Karachi"})
        await api.set_default_address("a1")
        await api.delete_address("a1")
        await api.add_to_wishlist("p1")
        await api.remove_from_wishlist("p1")
        await api.get_reviews("p1")
        await api.create_review("p1", 5, " great ")
        await api.delete_review("r1")

    assert seen == [
        ("PUT", "/api/addresses/a1"),
        ("PUT", "/api/addresses/a1/default"),
        ("DELETE", "/api/addresses/a1"),
        ("POST", "/api/wishlist"),
        ("DELETE", "/api/wishlist/p1"),
        ("GET", "/api/reviews/product/p1"),
        ("POST", "/api/reviews"),
        ("DELETE", "/api/reviews/r1"),
    ]


@pytest.mark.asyncio
async def test_review_rating_bounds(memory_store):
    """Test ratings outside 1-5 are rejected locally"""
    async with make_api(memory_store, lambda request: httpx.Response(200)) as api:
        with pytest.raises(ValueError):
            await api.create_review("p1", 6, "too good")
