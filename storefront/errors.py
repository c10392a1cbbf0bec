"""
Error Types and Messages

Cart validation errors are raised synchronously at the point of mutation and
are meant to be shown to the user. Persistence failures are reported, never
raised to the caller.
"""

# User-facing messages
ERROR_INVALID_QUANTITY = "Quantity must be at least 1"
ERROR_OUT_OF_STOCK = "Product out of stock"
ERROR_STOCK_EXCEEDED = "Only {available} in stock"
ERROR_PRODUCT_NOT_FOUND = "Product not in cart"
ERROR_CART_EMPTY = "Cart is empty"
ERROR_ADDRESS_REQUIRED = "Please add a shipping address first"
ERROR_ORDER_FAILED = "Order failed"
ERROR_NETWORK = (
    "Cannot connect to server. Please check:\n"
    "1. Backend is running\n"
    "2. Correct API URL: {url}"
)


class CartError(Exception):
    """Base error for cart operations."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidQuantity(CartError):
    """Requested quantity is below 1 or the product has no stock."""

    def __init__(self, message: str = ERROR_INVALID_QUANTITY) -> None:
        super().__init__(message, code="INVALID_QUANTITY")


class StockExceeded(CartError):
    """Requested quantity is above the available stock."""

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(ERROR_STOCK_EXCEEDED.format(available=available), code="STOCK_EXCEEDED")
        self.requested = requested
        self.available = available


class ProductNotFound(CartError):
    """Mutation references a product that has no line in the cart."""

    def __init__(self, product_id: str) -> None:
        super().__init__(ERROR_PRODUCT_NOT_FOUND, code="PRODUCT_NOT_FOUND")
        self.product_id = product_id


class PersistenceFailure(CartError):
    """Load or save against the persistence adapter failed.

    Never raised out of the cart store; handed to the failure callback instead.
    """

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        super().__init__(f"Cart {operation} failed", code="PERSISTENCE_FAILURE")
        self.operation = operation
        self.cause = cause


class CheckoutError(Exception):
    """Checkout precondition not met (empty cart, missing address)."""


class ApiError(Exception):
    """Error returned by the storefront REST API."""

    def __init__(self, status_code: int | None, message: str, payload: dict | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401
