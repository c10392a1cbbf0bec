"""
Checkout helpers

Turns the cart into an order request, computes the order summary shown on
the checkout screen, and re-adds past orders to the cart (quick reorder).
Payment itself is handled by the backend.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from pydantic import ValidationError

from storefront.api_client import StorefrontAPI
from storefront.cart import CartStore
from storefront.errors import ERROR_ADDRESS_REQUIRED, ERROR_CART_EMPTY, CheckoutError
from storefront.logging import get_logger
from storefront.models import OrderItem, OrderRequest, PaymentMethod, Product, ShippingAddress
from storefront.services.money import to_float

logger = get_logger(__name__)

# Flat fee added to cash-on-delivery orders
COD_FEE = Decimal("100")


@dataclass(frozen=True)
class OrderSummary:
    subtotal: Decimal
    shipping_fee: Decimal
    total: Decimal

    def to_dict(self) -> dict:
        return {
            "subtotal": to_float(self.subtotal),
            "shipping_fee": to_float(self.shipping_fee),
            "total": to_float(self.total),
        }


def order_summary(cart: CartStore, payment_method: PaymentMethod = PaymentMethod.COD) -> OrderSummary:
    subtotal = cart.totals().subtotal
    fee = COD_FEE if payment_method == PaymentMethod.COD else Decimal("0")
    return OrderSummary(subtotal=subtotal, shipping_fee=fee, total=subtotal + fee)


def build_order_request(
    cart: CartStore,
    address: Optional[Union[ShippingAddress, dict]],
    payment_method: PaymentMethod = PaymentMethod.COD,
) -> OrderRequest:
    """
    Build the `POST /orders` body from the cart.

    Raises:
        CheckoutError: empty cart or no address
    """
    if len(cart) == 0:
        raise CheckoutError(ERROR_CART_EMPTY)
    if not address:
        raise CheckoutError(ERROR_ADDRESS_REQUIRED)
    if isinstance(address, dict):
        address = ShippingAddress.model_validate(address)

    return OrderRequest(
        items=[OrderItem(product=line.product_id, quantity=line.quantity) for line in cart],
        shipping_address=ShippingAddress.model_validate(address.model_dump()),
        payment_method=payment_method,
    )


async def place_order(
    api: StorefrontAPI,
    cart: CartStore,
    address: Optional[Union[ShippingAddress, dict]],
    payment_method: PaymentMethod = PaymentMethod.COD,
) -> dict:
    """
    Submit the cart as an order and remove the ordered items once the backend accepts it.

    If the cart changed while the order was in flight, only the ordered
    quantities are taken out; anything added meanwhile stays. ApiError
    propagates and leaves the cart untouched.
    """
    order = build_order_request(cart, address, payment_method)
    version = cart.mutation_count
    data = await api.create_order(order)

    if cart.mutation_count == version:
        cart.clear()
        return data

    logger.info("Cart changed during checkout, removing ordered items only")
    for item in order.items:
        line = cart.get_line(item.product)
        if line is not None:
            cart.set_quantity(item.product, line.quantity - item.quantity)
    return data


def reorder(cart: CartStore, order: dict) -> int:
    """
    Add the still-available items of a previous order to the cart in one mutation.

    Items with a missing or invalid product, or that are sold out, are
    skipped; quantities are capped at what stock still allows.

    Returns:
        Number of new cart lines

    Raises:
        CheckoutError: the order has no items
    """
    items = order.get("items") or []
    if not items:
        raise CheckoutError("Order has no items")

    reserved = {line.product_id: line.quantity for line in cart}
    entries = []
    skipped = 0
    for item in items:
        try:
            product = Product.model_validate(item.get("product"))
            quantity = int(item.get("quantity", 1))
        except (ValidationError, TypeError, ValueError):
            skipped += 1
            continue

        available = product.stock - reserved.get(product.id, 0)
        quantity = min(quantity, available)
        if quantity < 1:
            skipped += 1
            continue
        reserved[product.id] = reserved.get(product.id, 0) + quantity
        entries.append((product, quantity))

    added = cart.merge_items(entries)
    logger.info(
        "Reorder added %d item(s), %d new line(s), %d skipped", len(entries), added, skipped,
    )
    return added
