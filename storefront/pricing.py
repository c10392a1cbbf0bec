"""
Quantity-tiered discount pricing.

`price_for(product, quantity)` turns a product's base price and a quantity
into the unit price, total price and discount metadata shown on the product,
cart and checkout screens. The function is pure: no I/O, no caching, same
inputs give the same quote.

Tier selection:
    The applicable tier is the one with the largest `min_qty` that is
    <= quantity. Tiers with `min_qty` < 1 never apply. When two tiers share a
    threshold the later one in the sequence wins.

Arithmetic is full-precision Decimal. Round only for display
(see `storefront.services.money`).
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from storefront.models import DiscountTier, Product
from storefront.services.money import multiply, percent_multiplier, to_decimal, to_float


@dataclass(frozen=True)
class PriceQuote:
    """Priced view of `quantity` units of a product."""
    unit_price: Decimal
    total_price: Decimal
    original_unit_price: Decimal
    has_discount: bool
    discount_percent: Decimal
    quantity: int
    tiers: Sequence[DiscountTier]

    @property
    def savings(self) -> Decimal:
        """Amount saved over the undiscounted total."""
        return multiply(self.original_unit_price, self.quantity) - self.total_price

    def to_dict(self) -> dict:
        """Rounded values for display / JSON."""
        return {
            "unit_price": to_float(self.unit_price),
            "total_price": to_float(self.total_price),
            "original_unit_price": to_float(self.original_unit_price),
            "has_discount": self.has_discount,
            "discount_percent": float(self.discount_percent),
            "quantity": self.quantity,
            "tiers": [
                {"min_qty": t.min_qty, "discount_percent": float(t.discount_percent)}
                for t in self.tiers
            ],
        }


def select_tier(tiers: Optional[Iterable[DiscountTier]], quantity: int) -> Optional[DiscountTier]:
    """
    Find the tier that applies to `quantity`.

    Scans every tier instead of relying on the list being sorted.

    Args:
        tiers: Discount tiers in any order (None or empty means no discount)
        quantity: Requested quantity

    Returns:
        The applicable tier, or None
    """
    best: Optional[DiscountTier] = None
    for tier in tiers or ():
        if tier.min_qty < 1 or tier.min_qty > quantity:
            continue
        # >= so that a repeated threshold resolves to the later tier
        if best is None or tier.min_qty >= best.min_qty:
            best = tier
    return best


def price_for(product: Product, quantity: int) -> PriceQuote:
    """
    Price `quantity` units of `product`.

    Args:
        product: Product with `price` and `discount_tiers`
        quantity: Units requested; values below 1 are priced as 1

    Returns:
        PriceQuote with full-precision Decimal amounts
    """
    quantity = max(1, int(quantity))
    original = to_decimal(product.price)
    tiers = product.discount_tiers if product.discount_tiers is not None else []

    tier = select_tier(tiers, quantity)
    if tier is not None:
        discount_percent = to_decimal(tier.discount_percent)
        unit_price = multiply(original, percent_multiplier(discount_percent))
    else:
        discount_percent = Decimal("0")
        unit_price = original

    return PriceQuote(
        unit_price=unit_price,
        total_price=multiply(unit_price, quantity),
        original_unit_price=original,
        has_discount=discount_percent > 0,
        discount_percent=discount_percent,
        quantity=quantity,
        tiers=tiers,
    )


def discount_ladder(product: Product) -> list[DiscountTier]:
    """Valid tiers sorted by threshold, for "Buy N+ -> X% off" lists."""
    tiers = [t for t in (product.discount_tiers or ()) if t.min_qty >= 1]
    return sorted(tiers, key=lambda t: t.min_qty)
