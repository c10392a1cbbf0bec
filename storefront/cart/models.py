"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from storefront.models import Product
from storefront.pricing import PriceQuote, price_for
from storefront.services.money import to_float


@dataclass
class CartLine:
    """Single product line in the cart."""
    product: Product
    quantity: int
    added_at: str = ""

    def __post_init__(self):
        if not self.added_at:
            self.added_at = datetime.now(timezone.utc).isoformat()

    @property
    def product_id(self) -> str:
        return self.product.id

    @property
    def quote(self) -> PriceQuote:
        """Tiered price for the current quantity (recomputed on every access)."""
        return price_for(self.product, self.quantity)

    @property
    def unit_price(self) -> Decimal:
        return self.quote.unit_price

    @property
    def total_price(self) -> Decimal:
        return self.quote.total_price

    def to_dict(self) -> dict:
        """Convert to dictionary for persistence."""
        return {
            "product": self.product.model_dump(mode="json", by_alias=True),
            "quantity": self.quantity,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        """Create from dictionary."""
        return cls(
            product=Product.model_validate(data["product"]),
            quantity=int(data["quantity"]),
            added_at=data.get("added_at", ""),
        )


@dataclass(frozen=True)
class CartTotals:
    """Derived cart values."""
    item_count: int = 0
    subtotal: Decimal = field(default_factory=lambda: Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "item_count": self.item_count,
            "subtotal": to_float(self.subtotal),
        }
