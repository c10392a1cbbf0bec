"""
Pydantic Models - Data Schemas for the storefront API

Contains the models the cart core consumes or produces:
- Catalog entities (Product, DiscountTier) as returned by the API
- Checkout payloads (ShippingAddress, OrderRequest)

Field names are snake_case; the API's camelCase names are aliases, so
`Product.model_validate(api_json)` and `model_dump(by_alias=True)` round-trip
the wire format.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from storefront.services.money import parse_decimal


# ============================================================
# Enums
# ============================================================

class PaymentMethod(str, Enum):
    """Payment method chosen at checkout."""
    COD = "COD"  # Cash on delivery
    ONLINE = "ONLINE"


# ============================================================
# Catalog Models
# ============================================================

class DiscountTier(BaseModel):
    """Quantity threshold and the discount it unlocks."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    min_qty: int = Field(alias="minQty", ge=1)
    discount_percent: Decimal = Field(alias="discountPercent", ge=0, le=100)

    @field_validator("discount_percent", mode="before")
    @classmethod
    def convert_discount_to_decimal(cls, v):
        return parse_decimal(v)


class Product(BaseModel):
    """Product snapshot as served by `GET /products/:id`."""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str = Field(alias="_id")
    title: str
    price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    category: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    discount_tiers: List[DiscountTier] = Field(default_factory=list, alias="quantityDiscounts")

    @field_validator("price", mode="before")
    @classmethod
    def convert_price_to_decimal(cls, v):
        return parse_decimal(v)

    @field_validator("discount_tiers", mode="before")
    @classmethod
    def none_tiers_to_empty(cls, v):
        return v or []

    @field_validator("discount_tiers")
    @classmethod
    def reject_duplicate_thresholds(cls, v: List[DiscountTier]) -> List[DiscountTier]:
        seen = set()
        for tier in v:
            if tier.min_qty in seen:
                raise ValueError(f"duplicate discount tier for minQty={tier.min_qty}")
            seen.add(tier.min_qty)
        return v

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


# ============================================================
# Checkout Models
# ============================================================

class ShippingAddress(BaseModel):
    """Shipping address attached to an order."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    full_name: str = Field(alias="fullName", min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(alias="zipCode", min_length=1)
    phone: str = Field(min_length=1)


class SavedAddress(ShippingAddress):
    """Address stored in the user's address book."""
    id: str = Field(alias="_id")
    is_default: bool = Field(default=False, alias="isDefault")


class OrderItem(BaseModel):
    """Single product line in an order request."""
    product: str  # Product id
    quantity: int = Field(ge=1)


class OrderRequest(BaseModel):
    """Body of `POST /orders`."""
    model_config = ConfigDict(populate_by_name=True)

    items: List[OrderItem] = Field(min_length=1)
    shipping_address: ShippingAddress = Field(alias="shippingAddress")
    payment_method: PaymentMethod = Field(default=PaymentMethod.COD, alias="paymentMethod")

    def to_payload(self) -> dict:
        """JSON-ready body using the API's field names."""
        return self.model_dump(mode="json", by_alias=True)
