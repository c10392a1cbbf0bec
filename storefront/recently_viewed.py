"""Recently viewed products, newest first, persisted in the key-value store."""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

from pydantic import ValidationError

from storefront.db import KeyValueStore, StorageKeys
from storefront.logging import get_logger
from storefront.models import Product

logger = get_logger(__name__)

MAX_ITEMS = 20
MAX_RECOMMENDATIONS = 4


@dataclass
class ViewedProduct:
    product: Product
    viewed_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> dict:
        return {
            **self.product.model_dump(mode="json", by_alias=True),
            "viewedAt": self.viewed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ViewedProduct":
        return cls(product=Product.model_validate(data), viewed_at=data.get("viewedAt", ""))


class RecentlyViewed:
    """
    Most recently viewed products.

    Storage errors are logged and never break the in-memory list.
    """

    def __init__(self, store: KeyValueStore, max_items: int = MAX_ITEMS) -> None:
        self.store = store
        self.max_items = max_items
        self._items: List[ViewedProduct] = []

    @property
    def items(self) -> List[ViewedProduct]:
        return list(self._items)

    @property
    def products(self) -> List[Product]:
        return [entry.product for entry in self._items]

    async def load(self) -> None:
        try:
            data = await self.store.get(StorageKeys.RECENTLY_VIEWED)
            if data:
                self._items = [ViewedProduct.from_dict(item) for item in json.loads(data)][: self.max_items]
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning("Corrupted recently viewed data: %s", type(e).__name__)
        except Exception:
            logger.exception("Failed to load recently viewed")

    async def add(self, product: Product) -> None:
        """Move `product` to the front of the list."""
        if not product or not product.id:
            return
        remaining = [entry for entry in self._items if entry.product.id != product.id]
        self._items = [ViewedProduct(product=product), *remaining][: self.max_items]
        await self._save()

    async def clear(self) -> None:
        self._items = []
        try:
            await self.store.delete(StorageKeys.RECENTLY_VIEWED)
        except Exception:
            logger.exception("Failed to clear recently viewed")

    def recommendations(self, product_id: str) -> List[Product]:
        """Other viewed products from the same category as `product_id`."""
        current = next((entry.product for entry in self._items if entry.product.id == product_id), None)
        if current is None:
            return []
        return [
            entry.product
            for entry in self._items
            if entry.product.id != product_id and entry.product.category == current.category
        ][:MAX_RECOMMENDATIONS]

    async def _save(self) -> None:
        try:
            payload = json.dumps([entry.to_dict() for entry in self._items])
            await self.store.set(StorageKeys.RECENTLY_VIEWED, payload)
        except Exception:
            logger.exception("Failed to save recently viewed")
