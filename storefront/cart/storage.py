"""Persistence adapters for the cart's serialized line items."""
import json
from abc import ABC, abstractmethod
from typing import List, Optional

from storefront.db import KeyValueStore, StorageKeys


class CartStorage(ABC):
    """Loads and saves the serialized line-item sequence."""

    @abstractmethod
    async def load(self) -> Optional[List[dict]]:
        """Return the saved lines, or None when nothing was saved."""

    @abstractmethod
    async def save(self, lines: List[dict]) -> None:
        """Replace the saved lines."""


class KeyValueCartStorage(CartStorage):
    """Stores the cart as a JSON array under one key of a KeyValueStore."""

    def __init__(self, store: KeyValueStore, key: str = StorageKeys.CART) -> None:
        self.store = store
        self.key = key

    async def load(self) -> Optional[List[dict]]:
        data = await self.store.get(self.key)
        if not data:
            return None
        lines = json.loads(data)
        if not isinstance(lines, list):
            raise ValueError(f"expected a JSON array under '{self.key}'")
        return lines

    async def save(self, lines: List[dict]) -> None:
        await self.store.set(self.key, json.dumps(lines))
