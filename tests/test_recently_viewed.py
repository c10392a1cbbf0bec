"""Tests for the recently viewed list"""
import json
import pytest
from unittest.mock import AsyncMock

from storefront.db import StorageKeys
from storefront.recently_viewed import RecentlyViewed


@pytest.mark.asyncio
async def test_add_moves_to_front(memory_store, product_factory):
    """Test newest view first and no duplicates"""
    viewed = RecentlyViewed(memory_store)
    first = product_factory(product_id="a")
    second = product_factory(product_id="b")

    await viewed.add(first)
    await viewed.add(second)
    await viewed.add(first)

    assert [p.id for p in viewed.products] == ["a", "b"]
    stored = json.loads(memory_store.data[StorageKeys.RECENTLY_VIEWED])
    assert [item["_id"] for item in stored] == ["a", "b"]
    assert "viewedAt" in stored[0]


@pytest.mark.asyncio
async def test_capped_at_max_items(memory_store, product_factory):
    """Test the list keeps only the newest entries"""
    viewed = RecentlyViewed(memory_store, max_items=3)
    for index in range(5):
        await viewed.add(product_factory(product_id=f"p{index}"))

    assert [p.id for p in viewed.products] == ["p4", "p3", "p2"]


@pytest.mark.asyncio
async def test_load_and_clear(memory_store, product_factory):
    """Test the list survives a restart and can be cleared"""
    await RecentlyViewed(memory_store).add(product_factory(product_id="a"))

    restored = RecentlyViewed(memory_store)
    await restored.load()
    assert [p.id for p in restored.products] == ["a"]

    await restored.clear()
    assert restored.products == []
    assert StorageKeys.RECENTLY_VIEWED not in memory_store.data


@pytest.mark.asyncio
async def test_load_corrupted(memory_store):
    """Test corrupted data leaves an empty list"""
    memory_store.data[StorageKeys.RECENTLY_VIEWED] = "not json"
    viewed = RecentlyViewed(memory_store)

    await viewed.load()
    assert viewed.products == []


@pytest.mark.asyncio
async def test_save_failure_keeps_list(product_factory):
    """Test storage errors do not lose the in-memory list"""
    store = AsyncMock()
    store.set.side_effect = ConnectionError()
    viewed = RecentlyViewed(store)

    await viewed.add(product_factory(product_id="a"))
    assert [p.id for p in viewed.products] == ["a"]


@pytest.mark.asyncio
async def test_recommendations(memory_store, product_factory):
    """Test recommendations come from the same category"""
    viewed = RecentlyViewed(memory_store)
    for index in range(6):
        await viewed.add(product_factory(product_id=f"e{index}", category="Electronics"))
    await viewed.add(product_factory(product_id="b1", category="Books"))

    recommended = viewed.recommendations("e0")

    assert len(recommended) == 4
    assert all(p.category == "Electronics" for p in recommended)
    assert "e0" not in [p.id for p in recommended]
    assert viewed.recommendations("unknown") == []
