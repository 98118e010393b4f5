"""Tests for Redis caching implementation."""

from datetime import time
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from slotbook.core.redis_client import CacheManager
from slotbook.repositories.providers import ProviderRepository
from conftest import make_provider


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    result = cache_manager.get_json("test_key")
    assert result is None
    mock_redis.get.assert_called_once_with("test_key")

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"name": "Test", "value": 123}'
    result = cache_manager.get_json("test_key")
    assert result == {"name": "Test", "value": 123}
    mock_redis.get.assert_called_once_with("test_key")


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test without TTL
    assert cache_manager.set_json("test_key", {"start": time(9)}) is True
    mock_redis.set.assert_called_once_with("test_key", '{"start": "09:00:00"}')

    # Test with TTL
    mock_redis.reset_mock()
    assert cache_manager.set_json("test_key", {"value": 1}, ttl=300) is True
    mock_redis.setex.assert_called_once_with("test_key", 300, '{"value": 1}')


def test_cache_errors_degrade_to_misses():
    """Test an unreachable Redis never breaks a read."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = ConnectionError("redis down")
    mock_redis.setex.side_effect = ConnectionError("redis down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("test_key") is None
    assert cache_manager.set_json("test_key", {"value": 1}, ttl=60) is False


def test_cache_manager_delete_pattern():
    """Test CacheManager delete_pattern method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    mock_redis.scan_iter.return_value = iter(["provider:list:active", "provider:0c9f"])
    mock_redis.delete.return_value = 2

    result = cache_manager.delete_pattern("provider:*")

    mock_redis.scan_iter.assert_called_once_with(match="provider:*", count=500)
    mock_redis.delete.assert_called_once_with("provider:list:active", "provider:0c9f")
    assert result == 2


@pytest.mark.asyncio
async def test_provider_is_served_from_cache():
    """Test a cached provider is returned without touching the database."""
    provider = make_provider()
    cache = MagicMock()
    cache.get_json.return_value = provider.model_dump(mode="json")
    db = AsyncMock()

    result = await ProviderRepository(db, cache).get_provider(provider.id)

    assert result == provider
    assert result.availability[0].start_time == time(9)
    cache.get_json.assert_called_once_with(f"provider:{provider.id}")
    db.execute.assert_not_called()


@pytest.mark.asyncio
async def test_provider_is_cached_after_load():
    """Test a database read stores the provider with its rules."""
    provider = make_provider()
    cache = MagicMock()
    cache.get_json.return_value = None

    provider_result = MagicMock()
    provider_result.mappings.return_value.first.return_value = {
        "id": provider.id,
        "name_en": provider.name_en,
        "name_ar": provider.name_ar,
        "specialty_en": provider.specialty_en,
        "specialty_ar": provider.specialty_ar,
        "is_active": True,
    }
    rules_result = MagicMock()
    rules_result.mappings.return_value.all.return_value = [
        {"provider_id": provider.id, **rule.model_dump()} for rule in provider.availability
    ]
    db = AsyncMock()
    db.execute.side_effect = [provider_result, rules_result]

    result = await ProviderRepository(db, cache).get_provider(provider.id)

    assert result == provider
    cache.set_json.assert_called_once_with(
        f"provider:{provider.id}",
        provider.model_dump(mode="json"),
        ttl=ProviderRepository.PROVIDER_CACHE_TTL,
    )


@pytest.mark.asyncio
async def test_missing_provider_is_not_cached():
    cache = MagicMock()
    cache.get_json.return_value = None
    missing = MagicMock()
    missing.mappings.return_value.first.return_value = None
    db = AsyncMock()
    db.execute.return_value = missing

    assert await ProviderRepository(db, cache).get_provider(uuid4()) is None
    cache.set_json.assert_not_called()


def test_corrupt_entry_is_a_miss():
    mock_redis = MagicMock()
    mock_redis.get.return_value = "{not json"

    assert CacheManager(redis_client=mock_redis).get_json("provider:1") is None
