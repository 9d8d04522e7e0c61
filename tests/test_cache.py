from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from farwell.core import cache as core_cache
from farwell.core.cache import InMemoryCacheBackend, RedisCacheBackend


def test_in_memory_get_put_and_expiry(clock):
    backend = InMemoryCacheBackend(clock=clock)
    assert backend.get("k", []) == []

    backend.put("k", [{"a": 1}], ttl_seconds=600)
    assert backend.get("k") == [{"a": 1}]

    clock.advance(599)
    assert backend.get("k") == [{"a": 1}]
    clock.advance(1)
    assert backend.get("k", "gone") == "gone"


def test_in_memory_put_overwrites_and_copies(clock):
    backend = InMemoryCacheBackend(clock=clock)
    rows = [{"name": "Alice"}]
    backend.put("k", rows, 60)
    rows.append({"name": "Mallory"})
    assert backend.get("k") == [{"name": "Alice"}]

    backend.put("k", [{"name": "Bob"}], 60)
    assert backend.get("k") == [{"name": "Bob"}]
    backend.forget("k")
    assert backend.get("k") is None


def test_in_memory_put_sweeps_expired_entries(clock):
    backend = InMemoryCacheBackend(clock=clock)
    for user_id in range(50):
        backend.put(f"employees_data:{user_id}", [{"n": user_id}], 10)
    backend.put("fresh", [1], 600)

    clock.advance(core_cache.SWEEP_INTERVAL_SECONDS + 1)
    backend.put("later", [2], 600)

    assert sorted(backend._entries) == ["fresh", "later"]
    assert backend.get("fresh") == [1]


def test_in_memory_rejects_unserialisable_values(clock):
    backend = InMemoryCacheBackend(clock=clock)
    with pytest.raises(TypeError):
        backend.put("k", {object()}, 60)


def test_redis_backend_uses_setex_with_prefix():
    client = MagicMock()
    backend = RedisCacheBackend(client, prefix="test:")
    backend.put("employees_data:1", [{"a": 1}], 600)
    client.setex.assert_called_once_with("test:employees_data:1", 600, json.dumps([{"a": 1}]))

    client.get.return_value = json.dumps([{"a": 1}])
    assert backend.get("employees_data:1") == [{"a": 1}]
    client.get.assert_called_with("test:employees_data:1")

    client.get.return_value = None
    assert backend.get("employees_data:1", []) == []

    backend.forget("employees_data:1")
    client.delete.assert_called_once_with("test:employees_data:1")


def test_get_cache_defaults_to_memory(settings_env):
    core_cache.set_cache(None)
    assert isinstance(core_cache.get_cache(), InMemoryCacheBackend)
    assert core_cache.get_cache() is core_cache.get_cache()


def test_redis_backend_requires_url(settings_env, monkeypatch):
    from farwell.core import config as core_config

    monkeypatch.setenv("CACHE_BACKEND", "redis")
    monkeypatch.delenv("REDIS_URL", raising=False)
    core_config.get_settings.cache_clear()
    core_cache.set_cache(None)
    with pytest.raises(RuntimeError):
        core_cache.get_cache()
