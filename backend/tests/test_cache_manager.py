"""Tests for the Redis category cache and its graceful degradation."""

import redis

import cache_manager


class FakeRedis:
    def __init__(self, store=None):
        self.store = dict(store or {})
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("gone")

    def setex(self, key, ttl, value):
        raise redis.ConnectionError("gone")


def test_cache_and_read_category(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache_manager, "get_redis_client", lambda: fake)

    assert cache_manager.cache_category("Game Plus", "게임", ttl=60)
    assert cache_manager.get_cached_category("Game Plus") == "게임"
    assert fake.store == {"category:Game Plus": "게임"}
    assert fake.ttls == {"category:Game Plus": 60}


def test_miss_returns_none(monkeypatch):
    monkeypatch.setattr(cache_manager, "get_redis_client", lambda: FakeRedis())

    assert cache_manager.get_cached_category("Unknown App") is None


def test_unavailable_redis_degrades():
    """With no client every helper is a no-op."""
    assert cache_manager.get_cached_category("A") is None
    assert cache_manager.cache_category("A", "게임", ttl=60) is False


def test_redis_errors_degrade(monkeypatch):
    monkeypatch.setattr(cache_manager, "get_redis_client", lambda: BrokenRedis())

    assert cache_manager.get_cached_category("A") is None
    assert cache_manager.cache_category("A", "게임", ttl=60) is False


def test_failed_connection_is_not_retried(monkeypatch):
    attempts = []

    class Unreachable:
        def __init__(self, **kwargs):
            attempts.append(kwargs)

        def ping(self):
            raise redis.ConnectionError("refused")

    # Drop the autouse stub so the real connection logic runs
    monkeypatch.undo()
    monkeypatch.setattr(cache_manager.redis, "Redis", Unreachable)
    cache_manager.reset_redis_client()

    try:
        assert cache_manager.get_redis_client() is None
        assert cache_manager.get_redis_client() is None
        assert len(attempts) == 1
    finally:
        cache_manager.reset_redis_client()
