"""Tests for cache service."""

from mycircle.integrations.cache import NullCacheService, create_cache_service


class TestNullCacheService:
    def test_get_returns_none(self):
        cache = NullCacheService()
        assert cache.get("any_key") is None

    def test_set_does_nothing(self):
        cache = NullCacheService()
        cache.set("key", "value", 60)  # Should not raise

    def test_get_json_returns_none(self):
        cache = NullCacheService()
        assert cache.get_json("any_key") is None


class TestCreateCacheService:
    def test_null_without_redis_url(self, monkeypatch):
        monkeypatch.setattr("mycircle.integrations.cache.settings.redis_url", "")
        assert isinstance(create_cache_service(), NullCacheService)

    def test_falls_back_when_redis_unreachable(self, monkeypatch):
        monkeypatch.setattr("mycircle.integrations.cache.settings.redis_url", "redis://127.0.0.1:1/0")
        assert isinstance(create_cache_service(), NullCacheService)
