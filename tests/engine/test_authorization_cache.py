"""
Tests - Authorization Cache
===========================
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone

import pytest

from conftest import USER, OTHER_USER
from warden.cache import AuthorizationCache, DjangoCacheBackend, TaggedMemoryCache
from warden.resolvers import DefaultPermissionValueResolver
from warden.store import InMemoryGrantStore


T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += timedelta(seconds=seconds)


def _cache(backend=None, **kwargs) -> AuthorizationCache:
    return AuthorizationCache(
        backend or TaggedMemoryCache(),
        store=InMemoryGrantStore(permissions={"posts.edit": 1}),
        permission_resolver=DefaultPermissionValueResolver(),
        **kwargs,
    )


class TestTaggedMemoryCache:
    def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        backend = TaggedMemoryCache(clock=clock)
        backend.put("k", True, ttl_seconds=10)

        clock.advance(9)
        assert backend.get("k") is True
        clock.advance(1)
        assert backend.get("k") is None
        assert backend.stats.evictions == 1

    def test_false_is_a_cached_value(self):
        backend = TaggedMemoryCache()
        backend.put("k", False, ttl_seconds=10)

        assert backend.get("k") is False
        assert backend.stats.hits == 1

    def test_flush_tags_removes_only_tagged_entries(self):
        backend = TaggedMemoryCache()
        backend.put("a", True, 10, tags=("t1", "shared"))
        backend.put("b", True, 10, tags=("t2", "shared"))
        backend.put("c", True, 10, tags=("t3",))

        assert backend.flush_tags(("t1",)) == 1
        assert backend.get("a") is None
        assert backend.get("b") is True

        assert backend.flush_tags(("shared",)) == 1
        assert backend.get("c") is True
        assert backend.stats.invalidations == 2

    def test_lru_eviction_when_full(self):
        backend = TaggedMemoryCache(max_size=2)
        backend.put("a", 1, 10)
        backend.put("b", 2, 10)
        backend.get("a")
        backend.put("c", 3, 10)

        assert backend.get("b") is None
        assert backend.get("a") == 1
        assert backend.size == 2

    def test_tag_index_is_bounded_by_live_entries(self):
        backend = TaggedMemoryCache(max_size=10)
        for i in range(2000):
            backend.put(f"k{i}", True, 10, tags=("shared", f"p{i}", f"p{i}:global"))

        assert backend.size == 10
        assert backend.tag_count == 21

    def test_flushed_and_overwritten_entries_drop_their_tags(self):
        backend = TaggedMemoryCache()
        backend.put("a", True, 10, tags=("t1", "shared"))
        backend.put("b", True, 10, tags=("t2", "shared"))
        backend.put("a", False, 10, tags=("t3",))

        assert backend.flush_tags(("t1",)) == 0
        assert backend.get("a") is False

        backend.flush_tags(("shared",))
        assert backend.tag_count == 1
        backend.flush_tags(("t3",))
        assert backend.tag_count == 0

    def test_stats_to_dict(self):
        backend = TaggedMemoryCache()
        backend.get("missing")
        assert backend.stats.to_dict()["misses"] == 1
        assert backend.stats.hit_rate == 0.0


class TestKeysAndTags:
    def test_key_layout(self):
        cache = _cache(prefix="acl")
        digest = hashlib.sha1(b"posts.edit").hexdigest()
        assert cache.key_for(USER, "posts.edit", None) == f"acl:auth:workbench.member:1:global:{digest}"
        assert cache.key_for(USER, 1, 7) == f"acl:auth:workbench.member:1:7:{digest}"

    def test_key_is_safe_for_any_permission_name(self):
        cache = _cache()
        key = cache.key_for(USER, "edit posts\n" + "x" * 255, None)

        assert " " not in key
        assert "\n" not in key
        assert len(key) < 250

    def test_tags(self):
        cache = _cache()
        assert cache.tags_for(USER, 3) == (
            "warden:principal:workbench.member:1",
            "warden:tenant:3",
            "warden:principal:workbench.member:1:3",
        )


class TestInvalidation:
    def test_flush_for_is_exact_to_principal_and_tenant(self):
        cache = _cache()
        cache.put(USER, "posts.edit", None, False)
        cache.put(USER, "posts.edit", 1, False)
        cache.put(OTHER_USER, "posts.edit", 1, True)

        cache.flush_for(USER, 1)

        assert cache.get(USER, "posts.edit", 1) is None
        assert cache.get(USER, "posts.edit", None) is False
        assert cache.get(OTHER_USER, "posts.edit", 1) is True

    def test_flush_principal_covers_every_tenant(self):
        cache = _cache()
        cache.put(USER, "posts.edit", None, True)
        cache.put(USER, "posts.edit", 1, True)
        cache.put(OTHER_USER, "posts.edit", None, True)

        cache.flush_principal(USER)

        assert cache.get(USER, "posts.edit", None) is None
        assert cache.get(USER, "posts.edit", 1) is None
        assert cache.get(OTHER_USER, "posts.edit", None) is True

    def test_flush_tenant(self):
        cache = _cache()
        cache.put(USER, "posts.edit", 1, True)
        cache.put(OTHER_USER, "posts.edit", 1, True)
        cache.put(USER, "posts.edit", 2, True)

        cache.flush_tenant(1)

        assert cache.get(USER, "posts.edit", 1) is None
        assert cache.get(OTHER_USER, "posts.edit", 1) is None
        assert cache.get(USER, "posts.edit", 2) is True

    def test_backend_without_tags_falls_back_to_full_flush(self):
        cache = _cache(DjangoCacheBackend("default"))
        cache.flush_all()
        cache.put(USER, "posts.edit", None, True)
        cache.put(OTHER_USER, "posts.edit", 1, True)

        assert cache.supports_tags() is False
        cache.flush_for(USER, 1)

        assert cache.get(USER, "posts.edit", None) is None
        assert cache.get(OTHER_USER, "posts.edit", 1) is None


def test_disabled_cache_is_inert():
    backend = TaggedMemoryCache()
    cache = _cache(backend, enabled=False)

    cache.put(USER, "posts.edit", None, True)

    assert cache.get(USER, "posts.edit", None) is None
    assert backend.size == 0


@pytest.mark.parametrize("size", [0, -1])
def test_backend_rejects_invalid_size(size):
    with pytest.raises(ValueError):
        TaggedMemoryCache(max_size=size)
