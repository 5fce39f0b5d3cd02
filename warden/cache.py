"""
Warden Cache - Authorization Decisions with Tag Invalidation
============================================================
Cache is disposable: the grant store is the source of truth and any
entry can be re-derived by a miss.

Key:  {prefix}:auth:{type}:{id}:{tenant|global}:{sha1 of permission name}
Tags: {prefix}:principal:{type}:{id}
      {prefix}:tenant:{tenant|global}
      {prefix}:principal:{type}:{id}:{tenant|global}

Backends without tag support fall back to a full flush on invalidation.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Set

from warden.principal import PrincipalIdentity
from warden.resolvers import PermissionValueResolver, permission_cache_name
from warden.tenancy import tenant_label

logger = logging.getLogger("warden.cache")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheBackend(Protocol):
    @property
    def supports_tags(self) -> bool:
        ...

    def get(self, key: str) -> Optional[Any]:
        ...

    def put(self, key: str, value: Any, ttl_seconds: int, tags: Iterable[str] = ()) -> None:
        ...

    def flush_tags(self, tags: Iterable[str]) -> int:
        ...

    def clear(self) -> None:
        ...


# ══════════════════════════════════════════════════════════════
# IN-PROCESS TAGGED STORE
# ══════════════════════════════════════════════════════════════

@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    invalidations: int = 0
    total_entries: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "invalidations": self.invalidations,
            "total_entries": self.total_entries,
            "hit_rate": round(self.hit_rate, 4),
        }


class TaggedMemoryCache:
    """
    In-memory LRU cache with TTL expiration and tag invalidation.

    Shared by every request in the process, so all access is locked.
    The clock is injectable for tests.
    """

    supports_tags = True

    def __init__(
        self,
        max_size: int = 10000,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive.")
        self._max_size = max_size
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._tags: Dict[str, Set[str]] = {}  # tag → set of cache keys
        self._key_tags: Dict[str, Set[str]] = {}  # cache key → its tags
        self._stats = CacheStats()
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[Any]:
        """Returns None on miss or expired entry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None

            if entry.is_expired(self._clock()):
                self._evict(key)
                self._stats.misses += 1
                return None

            self._entries.move_to_end(key)
            self._stats.hits += 1
            return entry.value

    def put(
        self,
        key: str,
        value: Any,
        ttl_seconds: int,
        tags: Iterable[str] = (),
    ) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_size:
                self._evict_lru()

            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                expires_at=self._clock() + timedelta(seconds=ttl_seconds),
            )
            self._entries.move_to_end(key)
            self._stats.total_entries = len(self._entries)

            self._untag(key)
            key_tags = set(tags)
            if key_tags:
                self._key_tags[key] = key_tags
            for tag in key_tags:
                self._tags.setdefault(tag, set()).add(key)

    def flush_tags(self, tags: Iterable[str]) -> int:
        """Invalidate every entry carrying any of the tags."""
        with self._lock:
            count = 0
            for tag in tags:
                for key in self._tags.pop(tag, set()):
                    if key in self._entries:
                        self._evict(key, counted=False)
                        count += 1
            self._stats.invalidations += count
            self._stats.total_entries = len(self._entries)
            return count

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._tags.clear()
            self._key_tags.clear()
            self._stats.total_entries = 0

    @property
    def stats(self) -> CacheStats:
        return self._stats

    @property
    def size(self) -> int:
        return len(self._entries)

    @property
    def tag_count(self) -> int:
        return len(self._tags)

    def _evict(self, key: str, counted: bool = True) -> None:
        self._entries.pop(key, None)
        self._untag(key)
        if counted:
            self._stats.evictions += 1
        self._stats.total_entries = len(self._entries)

    def _untag(self, key: str) -> None:
        for tag in self._key_tags.pop(key, ()):
            tag_keys = self._tags.get(tag)
            if tag_keys is None:
                continue
            tag_keys.discard(key)
            if not tag_keys:
                del self._tags[tag]

    def _evict_lru(self) -> None:
        if self._entries:
            oldest_key = next(iter(self._entries))
            self._evict(oldest_key)


# ══════════════════════════════════════════════════════════════
# DJANGO CACHE FRAMEWORK ADAPTER
# ══════════════════════════════════════════════════════════════

class DjangoCacheBackend:
    """Wraps a ``CACHES`` alias. Django caches have no tag grouping."""

    supports_tags = False

    def __init__(self, alias: str = "default"):
        self.alias = alias

    @property
    def _cache(self):
        from django.core.cache import caches

        return caches[self.alias]

    def get(self, key: str) -> Optional[Any]:
        return self._cache.get(key)

    def put(self, key: str, value: Any, ttl_seconds: int, tags: Iterable[str] = ()) -> None:
        self._cache.set(key, value, timeout=ttl_seconds)

    def flush_tags(self, tags: Iterable[str]) -> int:
        raise NotImplementedError(f"Cache alias '{self.alias}' has no tag support.")

    def clear(self) -> None:
        self._cache.clear()


# ══════════════════════════════════════════════════════════════
# AUTHORIZATION CACHE
# ══════════════════════════════════════════════════════════════

class AuthorizationCache:
    """
    Maps (principal, permission, tenant) to a prior boolean decision.

    Permission references are normalized to their canonical name before
    keying, so every call shape for one permission hits one entry.
    """

    def __init__(
        self,
        backend: CacheBackend,
        *,
        store,
        permission_resolver: PermissionValueResolver,
        enabled: bool = True,
        ttl: int = 300,
        prefix: str = "warden",
    ):
        self._backend = backend
        self._store = store
        self._permission_resolver = permission_resolver
        self._enabled = enabled
        self._ttl = ttl
        self._prefix = prefix

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    def is_enabled(self) -> bool:
        return self._enabled

    def supports_tags(self) -> bool:
        return bool(self._backend.supports_tags)

    def key_for(self, principal: PrincipalIdentity, permission: Any, tenant: Any) -> str:
        """Key for one decision. The permission name is stored as its SHA-1 digest."""
        """Permission names are hashed so any stored name yields a memcached-safe key."""
        name = permission_cache_name(
            permission,
            store=self._store,
            value_resolver=self._permission_resolver,
        )
        return (
            f"{self._prefix}:auth:{principal.kind}:{principal.key}:"
            f"{tenant_label(tenant)}:{hashlib.sha1(name.encode()).hexdigest()}"
        )

    def principal_tag(self, principal: PrincipalIdentity) -> str:
        return f"{self._prefix}:principal:{principal.kind}:{principal.key}"

    def tenant_tag(self, tenant: Any) -> str:
        return f"{self._prefix}:tenant:{tenant_label(tenant)}"

    def scoped_tag(self, principal: PrincipalIdentity, tenant: Any) -> str:
        return f"{self.principal_tag(principal)}:{tenant_label(tenant)}"

    def tags_for(self, principal: PrincipalIdentity, tenant: Any) -> tuple[str, str, str]:
        return (
            self.principal_tag(principal),
            self.tenant_tag(tenant),
            self.scoped_tag(principal, tenant),
        )

    def get(self, principal: PrincipalIdentity, permission: Any, tenant: Any) -> Optional[bool]:
        """None means no cached decision."""
        if not self._enabled:
            return None
        key = self.key_for(principal, permission, tenant)
        value = self._backend.get(key)
        logger.debug(f"Authorization cache {'miss' if value is None else 'hit'}: {key}")
        return value

    def put(
        self,
        principal: PrincipalIdentity,
        permission: Any,
        tenant: Any,
        decision: bool,
    ) -> None:
        if not self._enabled:
            return
        key = self.key_for(principal, permission, tenant)
        tags = self.tags_for(principal, tenant) if self.supports_tags() else ()
        self._backend.put(key, bool(decision), self._ttl, tags)

    def flush_for(self, principal: PrincipalIdentity, tenant: Any) -> None:
        """Invalidate decisions cached for exactly this (principal, tenant) pair."""
        self._flush((self.scoped_tag(principal, tenant),))

    def flush_principal(self, principal: PrincipalIdentity) -> None:
        """Invalidate the principal's decisions under every tenant."""
        self._flush((self.principal_tag(principal),))

    def flush_tenant(self, tenant: Any) -> None:
        self._flush((self.tenant_tag(tenant),))

    def flush_all(self) -> None:
        if not self._enabled:
            return
        self._backend.clear()
        logger.info("Authorization cache cleared.")

    def _flush(self, tags: tuple[str, ...]) -> None:
        if not self._enabled:
            return
        if not self.supports_tags():
            # Without tags there is no way to find the affected keys.
            # A full flush is preferred over serving stale decisions.
            logger.warning(
                f"Cache backend has no tag support; clearing the whole store "
                f"to invalidate {tags}."
            )
            self._backend.clear()
            return
        count = self._backend.flush_tags(tags)
        logger.info(f"Invalidated {count} cached decision(s) for {tags}.")
