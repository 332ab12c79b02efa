"""Small TTL cache used for rendered listings and path invalidation.

Services never import a module-level map: they take a ``cache`` argument and
fall back to the one attached to the app by ``init_cache``.
"""
import json
import logging
import threading
import time

logger = logging.getLogger(__name__)


class Cache:
    """Capability interface shared by the cache backends."""

    def get(self, key):
        raise NotImplementedError

    def set(self, key, value, ttl=None):
        raise NotImplementedError

    def invalidate(self, key):
        raise NotImplementedError

    def invalidate_prefix(self, prefix):
        raise NotImplementedError


class MemoryCache(Cache):
    """In-process expiry map. ``clock`` is injectable for tests.

    Safe to share between request threads: every access holds ``_lock``.
    """

    def __init__(self, default_ttl=120, clock=time.monotonic):
        self.default_ttl = default_ttl
        self.clock = clock
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self.clock() >= expires_at:
                self._entries.pop(key, None)
                return None
            return value

    def set(self, key, value, ttl=None):
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (value, self.clock() + ttl)

    def invalidate(self, key):
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix):
        with self._lock:
            stale = [k for k in self._entries if k.startswith(prefix)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def __len__(self):
        with self._lock:
            return len(self._entries)


class RedisCache(Cache):
    """Redis-backed cache. Values must be JSON-serializable."""

    def __init__(self, client, default_ttl=120, namespace="storefront"):
        self.client = client
        self.default_ttl = default_ttl
        self.namespace = namespace

    def _key(self, key):
        return f"{self.namespace}:{key}"

    def get(self, key):
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key, value, ttl=None):
        ttl = self.default_ttl if ttl is None else ttl
        self.client.setex(self._key(key), ttl, json.dumps(value))

    def invalidate(self, key):
        self.client.delete(self._key(key))

    def invalidate_prefix(self, prefix):
        keys = list(self.client.scan_iter(match=self._key(prefix) + "*"))
        if keys:
            self.client.delete(*keys)
        return len(keys)


def path_key(path, *parts):
    """Cache key scoped under a dashboard path."""
    key = f"{path}:"
    if parts:
        key += ":".join(str(p) for p in parts)
    return key


def get_cache(cache=None):
    if cache is not None:
        return cache
    from storefront import extensions

    return extensions.cache


def revalidate_path(path, cache=None):
    """Drop every cached entry rendered for ``path``."""
    cache = get_cache(cache)
    if cache is None:
        return 0
    dropped = cache.invalidate_prefix(f"{path}:")
    logger.info("Revalidated %s (%d cached entries dropped)", path, dropped)
    return dropped
