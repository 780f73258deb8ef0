from __future__ import annotations

from typing import Dict, Optional

from roleguard.config.settings import Settings, settings as _settings

try:
    import redis  # optional
except Exception:
    redis = None


class KeyValueStore:
    """Local persistence contract: string values under string keys."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryKVStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._m: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._m.get(key)

    def set(self, key: str, value: str) -> None:
        self._m[key] = value

    def remove(self, key: str) -> None:
        self._m.pop(key, None)


class RedisKVStore(KeyValueStore):
    """Redis-backed cache; keys are namespaced per principal."""

    def __init__(self, dsn: str, namespace: str = "roleguard", ttl: Optional[int] = None):
        if not redis:
            raise RuntimeError("redis not available")
        self._r = redis.Redis.from_url(dsn, decode_responses=True)
        self._ns = namespace
        self._ttl = ttl

    def _k(self, key: str) -> str:
        return f"{self._ns}:{key}"

    def get(self, key: str) -> Optional[str]:
        return self._r.get(self._k(key))

    def set(self, key: str, value: str) -> None:
        if self._ttl:
            self._r.setex(self._k(key), self._ttl, value)
        else:
            self._r.set(self._k(key), value)

    def remove(self, key: str) -> None:
        self._r.delete(self._k(key))


def load_store_from_env(principal_id: Optional[str] = None, cfg: Optional[Settings] = None) -> KeyValueStore:
    """Cache backend from ROLEGUARD_CACHE_BACKEND / ROLEGUARD_REDIS_DSN (env or .env)."""
    cfg = cfg or _settings
    backend = cfg.CACHE_BACKEND.strip().lower()
    if backend == "redis":
        dsn = cfg.REDIS_DSN.strip()
        if not dsn:
            raise RuntimeError("ROLEGUARD_REDIS_DSN missing")
        ns = f"roleguard:{principal_id}" if principal_id else "roleguard"
        return RedisKVStore(dsn, namespace=ns)
    return InMemoryKVStore()


__all__ = ["KeyValueStore", "InMemoryKVStore", "RedisKVStore", "load_store_from_env"]
