import pytest

pytestmark = [pytest.mark.roles]

from roleguard.config.settings import Settings
from roleguard.roles.cache import InMemoryKVStore, RedisKVStore, load_store_from_env


def test_in_memory_store_basic_ops():
    store = InMemoryKVStore({"a": "1"})
    assert store.get("a") == "1"
    store.set("b", "2")
    assert store.get("b") == "2"
    store.remove("a")
    store.remove("missing")
    assert store.get("a") is None


def test_load_store_defaults_to_memory(monkeypatch):
    monkeypatch.delenv("ROLEGUARD_CACHE_BACKEND", raising=False)
    assert isinstance(load_store_from_env("npub1abc", Settings(_env_file=None)), InMemoryKVStore)


def test_redis_backend_requires_dsn(monkeypatch):
    monkeypatch.setenv("ROLEGUARD_CACHE_BACKEND", "redis")
    monkeypatch.delenv("ROLEGUARD_REDIS_DSN", raising=False)
    with pytest.raises(RuntimeError, match="ROLEGUARD_REDIS_DSN"):
        load_store_from_env(cfg=Settings(_env_file=None))


def test_backend_read_from_dotenv(tmp_path, monkeypatch):
    monkeypatch.delenv("ROLEGUARD_CACHE_BACKEND", raising=False)
    monkeypatch.delenv("ROLEGUARD_REDIS_DSN", raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text("ROLEGUARD_CACHE_BACKEND=redis\n", encoding="utf-8")
    cfg = Settings(_env_file=str(env_file))
    assert cfg.CACHE_BACKEND == "redis"
    with pytest.raises(RuntimeError, match="ROLEGUARD_REDIS_DSN"):
        load_store_from_env(cfg=cfg)


class _FakeRedis:
    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def setex(self, key, ttl, value):
        self.data[key] = value
        self.ttls[key] = ttl

    def delete(self, key):
        self.data.pop(key, None)


def test_redis_store_namespaces_keys(monkeypatch):
    redis = pytest.importorskip("redis")
    fake = _FakeRedis()
    monkeypatch.setattr(redis.Redis, "from_url", classmethod(lambda cls, dsn, **kw: fake))

    store = RedisKVStore("redis://localhost:6379/0", namespace="roleguard:npub1abc", ttl=60)
    store.set("nostr_ads_role_data", "{}")
    assert fake.data == {"roleguard:npub1abc:nostr_ads_role_data": "{}"}
    assert fake.ttls["roleguard:npub1abc:nostr_ads_role_data"] == 60
    assert store.get("nostr_ads_role_data") == "{}"
    store.remove("nostr_ads_role_data")
    assert fake.data == {}
