"""Tests for configuration loading and store selection."""

import pytest

import journeyflow.persistence as persistence
from journeyflow.config import load_config
from journeyflow.constants import DEFAULT_KEY_PREFIX
from journeyflow.instance_id import JourneyInstanceId
from journeyflow.persistence import InMemoryStateStore, SQLiteStateStore, get_store
from journeyflow.persistence.redis import RedisStateStore
from journeyflow.provider import build_provider


@pytest.fixture(autouse=True)
def fresh_store(monkeypatch):
    monkeypatch.delenv("JOURNEYFLOW_DATABASE_URL", raising=False)
    monkeypatch.setattr(persistence, "_store_instance", None)


def test_load_config_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv("JOURNEYFLOW_CONFIG", str(tmp_path / "missing.yaml"))

    config = load_config()
    assert config.store.backend == "inmemory"
    assert config.database_url is None
    assert config.key_prefix == DEFAULT_KEY_PREFIX
    assert config.soft_delete is False


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
store:
  backend: redis
  redis:
    host: testhost
    port: 1234
    ttl_seconds: 600
key_prefix: "Wizard:"
soft_delete: true
"""
    )
    monkeypatch.setenv("JOURNEYFLOW_CONFIG", str(config_path))

    config = load_config()
    assert config.store.backend == "redis"
    assert config.store.redis.host == "testhost"
    assert config.store.redis.port == 1234
    assert config.store.redis.ttl_seconds == 600
    assert config.key_prefix == "Wizard:"
    assert config.soft_delete is True


def test_database_url_env_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite://from-file.db\n")
    monkeypatch.setenv("JOURNEYFLOW_DATABASE_URL", "sqlite://from-env.db")

    config = load_config(str(config_path))
    assert config.database_url == "sqlite://from-env.db"


def test_get_store_uses_redis_config(tmp_path, monkeypatch):
    pytest.importorskip("redis")
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
store:
  backend: redis
  redis:
    host: confighost
    port: 6380
"""
    )
    monkeypatch.setenv("JOURNEYFLOW_CONFIG", str(config_path))

    store = get_store()
    assert isinstance(store, RedisStateStore)
    assert store.host == "confighost"
    assert store.port == 6380


def test_get_store_from_sqlite_url(tmp_path):
    db_path = tmp_path / "journeys.db"

    store = get_store(f"sqlite://{db_path}")
    try:
        assert isinstance(store, SQLiteStateStore)
        assert store.db_path == str(db_path)
        assert get_store() is store
    finally:
        store.close()


def test_get_store_defaults_to_inmemory(tmp_path, monkeypatch):
    monkeypatch.setenv("JOURNEYFLOW_CONFIG", str(tmp_path / "missing.yaml"))

    store = get_store()
    assert isinstance(store, InMemoryStateStore)
    assert get_store() is store


def test_get_store_rejects_backend_without_url(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("store:\n  backend: postgres\n")
    monkeypatch.setenv("JOURNEYFLOW_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="requires a database_url"):
        get_store()


def test_get_store_rejects_unknown_url():
    with pytest.raises(ValueError, match="Unsupported database backend"):
        get_store("mysql://localhost/journeys")


def test_build_provider_applies_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text('key_prefix: "Wizard:"\nsoft_delete: true\n')
    monkeypatch.setenv("JOURNEYFLOW_CONFIG", str(config_path))

    provider = build_provider()
    state_provider = provider.state_provider

    assert isinstance(state_provider.store, InMemoryStateStore)
    assert state_provider.key_for(JourneyInstanceId("wiz", {"id": "7"})) == "Wizard:wiz?id=7"
    assert state_provider.soft_delete is True
