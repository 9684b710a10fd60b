import pytest

from utils.config import get_app_config, get_database_config, get_pool_config, validate_config

DB_ENV = {
    "FORMSDB_HOST": "db.local",
    "FORMSDB_NAME": "forms",
    "FORMSDB_USER": "reader",
    "FORMSDB_PASS": "secret",
}


@pytest.fixture
def clean_env(monkeypatch):
    for key in list(DB_ENV) + ["FORMSDB_PORT", "FORMSDB_SSLMODE", "FORMSDB_POOL_MIN",
                                  "FORMSDB_POOL_MAX", "TIMEZONE", "CHART_CACHE_TTL_SECONDS"]:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_database_config_from_env(clean_env):
    for key, value in DB_ENV.items():
        clean_env.setenv(key, value)

    config = get_database_config()

    assert config == {
        "host": "db.local",
        "port": "5432",
        "database": "forms",
        "user": "reader",
        "password": "secret",
        "sslmode": "prefer",
    }


def test_database_config_lists_missing_keys(clean_env):
    clean_env.setenv("FORMSDB_HOST", "db.local")

    with pytest.raises(ValueError) as excinfo:
        get_database_config()

    assert "password" in str(excinfo.value)
    assert validate_config()[0].startswith("FORMS DB:")


def test_app_config_defaults(clean_env):
    config = get_app_config()

    assert config["timezone"] == "Europe/Copenhagen"
    assert config["chart_cache_ttl_seconds"] == 30
    assert config["default_cycle_time_seconds"] == 18.0


def test_app_config_overrides(clean_env):
    clean_env.setenv("TIMEZONE", "UTC")
    clean_env.setenv("CHART_CACHE_TTL_SECONDS", "5")

    config = get_app_config()

    assert config["timezone"] == "UTC"
    assert config["chart_cache_ttl_seconds"] == 5


def test_pool_config(clean_env):
    assert get_pool_config() == {"min_connections": 1, "max_connections": 10}

    clean_env.setenv("FORMSDB_POOL_MIN", "5")
    clean_env.setenv("FORMSDB_POOL_MAX", "2")
    with pytest.raises(ValueError):
        get_pool_config()
    assert any(p.startswith("POOL:") for p in validate_config())
