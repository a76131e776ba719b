"""
Tests for startup configuration validation and error responses.
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from storefront.core.config import Settings, validate_config
from storefront.exception_handlers import register_exception_handlers


def make_settings(**overrides):
    base = Settings()
    return base.model_copy(update=overrides)


class TestValidateConfig:

    def test_defaults_are_valid(self):
        validate_config(make_settings(ENV="dev", STORAGE_BACKEND="sql"))

    def test_unknown_storage_backend(self):
        with pytest.raises(ValueError, match="STORAGE_BACKEND"):
            validate_config(make_settings(STORAGE_BACKEND="redis"))

    def test_caps_must_be_positive(self):
        with pytest.raises(ValueError):
            validate_config(make_settings(DEMO_DAILY_CAP=0))

    def test_quota_timezone_must_exist(self):
        with pytest.raises(ValueError, match="DEMO_QUOTA_TIMEZONE"):
            validate_config(make_settings(DEMO_QUOTA_TIMEZONE="Mars/Olympus_Mons"))

    def test_sqlite_refused_in_prod(self):
        with pytest.raises(ValueError, match="SQLite"):
            validate_config(make_settings(ENV="prod", STORAGE_BACKEND="sql", DATABASE_URL="sqlite:///./x.db"))

    @pytest.mark.parametrize("env", ["production", "PROD"])
    def test_production_aliases_get_the_same_gates(self, env):
        with pytest.raises(ValueError, match="SQLite"):
            validate_config(make_settings(ENV=env, STORAGE_BACKEND="sql", DATABASE_URL="sqlite:///./x.db"))
        with pytest.raises(ValueError, match="memory"):
            validate_config(make_settings(ENV=env, STORAGE_BACKEND="memory"))

    def test_memory_storage_refused_in_prod(self):
        with pytest.raises(ValueError, match="memory"):
            validate_config(make_settings(ENV="prod", STORAGE_BACKEND="memory"))

    def test_stripe_without_webhook_secret_refused_in_prod(self):
        with pytest.raises(ValueError, match="STRIPE_WEBHOOK_SECRET"):
            validate_config(make_settings(
                ENV="prod",
                STORAGE_BACKEND="sql",
                DATABASE_URL="postgresql://u:p@db/storefront",
                STRIPE_SECRET_KEY="sk_live_x",
                STRIPE_WEBHOOK_SECRET="",
            ))

    def test_allowed_origins_parsing(self):
        config = make_settings(ALLOWED_ORIGINS="https://a.example, https://b.example,")
        assert config.allowed_origins == ["https://a.example", "https://b.example"]


@pytest.fixture
def error_app():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise ValueError("secret connection string leaked")

    return app


def test_unhandled_error_is_generic_in_production(error_app, monkeypatch):
    from storefront.core import env

    monkeypatch.setenv("ENV", "prod")
    env.get_env_name.cache_clear()
    env.is_local_env.cache_clear()
    try:
        response = TestClient(error_app, raise_server_exceptions=False).get("/boom")
    finally:
        env.get_env_name.cache_clear()
        env.is_local_env.cache_clear()

    assert response.status_code == 500
    assert response.json() == {"error": "INTERNAL_ERROR", "message": "Internal server error"}


def test_unhandled_error_is_detailed_locally(error_app, monkeypatch):
    from storefront.core import env

    monkeypatch.setenv("ENV", "dev")
    env.get_env_name.cache_clear()
    env.is_local_env.cache_clear()
    try:
        response = TestClient(error_app, raise_server_exceptions=False).get("/boom")
    finally:
        env.get_env_name.cache_clear()
        env.is_local_env.cache_clear()

    assert response.status_code == 500
    assert "secret connection string leaked" in response.json()["message"]
