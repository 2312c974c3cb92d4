"""Unit tests for Settings."""

import pytest
from pydantic import ValidationError

from breadbase.core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.max_identifier_length == 64
    assert settings.models_namespace == "app.models"
    assert settings.db_sqlite_transactional_ddl is True
    assert settings.is_development


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("BREADBASE_MAX_IDENTIFIER_LENGTH", "30")
    monkeypatch.setenv("BREADBASE_MODELS_NAMESPACE", ".myapp.models.")
    monkeypatch.setenv("BREADBASE_CORS_ORIGINS", "http://a.test, http://b.test")

    settings = Settings(_env_file=None)

    assert settings.max_identifier_length == 30
    assert settings.models_namespace == "myapp.models"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_cors_origins_json_list(monkeypatch):
    monkeypatch.setenv("BREADBASE_CORS_ORIGINS", '["http://a.test", "http://b.test"]')

    assert Settings(_env_file=None).cors_origins == ["http://a.test", "http://b.test"]


def test_production_requires_secret_key():
    with pytest.raises(ValidationError, match="BREADBASE_SECRET_KEY"):
        Settings(_env_file=None, environment="production")

    settings = Settings(_env_file=None, environment="production", secret_key="s3cret-value")
    assert settings.is_production
