from __future__ import annotations

import pytest

from easylist_backend.config import Settings


def test_settings_development_allows_wildcard_cors():
    s = Settings.model_validate({"environment": "development"})
    assert s.cors_origins_list() == ["*"]
    assert any("CORS_ALLOW_ORIGINS" in w for w in s.security_warnings())


def test_settings_production_requires_explicit_cors():
    with pytest.raises(Exception) as excinfo:
        Settings.model_validate({"environment": "production", "cors_allow_origins": "*"})

    assert "CORS_ALLOW_ORIGINS" in str(excinfo.value)


def test_settings_production_rejects_non_positive_db_timeout():
    with pytest.raises(Exception) as excinfo:
        Settings.model_validate(
            {
                "environment": "production",
                "cors_allow_origins": "https://app.example.com",
                "db_operation_timeout_seconds": 0,
            }
        )

    assert "DB_OPERATION_TIMEOUT_SECONDS" in str(excinfo.value)


def test_settings_production_allows_safe_config():
    s = Settings.model_validate(
        {
            "environment": "production",
            "database_url": "postgresql+psycopg://u:p@localhost:5432/easylist",
            "cors_allow_origins": "https://app.example.com, https://admin.example.com",
            "smtp_host": "smtp.example.com",
            "domain": "https://api.example.com/",
        }
    )
    assert s.cors_origins_list() == ["https://app.example.com", "https://admin.example.com"]
    assert s.public_url("/api/v1/folders/1") == "https://api.example.com/api/v1/folders/1"
    assert s.security_warnings() == []
