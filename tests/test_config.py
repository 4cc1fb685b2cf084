"""
Tests for configuration module
"""
from unittest.mock import patch
from botocore.exceptions import ClientError
from core.config import Settings, get_settings
from core.lifespan import _log_setting


def test_settings_defaults(monkeypatch):
    """Test the defaults used when nothing is configured"""
    for name in (
        "SQLALCHEMY_DATABASE_URI", "OPENAI_API_KEY", "OPENAI_MODEL",
        "OPENAI_BASE_URL", "OPENAI_TIMEOUT_SECONDS", "ENV_SECRETS",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()
    assert settings.SQLALCHEMY_DATABASE_URI == "sqlite://"
    assert settings.OPENAI_API_KEY is None
    assert settings.OPENAI_MODEL == "gpt-5-mini"
    assert settings.OPENAI_BASE_URL == "https://api.openai.com"
    assert settings.OPENAI_TIMEOUT_SECONDS == 60


def test_settings_from_environment(monkeypatch):
    """Test that environment variables win"""
    monkeypatch.setenv("SQLALCHEMY_DATABASE_URI", "sqlite:///nebula.db")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.setenv("OPENAI_TIMEOUT_SECONDS", "5.5")

    settings = Settings()
    assert settings.SQLALCHEMY_DATABASE_URI == "sqlite:///nebula.db"
    assert settings.OPENAI_API_KEY == "sk-env"
    assert settings.OPENAI_TIMEOUT_SECONDS == 5.5


def test_settings_from_secrets_manager(monkeypatch):
    """Test that secrets are fetched once and cached"""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("SQLALCHEMY_DATABASE_URI", raising=False)
    monkeypatch.setenv("ENV_SECRETS", "nebula/test")

    with patch(
        "core.config.get_secret",
        return_value={"OPENAI_API_KEY": "sk-secret"},
    ) as mock_get_secret:
        settings = Settings()
        assert settings.OPENAI_API_KEY == "sk-secret"
        assert settings.SQLALCHEMY_DATABASE_URI == "sqlite://"

    mock_get_secret.assert_called_once()


def test_settings_secrets_manager_unavailable(monkeypatch):
    """Test that an unreachable Secrets Manager falls back to the default"""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("ENV_SECRETS", "nebula/test")

    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "GetSecretValue")
    with patch("core.config.get_secret", side_effect=error):
        assert Settings().OPENAI_API_KEY is None


def test_get_settings_is_cached():
    """Test that settings are built once until the cache is cleared"""
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()


def test_log_setting_masks_secrets():
    """Test that secrets and database passwords are masked in logs"""
    with patch("core.lifespan.logger") as mock_logger:
        _log_setting("OPENAI_API_KEY", "sk-secret")
        _log_setting("SQLALCHEMY_DATABASE_URI", "postgresql://nebula:hunter2@db/nebula")
        _log_setting("OPENAI_MODEL", "gpt-5-mini")

    logged = [call.args for call in mock_logger.info.call_args_list]
    assert logged == [
        ("  %s: %s", "OPENAI_API_KEY", "*****"),
        ("  %s: %s", "SQLALCHEMY_DATABASE_URI", "postgresql://nebula:*****@db/nebula"),
        ("  %s: %s", "OPENAI_MODEL", "gpt-5-mini"),
    ]
