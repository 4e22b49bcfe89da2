from __future__ import annotations

import pytest

from app.core.config import DEFAULT_JWT_SECRET, Settings


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "DATABASE_PATH",
        "JWT_SECRET",
        "JWT_EXPIRATION_DAYS",
        "BCRYPT_ROUNDS",
        "PAYSTACK_SECRET_KEY",
        "PAYSTACK_TIMEOUT_SECONDS",
        "CORS_ALLOW_ORIGINS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    settings = Settings()

    assert settings.jwt_secret == DEFAULT_JWT_SECRET
    assert settings.jwt_expiration_days == 7
    assert settings.bcrypt_rounds == 12
    assert settings.paystack_secret_key is None
    assert settings.paystack_base_url == "https://api.paystack.co"
    assert settings.cors_allow_origins == ["*"]
    assert settings.log_level == "INFO"


def test_environment_is_read(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BCRYPT_ROUNDS", "11")
    monkeypatch.setenv("PAYSTACK_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "https://a.test, https://b.test,")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.bcrypt_rounds == 11
    assert settings.paystack_timeout_seconds == 2.5
    assert settings.cors_allow_origins == ["https://a.test", "https://b.test"]
    assert settings.log_level == "DEBUG"


def test_overrides_win_over_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWT_SECRET", "from-env")

    assert Settings(jwt_secret="from-test").jwt_secret == "from-test"


def test_unknown_override_is_rejected() -> None:
    with pytest.raises(TypeError):
        Settings(jwt_secrt="typo")


def test_malformed_integer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JWT_EXPIRATION_DAYS", "seven")

    with pytest.raises(RuntimeError, match="JWT_EXPIRATION_DAYS"):
        Settings()
