import os
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

DEFAULT_JWT_SECRET = "change-me"


class Settings:
    """Centralised application configuration sourced from environment variables.

    Keyword arguments override the environment, which keeps tests free of
    process-wide state.
    """

    def __init__(self, **overrides: Any) -> None:
        load_dotenv()
        self.database_path = Path(os.getenv("DATABASE_PATH", "data/app.db")).resolve()
        self.jwt_secret = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
        self.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
        self.jwt_expiration_days = self._get_int("JWT_EXPIRATION_DAYS", default=7)
        self.bcrypt_rounds = self._get_int("BCRYPT_ROUNDS", default=12)
        self.paystack_secret_key = os.getenv("PAYSTACK_SECRET_KEY")
        self.paystack_base_url = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")
        self.paystack_timeout_seconds = self._get_float("PAYSTACK_TIMEOUT_SECONDS", default=15.0)
        self.paystack_callback_url = os.getenv("PAYSTACK_CALLBACK_URL")
        self.admin_default_name = os.getenv("ADMIN_NAME", "Administrator")
        self.admin_default_email = os.getenv("ADMIN_EMAIL")
        self.admin_default_password = os.getenv("ADMIN_PASSWORD")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        origins = os.getenv("CORS_ALLOW_ORIGINS")
        if origins:
            self.cors_allow_origins = [item.strip() for item in origins.split(",") if item.strip()]
        else:
            self.cors_allow_origins = ["*"]

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise TypeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @staticmethod
    def _get_int(key: str, default: Optional[int] = None) -> int:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return int(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be an integer") from exc

    @staticmethod
    def _get_float(key: str, default: Optional[float] = None) -> float:
        value = os.getenv(key)
        if value is None:
            if default is None:
                raise RuntimeError(f"Missing required environment variable: {key}")
            return default
        try:
            return float(value)
        except ValueError as exc:
            raise RuntimeError(f"Environment variable {key} must be a number") from exc
