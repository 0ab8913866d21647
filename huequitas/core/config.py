from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


# Load .env early for local development
load_dotenv()


class Settings(BaseSettings):
    """Settings shared by the gateway, auth, core and chat services."""

    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True)

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./huequitas.db")

    # Security
    app_secret_key: str = os.getenv("APP_SECRET_KEY", "dev-secret-change-me")
    access_token_exp_minutes: int = int(os.getenv("ACCESS_TOKEN_EXP_MINUTES", str(60 * 24 * 7)))
    reset_code_ttl_minutes: int = int(os.getenv("RESET_CODE_TTL_MINUTES", "15"))
    reset_token_exp_minutes: int = int(os.getenv("RESET_TOKEN_EXP_MINUTES", "15"))
    password_min_length: int = int(os.getenv("PASSWORD_MIN_LENGTH", "8"))

    # Mail (empty host = delivery disabled)
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_user: str = os.getenv("SMTP_USER", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    mail_from: str = os.getenv("MAIL_FROM", "no-reply@huequitas.local")

    # CORS allowlist, comma separated
    cors_origins: str = os.getenv(
        "CORS_ORIGINS", "http://localhost:5173,http://localhost:5174,http://localhost:5175"
    )

    # Gateway upstreams
    auth_service_url: str = os.getenv("AUTH_SERVICE_URL", "http://localhost:8001")
    core_service_url: str = os.getenv("CORE_SERVICE_URL", "http://localhost:8002")
    chat_service_url: str = os.getenv("CHAT_SERVICE_URL", "http://localhost:8003")
    gateway_max_body_bytes: int = int(os.getenv("GATEWAY_MAX_BODY_BYTES", str(100 * 1024 * 1024)))
    gateway_timeout_seconds: float = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "30"))

    # Chat
    chat_history_limit: int = int(os.getenv("CHAT_HISTORY_LIMIT", "50"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: str = os.getenv("LOG_DIR", "./logs")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
