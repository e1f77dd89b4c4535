from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, List

from dotenv import load_dotenv


load_dotenv()


DEFAULT_MAIL_API_BASE_URL = "https://api.mail.tm"

PRODUCTION_ORIGINS = [
    "https://stealthmail.com",
    "https://www.stealthmail.com",
    "https://stealth-mail.vercel.app",
]
DEVELOPMENT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


@dataclass(frozen=True)
class Settings:
    mail_api_base_url: str
    mail_api_timeout: float

    notion_token: Optional[str]
    notion_database_id: Optional[str]

    environment: str
    allowed_origins: List[str]

    rate_limit_window_seconds: int
    rate_limit_max: int
    create_rate_limit_window_seconds: int
    create_rate_limit_max: int

    host: str
    port: int
    gateway_url: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def notion_configured(self) -> bool:
        return bool(self.notion_token and self.notion_database_id)

    @staticmethod
    def _strip_env(key: str, default: str | None = None) -> str | None:
        """Get env var and strip whitespace/newlines (common issue with deployment secrets)."""
        val = os.getenv(key)
        if val is None:
            return default
        stripped = val.strip()
        return stripped if stripped else default

    @staticmethod
    def _int_env(key: str, default: int) -> int:
        raw = Settings._strip_env(key) or str(default)
        try:
            return int(raw)
        except ValueError:
            return default

    @staticmethod
    def load() -> "Settings":
        mail_api_base_url = (Settings._strip_env("MAIL_API_BASE_URL") or DEFAULT_MAIL_API_BASE_URL).rstrip("/")
        mail_api_timeout_str = Settings._strip_env("MAIL_API_TIMEOUT") or "30"
        try:
            mail_api_timeout = float(mail_api_timeout_str)
        except ValueError:
            mail_api_timeout = 30.0

        notion_token = Settings._strip_env("NOTION_TOKEN")
        notion_database_id = Settings._strip_env("NOTION_DATABASE_ID")

        environment = (Settings._strip_env("APP_ENV") or "development").lower()
        origins_str = Settings._strip_env("ALLOWED_ORIGINS") or ""
        allowed_origins = [o.strip() for o in origins_str.split(",") if o.strip()]
        if not allowed_origins:
            allowed_origins = list(PRODUCTION_ORIGINS if environment == "production" else DEVELOPMENT_ORIGINS)

        return Settings(
            mail_api_base_url=mail_api_base_url,
            mail_api_timeout=mail_api_timeout,
            notion_token=notion_token,
            notion_database_id=notion_database_id,
            environment=environment,
            allowed_origins=allowed_origins,
            rate_limit_window_seconds=Settings._int_env("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
            rate_limit_max=Settings._int_env("RATE_LIMIT_MAX", 100),
            create_rate_limit_window_seconds=Settings._int_env("CREATE_RATE_LIMIT_WINDOW_SECONDS", 60),
            create_rate_limit_max=Settings._int_env("CREATE_RATE_LIMIT_MAX", 10),
            host=Settings._strip_env("HOST") or "0.0.0.0",
            port=Settings._int_env("PORT", 3001),
            gateway_url=(Settings._strip_env("GATEWAY_URL") or "http://localhost:3001").rstrip("/"),
        )
