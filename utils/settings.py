import os
import logging
from functools import lru_cache
from pathlib import Path
from typing import List
from dotenv import load_dotenv
from pydantic import BaseModel

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

logger = logging.getLogger(__name__)

TEST_PUBLISHABLE_KEY = "pk_test_your_publishable_key"


class Settings(BaseModel):
    api_base_url: str = "http://localhost:8000"
    stripe_publishable_key: str = TEST_PUBLISHABLE_KEY
    price_socket_url: str = "http://localhost:8000"
    price_feed_enabled: bool = False
    public_base_url: str = "http://localhost:3000"
    admin_token_cookie: str = "spectra_admin_auth"
    backend_timeout: float = 15.0
    workflow_ttl_seconds: int = 3600
    cors_origins: List[str] = ["http://localhost:3000"]

    @property
    def uses_test_key(self) -> bool:
        return self.stripe_publishable_key == TEST_PUBLISHABLE_KEY

    @classmethod
    def from_env(cls) -> "Settings":
        values = {}
        env_map = {
            "api_base_url": "API_BASE_URL",
            "stripe_publishable_key": "STRIPE_PUBLISHABLE_KEY",
            "price_socket_url": "PRICE_SOCKET_URL",
            "price_feed_enabled": "PRICE_FEED_ENABLED",
            "public_base_url": "PUBLIC_BASE_URL",
            "admin_token_cookie": "ADMIN_TOKEN_COOKIE",
            "backend_timeout": "BACKEND_TIMEOUT",
            "workflow_ttl_seconds": "WORKFLOW_TTL_SECONDS",
        }
        for field, env_name in env_map.items():
            value = os.getenv(env_name)
            if value:
                values[field] = value
        origins = os.getenv("CORS_ORIGINS")
        if origins:
            values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

        settings = cls(**values)
        settings.api_base_url = settings.api_base_url.rstrip("/")
        settings.public_base_url = settings.public_base_url.rstrip("/")
        return settings


@lru_cache()
def get_settings() -> Settings:
    settings = Settings.from_env()
    if settings.uses_test_key:
        logger.warning("STRIPE_PUBLISHABLE_KEY is not set, falling back to the test key %s", TEST_PUBLISHABLE_KEY)
    return settings


def mask_secret(value: str, visible: int = 8) -> str:
    """Shorten a client secret or token for log output."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "..."
