# app/core/config.py

import os
from functools import lru_cache
from typing import List, Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


def _parse_csv_list(value):
    if value in (None, "", []):
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Database settings - empty means in-memory demo storage
    DATABASE_URL: str = ""
    RUN_MIGRATIONS: bool = False

    # Shopify app credentials (OAuth)
    SHOPIFY_API_KEY: Optional[str] = None
    SHOPIFY_API_SECRET: Optional[str] = None
    SHOPIFY_SCOPES: str = "read_products,write_products,read_themes,write_themes"
    SHOPIFY_VERIFY_CALLBACK: bool = False  # nonce/timestamp/HMAC checks on the OAuth callback

    # Shopify Admin API
    SHOPIFY_ACCESS_TOKEN: Optional[str] = None  # Process-wide fallback when a shop has no token
    SHOPIFY_API_VERSION: str = "2024-01"

    # Embedded app defaults (used by /api/shop/info)
    DEFAULT_SHOP_DOMAIN: str = "demo-store.myshopify.com"
    DEFAULT_SHOP_NAME: str = "Demo Store"

    # Public base URL - first non-empty one wins
    APP_URL: Optional[str] = None
    RENDER_EXTERNAL_URL: Optional[str] = None
    REPLIT_DOMAINS: str = ""  # comma-separated

    # PayPal
    PAYPAL_CLIENT_ID: str = ""
    PAYPAL_CLIENT_SECRET: str = ""
    PAYPAL_MODE: str = "sandbox"  # "sandbox" or "live"
    PRO_PRICE: str = "9.99"  # minimum captured amount that unlocks Pro
    PRO_CURRENCY: str = "USD"

    # PageSpeed Insights (Web Vitals)
    PAGESPEED_ENABLED: bool = False
    PAGESPEED_API_KEY: str = ""
    PAGESPEED_TIMEOUT: float = 30.0

    # Image optimisation
    IMAGE_OPTIMIZER_MODE: str = "estimate"  # "estimate" or "encode"
    OPTIMIZATION_RATIO: float = 0.2
    WEBP_QUALITY: int = 80
    HEAVY_IMAGE_THRESHOLD_BYTES: int = 500 * 1024
    IMAGE_DOWNLOAD_TIMEOUT: float = 30.0

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists('.env') else None,
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def replit_domains(self) -> List[str]:
        return _parse_csv_list(self.REPLIT_DOMAINS)

    @property
    def storage_backend(self) -> str:
        return "database" if self.DATABASE_URL else "memory"


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every request"""
    return Settings()


def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
