"""
Centralized application configuration
"""
import json
from decimal import Decimal
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "Storefront API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "REST API for the storefront: catalog, cart, checkout and reviews"
    API_DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://shop.example.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    # Auth
    JWT_SECRET: str = "change-me"
    JWT_REFRESH_SECRET: str = "change-me-too"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    CLIENT_URL: str = "http://localhost:3000"

    # Tax / shipping rate APIs (optional, defaults are used when unset or failing)
    TAX_API_URL: str = ""
    TAX_API_KEY: str = ""
    DEFAULT_TAX_RATE: Decimal = Decimal("0.08")
    SHIPPING_API_URL: str = ""
    SHIPPING_API_KEY: str = ""
    SHIPPING_FROM_COUNTRY: str = ""
    SHIPPING_FROM_STATE: str = ""
    SHIPPING_FROM_CITY: str = ""
    SHIPPING_FROM_ZIP: str = ""
    DEFAULT_SHIPPING_COST: Decimal = Decimal("10")
    DEFAULT_DELIVERY_DAYS: int = 7
    RATES_TIMEOUT_SECONDS: float = 10.0

    # Payments
    STRIPE_SECRET_KEY: str = ""
    CURRENCY: str = "USD"

    # Email
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_USE_TLS: bool = True
    EMAIL_FROM_NAME: str = "Storefront"
    EMAIL_FROM_ADDRESS: str = "no-reply@localhost"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Rate limiting (requests per minute)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_AUTHENTICATED: int = 1000
    RATE_LIMIT_ANONYMOUS: int = 100

    # Catalog
    LOW_STOCK_THRESHOLD: int = 5

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]


settings = Settings()
