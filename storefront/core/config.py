"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided, so a
    misconfigured deployment fails at startup instead of at the first checkout.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="storefront-payments", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:4200",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    carts_table: str = Field(default="cart_items", description="Table holding one row per cart line")
    purchases_table: str = Field(default="purchases", description="Table holding purchase records")

    # Mercado Pago
    mercadopago_access_token: str = Field(..., description="Mercado Pago private access token")
    mercadopago_webhook_url: str = Field(
        ...,
        description="Public base URL the processor uses to reach this service",
    )
    payment_currency: str = Field(default="UYU", description="Currency id sent with every preference item")
    processor_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for any single call to the payment processor",
    )
    processor_max_retries: int = Field(
        default=0,
        ge=0,
        description="SDK-level retries; redelivery is left to the processor",
    )

    # Frontend
    frontend_url: str = Field(..., description="Frontend base URL used for back URLs after checkout")

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def notification_url(self) -> str:
        """Webhook URL registered on every preference."""
        return f"{self.mercadopago_webhook_url.rstrip('/')}/webhook/mercadopago"

    @property
    def back_urls(self) -> dict[str, str]:
        """Frontend pages the processor sends the buyer back to."""
        base = self.frontend_url.rstrip("/")
        return {
            "success": f"{base}/purchase-success",
            "failure": f"{base}/purchase-failure",
            "pending": f"{base}/purchase-pending",
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
