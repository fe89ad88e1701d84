"""Application configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[3] / ".env"),
        case_sensitive=False,
    )

    # Application
    log_level: str = "INFO"
    auth_enabled: bool = False
    # `token:role` comma-separated pairs, e.g. "abc123:admin,def456:finance"
    api_tokens: str = ""

    # Marketplace REST API
    marketplace_api_url: str = "http://localhost:5000"
    marketplace_api_token: str = ""
    marketplace_timeout_seconds: float = 15.0

    # Pricing estimator
    default_rate_per_km: int = 45
    fuel_surcharge_percent: int = 12
    admin_margin_percent: int = 8
    handling_fee: int = 500
    heavy_load_threshold_tons: int = 5
    heavy_load_step_percent: int = 2
    distance_fallback_min_km: int = 400
    distance_fallback_max_km: int = 1600

    # Invoicing
    default_tax_percent: int = 18
    default_payment_terms: str = "Net 30"

    def marketplace_base_url(self) -> str:
        return (self.marketplace_api_url or "").strip().rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
