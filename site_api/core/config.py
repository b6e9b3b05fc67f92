from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from pathlib import Path
from typing import Optional


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # SMTP transport - mail is disabled unless both credentials are set
    smtp_host: str = "smtpout.secureserver.net"
    smtp_port: int = 587
    smtp_email: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from_name: str = "ARCHIKMOR Team"
    smtp_timeout: float = 30.0

    notification_email: str = "Sales@archikmor.com"
    website_url: str = "http://localhost:3004"
    brand_name: str = "ARCHIKMOR"

    # MongoDB URI - must include the database name
    mongo_uri: Optional[str] = None
    mongodb_url: Optional[str] = None  # Alternative environment variable name

    port: int = 3004
    environment: str = "development"

    # Catalogue asset
    catalogue_path: Path = Path("catalogue/Archikmor-Catalog2026.pdf")
    catalogue_attachment_name: str = "ARCHIKMOR-Catalogue-2026.pdf"
    catalogue_size_warning_mb: float = 25.0

    # CORS settings
    allowed_origins: list[str] = ["*"]

    # Follow-up email series
    followups_enabled: bool = False
    followup_interval_minutes: int = 60
    contact_followup_days: int = 3
    followup_window_days: int = 3

    @property
    def effective_mongo_uri(self) -> Optional[str]:
        """Get the effective MongoDB URI from available sources"""
        return self.mongodb_url or self.mongo_uri

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_email and self.smtp_password)

    @property
    def sender_address(self) -> str:
        return self.smtp_email or self.notification_email

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings():
    return Settings()
