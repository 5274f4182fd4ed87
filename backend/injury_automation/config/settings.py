"""Application Settings - Central Configuration"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # MongoDB
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "injury_reports_dev"

    # Azure AD (Entra) Configuration - used for Graph sendMail
    aad_tenant_id: str = ""
    aad_client_id: str = ""
    aad_client_secret: str = ""

    # Service Mailbox (ROPC)
    service_mailbox_email: str = ""
    service_mailbox_password: str = ""

    # Email
    email_enabled: bool = True
    email_timeout_seconds: float = 15.0

    # Logging
    logs_path: str = "./logs"
    log_level: str = "INFO"

    # Timezone used when rendering {submission.submittedAt}
    display_timezone: str = "UTC"

    # Escalation
    default_escalation_hours: int = 24
    escalation_sweep_interval_minutes: int = 15

    @property
    def graph_configured(self) -> bool:
        """Check whether Graph credentials are present"""
        return all([
            self.aad_tenant_id,
            self.aad_client_id,
            self.aad_client_secret,
            self.service_mailbox_email,
            self.service_mailbox_password,
        ])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
