"""
Configuration Management for the EHR Report Service

Environment-based configuration using Pydantic Settings.
"""
from typing import Optional, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields from .env file
    )

    # Application
    app_name: str = "EHR - Hospital Management System"
    app_version: str = "1.0.0"
    debug: bool = Field(default=False, description="Enable debug mode")

    # API Configuration
    api_prefix: str = "/api/v1"
    cors_origins: List[str] = ["*"]

    # Logging
    log_level: str = Field(default="INFO", description="Root logging level")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    # Reports
    reports_dir: str = "reports"
    report_format: str = Field(default="pdf", description="'pdf' or 'txt'")
    report_timezone: Optional[str] = Field(
        default=None,
        description="IANA zone used for report dates; server local time when unset"
    )
    report_tagline: str = "EHR - Hospital Management System"

    @property
    def effective_log_level(self) -> str:
        """Debug mode forces DEBUG logging, including page-break traces."""
        return "DEBUG" if self.debug else self.log_level


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
