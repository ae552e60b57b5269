"""Application configuration using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./prices.db"

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # ==========================================================================
    # Upstream market API
    # ==========================================================================
    market_api_base_url: str = "https://vegetablemarketprice.com/api/dataapi"
    market_site_origin: str = "https://vegetablemarketprice.com/"  # Image URLs are relative to this
    market_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    market_request_timeout: Optional[float] = None  # None = httpx default
    default_city: str = "kerala"

    # ==========================================================================
    # Alerts & Reports
    # ==========================================================================
    alert_criteria_path: str = "filter_criteria.json"
    active_criterion: Optional[str] = None  # Criterion name; None = evaluate all
    email_recipients: str = "market-alerts@example.com"
    report_comparison_days: int = 12
    report_contact_email: str = "market-alerts@example.com"
    report_team_name: str = "Dev Team"

    # ==========================================================================
    # Scheduler (in-process only)
    # ==========================================================================
    scheduler_enabled: bool = False
    timezone: str = "Asia/Kolkata"
    daily_scrape_hour: int = 9
    daily_scrape_minute: int = 0
    weekly_report_day_of_week: str = "mon"
    weekly_report_hour: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
