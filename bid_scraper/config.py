"""
Configuration management for the bid scraper.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"


class AppConfig(BaseModel):
    """Application configuration."""
    name: str = "Bid Scraper"
    version: str = "0.1.0"
    environment: str = Field(default_factory=lambda: os.getenv("APP_ENVIRONMENT", "development"))

    @field_validator("environment", mode="before")
    @classmethod
    def get_environment_from_env(cls, v):
        if v is None:
            return os.getenv("APP_ENVIRONMENT", "development")
        return v


class DatabaseConfig(BaseModel):
    """Database configuration settings."""
    url: str = Field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///bids.db"))
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    fallback_to_memory: bool = True

    @field_validator("url", mode="before")
    @classmethod
    def get_url_from_env(cls, v):
        env_url = os.getenv("DATABASE_URL")
        if env_url:
            return env_url
        return v or "sqlite:///bids.db"


class BrowserConfig(BaseModel):
    """Automated browser settings."""
    headless: bool = True
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    launch_args: List[str] = Field(default_factory=lambda: [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
    ])
    navigation_timeout: int = 60  # seconds
    element_timeout: int = 30  # seconds
    login_field_timeout: int = 10  # seconds


class ScrapingConfig(BaseModel):
    """Extraction heuristics settings."""
    default_due_days: int = 30
    description_min_length: int = 10
    description_max_length: int = 500
    min_title_length: int = 5
    portal_urls: Dict[str, str] = Field(default_factory=dict)


class SchedulerConfig(BaseModel):
    """Periodic run settings."""
    enabled: bool = True
    interval_minutes: int = 15
    run_on_start: bool = False

    @field_validator("interval_minutes")
    @classmethod
    def check_interval(cls, v):
        if v < 1:
            raise ValueError("interval_minutes must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = "json"
    file: Optional[str] = None


class Config(BaseModel):
    """Main configuration class."""
    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    scraping: ScrapingConfig = Field(default_factory=ScrapingConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to configuration file. If None, uses
            ``BID_SCRAPER_CONFIG`` or the bundled default, falling back to
            built-in defaults when neither exists.

    Returns:
        Config object with all settings.
    """
    if config_path is None:
        env_path = os.getenv("BID_SCRAPER_CONFIG")
        if env_path:
            config_path = env_path
        elif DEFAULT_CONFIG_PATH.exists():
            config_path = DEFAULT_CONFIG_PATH
        else:
            return Config()

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f) or {}

    return Config(**config_data)


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> Config:
    """
    Reload configuration from file.

    Args:
        config_path: Path to configuration file. If None, uses default location.

    Returns:
        Updated Config object.
    """
    global _config
    _config = load_config(config_path)
    return _config
