from pydantic_settings import SettingsConfigDict

from .crawler import CrawlerConfig
from .logging_config import LoggingConfig


class CrawlkitConfig(CrawlerConfig, LoggingConfig):
    model_config = SettingsConfigDict(
        env_prefix="CRAWLKIT_",
        # read from dotenv format config file
        env_file=".env",
        env_file_encoding="utf-8",
        # ignore extra attributes
        extra="ignore",
    )


__all__ = ["CrawlkitConfig", "CrawlerConfig", "LoggingConfig"]
