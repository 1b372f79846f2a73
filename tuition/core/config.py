from typing import Dict, List

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Month of year -> billing item codes that are not charged in that month.
    # Default: no tuition during the March and August long breaks.
    tuition_exemptions: Dict[int, List[str]] = Field(
        default_factory=lambda: {3: ["TUITION"], 8: ["TUITION"]},
        alias="TUITION_EXEMPTIONS",
    )

    balance_page_size: int = Field(50, alias="BALANCE_PAGE_SIZE")
    recent_payments_limit: int = Field(5, alias="RECENT_PAYMENTS_LIMIT")
    cascade_balance_rebuild: bool = Field(False, alias="CASCADE_BALANCE_REBUILD")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
