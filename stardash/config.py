import os
from typing import Optional
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from stardash.domain.models import TrendStrategy


class Settings(BaseModel):
    """Runtime settings, read from the environment (and a .env file if present)."""
    model_config = ConfigDict(frozen=True)

    github_token: Optional[str] = Field(None, repr=False)
    trend_delay: float = Field(1.0, ge=0, description="Seconds between two trend fetches")
    trend_top_n: int = Field(10, ge=1, description="How many top-starred repositories get a trend fetch")
    trend_strategy: TrendStrategy = TrendStrategy.RECENT
    log_level: str = "INFO"


def load_settings() -> Settings:
    # Load environment variables from .env file
    load_dotenv()

    values = {
        "github_token": os.getenv("GITHUB_TOKEN") or None,
        "trend_delay": os.getenv("STARDASH_TREND_DELAY"),
        "trend_top_n": os.getenv("STARDASH_TREND_TOP_N"),
        "trend_strategy": os.getenv("STARDASH_TREND_STRATEGY"),
        "log_level": os.getenv("STARDASH_LOG_LEVEL"),
    }
    return Settings(**{key: value for key, value in values.items() if value is not None})
