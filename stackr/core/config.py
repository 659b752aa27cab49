import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database (optional; in-memory store when unset)
    DATABASE_URL: Optional[str] = None

    # Challenges
    DEFAULT_CHALLENGE_DURATION_DAYS: int = 30
    SUGGESTION_COUNT: int = 3

    # Leaderboard
    LEADERBOARD_TOP_N: int = 10

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()

POSITIVE_KEYS = (
    "DEFAULT_CHALLENGE_DURATION_DAYS",
    "SUGGESTION_COUNT",
    "LEADERBOARD_TOP_N",
    "PORT",
)
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate challenge engine configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("stackr")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = [
        f"{key} must be positive"
        for key in POSITIVE_KEYS
        if getattr(cfg, key, 0) <= 0
    ]
    if cfg.LOG_LEVEL.upper() not in LOG_LEVELS:
        problems.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")

    if problems:
        message = f"Invalid configuration: {'; '.join(problems)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)
        return False

    return True
