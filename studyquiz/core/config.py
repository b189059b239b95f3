"""
Application configuration settings
FILE: studyquiz/core/config.py
"""
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Content Configuration
    notes_dir: str = "notes"
    notes_glob: str = "*.md"

    # Session Configuration
    sessions_dir: str = ".quiz_sessions"
    default_order: Literal["sequential", "shuffled"] = "sequential"
    shuffle_seed: Optional[int] = None
    # Seconds a completed session stays in API memory; None keeps it forever
    completed_session_ttl: Optional[int] = 3600

    # Logging Configuration
    log_level: str = "INFO"

    # API Configuration
    api_title: str = "Study Quiz API"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:4000",
    ]

    class Config:
        env_file = ".env"
        env_prefix = "quiz_"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
