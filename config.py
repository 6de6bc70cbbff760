"""
configuration for the portfolio assistant
everything comes from environment variables, with a .env file loaded first
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# load env vars so we can access the api key
load_dotenv()


@dataclass(frozen=True)
class Settings:
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    temperature: float = 0.3
    database_path: str = "portfolio.db"
    storage_dir: str = "resume_files"
    max_upload_mb: int = 5
    log_level: str = "INFO"
    speech_lang: str = "en-US"

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


def get_settings() -> Settings:
    """
    builds the settings from the environment
    missing optional values fall back to the defaults above
    """
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        temperature=float(os.getenv("CHAT_TEMPERATURE", "0.3")),
        database_path=os.getenv("PORTFOLIO_DB_PATH", "portfolio.db"),
        storage_dir=os.getenv("RESUME_STORAGE_DIR", "resume_files"),
        max_upload_mb=int(os.getenv("MAX_UPLOAD_MB", "5")),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        speech_lang=os.getenv("SPEECH_LANG", "en-US"),
    )


def require_api_key(settings: Settings) -> str:
    """returns the openai key or raises if it isnt configured"""
    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY environment variable is not set")
    return settings.openai_api_key
