# menu_import/config.py
import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=env_path, override=True)


class Settings(BaseSettings):
    # App configuration from environment variables

    # Basic info
    APP_NAME: str = "Menu Import API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # API Keys
    OPENROUTER_API_KEY: str = os.getenv("OPENROUTER_API_KEY", "")
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    DEFAULT_MODEL_NAME: str = os.getenv(
        "DEFAULT_MODEL_NAME", "nvidia/nemotron-3-nano-30b-a3b:free"
    )
    MODEL_SUPPORTS_STRUCTURED_OUTPUT: bool = False

    # Model call policy
    LLM_TIMEOUT_SECONDS: float = 120.0
    LLM_MAX_RETRIES: int = 2
    LLM_RETRY_DELAY_SECONDS: float = 1.0

    # Paths
    BASE_DIR: Path = Path(__file__).parent
    STORAGE_DIR: Path = BASE_DIR / "storage"
    UPLOADS_DIR: Path = STORAGE_DIR / "uploads"
    OUTPUTS_DIR: Path = STORAGE_DIR / "outputs"
    PROMPTS_DIR: Path = BASE_DIR / "core" / "prompts" / "templates"

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL") or "sqlite:///./menu_import.db"

    # Processing
    MAX_TEXT_LENGTH: int = 200_000
    CHUNK_SIZE_CHARS: int = 200_000
    CHUNK_CONCURRENCY: int = 1
    MAX_FILE_SIZE_MB: int = 10

    CORS_ORIGINS: list = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]


@lru_cache()
def get_settings() -> Settings:
    """Cache settings to avoid re-reading env file"""
    return Settings()
