from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Storage Configuration
    # Any SQLAlchemy URL works; SQLite keeps everything in a local file by default
    DATABASE_URL: str = "sqlite:///command_generator.db"

    # Optional JSON manifest replacing the built-in command catalog
    MANIFEST_PATH: Optional[str] = None

    # Seconds of idle time before a draft is written
    DRAFT_SAVE_DELAY: float = 0.4

    # Attachments keep only the head of each captured file
    ATTACHMENT_CHAR_LIMIT: int = 2000

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
