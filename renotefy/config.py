"""
Configuration module for the notes service.
Loads environment variables and provides centralized config access.
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

# ============================================================
# Centralized Data Paths
# ============================================================
# All user data lives under <project>/data/ unless DATA_DIR is set.
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses pydantic-settings for validation and type coercion.
    """

    # ============================================================
    # JWT Authentication
    # ============================================================
    jwt_secret_key: str = "your-super-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 720  # 30 days
    # Signed-in sessions kept in memory; idle ones expire with the token
    max_sessions: int = 1000

    # ============================================================
    # Text Generation
    # ============================================================
    # Which provider backs the AI helpers: "gemini" or "openai"
    llm_provider: str = "gemini"
    llm_model: str = "gemini-1.5-flash"
    llm_temperature: float = 0.7

    # Gemini (Generative Language API)
    gemini_api_key: Optional[str] = None
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # OpenAI or any OpenAI-compatible server
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"

    # ============================================================
    # Note Defaults
    # ============================================================
    default_note_title: str = "Untitled Note"
    default_emoji: str = "📝"

    # ============================================================
    # Storage
    # ============================================================
    data_dir: Path = DATA_DIR
    # URL prefix the uploads router is mounted under
    uploads_url_prefix: str = "/api/uploads"

    # ============================================================
    # Server Configuration
    # ============================================================
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Comma-separated list of allowed browser origins
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def sqlite_db_path(self) -> Path:
        """SQLite database file holding every collection."""
        return self.data_dir / "app.db"

    @property
    def uploads_dir(self) -> Path:
        """Root directory for stored note images."""
        return self.data_dir / "uploads"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse the comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reloading env vars on every call.
    """
    return Settings()
