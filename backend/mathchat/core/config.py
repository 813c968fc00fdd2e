from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings from environment variables"""

    # Application Settings
    APP_NAME: str = "MathChat Solver"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # Upstream model provider (server-side only)
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-3-pro-preview"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_THINKING_BUDGET: Optional[int] = None
    UPSTREAM_TIMEOUT: float = 120.0

    # Client side: where the proxy lives and the public key for its gateway
    MATHCHAT_PROXY_URL: str = "http://localhost:8000"
    MATHCHAT_ANON_KEY: str = ""
    CLIENT_TIMEOUT: float = 180.0

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


# Global settings instance
settings = Settings()
