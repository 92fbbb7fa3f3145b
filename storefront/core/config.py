"""
Application configuration management using Pydantic Settings
Handles environment variables, record store credentials and cart settings
"""

from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache


class Settings(BaseSettings):
    """Main application settings"""

    # Application Settings
    APP_NAME: str = "Gorkha Leaf Storefront"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Record Store (Supabase) Configuration
    # Server-side names win over the public ones
    SUPABASE_URL: Optional[str] = None
    NEXT_PUBLIC_SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    NEXT_PUBLIC_SUPABASE_ANON_KEY: Optional[str] = None
    RECORD_STORE_TIMEOUT: float = 10.0

    # Cart Settings
    CART_STORAGE_KEY: str = "gl_cart"
    CART_SNAPSHOT_VERSION: int = 1
    CART_MAX_LINE_QUANTITY: int = 99
    CURRENCY: str = "INR"

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @property
    def resolved_store_url(self) -> Optional[str]:
        """Record store base URL, server variable first"""
        url = self.SUPABASE_URL or self.NEXT_PUBLIC_SUPABASE_URL
        return url.rstrip("/") if url else None

    @property
    def resolved_store_key(self) -> Optional[str]:
        """Record store key: service role key takes priority over the anon key"""
        return self.SUPABASE_SERVICE_ROLE_KEY or self.NEXT_PUBLIC_SUPABASE_ANON_KEY or None

    @property
    def store_access_level(self) -> str:
        """One of "server", "public" or "none" """
        if not self.resolved_store_url:
            return "none"
        if self.SUPABASE_SERVICE_ROLE_KEY:
            return "server"
        if self.NEXT_PUBLIC_SUPABASE_ANON_KEY:
            return "public"
        return "none"


@lru_cache()
def get_settings() -> Settings:
    """
    Create cached settings instance
    This ensures settings are loaded only once
    """
    return Settings()


# Global settings instance
settings = get_settings()
