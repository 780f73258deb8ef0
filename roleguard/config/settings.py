# roleguard/config/settings.py
"""
Application settings with pydantic-settings BaseSettings.

Environment variables with ROLEGUARD_ prefix.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """roleguard settings."""

    model_config = SettingsConfigDict(
        env_prefix="ROLEGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Core
    ENV: str = Field(default="dev", description="Environment: dev, staging, prod")
    DEFAULT_ROLE: str = "viewer"

    # Role state
    ROLE_STORAGE_KEY: str = "nostr_ads_role_data"
    TRANSITION_STATE_KEY: str = "role_transition_state"
    TEST_PRINCIPAL_PREFIX: str = "test_"

    # Remote role authority
    AUTHORITY_URL: str = "http://localhost:3000/api/enhanced-roles"
    AUTHORITY_TIMEOUT_SEC: float = 5.0

    # Local cache backend
    CACHE_BACKEND: str = "memory"  # memory|redis
    REDIS_DSN: str = ""

    # Catalog overrides (YAML); empty means built-in catalog
    PERMISSIONS_PATH: str = ""
    ROUTES_PATH: str = ""

    # Guard
    TEST_MODE: int = Field(default=0, description="Test-mode bypass: 0 in production")
    GUARD_BYPASS_PREFIXES: str = "/healthz,/readyz,/metrics"

    # Helpers
    def get_bypass_prefixes(self) -> List[str]:
        """Parse GUARD_BYPASS_PREFIXES into list."""
        return [p.strip() for p in self.GUARD_BYPASS_PREFIXES.split(",") if p.strip()]

    def permissions_path(self) -> Optional[str]:
        return self.PERMISSIONS_PATH.strip() or None

    def routes_path(self) -> Optional[str]:
        return self.ROUTES_PATH.strip() or None

    def is_prod(self) -> bool:
        """Check if running in production."""
        return self.ENV.lower() == "prod"

    def is_test_mode(self) -> bool:
        """Test mode is never on in production, whatever the variable says."""
        return bool(self.TEST_MODE) and not self.is_prod()


# Singleton instance
settings = Settings()


__all__ = ["Settings", "settings"]
