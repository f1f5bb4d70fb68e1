"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the LRM2E site happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. session_secret -> SESSION_SECRET).

  @model_validator(mode="after"): DEBUG-conditional SESSION_SECRET logic. Dev
      mode generates a key with a warning, production mode refuses to start
      without one. There is no hard-coded fallback secret.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or contact/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("lrm2e.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    session_secret: str = ""

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    secure_cookies: bool = False
    session_cookie: str = "lrm2e_session"
    # Absolute lifetime, never extended on activity.
    session_max_age: int = 24 * 60 * 60

    # ------------------------------------------------------------------
    # HTTP surface
    # ------------------------------------------------------------------

    # List values are read from the environment as JSON, e.g. ALLOWED_HOSTS='["lrm2e.fr"]'.
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    cors_origins: list[str] = ["http://localhost", "http://localhost:5000", "http://127.0.0.1"]
    login_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Bootstrap accounts (seeded at startup when a password is configured)
    # ------------------------------------------------------------------

    bootstrap_admin_username: str = "admin"
    bootstrap_admin_password: str = ""
    bootstrap_admin_email: str = "admin@lrm2e.fr"

    bootstrap_researcher_username: str = "researcher"
    bootstrap_researcher_password: str = ""
    bootstrap_researcher_email: str = "researcher@lrm2e.fr"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_session_secret(self) -> "Settings":
        """Enforce the SESSION_SECRET policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SESSION_SECRET is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.session_secret:
            if self.debug:
                self.session_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated SESSION_SECRET. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SESSION_SECRET is required in production mode. "
                    "Set SESSION_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.session_secret) < 32:
            raise ValueError("SESSION_SECRET must be at least 32 characters.")
        if self.session_max_age <= 0:
            raise ValueError("SESSION_MAX_AGE must be a positive number of seconds.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
