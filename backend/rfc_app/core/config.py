"""Application configuration loaded from environment variables.

Settings for the SQLite store, the login-code flow, the session cookie,
mail delivery and rate limiting. Uses pydantic-settings for validation and
.env file support.
"""

from pathlib import Path
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure development secret that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_SECRET = "rfc-app-development-secret-do-not-deploy"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_path: Path = Path("data") / "app.db"
    database_echo: bool = False

    # API
    # Security: bind to loopback by default; put a reverse proxy in front in production.
    api_host: str = "127.0.0.1"
    api_port: int = 3000

    # CORS (Security)
    # CRITICAL: Never set to ["*"] when allow_credentials=True
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Login codes
    login_code_ttl_minutes: int = 10

    # Session cookie
    auth_secret: SecretStr = SecretStr(_INSECURE_DEFAULT_SECRET)
    auth_issuer: str = "rfc-app"
    auth_cookie_name: str = "rfc_app.session"
    auth_cookie_secure: bool = True
    auth_cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    auth_cookie_domain: str = ""
    auth_session_hours: int = 24

    # Email
    email_from: str = "noreply@rfc-app.local"
    resend_api_key: SecretStr = SecretStr("")

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_enabled: bool = True
    rate_limit_login_start: str = "5/hour"
    rate_limit_login_verify: str = "10/minute"

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return f"sqlite+aiosqlite:///{self.database_path}"

    @property
    def is_development(self) -> bool:
        """Whether login codes may be echoed back for local testing."""
        return self.environment == "development"

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Login code TTL must be positive (all environments)
        - SameSite=None requires Secure flag (browser requirement)
        - CORS must not use wildcard origin (incompatible with credentials)
        - AUTH_SECRET must be set and >= 32 chars in production
        """
        if self.login_code_ttl_minutes <= 0:
            msg = (
                "LOGIN_CODE_TTL_MINUTES must be positive. "
                f"Got: {self.login_code_ttl_minutes}"
            )
            raise ValueError(msg)

        if self.auth_cookie_samesite == "none" and not self.auth_cookie_secure:
            msg = (
                "AUTH_COOKIE_SECURE must be true when AUTH_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "Session cookies are incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        if self.environment == "production":
            secret_value = self.auth_secret.get_secret_value()
            if secret_value == _INSECURE_DEFAULT_SECRET:
                msg = (
                    "Cannot use the development AUTH_SECRET in production. "
                    "Set AUTH_SECRET environment variable to a secure value."
                )
                raise ValueError(msg)
            if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                msg = (
                    f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                    "characters in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)

        return self


settings = Settings()
