"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env next to backend/ (parent of mcp_console/)
_env_path = Path(__file__).resolve().parent.parent / ".env"

STORAGE_MEMORY = "memory"
STORAGE_DATABASE = "database"


class Settings(BaseSettings):
    environment: str = "development"
    # memory: in-process maps (lost on restart); database: SQLAlchemy store at DATABASE_URL
    storage_backend: str = STORAGE_MEMORY
    database_url: str = "sqlite:///./mcp_console.db"

    # Dashboard login (JWT signed with JWT_SECRET; cookie lifetime matches session_ttl_days)
    jwt_secret: str = ""
    session_ttl_days: int = 30
    admin_username: str = "admin"
    admin_password: str = "admin"

    # Chat pipeline
    completion_timeout_seconds: float = 60.0
    default_temperature: float = 0.7
    ws_send_queue_size: int = 100

    cors_origins: str = ""  # comma-separated extras on top of the dev origins
    log_level: str = "INFO"

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("jwt_secret", "admin_username", "admin_password", "storage_backend", mode="after")
    @classmethod
    def strip_value(cls, v: str) -> str:
        return (v or "").strip()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    def missing_secrets(self) -> list[str]:
        """Env names that must be set before the app can start (admin creds only enforced in production)."""
        missing = []
        if not self.jwt_secret:
            missing.append("JWT_SECRET")
        if self.is_production:
            # Dev defaults (admin/admin) are not acceptable in production
            if not self.admin_username or self.admin_username == "admin":
                missing.append("ADMIN_USERNAME")
            if not self.admin_password or self.admin_password == "admin":
                missing.append("ADMIN_PASSWORD")
        return missing

    def extra_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
