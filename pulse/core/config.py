from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_env: str = "local"
    api_port: int = 5000

    postgres_host: str = "127.0.0.1"
    postgres_port: int = 5432
    postgres_db: str = "pulse"
    postgres_user: str = "pulse_user"
    postgres_password: str = "pulse_password"
    database_url_override: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL_OVERRIDE", "DATABASE_URL"),
    )
    db_pool_size: int = 10
    db_max_overflow: int = 20
    db_pool_timeout: int = 30
    db_auto_create: bool = False

    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 15
    access_token_cookie_name: str = "accessToken"
    jwt_refresh_secret: str | None = None
    refresh_token_ttl_days: int = 7
    refresh_token_cookie_name: str = "refreshToken"
    cookie_secure: bool = False
    login_rate_limit: int = 5
    login_rate_window_seconds: int = 60

    cors_allowed_origins_raw: str = "http://127.0.0.1:3000,http://localhost:3000"
    trusted_hosts_raw: str = "127.0.0.1,localhost"
    force_https: bool = False

    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def cors_allowed_origins(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.cors_allowed_origins_raw.split(",")
            if origin.strip()
        ]

    @property
    def trusted_hosts(self) -> list[str]:
        return [
            host.strip() for host in self.trusted_hosts_raw.split(",") if host.strip()
        ]

    @property
    def refresh_secret(self) -> str | None:
        return self.jwt_refresh_secret or self.jwt_secret

    def validate_security_settings(self) -> None:
        if not self.jwt_secret:
            raise ValueError("JWT_SECRET is not defined in environment variables.")

        if self.app_env.lower() != "production":
            return

        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production.")
        if self.jwt_refresh_secret is not None and len(self.jwt_refresh_secret) < 32:
            raise ValueError(
                "JWT_REFRESH_SECRET must be at least 32 characters in production."
            )
        if not self.cookie_secure:
            raise ValueError("COOKIE_SECURE must be enabled in production.")
        if not self.cors_allowed_origins:
            raise ValueError(
                "CORS_ALLOWED_ORIGINS_RAW must define explicit origins in production."
            )
        if "*" in self.cors_allowed_origins:
            raise ValueError("Wildcard CORS origin is not allowed in production.")
        if not self.trusted_hosts:
            raise ValueError(
                "TRUSTED_HOSTS_RAW must define explicit hosts in production."
            )
        if "*" in self.trusted_hosts:
            raise ValueError("Wildcard trusted host is not allowed in production.")


@lru_cache
def get_settings() -> Settings:
    return Settings()
