from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "postgresql+asyncpg://ci:ci@localhost:5432/ci_api"
    secret_key: str = "change-me-in-production"
    app_env: str = "development"  # "production" enables strict checks
    # JWT: use RS256 when JWT_PRIVATE_KEY and JWT_PUBLIC_KEY are set; otherwise HS256 with SECRET_KEY
    jwt_algorithm: str = "HS256"
    jwt_private_key: str = ""  # PEM string for RS256 (multi-line in .env: use \n)
    jwt_public_key: str = ""    # PEM string for RS256
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    cors_origins: str = ""
    enable_hsts: bool = False  # Set True in production behind HTTPS
    debug: bool = False

    api_prefix: str = "/v3"
    pagination_default_limit: int = 25
    pagination_max_limit: int = 100

    rate_limit_enabled: bool = True
    rate_limit_default: str = "200/minute"

    @property
    def sync_database_url(self) -> str:
        """Database URL for sync drivers (Alembic)."""
        return self.database_url.replace("+asyncpg", "", 1).replace("+aiosqlite", "", 1)

    @property
    def use_rs256(self) -> bool:
        """True if RSA keys are set and RS256 should be used."""
        return bool(self.jwt_private_key.strip() and self.jwt_public_key.strip())

    def validate_jwt_config(self) -> None:
        """Raise if production config is inconsistent (e.g. only one RSA key set)."""
        if self.app_env != "production":
            return
        if self.secret_key == "change-me-in-production" and not self.use_rs256:
            raise RuntimeError("SECRET_KEY must be changed in production")
        has_private = bool(self.jwt_private_key.strip())
        has_public = bool(self.jwt_public_key.strip())
        if has_private and not has_public:
            raise RuntimeError("JWT_PRIVATE_KEY is set but JWT_PUBLIC_KEY is missing in production")
        if has_public and not has_private:
            raise RuntimeError("JWT_PUBLIC_KEY is set but JWT_PRIVATE_KEY is missing in production")


settings = Settings()
