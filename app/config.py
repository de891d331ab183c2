from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings, read from the environment and ``.env``.

    ``deletion_max_failed_attempts`` is inclusive: the failed confirmation
    that brings a token's counter to this value burns the token.
    """

    # Database
    db_name: str = "account_deletion_db"
    db_user: str = "postgres"
    db_password: str = ""
    db_host: str = "localhost"
    db_port: str = "5432"

    # Environment
    env: str = "local"
    debug: bool = True

    # Deletion authorization
    deletion_token_ttl_minutes: int = 15
    deletion_code_ttl_minutes: int = 5
    deletion_code_length: int = 6
    deletion_max_failed_attempts: int = 5
    deletion_totp_valid_window: int = 1
    deletion_totp_account_types: list[str] = ["propertyManager"]
    deletion_hold_days: int = 30
    deletion_retention_days: int = 30
    deletion_handoff_grace_minutes: int = 10
    deletion_confirm_page_url: str = "https://thepoofapp.com/delete-account/confirm"
    deletion_ops_email: str = "team@thepoofapp.com"
    deletion_initiate_limit_per_email_per_hour: int = 5
    deletion_initiate_limit_per_client_per_hour: int = 20
    deletion_sweep_interval_seconds: int = 300

    # Proxies in front of the service that append to X-Forwarded-For
    trusted_proxy_hops: int = 1

    # Branding used in outgoing messages
    organization_name: str = "Poof"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def database_url(self) -> str:
        """Sync database URL (for Alembic migrations)."""
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port or '5432'}/{self.db_name}"
        )

    @property
    def async_database_url(self) -> str:
        """Async database URL (for FastAPI)."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port or '5432'}/{self.db_name}"
        )


settings = Settings()
