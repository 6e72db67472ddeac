from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase (NEXT_PUBLIC_* names are shared with the web frontend's .env)
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
    )
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_KEY", "SUPABASE_ANON_KEY", "NEXT_PUBLIC_SUPABASE_ANON_KEY"),
    )
    supabase_service_role_key: Optional[str] = None  # Required for admin operations (user creation, password reset)

    # Storage
    documents_bucket: str = "documents"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB

    # Session cookies
    access_token_cookie: str = "sb-access-token"

    # App
    app_name: str = "sitework-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    timezone: str = "Asia/Seoul"  # used for "today" in attendance and daily reports
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Rate limiting (slowapi format, e.g. "100/minute")
    rate_limit_enabled: bool = True
    rate_limit: str = "100/minute"
    auth_rate_limit: str = "10/minute"
    upload_rate_limit: str = "20/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
