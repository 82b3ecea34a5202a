from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DB_URL: Optional[str] = None

    # GoTrue-compatible auth service, e.g. https://<project>.supabase.co/auth/v1
    AUTH_URL: Optional[str] = None
    AUTH_API_KEY: Optional[str] = None

    SUPER_ADMIN_EMAIL: str = "admin@inventory.local"

    ALLOW_BULK_IMPORT: bool = False
    ENABLE_ASSET_RETURNS: bool = True

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_configured(self) -> bool:
        return bool(self.DB_URL and self.AUTH_URL and self.AUTH_API_KEY)


settings = Settings()
