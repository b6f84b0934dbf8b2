# catalog_engine/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - DATABASE_URL (Supabase Postgres connection string)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (required for media uploads/deletes)
      - STORAGE_BUCKET, MEDIA_MAX_BYTES, MEDIA_TIMEOUT_SECONDS
      - PRIVILEGED_ROLES (roles allowed to mutate variants directly)
      - LOG_LEVEL
    """

    PROJECT_NAME: str = "Catalog Mutation Engine"
    API_V1_STR: str = "/api/v1"

    # Supabase / DB config
    SUPABASE_URL: str
    SUPABASE_KEY: str
    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Media store
    STORAGE_BUCKET: str = "catalog-media"
    MEDIA_MAX_BYTES: int = 5 * 1024 * 1024
    # Caller-side timeout for every storage call; a timeout is a failure
    # and follows the same rollback path as any other.
    MEDIA_TIMEOUT_SECONDS: int = 20

    # Moderation
    PRIVILEGED_ROLES: list[str] = ["admin"]

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
