from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Unified Roles API"
    ENV: str = "development"

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (user store + audit persistence)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    USERS_TABLE: str = "users"
    ROLE_AUDIT_TABLE: str = "role_audit_events"

    # "log" writes audit events to the application log,
    # "supabase" inserts them into ROLE_AUDIT_TABLE.
    AUDIT_BACKEND: str = "log"

    # -------------------------------------------------
    # Role resolution
    # -------------------------------------------------
    ROLE_CACHE_TTL_SECONDS: int = 300
    ROLE_LOOKUP_TIMEOUT_SECONDS: float = 5.0
    ROLE_LOOKUP_MAX_WORKERS: int = 8

    # JSON catalog file; the built-in catalog in core/permissions.py is used when unset
    ROLE_CATALOG_PATH: Optional[str] = None

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    # No env_file: the deployment provides real environment variables
    model_config = SettingsConfigDict(case_sensitive=True)


# Instantiate settings
settings = Settings()
