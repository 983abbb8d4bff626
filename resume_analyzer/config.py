"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_anon_key: str = ""

    # Storage
    storage_backend: str = "local"  # "local" or "supabase"
    resume_bucket: str = "resumes"
    kv_table: str = "kv_store"

    # Feedback model
    anthropic_api_key: Optional[str] = None
    feedback_model: str = "claude-sonnet-4-20250514"
    feedback_max_tokens: int = 4096

    # Preview rendering
    raster_scale: float = 4.0
    raster_max_dimension: int = 4096

    # HTTP
    api_port: int = 8000
    max_upload_mb: int = 20
    session_ttl_minutes: int = 60  # idle sessions evicted after this

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
