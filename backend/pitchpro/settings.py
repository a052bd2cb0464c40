"""Process settings, read once from the environment (and `.env` when present)."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Web and Expo dev servers
_DEV_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:19006",
)


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("pitchpro-api", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    # Document store: "firestore" in deployed environments, "memory" for local runs
    document_backend: str = _env_field("firestore", "DOCUMENT_BACKEND")
    firebase_project_id: Optional[str] = _env_field(None, "FIREBASE_PROJECT_ID", "GOOGLE_CLOUD_PROJECT")
    firebase_credentials_path: Optional[str] = _env_field(None, "FIREBASE_CREDENTIALS", "GOOGLE_APPLICATION_CREDENTIALS")
    firebase_storage_bucket: Optional[str] = _env_field(None, "FIREBASE_STORAGE_BUCKET")

    # Blob store: "firebase" or "local"
    blob_backend: str = _env_field("firebase", "BLOB_BACKEND")
    upload_root: str = _env_field("uploads", "UPLOAD_ROOT")
    upload_base_url: str = _env_field("http://localhost:8000/files", "UPLOAD_BASE_URL")

    redis_url: str = _env_field("redis://localhost:6379/0", "REDIS_URL")
    draft_ttl_seconds: int = _env_field(7 * 24 * 3600, "DRAFT_TTL_SECONDS")

    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
    obs_metrics_public: bool = _env_field(False, "OBS_METRICS_PUBLIC")
    obs_admin_token: Optional[str] = _env_field(None, "OBS_ADMIN_TOKEN")

    web_app_origin: str = _env_field("https://app.pitchpro.example", "WEB_APP_ORIGIN")
    cors_allow_origins: Any = _env_field((), "CORS_ALLOW_ORIGINS")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
    )

    def is_prod(self) -> bool:
        return self.environment.lower() in ("prod", "production", "live")

    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development", "local")

    def cors_origins(self) -> List[str]:
        """Explicit origins only: credentialed requests cannot use a '*' wildcard."""
        origins = [origin for origin in self.cors_allow_origins if origin != "*"]
        if origins:
            return origins
        return list(_DEV_ORIGINS) if self.is_dev() else [self.web_app_origin]

    @field_validator("cors_allow_origins", mode="before")
    def _split_cors(cls, value) -> Tuple[str, ...]:  # type: ignore[override]
        if value in (None, ""):
            return ()
        if isinstance(value, str):
            return tuple(part.strip() for part in value.split(",") if part.strip())
        if isinstance(value, (list, tuple, set)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return ()

    @field_validator("document_backend", "blob_backend", mode="before")
    def _lower_backend(cls, value):  # type: ignore[override]
        return str(value or "").strip().lower()

    @field_validator("obs_log_level", mode="before")
    def _upper_level(cls, value):  # type: ignore[override]
        return str(value or "INFO").strip().upper()


settings = Settings()
