import math
import re

from pydantic import field_validator
from pydantic_settings import BaseSettings

from app.core import constants

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:5174"]
DEFAULT_ACTIVATIONS_BUCKET = "fotos-activaciones"


class Settings(BaseSettings):
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str

    ADMIN_BASIC_USER: str
    ADMIN_BASIC_PASS: str

    API_PREFIX: str = "/api"
    PROJECT_NAME: str = "Activaciones Admin API"
    DEBUG: bool = False

    # Comma separated; entries may contain "*" wildcards (e.g. https://*.vercel.app)
    ADMIN_API_CORS_ORIGIN: str = ""

    # Storage backend: "supabase" for production, "local" for development
    STORAGE_BACKEND: str = "supabase"
    UPLOAD_DIR: str = "./uploads"

    ADMIN_STORAGE_BUCKET_ACTIVACIONES: str = ""
    VITE_STORAGE_BUCKET_ACTIVACIONES: str = ""

    # Plan overrides in megabytes; unset falls back to the reference plan
    ADMIN_STORAGE_LIMIT_MB: float | None = None
    ADMIN_DATABASE_LIMIT_MB: float | None = None

    # Capacity estimation
    STORAGE_LIST_PAGE_SIZE: int = constants.STORAGE_LIST_PAGE_SIZE
    ROW_SAMPLE_LIMIT: int = constants.ROW_SAMPLE_LIMIT
    ROW_SAMPLE_MIN: int = constants.ROW_SAMPLE_MIN
    ROW_SAMPLE_MAX: int = constants.ROW_SAMPLE_MAX
    ROW_OVERHEAD_FACTOR: float = constants.ROW_OVERHEAD_FACTOR

    ACTIVATIONS_TABLE: str = "activaciones"
    ACTIVATIONS_ORDER_COLUMN: str = "created_at"
    ACTIVATIONS_PHOTO_COLUMN: str = "foto_url"
    DATABASE_SIZE_RPC: str = "get_database_size_bytes"

    RATE_LIMIT_ENABLED: bool = True
    ADMIN_SUMMARY_RATE_LIMIT: str = "10/minute"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"

    @field_validator("ADMIN_STORAGE_LIMIT_MB", "ADMIN_DATABASE_LIMIT_MB", mode="before")
    @classmethod
    def _parse_optional_megabytes(cls, value: object) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            parsed = float(str(value).strip())
        except ValueError:
            return None
        if not math.isfinite(parsed) or parsed <= 0:
            return None
        return parsed

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.ADMIN_API_CORS_ORIGIN.split(",") if o.strip()]
        if not origins:
            return list(DEFAULT_CORS_ORIGINS)
        return [o for o in origins if "*" not in o or o == "*"]

    @property
    def cors_origin_regex(self) -> str | None:
        """Join wildcard origin patterns into a single regex for CORSMiddleware."""
        patterns = [
            o.strip()
            for o in self.ADMIN_API_CORS_ORIGIN.split(",")
            if "*" in o and o.strip() != "*"
        ]
        if not patterns:
            return None
        return "|".join(
            "^" + re.escape(pattern).replace(r"\*", ".*") + "$" for pattern in patterns
        )

    @property
    def activations_bucket(self) -> str:
        return (
            self.ADMIN_STORAGE_BUCKET_ACTIVACIONES.strip()
            or self.VITE_STORAGE_BUCKET_ACTIVACIONES.strip()
            or DEFAULT_ACTIVATIONS_BUCKET
        )

    @property
    def storage_limit_override_bytes(self) -> int | None:
        if self.ADMIN_STORAGE_LIMIT_MB is None:
            return None
        return round(self.ADMIN_STORAGE_LIMIT_MB * constants.MB)

    @property
    def database_limit_override_bytes(self) -> int | None:
        if self.ADMIN_DATABASE_LIMIT_MB is None:
            return None
        return round(self.ADMIN_DATABASE_LIMIT_MB * constants.MB)


settings = Settings()
