"""Application-wide constants.

This module centralizes magic numbers and configuration constants
that are used across multiple modules. For environment-specific
configuration, see config.py.
"""

from typing import Any

MB: int = 1024 * 1024
GB: int = 1024 * MB

# =============================================================================
# Reference Plan
# =============================================================================

# Limits of the hosted plan the dashboard runs on. Used whenever no explicit
# ADMIN_*_LIMIT_MB override is configured.
REFERENCE_PLAN: dict[str, Any] = {
    "name": "Supabase Free",
    "api_requests": "Unlimited API requests",
    "monthly_active_users_limit": 50_000,
    "database_limit_bytes": 500 * MB,
    "shared_ram_mb": 500,
    "cpu_tier": "shared",
    "egress_limit_bytes": 5 * GB,
    "cached_egress_limit_bytes": 5 * GB,
    "file_storage_limit_bytes": 1 * GB,
    "support": "Community support",
}

REFERENCE_PLAN_LIMIT_SOURCE: str = "supabase_free_default"
STORAGE_LIMIT_ENV_SOURCE: str = "env_admin_storage_limit_mb"
DATABASE_LIMIT_ENV_SOURCE: str = "env_admin_database_limit_mb"

# =============================================================================
# Object Storage
# =============================================================================

# Entry the storage service creates to keep otherwise empty folders alive
EMPTY_FOLDER_PLACEHOLDER: str = ".emptyFolderPlaceholder"

# Metadata keys that carry an object's byte size, in lookup order.
# Different storage API versions name the field differently.
OBJECT_SIZE_METADATA_KEYS: tuple[str, ...] = ("size", "contentLength", "content_length")

# Entries requested per directory listing page
STORAGE_LIST_PAGE_SIZE: int = 1000

# =============================================================================
# Database Size Estimation
# =============================================================================

ROW_SAMPLE_LIMIT: int = 240
ROW_SAMPLE_MIN: int = 40
ROW_SAMPLE_MAX: int = 500

# Upward bias over the JSON payload size: indexes, tuple headers, padding
ROW_OVERHEAD_FACTOR: float = 1.34

# Keys a database-size RPC may wrap its result in
DATABASE_SIZE_RESULT_KEYS: tuple[str, ...] = (
    "get_database_size_bytes",
    "database_size_bytes",
    "size_bytes",
)

DATABASE_SIZE_SOURCE_RPC_PREFIX: str = "rpc:"
DATABASE_SIZE_SOURCE_ESTIMATE: str = "estimate:activaciones_avg_row"
