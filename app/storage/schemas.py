"""Pydantic schemas for the storage usage summary."""

from pydantic import BaseModel, ConfigDict, Field

from app.storage.services.capacity_projector import LimitingFactor


class RowSampleEstimateResponse(BaseModel):
    """Database usage extrapolated from a sample of recent activations."""

    model_config = ConfigDict(from_attributes=True)

    sample_size: int = Field(description="Rows actually sampled")
    overhead_factor: float
    per_row_estimated_bytes: int
    estimated_used_bytes: int
    estimated_remaining_bytes: int | None = None
    estimated_usage_percent: float | None = None
    estimated_capacity_total: int | None = Field(
        default=None, description="Activations the database limit could hold in total"
    )
    estimated_capacity_remaining: int | None = None


class CombinedCapacityResponse(BaseModel):
    """How many more activations (with photo) fit in the plan."""

    model_config = ConfigDict(from_attributes=True)

    one_attachment_per_unit_assumed: bool = Field(
        description="Each activation is assumed to have at most one photo"
    )
    units_with_attachment_count: int
    attachment_coverage_percent: float | None = None
    attachment_sample_count: int
    average_attachment_bytes: int | None = None
    per_unit_database_bytes: int | None = None
    per_unit_total_bytes: int | None = None
    estimated_total: int | None = None
    estimated_remaining: int | None = None
    remaining_by_database: int | None = None
    remaining_by_storage: int | None = None
    limiting_factor: LimitingFactor
    unavailable_reason: str | None = Field(
        default=None, description="Why some of the figures above are missing"
    )


class PlanReference(BaseModel):
    """Default limits of the hosted plan."""

    name: str
    api_requests: str
    monthly_active_users_limit: int
    database_limit_bytes: int
    shared_ram_mb: int
    cpu_tier: str
    egress_limit_bytes: int
    cached_egress_limit_bytes: int
    file_storage_limit_bytes: int
    support: str


class StorageSummaryResponse(BaseModel):
    """Storage and database usage with the remaining-capacity projection."""

    model_config = ConfigDict(from_attributes=True)

    bucket: str
    activations_count: int
    activations_with_photo_count: int
    storage_objects_count: int
    storage_used_bytes: int
    storage_limit_bytes: int
    storage_limit_source: str
    storage_remaining_bytes: int
    storage_usage_percent: float | None = None
    database_size_bytes: int | None = Field(
        default=None, description="Size reported directly by the database, if available"
    )
    database_used_effective_bytes: int | None = Field(
        default=None, description="Direct size if available, otherwise the row estimate"
    )
    database_limit_bytes: int
    database_limit_source: str
    database_remaining_bytes: int | None = None
    database_usage_percent: float | None = None
    database_size_source: str | None = None
    database_size_unavailable_reason: str | None = None
    database_estimation: RowSampleEstimateResponse | None = None
    database_estimation_unavailable_reason: str | None = None
    combined_capacity_estimation: CombinedCapacityResponse
    plan_reference: PlanReference


class StorageSummaryEnvelope(BaseModel):
    summary: StorageSummaryResponse
