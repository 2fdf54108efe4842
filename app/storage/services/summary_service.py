"""Storage and database usage summary for the admin dashboard."""

import asyncio
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from app.core.config import Settings
from app.core.constants import (
    DATABASE_LIMIT_ENV_SOURCE,
    DATABASE_SIZE_RESULT_KEYS,
    DATABASE_SIZE_SOURCE_ESTIMATE,
    DATABASE_SIZE_SOURCE_RPC_PREFIX,
    REFERENCE_PLAN,
    REFERENCE_PLAN_LIMIT_SOURCE,
    ROW_OVERHEAD_FACTOR,
    ROW_SAMPLE_LIMIT,
    STORAGE_LIMIT_ENV_SOURCE,
)
from app.core.exceptions import (
    RecordCountError,
    RecordStoreError,
    SampleQueryError,
    SizeProbeUnavailable,
)
from app.core.numbers import percent_of, round_half_up, to_finite_number
from app.core.repository import RecordStore
from app.storage.services.bucket_scanner import BucketUsage, BucketUsageScanner
from app.storage.services.capacity_projector import (
    CapacityProjector,
    CombinedCapacityEstimate,
)
from app.storage.services.row_estimator import RowSampleEstimate, RowSampleEstimator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapacityLimits:
    storage_limit_bytes: int
    database_limit_bytes: int
    storage_limit_source: str
    database_limit_source: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "CapacityLimits":
        """Configured overrides win; otherwise the reference plan applies."""
        storage_override = settings.storage_limit_override_bytes
        database_override = settings.database_limit_override_bytes
        return cls(
            storage_limit_bytes=(
                storage_override
                if storage_override is not None
                else REFERENCE_PLAN["file_storage_limit_bytes"]
            ),
            database_limit_bytes=(
                database_override
                if database_override is not None
                else REFERENCE_PLAN["database_limit_bytes"]
            ),
            storage_limit_source=(
                STORAGE_LIMIT_ENV_SOURCE
                if storage_override is not None
                else REFERENCE_PLAN_LIMIT_SOURCE
            ),
            database_limit_source=(
                DATABASE_LIMIT_ENV_SOURCE
                if database_override is not None
                else REFERENCE_PLAN_LIMIT_SOURCE
            ),
        )


@dataclass(frozen=True)
class StorageSummary:
    bucket: str
    activations_count: int
    activations_with_photo_count: int
    storage_objects_count: int
    storage_used_bytes: int
    storage_limit_bytes: int
    storage_limit_source: str
    storage_remaining_bytes: int
    storage_usage_percent: float | None
    database_size_bytes: int | None
    database_used_effective_bytes: int | None
    database_limit_bytes: int
    database_limit_source: str
    database_remaining_bytes: int | None
    database_usage_percent: float | None
    database_size_source: str | None
    database_size_unavailable_reason: str | None
    database_estimation: RowSampleEstimate | None
    database_estimation_unavailable_reason: str | None
    combined_capacity_estimation: CombinedCapacityEstimate
    plan_reference: dict[str, Any] = field(default_factory=lambda: dict(REFERENCE_PLAN))


def parse_database_size(data: Any) -> int:
    """Extract a byte count from a database size RPC result.

    The function may return a bare number, a numeric string, a row object
    keyed by the function or column name, or a one-row list of those.

    Raises:
        SizeProbeUnavailable: No finite, non-negative size could be found.
    """
    if isinstance(data, list) and len(data) == 1:
        data = data[0]

    if isinstance(data, Mapping):
        candidates = [data.get(key) for key in DATABASE_SIZE_RESULT_KEYS]
    else:
        candidates = [data]

    for candidate in candidates:
        size = to_finite_number(candidate)
        if size is not None and size >= 0:
            return int(size)

    raise SizeProbeUnavailable(f"Respuesta sin tamaño utilizable: {data!r}"[:200])


class StorageSummaryService:
    """Builds the usage summary shown on the admin storage page.

    Activation counts and the bucket walk are required; if either fails the
    summary fails. The direct database size probe and the row-sample estimate
    are best effort and degrade to None with a reason.
    """

    def __init__(
        self,
        record_store: RecordStore,
        scanner: BucketUsageScanner,
        estimator: RowSampleEstimator,
        limits: CapacityLimits,
        bucket: str,
        table: str = "activaciones",
        photo_column: str = "foto_url",
        size_rpc: str = "get_database_size_bytes",
        sample_limit: int = ROW_SAMPLE_LIMIT,
        overhead_factor: float = ROW_OVERHEAD_FACTOR,
    ):
        self.record_store = record_store
        self.scanner = scanner
        self.estimator = estimator
        self.limits = limits
        self.bucket = bucket
        self.table = table
        self.photo_column = photo_column
        self.size_rpc = size_rpc
        self.sample_limit = sample_limit
        self.overhead_factor = overhead_factor

    def count_activations(self) -> int:
        try:
            return self.record_store.count_rows(self.table)
        except RecordStoreError as e:
            raise RecordCountError(
                "No se pudo obtener conteo de activaciones", reason=e.reason
            ) from e

    def count_activations_with_photo(self) -> int:
        try:
            return self.record_store.count_rows(self.table, non_empty_column=self.photo_column)
        except RecordStoreError as e:
            raise RecordCountError(
                "No se pudo obtener conteo de activaciones con foto", reason=e.reason
            ) from e

    def fetch_database_size(self) -> int:
        try:
            data = self.record_store.call_rpc(self.size_rpc)
        except RecordStoreError as e:
            raise SizeProbeUnavailable(e.reason or e.message) from e
        return parse_database_size(data)

    def probe_database_size(self) -> tuple[int | None, str | None]:
        """Direct database size from the RPC, or (None, reason)."""
        try:
            return self.fetch_database_size(), None
        except SizeProbeUnavailable as e:
            logger.warning(f"Database size probe {self.size_rpc} unavailable: {e.reason}")
            return None, e.reason

    def estimate_database(
        self, activations_count: int
    ) -> tuple[RowSampleEstimate | None, str | None]:
        """Row-sample estimate, or (None, reason) when the sample cannot be read."""
        try:
            estimate = self.estimator.estimate(
                self.table,
                activations_count,
                byte_limit=self.limits.database_limit_bytes,
                sample_limit=self.sample_limit,
                overhead_factor=self.overhead_factor,
            )
        except SampleQueryError as e:
            logger.warning(f"Row sample estimate for {self.table} unavailable: {e.reason}")
            return None, e.reason or e.message
        return estimate, None

    async def assemble(self) -> StorageSummary:
        """Gather every input and build the summary.

        Raises:
            RecordCountError: Activation counts could not be read.
            StorageListError: The bucket could not be walked.
        """
        cancelled = threading.Event()
        try:
            (
                activations_count,
                with_photo_count,
                bucket_usage,
                (database_size, database_size_reason),
            ) = await asyncio.gather(
                asyncio.to_thread(self.count_activations),
                asyncio.to_thread(self.count_activations_with_photo),
                asyncio.to_thread(self.scanner.scan, self.bucket, cancelled),
                asyncio.to_thread(self.probe_database_size),
            )
        finally:
            # Stops a walk still running after another read failed
            cancelled.set()

        estimate, estimate_reason = await asyncio.to_thread(
            self.estimate_database, activations_count
        )

        return self.build_summary(
            activations_count=activations_count,
            with_photo_count=with_photo_count,
            bucket_usage=bucket_usage,
            database_size=database_size,
            database_size_reason=database_size_reason,
            estimate=estimate,
            estimate_reason=estimate_reason,
        )

    def build_summary(
        self,
        *,
        activations_count: int,
        with_photo_count: int,
        bucket_usage: BucketUsage,
        database_size: int | None,
        database_size_reason: str | None,
        estimate: RowSampleEstimate | None,
        estimate_reason: str | None,
    ) -> StorageSummary:
        storage_limit = self.limits.storage_limit_bytes
        database_limit = self.limits.database_limit_bytes

        storage_remaining = max(0, storage_limit - bucket_usage.total_bytes)

        effective_database_used = database_size
        if effective_database_used is None and estimate is not None:
            effective_database_used = estimate.estimated_used_bytes

        database_remaining = None
        database_percent = None
        if effective_database_used is not None:
            database_remaining = max(0, database_limit - effective_database_used)
            database_percent = percent_of(effective_database_used, database_limit)

        per_unit_database = None
        if estimate is not None and estimate.per_row_estimated_bytes > 0:
            per_unit_database = estimate.per_row_estimated_bytes
        elif activations_count > 0 and effective_database_used is not None:
            per_unit_database = max(1, round_half_up(effective_database_used / activations_count))

        combined = CapacityProjector.project(
            unit_count=activations_count,
            unit_with_attachment_count=with_photo_count,
            attachment_object_count=bucket_usage.total_objects,
            storage_used_bytes=bucket_usage.total_bytes,
            storage_remaining_bytes=storage_remaining,
            database_remaining_bytes=database_remaining,
            per_unit_database_bytes=per_unit_database,
        )

        if database_size is not None:
            size_source: str | None = f"{DATABASE_SIZE_SOURCE_RPC_PREFIX}{self.size_rpc}"
        elif estimate is not None:
            size_source = DATABASE_SIZE_SOURCE_ESTIMATE
        else:
            size_source = None

        return StorageSummary(
            bucket=self.bucket,
            activations_count=activations_count,
            activations_with_photo_count=with_photo_count,
            storage_objects_count=bucket_usage.total_objects,
            storage_used_bytes=bucket_usage.total_bytes,
            storage_limit_bytes=storage_limit,
            storage_limit_source=self.limits.storage_limit_source,
            storage_remaining_bytes=storage_remaining,
            storage_usage_percent=percent_of(bucket_usage.total_bytes, storage_limit),
            database_size_bytes=database_size,
            database_used_effective_bytes=effective_database_used,
            database_limit_bytes=database_limit,
            database_limit_source=self.limits.database_limit_source,
            database_remaining_bytes=database_remaining,
            database_usage_percent=database_percent,
            database_size_source=size_source,
            database_size_unavailable_reason=(
                database_size_reason if database_size is None else None
            ),
            database_estimation=estimate,
            database_estimation_unavailable_reason=estimate_reason if estimate is None else None,
            combined_capacity_estimation=combined,
        )
