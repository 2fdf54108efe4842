"""Database footprint estimation from a sample of recent rows.

The hosted database does not expose per-table size to the service role, so
the size of a table is extrapolated: serialize a sample of recent rows,
average their byte length, inflate it by an overhead factor and multiply by
the row count.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any

from app.core.constants import (
    ROW_OVERHEAD_FACTOR,
    ROW_SAMPLE_LIMIT,
    ROW_SAMPLE_MAX,
    ROW_SAMPLE_MIN,
)
from app.core.exceptions import RecordStoreError, SampleQueryError
from app.core.numbers import percent_of, round_half_up, to_finite_number
from app.core.repository import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowSampleEstimate:
    sample_size: int
    overhead_factor: float
    per_row_estimated_bytes: int
    estimated_used_bytes: int
    estimated_remaining_bytes: int | None
    estimated_usage_percent: float | None
    estimated_capacity_total: int | None
    estimated_capacity_remaining: int | None


def serialized_row_bytes(row: dict[str, Any]) -> int:
    """UTF-8 length of the compact JSON form of a row."""
    payload = json.dumps(row, separators=(",", ":"), ensure_ascii=False, default=str)
    return len(payload.encode("utf-8"))


def empty_estimate(overhead_factor: float, byte_limit: int | None) -> RowSampleEstimate:
    """Estimate for a table with nothing in it: nothing used, the whole limit free."""
    return RowSampleEstimate(
        sample_size=0,
        overhead_factor=overhead_factor,
        per_row_estimated_bytes=0,
        estimated_used_bytes=0,
        estimated_remaining_bytes=byte_limit,
        estimated_usage_percent=None if byte_limit is None else 0.0,
        estimated_capacity_total=None,
        estimated_capacity_remaining=None,
    )


class RowSampleEstimator:
    """Extrapolates a table's size from its most recent rows."""

    def __init__(
        self,
        record_store: RecordStore,
        order_column: str = "created_at",
        min_sample: int = ROW_SAMPLE_MIN,
        max_sample: int = ROW_SAMPLE_MAX,
    ):
        self.record_store = record_store
        self.order_column = order_column
        self.min_sample = min_sample
        self.max_sample = max(min_sample, max_sample)

    def clamp_sample_limit(self, sample_limit: Any) -> int:
        requested = to_finite_number(sample_limit)
        if requested is None or requested == 0:
            requested = ROW_SAMPLE_LIMIT
        return max(self.min_sample, min(self.max_sample, int(requested)))

    def estimate(
        self,
        table: str,
        total_row_count: int,
        byte_limit: int | None = None,
        sample_limit: int = ROW_SAMPLE_LIMIT,
        overhead_factor: float = ROW_OVERHEAD_FACTOR,
    ) -> RowSampleEstimate:
        """Estimate bytes used by ``table`` and how many more rows fit.

        Args:
            table: Table to sample.
            total_row_count: Known exact row count of the table.
            byte_limit: Database size limit in bytes. Non-positive values are
                treated as no limit.
            sample_limit: Rows to sample, clamped to the configured bounds.
            overhead_factor: Multiplier applied to the average JSON row size.

        Returns:
            RowSampleEstimate; limit-derived fields are None without a limit.

        Raises:
            SampleQueryError: The sample could not be read.
        """
        limit_number = to_finite_number(byte_limit)
        limit = int(limit_number) if limit_number is not None and limit_number > 0 else None

        row_count = to_finite_number(total_row_count)
        if row_count is None or row_count <= 0:
            return empty_estimate(overhead_factor, limit)
        row_count = int(row_count)

        safe_sample_limit = self.clamp_sample_limit(sample_limit)
        try:
            rows = self.record_store.fetch_recent_rows(
                table, order_column=self.order_column, limit=safe_sample_limit
            )
        except RecordStoreError as e:
            raise SampleQueryError(table, reason=e.reason) from e

        if not rows:
            logger.warning(f"Row sample of {table} came back empty with {row_count} rows counted")
            return empty_estimate(overhead_factor, limit)

        average_row_bytes = sum(serialized_row_bytes(row) for row in rows) / len(rows)
        per_row = max(1, round_half_up(average_row_bytes * overhead_factor))
        used = round_half_up(per_row * row_count)

        remaining = capacity_total = capacity_remaining = None
        if limit is not None:
            remaining = max(0, limit - used)
            capacity_total = max(0, math.floor(limit / per_row))
            capacity_remaining = max(0, capacity_total - row_count)

        logger.debug(
            f"Estimated {table}: {len(rows)} sampled rows, {per_row} B/row, {used} B used"
        )
        return RowSampleEstimate(
            sample_size=len(rows),
            overhead_factor=overhead_factor,
            per_row_estimated_bytes=per_row,
            estimated_used_bytes=used,
            estimated_remaining_bytes=remaining,
            estimated_usage_percent=percent_of(used, limit),
            estimated_capacity_total=capacity_total,
            estimated_capacity_remaining=capacity_remaining,
        )
