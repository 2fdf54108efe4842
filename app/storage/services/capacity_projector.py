"""Remaining-capacity projection across storage and database limits.

Every activation is assumed to carry at most one photo, so the average photo
size is the storage cost of one more activation. The projection is the number
of activations that still fit before either resource runs out.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.core.numbers import (
    percent_of,
    round_half_up,
    to_count,
    to_finite_number,
    to_non_negative,
)

NO_ATTACHMENT_SAMPLE_REASON = "Sin muestra de fotos para calcular promedio."
NO_DATABASE_SAMPLE_REASON = (
    "Sin muestra suficiente para calcular peso de activacion en base de datos."
)


class LimitingFactor(str, Enum):
    """Resource that runs out first."""

    STORAGE = "storage"
    DATABASE = "database"
    NONE = "none"


@dataclass(frozen=True)
class CombinedCapacityEstimate:
    one_attachment_per_unit_assumed: bool
    units_with_attachment_count: int
    attachment_coverage_percent: float | None
    attachment_sample_count: int
    average_attachment_bytes: int | None
    per_unit_database_bytes: int | None
    per_unit_total_bytes: int | None
    estimated_total: int | None
    estimated_remaining: int | None
    remaining_by_database: int | None
    remaining_by_storage: int | None
    limiting_factor: LimitingFactor
    unavailable_reason: str | None


def pick_limiting_factor(
    remaining_by_database: int | None, remaining_by_storage: int | None
) -> LimitingFactor:
    """Resource with the smaller remaining headroom.

    Ties are reported as storage.
    """
    if remaining_by_storage is not None and remaining_by_database is not None:
        if remaining_by_storage <= remaining_by_database:
            return LimitingFactor.STORAGE
        return LimitingFactor.DATABASE
    if remaining_by_storage is not None:
        return LimitingFactor.STORAGE
    if remaining_by_database is not None:
        return LimitingFactor.DATABASE
    return LimitingFactor.NONE


class CapacityProjector:
    """Combines storage and database headroom into one activation count."""

    @staticmethod
    def project(
        unit_count: Any = 0,
        unit_with_attachment_count: Any = 0,
        attachment_object_count: Any = 0,
        storage_used_bytes: Any = None,
        storage_remaining_bytes: Any = None,
        database_remaining_bytes: Any = None,
        per_unit_database_bytes: Any = None,
    ) -> CombinedCapacityEstimate:
        """Project how many more units fit in the plan.

        Never raises: missing, negative or non-finite inputs only turn the
        dependent outputs into None.
        """
        units = to_count(unit_count)
        units_with_attachment = to_count(unit_with_attachment_count)
        attachment_objects = to_count(attachment_object_count)
        storage_used = to_non_negative(storage_used_bytes)
        storage_remaining = to_non_negative(storage_remaining_bytes)
        database_remaining = to_non_negative(database_remaining_bytes)

        per_unit_database = to_finite_number(per_unit_database_bytes)
        per_unit_database_int = (
            max(1, round_half_up(per_unit_database))
            if per_unit_database is not None and per_unit_database > 0
            else None
        )

        if units_with_attachment > 0:
            sample_count = units_with_attachment
        else:
            sample_count = attachment_objects

        average_attachment = None
        if storage_used is not None and sample_count > 0:
            average_attachment = max(1, round_half_up(storage_used / sample_count))

        remaining_by_database = None
        if database_remaining is not None and per_unit_database_int is not None:
            remaining_by_database = max(0, math.floor(database_remaining / per_unit_database_int))

        remaining_by_storage = None
        if storage_remaining is not None and average_attachment is not None:
            remaining_by_storage = max(0, math.floor(storage_remaining / average_attachment))

        available = [r for r in (remaining_by_database, remaining_by_storage) if r is not None]
        estimated_remaining = min(available) if available else None

        reasons = []
        if average_attachment is None:
            reasons.append(NO_ATTACHMENT_SAMPLE_REASON)
        if per_unit_database_int is None:
            reasons.append(NO_DATABASE_SAMPLE_REASON)

        per_unit_total = None
        if per_unit_database_int is not None and average_attachment is not None:
            per_unit_total = per_unit_database_int + average_attachment

        return CombinedCapacityEstimate(
            one_attachment_per_unit_assumed=True,
            units_with_attachment_count=units_with_attachment,
            attachment_coverage_percent=percent_of(min(units_with_attachment, units), units),
            attachment_sample_count=sample_count,
            average_attachment_bytes=average_attachment,
            per_unit_database_bytes=per_unit_database_int,
            per_unit_total_bytes=per_unit_total,
            estimated_total=None if estimated_remaining is None else units + estimated_remaining,
            estimated_remaining=estimated_remaining,
            remaining_by_database=remaining_by_database,
            remaining_by_storage=remaining_by_storage,
            limiting_factor=pick_limiting_factor(remaining_by_database, remaining_by_storage),
            unavailable_reason=" ".join(reasons) if reasons else None,
        )
