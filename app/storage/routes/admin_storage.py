"""Admin routes for storage and database usage."""

from fastapi import APIRouter, Depends, Request

from app.auth.dependencies import require_admin
from app.core.config import settings
from app.core.rate_limit import limiter
from app.storage.dependencies import get_summary_service
from app.storage.schemas import StorageSummaryEnvelope, StorageSummaryResponse
from app.storage.services.summary_service import StorageSummaryService

router = APIRouter(prefix="/storage", tags=["admin-storage"])


@router.get("/summary", response_model=StorageSummaryEnvelope)
@limiter.limit(settings.ADMIN_SUMMARY_RATE_LIMIT)
async def get_storage_summary(
    request: Request,
    _admin: str = Depends(require_admin),
    service: StorageSummaryService = Depends(get_summary_service),
) -> StorageSummaryEnvelope:
    """
    Get storage and database usage for the activations project.

    Walks the photo bucket, counts activations, reads the database size when
    the RPC is available and estimates it from a row sample otherwise, then
    projects how many more activations with photo fit in the plan.

    Every call recomputes from scratch; nothing is cached.
    """
    summary = await service.assemble()
    return StorageSummaryEnvelope(summary=StorageSummaryResponse.model_validate(summary))
