from fastapi import Depends

from app.core.config import settings
from app.core.repository import RecordStore, SupabaseRecordStore
from app.core.storage import StorageBackend, get_storage
from app.core.supabase import get_supabase_client
from app.storage.services.bucket_scanner import BucketUsageScanner
from app.storage.services.row_estimator import RowSampleEstimator
from app.storage.services.summary_service import CapacityLimits, StorageSummaryService


def get_record_store() -> RecordStore:
    return SupabaseRecordStore(get_supabase_client())


def get_storage_backend() -> StorageBackend:
    return get_storage()


def get_summary_service(
    record_store: RecordStore = Depends(get_record_store),
    storage: StorageBackend = Depends(get_storage_backend),
) -> StorageSummaryService:
    """Summary service wired from settings."""
    return StorageSummaryService(
        record_store=record_store,
        scanner=BucketUsageScanner(storage, page_size=settings.STORAGE_LIST_PAGE_SIZE),
        estimator=RowSampleEstimator(
            record_store,
            order_column=settings.ACTIVATIONS_ORDER_COLUMN,
            min_sample=settings.ROW_SAMPLE_MIN,
            max_sample=settings.ROW_SAMPLE_MAX,
        ),
        limits=CapacityLimits.from_settings(settings),
        bucket=settings.activations_bucket,
        table=settings.ACTIVATIONS_TABLE,
        photo_column=settings.ACTIVATIONS_PHOTO_COLUMN,
        size_rpc=settings.DATABASE_SIZE_RPC,
        sample_limit=settings.ROW_SAMPLE_LIMIT,
        overhead_factor=settings.ROW_OVERHEAD_FACTOR,
    )
