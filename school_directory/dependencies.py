"""
FastAPI dependencies wiring the row store, object storage and image
synchronizer for each request.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.config import settings
from school_directory.database import get_db
from school_directory.services.cloudinary_service import ObjectStorage, get_storage
from school_directory.services.image_sync import ImageSetSynchronizer
from school_directory.services.row_store import RowStore


def get_store(db: AsyncSession = Depends(get_db)) -> RowStore:
    return RowStore(db)


def get_synchronizer(
    store: RowStore = Depends(get_store),
    storage: ObjectStorage = Depends(get_storage),
) -> ImageSetSynchronizer:
    return ImageSetSynchronizer(
        storage=storage,
        store=store,
        max_images=settings.MAX_SCHOOL_IMAGES,
        upload_timeout=settings.UPLOAD_TIMEOUT_SECONDS,
    )
