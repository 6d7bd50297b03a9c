"""
Image set synchronization for a school gallery.

The whole gallery is replaced on every save: new files are uploaded first,
then the school's rows are deleted and the full ordered set is re-inserted.
Uploads run concurrently and must all succeed before any row is touched.
"""
import asyncio
import logging
from typing import Any, Dict, List, Sequence

from school_directory.models import ImageType, SchoolImage
from school_directory.schemas import ImageDraft
from school_directory.services.cloudinary_service import ObjectStorage, build_storage_key
from school_directory.services.errors import PersistenceError, StorageError, ValidationError
from school_directory.services.row_store import RowStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGES = 20
DEFAULT_UPLOAD_TIMEOUT = 30.0


class ImageSetSynchronizer:
    """
    Reconciles a submitted list of image drafts with the persisted rows of a school.

    Storage and row store clients are injected so the synchronizer never reaches
    for a global backend client.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        store: RowStore,
        max_images: int = DEFAULT_MAX_IMAGES,
        upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT,
    ):
        self.storage = storage
        self.store = store
        self.max_images = max_images
        self.upload_timeout = upload_timeout

    async def synchronize(self, school_id: Any, drafts: Sequence[ImageDraft]) -> List[SchoolImage]:
        """
        Replace the persisted image set of a school with the given drafts.

        Args:
            school_id: Identifier of an existing school
            drafts: Ordered drafts; list position becomes display_order

        Returns:
            list[SchoolImage]: Freshly inserted rows in submission order

        Raises:
            ValidationError: Too many drafts or a malformed draft (no I/O performed)
            StorageError: An upload failed or timed out (no rows touched)
            PersistenceError: Delete, insert or commit failed
        """
        self._validate(drafts)

        uploaded_urls = await self._upload_new_drafts(school_id, drafts)

        payloads = []
        for position, draft in enumerate(drafts):
            image_url = uploaded_urls[position] if draft.kind == "new" else draft.url
            payloads.append({
                "school_id": school_id,
                "image_url": image_url,
                "image_type": ImageType(draft.image_type).value,
                "title": draft.title or None,
                "description": draft.description or None,
                "display_order": position,
            })

        rows = await self._replace_rows(school_id, payloads)
        logger.info(
            f"Synchronized {len(rows)} image(s) for school {school_id} "
            f"({len(uploaded_urls)} uploaded, {len(rows) - len(uploaded_urls)} kept)"
        )
        return rows

    def _validate(self, drafts: Sequence[ImageDraft]) -> None:
        if len(drafts) > self.max_images:
            raise ValidationError(f"Maximum {self.max_images} images allowed, got {len(drafts)}")

        for position, draft in enumerate(drafts):
            try:
                ImageType(draft.image_type)
            except ValueError:
                raise ValidationError(
                    f"Image at position {position} has unknown category '{draft.image_type}'"
                )
            if draft.kind == "new" and not draft.content:
                raise ValidationError(f"Image at position {position} has no file content")
            if draft.kind == "existing" and not (draft.url and draft.url.strip()):
                raise ValidationError(f"Image at position {position} has no url")

    async def _upload_one(self, position: int, key: str, content: bytes) -> str:
        try:
            return await asyncio.wait_for(self.storage.upload(key, content), timeout=self.upload_timeout)
        except asyncio.TimeoutError:
            raise StorageError(
                f"Upload of image at position {position} timed out after {self.upload_timeout:g}s",
                position=position,
            )
        except StorageError as e:
            e.position = position
            raise
        except Exception as e:
            raise StorageError(f"Upload of image at position {position} failed: {str(e)}", position=position) from e

    async def _upload_new_drafts(self, school_id: Any, drafts: Sequence[ImageDraft]) -> Dict[int, str]:
        """
        Upload every new draft concurrently.

        Returns a mapping of draft position to public URL. The first failure
        cancels the uploads still in flight and is raised as StorageError.
        """
        tasks: Dict[asyncio.Task, int] = {}
        for position, draft in enumerate(drafts):
            if draft.kind != "new":
                continue
            key = build_storage_key(school_id, draft.filename)
            task = asyncio.create_task(self._upload_one(position, key, draft.content))
            tasks[task] = position

        if not tasks:
            return {}

        try:
            done, pending = await asyncio.wait(tasks.keys(), return_when=asyncio.FIRST_EXCEPTION)
        except asyncio.CancelledError:
            # Caller abandoned the synchronization; nothing uploaded counts as committed
            for task in tasks:
                task.cancel()
            raise

        failed = [task for task in done if not task.cancelled() and task.exception() is not None]
        if failed:
            for task in pending:
                task.cancel()
            first = min(failed, key=lambda t: tasks[t])
            error = first.exception()
            logger.error(f"Image upload failed for school {school_id}: {error}")
            raise error

        return {tasks[task]: task.result() for task in done}

    async def _replace_rows(self, school_id: Any, payloads: List[dict]) -> List[SchoolImage]:
        stage = "delete"
        try:
            deleted = await self.store.delete(SchoolImage, SchoolImage.school_id == school_id)
            logger.info(f"Deleted {deleted} existing image row(s) for school {school_id}")

            stage = "insert"
            rows = await self.store.insert(SchoolImage, payloads) if payloads else []

            stage = "commit"
            await self.store.commit()
        except PersistenceError as e:
            await self.store.rollback()
            # A transactional store rolls back delete+insert together; only an
            # uncertain commit or a non-atomic store can leave partial state
            reconciliation_required = (not self.store.atomic) or stage == "commit"
            message = f"Failed to save images for school {school_id} during {stage}: {e.message}"
            if reconciliation_required:
                message += " (manual reconciliation needed)"
            logger.error(message)
            raise PersistenceError(message, stage=stage, reconciliation_required=reconciliation_required) from e

        return rows
