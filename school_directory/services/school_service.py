"""
School listing and admin operations.
Saving a school optionally synchronizes its image set in the same request.
"""
import logging
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError

from school_directory.models import City, School, SchoolImage, SchoolRating
from school_directory.schemas import ImageDraft, SchoolCreate
from school_directory.services.errors import NotFoundError, PersistenceError, ValidationError
from school_directory.services.image_sync import ImageSetSynchronizer
from school_directory.services.row_store import RowStore

logger = logging.getLogger(__name__)

# Returned when the cities table has not been populated yet
DEFAULT_CITIES = [
    {"name": "Bhubaneswar", "district": "Khordha"},
    {"name": "Cuttack", "district": "Cuttack"},
    {"name": "Puri", "district": "Puri"},
    {"name": "Berhampur", "district": "Ganjam"},
    {"name": "Sambalpur", "district": "Sambalpur"},
    {"name": "Rourkela", "district": "Sundargarh"},
]


async def list_schools(
    store: RowStore,
    city: Optional[str] = None,
    district: Optional[str] = None,
    school_type: Optional[str] = None,
    board: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = 20,
    offset: int = 0,
) -> Tuple[List[School], int]:
    """
    Browse schools ordered by name.

    Returns:
        tuple: (schools on this page, total matching count)
    """
    criteria = []
    if city:
        criteria.append(School.city == city)
    if district:
        criteria.append(School.district == district)
    if school_type:
        criteria.append(School.type == school_type)
    if board:
        criteria.append(School.board == board)
    if search:
        pattern = f"%{search.strip()}%"
        criteria.append(or_(School.name.ilike(pattern), School.city.ilike(pattern)))

    schools = await store.select(School, *criteria, order_by=[School.name.asc()], limit=limit, offset=offset)

    try:
        count_result = await store.session.execute(select(func.count(School.id)).where(*criteria))
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to count schools: {str(e)}", stage="select")
    return schools, count_result.scalar() or 0


async def get_school(store: RowStore, school_id: Any) -> School:
    school = await store.get(School, school_id)
    if school is None:
        raise NotFoundError(f"School {school_id} does not exist")
    return school


async def list_school_images(store: RowStore, school_id: Any) -> List[SchoolImage]:
    return await store.select(
        SchoolImage,
        SchoolImage.school_id == school_id,
        order_by=[SchoolImage.display_order.asc()],
    )


async def fetch_school_with_images(store: RowStore, school_id: Any) -> Tuple[School, List[SchoolImage]]:
    school = await get_school(store, school_id)
    images = await list_school_images(store, school_id)
    return school, images


async def save_school(
    store: RowStore,
    synchronizer: ImageSetSynchronizer,
    data: SchoolCreate,
    drafts: Optional[Sequence[ImageDraft]] = None,
    school_id: Any = None,
) -> Tuple[School, List[SchoolImage]]:
    """
    Create or update a school, then synchronize its images.

    The image limit is checked before the school row is written so an
    oversized gallery never leaves a half-saved school behind.

    Args:
        store: Row store bound to the request session
        synchronizer: Image set synchronizer sharing the same store
        data: Validated school form data
        drafts: Ordered image drafts; None leaves the gallery untouched,
                an empty list clears it
        school_id: Existing school to update, or None to create one

    Returns:
        tuple: (saved school, its images ordered by display_order)

    Raises:
        NotFoundError: If school_id does not exist
        ValidationError: If the name clashes with another school or too many images were sent
    """
    if drafts is not None and len(drafts) > synchronizer.max_images:
        raise ValidationError(f"Maximum {synchronizer.max_images} images allowed, got {len(drafts)}")

    values = data.model_dump(mode="json")

    clash = await store.select(School, School.name == values["name"])
    if clash and (school_id is None or clash[0].id != school_id):
        raise ValidationError(f"A school named '{values['name']}' already exists")

    if school_id is not None:
        school = await get_school(store, school_id)
        for field, value in values.items():
            setattr(school, field, value)
        try:
            await store.session.flush()
        except SQLAlchemyError as e:
            await store.rollback()
            raise PersistenceError(f"Failed to update school: {str(e)}", stage="update")
        await store.refresh(school)
        logger.info(f"Updated school {school.id} ({school.name})")
    else:
        (school,) = await store.insert(School, [values])
        logger.info(f"Created school {school.id} ({school.name})")

    if drafts is not None:
        # Commits the school row together with the new image set
        images = await synchronizer.synchronize(school.id, drafts)
    else:
        await store.commit()
        images = await list_school_images(store, school.id)

    return school, images


async def delete_school(store: RowStore, school_id: Any) -> None:
    await get_school(store, school_id)
    await store.delete(SchoolRating, SchoolRating.school_id == school_id)
    await store.delete(SchoolImage, SchoolImage.school_id == school_id)
    await store.delete(School, School.id == school_id)
    await store.commit()
    logger.info(f"Deleted school {school_id}")


async def delete_all_schools(store: RowStore) -> int:
    await store.delete(SchoolRating)
    await store.delete(SchoolImage)
    deleted = await store.delete(School)
    await store.commit()
    logger.warning(f"Deleted all schools ({deleted} rows)")
    return deleted


async def list_cities(store: RowStore) -> List[dict]:
    cities = await store.select(City, order_by=[City.name.asc()])
    if not cities:
        return [dict(city) for city in DEFAULT_CITIES]
    return [{"id": c.id, "name": c.name, "district": c.district} for c in cities]
