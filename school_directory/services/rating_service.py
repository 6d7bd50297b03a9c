"""
School ratings and reviews.
Every submission recomputes the aggregate stored on the school row.
"""
import logging
from typing import Any, List

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from school_directory.models import SchoolRating, User
from school_directory.schemas import RatingCreate
from school_directory.services.errors import PersistenceError
from school_directory.services.row_store import RowStore
from school_directory.services.school_service import get_school

logger = logging.getLogger(__name__)

RATING_CATEGORIES = ("overall", "facility", "faculty", "activities")


async def submit_rating(store: RowStore, school_id: Any, user: User, rating: RatingCreate) -> SchoolRating:
    """
    Create or replace the signed-in user's rating of a school.

    Args:
        store: Row store bound to the request session
        school_id: School being rated
        user: Author of the rating
        rating: Scores (1-5) and optional comment

    Returns:
        SchoolRating: The stored rating

    Raises:
        NotFoundError: If the school does not exist
        PersistenceError: If the rating or aggregate cannot be saved
    """
    school = await get_school(store, school_id)
    values = rating.model_dump()
    values["comment"] = values["comment"].strip() if values.get("comment") and values["comment"].strip() else None

    existing = await store.select(
        SchoolRating,
        SchoolRating.school_id == school_id,
        SchoolRating.user_id == user.id,
    )
    if existing:
        row = existing[0]
        for field, value in values.items():
            setattr(row, field, value)
        try:
            await store.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to update rating: {str(e)}", stage="update")
    else:
        (row,) = await store.insert(SchoolRating, [{"school_id": school_id, "user_id": user.id, **values}])

    school.ratings = await compute_school_ratings(store, school_id)
    await store.commit()
    await store.refresh(row)
    logger.info(f"User {user.id} rated school {school_id}: overall={row.overall}")
    return row


async def compute_school_ratings(store: RowStore, school_id: Any):
    """Mean of each category rounded to 1 decimal, or None when unrated."""
    query = select(
        func.count(SchoolRating.id),
        *[func.avg(getattr(SchoolRating, category)) for category in RATING_CATEGORIES],
    ).where(SchoolRating.school_id == school_id)
    try:
        result = await store.session.execute(query)
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to aggregate ratings: {str(e)}", stage="select")

    count, *averages = result.one()
    if not count:
        return None
    return {
        category: round(float(average), 1)
        for category, average in zip(RATING_CATEGORIES, averages)
    }


async def list_reviews(store: RowStore, school_id: Any) -> List[dict]:
    await get_school(store, school_id)
    rows = await store.select(
        SchoolRating,
        SchoolRating.school_id == school_id,
        order_by=[SchoolRating.created_at.desc(), SchoolRating.id.desc()],
    )
    return [review_payload(row) for row in rows]


def review_payload(row: SchoolRating) -> dict:
    author = "Parent"
    if row.user is not None:
        author = row.user.display_name or row.user.email.split("@")[0]
    return {
        "id": row.id,
        "school_id": row.school_id,
        "author": author,
        "overall": row.overall,
        "facility": row.facility,
        "faculty": row.faculty,
        "activities": row.activities,
        "comment": row.comment,
        "created_at": row.created_at,
    }
