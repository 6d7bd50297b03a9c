"""
Admin back-office helpers: dashboard statistics and sample data seeding.
"""
import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from school_directory.models import City, School, SchoolRating, User
from school_directory.services.errors import PersistenceError
from school_directory.services.row_store import RowStore

logger = logging.getLogger(__name__)

SAMPLE_CITIES = [
    {"name": "Bhubaneswar", "district": "Khordha"},
    {"name": "Cuttack", "district": "Cuttack"},
    {"name": "Puri", "district": "Puri"},
    {"name": "Berhampur", "district": "Ganjam"},
    {"name": "Sambalpur", "district": "Sambalpur"},
    {"name": "Rourkela", "district": "Sundargarh"},
]

SAMPLE_SCHOOLS = [
    {
        "name": "DAV Public School",
        "city": "Bhubaneswar",
        "district": "Khordha",
        "type": "Private",
        "board": "CBSE",
        "established": 1995,
        "principal_name": "Dr. Rajesh Kumar",
        "contact_email": "info@davbhubaneswar.edu.in",
        "contact_phone": "+91 674 2301234",
        "website": "https://davbhubaneswar.edu.in",
        "address": "Unit-VIII, Bhubaneswar - 751003, Odisha",
        "description": "DAV Public School is a premier educational institution committed to providing quality education with a focus on academic excellence and character building.",
        "image_url": "https://images.unsplash.com/photo-1580582932707-520aed937b7b?auto=format&fit=crop&w=1000&q=80",
        "facilities": ["Library", "Computer Lab", "Science Lab", "Sports Ground", "Auditorium"],
        "achievements": ["CBSE Board Toppers", "State Level Sports Champions"],
        "ratings": {"overall": 4.5, "facility": 4.3, "faculty": 4.7, "activities": 4.2},
    },
    {
        "name": "Kendriya Vidyalaya",
        "city": "Cuttack",
        "district": "Cuttack",
        "type": "Government",
        "board": "CBSE",
        "established": 1985,
        "principal_name": "Mrs. Sunita Patel",
        "contact_email": "kvcuttack@gov.in",
        "contact_phone": "+91 671 2234567",
        "address": "Cantonment Road, Cuttack - 753001, Odisha",
        "description": "Kendriya Vidyalaya provides quality education following CBSE curriculum with emphasis on holistic development.",
        "image_url": "https://images.unsplash.com/photo-1523050854058-8df90110c9f1?auto=format&fit=crop&w=1000&q=80",
        "facilities": ["Library", "Science Lab", "Computer Lab", "Playground"],
        "achievements": [],
        "ratings": {"overall": 4.2, "facility": 4.0, "faculty": 4.4, "activities": 4.0},
    },
    {
        "name": "Sai International School",
        "city": "Bhubaneswar",
        "district": "Khordha",
        "type": "Private",
        "board": "CBSE",
        "established": 2008,
        "principal_name": "Dr. Bijayalaxmi Nanda",
        "contact_email": "admission@saiinternational.edu.in",
        "contact_phone": "+91 674 6649999",
        "website": "https://saiinternational.edu.in",
        "address": "At/PO: Sijua, Dist: Khordha, Bhubaneswar - 752101, Odisha",
        "description": "Sai International School is a world-class educational institution with state-of-the-art facilities and innovative teaching methodologies.",
        "image_url": "https://images.unsplash.com/photo-1562774053-701939374585?auto=format&fit=crop&w=1000&q=80",
        "facilities": ["Smart Classrooms", "Swimming Pool", "Hostel", "Transport", "Medical Facility"],
        "achievements": ["International School Award", "Best Infrastructure Award"],
        "ratings": {"overall": 4.8, "facility": 4.9, "faculty": 4.7, "activities": 4.8},
    },
]


async def _scalar(store: RowStore, query):
    try:
        result = await store.session.execute(query)
    except SQLAlchemyError as e:
        raise PersistenceError(f"Failed to compute dashboard statistics: {str(e)}", stage="select")
    return result.scalar()


async def dashboard_stats(store: RowStore) -> dict:
    total_schools = await _scalar(store, select(func.count(School.id)))
    total_users = await _scalar(store, select(func.count(User.id)))
    total_ratings = await _scalar(store, select(func.count(SchoolRating.id)))
    average = await _scalar(store, select(func.avg(SchoolRating.overall)))

    return {
        "total_schools": total_schools or 0,
        "total_users": total_users or 0,
        "total_ratings": total_ratings or 0,
        "average_rating": round(float(average), 1) if average is not None else None,
    }


async def _upsert_by_name(store: RowStore, model, rows) -> int:
    """Insert rows whose name is new, update the others in place."""
    names = [row["name"] for row in rows]
    existing = {obj.name: obj for obj in await store.select(model, model.name.in_(names))}

    new_rows = []
    for row in rows:
        current = existing.get(row["name"])
        if current is None:
            new_rows.append(row)
            continue
        for field, value in row.items():
            setattr(current, field, value)

    if new_rows:
        await store.insert(model, new_rows)
    return len(rows)


async def seed_sample_data(store: RowStore) -> dict:
    """
    Upsert the sample cities and schools by name.

    Returns:
        dict: success flag and the number of cities and schools written
    """
    try:
        cities = await _upsert_by_name(store, City, SAMPLE_CITIES)
        schools = await _upsert_by_name(store, School, SAMPLE_SCHOOLS)
        await store.commit()
    except PersistenceError:
        await store.rollback()
        logger.error("Seeding sample data failed", exc_info=True)
        raise

    logger.info(f"Sample data seeded: {cities} cities, {schools} schools")
    return {"success": True, "cities": cities, "schools": schools}
