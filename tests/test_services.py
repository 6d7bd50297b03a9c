import pytest

from conftest import FakeStorage
from school_directory.models import School, SchoolImage
from school_directory.schemas import ImageDraft, RatingCreate, SchoolCreate
from school_directory.services import rating_service, school_service, user_service
from school_directory.services.errors import NotFoundError, PersistenceError
from school_directory.services.image_sync import ImageSetSynchronizer


def school_data(**overrides):
    values = {
        "name": "Kendriya Vidyalaya",
        "city": "Cuttack",
        "district": "Cuttack",
        "type": "Government",
        "board": "CBSE",
    }
    values.update(overrides)
    return SchoolCreate(**values)


class TestRowStore:
    async def test_insert_select_delete(self, store):
        rows = await store.insert(School, [
            {"name": "B School", "city": "Puri", "district": "Puri", "type": "Aided", "board": "ICSE"},
            {"name": "A School", "city": "Puri", "district": "Puri", "type": "Aided", "board": "ICSE"},
        ])
        assert all(row.id is not None and row.created_at is not None for row in rows)

        selected = await store.select(School, School.city == "Puri", order_by=[School.name.asc()])
        assert [s.name for s in selected] == ["A School", "B School"]

        assert await store.delete(School, School.name == "A School") == 1
        await store.commit()
        assert [s.name for s in await store.select(School)] == ["B School"]

    async def test_constraint_violation_is_persistence_error(self, store):
        row = {"name": "Same", "city": "Puri", "district": "Puri", "type": "Aided", "board": "ICSE"}
        await store.insert(School, [row])

        with pytest.raises(PersistenceError) as exc_info:
            await store.insert(School, [dict(row)])

        assert exc_info.value.stage == "insert"
        await store.rollback()


class TestSaveSchool:
    async def test_drafts_none_leaves_gallery(self, store):
        sync = ImageSetSynchronizer(FakeStorage(), store)
        school, images = await school_service.save_school(
            store, sync, school_data(),
            [ImageDraft(kind="existing", url="https://cdn.example.test/a.jpg")],
        )
        assert len(images) == 1

        school, images = await school_service.save_school(
            store, sync, school_data(city="Puri"), None, school_id=school.id
        )
        assert school.city == "Puri"
        assert len(images) == 1

        school, images = await school_service.save_school(store, sync, school_data(), [], school_id=school.id)
        assert images == []
        assert await store.select(SchoolImage, SchoolImage.school_id == school.id) == []

    async def test_delete_school(self, store):
        sync = ImageSetSynchronizer(FakeStorage(), store)
        school, _ = await school_service.save_school(
            store, sync, school_data(),
            [ImageDraft(kind="existing", url="https://cdn.example.test/a.jpg")],
        )

        await school_service.delete_school(store, school.id)

        with pytest.raises(NotFoundError):
            await school_service.get_school(store, school.id)
        assert await store.select(SchoolImage) == []


class TestRatings:
    async def test_aggregate_is_rounded_mean(self, store):
        sync = ImageSetSynchronizer(FakeStorage(), store)
        school, _ = await school_service.save_school(store, sync, school_data())
        first = await user_service.create_user(store, "one@example.com", "secret123")
        second = await user_service.create_user(store, "two@example.com", "secret123", display_name="Ravi")

        await rating_service.submit_rating(
            store, school.id, first, RatingCreate(overall=5, facility=4, faculty=4, activities=2)
        )
        await rating_service.submit_rating(
            store, school.id, second, RatingCreate(overall=4, facility=3, faculty=5, activities=3)
        )

        assert await rating_service.compute_school_ratings(store, school.id) == {
            "overall": 4.5, "facility": 3.5, "faculty": 4.5, "activities": 2.5,
        }
        reviews = await rating_service.list_reviews(store, school.id)
        assert sorted(r["author"] for r in reviews) == ["Ravi", "one"]

    async def test_unrated_school(self, store):
        sync = ImageSetSynchronizer(FakeStorage(), store)
        school, _ = await school_service.save_school(store, sync, school_data())
        assert await rating_service.compute_school_ratings(store, school.id) is None
