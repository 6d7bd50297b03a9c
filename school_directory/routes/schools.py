"""
Public school routes: listings, detail pages, galleries and reviews.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Literal, Optional
import logging
import uuid

from school_directory.config import settings
from school_directory.dependencies import get_store
from school_directory.models import User
from school_directory.schemas import (
    CityResponse,
    GalleryCategory,
    GalleryImage,
    GalleryResponse,
    LightboxResponse,
    RatingCreate,
    ReviewResponse,
    SchoolDetailResponse,
    SchoolImageResponse,
    SchoolResponse,
    SchoolsPageResponse,
)
from school_directory.services import rating_service, school_service
from school_directory.services.gallery import ALL_CATEGORIES, GalleryPresenter, label_for
from school_directory.services.row_store import RowStore
from school_directory.utils.jwt_auth import get_current_user

logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


@router.get("/schools", response_model=SchoolsPageResponse)
async def get_schools(
    city: Optional[str] = None,
    district: Optional[str] = None,
    type: Optional[str] = None,
    board: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    store: RowStore = Depends(get_store),
):
    """
    Browse school listings ordered by name.

    Args:
        city, district, type, board: Optional exact-match filters
        search: Case-insensitive match on school name or city
        limit: Page size (1-100)
        offset: Number of schools to skip

    Raises:
        HTTPException: 400 if paging parameters are out of range
    """
    if limit < 1 or limit > 100:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Limit must be between 1 and 100"
        )
    if offset < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Offset must not be negative"
        )

    schools, total_count = await school_service.list_schools(
        store,
        city=city,
        district=district,
        school_type=type,
        board=board,
        search=search,
        limit=limit,
        offset=offset,
    )
    logger.info(f"Retrieved {len(schools)} of {total_count} schools (offset: {offset})")

    return SchoolsPageResponse(
        schools=[SchoolResponse.model_validate(s) for s in schools],
        total_count=total_count,
        limit=limit,
        offset=offset,
    )


@router.get("/cities", response_model=List[CityResponse])
async def get_cities(store: RowStore = Depends(get_store)):
    return await school_service.list_cities(store)


@router.get("/schools/{school_id}", response_model=SchoolDetailResponse)
async def get_school_details(school_id: uuid.UUID, store: RowStore = Depends(get_store)):
    """School detail page data with images ordered by display_order."""
    school, images = await school_service.fetch_school_with_images(store, school_id)
    detail = SchoolDetailResponse.model_validate(school)
    detail.images = [SchoolImageResponse.model_validate(img) for img in images]
    return detail


@router.get("/schools/{school_id}/gallery", response_model=GalleryResponse)
async def get_school_gallery(
    school_id: uuid.UUID,
    category: str = ALL_CATEGORIES,
    store: RowStore = Depends(get_store),
):
    """
    Gallery grid for a school, filtered by image category.

    Category buttons are only listed when the school has more than one category.
    """
    school = await school_service.get_school(store, school_id)
    images = await school_service.list_school_images(store, school_id)

    presenter = GalleryPresenter(images, placeholder_url=settings.PLACEHOLDER_IMAGE_URL)
    presenter.select_category(category)
    counts = presenter.category_counts()

    categories = []
    if presenter.show_category_filter:
        categories.append(GalleryCategory(value=ALL_CATEGORIES, label="All", count=counts[ALL_CATEGORIES]))
        categories.extend(
            GalleryCategory(value=c, label=label_for(c), count=counts[c])
            for c in presenter.categories()
        )

    return GalleryResponse(
        school_id=school_id,
        selected_category=presenter.selected_category,
        show_category_filter=presenter.show_category_filter,
        categories=categories,
        total_count=len(images),
        images=[
            GalleryImage(
                **SchoolImageResponse.model_validate(img).model_dump(),
                display_url=presenter.display_url(img),
                alt_text=presenter.alt_text(img, school.name),
            )
            for img in presenter.filtered_images()
        ],
        is_empty=presenter.is_empty,
        empty_message="No images available" if presenter.is_empty else None,
    )


@router.get("/schools/{school_id}/gallery/lightbox", response_model=LightboxResponse)
async def get_school_lightbox(
    school_id: uuid.UUID,
    category: str = ALL_CATEGORIES,
    index: int = 0,
    step: Optional[Literal["next", "prev"]] = None,
    store: RowStore = Depends(get_store),
):
    """
    Single-image lightbox view.

    index is clamped into the filtered list; step moves one image forward or
    back with wraparound before the view is returned.
    """
    school = await school_service.get_school(store, school_id)
    images = await school_service.list_school_images(store, school_id)

    presenter = GalleryPresenter(images, placeholder_url=settings.PLACEHOLDER_IMAGE_URL)
    presenter.select_category(category)
    presenter.open(index)
    if step == "next":
        presenter.next()
    elif step == "prev":
        presenter.prev()

    image = presenter.current()
    prev_index, next_index = presenter.neighbors()

    return LightboxResponse(
        selected_category=presenter.selected_category,
        index=presenter.selected_index,
        counter=presenter.counter(),
        has_navigation=len(presenter.filtered_images()) > 1,
        prev_index=prev_index,
        next_index=next_index,
        image=SchoolImageResponse.model_validate(image) if image is not None else None,
        display_url=presenter.display_url(image) if image is not None else None,
        alt_text=presenter.alt_text(image, school.name) if image is not None else None,
    )


@router.get("/schools/{school_id}/reviews", response_model=List[ReviewResponse])
async def get_school_reviews(school_id: uuid.UUID, store: RowStore = Depends(get_store)):
    return await rating_service.list_reviews(store, school_id)


@router.post("/schools/{school_id}/ratings", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def rate_school(
    school_id: uuid.UUID,
    rating: RatingCreate,
    store: RowStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """
    Submit or replace the signed-in user's rating of a school.
    Requires authentication; anonymous visitors get 401 and are prompted to log in.
    """
    row = await rating_service.submit_rating(store, school_id, user, rating)
    return rating_service.review_payload(row)
