"""
Admin back-office routes.
All endpoints require a signed-in user with the admin role.
"""
from fastapi import APIRouter, Depends, HTTPException, status, Request
from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from typing import List, Optional, Tuple
import json
import logging
import uuid

from school_directory.dependencies import get_store, get_synchronizer
from school_directory.models import SchoolImage, User
from school_directory.schemas import (
    DashboardStats,
    ImageDraft,
    ImageManifestEntry,
    RoleUpdateRequest,
    SchoolCreate,
    SchoolDetailResponse,
    SchoolImageResponse,
    SchoolResponse,
    SeedResult,
    UserResponse,
    UsersListResponse,
)
from school_directory.services import admin_service, school_service, user_service
from school_directory.services.image_sync import ImageSetSynchronizer
from school_directory.services.row_store import RowStore
from school_directory.utils.image_probe import ensure_image
from school_directory.utils.jwt_auth import require_admin
from school_directory.utils.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

_manifest_adapter = TypeAdapter(List[ImageManifestEntry])


def _bad_request(error: str, detail) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": error, "detail": detail}
    )


def _parse_json_field(form, name: str):
    raw = form.get(name)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise _bad_request(f"Invalid {name} field", f"'{name}' must be a JSON string")
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise _bad_request(f"Invalid {name} field", f"'{name}' is not valid JSON: {str(e)}")


async def _drafts_from_form(form) -> Optional[List[ImageDraft]]:
    """
    Build image drafts from the multipart form.

    The "images" field is a JSON manifest in display order; new entries point
    at an uploaded file in the "files" field by file_index. Returns None when
    no manifest was sent.
    """
    raw_manifest = _parse_json_field(form, "images")
    if raw_manifest is None:
        return None

    try:
        manifest = _manifest_adapter.validate_python(raw_manifest)
    except PydanticValidationError as e:
        raise _bad_request("Invalid image manifest", e.errors(include_url=False, include_context=False))

    files = form.getlist("files")
    # Several entries may share one upload; each file can only be read once
    contents = {}

    drafts = []
    for position, entry in enumerate(manifest):
        if entry.kind == "existing":
            drafts.append(ImageDraft(
                kind="existing",
                existing_id=entry.existing_id,
                url=entry.url.strip(),
                title=entry.title,
                description=entry.description,
                image_type=entry.image_type,
                preview=entry.url.strip(),
            ))
            continue

        if entry.file_index < 0 or entry.file_index >= len(files):
            raise _bad_request(
                "Missing image file",
                f"Image at position {position} references file {entry.file_index}, but {len(files)} file(s) were sent"
            )
        file = files[entry.file_index]
        filename = getattr(file, 'filename', None) or f'file_{entry.file_index}'
        content_type = getattr(file, 'content_type', None)
        if not content_type or not content_type.startswith('image/'):
            raise _bad_request("Invalid file type", f"File '{filename}' is not a valid image file")

        if entry.file_index not in contents:
            contents[entry.file_index] = await file.read()
        content = contents[entry.file_index]
        drafts.append(ImageDraft(
            kind="new",
            content=content,
            filename=ensure_image(content, filename),
            title=entry.title,
            description=entry.description,
            image_type=entry.image_type,
        ))

    return drafts


async def _school_form(request: Request) -> Tuple[SchoolCreate, Optional[List[ImageDraft]]]:
    form = await request.form()
    raw_school = _parse_json_field(form, "school")
    if raw_school is None:
        raise _bad_request("Missing school data", "The 'school' form field is required")
    try:
        data = SchoolCreate.model_validate(raw_school)
    except PydanticValidationError as e:
        raise _bad_request("Please fill in all required fields", e.errors(include_url=False, include_context=False))
    return data, await _drafts_from_form(form)


def _detail(school, images: List[SchoolImage]) -> SchoolDetailResponse:
    detail = SchoolDetailResponse.model_validate(school)
    detail.images = [SchoolImageResponse.model_validate(img) for img in images]
    return detail


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    return await admin_service.dashboard_stats(store)


@router.post("/seed", response_model=SeedResult)
async def seed_data(
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    """Upsert the sample cities and schools."""
    result = await admin_service.seed_sample_data(store)
    logger.info(f"Admin {admin.id} seeded sample data")
    return result


# ---------------------------------------------------------------------------
# Schools
# ---------------------------------------------------------------------------

@router.get("/schools", response_model=List[SchoolResponse])
async def get_admin_schools(
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    schools, _ = await school_service.list_schools(store, limit=None)
    return [SchoolResponse.model_validate(s) for s in schools]


@router.get("/schools/{school_id}", response_model=SchoolDetailResponse)
async def get_admin_school(
    school_id: uuid.UUID,
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    """Complete school with images, used to prefill the edit form."""
    school, images = await school_service.fetch_school_with_images(store, school_id)
    return _detail(school, images)


@router.post("/schools", response_model=SchoolDetailResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["upload"])
async def create_school(
    request: Request,
    store: RowStore = Depends(get_store),
    synchronizer: ImageSetSynchronizer = Depends(get_synchronizer),
    admin: User = Depends(require_admin),
):
    """
    Create a school from the admin form.

    Multipart fields:
        school: JSON object with the school form data
        images: Optional JSON manifest of image drafts in display order
        files: Uploaded image files referenced by the manifest

    Raises:
        HTTPException: 400 if the form is incomplete or a file is not an image
    """
    data, drafts = await _school_form(request)
    school, images = await school_service.save_school(store, synchronizer, data, drafts)
    return _detail(school, images)


@router.put("/schools/{school_id}", response_model=SchoolDetailResponse)
@limiter.limit(RATE_LIMITS["upload"])
async def update_school(
    request: Request,
    school_id: uuid.UUID,
    store: RowStore = Depends(get_store),
    synchronizer: ImageSetSynchronizer = Depends(get_synchronizer),
    admin: User = Depends(require_admin),
):
    """
    Update a school from the admin form.
    Sending an image manifest replaces the whole gallery; omitting it leaves the gallery as is.
    """
    data, drafts = await _school_form(request)
    school, images = await school_service.save_school(store, synchronizer, data, drafts, school_id=school_id)
    return _detail(school, images)


@router.put("/schools/{school_id}/images", response_model=List[SchoolImageResponse])
@limiter.limit(RATE_LIMITS["upload"])
async def replace_school_images(
    request: Request,
    school_id: uuid.UUID,
    store: RowStore = Depends(get_store),
    synchronizer: ImageSetSynchronizer = Depends(get_synchronizer),
    admin: User = Depends(require_admin),
):
    """Replace only the gallery of a school with the submitted manifest."""
    form = await request.form()
    drafts = await _drafts_from_form(form)
    if drafts is None:
        raise _bad_request("Missing image manifest", "The 'images' form field is required")

    await school_service.get_school(store, school_id)
    images = await synchronizer.synchronize(school_id, drafts)
    return [SchoolImageResponse.model_validate(img) for img in images]


@router.delete("/schools/{school_id}")
@limiter.limit(RATE_LIMITS["delete"])
async def delete_school(
    request: Request,
    school_id: uuid.UUID,
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    await school_service.delete_school(store, school_id)
    return {"message": "School deleted successfully", "school_id": str(school_id)}


@router.delete("/schools")
async def delete_all_schools(
    confirm: bool = False,
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    """Delete every school. Requires ?confirm=true."""
    if not confirm:
        raise _bad_request("Confirmation required", "Pass confirm=true to delete all schools")
    deleted = await school_service.delete_all_schools(store)
    return {"message": "All schools deleted successfully", "deleted": deleted}


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

@router.get("/users", response_model=UsersListResponse)
async def get_users(
    search: Optional[str] = None,
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    users, role_counts = await user_service.list_users(store, search)
    return UsersListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total_count=len(users),
        role_counts=role_counts,
    )


@router.put("/users/{user_id}/role", response_model=UserResponse)
async def update_user_role(
    user_id: uuid.UUID,
    payload: RoleUpdateRequest,
    store: RowStore = Depends(get_store),
    admin: User = Depends(require_admin),
):
    if user_id == admin.id and payload.role.value != admin.role:
        raise _bad_request("Invalid role change", "Admins cannot change their own role")
    user = await user_service.set_role(store, user_id, payload.role)
    return UserResponse.model_validate(user)
