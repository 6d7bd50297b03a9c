"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
import uuid

from school_directory.models import Board, ImageType, SchoolType, UserRole


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

class SchoolImageResponse(BaseModel):
    """
    Response schema for a persisted school image.
    """
    id: uuid.UUID
    school_id: uuid.UUID
    image_url: str
    image_type: ImageType
    title: Optional[str] = None
    description: Optional[str] = None
    display_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ImageDraft(BaseModel):
    """
    A pending gallery image, not yet persisted.

    kind="new" carries uploaded bytes; kind="existing" carries the URL of an
    image that is already stored. The draft's position in the submitted list
    becomes its display_order.
    """
    kind: Literal["new", "existing"]
    content: Optional[bytes] = Field(default=None, repr=False)
    filename: Optional[str] = None
    existing_id: Optional[uuid.UUID] = None
    url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image_type: ImageType = ImageType.GENERAL
    preview: Optional[str] = None


class ImageManifestEntry(BaseModel):
    """
    One entry of the JSON image manifest sent with an admin school save.
    New entries point at an uploaded file by its index in the "files" form field.
    """
    kind: Literal["new", "existing"]
    file_index: Optional[int] = None
    existing_id: Optional[uuid.UUID] = None
    url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image_type: ImageType = ImageType.GENERAL

    @field_validator("image_type", mode="before")
    @classmethod
    def default_image_type(cls, v):
        # Unset categories are coerced to "general" before synchronization
        return v or ImageType.GENERAL

    @model_validator(mode="after")
    def check_reference(self):
        if self.kind == "new" and self.file_index is None:
            raise ValueError("New images must reference an uploaded file by file_index")
        if self.kind == "existing" and not (self.url and self.url.strip()):
            raise ValueError("Existing images must carry their url")
        return self


class GalleryCategory(BaseModel):
    value: str
    label: str
    count: int


class GalleryImage(SchoolImageResponse):
    """
    Gallery grid item. display_url falls back to the placeholder when the
    stored URL is missing.
    """
    display_url: Optional[str] = None
    alt_text: Optional[str] = None


class GalleryResponse(BaseModel):
    """
    Filtered gallery for a school detail page.
    """
    school_id: uuid.UUID
    selected_category: str
    show_category_filter: bool
    categories: List[GalleryCategory]
    total_count: int
    images: List[GalleryImage]
    is_empty: bool
    empty_message: Optional[str] = None


class LightboxResponse(BaseModel):
    """
    Single-image view over the filtered gallery.
    """
    selected_category: str
    index: int
    counter: str
    has_navigation: bool
    prev_index: int
    next_index: int
    image: Optional[SchoolImageResponse] = None
    display_url: Optional[str] = None
    alt_text: Optional[str] = None


# ---------------------------------------------------------------------------
# Schools
# ---------------------------------------------------------------------------

class SchoolRatings(BaseModel):
    overall: float
    facility: float
    faculty: float
    activities: float


class SchoolBase(BaseModel):
    """
    Fields shared by the admin school form and school responses.
    """
    name: str
    city: str
    district: str
    type: SchoolType
    board: Board
    established: Optional[int] = None

    # Contact details
    principal_name: Optional[str] = None
    principal_email: Optional[str] = None
    principal_phone: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    alternate_contact_name: Optional[str] = None
    alternate_contact_phone: Optional[str] = None
    website: Optional[str] = None

    # Address details
    street_address: Optional[str] = None
    address: Optional[str] = None
    state: Optional[str] = "Odisha"
    pincode: Optional[str] = None
    landmark: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    description: Optional[str] = None
    image_url: Optional[str] = None
    facilities: List[str] = Field(default_factory=list)
    achievements: List[str] = Field(default_factory=list)
    fee_structure: Optional[Dict[str, Any]] = None
    admission_process: Optional[str] = None


class SchoolCreate(SchoolBase):
    """
    Request schema for creating or updating a school from the admin form.
    Required fields must be non-blank.
    """

    @field_validator("name", "city", "district")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Field is required")
        return v.strip()

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v):
        if v is not None and not -90 <= v <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v):
        if v is not None and not -180 <= v <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        return v


class SchoolResponse(SchoolBase):
    id: uuid.UUID
    ratings: Optional[SchoolRatings] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("facilities", "achievements", mode="before")
    @classmethod
    def none_to_list(cls, v):
        return v or []


class SchoolDetailResponse(SchoolResponse):
    images: List[SchoolImageResponse] = Field(default_factory=list)


class SchoolsPageResponse(BaseModel):
    schools: List[SchoolResponse]
    total_count: int
    limit: int
    offset: int


class CityResponse(BaseModel):
    id: Optional[int] = None
    name: str
    district: str

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------

class RatingCreate(BaseModel):
    overall: int = Field(ge=1, le=5)
    facility: int = Field(ge=1, le=5)
    faculty: int = Field(ge=1, le=5)
    activities: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    id: int
    school_id: uuid.UUID
    author: str
    overall: int
    facility: int
    faculty: int
    activities: int
    comment: Optional[str] = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Users and auth
# ---------------------------------------------------------------------------

class SignupRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    display_name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class PasswordResetRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str = Field(min_length=6)


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    display_name: Optional[str] = None
    role: UserRole
    created_at: datetime
    last_sign_in_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class UsersListResponse(BaseModel):
    users: List[UserResponse]
    total_count: int
    role_counts: Dict[str, int]


class RoleUpdateRequest(BaseModel):
    role: UserRole


# ---------------------------------------------------------------------------
# Admin dashboard
# ---------------------------------------------------------------------------

class DashboardStats(BaseModel):
    total_schools: int
    total_users: int
    total_ratings: int
    average_rating: Optional[float] = None


class SeedResult(BaseModel):
    success: bool
    cities: int
    schools: int
