"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
import enum
import uuid

from sqlalchemy import (
    Column,
    Integer,
    SmallInteger,
    String,
    Text,
    Float,
    DateTime,
    ForeignKey,
    JSON,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from school_directory.database import Base


class ImageType(str, enum.Enum):
    """Closed set of gallery categories for a school image."""
    INFRASTRUCTURE = "infrastructure"
    EVENTS = "events"
    GENERAL = "general"


class SchoolType(str, enum.Enum):
    GOVERNMENT = "Government"
    PRIVATE = "Private"
    AIDED = "Aided"
    INTERNATIONAL = "International"


class Board(str, enum.Enum):
    CBSE = "CBSE"
    ICSE = "ICSE"
    STATE_BOARD = "State Board"
    IB = "IB"


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class School(Base):
    """
    School listing.
    Contact and address details are flattened onto the row; ratings hold
    the aggregate of all submitted SchoolRating rows.
    """
    __tablename__ = "schools"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, unique=True, index=True)
    city = Column(String, nullable=False, index=True)
    district = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False)
    board = Column(String, nullable=False)
    established = Column(Integer, nullable=True)

    # Contact details
    principal_name = Column(String, nullable=True)
    principal_email = Column(String, nullable=True)
    principal_phone = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)
    alternate_contact_name = Column(String, nullable=True)
    alternate_contact_phone = Column(String, nullable=True)
    website = Column(String, nullable=True)

    # Address details
    street_address = Column(String, nullable=True)
    address = Column(String, nullable=True)
    state = Column(String, nullable=True, default="Odisha")
    pincode = Column(String, nullable=True)
    landmark = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)  # cover image
    facilities = Column(JSON, nullable=True)
    achievements = Column(JSON, nullable=True)
    ratings = Column(JSON, nullable=True)
    fee_structure = Column(JSON, nullable=True)
    admission_process = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class SchoolImage(Base):
    """
    Gallery image attached to a school.
    Rows are never updated in place: the image set synchronizer deletes and
    re-inserts the whole set, so display_order stays contiguous from 0.
    """
    __tablename__ = "school_images"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(Uuid, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String, nullable=False)
    image_type = Column(String, nullable=False, default=ImageType.GENERAL.value)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class City(Base):
    __tablename__ = "cities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)
    district = Column(String, nullable=False)


class User(Base):
    """Registered account; role drives access to the admin back-office."""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String, nullable=False, unique=True, index=True)
    display_name = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.USER.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)


class SchoolRating(Base):
    """One review per user per school; scores are 1-5."""
    __tablename__ = "school_ratings"
    __table_args__ = (UniqueConstraint("school_id", "user_id", name="uq_school_ratings_school_user"),)

    id = Column(Integer, primary_key=True, index=True)
    school_id = Column(Uuid, ForeignKey("schools.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    overall = Column(SmallInteger, nullable=False)
    facility = Column(SmallInteger, nullable=False)
    faculty = Column(SmallInteger, nullable=False)
    activities = Column(SmallInteger, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    user = relationship("User", lazy="joined")
