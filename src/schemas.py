"""Pydantic schemas for request validation and response serialization."""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional
from pydantic import (
    AfterValidator,
    AliasGenerator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


RequiredStr = Annotated[str, Field(min_length=1)]

BLOG_STATUSES = ("draft", "review", "published")
USER_ROLES = ("admin", "staff")
REPORT_CATEGORIES = (
    "Trade Forums",
    "Legal Conferences",
    "Technology Conferences",
    "Government Meetings",
    "Business Roundtables",
    "Academic Conferences",
)


def split_csv(value):
    """Accept either a list or a comma-separated string for list fields."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


CsvList = Annotated[List[str], BeforeValidator(split_csv)]


def as_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; label them so JSON carries the offset."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class PayloadModel(BaseModel):
    """
    Base for write payloads.

    Accepts camelCase wire names or attribute names, trims strings, and
    treats blank or null values as absent so that required fields report
    as missing and optional ones fall back to their defaults.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data):
        if isinstance(data, dict):
            return {
                key: value for key, value in data.items()
                if value is not None and not (isinstance(value, str) and not value.strip())
            }
        return data


class RecordOut(BaseModel):
    """Base for records returned to clients: `_id`, camelCase keys, timestamps."""

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )

    id: str = Field(serialization_alias="_id")
    created_at: UtcDatetime
    updated_at: UtcDatetime


# Auth Schemas
class UserLogin(BaseModel):
    """Schema for user login request."""

    email: str
    password: str

    @field_validator('email')
    @classmethod
    def email_not_empty(cls, v: str) -> str:
        """Validate that email is not empty and normalize its case."""
        if not v or not v.strip():
            raise ValueError('Email cannot be empty')
        return v.strip().lower()

    @field_validator('password')
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        """Validate that password is not empty."""
        if not v or not v.strip():
            raise ValueError('Password cannot be empty')
        return v


# User Schemas
class UserCreate(PayloadModel):
    """Schema for creating a user; the password is hashed before storage."""

    full_name: RequiredStr
    email: RequiredStr
    phone: RequiredStr
    position: RequiredStr
    role: Literal[USER_ROLES] = "admin"
    password: RequiredStr
    image: Optional[str] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserUpdate(UserCreate):
    """Same as UserCreate, but the password is only changed when supplied."""

    password: Optional[str] = None


class UserOut(RecordOut):
    """User projection; never carries the password or its hash."""

    full_name: str
    email: str
    phone: str
    position: str
    role: str
    image: Optional[str] = None


# Category Schemas
class CategoryIn(PayloadModel):
    """Schema for category create/update."""

    name: RequiredStr
    description: RequiredStr
    admin_id: Optional[str] = Field(None, alias="admin")


class CategoryOut(RecordOut):
    """Schema for category response, with its admin populated."""

    name: str
    description: str
    admin: Optional[UserOut] = None


# Blog Schemas
class BlogIn(PayloadModel):
    """Schema for blog create/update."""

    name: RequiredStr
    description: RequiredStr
    image: RequiredStr
    category_id: RequiredStr = Field(alias="category")
    admin_id: Optional[str] = Field(None, alias="admin")
    status: Literal[BLOG_STATUSES] = "draft"


class BlogOut(RecordOut):
    """Schema for blog response, with category and admin populated."""

    name: str
    description: str
    image: str
    category: Optional[CategoryOut] = None
    admin: Optional[UserOut] = None
    status: str


# Training Type Schemas
class TrainingTypeIn(PayloadModel):
    """Schema for training type create/update."""

    name: RequiredStr
    description: RequiredStr
    image: RequiredStr
    is_active: bool = True


class TrainingTypeOut(RecordOut):
    """Schema for training type response."""

    name: str
    description: str
    image: str
    is_active: bool


# Training Schemas
class TrainingIn(PayloadModel):
    """Schema for training create/update."""

    title: RequiredStr
    description: RequiredStr
    date: RequiredStr
    duration: RequiredStr
    format: RequiredStr
    client: RequiredStr
    image: RequiredStr
    training_type_id: Optional[str] = None


class TrainingOut(RecordOut):
    """Schema for training response, with its training type populated."""

    title: str
    description: str
    date: str
    duration: str
    format: str
    client: str
    image: str
    training_type: Optional[TrainingTypeOut] = Field(None, serialization_alias="trainingTypeId")


# Event Schemas
class EventIn(PayloadModel):
    """Schema for event create/update."""

    title: RequiredStr
    description: RequiredStr
    date: RequiredStr
    location: RequiredStr
    image: RequiredStr


class EventOut(RecordOut):
    """Schema for event response."""

    title: str
    description: str
    date: str
    location: str
    image: str


# Notice Schemas
class NoticeIn(PayloadModel):
    """Schema for notice create/update."""

    title: RequiredStr
    description: RequiredStr


class NoticeOut(RecordOut):
    """Schema for notice response."""

    title: str
    description: str


# Contact Schemas
class ContactIn(PayloadModel):
    """Schema for a contact form submission."""

    fullname: RequiredStr
    email: RequiredStr
    phone: RequiredStr
    message: RequiredStr


class ContactOut(RecordOut):
    """Schema for contact response."""

    fullname: str
    email: str
    phone: str
    message: str


# Gallery Schemas
class GalleryIn(PayloadModel):
    """Schema for gallery item create/update."""

    title: RequiredStr
    type: RequiredStr
    image: RequiredStr


class GalleryOut(RecordOut):
    """Schema for gallery item response."""

    title: str
    type: str
    image: str


# Directors Bank Schemas
class DirectorIn(PayloadModel):
    """Schema for directors bank entry create/update."""

    name: RequiredStr
    position: RequiredStr
    image: RequiredStr
    areas_of_expertise: Annotated[CsvList, Field(min_length=1)]


class DirectorOut(RecordOut):
    """Schema for directors bank entry response."""

    name: str
    position: str
    image: str
    areas_of_expertise: List[str]


# Report Schemas
class ReportIn(PayloadModel):
    """
    Schema for report create/update.

    An attached document arrives as `file` (usually a data URL) plus
    `filename`; both must be present for the file fields to be set.
    """

    title: RequiredStr = Field(max_length=200)
    description: RequiredStr = Field(max_length=1000)
    category: Literal[REPORT_CATEGORIES]
    event_date: datetime
    file: Optional[str] = Field(None, exclude=True)
    filename: str = ""
    file_url: str = ""
    file_size: int = 0
    file_path: str = ""
    is_published: bool = False
    tags: CsvList = []
    event_location: Optional[str] = Field(None, max_length=200)
    event_organizer: Optional[str] = Field(None, max_length=200)
    summary: Optional[str] = Field(None, max_length=2000)
    key_outcomes: CsvList = []

    @field_validator('event_date')
    @classmethod
    def naive_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @model_validator(mode='after')
    def attach_file(self):
        """Fill the file fields from a new attachment, or reset them without one."""
        if self.file and self.filename:
            self.file_url = self.file
            self.file_path = f"reports/{int(datetime.utcnow().timestamp() * 1000)}_{self.filename}"
        else:
            self.filename = ""
            self.file_url = ""
            self.file_size = 0
            self.file_path = ""
        return self


class ReportOut(RecordOut):
    """Schema for report response."""

    title: str
    description: str
    category: str
    event_date: UtcDatetime
    filename: str
    file_url: str
    file_size: int
    file_path: str
    is_published: bool
    tags: List[str]
    event_location: Optional[str] = None
    event_organizer: Optional[str] = None
    summary: Optional[str] = None
    key_outcomes: List[str]
