"""Descriptors for the eleven content resources exposed under /api."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Type

from pydantic import BaseModel

from src import models, schemas
from src.auth import hash_password


class UpdatePolicy(str, Enum):
    """How a PUT payload is applied to an existing record."""

    # The payload is a complete record; omitted optional fields reset to defaults
    REPLACE = "replace"
    # The payload is laid over the current record; omitted fields are untouched
    MERGE = "merge"


def parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def parse_str(value: str) -> str:
    return value.strip()


@dataclass(frozen=True)
class Resource:
    """
    Everything the generic CRUD service and router need to know about one resource.

    Attributes:
        name: URL segment under /api
        label: Singular display name used in messages ("Blog")
        plural: Plural display name used in messages ("Blogs")
        model: SQLAlchemy model
        create_schema: Pydantic payload schema for POST
        output_schema: Pydantic schema records are serialized with
        update_schema: Payload schema for PUT, defaults to create_schema
        search_fields: Model attributes matched case-insensitively by `search`
        filters: Query parameter -> (model attribute, parser) exact-match filters
        update_policy: REPLACE or MERGE
        preserve_fields: Fields only replaced when a non-blank value is supplied
        attachment_fields: Fields that together carry a new attachment; when all are
            present the preserved fields are replaced as a group, otherwise they
            keep their stored values whatever the payload says
        upload_fields: Fields that accept a multipart file, stored as its URL
        owner_field: Reference set to the session user when the payload omits it
        paginate_by_default: Paginate list reads even without page/limit
        public_read: GET without a session
        public_create: POST (create) without a session
        admin_writes: Mutations need the admin role
        before_write: Hook mapping validated values to model columns
    """

    name: str
    label: str
    plural: str
    model: type
    create_schema: Type[BaseModel]
    output_schema: Type[BaseModel]
    update_schema: Optional[Type[BaseModel]] = None
    search_fields: Tuple[str, ...] = ()
    filters: Dict[str, Tuple[str, Callable[[str], object]]] = field(default_factory=dict)
    update_policy: UpdatePolicy = UpdatePolicy.REPLACE
    preserve_fields: Tuple[str, ...] = ()
    attachment_fields: Tuple[str, ...] = ()
    upload_fields: Tuple[str, ...] = ()
    owner_field: Optional[str] = None
    paginate_by_default: bool = False
    default_limit: int = 10
    public_read: bool = True
    public_create: bool = False
    admin_writes: bool = False
    before_write: Optional[Callable[[dict], dict]] = None

    @property
    def write_schema(self) -> Type[BaseModel]:
        return self.update_schema or self.create_schema


def hash_user_password(values: dict) -> dict:
    """Replace the plaintext password with its hash; absent means unchanged."""
    password = values.pop("password", None)
    if password:
        values["password_hash"] = hash_password(password)
    return values


BLOGS = Resource(
    name="blogs",
    label="Blog",
    plural="Blogs",
    model=models.Blog,
    create_schema=schemas.BlogIn,
    output_schema=schemas.BlogOut,
    search_fields=("name", "description"),
    filters={
        "status": ("status", parse_str),
        "category": ("category_id", parse_str),
        "admin": ("admin_id", parse_str),
    },
    preserve_fields=("image",),
    upload_fields=("image",),
    owner_field="admin_id",
)

CATEGORIES = Resource(
    name="categories",
    label="Category",
    plural="Categories",
    model=models.Category,
    create_schema=schemas.CategoryIn,
    output_schema=schemas.CategoryOut,
    search_fields=("name", "description"),
    owner_field="admin_id",
)

TRAINING = Resource(
    name="training",
    label="Training",
    plural="Trainings",
    model=models.Training,
    create_schema=schemas.TrainingIn,
    output_schema=schemas.TrainingOut,
    search_fields=("title", "description", "client"),
    filters={
        "trainingTypeId": ("training_type_id", parse_str),
        "format": ("format", parse_str),
    },
    update_policy=UpdatePolicy.MERGE,
    preserve_fields=("image",),
    upload_fields=("image",),
)

TRAINING_TYPES = Resource(
    name="training-types",
    label="Training type",
    plural="Training types",
    model=models.TrainingType,
    create_schema=schemas.TrainingTypeIn,
    output_schema=schemas.TrainingTypeOut,
    search_fields=("name", "description"),
    filters={"isActive": ("is_active", parse_bool)},
    update_policy=UpdatePolicy.MERGE,
    preserve_fields=("image",),
    upload_fields=("image",),
)

EVENTS = Resource(
    name="events",
    label="Event",
    plural="Events",
    model=models.Event,
    create_schema=schemas.EventIn,
    output_schema=schemas.EventOut,
    search_fields=("title", "description", "location"),
    upload_fields=("image",),
)

NOTICES = Resource(
    name="notices",
    label="Notice",
    plural="Notices",
    model=models.Notice,
    create_schema=schemas.NoticeIn,
    output_schema=schemas.NoticeOut,
    search_fields=("title", "description"),
)

CONTACTS = Resource(
    name="contact",
    label="Contact",
    plural="Contacts",
    model=models.Contact,
    create_schema=schemas.ContactIn,
    output_schema=schemas.ContactOut,
    search_fields=("fullname", "email", "message"),
    public_read=False,
    public_create=True,
)

GALLERY = Resource(
    name="gallery",
    label="Gallery item",
    plural="Gallery items",
    model=models.GalleryItem,
    create_schema=schemas.GalleryIn,
    output_schema=schemas.GalleryOut,
    search_fields=("title",),
    filters={"type": ("type", parse_str)},
    upload_fields=("image",),
)

DIRECTORS = Resource(
    name="directors-bank",
    label="Director",
    plural="Directors",
    model=models.Director,
    create_schema=schemas.DirectorIn,
    output_schema=schemas.DirectorOut,
    search_fields=("name", "position"),
    upload_fields=("image",),
)

USERS = Resource(
    name="users",
    label="User",
    plural="Users",
    model=models.User,
    create_schema=schemas.UserCreate,
    update_schema=schemas.UserUpdate,
    output_schema=schemas.UserOut,
    search_fields=("full_name", "email", "position"),
    filters={"role": ("role", parse_str)},
    update_policy=UpdatePolicy.MERGE,
    preserve_fields=("image", "password"),
    upload_fields=("image",),
    public_read=False,
    admin_writes=True,
    before_write=hash_user_password,
)

REPORTS = Resource(
    name="reports",
    label="Report",
    plural="Reports",
    model=models.Report,
    create_schema=schemas.ReportIn,
    output_schema=schemas.ReportOut,
    search_fields=("title", "description", "summary"),
    filters={
        "category": ("category", parse_str),
        "isPublished": ("is_published", parse_bool),
    },
    preserve_fields=("filename", "file_url", "file_size", "file_path"),
    attachment_fields=("file", "filename"),
    paginate_by_default=True,
)

RESOURCES = (
    BLOGS,
    CATEGORIES,
    TRAINING,
    TRAINING_TYPES,
    EVENTS,
    NOTICES,
    CONTACTS,
    GALLERY,
    DIRECTORS,
    USERS,
    REPORTS,
)
