"""Database models for the training & consulting CMS."""

import secrets
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, JSON, ForeignKey
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def generate_id() -> str:
    """Opaque 24 hex character identifier."""
    return secrets.token_hex(12)


class TimestampMixin:
    """Primary key plus the two server-assigned timestamps every record carries."""

    id = Column(String(24), primary_key=True, default=generate_id)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class User(TimestampMixin, Base):
    """Dashboard user."""

    __tablename__ = "users"

    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=False)
    position = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    password_hash = Column(String, nullable=False)
    image = Column(String, nullable=True)


class Category(TimestampMixin, Base):
    """Blog category."""

    __tablename__ = "categories"

    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    # References are advisory; SQLite does not enforce them and deletes never cascade.
    admin_id = Column(String(24), ForeignKey("users.id"), nullable=True)

    admin = relationship("User", lazy="joined")


class Blog(TimestampMixin, Base):
    """Blog post."""

    __tablename__ = "blogs"

    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    image = Column(String, nullable=False)
    category_id = Column(String(24), ForeignKey("categories.id"), nullable=False)
    admin_id = Column(String(24), ForeignKey("users.id"), nullable=True)
    status = Column(String, nullable=False, default="draft")

    category = relationship("Category", lazy="joined")
    admin = relationship("User", lazy="joined")


class TrainingType(TimestampMixin, Base):
    """Training programme family."""

    __tablename__ = "training_types"

    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=False)
    image = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class Training(TimestampMixin, Base):
    """Delivered training engagement."""

    __tablename__ = "trainings"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(String, nullable=False)
    duration = Column(String, nullable=False)
    format = Column(String, nullable=False)
    client = Column(String, nullable=False)
    image = Column(String, nullable=False)
    training_type_id = Column(String(24), ForeignKey("training_types.id"), nullable=True)

    training_type = relationship("TrainingType", lazy="joined")


class Event(TimestampMixin, Base):
    __tablename__ = "events"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    date = Column(String, nullable=False)
    location = Column(String, nullable=False)
    image = Column(String, nullable=False)


class Notice(TimestampMixin, Base):
    """Compliance notice."""

    __tablename__ = "notices"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)


class Contact(TimestampMixin, Base):
    """Message submitted through the public contact form."""

    __tablename__ = "contacts"

    fullname = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=False)
    message = Column(Text, nullable=False)


class GalleryItem(TimestampMixin, Base):
    __tablename__ = "gallery"

    title = Column(String, nullable=False)
    type = Column(String, nullable=False)
    image = Column(String, nullable=False)


class Director(TimestampMixin, Base):
    """Entry of the directors bank."""

    __tablename__ = "directors"

    name = Column(String, nullable=False)
    position = Column(String, nullable=False)
    image = Column(String, nullable=False)
    areas_of_expertise = Column(JSON, nullable=False, default=list)


class Report(TimestampMixin, Base):
    """Report from an attended forum or conference."""

    __tablename__ = "reports"

    title = Column(String(200), nullable=False)
    description = Column(String(1000), nullable=False)
    category = Column(String, nullable=False, index=True)
    event_date = Column(DateTime, nullable=False)
    filename = Column(String, nullable=False, default="")
    file_url = Column(Text, nullable=False, default="")
    file_size = Column(Integer, nullable=False, default=0)
    file_path = Column(String, nullable=False, default="")
    is_published = Column(Boolean, nullable=False, default=False)
    tags = Column(JSON, nullable=False, default=list)
    event_location = Column(String(200), nullable=True)
    event_organizer = Column(String(200), nullable=True)
    summary = Column(String(2000), nullable=True)
    key_outcomes = Column(JSON, nullable=False, default=list)


class RevokedToken(Base):
    """Session token revoked by logout, kept until its own expiry."""

    __tablename__ = "revoked_tokens"

    jti = Column(String, primary_key=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    revoked_at = Column(DateTime, default=datetime.utcnow, nullable=False)
