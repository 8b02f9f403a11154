"""Generic create/read/update/delete service driven by a Resource descriptor."""

import math
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Mapping, Optional, Tuple, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from src.errors import NotFound, ValidationError, validation_message
from src.resources import Resource, UpdatePolicy
from src.storage import discard_upload, is_blank_upload, save_upload

# Configure logging
logger = logging.getLogger(__name__)

# Keys that steer the request rather than describe the record
CONTROL_KEYS = ("id", "_id", "_method")


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def parse_positive_int(raw: Optional[str], default: int, name: str) -> int:
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a positive integer")
    if value < 1:
        raise ValidationError(f"{name} must be a positive integer")
    return value


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class CrudService:
    """
    One store operation per call against the resource's model.

    Every method either returns model instances or raises NotFound /
    ValidationError; the caller owns the session.
    """

    def __init__(self, resource: Resource, db: Session):
        self.resource = resource
        self.model = resource.model
        self.db = db

    def get(self, record_id: str):
        record = self.db.query(self.model).filter(self.model.id == record_id).first()
        if record is None:
            logger.warning(f"{self.resource.label} not found: {record_id}")
            raise NotFound(f"{self.resource.label} not found")
        return record

    def list(self, params: Mapping[str, str]) -> Tuple[list, Optional[dict]]:
        """
        Fetch records matching the query parameters, newest first.

        Args:
            params: Query parameters; the resource's declared filters, `search`,
                `page` and `limit` are honoured and anything else is ignored

        Returns:
            Tuple of the records and the pagination block (None when the
            read is not paginated)

        Raises:
            ValidationError: If page or limit is not a positive integer
        """
        query = self.db.query(self.model)

        for param, (attribute, parse) in self.resource.filters.items():
            raw = params.get(param)
            if raw is None or raw == "":
                continue
            query = query.filter(getattr(self.model, attribute) == parse(raw))

        search = (params.get("search") or "").strip()
        if search and self.resource.search_fields:
            pattern = f"%{escape_like(search)}%"
            query = query.filter(or_(*[
                getattr(self.model, name).ilike(pattern, escape="\\")
                for name in self.resource.search_fields
            ]))

        query = query.order_by(self.model.created_at.desc(), self.model.id.desc())

        paginate = self.resource.paginate_by_default or "page" in params or "limit" in params
        if not paginate:
            records = query.all()
            logger.info(f"Found {len(records)} {self.resource.plural.lower()}")
            return records, None

        page = parse_positive_int(params.get("page"), 1, "page")
        limit = parse_positive_int(params.get("limit"), self.resource.default_limit, "limit")
        total = query.count()
        records = query.offset((page - 1) * limit).limit(limit).all()
        pagination = {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": math.ceil(total / limit),
        }
        logger.info(f"Found {total} {self.resource.plural.lower()}, returning page {page}")
        return records, pagination

    def create(self, payload: dict, owner_id: Optional[str] = None):
        stored = []
        with self._discard_on_failure(stored):
            data = self._normalize(payload, self.resource.create_schema, stored)
            owner_field = self.resource.owner_field
            if owner_field and owner_id and _is_blank(data.get(owner_field)):
                data[owner_field] = owner_id

            values = self._validate(self.resource.create_schema, data)
            now = datetime.utcnow()
            record = self.model(**values, created_at=now, updated_at=now)
            self.db.add(record)
            self._commit()
        self.db.refresh(record)

        logger.info(f"{self.resource.label} created: {record.id}")
        return record

    def update(self, record_id: str, payload: dict):
        record = self.get(record_id)
        stored = []
        with self._discard_on_failure(stored):
            self._apply_update(record, payload, stored)
        self.db.refresh(record)

        logger.info(f"{self.resource.label} updated: {record.id}")
        return record

    def _apply_update(self, record, payload: dict, stored: list) -> None:
        schema = self.resource.write_schema
        data = self._normalize(payload, schema, stored)

        kept = self.resource.preserve_fields
        attachment = self.resource.attachment_fields
        if attachment:
            if all(not _is_blank(data.get(name)) for name in attachment):
                # A new attachment replaces the whole group
                kept = ()
            else:
                for name in kept:
                    data.pop(name, None)
        if self.resource.owner_field:
            # An update never reassigns ownership implicitly
            kept += (self.resource.owner_field,)

        preserved = []
        for name in kept:
            if _is_blank(data.get(name)):
                data.pop(name, None)
                preserved.append(name)

        if self.resource.update_policy is UpdatePolicy.MERGE:
            current = {
                name: getattr(record, name)
                for name in schema.model_fields
                if hasattr(record, name)
            }
            data = {**current, **data}
        else:
            for name in preserved:
                if hasattr(record, name):
                    data[name] = getattr(record, name)

        values = self._validate(schema, data)
        for name in preserved:
            # Stored value wins over whatever the schema filled in
            if hasattr(record, name):
                values[name] = getattr(record, name)
            else:
                values.pop(name, None)

        for name, value in values.items():
            setattr(record, name, value)
        record.updated_at = datetime.utcnow()
        self._commit()

    def delete(self, record_id: str) -> None:
        record = self.get(record_id)
        self.db.delete(record)
        self._commit()
        logger.info(f"{self.resource.label} deleted: {record_id}")

    def serialize(self, record) -> dict:
        return self.resource.output_schema.model_validate(record).model_dump(by_alias=True, mode="json")

    def _normalize(self, payload: dict, schema: Type[BaseModel], stored: list) -> dict:
        """
        Map wire names onto schema field names and store any uploaded files.

        Names of the files written are appended to `stored` so the caller can
        discard them if the write does not go through.
        """
        names = {}
        for name, info in schema.model_fields.items():
            names[name] = name
            if info.alias:
                names[info.alias] = name

        data = {}
        for key, value in payload.items():
            if key in CONTROL_KEYS or key not in names:
                continue
            name = names[key]
            if isinstance(value, UploadFile):
                if name not in self.resource.upload_fields:
                    raise ValidationError(f"{key} does not accept a file")
                if is_blank_upload(value):
                    value = None
                else:
                    upload = save_upload(value)
                    stored.append(upload["filename"])
                    value = upload["url"]
            data[name] = value
        return data

    def _validate(self, schema: Type[BaseModel], data: dict) -> dict:
        try:
            validated = schema.model_validate(data)
        except PydanticValidationError as e:
            message = validation_message(e)
            logger.warning(f"{self.resource.label} validation failed: {message}")
            raise ValidationError(message)

        values = validated.model_dump()
        if self.resource.before_write:
            values = self.resource.before_write(values)
        return values

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"{self.resource.label} write rejected by the store: {e.orig}")
            raise ValidationError(f"{self.resource.label} conflicts with an existing record")

    @contextmanager
    def _discard_on_failure(self, stored: list):
        """Remove files stored for a write that is then rejected."""
        try:
            yield
        except Exception:
            for file_name in stored:
                discard_upload(file_name)
            raise
