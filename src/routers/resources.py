"""Router factory exposing one Resource as GET/POST/PUT/DELETE on /api/<name>."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from src.auth import SessionContext, get_optional_session, require_session
from src.crud import CrudService
from src.database import get_db
from src.errors import MethodNotAllowed, ValidationError, envelope, handler_boundary
from src.payloads import read_payload
from src.resources import Resource

# Configure logging
logger = logging.getLogger(__name__)


def _record_id(payload: dict, request: Request) -> str:
    record_id = payload.get("id") or payload.get("_id") or request.query_params.get("id")
    if not isinstance(record_id, str) or not record_id.strip():
        raise ValidationError("id is required")
    return record_id.strip()


def build_router(resource: Resource) -> APIRouter:
    """
    Build the router for one resource.

    GET is a single record when `id` is given and a list otherwise. POST
    creates, PUT updates and DELETE removes; an HTML form may POST with
    `_method=PUT` or `_method=DELETE` instead. Every response is the
    `{success, message, data?, pagination?}` envelope.

    Args:
        resource: Descriptor of the resource to expose

    Returns:
        APIRouter: Router mounted at /api/<resource.name>
    """
    router = APIRouter(prefix=f"/api/{resource.name}", tags=[resource.plural])
    label = resource.label
    plural = resource.plural.lower()

    def create(service: CrudService, payload: dict, session: Optional[SessionContext]) -> dict:
        if not resource.public_create:
            require_session(session, admin=resource.admin_writes)
        logger.info(f"Creating {label.lower()}")
        owner_id = session.user.id if session else None
        with handler_boundary(f"Failed to create {label.lower()}"):
            record = service.create(payload, owner_id=owner_id)
            return envelope(f"{label} created successfully", service.serialize(record))

    def update(service: CrudService, payload: dict, request: Request, session: Optional[SessionContext]) -> dict:
        require_session(session, admin=resource.admin_writes)
        record_id = _record_id(payload, request)
        logger.info(f"Updating {label.lower()} {record_id}")
        with handler_boundary(f"Failed to update {label.lower()}"):
            record = service.update(record_id, payload)
            return envelope(f"{label} updated successfully", service.serialize(record))

    def delete(service: CrudService, payload: dict, request: Request, session: Optional[SessionContext]) -> dict:
        require_session(session, admin=resource.admin_writes)
        record_id = _record_id(payload, request)
        logger.info(f"Deleting {label.lower()} {record_id}")
        with handler_boundary(f"Failed to delete {label.lower()}"):
            service.delete(record_id)
            return envelope(f"{label} deleted successfully")

    # GET /api/<name>
    @router.get("")
    def read_records(
        request: Request,
        session: Optional[SessionContext] = Depends(get_optional_session),
        db: Session = Depends(get_db)
    ):
        """Fetch one record by `id`, or a filtered, optionally paginated list."""
        if not resource.public_read:
            require_session(session)

        service = CrudService(resource, db)
        params = request.query_params
        record_id = params.get("id")

        with handler_boundary(f"Failed to fetch {plural}"):
            if record_id:
                logger.info(f"Fetching {label.lower()} {record_id}")
                record = service.get(record_id)
                return envelope(f"{label} fetched successfully", service.serialize(record))

            logger.info(f"Fetching {plural}")
            records, pagination = service.list(params)
            return envelope(
                f"{resource.plural} fetched successfully",
                [service.serialize(record) for record in records],
                pagination=pagination,
            )

    # POST /api/<name>
    @router.post("")
    def create_record(
        request: Request,
        payload: dict = Depends(read_payload),
        session: Optional[SessionContext] = Depends(get_optional_session),
        db: Session = Depends(get_db)
    ):
        """Create a record, or dispatch a form's `_method` override."""
        service = CrudService(resource, db)
        override = payload.get("_method")
        if isinstance(override, str) and override.strip():
            method = override.strip().upper()
            if method == "PUT":
                return update(service, payload, request, session)
            if method == "DELETE":
                return delete(service, payload, request, session)
            if method != "POST":
                raise MethodNotAllowed()
        return create(service, payload, session)

    # PUT /api/<name>
    @router.put("")
    def update_record(
        request: Request,
        payload: dict = Depends(read_payload),
        session: Optional[SessionContext] = Depends(get_optional_session),
        db: Session = Depends(get_db)
    ):
        """Update the record named by `id`."""
        return update(CrudService(resource, db), payload, request, session)

    # DELETE /api/<name>
    @router.delete("")
    def delete_record(
        request: Request,
        payload: dict = Depends(read_payload),
        session: Optional[SessionContext] = Depends(get_optional_session),
        db: Session = Depends(get_db)
    ):
        """Hard-delete the record named by `id`; nothing referencing it is touched."""
        return delete(CrudService(resource, db), payload, request, session)

    return router
