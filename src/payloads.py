"""Request body parsing shared by the resource and auth routers."""

import json
import logging
from fastapi import Request

from src.errors import InternalError

# Configure logging
logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


async def read_payload(request: Request) -> dict:
    """
    Dependency returning the request body as a flat dict.

    JSON objects are returned as-is. Form fields map to their value, or to a
    list when a field is repeated; file parts stay UploadFile objects. Any
    other body is ignored.

    Raises:
        InternalError: If a JSON body cannot be decoded into an object
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        body = await request.body()
        if not body.strip():
            return {}
        try:
            data = json.loads(body)
        except ValueError as e:
            logger.error(f"Malformed JSON payload on {request.url.path}: {e}")
            raise InternalError("Malformed request payload")
        if not isinstance(data, dict):
            logger.error(f"JSON payload on {request.url.path} is not an object")
            raise InternalError("Malformed request payload")
        return data

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        data = {}
        for key in form.keys():
            values = form.getlist(key)
            data[key] = values[0] if len(values) == 1 else values
        return data

    return {}
