"""Upload router for dashboard images and videos."""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile

from src.auth import get_current_user
from src.errors import ValidationError, envelope, handler_boundary
from src.models import User
from src.storage import is_blank_upload, save_upload

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/blogs", tags=["Uploads"])


@router.post("/upload-image")
def upload_image(
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user)
):
    """
    Store an image or video and return its public URL.

    Args:
        file: Multipart file field, image/* or video/*, at most 10 MB
        current_user: Authenticated user

    Returns:
        dict: Envelope plus `url` and `type` ("image" or "video")

    Raises:
        ValidationError: If no file is sent, or its type or size is rejected
    """
    if file is None or is_blank_upload(file):
        logger.warning("Upload request without a file")
        raise ValidationError("No file provided")

    logger.info(f"Upload of {file.filename} by user: {current_user.email}")

    with handler_boundary("Failed to upload file"):
        stored = save_upload(file)

    body = envelope("File uploaded successfully")
    body.update(url=stored["url"], type=stored["type"])
    return body
