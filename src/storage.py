"""Public upload storage for images and videos."""

import os
import re
import time
import logging
import secrets
from pathlib import Path
from typing import Optional
from starlette.datastructures import UploadFile
from dotenv import load_dotenv

from src.errors import ValidationError

# Load environment variables
load_dotenv()

# Configure logging
logger = logging.getLogger(__name__)

# Get upload path from environment
PATH_UPLOADS = os.getenv("PATH_UPLOADS")
if not PATH_UPLOADS:
    raise ValueError("PATH_UPLOADS must be set in .env file")

UPLOADS_PATH = Path(PATH_UPLOADS)
UPLOADS_URL_PREFIX = "/uploads"
MAX_UPLOAD_BYTES = int(os.getenv("UPLOAD_MAX_BYTES", str(10 * 1024 * 1024)))

_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


def media_kind(content_type: Optional[str]) -> Optional[str]:
    """Return "image" or "video" for an accepted MIME type, else None."""
    if not content_type:
        return None
    if content_type.startswith("image/"):
        return "image"
    if content_type.startswith("video/"):
        return "video"
    return None


def is_blank_upload(upload: UploadFile) -> bool:
    """An empty file input submits a part with no filename and no content."""
    return not upload.filename or upload.size == 0


def save_upload(upload: UploadFile) -> dict:
    """
    Validate and write an uploaded image or video to the public uploads directory.

    The stored name is randomized; only a sanitized extension of the client's
    filename is kept.

    Args:
        upload: Multipart file part

    Returns:
        dict: url, type ("image" or "video"), filename and size of the stored file

    Raises:
        ValidationError: If the MIME type is not image/* or video/*, or the
            file exceeds MAX_UPLOAD_BYTES
    """
    kind = media_kind(upload.content_type)
    if kind is None:
        logger.warning(f"Rejected upload with content type: {upload.content_type}")
        raise ValidationError("Invalid file type. Only images and videos are allowed.")

    content = upload.file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        logger.warning(f"Rejected oversized upload: {upload.filename}")
        raise ValidationError(
            f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)}MB."
        )

    extension = Path(upload.filename or "").suffix
    if not _EXTENSION_RE.match(extension):
        extension = ""

    file_name = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{extension.lower()}"
    UPLOADS_PATH.mkdir(parents=True, exist_ok=True)
    (UPLOADS_PATH / file_name).write_bytes(content)

    logger.info(f"Stored {kind} upload: {file_name} ({len(content)} bytes)")
    return {
        "url": f"{UPLOADS_URL_PREFIX}/{file_name}",
        "type": kind,
        "filename": file_name,
        "size": len(content),
    }


def discard_upload(file_name: str) -> None:
    """Remove a stored upload that ended up unused; a missing file is ignored."""
    path = UPLOADS_PATH / Path(file_name).name
    try:
        path.unlink()
        logger.info(f"Discarded unused upload: {path.name}")
    except FileNotFoundError:
        pass
