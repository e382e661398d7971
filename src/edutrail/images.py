"""
Edutrail - Project image upload.

Images are checked locally (type and size) before anything is sent.
"""

import logging
import re
import unicodedata

from restbase.client import ApiClient
from restbase.envelope import decode_public_url
from restbase.errors import ApiRequestError, ConfigurationError
from restbase.models import FileUpload

from edutrail.config import EdutrailSettings, get_settings

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """Lowercase, ASCII-only, hyphen-separated."""
    normalized = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "project"


def validate_image(file: FileUpload | None, settings: EdutrailSettings | None = None) -> None:
    """
    Raises:
        ConfigurationError: if the file is missing, not PNG/JPEG, or too large
    """
    settings = settings or get_settings()
    if file is None or file.content_type not in settings.image_allowed_types:
        allowed = ", ".join(settings.image_allowed_types)
        raise ConfigurationError(f"Invalid image type. Only {allowed} allowed.")
    if file.size > settings.image_max_bytes:
        raise ConfigurationError(
            f"Image too large. Max size is {settings.image_max_bytes} bytes."
        )


async def upload_project_image(
    client: ApiClient,
    file: FileUpload,
    name: str | None = None,
    settings: EdutrailSettings | None = None,
) -> str:
    """
    Upload a project image and return its public URL.

    Stored as projects/<slug>.png in the configured bucket, overwriting
    any image with the same name.

    Raises:
        ConfigurationError: if the image fails validation (nothing is sent)
        ApiRequestError: if the upload or URL lookup fails
    """
    settings = settings or get_settings()
    validate_image(file, settings)

    path = f"projects/{slugify(name or 'project')}.png"
    bucket = client.storage.from_(settings.storage_bucket)

    uploaded = await bucket.upload(
        path,
        file,
        {"cacheControl": settings.image_cache_control, "upsert": True},
    )
    uploaded.raise_for_error()

    public_url = decode_public_url(uploaded)
    if public_url:
        return public_url

    stored_path = path
    if isinstance(uploaded.data, dict) and uploaded.data.get("path"):
        stored_path = uploaded.data["path"]

    resolved = await bucket.get_public_url(stored_path)
    resolved.raise_for_error()
    public_url = decode_public_url(resolved)
    if not public_url:
        logger.warning(f"No publicUrl returned for {stored_path}")
        raise ApiRequestError(f"No public URL returned for {stored_path}")
    return public_url
