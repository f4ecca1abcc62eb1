import uuid
from pathlib import Path
from typing import Optional

from forum.core.config import settings
from forum.core.errors import PayloadTooLargeError, UnsupportedMediaError
from forum.core.logger import get_logger

logger = get_logger(__name__)

ALLOWED_IMAGE_TYPES = {"jpeg", "jpg", "png", "gif", "webp"}


class AttachmentHandler:
    """
    Validates uploaded images and writes them under a uuid4 file name.
    """

    def __init__(
        self,
        upload_dir: Optional[str] = None,
        url_prefix: Optional[str] = None,
        max_bytes: Optional[int] = None,
    ) -> None:
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)
        self.url_prefix = (url_prefix or settings.UPLOAD_URL_PREFIX).rstrip("/")
        self.max_bytes = settings.MAX_UPLOAD_BYTES if max_bytes is None else max_bytes

    def ensure_upload_dir(self) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def is_allowed(original_name: str, content_type: Optional[str]) -> bool:
        """Both the extension and the declared MIME type must name an image format."""
        ext = Path(original_name or "").suffix.lower().lstrip(".")
        if ext not in ALLOWED_IMAGE_TYPES:
            return False

        mime = (content_type or "").split(";", 1)[0].strip().lower()
        major, _, subtype = mime.partition("/")
        return major == "image" and subtype in ALLOWED_IMAGE_TYPES

    def store(self, content: bytes, original_name: str, content_type: Optional[str]) -> str:
        """
        Save an image and return the URL path it is served from.

        Raises UnsupportedMediaError for non-images and PayloadTooLargeError
        above the size limit.
        """
        if not self.is_allowed(original_name, content_type):
            logger.warning("Rejected upload name=%s type=%s", original_name, content_type)
            raise UnsupportedMediaError("Only image files are allowed!")

        if len(content) > self.max_bytes:
            logger.warning("Rejected upload name=%s size=%s (max %s)", original_name, len(content), self.max_bytes)
            raise PayloadTooLargeError(f"File too large (max {self.max_bytes // (1024 * 1024)} MB)")

        self.ensure_upload_dir()
        filename = f"{uuid.uuid4()}{Path(original_name).suffix.lower()}"
        file_path = self.upload_dir / filename

        with open(file_path, "wb") as f:
            f.write(content)

        logger.info("Stored upload %s (%s bytes)", filename, len(content))
        return f"{self.url_prefix}/{filename}"

    def path_for(self, url: str) -> Path:
        """Map a URL returned by store() back to the file on disk."""
        return self.upload_dir / Path(url).name
