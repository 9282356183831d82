"""Validation and storage of uploaded media files.

Checks run cheapest first: declared type, size, leading-byte signature,
executable sniffing and, for photos, a full Pillow decode. Nothing reaches
storage until every check has passed.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from studio_core.enums import MediaType
from studio_core.models import now
from studio_core.utils import (
    ALLOWED_MIME_TYPES, EXTENSIONS_BY_MIME, CorruptedImageError, compute_media_hash, inspect_image,
    looks_executable, matches_signature, media_type_for_mime
)
from studio_core.validation import ValidationError as InputValidationError, sanitize_filename
from ..errors import ValidationError

logger = logging.getLogger(__name__)

MAX_PHOTO_SIZE = 10 * 1024 * 1024
MAX_VIDEO_SIZE = 100 * 1024 * 1024
MIN_FILE_SIZE = 12
SIGNATURE_LENGTH = 16


@dataclass
class StoredMedia:
    url: str
    object_name: str
    file_name: str
    original_name: str
    size: int
    content_type: str
    media_type: MediaType
    sha256: str
    width: Optional[int] = None
    height: Optional[int] = None
    uploaded_at: datetime = field(default_factory=now)

    def to_dict(self):
        return {
            'url': self.url,
            'mediaUrl': self.url,
            'objectName': self.object_name,
            'fileName': self.file_name,
            'originalName': self.original_name,
            'size': self.size,
            'contentType': self.content_type,
            'mediaType': self.media_type.value,
            'sha256': self.sha256,
            'width': self.width,
            'height': self.height,
            'uploadedAt': self.uploaded_at.isoformat() + 'Z',
        }


def max_size_for(media_type: MediaType) -> int:
    return MAX_VIDEO_SIZE if media_type == MediaType.VIDEO else MAX_PHOTO_SIZE


class MediaUploadService:
    """Validate an uploaded file and hand it to blob storage."""

    def __init__(self, storage, folder='gallery'):
        self.storage = storage
        self.folder = folder

    def validate(self, original_name: str, content_type: str, data: bytes) -> tuple:
        """
        Check an upload and return ``(media_type, safe_name, width, height)``.

        Raises:
            ValidationError: On the first check that fails
        """
        content_type = (content_type or '').split(';', 1)[0].strip().lower()
        if content_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(f"File type '{content_type or 'unknown'}' is not allowed")
        media_type = media_type_for_mime(content_type)

        try:
            safe_name = sanitize_filename(original_name)
        except InputValidationError as e:
            raise ValidationError(str(e)) from e

        size = len(data)
        limit = max_size_for(media_type)
        if size > limit:
            raise ValidationError(f"File is too large; {media_type.value} uploads are limited to {limit // (1024 * 1024)}MB")
        if size < MIN_FILE_SIZE:
            raise ValidationError("File is empty or truncated")

        header = data[:SIGNATURE_LENGTH]
        if looks_executable(header):
            logger.warning(f"Rejected upload '{safe_name}': executable content declared as {content_type}")
            raise ValidationError("Executable content is not allowed")
        if not matches_signature(content_type, header):
            logger.warning(f"Rejected upload '{safe_name}': content does not match declared type {content_type}")
            raise ValidationError("File content does not match its declared type")

        width = height = None
        if media_type == MediaType.PHOTO:
            try:
                _, width, height = inspect_image(data)
            except CorruptedImageError as e:
                raise ValidationError("Image file is corrupted or unreadable") from e
        return media_type, safe_name, width, height

    def store(self, file_storage) -> StoredMedia:
        """Validate a werkzeug FileStorage and upload it.

        Only ``limit + 1`` bytes are read, so an oversized upload is
        rejected without buffering all of it.
        """
        content_type = file_storage.mimetype or file_storage.content_type or ''
        declared_type = media_type_for_mime(content_type.lower())
        read_limit = max_size_for(declared_type) + 1 if declared_type else MAX_PHOTO_SIZE + 1
        data = file_storage.stream.read(read_limit)

        media_type, safe_name, width, height = self.validate(file_storage.filename or '', content_type, data)
        content_type = content_type.split(';', 1)[0].strip().lower()

        stem = safe_name.rsplit('.', 1)[0][:60] or 'media'
        object_name = f"{self.folder}/{media_type.value}s/{uuid.uuid4().hex}-{stem}{EXTENSIONS_BY_MIME[content_type]}"
        url = self.storage.upload_bytes(data, object_name, content_type)
        logger.info(f"Stored upload {object_name} ({len(data)} bytes)")

        return StoredMedia(
            url=url,
            object_name=object_name,
            file_name=object_name.rsplit('/', 1)[-1],
            original_name=safe_name,
            size=len(data),
            content_type=content_type,
            media_type=media_type,
            sha256=compute_media_hash(data),
            width=width,
            height=height,
        )
