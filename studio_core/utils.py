"""Utility functions for media handling.

File signature checks, image inspection and content hashing used by the
upload pipeline and the media endpoints.
"""

import hashlib
import io
import logging
from functools import wraps
from typing import Optional
from PIL import Image, UnidentifiedImageError
from studio_core.enums import MediaType

logger = logging.getLogger(__name__)

MEDIA_HASH_ALGO = 'sha256'

PHOTO_MIME_TYPES = frozenset({'image/jpeg', 'image/png', 'image/webp', 'image/gif'})
VIDEO_MIME_TYPES = frozenset({'video/mp4', 'video/webm', 'video/quicktime'})
ALLOWED_MIME_TYPES = PHOTO_MIME_TYPES | VIDEO_MIME_TYPES

EXTENSIONS_BY_MIME = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/webp': '.webp',
    'image/gif': '.gif',
    'video/mp4': '.mp4',
    'video/webm': '.webm',
    'video/quicktime': '.mov',
}

VIDEO_URL_EXTENSIONS = ('.mp4', '.webm', '.mov', '.m4v')

# Leading bytes of executable and script formats that are never valid media
EXECUTABLE_SIGNATURES = (
    b'MZ',                # Windows PE
    b'\x7fELF',           # ELF
    b'\xca\xfe\xba\xbe',  # Mach-O fat binary / Java class
    b'\xcf\xfa\xed\xfe',  # Mach-O 64-bit
    b'\xce\xfa\xed\xfe',  # Mach-O 32-bit
    b'#!',                # shell script
    b'PK\x03\x04',        # zip / jar
)

# QuickTime files may open with a bare atom instead of ftyp
QUICKTIME_ATOMS = (b'ftyp', b'moov', b'mdat', b'wide', b'free', b'skip')


class CorruptedImageError(Exception):
    """Raised when image data is corrupted and cannot be processed."""
    pass


def handle_image_errors(func):
    """Decorator to handle image processing errors consistently.

    Converts Pillow and decoding exceptions to CorruptedImageError and logs
    them with the size of the offending payload.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        image_data = kwargs.get('image_data', args[0] if args else None)

        def log_and_raise(msg, exc):
            size = len(image_data) if image_data else 0
            logger.warning(f"{msg} - image data (size: {size} bytes): {exc}")
            raise CorruptedImageError(f"{msg}: {exc}") from exc

        try:
            return func(*args, **kwargs)
        except UnidentifiedImageError as e:
            log_and_raise("Corrupted or unsupported image format", e)
        except (OSError, ValueError, SyntaxError) as e:
            # Pillow raises SyntaxError for some malformed PNG chunks
            log_and_raise("Corrupted image file", e)

    return wrapper


def matches_signature(content_type: str, header: bytes) -> bool:
    """Return True when the leading bytes agree with the declared MIME type."""
    if content_type == 'image/jpeg':
        return header[:2] == b'\xff\xd8'
    if content_type == 'image/png':
        return header[:4] == b'\x89PNG'
    if content_type == 'image/gif':
        return header[:4] == b'GIF8'
    if content_type == 'image/webp':
        return header[:4] == b'RIFF' and header[8:12] == b'WEBP'
    if content_type == 'video/mp4':
        return header[4:8] == b'ftyp'
    if content_type == 'video/quicktime':
        return header[4:8] in QUICKTIME_ATOMS
    if content_type == 'video/webm':
        return header[:4] == b'\x1a\x45\xdf\xa3'
    return False


def looks_executable(header: bytes) -> bool:
    return any(header.startswith(sig) for sig in EXECUTABLE_SIGNATURES)


def media_type_for_mime(content_type: str) -> Optional[MediaType]:
    if content_type in PHOTO_MIME_TYPES:
        return MediaType.PHOTO
    if content_type in VIDEO_MIME_TYPES:
        return MediaType.VIDEO
    return None


def media_type_for_url(url: str) -> MediaType:
    """Guess the media type from a URL's extension; anything unrecognised is a photo."""
    path = url.split('?', 1)[0].split('#', 1)[0].lower()
    if path.endswith(VIDEO_URL_EXTENSIONS):
        return MediaType.VIDEO
    return MediaType.PHOTO


@handle_image_errors
def inspect_image(image_data: bytes) -> tuple:
    """Verify that ``image_data`` decodes as an image and return ``(format, width, height)``.

    Raises:
        CorruptedImageError: If Pillow cannot identify or verify the data
    """
    with Image.open(io.BytesIO(image_data)) as img:
        img.verify()
        return img.format, img.width, img.height


def compute_media_hash(data) -> str:
    """Compute the SHA256 hex digest of bytes or a file-like object."""
    hasher = hashlib.new(MEDIA_HASH_ALGO)
    if isinstance(data, (bytes, bytearray, memoryview)):
        hasher.update(data)
    elif hasattr(data, 'read'):
        while chunk := data.read(8192):
            hasher.update(chunk)
    else:
        raise TypeError(f"compute_media_hash expected bytes or a file-like object, got {type(data).__name__}")
    return hasher.hexdigest()
