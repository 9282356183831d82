"""Input validation and sanitization utilities."""
import re
import unicodedata
from typing import Any, Iterable, Iterator, Optional
import bleach


class ValidationError(ValueError):
    """Raised when input validation fails.

    Subclasses ValueError so pydantic validators that raise it report a
    normal field error.
    """
    pass


# Email pattern: local part must start/end with alphanumeric, no consecutive dots/special chars
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9]+([._%+-][a-zA-Z0-9]+)*@([a-zA-Z0-9]+([.-][a-zA-Z0-9]+)*\.)+[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?[0-9][0-9\s().-]{6,20}$')
CONTROL_CHARS_PATTERN = re.compile(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]')
FILENAME_UNSAFE_PATTERN = re.compile(r'[^A-Za-z0-9._-]+')

# Markup and script fragments that never appear in legitimate admin input
SUSPICIOUS_PATTERNS = (
    re.compile(r'<\s*script', re.IGNORECASE),
    re.compile(r'<\s*iframe', re.IGNORECASE),
    re.compile(r'<\s*object', re.IGNORECASE),
    re.compile(r'<\s*embed', re.IGNORECASE),
    re.compile(r'javascript\s*:', re.IGNORECASE),
    re.compile(r'vbscript\s*:', re.IGNORECASE),
    re.compile(r'<[^>]+\son\w+\s*=', re.IGNORECASE),
    re.compile(r'\x00'),
)

ALLOWED_HTML_TAGS = ['p', 'br', 'strong', 'em', 'u', 'ul', 'ol', 'li', 'blockquote']


def validate_string_length(value: str, field_name: str, min_length: int = 0, max_length: Optional[int] = None) -> str:
    """Validate string length constraints and return the stripped value."""
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    value = value.strip()
    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")
    if max_length and len(value) > max_length:
        raise ValidationError(f"{field_name} must be no more than {max_length} characters")
    return value


def validate_email(email: str) -> str:
    """Validate email format and return it lower-cased."""
    email = email.strip()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    return email.lower()


def validate_phone(phone: str) -> str:
    phone = phone.strip()
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("Invalid phone number format")
    return phone


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """Strip control characters and surrounding whitespace from plain text."""
    if not value:
        return value
    return CONTROL_CHARS_PATTERN.sub('', value).strip()


def sanitize_html(text: Optional[str]) -> Optional[str]:
    """Secure HTML sanitization using bleach library.

    Plain text without markup characters is returned unchanged to avoid
    parsing it.
    """
    if not text:
        return text
    if '<' not in text and '>' not in text and '&' not in text:
        return text
    return bleach.clean(text, tags=ALLOWED_HTML_TAGS, attributes={}, strip=True)


def sanitize_tags(tags: Iterable[str], max_tags: int = 10, max_length: int = 50) -> list:
    """Clean a list of tags.

    Tags are stripped of markup, blank and duplicate entries are dropped
    (case-insensitive) and order is preserved.
    """
    cleaned = []
    seen = set()
    for tag in tags:
        if not isinstance(tag, str):
            raise ValidationError("Tags must be strings")
        tag = sanitize_string(bleach.clean(tag, tags=[], strip=True))
        if not tag:
            continue
        if len(tag) > max_length:
            raise ValidationError(f"Tags must be no more than {max_length} characters")
        if tag.lower() in seen:
            continue
        seen.add(tag.lower())
        cleaned.append(tag)
    if len(cleaned) > max_tags:
        raise ValidationError(f"No more than {max_tags} tags are allowed")
    return cleaned


def sanitize_filename(filename: str, max_length: int = 100) -> str:
    """Return a storage-safe version of a client supplied file name.

    Directory components are discarded, accents are folded to ASCII and any
    character outside ``[A-Za-z0-9._-]`` becomes an underscore. Leading dots
    are removed so the result can never be a hidden file or a relative path.
    """
    if not filename:
        raise ValidationError("File name is required")
    name = filename.replace('\\', '/').rsplit('/', 1)[-1]
    name = unicodedata.normalize('NFKD', name).encode('ascii', 'ignore').decode('ascii')
    name = FILENAME_UNSAFE_PATTERN.sub('_', name).lstrip('.')
    if len(name) > max_length:
        stem, dot, ext = name.rpartition('.')
        if dot and len(ext) < 10:
            name = stem[:max_length - len(ext) - 1] + '.' + ext
        else:
            name = name[:max_length]
    if not name or name.strip('_') == '':
        raise ValidationError("File name contains no usable characters")
    return name


def iter_strings(value: Any) -> Iterator[str]:
    """Yield every string contained in a decoded JSON value, keys included."""
    if isinstance(value, str):
        yield value
    elif isinstance(value, dict):
        for key, item in value.items():
            yield from iter_strings(key)
            yield from iter_strings(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_strings(item)


def contains_suspicious_patterns(value: Any) -> bool:
    """Return True when any string inside ``value`` looks like injected script."""
    for text in iter_strings(value):
        for pattern in SUSPICIOUS_PATTERNS:
            if pattern.search(text):
                return True
    return False
