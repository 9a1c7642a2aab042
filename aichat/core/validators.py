"""
Input Validators - Sanitization and validation utilities.

Validators either return a cleaned value or raise ValidationError naming the
offending field, so routes and services can call them inline.
"""
import re
import uuid
from typing import Optional

from aichat.core.exceptions import ValidationError
from aichat.core.logging_config import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 32000
MAX_TITLE_LENGTH = 200

VISIBILITY_TYPES = ("private", "public", "organization")
VOTE_TYPES = ("up", "down")
CONTENT_TYPES = ("document", "image", "video", "audio", "other")

# Prompt-injection markers worth a log line; they are never blocked
SUSPICIOUS_PATTERNS = [
    r"ignore\s+(all\s+)?previous\s+instructions",
    r"disregard\s+(the\s+)?system\s+prompt",
    r"you\s+are\s+now\s+in\s+developer\s+mode",
]

_SUSPICIOUS_REGEX = [re.compile(p, re.IGNORECASE) for p in SUSPICIOUS_PATTERNS]


def sanitize_message(message: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Sanitize a user message.

    Removes null bytes, trims the ends, collapses runs of spaces and tabs
    (newlines are kept, chat content is often markdown) and caps the length.
    """
    if not message:
        return ""

    cleaned = message.replace("\x00", "").strip()
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)

    return cleaned[:max_length]


def detect_suspicious_patterns(message: str) -> Optional[str]:
    """Return the first suspicious fragment in a message, if any."""
    for pattern in _SUSPICIOUS_REGEX:
        match = pattern.search(message)
        if match:
            return match.group()
    return None


def validate_message(message: str, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Full validation and sanitization of a chat message.

    Returns:
        The sanitized message

    Raises:
        ValidationError: If the message is empty or too long
    """
    if not message or not message.strip():
        raise ValidationError("Message cannot be empty", field="content")

    if len(message) > max_length:
        raise ValidationError(
            f"Message too long (max {max_length} characters)", field="content"
        )

    sanitized = sanitize_message(message, max_length)
    if not sanitized:
        raise ValidationError("Message cannot be empty after sanitization", field="content")

    pattern = detect_suspicious_patterns(sanitized)
    if pattern:
        logger.warning(f"Suspicious message detected but allowed: {pattern[:50]}")

    return sanitized


def validate_uuid(value: str, field: str = "id") -> str:
    """Ensure a value is a canonical UUID string."""
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f"Invalid {field} format (must be UUID)", field=field)


def validate_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title cannot be empty", field="title")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(
            f"Title too long (max {MAX_TITLE_LENGTH} characters)", field="title"
        )
    return cleaned


def _validate_choice(value: str, choices, field: str) -> str:
    if value not in choices:
        raise ValidationError(
            f"Invalid {field}: {value}. Must be one of: {', '.join(choices)}",
            field=field
        )
    return value


def validate_visibility(visibility: str) -> str:
    return _validate_choice(visibility, VISIBILITY_TYPES, "visibility")


def validate_vote_type(vote_type: str) -> str:
    return _validate_choice(vote_type, VOTE_TYPES, "type")


def validate_content_type(content_type: str) -> str:
    return _validate_choice(content_type, CONTENT_TYPES, "content_type")
