"""
Guard functions for comment operations.

Each guard raises on the first violated rule. Operations call them in a
fixed order before touching the database:
1. identifiers
2. payload (text, status, paging)
"""

from ewmstats.errors import BadRequestError, ForbiddenError, ValidationFailedError

from .models import (
    CommentStatus,
    COMMENT_TEXT_MIN_LENGTH,
    COMMENT_TEXT_MAX_LENGTH,
    MAX_PAGE_SIZE,
    MAX_RECENT_LIMIT,
)


def validate_id(value: int | None, field_name: str) -> None:
    if value is None or value <= 0:
        raise ForbiddenError(f"{field_name} must be a positive number")


def validate_comment_text(text: str | None) -> str:
    """
    Check the comment text bounds and return the trimmed text.

    Raises:
        ValidationFailedError: if blank, shorter than 10 or longer than
            2000 characters after trimming.
    """
    if text is None or not text.strip():
        raise ValidationFailedError("Comment text cannot be blank")

    text = text.strip()

    if len(text) < COMMENT_TEXT_MIN_LENGTH:
        raise ValidationFailedError(
            f"Comment text must be at least {COMMENT_TEXT_MIN_LENGTH} characters"
        )
    if len(text) > COMMENT_TEXT_MAX_LENGTH:
        raise ValidationFailedError(
            f"Comment text must be at most {COMMENT_TEXT_MAX_LENGTH} characters"
        )
    return text


def validate_status(status: str | None) -> CommentStatus:
    if status is None:
        raise ForbiddenError("Comment status cannot be null")
    if status not in CommentStatus.values:
        raise BadRequestError(f"Unknown comment status: {status}")
    return CommentStatus(status)


def validate_pagination(from_: int, size: int) -> None:
    if from_ < 0:
        raise ForbiddenError("Parameter 'from' must not be less than 0")
    if size <= 0 or size > MAX_PAGE_SIZE:
        raise ForbiddenError(f"Parameter 'size' must be between 1 and {MAX_PAGE_SIZE}")


def validate_recent_window(hours: int, limit: int) -> None:
    if hours <= 0:
        raise ForbiddenError("Number of hours must be positive")
    if limit <= 0 or limit > MAX_RECENT_LIMIT:
        raise ForbiddenError(f"Limit must be between 1 and {MAX_RECENT_LIMIT}")
