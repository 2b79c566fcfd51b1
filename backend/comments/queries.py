"""
Comment Read Paths
==================

Query functions for the public, private and admin listings.

Every list query uses select_related('author') because the response
carries the author's name: one query per page instead of 1 + N.

PAGING:
-------
`from` and `size` follow page semantics: the page index is from // size,
so from=0..9 with size=10 all return the first page. The admin listing of
an event is the exception and skips exactly `from` rows.
"""

from datetime import timedelta

from django.contrib.auth.models import User
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from ewmstats.errors import ForbiddenError, NotFoundError

from .models import Comment, CommentStatus
from .validators import (
    validate_id,
    validate_pagination,
    validate_recent_window,
    validate_status,
)


def _comments() -> QuerySet:
    return Comment.objects.select_related('author')


def _page(queryset: QuerySet, from_: int, size: int) -> list[Comment]:
    offset = (from_ // size) * size
    return list(queryset[offset:offset + size])


def get_published_comments(event_id: int, from_: int = 0, size: int = 10) -> list[Comment]:
    """PUBLISHED comments of an event, newest first."""
    validate_id(event_id, "Event id")
    validate_pagination(from_, size)

    queryset = (
        _comments()
        .filter(event_id=event_id, status=CommentStatus.PUBLISHED)
        .order_by('-created', '-id')
    )
    return _page(queryset, from_, size)


def get_published_comment(event_id: int, comment_id: int) -> Comment:
    """
    A single comment as the public sees it.

    Raises NotFoundError when the comment does not exist, belongs to
    another event or is not PUBLISHED.
    """
    validate_id(event_id, "Event id")
    validate_id(comment_id, "Comment id")

    comment = _comments().filter(id=comment_id, event_id=event_id).first()
    if comment is None:
        raise NotFoundError("Comment was not found")
    if comment.status != CommentStatus.PUBLISHED:
        raise NotFoundError("Comment is not published")
    return comment


def get_published_comments_count(event_id: int) -> int:
    validate_id(event_id, "Event id")
    return Comment.objects.filter(event_id=event_id, status=CommentStatus.PUBLISHED).count()


def get_pending_comments(from_: int = 0, size: int = 10) -> list[Comment]:
    """Moderation queue: PENDING comments, oldest first."""
    validate_pagination(from_, size)

    queryset = (
        _comments()
        .filter(status=CommentStatus.PENDING)
        .order_by('created', 'id')
    )
    return _page(queryset, from_, size)


def get_comments_by_status(status: str | None, from_: int = 0, size: int = 10) -> list[Comment]:
    status = validate_status(status)
    validate_pagination(from_, size)

    queryset = _comments().filter(status=status).order_by('-created', '-id')
    return _page(queryset, from_, size)


def get_user_comments(user_id: int, from_: int = 0, size: int = 10) -> list[Comment]:
    """Every comment written by the user, any status, newest first."""
    validate_id(user_id, "User id")
    validate_pagination(from_, size)

    queryset = _comments().filter(author_id=user_id).order_by('-created', '-id')
    return _page(queryset, from_, size)


def get_user_comments_for_event(user_id: int, event_id: int) -> list[Comment]:
    validate_id(user_id, "User id")
    validate_id(event_id, "Event id")

    return list(
        _comments()
        .filter(event_id=event_id, author_id=user_id)
        .order_by('-created', '-id')
    )


def can_user_comment(user_id: int, event_id: int) -> bool:
    validate_id(user_id, "User id")
    validate_id(event_id, "Event id")

    # Any status counts, including DELETED and REJECTED
    return not Comment.objects.filter(event_id=event_id, author_id=user_id).exists()


def get_all_comments_for_event(event_id: int, from_: int = 0, size: int = 10) -> list[Comment]:
    """Every comment of an event regardless of status (admin view)."""
    validate_id(event_id, "Event id")
    validate_pagination(from_, size)

    queryset = _comments().filter(event_id=event_id).order_by('-created', '-id')
    return list(queryset[from_:from_ + size])


def search_comments(text: str | None, from_: int = 0, size: int = 10) -> list[Comment]:
    """
    Case-insensitive substring search over PUBLISHED comments.

    The match runs in the database over the whole corpus (ILIKE on
    PostgreSQL), then the result is paged.
    """
    if text is None or not text.strip():
        raise ForbiddenError("Search text cannot be blank")
    validate_pagination(from_, size)

    queryset = (
        _comments()
        .filter(status=CommentStatus.PUBLISHED, text__icontains=text.strip())
        .order_by('-created', '-id')
    )
    return _page(queryset, from_, size)


def get_recent_comments(hours: int = 24, limit: int = 10) -> list[Comment]:
    """PUBLISHED comments created in the last `hours` hours, newest first."""
    validate_recent_window(hours, limit)

    since = timezone.now() - timedelta(hours=hours)
    return list(
        _comments()
        .filter(status=CommentStatus.PUBLISHED, created__gt=since)
        .order_by('-created', '-id')[:limit]
    )


def get_user_comment_stats(user_id: int) -> dict:
    """
    Per-status totals of a user's comments.

    Query: 1 (conditional aggregation)

    SELECT COUNT(*),
           COUNT(*) FILTER (WHERE status = 'PUBLISHED'),
           COUNT(*) FILTER (WHERE status = 'PENDING'),
           COUNT(*) FILTER (WHERE status = 'REJECTED')
    FROM comments_comment WHERE author_id = %s
    """
    validate_id(user_id, "User id")

    if not User.objects.filter(id=user_id).exists():
        raise NotFoundError("User was not found")

    return Comment.objects.filter(author_id=user_id).aggregate(
        total=Count('id'),
        published=Count('id', filter=Q(status=CommentStatus.PUBLISHED)),
        pending=Count('id', filter=Q(status=CommentStatus.PENDING)),
        rejected=Count('id', filter=Q(status=CommentStatus.REJECTED)),
    )
