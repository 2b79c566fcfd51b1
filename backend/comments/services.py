"""
Comment Moderation Service
==========================

This module owns every write to comments and to Event.comment_count:
1. The comment status lifecycle (create, edit, delete, moderate)
2. The published-comment counter on the event
3. The transaction that keeps the two consistent

COUNTER RULE:
-------------
Event.comment_count counts PUBLISHED comments only.
- status enters PUBLISHED  -> +1
- status leaves PUBLISHED  -> -1 (never below 0)
- anything else            -> no change
A new PENDING comment does not move the counter.

CONCURRENCY STRATEGY:
---------------------
Problem: two moderators publish the same comment at the same moment.
Naive: both read PENDING, both write PUBLISHED, both increment -> counter +2!

Solution: every write path opens transaction.atomic(), locks the comment
row with select_for_update() and reads the prior status under that lock.
The second moderator waits, then sees PUBLISHED and the delta is 0.

The counter itself is changed with an F() expression, so concurrent
updates on different comments of the same event never lose increments.

TRANSACTION STRATEGY:
--------------------
The comment write and the counter update are in the same transaction.
If either fails, both are rolled back.
"""

import logging

from django.contrib.auth.models import User
from django.db import transaction, IntegrityError
from django.db.models import F
from django.utils import timezone

from ewmstats.errors import ConflictError, ForbiddenError, NotFoundError

from . import queries
from .models import Comment, CommentStatus, Event
from .validators import validate_comment_text, validate_id, validate_status

logger = logging.getLogger(__name__)


# ============================================================================
# EVENT COUNTER LEDGER
# ============================================================================

def comment_count_delta(old_status: str | None, new_status: str | None) -> int:
    """
    Counter change for a status transition.

    `None` stands for "no comment": before creation, after hard delete.
    """
    was_published = old_status == CommentStatus.PUBLISHED
    is_published = new_status == CommentStatus.PUBLISHED

    if is_published and not was_published:
        return 1
    if was_published and not is_published:
        return -1
    return 0


def reconcile_comment_count(event_id: int, old_status: str | None, new_status: str | None) -> int:
    """
    Apply the counter change for one comment transition.

    Must run inside the transaction that writes the comment. The decrement
    only matches rows with a positive counter, so the counter floors at 0.

    Returns the delta that was requested.
    """
    if not transaction.get_connection().in_atomic_block:
        raise RuntimeError("reconcile_comment_count must run inside transaction.atomic()")

    delta = comment_count_delta(old_status, new_status)

    if delta > 0:
        Event.objects.filter(id=event_id).update(comment_count=F('comment_count') + 1)
    elif delta < 0:
        Event.objects.filter(id=event_id, comment_count__gt=0).update(
            comment_count=F('comment_count') - 1
        )

    if delta:
        logger.debug(
            "Event id=%s comment_count %+d (%s -> %s)",
            event_id, delta, old_status, new_status
        )
    return delta


# ============================================================================
# LOOKUPS
# ============================================================================

def _get_user_or_raise(user_id: int) -> User:
    try:
        return User.objects.get(id=user_id)
    except User.DoesNotExist:
        raise NotFoundError(f"User with id={user_id} was not found")


def _get_published_event_or_raise(event_id: int) -> Event:
    try:
        event = Event.objects.get(id=event_id)
    except Event.DoesNotExist:
        raise NotFoundError(f"Event with id={event_id} was not found")

    if event.state != Event.State.PUBLISHED:
        raise ForbiddenError("Cannot comment on an unpublished event")
    return event


def _locked_comments():
    return Comment.objects.select_for_update(of=('self',)).select_related('author', 'event')


def _lock_comment(comment_id: int) -> Comment:
    comment = _locked_comments().filter(id=comment_id).first()
    if comment is None:
        raise NotFoundError(f"Comment with id={comment_id} was not found")
    return comment


def _lock_author_comment(comment_id: int, event_id: int, user_id: int) -> Comment:
    comment = (
        _locked_comments()
        .filter(id=comment_id, event_id=event_id, author_id=user_id)
        .first()
    )
    if comment is None:
        raise NotFoundError("Comment was not found")
    return comment


def _check_user_can_comment(user_id: int, event_id: int) -> None:
    if not queries.can_user_comment(user_id, event_id):
        raise ForbiddenError("You have already commented on this event")


def _check_comment_editable(comment: Comment) -> None:
    if comment.status == CommentStatus.REJECTED:
        raise ForbiddenError("A rejected comment cannot be edited")
    if comment.status == CommentStatus.DELETED:
        raise ForbiddenError("The comment has been deleted")


# ============================================================================
# LIFECYCLE
# ============================================================================

def create_comment(user_id: int, event_id: int, text: str) -> Comment:
    """
    Create a PENDING comment on a published event.

    OPERATION:
    1. Validate ids and text
    2. User must exist, event must exist and be PUBLISHED
    3. The user must not have any comment on the event yet
    4. Insert (unique constraint catches a racing duplicate)

    Raises:
        ForbiddenError, ValidationFailedError, NotFoundError, ConflictError
    """
    validate_id(user_id, "User id")
    validate_id(event_id, "Event id")
    text = validate_comment_text(text)

    user = _get_user_or_raise(user_id)
    event = _get_published_event_or_raise(event_id)
    _check_user_can_comment(user_id, event_id)

    try:
        with transaction.atomic():
            comment = Comment.objects.create(
                text=text,
                event=event,
                author=user,
                status=CommentStatus.PENDING,
                created=timezone.now()
            )
            reconcile_comment_count(event.id, None, comment.status)
    except IntegrityError as exc:
        # Another request created the same (event, author) comment first
        raise ConflictError("You have already commented on this event") from exc

    logger.info(
        "Created comment id=%s on event id=%s by user id=%s",
        comment.id, event_id, user_id
    )
    return comment


def update_comment(user_id: int, event_id: int, comment_id: int, text: str) -> Comment:
    """
    Author edit. A PUBLISHED comment goes back to PENDING for re-moderation
    and leaves the event's published count.

    Raises:
        ForbiddenError: bad ids, or the comment is REJECTED or DELETED.
        ValidationFailedError: text out of bounds.
        NotFoundError: no such comment by this author on this event.
    """
    validate_id(user_id, "User id")
    validate_id(event_id, "Event id")
    validate_id(comment_id, "Comment id")
    text = validate_comment_text(text)

    with transaction.atomic():
        comment = _lock_author_comment(comment_id, event_id, user_id)
        _check_comment_editable(comment)

        old_status = comment.status
        comment.text = text
        comment.edited = timezone.now()
        if old_status == CommentStatus.PUBLISHED:
            comment.status = CommentStatus.PENDING

        comment.save(update_fields=['text', 'edited', 'status'])
        reconcile_comment_count(comment.event_id, old_status, comment.status)

    logger.info("Updated comment id=%s (%s -> %s)", comment_id, old_status, comment.status)
    return comment


def delete_comment(user_id: int, event_id: int, comment_id: int) -> None:
    """
    Author delete: soft delete, the row stays with status DELETED.
    """
    validate_id(user_id, "User id")
    validate_id(event_id, "Event id")
    validate_id(comment_id, "Comment id")

    with transaction.atomic():
        comment = _lock_author_comment(comment_id, event_id, user_id)

        old_status = comment.status
        comment.status = CommentStatus.DELETED
        comment.save(update_fields=['status'])
        reconcile_comment_count(comment.event_id, old_status, comment.status)

    logger.info("Comment id=%s deleted by user id=%s", comment_id, user_id)


def moderate_comment(comment_id: int, status: str | None, moderator_message: str | None = None) -> Comment:
    """
    Moderator decision: set any status and an optional message.

    Raises:
        ForbiddenError: bad id or null status.
        BadRequestError: unknown status value.
        NotFoundError: no such comment.
    """
    validate_id(comment_id, "Comment id")
    new_status = validate_status(status)

    with transaction.atomic():
        comment = _lock_comment(comment_id)

        old_status = comment.status
        comment.status = new_status
        comment.moderator_message = moderator_message
        comment.save(update_fields=['status', 'moderator_message'])
        reconcile_comment_count(comment.event_id, old_status, new_status)

    logger.info("Moderated comment id=%s: %s -> %s", comment_id, old_status, new_status)
    return comment


def delete_comment_by_admin(comment_id: int) -> None:
    """
    Admin delete: the row is removed for good.
    """
    validate_id(comment_id, "Comment id")

    with transaction.atomic():
        comment = _lock_comment(comment_id)

        old_status = comment.status
        event_id = comment.event_id
        comment.delete()
        reconcile_comment_count(event_id, old_status, None)

    logger.info("Comment id=%s removed by administrator", comment_id)
