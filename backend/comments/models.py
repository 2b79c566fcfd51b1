"""
Data Models for event comments
==============================

Design Philosophy:
------------------
1. One comment per (event, author), enforced twice
   - Existence check in the service, whatever the old comment's status
   - Unique constraint at DB level, so racing inserts fail with IntegrityError

2. Event.comment_count is a denormalized counter of PUBLISHED comments
   - Only the comment lifecycle in services.py touches it
   - Changed with F() expressions in the same transaction as the comment

3. Author delete is a soft delete (status DELETED), admin delete removes the row

Indexes Strategy:
-----------------
- comment.event + comment.status + comment.created: public listing of an event
- comment.status + comment.created: moderation queue, recent comments
- comment.author + comment.created: a user's comments
"""

from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone


class Event(models.Model):
    """
    The commentable event. Only the fields the comment workflow needs.
    """

    class State(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        PUBLISHED = 'PUBLISHED', 'Published'
        CANCELED = 'CANCELED', 'Canceled'

    title = models.CharField(max_length=255)
    state = models.CharField(
        max_length=20,
        choices=State.choices,
        default=State.PENDING,
        db_index=True
    )
    # Number of PUBLISHED comments, maintained by comments.services
    comment_count = models.PositiveIntegerField(default=0)
    created_on = models.DateTimeField(default=timezone.now)
    published_on = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_on']

    def __str__(self):
        return f"{self.title[:50]} ({self.state})"


class CommentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PUBLISHED = 'PUBLISHED', 'Published'
    REJECTED = 'REJECTED', 'Rejected'
    DELETED = 'DELETED', 'Deleted'


class Comment(models.Model):
    """
    A user's comment on an event, moderated before it becomes public.

    STATUS LIFECYCLE:
    - created PENDING
    - PENDING -> PUBLISHED | REJECTED by a moderator
    - PUBLISHED -> PENDING when the author edits it
    - any -> DELETED when the author deletes it
    REJECTED and DELETED comments can no longer be edited.
    """
    text = models.TextField()
    event = models.ForeignKey(
        Event,
        on_delete=models.CASCADE,
        related_name='comments'
    )
    author = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='event_comments'
    )
    status = models.CharField(
        max_length=20,
        choices=CommentStatus.choices,
        default=CommentStatus.PENDING
    )
    created = models.DateTimeField(default=timezone.now)
    # Set only by an author edit
    edited = models.DateTimeField(null=True, blank=True)
    moderator_message = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ['-created']
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'author'],
                name='unique_comment_per_event_author'
            )
        ]
        indexes = [
            models.Index(fields=['event', 'status', 'created'], name='comment_event_status_idx'),
            models.Index(fields=['status', 'created'], name='comment_status_created_idx'),
            models.Index(fields=['author', 'created'], name='comment_author_created_idx'),
        ]

    def __str__(self):
        return f"Comment by {self.author.username} on event {self.event_id} ({self.status})"

    @property
    def author_name(self) -> str:
        return self.author.get_full_name() or self.author.username


# ============================================================================
# COMMENT CONSTANTS
# ============================================================================
COMMENT_TEXT_MIN_LENGTH = 10
COMMENT_TEXT_MAX_LENGTH = 2000
MAX_PAGE_SIZE = 100
MAX_RECENT_LIMIT = 100
