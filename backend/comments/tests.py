"""
Tests for event comments

Focus areas:
1. Comment lifecycle guards (text bounds, duplicates, event state)
2. Published-comment counter on the event (never drifts, never negative)
3. Read paths (visibility, ordering, paging)
4. HTTP contract of the author, public and admin endpoints
"""

import re
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.contrib import admin
from django.contrib.auth.models import User
from django.core.management import call_command
from django.test import RequestFactory, TestCase, TransactionTestCase
from django.utils import timezone
from rest_framework.test import APITestCase

from ewmstats.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)
from hits.models import EndpointHit

from . import queries
from .admin import CommentAdmin
from .models import Comment, CommentStatus, Event
from .serializers import CommentSerializer
from .services import (
    comment_count_delta,
    reconcile_comment_count,
    create_comment,
    update_comment,
    delete_comment,
    moderate_comment,
    delete_comment_by_admin,
)

VALID_TEXT = 'A perfectly fine comment'


def make_event(title='Event', state=Event.State.PUBLISHED):
    return Event.objects.create(
        title=title,
        state=state,
        published_on=timezone.now() if state == Event.State.PUBLISHED else None
    )


def comment_count(event):
    event.refresh_from_db()
    return event.comment_count


class CommentCountDeltaTestCase(TestCase):
    """The counter rule in isolation."""

    def test_entering_published_adds_one(self):
        self.assertEqual(comment_count_delta(CommentStatus.PENDING, CommentStatus.PUBLISHED), 1)
        self.assertEqual(comment_count_delta(CommentStatus.REJECTED, CommentStatus.PUBLISHED), 1)
        self.assertEqual(comment_count_delta(None, CommentStatus.PUBLISHED), 1)

    def test_leaving_published_removes_one(self):
        self.assertEqual(comment_count_delta(CommentStatus.PUBLISHED, CommentStatus.PENDING), -1)
        self.assertEqual(comment_count_delta(CommentStatus.PUBLISHED, CommentStatus.DELETED), -1)
        self.assertEqual(comment_count_delta(CommentStatus.PUBLISHED, None), -1)

    def test_other_transitions_do_nothing(self):
        self.assertEqual(comment_count_delta(CommentStatus.PUBLISHED, CommentStatus.PUBLISHED), 0)
        self.assertEqual(comment_count_delta(None, CommentStatus.PENDING), 0)
        self.assertEqual(comment_count_delta(CommentStatus.PENDING, CommentStatus.REJECTED), 0)
        self.assertEqual(comment_count_delta(CommentStatus.REJECTED, None), 0)


class ReconcileOutsideTransactionTestCase(TransactionTestCase):
    """TransactionTestCase runs without a wrapping atomic block."""

    def test_requires_atomic_block(self):
        event = make_event()

        with self.assertRaises(RuntimeError):
            reconcile_comment_count(event.id, CommentStatus.PENDING, CommentStatus.PUBLISHED)

        self.assertEqual(comment_count(event), 0)


class CreateCommentTestCase(TestCase):
    """
    Test comment creation.

    Guards run in order: ids, payload, existence, state.
    """

    def setUp(self):
        self.user = User.objects.create_user('user', 'u@test.com', 'pass')
        self.event = make_event()

    def test_new_comment_is_pending(self):
        comment = create_comment(self.user.id, self.event.id, VALID_TEXT)

        self.assertEqual(comment.status, CommentStatus.PENDING)
        self.assertEqual(comment.author_id, self.user.id)
        self.assertEqual(comment.event_id, self.event.id)
        self.assertIsNone(comment.edited)
        self.assertIsNone(comment.moderator_message)

    def test_new_comment_does_not_move_counter(self):
        create_comment(self.user.id, self.event.id, VALID_TEXT)

        self.assertEqual(comment_count(self.event), 0)

    def test_text_is_trimmed(self):
        comment = create_comment(self.user.id, self.event.id, '   ' + VALID_TEXT + '\n')

        self.assertEqual(comment.text, VALID_TEXT)

    def test_text_length_bounds(self):
        """10 and 2000 characters are accepted, 9 and 2001 are not."""
        for length in (9, 2001):
            with self.assertRaises(ValidationFailedError):
                create_comment(self.user.id, self.event.id, 'x' * length)

        create_comment(self.user.id, self.event.id, 'x' * 10)
        other = User.objects.create_user('other', 'o@test.com', 'pass')
        comment = create_comment(other.id, self.event.id, 'x' * 2000)
        self.assertEqual(len(comment.text), 2000)

    def test_length_counts_trimmed_text(self):
        with self.assertRaises(ValidationFailedError):
            create_comment(self.user.id, self.event.id, '    ' + 'x' * 9 + '    ')

    def test_blank_text_rejected(self):
        for text in ('', '    ', None):
            with self.assertRaises(ValidationFailedError):
                create_comment(self.user.id, self.event.id, text)

        self.assertEqual(Comment.objects.count(), 0)

    def test_non_positive_ids_rejected(self):
        with self.assertRaises(ForbiddenError):
            create_comment(0, self.event.id, VALID_TEXT)
        with self.assertRaises(ForbiddenError):
            create_comment(self.user.id, -1, VALID_TEXT)

    def test_ids_checked_before_text(self):
        with self.assertRaises(ForbiddenError):
            create_comment(0, self.event.id, 'short')

    def test_text_checked_before_existence(self):
        with self.assertRaises(ValidationFailedError):
            create_comment(self.user.id, 999999, 'short')

    def test_unknown_user(self):
        with self.assertRaises(NotFoundError):
            create_comment(999999, self.event.id, VALID_TEXT)

    def test_unknown_event(self):
        with self.assertRaises(NotFoundError):
            create_comment(self.user.id, 999999, VALID_TEXT)

    def test_unpublished_event_rejected(self):
        for state in (Event.State.PENDING, Event.State.CANCELED):
            event = make_event(state=state)
            with self.assertRaises(ForbiddenError):
                create_comment(self.user.id, event.id, VALID_TEXT)

        self.assertEqual(Comment.objects.count(), 0)

    def test_second_comment_rejected(self):
        create_comment(self.user.id, self.event.id, VALID_TEXT)

        with self.assertRaises(ForbiddenError):
            create_comment(self.user.id, self.event.id, 'Another comment here')

        self.assertEqual(Comment.objects.count(), 1)

    def test_second_comment_rejected_after_delete(self):
        """A deleted comment still blocks a new one on the same event."""
        comment = create_comment(self.user.id, self.event.id, VALID_TEXT)
        delete_comment(self.user.id, self.event.id, comment.id)

        with self.assertRaises(ForbiddenError):
            create_comment(self.user.id, self.event.id, VALID_TEXT)

    def test_second_comment_rejected_after_rejection(self):
        """A rejected comment blocks a new one too; the author cannot retry."""
        comment = create_comment(self.user.id, self.event.id, VALID_TEXT)
        moderate_comment(comment.id, CommentStatus.REJECTED)

        with self.assertRaises(ForbiddenError):
            create_comment(self.user.id, self.event.id, 'A second attempt at this')

        self.assertEqual(Comment.objects.filter(author=self.user).count(), 1)

    def test_second_comment_rejected_after_publication(self):
        comment = create_comment(self.user.id, self.event.id, VALID_TEXT)
        moderate_comment(comment.id, CommentStatus.PUBLISHED)

        with self.assertRaises(ForbiddenError):
            create_comment(self.user.id, self.event.id, 'A second attempt at this')

        self.assertEqual(comment_count(self.event), 1)

    def test_same_user_other_event_allowed(self):
        create_comment(self.user.id, self.event.id, VALID_TEXT)
        create_comment(self.user.id, make_event().id, VALID_TEXT)

        self.assertEqual(Comment.objects.filter(author=self.user).count(), 2)

    def test_racing_duplicate_becomes_conflict(self):
        """The unique constraint catches what the existence check missed."""
        create_comment(self.user.id, self.event.id, VALID_TEXT)

        with patch('comments.services._check_user_can_comment'):
            with self.assertRaises(ConflictError):
                create_comment(self.user.id, self.event.id, VALID_TEXT)

        self.assertEqual(Comment.objects.count(), 1)


class UpdateCommentTestCase(TestCase):
    """Test author edits."""

    def setUp(self):
        self.user = User.objects.create_user('user', 'u@test.com', 'pass')
        self.event = make_event()
        self.comment = create_comment(self.user.id, self.event.id, VALID_TEXT)

    def test_edit_pending_stays_pending(self):
        comment = update_comment(self.user.id, self.event.id, self.comment.id, 'Edited comment text')

        self.assertEqual(comment.status, CommentStatus.PENDING)
        self.assertEqual(comment.text, 'Edited comment text')
        self.assertIsNotNone(comment.edited)
        self.assertEqual(comment_count(self.event), 0)

    def test_edit_published_goes_back_to_moderation(self):
        moderate_comment(self.comment.id, CommentStatus.PUBLISHED)
        self.assertEqual(comment_count(self.event), 1)

        comment = update_comment(self.user.id, self.event.id, self.comment.id, 'Edited comment text')

        self.assertEqual(comment.status, CommentStatus.PENDING)
        self.assertEqual(comment_count(self.event), 0)

    def test_edit_rejected_forbidden(self):
        moderate_comment(self.comment.id, CommentStatus.REJECTED)

        with self.assertRaises(ForbiddenError):
            update_comment(self.user.id, self.event.id, self.comment.id, 'Edited comment text')

    def test_edit_deleted_forbidden(self):
        delete_comment(self.user.id, self.event.id, self.comment.id)

        with self.assertRaises(ForbiddenError):
            update_comment(self.user.id, self.event.id, self.comment.id, 'Edited comment text')

    def test_edit_text_bounds(self):
        with self.assertRaises(ValidationFailedError):
            update_comment(self.user.id, self.event.id, self.comment.id, 'x' * 9)

        self.comment.refresh_from_db()
        self.assertEqual(self.comment.text, VALID_TEXT)
        self.assertIsNone(self.comment.edited)

    def test_edit_by_other_user_not_found(self):
        other = User.objects.create_user('other', 'o@test.com', 'pass')

        with self.assertRaises(NotFoundError):
            update_comment(other.id, self.event.id, self.comment.id, 'Edited comment text')

    def test_edit_on_wrong_event_not_found(self):
        other_event = make_event()

        with self.assertRaises(NotFoundError):
            update_comment(self.user.id, other_event.id, self.comment.id, 'Edited comment text')


class DeleteCommentTestCase(TestCase):
    """Test author soft delete and admin hard delete."""

    def setUp(self):
        self.user = User.objects.create_user('user', 'u@test.com', 'pass')
        self.event = make_event()
        self.comment = create_comment(self.user.id, self.event.id, VALID_TEXT)

    def test_author_delete_is_soft(self):
        delete_comment(self.user.id, self.event.id, self.comment.id)

        self.comment.refresh_from_db()
        self.assertEqual(self.comment.status, CommentStatus.DELETED)

    def test_author_delete_published_decrements(self):
        moderate_comment(self.comment.id, CommentStatus.PUBLISHED)

        delete_comment(self.user.id, self.event.id, self.comment.id)

        self.assertEqual(comment_count(self.event), 0)

    def test_author_delete_twice_is_noop(self):
        delete_comment(self.user.id, self.event.id, self.comment.id)
        delete_comment(self.user.id, self.event.id, self.comment.id)

        self.comment.refresh_from_db()
        self.assertEqual(self.comment.status, CommentStatus.DELETED)
        self.assertEqual(comment_count(self.event), 0)

    def test_author_delete_by_other_user_not_found(self):
        other = User.objects.create_user('other', 'o@test.com', 'pass')

        with self.assertRaises(NotFoundError):
            delete_comment(other.id, self.event.id, self.comment.id)

    def test_admin_delete_published_removes_row(self):
        moderate_comment(self.comment.id, CommentStatus.PUBLISHED)

        delete_comment_by_admin(self.comment.id)

        self.assertFalse(Comment.objects.filter(id=self.comment.id).exists())
        self.assertEqual(comment_count(self.event), 0)

    def test_admin_delete_pending_keeps_counter(self):
        other = User.objects.create_user('other', 'o@test.com', 'pass')
        published = create_comment(other.id, self.event.id, VALID_TEXT)
        moderate_comment(published.id, CommentStatus.PUBLISHED)

        delete_comment_by_admin(self.comment.id)

        self.assertEqual(comment_count(self.event), 1)

    def test_admin_delete_unknown(self):
        with self.assertRaises(NotFoundError):
            delete_comment_by_admin(999999)

    def test_user_can_comment_again_after_admin_delete(self):
        delete_comment_by_admin(self.comment.id)

        self.assertTrue(queries.can_user_comment(self.user.id, self.event.id))
        create_comment(self.user.id, self.event.id, VALID_TEXT)


class ModerationTestCase(TestCase):
    """
    Test moderation and the counter.

    CRITICAL: the counter always equals the number of PUBLISHED comments.
    """

    def setUp(self):
        self.event = make_event()
        self.comments = []
        for i in range(3):
            user = User.objects.create_user(f'user{i}', f'u{i}@test.com', 'pass')
            self.comments.append(create_comment(user.id, self.event.id, VALID_TEXT))

    def assertCounterConsistent(self):
        published = Comment.objects.filter(
            event=self.event, status=CommentStatus.PUBLISHED
        ).count()
        self.assertEqual(comment_count(self.event), published)

    def test_publish_increments(self):
        comment = moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED, 'Looks good')

        self.assertEqual(comment.status, CommentStatus.PUBLISHED)
        self.assertEqual(comment.moderator_message, 'Looks good')
        self.assertEqual(comment_count(self.event), 1)

    def test_publish_twice_counts_once(self):
        moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)
        moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)

        self.assertEqual(comment_count(self.event), 1)

    def test_reject_published_decrements(self):
        moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)
        moderate_comment(self.comments[0].id, CommentStatus.REJECTED, 'Off topic')

        self.assertEqual(comment_count(self.event), 0)

    def test_rejected_can_be_published(self):
        moderate_comment(self.comments[0].id, CommentStatus.REJECTED)
        moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)

        self.assertEqual(comment_count(self.event), 1)

    def test_counter_never_negative(self):
        moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)
        # Counter out of sync with the comments
        Event.objects.filter(id=self.event.id).update(comment_count=0)

        moderate_comment(self.comments[0].id, CommentStatus.REJECTED)

        self.assertEqual(comment_count(self.event), 0)

    def test_mixed_transitions_keep_counter_consistent(self):
        first, second, third = self.comments

        moderate_comment(first.id, CommentStatus.PUBLISHED)
        moderate_comment(second.id, CommentStatus.PUBLISHED)
        moderate_comment(third.id, CommentStatus.REJECTED)
        self.assertCounterConsistent()

        update_comment(first.author_id, self.event.id, first.id, 'Edited comment text')
        self.assertCounterConsistent()

        delete_comment(second.author_id, self.event.id, second.id)
        self.assertCounterConsistent()

        moderate_comment(third.id, CommentStatus.PUBLISHED)
        delete_comment_by_admin(third.id)
        self.assertCounterConsistent()
        self.assertEqual(comment_count(self.event), 0)

    def test_counter_failure_rolls_back_moderation(self):
        """
        The status write and the counter write commit together.

        If the counter update fails, the comment keeps its old status.
        """
        comment = self.comments[0]

        with patch('comments.services.reconcile_comment_count', side_effect=RuntimeError):
            with self.assertRaises(RuntimeError):
                moderate_comment(comment.id, CommentStatus.PUBLISHED, 'Looks good')

        comment.refresh_from_db()
        self.assertEqual(comment.status, CommentStatus.PENDING)
        self.assertIsNone(comment.moderator_message)
        self.assertEqual(comment_count(self.event), 0)

    def test_counter_failure_rolls_back_edit(self):
        comment = moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)

        with patch('comments.services.reconcile_comment_count', side_effect=RuntimeError):
            with self.assertRaises(RuntimeError):
                update_comment(comment.author_id, self.event.id, comment.id, 'Edited comment text')

        comment.refresh_from_db()
        self.assertEqual(comment.status, CommentStatus.PUBLISHED)
        self.assertEqual(comment.text, VALID_TEXT)
        self.assertIsNone(comment.edited)
        self.assertEqual(comment_count(self.event), 1)

    def test_counter_failure_rolls_back_author_delete(self):
        comment = moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)

        with patch('comments.services.reconcile_comment_count', side_effect=RuntimeError):
            with self.assertRaises(RuntimeError):
                delete_comment(comment.author_id, self.event.id, comment.id)

        comment.refresh_from_db()
        self.assertEqual(comment.status, CommentStatus.PUBLISHED)
        self.assertEqual(comment_count(self.event), 1)

    def test_counter_failure_rolls_back_admin_delete(self):
        comment = moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)

        with patch('comments.services.reconcile_comment_count', side_effect=RuntimeError):
            with self.assertRaises(RuntimeError):
                delete_comment_by_admin(comment.id)

        self.assertTrue(Comment.objects.filter(id=comment.id).exists())
        self.assertEqual(comment_count(self.event), 1)

    def test_message_cleared_when_absent(self):
        moderate_comment(self.comments[0].id, CommentStatus.REJECTED, 'Off topic')
        comment = moderate_comment(self.comments[0].id, CommentStatus.PUBLISHED)

        self.assertIsNone(comment.moderator_message)

    def test_null_status_forbidden(self):
        with self.assertRaises(ForbiddenError):
            moderate_comment(self.comments[0].id, None)

    def test_unknown_status_bad_request(self):
        with self.assertRaises(BadRequestError):
            moderate_comment(self.comments[0].id, 'ARCHIVED')

    def test_unknown_comment(self):
        with self.assertRaises(NotFoundError):
            moderate_comment(999999, CommentStatus.PUBLISHED)


class CommentQueriesTestCase(TestCase):
    """
    Test the read paths.

    Fixture, on one event, oldest to newest:
    - c0 PUBLISHED, 'Jazz was wonderful tonight'
    - c1 PENDING
    - c2 PUBLISHED
    - c3 REJECTED
    - c4 PUBLISHED
    """

    def setUp(self):
        self.event = make_event()
        self.users = [
            User.objects.create_user(f'user{i}', f'u{i}@test.com', 'pass')
            for i in range(5)
        ]
        texts = [
            'Jazz was wonderful tonight',
            'Waiting for moderation here',
            'The stage lights were great',
            'Buy cheap watches right now',
            'Loved the JAZZ trio at the end',
        ]
        decisions = [
            CommentStatus.PUBLISHED,
            None,
            CommentStatus.PUBLISHED,
            CommentStatus.REJECTED,
            CommentStatus.PUBLISHED,
        ]
        base = timezone.now() - timedelta(hours=1)

        self.comments = []
        for i, (user, text, decision) in enumerate(zip(self.users, texts, decisions)):
            comment = create_comment(user.id, self.event.id, text)
            if decision is not None:
                comment = moderate_comment(comment.id, decision)
            Comment.objects.filter(id=comment.id).update(created=base + timedelta(minutes=i))
            self.comments.append(comment)

    def ids(self, comments):
        return [c.id for c in comments]

    def test_published_newest_first(self):
        result = queries.get_published_comments(self.event.id)

        c = self.comments
        self.assertEqual(self.ids(result), [c[4].id, c[2].id, c[0].id])

    def test_published_paging_uses_page_index(self):
        """from=1 with size=2 is still page 0."""
        c = self.comments

        self.assertEqual(self.ids(queries.get_published_comments(self.event.id, 1, 2)), [c[4].id, c[2].id])
        self.assertEqual(self.ids(queries.get_published_comments(self.event.id, 2, 2)), [c[0].id])
        self.assertEqual(queries.get_published_comments(self.event.id, 4, 2), [])

    def test_paging_bounds(self):
        with self.assertRaises(ForbiddenError):
            queries.get_published_comments(self.event.id, -1, 10)
        with self.assertRaises(ForbiddenError):
            queries.get_published_comments(self.event.id, 0, 0)
        with self.assertRaises(ForbiddenError):
            queries.get_published_comments(self.event.id, 0, 101)

    def test_published_page_in_one_query(self):
        """
        Rendering a page must NOT cost one author query per comment.

        The author name comes from the same SELECT via select_related.
        """
        with self.assertNumQueries(1):
            data = CommentSerializer(
                queries.get_published_comments(self.event.id), many=True
            ).data

        self.assertEqual(len(data), 3)
        self.assertEqual(data[0]['authorName'], self.users[4].username)

    def test_published_comment_visible(self):
        comment = queries.get_published_comment(self.event.id, self.comments[0].id)

        self.assertEqual(comment.id, self.comments[0].id)

    def test_unpublished_comment_hidden(self):
        for comment in (self.comments[1], self.comments[3]):
            with self.assertRaises(NotFoundError):
                queries.get_published_comment(self.event.id, comment.id)

    def test_published_comment_of_other_event_hidden(self):
        with self.assertRaises(NotFoundError):
            queries.get_published_comment(make_event().id, self.comments[0].id)

    def test_published_count(self):
        self.assertEqual(queries.get_published_comments_count(self.event.id), 3)
        self.assertEqual(queries.get_published_comments_count(self.event.id), comment_count(self.event))

    def test_pending_oldest_first(self):
        late_user = User.objects.create_user('late', 'l@test.com', 'pass')
        late = create_comment(late_user.id, self.event.id, VALID_TEXT)

        result = queries.get_pending_comments()

        self.assertEqual(self.ids(result), [self.comments[1].id, late.id])

    def test_comments_by_status(self):
        result = queries.get_comments_by_status(CommentStatus.REJECTED)

        self.assertEqual(self.ids(result), [self.comments[3].id])

    def test_comments_by_status_guards(self):
        with self.assertRaises(ForbiddenError):
            queries.get_comments_by_status(None)
        with self.assertRaises(BadRequestError):
            queries.get_comments_by_status('ARCHIVED')

    def test_user_comments_any_status(self):
        user = self.users[3]
        other_event = make_event()
        newer = create_comment(user.id, other_event.id, VALID_TEXT)

        result = queries.get_user_comments(user.id)

        self.assertEqual(self.ids(result), [newer.id, self.comments[3].id])

    def test_user_comments_for_event(self):
        result = queries.get_user_comments_for_event(self.users[1].id, self.event.id)

        self.assertEqual(self.ids(result), [self.comments[1].id])
        self.assertEqual(queries.get_user_comments_for_event(self.users[1].id, make_event().id), [])

    def test_can_user_comment(self):
        newcomer = User.objects.create_user('newcomer', 'n@test.com', 'pass')

        self.assertFalse(queries.can_user_comment(self.users[0].id, self.event.id))
        self.assertTrue(queries.can_user_comment(newcomer.id, self.event.id))

    def test_all_comments_for_event_skips_rows(self):
        """The admin listing skips exactly `from` rows."""
        c = self.comments

        result = queries.get_all_comments_for_event(self.event.id, 1, 2)

        self.assertEqual(self.ids(result), [c[3].id, c[2].id])

    def test_search_case_insensitive_published_only(self):
        result = queries.search_comments('jazz')

        self.assertEqual(self.ids(result), [self.comments[4].id, self.comments[0].id])

    def test_search_excludes_unpublished(self):
        self.assertEqual(queries.search_comments('cheap watches'), [])

    def test_search_blank_forbidden(self):
        for text in (None, '', '   '):
            with self.assertRaises(ForbiddenError):
                queries.search_comments(text)

    def test_recent_window(self):
        Comment.objects.filter(id=self.comments[0].id).update(
            created=timezone.now() - timedelta(hours=25)
        )

        result = queries.get_recent_comments(hours=24, limit=10)

        self.assertEqual(self.ids(result), [self.comments[4].id, self.comments[2].id])

    def test_recent_limit(self):
        result = queries.get_recent_comments(hours=24, limit=1)

        self.assertEqual(self.ids(result), [self.comments[4].id])

    def test_recent_guards(self):
        with self.assertRaises(ForbiddenError):
            queries.get_recent_comments(hours=0)
        with self.assertRaises(ForbiddenError):
            queries.get_recent_comments(limit=101)

    def test_user_stats(self):
        user = self.users[0]
        create_comment(user.id, make_event().id, VALID_TEXT)
        rejected = create_comment(user.id, make_event().id, VALID_TEXT)
        moderate_comment(rejected.id, CommentStatus.REJECTED)

        stats = queries.get_user_comment_stats(user.id)

        self.assertEqual(stats, {'total': 3, 'published': 1, 'pending': 1, 'rejected': 1})

    def test_user_stats_unknown_user(self):
        with self.assertRaises(NotFoundError):
            queries.get_user_comment_stats(999999)


class CommentScenarioTestCase(TestCase):
    """One comment through its whole life."""

    def test_lifecycle(self):
        user = User.objects.create_user('user', 'u@test.com', 'pass')
        event = make_event()
        draft_event = make_event(state=Event.State.PENDING)

        with self.assertRaises(ValidationFailedError):
            create_comment(user.id, event.id, 'x' * 9)

        with self.assertRaises(ForbiddenError):
            create_comment(user.id, draft_event.id, VALID_TEXT)

        comment = create_comment(user.id, event.id, VALID_TEXT)
        self.assertEqual(comment.status, CommentStatus.PENDING)
        self.assertEqual(comment_count(event), 0)

        moderate_comment(comment.id, CommentStatus.PUBLISHED)
        self.assertEqual(comment_count(event), 1)

        comment = update_comment(user.id, event.id, comment.id, 'Edited comment text')
        self.assertEqual(comment.status, CommentStatus.PENDING)
        self.assertEqual(comment_count(event), 0)

        moderate_comment(comment.id, CommentStatus.PUBLISHED)
        self.assertEqual(comment_count(event), 1)

        delete_comment_by_admin(comment.id)
        self.assertFalse(Comment.objects.filter(id=comment.id).exists())
        self.assertEqual(comment_count(event), 0)


class CommentApiTestCase(APITestCase):
    """HTTP contract of the comment endpoints."""

    def setUp(self):
        self.user = User.objects.create_user(
            'user', 'u@test.com', 'pass', first_name='Ada', last_name='Lovelace'
        )
        self.event = make_event()
        self.base = f'/users/{self.user.id}/events/{self.event.id}/comments'

    def create(self, text=VALID_TEXT):
        response = self.client.post(self.base, {'text': text})
        self.assertEqual(response.status_code, 201)
        return response.json()

    def test_create_returns_comment_dto(self):
        body = self.create()

        self.assertEqual(set(body), {
            'id', 'text', 'eventId', 'authorId', 'authorName',
            'status', 'created', 'edited', 'moderatorMessage',
        })
        self.assertEqual(body['eventId'], self.event.id)
        self.assertEqual(body['authorId'], self.user.id)
        self.assertEqual(body['authorName'], 'Ada Lovelace')
        self.assertEqual(body['status'], 'PENDING')
        self.assertRegex(body['created'], re.compile(r'^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$'))
        self.assertIsNone(body['edited'])

    def test_author_name_falls_back_to_username(self):
        nameless = User.objects.create_user('nameless', 'n@test.com', 'pass')

        response = self.client.post(
            f'/users/{nameless.id}/events/{self.event.id}/comments', {'text': VALID_TEXT}
        )

        self.assertEqual(response.json()['authorName'], 'nameless')

    def test_create_short_text_returns_400(self):
        response = self.client.post(self.base, {'text': 'x' * 9})

        self.assertEqual(response.status_code, 400)
        self.assertIn('error', response.json())

    def test_create_without_text_returns_400(self):
        response = self.client.post(self.base, {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['message'], 'Validation failed')

    def test_create_duplicate_returns_403(self):
        self.create()

        response = self.client.post(self.base, {'text': VALID_TEXT})

        self.assertEqual(response.status_code, 403)

    def test_create_on_unpublished_event_returns_403(self):
        draft = make_event(state=Event.State.PENDING)

        response = self.client.post(
            f'/users/{self.user.id}/events/{draft.id}/comments', {'text': VALID_TEXT}
        )

        self.assertEqual(response.status_code, 403)

    def test_create_unknown_user_returns_404(self):
        response = self.client.post(
            f'/users/999999/events/{self.event.id}/comments', {'text': VALID_TEXT}
        )

        self.assertEqual(response.status_code, 404)

    def test_zero_id_returns_403(self):
        response = self.client.get('/events/0/comments')

        self.assertEqual(response.status_code, 403)

    def test_author_lists_own_comments(self):
        body = self.create()

        response = self.client.get(self.base)

        self.assertEqual([c['id'] for c in response.json()], [body['id']])

    def test_edit_and_delete(self):
        body = self.create()
        moderate_comment(body['id'], CommentStatus.PUBLISHED)

        response = self.client.patch(f"{self.base}/{body['id']}", {'text': 'Edited comment text'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'PENDING')
        self.assertIsNotNone(response.json()['edited'])

        response = self.client.delete(f"{self.base}/{body['id']}")
        self.assertEqual(response.status_code, 204)
        self.assertEqual(Comment.objects.get(id=body['id']).status, CommentStatus.DELETED)

    def test_edit_rejected_returns_403(self):
        body = self.create()
        moderate_comment(body['id'], CommentStatus.REJECTED)

        response = self.client.patch(f"{self.base}/{body['id']}", {'text': 'Edited comment text'})

        self.assertEqual(response.status_code, 403)

    def test_public_listing_and_detail(self):
        body = self.create()

        self.assertEqual(self.client.get(f'/events/{self.event.id}/comments').json(), [])
        self.assertEqual(
            self.client.get(f"/events/{self.event.id}/comments/{body['id']}").status_code, 404
        )

        moderate_comment(body['id'], CommentStatus.PUBLISHED)

        listing = self.client.get(f'/events/{self.event.id}/comments', {'from': 0, 'size': 10})
        self.assertEqual([c['id'] for c in listing.json()], [body['id']])
        detail = self.client.get(f"/events/{self.event.id}/comments/{body['id']}")
        self.assertEqual(detail.status_code, 200)
        self.assertEqual(detail.json()['status'], 'PUBLISHED')

    def test_public_page_size_limit(self):
        response = self.client.get(f'/events/{self.event.id}/comments', {'size': 51})

        self.assertEqual(response.status_code, 400)

    def test_public_count(self):
        body = self.create()
        moderate_comment(body['id'], CommentStatus.PUBLISHED)

        response = self.client.get(f'/events/{self.event.id}/comments/count')

        self.assertEqual(response.json(), {'eventId': self.event.id, 'count': 1})

    def test_recent_comments(self):
        body = self.create()
        moderate_comment(body['id'], CommentStatus.PUBLISHED)

        response = self.client.get('/comments/recent', {'hours': 1, 'limit': 5})

        self.assertEqual([c['id'] for c in response.json()], [body['id']])
        self.assertEqual(self.client.get('/comments/recent', {'hours': 0}).status_code, 400)

    def test_admin_moderation(self):
        body = self.create()

        response = self.client.patch(
            f"/admin/comments/{body['id']}",
            {'status': 'PUBLISHED', 'moderatorMessage': 'Welcome'}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'PUBLISHED')
        self.assertEqual(response.json()['moderatorMessage'], 'Welcome')
        self.assertEqual(comment_count(self.event), 1)

    def test_admin_moderation_without_status_returns_403(self):
        body = self.create()

        response = self.client.patch(f"/admin/comments/{body['id']}", {})

        self.assertEqual(response.status_code, 403)

    def test_admin_moderation_unknown_status_returns_400(self):
        body = self.create()

        response = self.client.patch(f"/admin/comments/{body['id']}", {'status': 'ARCHIVED'})

        self.assertEqual(response.status_code, 400)

    def test_admin_moderation_unknown_comment_returns_404(self):
        response = self.client.patch('/admin/comments/999999', {'status': 'PUBLISHED'})

        self.assertEqual(response.status_code, 404)

    def test_admin_delete(self):
        body = self.create()
        moderate_comment(body['id'], CommentStatus.PUBLISHED)

        response = self.client.delete(f"/admin/comments/{body['id']}")

        self.assertEqual(response.status_code, 204)
        self.assertEqual(comment_count(self.event), 0)
        self.assertEqual(self.client.delete(f"/admin/comments/{body['id']}").status_code, 404)

    def test_admin_listings(self):
        body = self.create()

        pending = self.client.get('/admin/comments/pending')
        by_status = self.client.get('/admin/comments', {'status': 'PENDING'})
        by_user = self.client.get(f'/admin/comments/users/{self.user.id}')
        by_event = self.client.get(f'/admin/comments/events/{self.event.id}')

        for response in (pending, by_status, by_user, by_event):
            self.assertEqual(response.status_code, 200)
            self.assertEqual([c['id'] for c in response.json()], [body['id']])

    def test_admin_search(self):
        body = self.create('Jazz evening was lovely')
        moderate_comment(body['id'], CommentStatus.PUBLISHED)

        response = self.client.get('/admin/comments/search', {'text': 'JAZZ'})

        self.assertEqual([c['id'] for c in response.json()], [body['id']])
        self.assertEqual(self.client.get('/admin/comments/search').status_code, 400)

    def test_admin_user_stats(self):
        body = self.create()
        moderate_comment(body['id'], CommentStatus.REJECTED)

        response = self.client.get(f'/admin/comments/users/{self.user.id}/stats')

        self.assertEqual(response.json(), {'total': 1, 'published': 0, 'pending': 0, 'rejected': 1})
        self.assertEqual(self.client.get('/admin/comments/users/999999/stats').status_code, 404)


class CommentAdminTestCase(TestCase):
    """The Django admin must not bypass the comment rules."""

    def setUp(self):
        self.superuser = User.objects.create_superuser('root', 'r@test.com', 'pass')
        author = User.objects.create_user('user', 'u@test.com', 'pass')
        self.comment = create_comment(author.id, make_event().id, VALID_TEXT)
        self.model_admin = CommentAdmin(Comment, admin.site)

    def test_change_form_cannot_edit_text_or_status(self):
        request = RequestFactory().get('/')
        request.user = self.superuser

        form_class = self.model_admin.get_form(request, self.comment, change=True)

        self.assertNotIn('text', form_class.base_fields)
        self.assertNotIn('status', form_class.base_fields)
        self.assertIn('moderator_message', form_class.base_fields)

    def test_admin_cannot_delete(self):
        request = RequestFactory().get('/')
        request.user = self.superuser

        self.assertFalse(self.model_admin.has_delete_permission(request, self.comment))


class SeedDataCommandTestCase(TestCase):
    """The seed command goes through the services, so the counters are right."""

    def test_seed_data(self):
        out = StringIO()

        call_command('seed_data', users=3, events=4, comments=5, hits=10, stdout=out)

        self.assertIn('Successfully created', out.getvalue())
        self.assertEqual(User.objects.count(), 3)
        self.assertEqual(Event.objects.count(), 4)
        self.assertEqual(Comment.objects.count(), 5)
        self.assertEqual(EndpointHit.objects.count(), 10)
        self.assertFalse(Comment.objects.exclude(event__state=Event.State.PUBLISHED).exists())

        for event in Event.objects.all():
            published = event.comments.filter(status=CommentStatus.PUBLISHED).count()
            self.assertEqual(event.comment_count, published)

    def test_seed_data_clear(self):
        call_command('seed_data', users=2, events=2, comments=2, hits=5, stdout=StringIO())
        call_command('seed_data', users=2, events=2, comments=2, hits=5, clear=True, stdout=StringIO())

        self.assertEqual(Event.objects.count(), 2)
        self.assertEqual(EndpointHit.objects.count(), 5)
