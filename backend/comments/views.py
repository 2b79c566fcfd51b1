"""
DRF Views for event comments
============================

Three audiences, three URL prefixes:
- /users/{userId}/events/{eventId}/comments  the author
- /events/{eventId}/comments, /comments      the public
- /admin/comments                            moderators

AUTHENTICATION NOTE:
--------------------
The gateway in front of this service authenticates callers; the user id
in the path is trusted as is.

Views only parse input and render output. Errors raised by services are
turned into responses by ewmstats.exceptions.custom_exception_handler.
"""

from rest_framework import status, permissions
from rest_framework.views import APIView
from rest_framework.response import Response

from . import queries, services
from .serializers import (
    CommentSerializer,
    NewCommentSerializer,
    CommentAdminRequestSerializer,
    PageParamsSerializer,
    StatusPageParamsSerializer,
    SearchParamsSerializer,
    RecentParamsSerializer,
    CommentStatsSerializer,
)


def parse_query(request, serializer_class=PageParamsSerializer) -> dict:
    serializer = serializer_class(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def parse_body(request, serializer_class) -> dict:
    serializer = serializer_class(data=request.data)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


# ============================================================================
# PRIVATE: the comment author
# ============================================================================

class UserEventCommentsView(APIView):
    """
    GET  /users/<user_id>/events/<event_id>/comments
    POST /users/<user_id>/events/<event_id>/comments

    Body:
    {
        "text": "Comment text, 10 to 2000 characters"
    }
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id, event_id):
        comments = queries.get_user_comments_for_event(user_id, event_id)
        return Response(CommentSerializer(comments, many=True).data)

    def post(self, request, user_id, event_id):
        data = parse_body(request, NewCommentSerializer)
        comment = services.create_comment(user_id, event_id, data['text'])
        return Response(CommentSerializer(comment).data, status=status.HTTP_201_CREATED)


class UserEventCommentDetailView(APIView):
    """
    PATCH  /users/<user_id>/events/<event_id>/comments/<comment_id>
    DELETE /users/<user_id>/events/<event_id>/comments/<comment_id>

    Editing a published comment sends it back to moderation.
    """
    permission_classes = [permissions.AllowAny]

    def patch(self, request, user_id, event_id, comment_id):
        data = parse_body(request, NewCommentSerializer)
        comment = services.update_comment(user_id, event_id, comment_id, data['text'])
        return Response(CommentSerializer(comment).data)

    def delete(self, request, user_id, event_id, comment_id):
        services.delete_comment(user_id, event_id, comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# PUBLIC
# ============================================================================

class EventCommentsView(APIView):
    """
    GET /events/<event_id>/comments?from=0&size=10

    Published comments only, newest first.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, event_id):
        params = parse_query(request)
        comments = queries.get_published_comments(event_id, params['from'], params['size'])
        return Response(CommentSerializer(comments, many=True).data)


class EventCommentCountView(APIView):
    """GET /events/<event_id>/comments/count"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, event_id):
        return Response({
            'eventId': event_id,
            'count': queries.get_published_comments_count(event_id)
        })


class EventCommentDetailView(APIView):
    """
    GET /events/<event_id>/comments/<comment_id>

    404 unless the comment is published.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, event_id, comment_id):
        comment = queries.get_published_comment(event_id, comment_id)
        return Response(CommentSerializer(comment).data)


class RecentCommentsView(APIView):
    """GET /comments/recent?hours=24&limit=10"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        params = parse_query(request, RecentParamsSerializer)
        comments = queries.get_recent_comments(params['hours'], params['limit'])
        return Response(CommentSerializer(comments, many=True).data)


# ============================================================================
# ADMIN: moderators
# ============================================================================

class AdminCommentsView(APIView):
    """GET /admin/comments?status=PENDING&from=0&size=10"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        params = parse_query(request, StatusPageParamsSerializer)
        comments = queries.get_comments_by_status(params['status'], params['from'], params['size'])
        return Response(CommentSerializer(comments, many=True).data)


class AdminPendingCommentsView(APIView):
    """
    GET /admin/comments/pending?from=0&size=10

    The moderation queue, oldest first.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        params = parse_query(request)
        comments = queries.get_pending_comments(params['from'], params['size'])
        return Response(CommentSerializer(comments, many=True).data)


class AdminCommentSearchView(APIView):
    """GET /admin/comments/search?text=...&from=0&size=10"""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        params = parse_query(request, SearchParamsSerializer)
        comments = queries.search_comments(params['text'], params['from'], params['size'])
        return Response(CommentSerializer(comments, many=True).data)


class AdminCommentDetailView(APIView):
    """
    PATCH  /admin/comments/<comment_id>
    DELETE /admin/comments/<comment_id>

    Body of PATCH:
    {
        "status": "PUBLISHED" | "REJECTED" | "PENDING" | "DELETED",
        "moderatorMessage": "optional note for the author"
    }
    """
    permission_classes = [permissions.AllowAny]

    def patch(self, request, comment_id):
        data = parse_body(request, CommentAdminRequestSerializer)
        comment = services.moderate_comment(comment_id, data['status'], data['moderatorMessage'])
        return Response(CommentSerializer(comment).data)

    def delete(self, request, comment_id):
        services.delete_comment_by_admin(comment_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminUserCommentsView(APIView):
    """GET /admin/comments/users/<user_id>?from=0&size=10"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        params = parse_query(request)
        comments = queries.get_user_comments(user_id, params['from'], params['size'])
        return Response(CommentSerializer(comments, many=True).data)


class AdminUserCommentStatsView(APIView):
    """GET /admin/comments/users/<user_id>/stats"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, user_id):
        stats = queries.get_user_comment_stats(user_id)
        return Response(CommentStatsSerializer(stats).data)


class AdminEventCommentsView(APIView):
    """GET /admin/comments/events/<event_id>?from=0&size=10"""
    permission_classes = [permissions.AllowAny]

    def get(self, request, event_id):
        params = parse_query(request)
        comments = queries.get_all_comments_for_event(event_id, params['from'], params['size'])
        return Response(CommentSerializer(comments, many=True).data)
