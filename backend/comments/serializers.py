"""
DRF Serializers for comments
============================

Serializers handle:
1. Shape and format checks of incoming bodies and query strings
2. Transformation of Comment instances to the CommentDto JSON shape

DESIGN DECISIONS:
-----------------
1. Plain Serializer with every field listed, no ModelSerializer: the wire
   names (eventId, authorName, ...) differ from the model fields anyway
2. Text length rules are NOT checked here, the service owns them
3. A null moderation status passes through; the service rejects it
"""

from rest_framework import serializers

from .models import CommentStatus

PUBLIC_MAX_PAGE_SIZE = 50


class CommentSerializer(serializers.Serializer):
    """CommentDto."""
    id = serializers.IntegerField(read_only=True)
    text = serializers.CharField()
    eventId = serializers.IntegerField(source='event_id')
    authorId = serializers.IntegerField(source='author_id')
    authorName = serializers.CharField(source='author_name')
    status = serializers.CharField()
    created = serializers.DateTimeField()
    edited = serializers.DateTimeField(allow_null=True)
    moderatorMessage = serializers.CharField(source='moderator_message', allow_null=True)


class NewCommentSerializer(serializers.Serializer):
    """Body of comment create and edit."""
    text = serializers.CharField(allow_blank=True, trim_whitespace=False)


class CommentAdminRequestSerializer(serializers.Serializer):
    """Body of PATCH /admin/comments/{id}."""
    status = serializers.ChoiceField(
        choices=CommentStatus.choices,
        allow_null=True,
        required=False,
        default=None
    )
    moderatorMessage = serializers.CharField(
        allow_null=True,
        allow_blank=True,
        required=False,
        default=None
    )


class PageParamsSerializer(serializers.Serializer):
    """
    ?from=0&size=10

    `from` is a Python keyword, so the field is added in get_fields().
    """
    size = serializers.IntegerField(min_value=1, max_value=PUBLIC_MAX_PAGE_SIZE, default=10)

    def get_fields(self):
        fields = super().get_fields()
        fields['from'] = serializers.IntegerField(min_value=0, default=0)
        return fields


class StatusPageParamsSerializer(PageParamsSerializer):
    status = serializers.ChoiceField(choices=CommentStatus.choices, default=CommentStatus.PENDING)


class SearchParamsSerializer(PageParamsSerializer):
    text = serializers.CharField()


class RecentParamsSerializer(serializers.Serializer):
    hours = serializers.IntegerField(min_value=1, default=24)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=10)


class CommentStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    published = serializers.IntegerField()
    pending = serializers.IntegerField()
    rejected = serializers.IntegerField()
