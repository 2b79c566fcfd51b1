"""
DRF Serializers for the hit log.

Input serializers only check shape and format; the service layer owns
the business rules.
"""

from rest_framework import serializers


class EndpointHitSerializer(serializers.Serializer):
    """Body of POST /hit."""
    app = serializers.CharField(max_length=255)
    uri = serializers.CharField(max_length=512)
    ip = serializers.CharField(max_length=45)
    timestamp = serializers.DateTimeField()


class StatsQuerySerializer(serializers.Serializer):
    """
    Query string of GET /stats.

    `uris` is read separately by the view because it is a repeatable
    parameter.
    """
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    unique = serializers.BooleanField(default=False)


class ViewStatsSerializer(serializers.Serializer):
    app = serializers.CharField()
    uri = serializers.CharField()
    hits = serializers.IntegerField()
