"""
DRF Views for hit recording and statistics.
"""

import logging

from rest_framework import status, permissions
from rest_framework.views import APIView
from rest_framework.response import Response

from .aggregation import get_stats
from .serializers import EndpointHitSerializer, StatsQuerySerializer, ViewStatsSerializer
from .services import record_hit

logger = logging.getLogger(__name__)


def parse_uris(query_params) -> list[str] | None:
    """
    Read the `uris` filter.

    Accepts both `?uris=/a&uris=/b` and `?uris=/a,/b`. Returns None when
    the parameter is absent, so that "no filter" and "empty filter" stay
    distinguishable.
    """
    if 'uris' not in query_params:
        return None
    uris = []
    for value in query_params.getlist('uris'):
        uris.extend(part.strip() for part in value.split(','))
    return uris


class HitView(APIView):
    """
    POST /hit

    Record one endpoint access.

    Body:
    {
        "app": "ewm-main-service",
        "uri": "/events/1",
        "ip": "192.163.0.1",
        "timestamp": "2022-09-06 11:00:23"
    }
    """
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = EndpointHitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        logger.info("POST /hit: app=%s, uri=%s, ip=%s", data['app'], data['uri'], data['ip'])
        record_hit(data['app'], data['uri'], data['ip'], data['timestamp'])

        return Response(status=status.HTTP_201_CREATED)


class StatsView(APIView):
    """
    GET /stats?start=...&end=...&uris=...&unique=false

    Returns [{app, uri, hits}] sorted by hits descending.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        serializer = StatsQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        params = serializer.validated_data
        uris = parse_uris(request.query_params)

        logger.info(
            "GET /stats: start=%s, end=%s, uris=%s, unique=%s",
            params['start'], params['end'], uris, params['unique']
        )
        stats = get_stats(params['start'], params['end'], uris, params['unique'])

        return Response(ViewStatsSerializer(stats, many=True).data)
