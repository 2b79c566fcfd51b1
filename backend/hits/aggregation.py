"""
View Statistics Query
=====================

Aggregates the hit log into per (app, uri) view counts.

QUERY STRATEGY:
---------------
1. Filter EndpointHit by start <= timestamp <= end
2. Optionally filter by uri IN (...)
3. Group by (app, uri)
4. Count rows, or distinct IPs for unique stats
5. Order by count descending, then app and uri ascending

The tie-break on (app, uri) keeps the output deterministic when several
endpoints have the same number of hits.
"""

from datetime import datetime
from typing import Iterable, List, TypedDict

from django.db.models import Count

from ewmstats.errors import InvalidRangeError

from .models import EndpointHit


class ViewStat(TypedDict):
    """One row of the stats response."""
    app: str
    uri: str
    hits: int


def get_stats(
    start: datetime,
    end: datetime,
    uris: Iterable[str] | None = None,
    unique: bool = False,
) -> List[ViewStat]:
    """
    Count hits per (app, uri) in the inclusive range [start, end].

    `uris=None` means no filter. An explicit empty collection matches
    nothing and yields an empty list.

    DJANGO ORM QUERY:
    -----------------
    EndpointHit.objects
        .filter(timestamp__range=(start, end), uri__in=uris)
        .values('app', 'uri')
        .annotate(hits=Count('ip', distinct=unique))
        .order_by('-hits', 'app', 'uri')

    EQUIVALENT SQL:
    ---------------
    SELECT app, uri, COUNT([DISTINCT] ip) AS hits
    FROM hits_endpointhit
    WHERE timestamp BETWEEN %s AND %s
      AND uri IN (...)
    GROUP BY app, uri
    ORDER BY hits DESC, app ASC, uri ASC;

    Raises:
        InvalidRangeError: if start is after end.
    """
    if start > end:
        raise InvalidRangeError()

    queryset = EndpointHit.objects.filter(timestamp__range=(start, end))

    if uris is not None:
        uris = list(uris)
        if not uris:
            return []
        queryset = queryset.filter(uri__in=uris)

    rows = (
        queryset
        .values('app', 'uri')
        .annotate(hits=Count('ip', distinct=unique))
        .order_by('-hits', 'app', 'uri')
    )

    return [
        {'app': row['app'], 'uri': row['uri'], 'hits': row['hits']}
        for row in rows
    ]
