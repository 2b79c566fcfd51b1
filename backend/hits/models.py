"""
Hit log for endpoint statistics.

EndpointHit is an append-only record of one access to an application URI:
- NEVER update or delete rows from the service
- Statistics are aggregated from the log at query time, no stored counters
- Duplicate submissions are kept as separate rows

Indexes Strategy:
-----------------
- timestamp: range filter of every stats query
- uri + timestamp: stats queries filtered by a URI list
"""

from django.db import models


class EndpointHit(models.Model):
    """One recorded access to `uri` of service `app` from `ip`."""

    app = models.CharField(max_length=255)
    uri = models.CharField(max_length=512)
    ip = models.CharField(max_length=45)
    timestamp = models.DateTimeField(db_index=True)

    class Meta:
        indexes = [
            models.Index(fields=['uri', 'timestamp'], name='hits_uri_ts_idx'),
        ]

    def __str__(self):
        return f"{self.app} {self.uri} from {self.ip} at {self.timestamp}"
