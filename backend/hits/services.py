"""
Hit recording.

Every call appends one row. There is no idempotency key: the same hit
submitted twice is stored twice.
"""

import logging
from datetime import datetime

from ewmstats.errors import ValidationFailedError

from .models import EndpointHit

logger = logging.getLogger(__name__)


def _require(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationFailedError(f"{field} cannot be blank")
    return str(value).strip()


def record_hit(app: str, uri: str, ip: str, timestamp: datetime) -> EndpointHit:
    """
    Append one hit to the log.

    Raises:
        ValidationFailedError: if any field is missing or blank.
    """
    app = _require(app, 'app')
    uri = _require(uri, 'uri')
    ip = _require(ip, 'ip')
    if timestamp is None:
        raise ValidationFailedError("timestamp cannot be null")

    hit = EndpointHit.objects.create(app=app, uri=uri, ip=ip, timestamp=timestamp)
    logger.debug("Recorded hit id=%s app=%s uri=%s ip=%s", hit.id, app, uri, ip)
    return hit
