"""
Custom Exception Handler for DRF

Translates service errors and framework exceptions into a consistent
error response format across the API.
"""
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from rest_framework.exceptions import ValidationError as DRFValidationError
from django.conf import settings
from django.db import IntegrityError
from django.utils import timezone
import logging

from .errors import (
    ServiceError,
    BadRequestError,
    ValidationFailedError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
)

logger = logging.getLogger(__name__)


ERROR_STATUS = {
    BadRequestError: status.HTTP_400_BAD_REQUEST,
    ValidationFailedError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
}


def status_for(exc: ServiceError) -> int:
    """Most specific mapped status for a service error (walks the MRO)."""
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS:
            return ERROR_STATUS[klass]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def flatten_field_errors(detail, prefix='') -> list[str]:
    """
    Turn DRF's nested error detail into "field: message" strings.
    """
    if isinstance(detail, dict):
        errors = []
        for field, value in detail.items():
            name = f"{prefix}.{field}" if prefix else str(field)
            errors.extend(flatten_field_errors(value, name))
        return errors
    if isinstance(detail, list):
        errors = []
        for item in detail:
            errors.extend(flatten_field_errors(item, prefix))
        return errors
    if prefix and prefix != 'non_field_errors':
        return [f"{prefix}: {detail}"]
    return [str(detail)]


def custom_exception_handler(exc, context):
    """
    Custom exception handler that:
    1. Maps service errors to HTTP statuses
    2. Collects field validation failures into one response
    3. Converts Django exceptions to DRF responses
    4. Logs everything it handles
    """

    if isinstance(exc, ServiceError):
        code = status_for(exc)
        logger.warning("%s: %s", type(exc).__name__, exc.message)
        return Response({'error': exc.message}, status=code)

    if isinstance(exc, DRFValidationError):
        errors = flatten_field_errors(exc.detail)
        logger.warning("Validation errors: %s", errors)
        return Response(
            {
                'errors': errors,
                'message': 'Validation failed',
                'timestamp': timezone.now().strftime(settings.DATETIME_FORMAT_API),
                'status': 'BAD_REQUEST',
            },
            status=status.HTTP_400_BAD_REQUEST
        )

    # Call DRF's default exception handler for the rest of its exceptions
    response = exception_handler(exc, context)

    if response is not None:
        if not isinstance(response.data, dict) or 'error' not in response.data:
            response.data = {
                'error': str(exc),
                'details': response.data
            }
        return response

    if isinstance(exc, IntegrityError):
        logger.warning("IntegrityError: %s", exc)
        return Response(
            {'error': 'Data integrity violation'},
            status=status.HTTP_409_CONFLICT
        )

    if isinstance(exc, ValueError):
        logger.warning("ValueError: %s", exc)
        return Response(
            {'error': str(exc)},
            status=status.HTTP_400_BAD_REQUEST
        )

    logger.exception("Unhandled exception: %s", exc)

    # Generic error, internal details stay in the log
    return Response(
        {'error': 'An unexpected error occurred.'},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
