import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InternalError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal error while accessing the assignment store."
    default_code = 'internal_error'


def api_exception_handler(exc, context):
    """DRF exception handler that also maps model-level and database failures."""
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(detail={"detail": exc.messages[0] if len(exc.messages) == 1 else exc.messages})
    elif isinstance(exc, DatabaseError):
        view = context.get('view')
        logger.error(f"Database error in {view.__class__.__name__ if view else 'unknown view'}: {exc}")
        exc = InternalError()

    response = exception_handler(exc, context)
    # Bare-message validation errors come back as {"detail": ...} like every other error.
    if response is not None and isinstance(response.data, list):
        messages = response.data
        response.data = {"detail": messages[0] if len(messages) == 1 else messages}
    return response
