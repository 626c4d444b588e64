# common/api.py

"""
API ERROR NORMALIZATION

All storefront endpoints render domain errors as:

    {"error": {"code": "...", "message": "...", "details": [...]}}
"""

from __future__ import annotations

import logging

from rest_framework import status
from rest_framework.response import Response

from common.exceptions import (
    InsufficientInventoryError,
    InvalidStateError,
    InvalidStatusTransitionError,
    NotFoundError,
    StorefrontError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientInventoryError, status.HTTP_409_CONFLICT),
    (InvalidStatusTransitionError, status.HTTP_400_BAD_REQUEST),
    (InvalidStateError, status.HTTP_400_BAD_REQUEST),
)


def error_response(*, code: str, message: str, http_status: int, details=None):
    return Response(
        {"error": {"code": code, "message": message, "details": list(details or [])}},
        status=http_status,
    )


def domain_error_response(exc: StorefrontError):
    for error_cls, http_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            return error_response(
                code=exc.code,
                message=exc.message,
                details=exc.details,
                http_status=http_status,
            )

    logger.error("Unhandled storefront error", extra={"code": exc.code, "error": exc.message})
    return error_response(
        code=exc.code,
        message=exc.message,
        details=exc.details,
        http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
