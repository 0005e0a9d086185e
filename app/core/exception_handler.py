"""
DRF exception handler that renders application errors.

Wired through REST_FRAMEWORK["EXCEPTION_HANDLER"]. Any BaseApplicationError
that escapes a view becomes its to_dict() body with the error's http_status;
everything else falls through to DRF's default handling.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def application_exception_handler(exc, context):
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        logger.info(
            "Application error returned to client",
            extra={
                "error_code": exc.error_code,
                "status": exc.http_status,
                "view": view.__class__.__name__ if view else None,
            },
        )
        return Response(exc.to_dict(), status=exc.http_status)
    return drf_exception_handler(exc, context)
