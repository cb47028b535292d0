from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework import status
import logging

from events.exceptions import RegistrationError

logger = logging.getLogger("regdesk")


def custom_exception_handler(exc, context):
    """
    Wrap DRF, Django and registration errors into one response envelope:

        {"success": false, "status_code": <int>, "errors": {...}}

    Registration errors already carry {"detail", "code", "category"}.
    Only errors come through here.
    """
    if isinstance(exc, DjangoValidationError):
        # Model-level guards (e.g. immutable registration_limit)
        exc = ValidationError(detail={"detail": exc.messages})

    response = drf_exception_handler(exc, context)

    if response is not None:
        if isinstance(exc, RegistrationError):
            view = context.get("view")
            logger.info(
                f"Registration error {exc.default_code} ({exc.category}) "
                f"in {view.__class__.__name__ if view else 'unknown view'}: {exc}"
            )
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": response.data,
            },
            status=response.status_code,
            headers={
                name: response[name]
                for name in ("WWW-Authenticate", "Retry-After")
                if response.has_header(name)
            },
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
