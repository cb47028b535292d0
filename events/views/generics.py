from rest_framework.response import Response
from rest_framework import status

from events.coordinator import AuthContext, RegistrationCoordinator

_coordinator = None


def api_error(message, status_code=status.HTTP_400_BAD_REQUEST):
    """
    Small helper to standardize request-shape errors across the events app.
    Uses the same envelope as core.exceptions.custom_exception_handler;
    `message` is a string or a field -> errors mapping.
    """
    errors = message if isinstance(message, dict) else {"detail": message}
    return Response(
        {
            "success": False,
            "status_code": status_code,
            "errors": errors,
        },
        status=status_code,
    )


def validation_error(serializer):
    return api_error(dict(serializer.errors))


def get_coordinator() -> RegistrationCoordinator:
    global _coordinator
    if _coordinator is None:
        _coordinator = RegistrationCoordinator()
    return _coordinator


def auth_context(request) -> AuthContext:
    return AuthContext.from_user(request.user)
