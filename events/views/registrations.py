from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.analytics import my_registrations
from events.catalog import EventCatalog
from events.coordinator import RegistrationPath, registration_path
from events.ledger import seat_for
from events.models import EventRegistration
from events.serializers import RegisterRequestSerializer, RegistrationSerializer, EventTeamSerializer
from events.team_registry import team_for
from .generics import auth_context, get_coordinator, validation_error


class RegisterEventView(APIView):
    """
    POST /api/events/<event_id>/register/

    Direct registration. Returns {ticket_id, token, registration_id};
    201 for a new registration, 200 when the participant was already
    registered.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        serializer = RegisterRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer)

        record, created = get_coordinator().register(
            auth_context(request),
            event_id,
            form_data=serializer.validated_data.get("form_data"),
            payment_reference=serializer.validated_data.get("payment_reference"),
        )

        return Response(
            {
                "ticket_id": record.ticket.ticket_id,
                "token": record.ticket.display_token,
                "registration_id": record.id,
                "status": record.status,
                "created": created,
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class CancelRegistrationView(APIView):
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        record = get_coordinator().cancel_registration(auth_context(request), event_id)
        return Response(
            {"registration_id": record.id, "status": record.status},
            status=status.HTTP_200_OK,
        )


class EventRegistrationStatusView(APIView):
    """
    GET /api/events/<event_id>/registration/

    Seat status for the current participant across both paths.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        snapshot = EventCatalog().get(event_id)
        seat = seat_for(snapshot.id, request.user.id)

        data = {
            "event_id": snapshot.id,
            "registration_path": registration_path(snapshot).value,
            "has_seat": seat is not None,
            "registration": None,
            "team": None,
        }

        if isinstance(seat, EventRegistration):
            data["registration"] = RegistrationSerializer(seat).data

        if registration_path(snapshot) == RegistrationPath.TEAM:
            team = team_for(snapshot.id, request.user.id)
            if team is not None:
                data["team"] = EventTeamSerializer(team).data

        return Response(data, status=status.HTTP_200_OK)


class MyRegistrationsView(APIView):
    """
    GET /api/events/me/registrations/

    Every event the participant holds (or is forming) a seat for.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(my_registrations(request.user), status=status.HTTP_200_OK)
