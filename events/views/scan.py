from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.serializers import ScanTicketSerializer
from .generics import auth_context, get_coordinator, validation_error


class ScanTicketView(APIView):
    """
    POST /api/events/<event_id>/scan/
    Body: {"ticket_id": "TICKET-..."} or {"token": "<scanned QR payload>"}

    Organizer/admin only. A second scan of the same ticket is rejected
    unless manual_override is set with an override_reason.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "ticket-scan"

    def post(self, request, event_id):
        serializer = ScanTicketSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer)

        data = serializer.validated_data
        ticket = get_coordinator().check_in(
            auth_context(request),
            event_id,
            ticket_id=data.get("ticket_id") or None,
            token=data.get("token") or None,
            attended=data["attended"],
            manual_override=data["manual_override"],
            override_reason=data["override_reason"],
        )

        return Response(
            {
                "ticket_id": ticket.ticket_id,
                "participant_id": ticket.participant_id,
                "participant": ticket.participant.username,
                "team_id": ticket.team_id,
                "checked_in_at": ticket.checked_in_at,
                "attended": ticket.checked_in_at is not None,
            },
            status=status.HTTP_200_OK,
        )
