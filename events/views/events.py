from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.serializers import EventSerializer, TransitionSerializer
from events.state_machine import get_allowed_transitions
from .generics import auth_context, get_coordinator, validation_error


class EventTransitionView(APIView):
    """
    POST /api/events/<event_id>/transition/
    Body: {"status": "published"}

    Moves the event along its lifecycle (organizer/admin only).
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        serializer = TransitionSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer)

        event = get_coordinator().transition_event(
            auth_context(request),
            event_id,
            serializer.validated_data["status"],
        )

        data = EventSerializer(event).data
        data["allowed_transitions"] = get_allowed_transitions(event)
        return Response(data, status=status.HTTP_200_OK)
