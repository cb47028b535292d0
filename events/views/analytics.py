from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.analytics import get_event_stats
from events.exceptions import EventNotFound, NotEventManager
from events.models import Event
from events.policies import EventPolicy
from events.serializers import EventSerializer
from .generics import auth_context


class EventAnalyticsView(APIView):
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, event_id):
        try:
            event = Event.objects.select_related("organizer").get(pk=event_id)
        except Event.DoesNotExist:
            raise EventNotFound(event_id=event_id)

        ok, reason = EventPolicy.can_manage_event(auth_context(request), event)
        if not ok:
            raise NotEventManager(reason, event_id=event.id)

        data = {
            "event": EventSerializer(event).data,
            "stats": get_event_stats(event=event),
        }
        return Response(data, status=status.HTTP_200_OK)
