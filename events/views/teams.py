# events/views/teams.py - Team Formation API Views

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.authentication import SessionAuthentication, BasicAuthentication
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework import status

from events.exceptions import TeamNotFound
from events.models import EventTeam
from events.serializers import (
    CompleteTeamSerializer,
    CreateTeamSerializer,
    EventTeamSerializer,
    JoinTeamSerializer,
)
from .generics import auth_context, get_coordinator, validation_error


class EventTeamCreateView(APIView):
    """
    POST /api/events/<event_id>/teams/
    Body: {"target_size": 3, "name": "..."}

    Returns {team_id, invite_code}; 201 for a new team, 200 when the
    caller already leads or belongs to one.
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, event_id):
        serializer = CreateTeamSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer)

        team, created = get_coordinator().create_team(
            auth_context(request),
            event_id,
            serializer.validated_data["target_size"],
            name=serializer.validated_data.get("name", ""),
            payment_reference=serializer.validated_data.get("payment_reference"),
        )

        data = EventTeamSerializer(team).data
        return Response(data, status=status.HTTP_201_CREATED if created else status.HTTP_200_OK)


class JoinTeamView(APIView):
    """
    Join a team via invite code

    POST /api/events/teams/join/
    Body: {"invite_code": "A1B2C3D4E5F6"}
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = JoinTeamSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer)

        team, joined = get_coordinator().join_team(
            auth_context(request),
            serializer.validated_data["invite_code"],
            payment_reference=serializer.validated_data.get("payment_reference"),
        )

        data = EventTeamSerializer(team).data
        data["joined"] = joined
        return Response(data, status=status.HTTP_201_CREATED if joined else status.HTTP_200_OK)


class CompleteTeamView(APIView):
    """
    Complete registration (team leader only)

    POST /api/events/teams/<team_id>/complete/
    Body: {"form_data": {...}}  optional leader answers
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def post(self, request, team_id):
        serializer = CompleteTeamSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_error(serializer)

        team, tickets, completed_now = get_coordinator().complete_team(
            auth_context(request),
            team_id,
            form_data=serializer.validated_data.get("form_data"),
        )

        return Response(
            {
                "team_id": team.id,
                "status": team.status,
                "completed_now": completed_now,
                "tickets": [
                    {
                        "participant_id": t.participant_id,
                        "ticket_id": t.ticket_id,
                        "token": t.display_token,
                    }
                    for t in tickets
                ],
            },
            status=status.HTTP_200_OK,
        )


class TeamDetailView(APIView):
    """
    GET    /api/events/teams/<team_id>/   team detail (members only)
    DELETE /api/events/teams/<team_id>/   cancel a forming team (leader only)
    """
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def get(self, request, team_id):
        try:
            team = EventTeam.objects.select_related("event", "leader").get(pk=team_id)
        except EventTeam.DoesNotExist:
            raise TeamNotFound(team_id=team_id)

        is_member = team.members.filter(participant=request.user, is_active=True).exists()
        if not is_member and team.event.organizer_id != request.user.id:
            # Invite codes are the only way in, so outsiders don't get to see them
            raise TeamNotFound(team_id=team_id)

        return Response(EventTeamSerializer(team).data, status=status.HTTP_200_OK)

    def delete(self, request, team_id):
        team = get_coordinator().cancel_team(auth_context(request), team_id)
        return Response({"team_id": team.id, "status": team.status}, status=status.HTTP_200_OK)


class TeamMemberRemoveView(APIView):
    """Remove a member from a forming team (team leader only)"""
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def delete(self, request, team_id, member_id):
        get_coordinator().remove_member(auth_context(request), team_id, member_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


class LeaveTeamView(APIView):
    """Leave a team (members only, leaders cannot leave)"""
    authentication_classes = [JWTAuthentication, SessionAuthentication, BasicAuthentication]
    permission_classes = [IsAuthenticated]

    def delete(self, request, team_id):
        get_coordinator().leave_team(auth_context(request), team_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
