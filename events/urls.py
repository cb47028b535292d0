from django.urls import path
from .views import (
    RegisterEventView,
    CancelRegistrationView,
    EventRegistrationStatusView,
    MyRegistrationsView,
    EventTeamCreateView,
    JoinTeamView,
    CompleteTeamView,
    TeamDetailView,
    TeamMemberRemoveView,
    LeaveTeamView,
    ScanTicketView,
    EventAnalyticsView,
    EventTransitionView,
)

urlpatterns = [
    # Direct registration
    path(
        "<int:event_id>/register/",
        RegisterEventView.as_view(),
        name="event-register",
    ),
    path(
        "<int:event_id>/cancel/",
        CancelRegistrationView.as_view(),
        name="event-cancel",
    ),

    # Registration status (GET ONLY)
    path(
        "<int:event_id>/registration/",
        EventRegistrationStatusView.as_view(),
        name="event-registration-status",
    ),

    # Team formation
    path("<int:event_id>/teams/", EventTeamCreateView.as_view(), name="event-team-create"),
    path("teams/join/", JoinTeamView.as_view(), name="team-join"),
    path("teams/<int:team_id>/", TeamDetailView.as_view(), name="team-detail"),
    path("teams/<int:team_id>/complete/", CompleteTeamView.as_view(), name="team-complete"),
    path("teams/<int:team_id>/leave/", LeaveTeamView.as_view(), name="team-leave"),
    path(
        "teams/<int:team_id>/members/<int:member_id>/",
        TeamMemberRemoveView.as_view(),
        name="team-member-remove",
    ),

    # QR + attendance
    path("<int:event_id>/scan/", ScanTicketView.as_view(), name="ticket-scan"),

    # Organizer
    path("<int:event_id>/analytics/", EventAnalyticsView.as_view(), name="event-analytics"),
    path("<int:event_id>/transition/", EventTransitionView.as_view(), name="event-transition"),

    # "My" dashboards
    path("me/registrations/", MyRegistrationsView.as_view(), name="my-registrations"),
]
