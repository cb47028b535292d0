from .events import EventTransitionView
from .registrations import (
    RegisterEventView,
    CancelRegistrationView,
    EventRegistrationStatusView,
    MyRegistrationsView,
)
from .teams import (
    EventTeamCreateView,
    JoinTeamView,
    CompleteTeamView,
    TeamDetailView,
    TeamMemberRemoveView,
    LeaveTeamView,
)
from .scan import ScanTicketView
from .analytics import EventAnalyticsView
