# events/policies.py
"""
Centralized policy layer for registration.

All role and eligibility checks live here. The coordinator and the views
call these instead of inlining permission logic. Checks take an
AuthContext (or anything with participant_id/role) rather than a request.
"""
from typing import Tuple

from users.models import User
from .models import Event


class EventPolicy:

    @staticmethod
    def is_system_admin(auth) -> bool:
        return auth is not None and auth.role == User.ROLE_ADMIN

    @staticmethod
    def is_event_organizer(auth, event) -> bool:
        """`event` may be an Event or an EventSnapshot."""
        if auth is None or event is None:
            return False
        return event.organizer_id == auth.participant_id

    @staticmethod
    def can_manage_event(auth, event) -> Tuple[bool, str]:
        """Scanning, analytics and lifecycle transitions."""
        if EventPolicy.is_system_admin(auth):
            return True, ""
        if EventPolicy.is_event_organizer(auth, event):
            return True, ""
        return False, "You do not have permission to manage this event"

    @staticmethod
    def is_eligible(participant, event) -> Tuple[bool, str]:
        eligibility = event.eligibility

        if eligibility == Event.ELIGIBILITY_ALL:
            return True, ""

        if eligibility == Event.ELIGIBILITY_INTERNAL and participant.participant_type != User.TYPE_INTERNAL:
            return False, "This event is open to internal participants only"

        if eligibility == Event.ELIGIBILITY_EXTERNAL and participant.participant_type != User.TYPE_EXTERNAL:
            return False, "This event is open to external participants only"

        return True, ""
