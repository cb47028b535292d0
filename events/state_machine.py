# events/state_machine.py
"""
State machines for events and teams.

Event lifecycle:
draft → published → ongoing → closed → completed
             └→ closed          └→ completed

Team lifecycle:
forming → complete   (terminal)
forming → cancelled  (terminal)

Any transition not in the tables below is rejected.
"""
from typing import Tuple
import logging

from .models import Event, EventTeam

logger = logging.getLogger('regdesk.events')


# Valid state transitions: from_status -> list of allowed to_statuses
VALID_TRANSITIONS = {
    Event.STATUS_DRAFT: [Event.STATUS_PUBLISHED],
    Event.STATUS_PUBLISHED: [Event.STATUS_ONGOING, Event.STATUS_CLOSED],
    Event.STATUS_ONGOING: [Event.STATUS_CLOSED, Event.STATUS_COMPLETED],
    Event.STATUS_CLOSED: [Event.STATUS_COMPLETED],
    Event.STATUS_COMPLETED: [],
}

TEAM_TRANSITIONS = {
    EventTeam.STATUS_FORMING: [EventTeam.STATUS_COMPLETE, EventTeam.STATUS_CANCELLED],
    EventTeam.STATUS_COMPLETE: [],
    EventTeam.STATUS_CANCELLED: [],
}


def can_transition(event: Event, new_status: str) -> Tuple[bool, str]:
    """
    Check if an event can transition to a new status.

    Returns (can_transition: bool, reason: str)
    """
    current_status = event.status

    if new_status == current_status:
        return True, "Same status"

    if new_status not in dict(Event.STATUS_CHOICES):
        return False, f"Invalid status: {new_status}"

    allowed = VALID_TRANSITIONS.get(current_status, [])

    if new_status not in allowed:
        return False, f"Cannot transition from '{current_status}' to '{new_status}'"

    return True, ""


def transition(event: Event, new_status: str, actor=None, save: bool = True) -> Tuple[bool, str]:
    """
    Attempt to transition an event to a new status.

    Only the status column is written, so the aggregate counters are never
    overwritten with stale in-memory values.

    Returns (success: bool, message: str)
    """
    can, reason = can_transition(event, new_status)

    if not can:
        logger.warning(
            f"Invalid state transition attempted: event={event.id}, "
            f"from={event.status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}. "
            f"Reason: {reason}"
        )
        return False, reason

    old_status = event.status
    event.status = new_status

    if save:
        event.save(update_fields=['status'])

    logger.info(
        f"Event state transition: event={event.id}, "
        f"from={old_status}, to={new_status}, actor={getattr(actor, 'id', 'unknown')}"
    )

    return True, f"Transitioned from '{old_status}' to '{new_status}'"


def get_allowed_transitions(event: Event) -> list:
    return VALID_TRANSITIONS.get(event.status, [])


def can_transition_team(team: EventTeam, new_status: str) -> Tuple[bool, str]:
    allowed = TEAM_TRANSITIONS.get(team.status, [])
    if new_status not in allowed:
        return False, f"Team cannot go from '{team.status}' to '{new_status}'"
    return True, ""


def is_terminal_team_status(status: str) -> bool:
    return not TEAM_TRANSITIONS.get(status)


def validate_action_for_status(event: Event, action: str) -> Tuple[bool, str]:
    """
    Validate if an action is allowed given the event's current status.

    - 'register' / 'form_team': event must be Published or Ongoing
    - 'scan_attendance': event must be Published, Ongoing or Closed
    """
    status = event.status

    if action in ('register', 'form_team'):
        if status not in Event.OPEN_STATUSES:
            return False, "Registration is only open for published or ongoing events"
        return True, ""

    elif action == 'scan_attendance':
        if status not in (Event.STATUS_PUBLISHED, Event.STATUS_ONGOING, Event.STATUS_CLOSED):
            return False, "Attendance can only be marked for published, ongoing or closed events"
        return True, ""

    return True, ""  # Unknown actions are allowed by default
