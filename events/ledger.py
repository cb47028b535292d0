# events/ledger.py
"""
Registration Ledger.

Owns the event's seat counter and the direct registration records.
Every mutation runs in one atomic unit keyed on the event row; the seat
counter only moves through conditional UPDATEs, so two writers can never
both pass the ceiling.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import F

from .datetime_utils import is_deadline_passed, now
from .exceptions import (
    AlreadyCheckedIn,
    AlreadyOnTeam,
    AlreadyRegistered,
    CapacityExceeded,
    DeadlinePassed,
    EventNotFound,
    RegistrationClosed,
    RegistrationNotFound,
    TicketNotFound,
)
from .models import Event, EventRegistration, EventTeam, ParticipantTeamMember, Ticket
from .tickets import issue

logger = logging.getLogger('regdesk.events')

LIVE_STATUSES = (EventRegistration.STATUS_ACTIVE, EventRegistration.STATUS_ATTENDED)


def lock_event(event_id):
    try:
        return Event.objects.select_for_update().get(pk=event_id)
    except Event.DoesNotExist:
        raise EventNotFound(event_id=event_id)


def check_registration_window(event):
    """Status first, then deadline."""
    if event.status not in Event.OPEN_STATUSES:
        raise RegistrationClosed(event_id=event.id, status=event.status)
    if is_deadline_passed(event):
        raise DeadlinePassed(event_id=event.id)


def reserve_seats(event_id, count=1) -> bool:
    """
    Take `count` seats in a single conditional UPDATE.

    Returns False, and changes nothing, when fewer than `count` seats are left.
    """
    updated = Event.objects.filter(
        pk=event_id,
        registered_count__lte=F('registration_limit') - count,
    ).update(registered_count=F('registered_count') + count)
    return updated == 1


def release_seats(event_id, count=1):
    Event.objects.filter(
        pk=event_id,
        registered_count__gte=count,
    ).update(registered_count=F('registered_count') - count)


def live_record(event_id, participant_id):
    return (
        EventRegistration.objects
        .select_related('ticket')
        .filter(event_id=event_id, participant_id=participant_id)
        .exclude(status=EventRegistration.STATUS_CANCELLED)
        .first()
    )


def seat_for(event_id, participant_id):
    """
    Return whatever holds the participant's seat: a live direct record,
    an active membership of a complete team, or None.
    """
    record = live_record(event_id, participant_id)
    if record is not None:
        return record

    return (
        ParticipantTeamMember.objects
        .select_related('team')
        .filter(
            event_id=event_id,
            participant_id=participant_id,
            is_active=True,
            team__status=EventTeam.STATUS_COMPLETE,
        )
        .first()
    )


def has_seat(event_id, participant_id) -> bool:
    return seat_for(event_id, participant_id) is not None


def claim_for(event_id, participant_id):
    """
    Whatever ties the participant to the event: the seat from seat_for(),
    or an active membership of a team that is still forming.
    """
    seat = seat_for(event_id, participant_id)
    if seat is not None:
        return seat

    return (
        ParticipantTeamMember.objects
        .select_related('team')
        .filter(event_id=event_id, participant_id=participant_id, is_active=True)
        .first()
    )


def check_no_claim(event_id, participant_id):
    """
    Raise when the participant already holds, or is forming, a place in the
    event. Callers hold the event lock and handle their own same-path
    duplicates first.
    """
    claim = claim_for(event_id, participant_id)
    if isinstance(claim, EventRegistration):
        raise AlreadyRegistered(
            "You are already registered for this event individually.",
            event_id=event_id,
        )
    if claim is not None:
        raise AlreadyOnTeam(event_id=event_id, team_id=claim.team_id)


def register(event_id, participant, *, form_data=None):
    """
    Register a participant directly.

    Returns (record, created). A repeated call returns the existing live
    record with created=False.
    """
    with transaction.atomic():
        event = lock_event(event_id)
        check_registration_window(event)

        existing = live_record(event.id, participant.id)
        if existing is not None:
            return existing, False

        check_no_claim(event.id, participant.id)

        if not reserve_seats(event.id, 1):
            logger.info(f"Registration rejected, event full: event={event.id}, participant={participant.id}")
            raise CapacityExceeded(event_id=event.id, registration_limit=event.registration_limit)

        ticket, _ = issue(event, participant)

        try:
            with transaction.atomic():
                record = EventRegistration.objects.create(
                    event=event,
                    participant=participant,
                    ticket=ticket,
                    status=EventRegistration.STATUS_ACTIVE,
                    form_data=form_data or {},
                )
        except IntegrityError:
            # Lost the race on the live-record constraint; give back the seat
            release_seats(event.id, 1)
            existing = live_record(event.id, participant.id)
            if existing is None:
                raise
            return existing, False

    logger.info(
        f"Participant registered: event={event.id}, participant={participant.id}, "
        f"ticket={ticket.ticket_id}"
    )
    return record, True


def cancel(event_id, participant):
    """Cancel the participant's active record and free its seat."""
    with transaction.atomic():
        event = lock_event(event_id)

        record = (
            EventRegistration.objects
            .select_for_update()
            .filter(
                event=event,
                participant=participant,
                status=EventRegistration.STATUS_ACTIVE,
            )
            .first()
        )
        if record is None:
            raise RegistrationNotFound(event_id=event.id)

        record.status = EventRegistration.STATUS_CANCELLED
        record.save(update_fields=['status'])
        release_seats(event.id, 1)

    logger.info(f"Registration cancelled: event={event.id}, participant={participant.id}")
    return record


def _resolve_ticket(event, ticket_id):
    try:
        return (
            Ticket.objects
            .select_for_update()
            .get(event=event, ticket_id=ticket_id)
        )
    except Ticket.DoesNotExist:
        raise TicketNotFound(ticket_id=ticket_id)


def mark_attendance(event_id, ticket_id, *, attended=True, manual_override=False, override_reason=""):
    """
    Mark (or with attended=False, unmark) a ticket as checked in.

    A second scan of a checked-in ticket raises AlreadyCheckedIn unless
    manual_override is set. attendance_count moves in the same unit.
    """
    with transaction.atomic():
        event = lock_event(event_id)
        ticket = _resolve_ticket(event, ticket_id)

        seat = seat_for(event.id, ticket.participant_id)
        if seat is None:
            raise RegistrationNotFound(
                "This ticket no longer holds a seat for the event.",
                ticket_id=ticket_id,
            )

        if ticket.checked_in_at and not manual_override:
            raise AlreadyCheckedIn(
                ticket_id=ticket.ticket_id,
                scanned_at=ticket.checked_in_at.isoformat(),
            )

        was_checked_in = ticket.checked_in_at is not None
        ticket.checked_in_at = now() if attended else None
        ticket.save(update_fields=['checked_in_at'])

        if attended and not was_checked_in:
            Event.objects.filter(pk=event.id).update(attendance_count=F('attendance_count') + 1)
        elif not attended and was_checked_in:
            Event.objects.filter(pk=event.id, attendance_count__gte=1).update(
                attendance_count=F('attendance_count') - 1
            )

        if isinstance(seat, EventRegistration):
            seat.status = EventRegistration.STATUS_ATTENDED if attended else EventRegistration.STATUS_ACTIVE
            seat.attended_at = ticket.checked_in_at
            seat.manual_override = manual_override
            seat.override_reason = override_reason if manual_override else ""
            seat.save(update_fields=['status', 'attended_at', 'manual_override', 'override_reason'])

    logger.info(
        f"Attendance {'marked' if attended else 'unmarked'}: event={event.id}, "
        f"ticket={ticket.ticket_id}, override={manual_override}"
    )
    return ticket
