# events/coordinator.py
"""
Registration Coordinator.

Entry point for every registration operation. It resolves the event once
from the catalog, dispatches on the event's registration path, runs the
cheap precondition checks in a fixed order:

    existence -> path / eligibility -> payment approval -> status
    -> deadline -> dedup -> capacity / size

and leaves the last four to the ledger or team registry, which repeat
them under the event or team lock. Display tokens are rendered once the
atomic unit has returned and notifications are scheduled on commit, so a
failure in either never unwinds a registration.
"""
import enum
import logging
from dataclasses import dataclass

from django.contrib.auth import get_user_model
from django.core import signing
from django.db import transaction

from . import ledger, team_registry
from .catalog import EventCatalog
from .exceptions import (
    EventNotFound,
    InvalidInviteCode,
    InvalidTransition,
    NotEligible,
    NotEventManager,
    PaymentNotApproved,
    RegistrationClosed,
    TeamNotFound,
    TicketNotFound,
    WrongRegistrationPath,
)
from .models import Event, EventTeam
from .policies import EventPolicy
from .state_machine import transition, validate_action_for_status
from .tasks import notify_registration_complete
from .tickets import attach_display_token, encode_ticket_token, verify_ticket_token

logger = logging.getLogger('regdesk.events')


class RegistrationPath(enum.Enum):
    DIRECT = "direct"
    TEAM = "team"


PATH_BY_EVENT_TYPE = {
    Event.TYPE_NORMAL: RegistrationPath.DIRECT,
    Event.TYPE_MERCHANDISE: RegistrationPath.DIRECT,
    Event.TYPE_HACKATHON: RegistrationPath.TEAM,
}


def registration_path(event) -> RegistrationPath:
    return PATH_BY_EVENT_TYPE.get(event.event_type, RegistrationPath.DIRECT)


@dataclass(frozen=True)
class AuthContext:
    participant_id: int
    role: str

    @classmethod
    def from_user(cls, user):
        role = getattr(user, "role", None) or get_user_model().ROLE_PARTICIPANT
        if user.is_superuser:
            role = get_user_model().ROLE_ADMIN
        return cls(participant_id=user.id, role=role)


def approve_with_reference(event, participant, payment_reference) -> bool:
    """
    Default payment gate: free events pass, paid events need the reference
    handed back by the payment provider.
    """
    if not event.is_paid:
        return True
    return bool(payment_reference and str(payment_reference).strip())


class RegistrationCoordinator:

    def __init__(
        self,
        encoder=encode_ticket_token,
        notifier=notify_registration_complete,
        catalog=None,
        payment_approver=approve_with_reference,
    ):
        self.encoder = encoder
        self.notifier = notifier
        self.catalog = catalog or EventCatalog()
        self.payment_approver = payment_approver

    # ─────────────────────────────────────────────────────────────
    # Shared checks
    # ─────────────────────────────────────────────────────────────

    def _participant(self, auth):
        try:
            return get_user_model().objects.get(pk=auth.participant_id)
        except get_user_model().DoesNotExist:
            raise NotEligible("Unknown participant.", participant_id=auth.participant_id)

    def _require_path(self, snapshot, path):
        actual = registration_path(snapshot)
        if actual != path:
            if actual == RegistrationPath.TEAM:
                message = "This event only accepts team registrations."
            else:
                message = "This event does not accept team registrations."
            raise WrongRegistrationPath(message, event_id=snapshot.id, registration_path=actual.value)

    def _check_entry(self, snapshot, participant, payment_reference):
        ok, reason = EventPolicy.is_eligible(participant, snapshot)
        if not ok:
            raise NotEligible(reason, event_id=snapshot.id)

        if not self.payment_approver(snapshot, participant, payment_reference):
            raise PaymentNotApproved(event_id=snapshot.id)

    def _require_manager(self, auth, snapshot):
        ok, reason = EventPolicy.can_manage_event(auth, snapshot)
        if not ok:
            raise NotEventManager(reason, event_id=snapshot.id)

    def _team_snapshot(self, team_id):
        try:
            event_id = EventTeam.objects.values_list("event_id", flat=True).get(pk=team_id)
        except (EventTeam.DoesNotExist, ValueError, TypeError):
            raise TeamNotFound(team_id=team_id)
        return self.catalog.get(event_id)

    # ─────────────────────────────────────────────────────────────
    # After-commit work
    # ─────────────────────────────────────────────────────────────

    def _attach_tokens(self, tickets):
        for ticket in tickets:
            attach_display_token(ticket, self.encoder)

    def _schedule_notifications(self, tickets):
        notifications = [(t.participant_id, t.event_id, t.ticket_id) for t in tickets]

        def _send():
            for participant_id, event_id, ticket_id in notifications:
                try:
                    self.notifier(participant_id, event_id, ticket_id)
                except Exception as e:
                    logger.warning(
                        f"Registration notification failed: participant={participant_id}, "
                        f"event={event_id}, ticket={ticket_id}: {e}"
                    )

        transaction.on_commit(_send)

    # ─────────────────────────────────────────────────────────────
    # Direct path
    # ─────────────────────────────────────────────────────────────

    def register(self, auth, event_id, *, form_data=None, payment_reference=None):
        """Returns (record, created); record.ticket carries the display token."""
        snapshot = self.catalog.get(event_id)
        self._require_path(snapshot, RegistrationPath.DIRECT)
        participant = self._participant(auth)
        self._check_entry(snapshot, participant, payment_reference)

        record, created = ledger.register(snapshot.id, participant, form_data=form_data)

        self._attach_tokens([record.ticket])
        if created:
            self._schedule_notifications([record.ticket])
        return record, created

    def cancel_registration(self, auth, event_id):
        snapshot = self.catalog.get(event_id)
        self._require_path(snapshot, RegistrationPath.DIRECT)
        return ledger.cancel(snapshot.id, self._participant(auth))

    # ─────────────────────────────────────────────────────────────
    # Team path
    # ─────────────────────────────────────────────────────────────

    def create_team(self, auth, event_id, target_size, *, name="", payment_reference=None):
        snapshot = self.catalog.get(event_id)
        self._require_path(snapshot, RegistrationPath.TEAM)
        leader = self._participant(auth)
        self._check_entry(snapshot, leader, payment_reference)

        return team_registry.create_team(snapshot.id, leader, target_size, name=name)

    def join_team(self, auth, invite_code, *, payment_reference=None):
        code = (invite_code or "").strip().upper()
        try:
            event_id = EventTeam.objects.values_list("event_id", flat=True).get(invite_code=code)
        except EventTeam.DoesNotExist:
            raise InvalidInviteCode()

        try:
            snapshot = self.catalog.get(event_id)
        except EventNotFound:
            raise InvalidInviteCode()
        self._require_path(snapshot, RegistrationPath.TEAM)
        participant = self._participant(auth)
        self._check_entry(snapshot, participant, payment_reference)

        return team_registry.join_team(code, participant)

    def complete_team(self, auth, team_id, *, form_data=None):
        """Returns (team, tickets, completed_now)."""
        snapshot = self._team_snapshot(team_id)
        self._require_path(snapshot, RegistrationPath.TEAM)

        team, tickets, completed_now = team_registry.complete_registration(
            team_id, self._participant(auth), form_data=form_data
        )

        self._attach_tokens(tickets)
        if completed_now:
            self._schedule_notifications(tickets)
        return team, tickets, completed_now

    def remove_member(self, auth, team_id, member_id):
        self._team_snapshot(team_id)
        return team_registry.remove_member(team_id, member_id, self._participant(auth))

    def leave_team(self, auth, team_id):
        self._team_snapshot(team_id)
        return team_registry.leave_team(team_id, self._participant(auth))

    def cancel_team(self, auth, team_id):
        self._team_snapshot(team_id)
        return team_registry.cancel_team(team_id, self._participant(auth))

    # ─────────────────────────────────────────────────────────────
    # Organizer operations
    # ─────────────────────────────────────────────────────────────

    def check_in(
        self,
        auth,
        event_id,
        *,
        ticket_id=None,
        token=None,
        attended=True,
        manual_override=False,
        override_reason="",
    ):
        """
        Mark attendance from a ticket id or a scanned QR payload.
        Returns the ticket.
        """
        snapshot = self.catalog.get(event_id)
        self._require_manager(auth, snapshot)

        ok, reason = validate_action_for_status(snapshot, 'scan_attendance')
        if not ok:
            raise RegistrationClosed(reason, event_id=snapshot.id, status=snapshot.status)

        if token:
            try:
                payload = verify_ticket_token(token)
            except signing.BadSignature:
                raise TicketNotFound("Invalid ticket token.")
            if str(payload.get("event_id")) != str(snapshot.id):
                raise TicketNotFound("Ticket does not belong to this event.")
            ticket_id = payload.get("ticket_id")

        if not ticket_id:
            raise TicketNotFound()

        return ledger.mark_attendance(
            snapshot.id,
            ticket_id,
            attended=attended,
            manual_override=manual_override,
            override_reason=override_reason,
        )

    def transition_event(self, auth, event_id, new_status):
        snapshot = self.catalog.get(event_id)
        self._require_manager(auth, snapshot)

        with transaction.atomic():
            event = ledger.lock_event(snapshot.id)
            ok, message = transition(event, new_status, actor=self._participant(auth))
            if not ok:
                raise InvalidTransition(message, event_id=event.id, status=event.status)
        return event
