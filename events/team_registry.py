# events/team_registry.py
"""
Team Registry.

Owns team membership, invite codes and the team lifecycle:

    forming -> complete   (leader completes at exactly target_size)
    forming -> cancelled  (leader cancels)

Membership changes lock the team row. Joins and completion then lock the
event row as well, always in that order. Completion issues every member's
ticket, moves the counters and flips the status in one atomic unit.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import F

from .datetime_utils import now
from .exceptions import (
    AlreadyOnTeam,
    CannotRemoveLeader,
    CapacityExceeded,
    InvalidInviteCode,
    InvalidTeamSize,
    NotATeamMember,
    NotTeamLeader,
    TeamAlreadyComplete,
    TeamFull,
    TeamNotFound,
    TeamNotFull,
)
from .ledger import check_no_claim, check_registration_window, lock_event, reserve_seats
from .models import Event, EventTeam, ParticipantTeamMember, Ticket
from .state_machine import can_transition_team
from .tickets import issue

logger = logging.getLogger('regdesk.events')


def lock_team(team_id):
    try:
        return EventTeam.objects.select_for_update().get(pk=team_id)
    except EventTeam.DoesNotExist:
        raise TeamNotFound(team_id=team_id)


def team_for(event_id, participant_id):
    """The participant's non-cancelled team for the event, or None."""
    membership = (
        ParticipantTeamMember.objects
        .select_related('team')
        .filter(event_id=event_id, participant_id=participant_id, is_active=True)
        .exclude(team__status=EventTeam.STATUS_CANCELLED)
        .first()
    )
    return membership.team if membership else None


def team_tickets(team):
    member_ids = team.members.filter(is_active=True).values_list('participant_id', flat=True)
    return list(
        Ticket.objects
        .filter(event_id=team.event_id, participant_id__in=list(member_ids))
        .order_by('issued_at', 'id')
    )


def _new_invite_code():
    code = EventTeam._meta.get_field('invite_code').default()
    while EventTeam.objects.filter(invite_code=code).exists():
        code = EventTeam._meta.get_field('invite_code').default()
    return code


def create_team(event_id, leader, target_size, *, name=""):
    """
    Create a forming team with `leader` as its first member.

    Returns (team, created). A participant already on a live team for the
    event gets that team back with created=False.
    """
    with transaction.atomic():
        event = lock_event(event_id)
        check_registration_window(event)

        existing = team_for(event.id, leader.id)
        if existing is not None:
            return existing, False

        check_no_claim(event.id, leader.id)

        if not 1 <= target_size <= event.max_team_size:
            raise InvalidTeamSize(
                f"Team size must be between 1 and {event.max_team_size}.",
                target_size=target_size,
                max_team_size=event.max_team_size,
            )

        try:
            with transaction.atomic():
                team = EventTeam.objects.create(
                    event=event,
                    name=name,
                    leader=leader,
                    target_size=target_size,
                    invite_code=_new_invite_code(),
                )
                ParticipantTeamMember.objects.create(
                    team=team,
                    event=event,
                    participant=leader,
                    role=ParticipantTeamMember.ROLE_LEADER,
                )
        except IntegrityError:
            # Joined another team in the meantime
            existing = team_for(event.id, leader.id)
            if existing is None:
                raise
            return existing, False

    logger.info(
        f"Team created: team={team.id}, event={event.id}, leader={leader.id}, "
        f"target_size={target_size}"
    )
    return team, True


def join_team(invite_code, participant):
    """
    Join a forming team by invite code.

    Returns (team, joined). Joining a team you are already on returns it
    with joined=False.
    """
    code = (invite_code or "").strip().upper()

    with transaction.atomic():
        try:
            team = (
                EventTeam.objects
                .select_for_update(of=('self',))
                .select_related('event')
                .get(invite_code=code)
            )
        except EventTeam.DoesNotExist:
            raise InvalidInviteCode()

        if team.status == EventTeam.STATUS_CANCELLED:
            raise InvalidInviteCode()

        # Team row first, then event row, as in complete_registration
        event = lock_event(team.event_id)
        check_registration_window(event)

        if team.members.filter(participant_id=participant.id, is_active=True).exists():
            return team, False

        if team.status == EventTeam.STATUS_COMPLETE:
            raise TeamFull("Team registration is already complete.", team_id=team.id)

        check_no_claim(event.id, participant.id)

        current_size = team.current_size
        if current_size >= team.target_size:
            raise TeamFull(team_id=team.id, target_size=team.target_size)

        try:
            with transaction.atomic():
                # A member who left earlier keeps their row, so it is revived
                revived = ParticipantTeamMember.objects.filter(
                    team=team, participant=participant, is_active=False
                ).update(is_active=True, role=ParticipantTeamMember.ROLE_MEMBER, joined_at=now())
                if not revived:
                    ParticipantTeamMember.objects.create(
                        team=team,
                        event=event,
                        participant=participant,
                        role=ParticipantTeamMember.ROLE_MEMBER,
                    )
        except IntegrityError:
            raise AlreadyOnTeam(event_id=team.event_id)

    logger.info(
        f"Team joined: team={team.id}, participant={participant.id}, "
        f"size={current_size + 1}/{team.target_size}"
    )
    return team, True


def _mark_complete(team, form_data=None):
    ok, reason = can_transition_team(team, EventTeam.STATUS_COMPLETE)
    if not ok:
        raise TeamAlreadyComplete(reason, team_id=team.id)
    team.status = EventTeam.STATUS_COMPLETE
    team.completed_at = now()
    team.form_data = form_data or {}
    team.save(update_fields=['status', 'completed_at', 'form_data'])


def complete_registration(team_id, requester, *, form_data=None):
    """
    Complete a team at exactly its target size, storing the leader's
    form answers on the team.

    Returns (team, tickets, completed_now). Completing an already complete
    team returns its tickets with completed_now=False and leaves the
    counters alone.
    """
    with transaction.atomic():
        team = lock_team(team_id)

        if team.leader_id != requester.id:
            raise NotTeamLeader(team_id=team.id)

        if team.status == EventTeam.STATUS_COMPLETE:
            return team, team_tickets(team), False

        if team.status == EventTeam.STATUS_CANCELLED:
            raise TeamAlreadyComplete("Team has been cancelled.", team_id=team.id)

        event = lock_event(team.event_id)
        check_registration_window(event)

        members = list(team.active_members)
        if len(members) < team.target_size:
            raise TeamNotFull(
                f"Team needs {team.target_size} members, has {len(members)}.",
                current_size=len(members),
                target_size=team.target_size,
            )

        if not reserve_seats(event.id, len(members)):
            logger.info(
                f"Team completion rejected, event full: team={team.id}, event={event.id}, "
                f"needed={len(members)}, left={event.seats_left}"
            )
            raise CapacityExceeded(
                event_id=event.id,
                seats_needed=len(members),
                seats_left=event.seats_left,
            )

        tickets = [issue(event, member.participant, team=team)[0] for member in members]

        _mark_complete(team, form_data)
        Event.objects.filter(pk=event.id).update(team_count=F('team_count') + 1)

    logger.info(
        f"Team completed: team={team.id}, event={event.id}, members={len(members)}"
    )
    return team, tickets, True


def remove_member(team_id, member_id, requester):
    """Leader removes a member from a forming team."""
    with transaction.atomic():
        team = lock_team(team_id)

        if team.leader_id != requester.id:
            raise NotTeamLeader(team_id=team.id)
        if team.status != EventTeam.STATUS_FORMING:
            raise TeamAlreadyComplete(team_id=team.id)
        if member_id == team.leader_id:
            raise CannotRemoveLeader(team_id=team.id)

        membership = team.members.filter(participant_id=member_id, is_active=True).first()
        if membership is None:
            raise NotATeamMember(team_id=team.id, member_id=member_id)

        membership.is_active = False
        membership.save(update_fields=['is_active'])

    logger.info(f"Team member removed: team={team.id}, member={member_id}, by={requester.id}")
    return team


def leave_team(team_id, participant):
    with transaction.atomic():
        team = lock_team(team_id)

        membership = team.members.filter(participant_id=participant.id, is_active=True).first()
        if membership is None:
            raise NotATeamMember(team_id=team.id, member_id=participant.id)
        if team.status != EventTeam.STATUS_FORMING:
            raise TeamAlreadyComplete(team_id=team.id)
        if membership.role == ParticipantTeamMember.ROLE_LEADER:
            raise CannotRemoveLeader()

        membership.is_active = False
        membership.save(update_fields=['is_active'])

    logger.info(f"Team left: team={team.id}, participant={participant.id}")
    return team


def cancel_team(team_id, requester):
    """Leader cancels a forming team; every membership is released."""
    with transaction.atomic():
        team = lock_team(team_id)

        if team.leader_id != requester.id:
            raise NotTeamLeader(team_id=team.id)
        if team.status == EventTeam.STATUS_CANCELLED:
            return team
        if team.status != EventTeam.STATUS_FORMING:
            raise TeamAlreadyComplete(team_id=team.id)

        team.status = EventTeam.STATUS_CANCELLED
        team.cancelled_at = now()
        team.save(update_fields=['status', 'cancelled_at'])
        team.members.filter(is_active=True).update(is_active=False)

    logger.info(f"Team cancelled: team={team.id}, by={requester.id}")
    return team
