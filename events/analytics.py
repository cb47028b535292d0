from django.db.models import Count
from django.db.models.functions import TruncDate

from .models import EventRegistration, EventTeam, ParticipantTeamMember, Ticket


def get_event_stats(*, event):
    """
    Seat, team and attendance figures for one event.

    Counter values come from the event row; the breakdowns are recounted
    from the records so drift between the two is visible.
    """
    event.refresh_from_db(fields=["registered_count", "team_count", "attendance_count", "status"])

    reg_qs = EventRegistration.objects.filter(event=event)
    direct_live = reg_qs.exclude(status=EventRegistration.STATUS_CANCELLED).count()
    cancelled = reg_qs.filter(status=EventRegistration.STATUS_CANCELLED).count()

    team_qs = EventTeam.objects.filter(event=event)
    team_seats = ParticipantTeamMember.objects.filter(
        event=event,
        is_active=True,
        team__status=EventTeam.STATUS_COMPLETE,
    ).count()

    checked_in = Ticket.objects.filter(event=event, checked_in_at__isnull=False).count()

    stats = {
        "registration_limit": event.registration_limit,
        "registered_count": event.registered_count,
        "seats_left": event.seats_left,
        "direct_registrations": direct_live,
        "cancelled_registrations": cancelled,
        "team_seats": team_seats,
        "team_count": event.team_count,
        "teams_forming": team_qs.filter(status=EventTeam.STATUS_FORMING).count(),
        "teams_cancelled": team_qs.filter(status=EventTeam.STATUS_CANCELLED).count(),
        "attendance_count": event.attendance_count,
        "checked_in": checked_in,
    }

    if event.registered_count > 0:
        stats["attendance_rate"] = round((checked_in / event.registered_count) * 100, 2)
    else:
        stats["attendance_rate"] = 0

    timeline = (
        Ticket.objects.filter(event=event)
        .annotate(date=TruncDate("issued_at"))
        .values("date")
        .annotate(count=Count("id"))
        .order_by("date")
    )
    stats["registration_timeline"] = [{"date": row["date"], "count": row["count"]} for row in timeline]

    return stats


def my_registrations(participant):
    """
    Unified "my events" view over both registration paths.

    Team members never get a direct record, so their seat shows up here
    through the complete team instead. Forming teams are listed too,
    without a ticket.
    """
    entries = []

    records = (
        EventRegistration.objects
        .select_related("event", "ticket")
        .filter(participant=participant)
        .exclude(status=EventRegistration.STATUS_CANCELLED)
    )
    for record in records:
        entries.append({
            "event_id": record.event_id,
            "event_title": record.event.title,
            "path": "direct",
            "status": record.status,
            "ticket_id": record.ticket.ticket_id,
            "team_id": None,
            "registered_at": record.registered_at,
        })

    memberships = (
        ParticipantTeamMember.objects
        .select_related("team", "event")
        .filter(participant=participant, is_active=True)
        .exclude(team__status=EventTeam.STATUS_CANCELLED)
    )
    tickets = {
        t.event_id: t
        for t in Ticket.objects.filter(
            participant=participant,
            event_id__in=[m.event_id for m in memberships],
        )
    }
    for membership in memberships:
        team = membership.team
        ticket = tickets.get(membership.event_id) if team.status == EventTeam.STATUS_COMPLETE else None
        entries.append({
            "event_id": membership.event_id,
            "event_title": membership.event.title,
            "path": "team",
            "status": team.status,
            "ticket_id": ticket.ticket_id if ticket else None,
            "team_id": team.id,
            "registered_at": team.completed_at or membership.joined_at,
        })

    entries.sort(key=lambda e: e["registered_at"], reverse=True)
    return entries

