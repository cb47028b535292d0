# events/emails.py
from django.core.mail import send_mail
from django.conf import settings
from django.urls import NoReverseMatch, reverse


def build_registration_url(request, event):
    """
    Build an absolute URL to the participant's seat status endpoint.
    Falls back to simple path if request is None.
    """
    try:
        path = reverse("event-registration-status", args=[event.id])
    except NoReverseMatch:
        path = f"/api/events/{event.id}/registration/"
    if request is not None:
        return request.build_absolute_uri(path)
    return path


def send_registration_email(ticket, request=None):
    """
    Send a registration confirmation carrying the ticket id.
    Team tickets mention the team as well.
    """
    user = ticket.participant
    event = ticket.event

    if not getattr(user, "email", None):
        # No email set, nothing to send
        return 0

    subject = f"Registered for {event.title}"
    status_url = build_registration_url(request, event)

    team_line = ""
    if ticket.team_id:
        team_line = f"  Team: {ticket.team.name or ticket.team.invite_code}\n"

    message = (
        f"Hi {user.username},\n\n"
        f"You have successfully registered for the event:\n"
        f"  {event.title}\n"
        f"  Starts: {event.start_time}\n"
        f"{team_line}"
        f"  Ticket: {ticket.ticket_id}\n\n"
        f"Show this ticket id or its QR code at check-in.\n"
        f"You can view your registration here:\n"
        f"{status_url}\n\n"
        f"Thank you,\n"
        f"{settings.EMAIL_SIGNATURE}"
    )

    return send_mail(
        subject=subject,
        message=message,
        from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
        recipient_list=[user.email],
        fail_silently=False,
    )
