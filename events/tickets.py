# events/tickets.py
"""
Ticket Issuer.

A ticket is bound to exactly one (event, participant) pair, whichever path
(direct or team) produced it. Allocation runs inside the caller's atomic
unit; the QR display token is rendered afterwards and may fail on its own
without touching the allocation.
"""
import base64
import logging
from io import BytesIO

import qrcode
from django.conf import settings
from django.core import signing

from .models import Ticket

logger = logging.getLogger('regdesk.events')


def issue(event, participant, team=None):
    """
    Return (ticket, created) for the pair, minting one only if none exists.

    get_or_create wraps its insert in a savepoint, so a concurrent insert
    for the same pair resolves to the winner's ticket instead of an error.
    """
    ticket, created = Ticket.objects.get_or_create(
        event=event,
        participant=participant,
        defaults={"team": team},
    )

    if created:
        logger.info(
            f"Ticket issued: ticket={ticket.ticket_id}, event={event.id}, "
            f"participant={participant.id}, team={getattr(team, 'id', None)}"
        )
    elif team is not None and ticket.team_id is None:
        # Re-issued through the team path (e.g. after a cancelled direct registration)
        ticket.team = team
        ticket.save(update_fields=["team"])

    return ticket, created


def ticket_payload(ticket) -> dict:
    return {
        "ticket_id": ticket.ticket_id,
        "event_id": ticket.event_id,
        "participant_id": ticket.participant_id,
    }


def sign_payload(payload: dict) -> str:
    return signing.dumps(payload, salt=settings.TICKET_TOKEN_SALT)


def verify_ticket_token(value: str) -> dict:
    """
    Decode a scanned QR payload back into {ticket_id, event_id, participant_id}.

    Raises django.core.signing.BadSignature on tampered input.
    """
    return signing.loads(value, salt=settings.TICKET_TOKEN_SALT)


def encode_ticket_token(payload: dict) -> str:
    """
    Default token encoder: a signed payload rendered as a PNG QR code,
    returned as a data URL the client can display directly.
    """
    qr_img = qrcode.make(sign_payload(payload))
    buffer = BytesIO()
    qr_img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def attach_display_token(ticket, encoder=encode_ticket_token):
    """
    Best-effort: render and store the display token for a committed ticket.

    Returns the token, or None when the encoder failed. A failure is logged
    and never raised; the ticket id stays valid for manual check-in.
    """
    if ticket.display_token:
        return ticket.display_token

    try:
        token = encoder(ticket_payload(ticket))
    except Exception as e:
        logger.warning(f"Ticket token encoding failed for {ticket.ticket_id}: {e}")
        return None

    Ticket.objects.filter(pk=ticket.pk).update(display_token=token)
    ticket.display_token = token
    return token
