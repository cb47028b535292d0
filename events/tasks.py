# events/tasks.py
import logging

from celery import shared_task

from .models import Ticket
from .emails import send_registration_email

logger = logging.getLogger('regdesk.events')


@shared_task
def send_registration_email_task(ticket_id: str):
    """
    Async wrapper for sending the registration confirmation email.
    """
    try:
        ticket = Ticket.objects.select_related("event", "participant", "team").get(ticket_id=ticket_id)
    except Ticket.DoesNotExist:
        logger.warning(f"Registration email skipped, ticket not found: {ticket_id}")
        return

    # We don't have a Django request in Celery; emails code handles request=None
    try:
        send_registration_email(ticket, request=None)
    except Exception as e:
        # Avoid crashing worker if email fails
        logger.warning(f"Registration email failed for ticket {ticket_id}: {e}")


def notify_registration_complete(participant_id, event_id, ticket_id):
    """
    Default notifier for the coordinator: queue the confirmation email.
    """
    logger.debug(
        f"Queueing registration email: participant={participant_id}, event={event_id}, ticket={ticket_id}"
    )
    send_registration_email_task.delay(ticket_id)
