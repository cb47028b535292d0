# events/catalog.py
"""Read-only event lookups used for fast-fail checks before any lock is taken."""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .exceptions import EventNotFound
from .models import Event


@dataclass(frozen=True)
class EventSnapshot:
    id: int
    title: str
    status: str
    event_type: str
    eligibility: str
    organizer_id: int
    registration_deadline: datetime
    registration_limit: int
    registration_fee: Decimal
    max_team_size: int

    @property
    def is_paid(self) -> bool:
        return self.registration_fee > 0

    @classmethod
    def from_event(cls, event: Event) -> "EventSnapshot":
        return cls(
            id=event.id,
            title=event.title,
            status=event.status,
            event_type=event.event_type,
            eligibility=event.eligibility,
            organizer_id=event.organizer_id,
            registration_deadline=event.registration_deadline,
            registration_limit=event.registration_limit,
            registration_fee=event.registration_fee,
            max_team_size=event.max_team_size,
        )


class EventCatalog:
    """
    Snapshot reads only. Anything decided here is re-checked under the
    event lock by the ledger or the team registry.
    """

    def get(self, event_id) -> EventSnapshot:
        try:
            event = Event.objects.get(pk=event_id)
        except (Event.DoesNotExist, ValueError, TypeError):
            raise EventNotFound(event_id=event_id)
        return EventSnapshot.from_event(event)
