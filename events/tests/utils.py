from datetime import timedelta
from itertools import count

from django.contrib.auth import get_user_model
from django.utils import timezone

from events.models import Event

User = get_user_model()

_seq = count(1)


def make_user(username=None, **extra):
    n = next(_seq)
    username = username or f"user{n}"
    extra.setdefault("email", f"{username}@example.com")
    return User.objects.create_user(username=username, password="pass1234", **extra)


def make_users(n, prefix="p"):
    return [make_user(f"{prefix}{next(_seq)}") for _ in range(n)]


def make_event(organizer, **overrides):
    now = timezone.now()
    fields = {
        "title": "Test Event",
        "description": "Event for registration tests",
        "organizer": organizer,
        "status": Event.STATUS_PUBLISHED,
        "event_type": Event.TYPE_NORMAL,
        "registration_deadline": now + timedelta(days=1),
        "start_time": now + timedelta(days=2),
        "end_time": now + timedelta(days=2, hours=4),
        "registration_limit": 100,
    }
    fields.update(overrides)
    return Event.objects.create(**fields)


def make_hackathon(organizer, **overrides):
    overrides.setdefault("title", "Test Hackathon")
    overrides.setdefault("event_type", Event.TYPE_HACKATHON)
    return make_event(organizer, **overrides)


def close_deadline(event):
    """Move the deadline into the past without going through save()."""
    Event.objects.filter(pk=event.pk).update(
        registration_deadline=timezone.now() - timedelta(minutes=1)
    )
    event.refresh_from_db()
