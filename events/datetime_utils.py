# events/datetime_utils.py
"""
Centralized datetime handling for registration.

All deadline and window checks go through these helpers so tests can
freeze "now" in one place.
"""
from datetime import datetime
from typing import Optional
from django.utils import timezone


def now() -> datetime:
    """
    Get current datetime (timezone-aware when USE_TZ=True).

    This is the single source of truth for "now" in registration checks.
    """
    return timezone.now()


def is_deadline_passed(event, at: Optional[datetime] = None) -> bool:
    """Registration is allowed up to and including the deadline instant."""
    if not event.registration_deadline:
        return False
    current = at or now()
    return current > event.registration_deadline

