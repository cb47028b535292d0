# events/models.py
from django.db import models
from django.db.models import F, Q
from django.conf import settings
from django.core.exceptions import ValidationError
import secrets
import uuid


def generate_ticket_id():
    return f"TICKET-{uuid.uuid4().hex.upper()}"


def generate_invite_code():
    return secrets.token_hex(settings.TEAM_INVITE_CODE_BYTES).upper()


def default_max_team_size():
    return settings.DEFAULT_MAX_TEAM_SIZE


class Event(models.Model):
    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_ONGOING = "ongoing"
    STATUS_CLOSED = "closed"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
        (STATUS_ONGOING, "Ongoing"),
        (STATUS_CLOSED, "Closed"),
        (STATUS_COMPLETED, "Completed"),
    ]

    # Statuses in which the capacity ceiling is enforceable and seats are handed out
    OPEN_STATUSES = (STATUS_PUBLISHED, STATUS_ONGOING)

    TYPE_NORMAL = "normal"
    TYPE_MERCHANDISE = "merchandise"
    TYPE_HACKATHON = "hackathon"

    TYPE_CHOICES = [
        (TYPE_NORMAL, "Normal"),
        (TYPE_MERCHANDISE, "Merchandise"),
        (TYPE_HACKATHON, "Hackathon"),
    ]

    ELIGIBILITY_ALL = "all"
    ELIGIBILITY_INTERNAL = "internal"
    ELIGIBILITY_EXTERNAL = "external"

    ELIGIBILITY_CHOICES = [
        (ELIGIBILITY_ALL, "Everyone"),
        (ELIGIBILITY_INTERNAL, "Internal participants only"),
        (ELIGIBILITY_EXTERNAL, "External participants only"),
    ]

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='organized_events'
    )
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    event_type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_NORMAL)
    eligibility = models.CharField(max_length=32, choices=ELIGIBILITY_CHOICES, default=ELIGIBILITY_ALL)
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_DRAFT)

    registration_deadline = models.DateTimeField()
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()

    registration_limit = models.PositiveIntegerField()
    registration_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    max_team_size = models.PositiveIntegerField(default=default_max_team_size, help_text="Upper bound for hackathon team size")

    # Aggregate counters, only ever changed through conditional F() updates
    registered_count = models.PositiveIntegerField(default=0)
    team_count = models.PositiveIntegerField(default=0)
    attendance_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(registration_limit__gte=1),
                name="event_limit_positive",
            ),
            models.CheckConstraint(
                condition=Q(registered_count__lte=F("registration_limit")),
                name="event_registered_within_limit",
            ),
        ]
        indexes = [
            models.Index(
                fields=['organizer', 'start_time'],
                name='event_org_start_idx',
            ),
            models.Index(
                fields=['status', 'registration_deadline'],
                name='event_status_deadline_idx',
            ),
        ]

    def __str__(self):
        return self.title

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_status = instance.__dict__.get("status")
        instance._loaded_registration_limit = instance.__dict__.get("registration_limit")
        return instance

    def save(self, *args, **kwargs):
        loaded_limit = getattr(self, "_loaded_registration_limit", None)
        loaded_status = getattr(self, "_loaded_status", None)
        if (
            self.pk
            and loaded_limit is not None
            and loaded_status not in (None, self.STATUS_DRAFT)
            and loaded_limit != self.registration_limit
        ):
            raise ValidationError("registration_limit cannot change once the event is published.")

        super().save(*args, **kwargs)
        self._loaded_status = self.status
        self._loaded_registration_limit = self.registration_limit

    @property
    def seats_left(self):
        return max(0, self.registration_limit - self.registered_count)

    @property
    def is_paid(self):
        return self.registration_fee > 0


class Ticket(models.Model):
    """
    Proof of registration for exactly one (event, participant) pair.

    Issued by both the direct and the team path; the unique constraint
    on (event, participant) is what makes issuance idempotent.
    """
    ticket_id = models.CharField(max_length=64, unique=True, default=generate_ticket_id, editable=False)
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="tickets")
    participant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="tickets",
    )
    team = models.ForeignKey(
        "events.EventTeam",
        on_delete=models.SET_NULL,
        related_name="tickets",
        null=True,
        blank=True,
    )

    # Opaque QR token; empty when the encoder failed, the ticket id still works for manual check-in
    display_token = models.TextField(blank=True, null=True)

    issued_at = models.DateTimeField(auto_now_add=True)
    checked_in_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["event", "participant"],
                name="ticket_one_per_participant",
            ),
        ]
        indexes = [
            models.Index(fields=["event", "issued_at"], name="ticket_event_issued_idx"),
        ]

    def __str__(self):
        return f"{self.ticket_id} ({self.participant} @ {self.event})"


class EventRegistration(models.Model):
    STATUS_ACTIVE = "active"
    STATUS_ATTENDED = "attended"
    STATUS_CANCELLED = "cancelled"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_ATTENDED, "Attended"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_COMPLETED, "Completed"),
    ]

    participant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="registrations",
    )
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="registrations")
    ticket = models.ForeignKey(Ticket, on_delete=models.PROTECT, related_name="registrations")
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_ACTIVE)
    registered_at = models.DateTimeField(auto_now_add=True)

    # Attendance tracking
    attended_at = models.DateTimeField(blank=True, null=True)
    manual_override = models.BooleanField(default=False)
    override_reason = models.CharField(max_length=255, blank=True)

    form_data = models.JSONField(default=dict, blank=True, help_text="Answers to event-specific questions")

    class Meta:
        constraints = [
            # Cancelled rows stay for the audit trail, so uniqueness only covers live ones
            models.UniqueConstraint(
                fields=["event", "participant"],
                condition=~Q(status="cancelled"),
                name="reg_one_live_per_participant",
            ),
        ]
        indexes = [
            models.Index(
                fields=['event', 'registered_at'],
                name='reg_event_registered_idx',
            ),
            models.Index(
                fields=['participant', 'event'],
                name='reg_participant_event_idx',
            ),
        ]

    def __str__(self):
        return f"{self.participant} - {self.event} ({self.status})"


class EventTeam(models.Model):
    """
    A group registration for a hackathon-style event.

    Forming teams accept members through the invite code. Only the leader
    can complete the team, which issues a ticket to every member at once.
    """
    STATUS_FORMING = "forming"
    STATUS_COMPLETE = "complete"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_FORMING, "Forming"),
        (STATUS_COMPLETE, "Complete"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='teams')
    name = models.CharField(max_length=100, blank=True)
    leader = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='led_teams')

    # Invite system
    invite_code = models.CharField(max_length=32, unique=True, default=generate_invite_code, editable=False)
    target_size = models.PositiveIntegerField(help_text="Exact member count required to complete")

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_FORMING)
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    form_data = models.JSONField(default=dict, blank=True, help_text="Leader's answers, stored when the team completes")

    class Meta:
        constraints = [
            models.CheckConstraint(condition=Q(target_size__gte=1), name="team_target_size_positive"),
        ]
        indexes = [
            models.Index(fields=['event', 'created_at'], name='team_event_created_idx'),
            models.Index(fields=['event', 'status'], name='team_event_status_idx'),
        ]

    def __str__(self):
        return f"{self.name or self.invite_code} ({self.event.title})"

    @property
    def active_members(self):
        return self.members.filter(is_active=True).select_related("participant")

    @property
    def current_size(self):
        return self.members.filter(is_active=True).count()

    @property
    def is_full(self):
        return self.current_size >= self.target_size

    @property
    def invite_url(self):
        return f"/teams/join/{self.invite_code}"


class ParticipantTeamMember(models.Model):
    ROLE_LEADER = "leader"
    ROLE_MEMBER = "member"

    ROLE_CHOICES = [
        (ROLE_LEADER, "Team Leader"),
        (ROLE_MEMBER, "Member"),
    ]

    team = models.ForeignKey(EventTeam, on_delete=models.CASCADE, related_name='members')
    # Denormalized from team so "one live team per event" can be a DB constraint
    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name='team_memberships')
    participant = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='team_memberships',
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_MEMBER)
    is_active = models.BooleanField(default=True)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(fields=["team", "participant"], name="ptm_unique_member"),
            models.UniqueConstraint(
                fields=["event", "participant"],
                condition=Q(is_active=True),
                name="ptm_one_live_team_per_event",
            ),
        ]
        indexes = [
            models.Index(fields=['team', 'joined_at'], name='ptm_team_joined_idx'),
        ]

    def __str__(self):
        return f"{self.participant} in {self.team}"
