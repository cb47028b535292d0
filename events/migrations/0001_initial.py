import django.db.models.deletion
import events.models
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "event_type",
                    models.CharField(
                        choices=[("normal", "Normal"), ("merchandise", "Merchandise"), ("hackathon", "Hackathon")],
                        default="normal",
                        max_length=32,
                    ),
                ),
                (
                    "eligibility",
                    models.CharField(
                        choices=[
                            ("all", "Everyone"),
                            ("internal", "Internal participants only"),
                            ("external", "External participants only"),
                        ],
                        default="all",
                        max_length=32,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("published", "Published"),
                            ("ongoing", "Ongoing"),
                            ("closed", "Closed"),
                            ("completed", "Completed"),
                        ],
                        default="draft",
                        max_length=32,
                    ),
                ),
                ("registration_deadline", models.DateTimeField()),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("registration_limit", models.PositiveIntegerField()),
                ("registration_fee", models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                (
                    "max_team_size",
                    models.PositiveIntegerField(
                        default=events.models.default_max_team_size,
                        help_text="Upper bound for hackathon team size",
                    ),
                ),
                ("registered_count", models.PositiveIntegerField(default=0)),
                ("team_count", models.PositiveIntegerField(default=0)),
                ("attendance_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organizer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="organized_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["organizer", "start_time"], name="event_org_start_idx"),
                    models.Index(fields=["status", "registration_deadline"], name="event_status_deadline_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("registration_limit__gte", 1)),
                        name="event_limit_positive",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("registered_count__lte", models.F("registration_limit"))),
                        name="event_registered_within_limit",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="EventTeam",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(blank=True, max_length=100)),
                (
                    "invite_code",
                    models.CharField(
                        default=events.models.generate_invite_code,
                        editable=False,
                        max_length=32,
                        unique=True,
                    ),
                ),
                (
                    "target_size",
                    models.PositiveIntegerField(help_text="Exact member count required to complete"),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("forming", "Forming"), ("complete", "Complete"), ("cancelled", "Cancelled")],
                        default="forming",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="teams",
                        to="events.event",
                    ),
                ),
                (
                    "leader",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="led_teams",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "created_at"], name="team_event_created_idx"),
                    models.Index(fields=["event", "status"], name="team_event_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("target_size__gte", 1)),
                        name="team_target_size_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Ticket",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "ticket_id",
                    models.CharField(
                        default=events.models.generate_ticket_id,
                        editable=False,
                        max_length=64,
                        unique=True,
                    ),
                ),
                ("display_token", models.TextField(blank=True, null=True)),
                ("issued_at", models.DateTimeField(auto_now_add=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to="events.event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tickets",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="tickets",
                        to="events.eventteam",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "issued_at"], name="ticket_event_issued_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("event", "participant"), name="ticket_one_per_participant"),
                ],
            },
        ),
        migrations.CreateModel(
            name="EventRegistration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("attended", "Attended"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="active",
                        max_length=32,
                    ),
                ),
                ("registered_at", models.DateTimeField(auto_now_add=True)),
                ("attended_at", models.DateTimeField(blank=True, null=True)),
                ("manual_override", models.BooleanField(default=False)),
                ("override_reason", models.CharField(blank=True, max_length=255)),
                (
                    "form_data",
                    models.JSONField(blank=True, default=dict, help_text="Answers to event-specific questions"),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to="events.event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="registrations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "ticket",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="registrations",
                        to="events.ticket",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["event", "registered_at"], name="reg_event_registered_idx"),
                    models.Index(fields=["participant", "event"], name="reg_participant_event_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "cancelled"), _negated=True),
                        fields=("event", "participant"),
                        name="reg_one_live_per_participant",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ParticipantTeamMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "role",
                    models.CharField(
                        choices=[("leader", "Team Leader"), ("member", "Member")],
                        default="member",
                        max_length=20,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_memberships",
                        to="events.event",
                    ),
                ),
                (
                    "participant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="team_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "team",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="members",
                        to="events.eventteam",
                    ),
                ),
            ],
            options={
                "ordering": ["joined_at", "id"],
                "indexes": [
                    models.Index(fields=["team", "joined_at"], name="ptm_team_joined_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("team", "participant"), name="ptm_unique_member"),
                    models.UniqueConstraint(
                        condition=models.Q(("is_active", True)),
                        fields=("event", "participant"),
                        name="ptm_one_live_team_per_event",
                    ),
                ],
            },
        ),
    ]
