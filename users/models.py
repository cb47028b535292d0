# users/models.py
from django.contrib.auth.models import AbstractUser
from django.db import models

class User(AbstractUser):
    ROLE_PARTICIPANT = "participant"
    ROLE_ORGANIZER = "organizer"
    ROLE_ADMIN = "admin"

    ROLE_CHOICES = (
        (ROLE_PARTICIPANT, 'Participant'),
        (ROLE_ORGANIZER, 'Organizer'),
        (ROLE_ADMIN, 'Admin'),
    )

    TYPE_INTERNAL = "internal"
    TYPE_EXTERNAL = "external"

    PARTICIPANT_TYPE_CHOICES = (
        (TYPE_INTERNAL, 'Internal'),
        (TYPE_EXTERNAL, 'External'),
    )

    role = models.CharField(
        max_length=30,
        choices=ROLE_CHOICES,
        default=ROLE_PARTICIPANT
    )

    # Drives event eligibility checks (Event.eligibility)
    participant_type = models.CharField(
        max_length=20,
        choices=PARTICIPANT_TYPE_CHOICES,
        default=TYPE_EXTERNAL
    )

    phone = models.CharField(max_length=20, blank=True, null=True)
    institution = models.CharField(max_length=255, blank=True, null=True, help_text="University/Organization")

    def __str__(self):
        return self.username
