from rest_framework import serializers

from .models import Event, EventRegistration, EventTeam, ParticipantTeamMember, Ticket
from .sanitizers import sanitize_form_data, sanitize_team_name, sanitize_text


# -----------------------------------------
# EVENT SERIALIZER (read-only summary)
# -----------------------------------------
class EventSerializer(serializers.ModelSerializer):
    organizer_name = serializers.CharField(source="organizer.username", read_only=True)
    seats_left = serializers.IntegerField(read_only=True)
    is_paid = serializers.BooleanField(read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "organizer",
            "organizer_name",
            "title",
            "event_type",
            "eligibility",
            "status",
            "registration_deadline",
            "start_time",
            "end_time",
            "registration_limit",
            "registration_fee",
            "is_paid",
            "max_team_size",
            "registered_count",
            "seats_left",
            "team_count",
            "attendance_count",
        ]
        read_only_fields = fields


# -----------------------------------------
# TICKET / REGISTRATION SERIALIZERS
# -----------------------------------------
class TicketSerializer(serializers.ModelSerializer):
    participant_id = serializers.IntegerField(read_only=True)
    token = serializers.CharField(source="display_token", read_only=True)

    class Meta:
        model = Ticket
        fields = ["ticket_id", "participant_id", "event", "team", "token", "issued_at", "checked_in_at"]
        read_only_fields = fields


class RegistrationSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="participant.username", read_only=True)
    ticket_id = serializers.CharField(source="ticket.ticket_id", read_only=True)
    token = serializers.CharField(source="ticket.display_token", read_only=True)
    checked_in_at = serializers.DateTimeField(source="ticket.checked_in_at", read_only=True)

    class Meta:
        model = EventRegistration
        fields = [
            "id",
            "participant",
            "username",
            "event",
            "status",
            "ticket_id",
            "token",
            "registered_at",
            "attended_at",
            "checked_in_at",
            "manual_override",
            "override_reason",
            "form_data",
        ]
        read_only_fields = fields


# -----------------------------------------
# TEAM SERIALIZERS
# -----------------------------------------
class ParticipantTeamMemberSerializer(serializers.ModelSerializer):
    """Serializer for team members"""
    username = serializers.CharField(source='participant.username', read_only=True)
    participant_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = ParticipantTeamMember
        fields = ['participant_id', 'username', 'role', 'joined_at']
        read_only_fields = fields


class EventTeamSerializer(serializers.ModelSerializer):
    team_id = serializers.IntegerField(source='id', read_only=True)
    leader_name = serializers.CharField(source='leader.username', read_only=True)
    members = serializers.SerializerMethodField()
    current_size = serializers.IntegerField(read_only=True)
    is_full = serializers.BooleanField(read_only=True)
    invite_url = serializers.CharField(read_only=True)

    class Meta:
        model = EventTeam
        fields = [
            'team_id', 'event', 'name', 'leader', 'leader_name',
            'invite_code', 'invite_url', 'target_size', 'current_size', 'is_full',
            'status', 'members', 'form_data', 'created_at', 'completed_at', 'cancelled_at',
        ]
        read_only_fields = fields

    def get_members(self, obj):
        return ParticipantTeamMemberSerializer(obj.active_members, many=True).data


# -----------------------------------------
# REQUEST SERIALIZERS
# -----------------------------------------
class RegisterRequestSerializer(serializers.Serializer):
    form_data = serializers.JSONField(required=False, default=dict)
    payment_reference = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_form_data(self, value):
        try:
            return sanitize_form_data(value or {})
        except ValueError as e:
            raise serializers.ValidationError(str(e))


class CreateTeamSerializer(serializers.Serializer):
    target_size = serializers.IntegerField()
    name = serializers.CharField(required=False, allow_blank=True, default="", max_length=100)
    payment_reference = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_name(self, value):
        return sanitize_team_name(value)


class JoinTeamSerializer(serializers.Serializer):
    invite_code = serializers.CharField(max_length=32)
    payment_reference = serializers.CharField(required=False, allow_blank=True, max_length=255)


class CompleteTeamSerializer(serializers.Serializer):
    form_data = serializers.JSONField(required=False, default=dict)

    def validate_form_data(self, value):
        try:
            return sanitize_form_data(value or {})
        except ValueError as e:
            raise serializers.ValidationError(str(e))


class ScanTicketSerializer(serializers.Serializer):
    ticket_id = serializers.CharField(required=False, allow_blank=True)
    token = serializers.CharField(required=False, allow_blank=True)
    attended = serializers.BooleanField(required=False, default=True)
    manual_override = serializers.BooleanField(required=False, default=False)
    override_reason = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)

    def validate_override_reason(self, value):
        return sanitize_text(value, max_length=255)

    def validate(self, attrs):
        if not attrs.get("ticket_id") and not attrs.get("token"):
            raise serializers.ValidationError({"ticket_id": "Provide a ticket_id or a scanned token."})
        if attrs.get("manual_override") and not attrs.get("override_reason"):
            raise serializers.ValidationError({"override_reason": "A reason is required for a manual override."})
        return attrs


class TransitionSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Event.STATUS_CHOICES)
