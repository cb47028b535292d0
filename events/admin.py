from django.contrib import admin
from .models import Event, EventRegistration, EventTeam, ParticipantTeamMember, Ticket


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'event_type', 'status', 'organizer', 'registered_count', 'registration_limit', 'start_time')
    list_filter = ('status', 'event_type', 'eligibility', 'start_time')
    search_fields = ('title', 'description', 'organizer__username')
    date_hierarchy = 'start_time'
    # Counters only move through the ledger
    readonly_fields = ('registered_count', 'team_count', 'attendance_count', 'created_at')


@admin.register(EventRegistration)
class EventRegistrationAdmin(admin.ModelAdmin):
    list_display = ('participant', 'event', 'status', 'ticket', 'registered_at')
    list_filter = ('status', 'event')
    search_fields = ('participant__username', 'event__title', 'ticket__ticket_id')
    readonly_fields = ('ticket', 'registered_at')


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ('ticket_id', 'participant', 'event', 'team', 'issued_at', 'checked_in_at')
    list_filter = ('event', 'checked_in_at')
    search_fields = ('ticket_id', 'participant__username', 'event__title')
    readonly_fields = ('ticket_id', 'display_token', 'issued_at')


class ParticipantTeamMemberInline(admin.TabularInline):
    model = ParticipantTeamMember
    extra = 0
    fields = ('participant', 'role', 'is_active', 'joined_at')
    readonly_fields = ('joined_at',)


@admin.register(EventTeam)
class EventTeamAdmin(admin.ModelAdmin):
    list_display = ('name', 'event', 'leader', 'status', 'target_size', 'invite_code', 'created_at')
    list_filter = ('status', 'event')
    search_fields = ('name', 'invite_code', 'leader__username', 'event__title')
    readonly_fields = ('invite_code', 'created_at', 'completed_at', 'cancelled_at')
    inlines = [ParticipantTeamMemberInline]
