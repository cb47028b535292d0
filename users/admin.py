from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import User

@admin.register(User)
class CustomUserAdmin(UserAdmin):
    list_display = ('username', 'email', 'role', 'participant_type', 'first_name', 'last_name', 'is_staff')
    list_filter = ('role', 'participant_type', 'is_staff', 'is_superuser', 'is_active')
    search_fields = ('username', 'email', 'first_name', 'last_name', 'institution')
    fieldsets = UserAdmin.fieldsets + (
        ('Participant', {'fields': ('role', 'participant_type', 'phone', 'institution')}),
    )
    add_fieldsets = UserAdmin.add_fieldsets + (
        ('Participant', {'fields': ('role', 'participant_type', 'phone', 'institution')}),
    )
