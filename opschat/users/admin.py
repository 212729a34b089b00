from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from opschat.users.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ["username", "email", "name", "enterprise", "department"]
    list_filter = ["enterprise", "is_active", "is_staff"]
    search_fields = ["username", "email", "name"]
    fieldsets = (
        *BaseUserAdmin.fieldsets,
        ("Organization", {"fields": ("enterprise", "department")}),
    )
