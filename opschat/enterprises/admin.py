from django.contrib import admin

from opschat.enterprises import models


@admin.register(models.Enterprise)
class EnterpriseAdmin(admin.ModelAdmin):
    list_display = ["id", "name", "contact_email", "status"]
    search_fields = ["name", "contact_email"]
    list_filter = ["status", "created_at"]


@admin.register(models.Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ["id", "enterprise", "code", "name"]
    search_fields = ["name", "code"]
    list_filter = ["enterprise"]
