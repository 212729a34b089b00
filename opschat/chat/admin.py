from django.contrib import admin

from opschat.chat import models


@admin.register(models.Channel)
class ChannelAdmin(admin.ModelAdmin):
    list_display = ["id", "enterprise", "name", "kind", "department", "created_by"]
    search_fields = ["name", "description"]
    list_filter = ["kind", "enterprise"]


@admin.register(models.ChannelMembership)
class ChannelMembershipAdmin(admin.ModelAdmin):
    list_display = ["id", "channel", "user", "role", "joined_at"]
    list_filter = ["role"]


@admin.register(models.Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ["id", "channel", "sender", "kind", "created_at"]
    search_fields = ["content"]
    list_filter = ["kind", "created_at"]
