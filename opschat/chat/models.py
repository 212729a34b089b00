from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _


class Channel(models.Model):
    """A named conversation inside one enterprise.

    ``kind`` decides who may join without an invitation:

    - public: any member of the enterprise
    - department: enterprise members of the channel's department
    - private: nobody; memberships are inserted explicitly
    """

    class Kind(models.TextChoices):
        PUBLIC = "public", _("Public")
        PRIVATE = "private", _("Private")
        DEPARTMENT = "department", _("Department")

    enterprise = models.ForeignKey(
        "enterprises.Enterprise",
        on_delete=models.CASCADE,
        related_name="channels",
    )
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.PUBLIC,
        db_index=True,
    )
    department = models.ForeignKey(
        "enterprises.Department",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="channels",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="created_channels",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["enterprise", "name"],
                name="uniq_channel_name_per_enterprise",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"#{self.name}"

    def is_self_service_joinable(self, user) -> bool:
        if user.enterprise_id != self.enterprise_id:
            return False
        if self.kind == self.Kind.PUBLIC:
            return True
        if self.kind == self.Kind.DEPARTMENT:
            return self.department_id is not None and (
                user.department_id == self.department_id
            )
        return False


class ChannelMembership(models.Model):
    class Role(models.TextChoices):
        ADMIN = "admin", _("Admin")
        MEMBER = "member", _("Member")

    channel = models.ForeignKey(
        Channel,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="channel_memberships",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["channel", "user"],
                name="uniq_membership_per_channel_user",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.user_id} in {self.channel_id} ({self.role})"


class Message(models.Model):
    class Kind(models.TextChoices):
        TEXT = "text", _("Text")
        FILE = "file", _("File")
        IMAGE = "image", _("Image")
        ALERT = "alert", _("Alert")
        HANDOVER = "handover", _("Handover")

    channel = models.ForeignKey(
        Channel,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    content = models.TextField()
    kind = models.CharField(max_length=20, choices=Kind.choices, default=Kind.TEXT)
    # Reference only; attachments are uploaded and served elsewhere.
    attachment_ref = models.CharField(max_length=500, blank=True, default="")
    metadata = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.sender_id}@{self.channel_id}: {self.content[:40]}"
