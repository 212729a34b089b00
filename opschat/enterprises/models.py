from __future__ import annotations

import re

from django.core.exceptions import ValidationError
from django.db import models
from django.utils.translation import gettext_lazy as _

DOMAIN_PATTERN = re.compile(r"^@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def normalize_domain(value: str) -> str:
    """Return ``value`` in the canonical ``@example.com`` form."""

    domain = value.strip().lower()
    if domain and not domain.startswith("@"):
        domain = f"@{domain}"
    return domain


def email_domain(email: str) -> str:
    _, _, domain = email.strip().rpartition("@")
    return normalize_domain(domain) if domain else ""


def validate_domains(value) -> None:
    if not isinstance(value, list):
        raise ValidationError(_("Domains must be a list."))
    invalid = [d for d in value if not isinstance(d, str) or not DOMAIN_PATTERN.match(d)]
    if invalid:
        raise ValidationError(
            _("Invalid domain format: %(domains)s"),
            params={"domains": ", ".join(map(str, invalid))},
        )


class EnterpriseQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status=Enterprise.Status.ACTIVE)

    def for_email(self, email: str) -> Enterprise | None:
        """Resolve the active enterprise whitelisting ``email``'s domain."""

        domain = email_domain(email)
        if not domain:
            return None
        # Domains live in a JSON list; matching in Python keeps this portable
        # across database backends.
        for enterprise in self.active().order_by("pk"):
            if domain in enterprise.normalized_domains:
                return enterprise
        return None


class Enterprise(models.Model):
    """A tenant. Users are assigned to it through whitelisted email domains."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        ARCHIVED = "archived", _("Archived")

    name = models.CharField(max_length=255)
    contact_email = models.EmailField()
    domains = models.JSONField(default=list, blank=True, validators=[validate_domains])
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = EnterpriseQuerySet.as_manager()

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.name

    @property
    def normalized_domains(self) -> set[str]:
        return {normalize_domain(d) for d in self.domains or [] if isinstance(d, str)}

    def save(self, *args, **kwargs):
        self.domains = sorted(self.normalized_domains)
        super().save(*args, **kwargs)


class Department(models.Model):
    enterprise = models.ForeignKey(
        Enterprise,
        on_delete=models.CASCADE,
        related_name="departments",
    )
    name = models.CharField(max_length=150)
    code = models.CharField(max_length=20)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["enterprise", "code"],
                name="uniq_department_code_per_enterprise",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.code} - {self.name}"
