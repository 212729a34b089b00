from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db.models.signals import pre_save
from django.dispatch import receiver

from opschat.enterprises.models import Enterprise

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=get_user_model())
def assign_enterprise_from_email(sender, instance, **kwargs):
    """Attach new accounts to the enterprise whitelisting their email domain.

    An explicitly set enterprise is never overridden. Accounts whose domain is
    not whitelisted stay unassigned and cannot authenticate to any tenant.
    """

    if instance.pk or instance.enterprise_id or not instance.email:
        return

    enterprise = Enterprise.objects.for_email(instance.email)
    if enterprise is None:
        logger.info("No enterprise whitelists %s", instance.email)
        return
    instance.enterprise = enterprise
