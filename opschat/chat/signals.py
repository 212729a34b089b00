from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Channel
from .models import ChannelMembership


@receiver(post_save, sender=Channel)
def add_creator_as_admin(sender, instance, created, **kwargs):
    """The creator of a channel is always its first admin member."""

    if not created:
        return

    ChannelMembership.objects.update_or_create(
        channel=instance,
        user_id=instance.created_by_id,
        defaults={"role": ChannelMembership.Role.ADMIN},
    )
