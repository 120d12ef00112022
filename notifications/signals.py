# notifications/signals.py

from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from lab_cases.models import DentalCase
from .services import notify_owner, notify_new_case


@receiver(post_save, sender=DentalCase)
def announce_new_case(sender, instance, created, **kwargs):
    """
    Records the owner's in-app notification with the case, then sends the
    external alerts once the case has been committed.
    """
    if not created:
        return
    notify_owner(f"New Case From {instance.dentist_name}")
    transaction.on_commit(lambda: notify_new_case(instance), robust=True)
