# notifications/models.py

from django.db import models

OWNER_RECIPIENT = 'owner'


class NotificationQuerySet(models.QuerySet):

    def unread_for(self, recipient):
        return self.filter(recipient=recipient, read=False)


class Notification(models.Model):
    """
    An in-app message shown to the lab owner (recipient "owner") or to a
    dentist (recipient is the dentist's name) until it is acknowledged.
    """
    recipient = models.CharField(
        max_length=120,
        db_index=True,
        help_text="A dentist name, or 'owner' for the lab owner."
    )
    message = models.CharField(max_length=255)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = NotificationQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"

    def __str__(self):
        return f"To {self.recipient}: {self.message}"
