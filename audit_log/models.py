# audit_log/models.py

from datetime import timedelta

from django.db import models
from django.utils import timezone

RETENTION = timedelta(hours=24)


class LoginLogQuerySet(models.QuerySet):

    def expired(self, now=None):
        return self.filter(timestamp__lt=(now or timezone.now()) - RETENTION)


class LoginLog(models.Model):
    """
    A log entry recording a dentist signing in to the doctor portal.
    Entries are kept for 24 hours.
    """
    dentist_name = models.CharField(
        max_length=120,
        help_text="The dentist who signed in."
    )
    timestamp = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="The date and time of the login."
    )

    objects = LoginLogQuerySet.as_manager()

    class Meta:
        ordering = ['-timestamp']
        verbose_name = 'Login Log'
        verbose_name_plural = 'Login Logs'

    def __str__(self):
        return f"{self.dentist_name} signed in at {self.timestamp.strftime('%Y-%m-%d %H:%M')}"

    @classmethod
    def record(cls, dentist_name):
        return cls.objects.create(dentist_name=dentist_name)

    @classmethod
    def recent(cls, now=None):
        """Deletes entries older than the retention window, then returns the rest."""
        cls.objects.expired(now).delete()
        return cls.objects.all()
