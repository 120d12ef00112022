# DENTALLABPORTAL/dentists/models.py

from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import ValidationError
from django.db import models, transaction
from django.db.models.functions import Lower
from phonenumber_field.modelfields import PhoneNumberField

DUPLICATE_NAME_MESSAGE = "A dentist with this name already exists."


class DentistManager(models.Manager):

    def name_taken(self, name, exclude_pk=None):
        qs = self.filter(name__iexact=(name or '').strip())
        if exclude_pk is not None:
            qs = qs.exclude(pk=exclude_pk)
        return qs.exists()

    def add_dentist(self, name, password, welcome_message='', **extra):
        name = name.strip()
        if self.name_taken(name):
            raise ValidationError({'name': DUPLICATE_NAME_MESSAGE})
        dentist = self.model(name=name, welcome_message=welcome_message, **extra)
        dentist.set_password(password)
        dentist.save()
        return dentist

    def update_dentist(self, pk, **changes):
        """
        Applies ``changes`` while holding a lock on the row, re-checking the
        case-insensitive name uniqueness inside the same transaction.
        """
        with transaction.atomic():
            dentist = self.select_for_update().get(pk=pk)
            new_name = (changes.get('name') or '').strip()
            if new_name and new_name.lower() != dentist.name.lower():
                if self.name_taken(new_name, exclude_pk=pk):
                    raise ValidationError({'name': "This name is already taken."})
            password = changes.pop('password', None)
            old_default = dentist.default_welcome_message()
            for field, value in changes.items():
                setattr(dentist, field, value.strip() if field == 'name' else value)
            if dentist.welcome_message == old_default:
                dentist.welcome_message = dentist.default_welcome_message()
            if password:
                dentist.set_password(password)
            dentist.save()
        return dentist

    def verify(self, name, password):
        """Returns the active dentist matching ``name`` (any case) and ``password``."""
        if not name or not password:
            return None
        dentist = self.filter(name__iexact=name.strip(), is_active=True).first()
        if dentist and dentist.check_password(password):
            return dentist
        return None


class Dentist(models.Model):
    name = models.CharField(max_length=120)
    password = models.CharField(max_length=128)
    welcome_message = models.CharField(max_length=255, blank=True)
    contact_number = PhoneNumberField(unique=True, null=True, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DentistManager()

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                Lower('name'),
                name='unique_dentist_name_ci',
                violation_error_message=DUPLICATE_NAME_MESSAGE,
            ),
        ]

    def __str__(self):
        return self.name

    def set_password(self, raw_password):
        self.password = make_password(raw_password)

    def check_password(self, raw_password):
        return check_password(raw_password, self.password)

    def default_welcome_message(self):
        return f"Welcome, {self.name}"

    def save(self, *args, **kwargs):
        if not self.welcome_message:
            self.welcome_message = self.default_welcome_message()
        super().save(*args, **kwargs)
