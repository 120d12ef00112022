# DENTALLABPORTAL/lab_cases/models.py

from django.db import models
from django.utils import timezone
from django.core.validators import MinLengthValidator, MinValueValidator
from decimal import Decimal

from billing.calculator import MATERIAL_CHOICES, count_teeth, split_materials


class DentalCaseQuerySet(models.QuerySet):

    def for_dentist(self, dentist_name):
        return self.filter(dentist_name=dentist_name)

    def active(self):
        return self.filter(is_deleted=False)

    def pending_deletion(self):
        return self.filter(deletion_requested=True, is_deleted=False)

    def visible_to_dentist(self):
        # Approved deletion requests disappear from the dentist's history.
        return self.exclude(deletion_requested=True, is_deleted=True)


class DentalCase(models.Model):
    PROSTHESIS_TYPE_CHOICES = [
        ('Separate', 'Separate'),
        ('Bridge', 'Bridge'),
    ]
    SOURCE_CHOICES = [
        ('Desktop', 'Desktop'),
        ('Mobile', 'Mobile'),
    ]
    MATERIAL_CHOICES = MATERIAL_CHOICES

    patient_name = models.CharField(max_length=120, validators=[MinLengthValidator(2)])
    dentist_name = models.CharField(max_length=120, db_index=True, validators=[MinLengthValidator(2)])
    tooth_numbers = models.CharField(
        max_length=255,
        help_text="Comma-separated FDI tooth numbers, e.g. '11,12,13'."
    )
    prosthesis_type = models.CharField(max_length=20, choices=PROSTHESIS_TYPE_CHOICES)
    material = models.CharField(
        max_length=255,
        help_text="Comma-separated list of materials, e.g. 'Zirconia, Implant'."
    )
    shade = models.CharField(max_length=30)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    delivery_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default='')
    is_deleted = models.BooleanField(default=False)
    deletion_requested = models.BooleanField(default=False)
    unit_price = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Price per unit agreed for this case."
    )
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default='Desktop')
    patient_number = models.CharField(max_length=50, blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)

    objects = DentalCaseQuerySet.as_manager()

    class Meta:
        verbose_name = "Dental Case"
        verbose_name_plural = "Dental Cases"
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.patient_name} ({self.dentist_name})"

    @property
    def tooth_count(self):
        return count_teeth(self.tooth_numbers)

    @property
    def material_list(self):
        return split_materials(self.material)

    @property
    def line_total(self):
        """Units times the agreed unit price, when one has been set."""
        if self.unit_price is None:
            return None
        return self.unit_price * self.tooth_count

    def request_deletion(self):
        self.deletion_requested = True
        self.save(update_fields=['deletion_requested', 'updated_at'])

    def approve_deletion(self):
        self.is_deleted = True
        self.save(update_fields=['is_deleted', 'updated_at'])

    def restore(self):
        self.is_deleted = False
        self.deletion_requested = False
        self.save(update_fields=['is_deleted', 'deletion_requested', 'updated_at'])
