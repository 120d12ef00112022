# billing/models.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models, transaction
from django.utils import timezone

from .calculator import MATERIAL_NAMES, snapshot_case


class InvoiceQuerySet(models.QuerySet):

    def for_dentist(self, dentist_name):
        return self.filter(dentist_name=dentist_name)


# ========== Invoice ==========

class Invoice(models.Model):
    """
    A saved invoice for one dentist over a date range. The material summary
    and the included cases are frozen at creation time, so later edits to
    cases or prices never change an issued invoice.
    """
    invoice_number = models.CharField(max_length=50, unique=True, editable=False)
    dentist_name = models.CharField(max_length=120, db_index=True)
    from_date = models.DateField(null=True, blank=True)
    to_date = models.DateField(null=True, blank=True)
    summary = models.JSONField(
        default=dict,
        encoder=DjangoJSONEncoder,
        help_text="Material -> {tooth_count, price, total}."
    )
    subtotal = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal('0.000'))
    paid_amount = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal('0.000'))
    grand_total = models.DecimalField(max_digits=18, decimal_places=3, default=Decimal('0.000'))
    cases = models.JSONField(default=list, encoder=DjangoJSONEncoder)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    objects = InvoiceQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Invoice"
        verbose_name_plural = "Invoices"

    def __str__(self):
        return f"Invoice {self.invoice_number} for {self.dentist_name}"

    @classmethod
    def from_summary(cls, invoice):
        """Unsaved invoice built from a ``compute_invoice`` result."""
        return cls(
            dentist_name=invoice['dentist_name'],
            from_date=invoice['from_date'],
            to_date=invoice['to_date'],
            summary={
                material: {
                    'tooth_count': entry['tooth_count'],
                    'price': str(entry['price']),
                    'total': str(entry['total']),
                }
                for material, entry in invoice['summary'].items()
            },
            subtotal=invoice['subtotal'],
            paid_amount=invoice['paid_amount'],
            grand_total=invoice['grand_total'],
            cases=[snapshot_case(case) for case in invoice['cases']],
        )

    def save(self, *args, **kwargs):
        if self.pk and Invoice.objects.filter(pk=self.pk).exists():
            raise ValidationError("Saved invoices cannot be modified.")
        with transaction.atomic():
            if not self.invoice_number:
                today_str = timezone.now().strftime('%y%m%d')
                prefix = f'INV-{today_str}-'
                last = Invoice.objects.select_for_update()\
                    .filter(invoice_number__startswith=prefix)\
                    .order_by('invoice_number')\
                    .last()
                suffix = last.invoice_number.replace(prefix, '') if last else ''
                seq = int(suffix) + 1 if suffix.isdigit() else 1
                self.invoice_number = f'{prefix}{str(seq).zfill(4)}'
            super().save(*args, **kwargs)

    @property
    def summary_rows(self):
        """Summary entries in material display order, with Decimal amounts."""
        rows = []
        for material in MATERIAL_NAMES:
            entry = self.summary.get(material)
            if entry is None:
                continue
            rows.append({
                'material': material,
                'tooth_count': int(entry.get('tooth_count', 0)),
                'price': Decimal(str(entry.get('price', '0'))),
                'total': Decimal(str(entry.get('total', '0'))),
            })
        return rows

    @property
    def case_count(self):
        return len(self.cases)
