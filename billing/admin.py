# billing/admin.py

from django.contrib import admin
from .models import Invoice


class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'dentist_name', 'from_date', 'to_date', 'subtotal', 'paid_amount', 'grand_total', 'created_at')
    list_filter = ('created_at',)
    search_fields = ('invoice_number', 'dentist_name')
    date_hierarchy = 'created_at'
    readonly_fields = (
        'invoice_number', 'dentist_name', 'from_date', 'to_date', 'summary',
        'subtotal', 'paid_amount', 'grand_total', 'cases', 'created_at'
    )
    list_per_page = 25

    def has_change_permission(self, request, obj=None):
        # Issued invoices are read-only.
        return False

admin.site.register(Invoice, InvoiceAdmin)
