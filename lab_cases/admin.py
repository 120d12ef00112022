# lab_cases/admin.py

from django.contrib import admin
from .models import DentalCase


class DentalCaseAdmin(admin.ModelAdmin):
    list_display = (
        'patient_name', 'dentist_name', 'tooth_numbers', 'material', 'prosthesis_type',
        'unit_price', 'created_at', 'delivery_date', 'deletion_requested', 'is_deleted'
    )
    list_filter = ('is_deleted', 'deletion_requested', 'prosthesis_type', 'source', 'created_at')
    search_fields = ('patient_name', 'dentist_name', 'patient_number', 'notes')
    date_hierarchy = 'created_at'
    list_per_page = 25
    readonly_fields = ('updated_at',)

admin.site.register(DentalCase, DentalCaseAdmin)
