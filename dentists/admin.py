# dentists/admin.py

from django.contrib import admin
from .models import Dentist

class DentistAdmin(admin.ModelAdmin):
    list_display = ('name', 'contact_number', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name', 'contact_number')
    exclude = ('password',)
    list_per_page = 20

admin.site.register(Dentist, DentistAdmin)
