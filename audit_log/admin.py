# audit_log/admin.py

from django.contrib import admin
from .models import LoginLog

class LoginLogAdmin(admin.ModelAdmin):
    list_display = ('dentist_name', 'timestamp')
    search_fields = ('dentist_name',)
    date_hierarchy = 'timestamp'
    list_per_page = 50

admin.site.register(LoginLog, LoginLogAdmin)
