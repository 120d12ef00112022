# notifications/admin.py

from django.contrib import admin
from .models import Notification

class NotificationAdmin(admin.ModelAdmin):
    list_display = ('recipient', 'message', 'read', 'created_at')
    list_filter = ('read',)
    search_fields = ('recipient', 'message')
    list_editable = ('read',)
    list_per_page = 25

admin.site.register(Notification, NotificationAdmin)
