# dentists/apps.py

from django.apps import AppConfig
from django.db.models.signals import post_migrate

class DentistsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'dentists'

    def ready(self):
        from .signals import create_owner_group
        # Fires once per app; the last call sees every app's permissions.
        post_migrate.connect(create_owner_group, dispatch_uid='dentists.create_owner_group')
